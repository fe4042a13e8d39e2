"""
Profile CLI commands
"""
from typing import List, Optional

import typer
from rich.table import Table

from ...core.constants import DEFAULT_SSH_PORT
from ...core.exceptions import ProfileError
from ...domain.session.models import AUTH_PASSWORD, AUTH_PRIVATE_KEY, SessionProfile
from .common import prompts, run_async
from .runtime import Runtime


def create_profile_app() -> typer.Typer:
    profile_app = typer.Typer(
        name="profile",
        help="Manage saved connection profiles",
        add_completion=False,
        no_args_is_help=True,
    )

    profile_app.command(name="list")(profile_list)
    profile_app.command(name="add")(profile_add)
    profile_app.command(name="remove")(profile_remove)

    return profile_app


def profile_list(ctx: typer.Context):
    """List saved profiles"""

    async def command(runtime: Runtime) -> None:
        profiles = runtime.profiles.list()
        if not profiles:
            prompts.console.print("[dim]No saved profiles[/dim]")
            return

        table = Table(title="Saved profiles", show_lines=False)
        table.add_column("ID", style="dim", no_wrap=True)
        table.add_column("Name", style="cyan")
        table.add_column("Target")
        table.add_column("Auth")
        table.add_column("Group")
        table.add_column("Tags")
        for profile in profiles:
            auth = profile.auth_mode
            if profile.save_password:
                auth += " (saved)"
            table.add_row(
                profile.id,
                profile.title,
                str(profile.target),
                auth,
                profile.group or "",
                ", ".join(sorted(profile.tags)),
            )
        prompts.console.print(table)

    run_async(ctx, command)


def profile_add(
    ctx: typer.Context,
    target: str = typer.Argument(..., help="user@host"),
    port: int = typer.Option(DEFAULT_SSH_PORT, "--port", "-p", help="SSH port"),
    name: Optional[str] = typer.Option(None, "--name", "-n", help="Display name"),
    key: Optional[str] = typer.Option(None, "--key", "-k", help="Private key file"),
    save_password: bool = typer.Option(
        False, "--save-password", "-s",
        help="Ask for the password (or key passphrase) and keep it in the system keyring",
    ),
    group: Optional[str] = typer.Option(None, "--group", "-g", help="Group name"),
    tags: Optional[List[str]] = typer.Option(None, "--tag", "-t", help="Tag (repeatable)"),
    profile_id: Optional[str] = typer.Option(
        None, "--id",
        help="Update the profile with this id instead of creating a new one",
    ),
):
    """Save a connection profile"""
    if "@" not in target:
        raise typer.BadParameter("expected user@host", param_hint="TARGET")
    username, host = target.split("@", 1)

    fields = dict(
        host=host,
        username=username,
        port=port,
        auth_mode=AUTH_PRIVATE_KEY if key else AUTH_PASSWORD,
        save_password=save_password,
        display_name=name,
        group=group,
        tags=frozenset(tags or ()),
        private_key=key,
    )

    async def command(runtime: Runtime) -> None:
        try:
            if profile_id:
                profile = SessionProfile(id=profile_id, **fields)
            else:
                profile = SessionProfile.create(**fields)
        except ProfileError as e:
            raise typer.BadParameter(str(e))

        secret = None
        if save_password:
            label = "Key passphrase" if key else "Password"
            secret = prompts.prompt(f"{label} for {profile.target}", password=True) or None
        await runtime.profiles.save(profile, secret)
        prompts.success(f"Saved profile [cyan]{profile.title}[/cyan] ({profile.id})")

    run_async(ctx, command)


def profile_remove(
    ctx: typer.Context,
    name: str = typer.Argument(..., help="Profile id or name"),
    yes: bool = typer.Option(False, "--yes", "-y", help="Do not ask for confirmation"),
):
    """Delete a saved profile and its stored password"""

    async def command(runtime: Runtime) -> None:
        profile = runtime.profiles.find(name)
        if profile is None:
            raise ProfileError(f"Profile not found: {name}")
        if not yes and not prompts.confirm(f"Delete profile {profile.title}?"):
            raise typer.Exit(0)
        await runtime.profiles.delete(profile.id)
        prompts.success(f"Deleted profile [cyan]{profile.title}[/cyan]")

    run_async(ctx, command)
