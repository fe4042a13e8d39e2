"""
Remote file CLI commands
"""
import posixpath
from datetime import datetime
from pathlib import Path

import typer
from rich.progress import (
    BarColumn,
    DownloadColumn,
    Progress,
    TextColumn,
    TransferSpeedColumn,
)
from rich.syntax import Syntax
from rich.table import Table

from ...core.utils import format_size
from .common import prompts, run_async
from .runtime import Runtime, paired_session

# Preview language labels whose Pygments lexer has a different name
_LEXER_ALIASES = {"plaintext": "text", "shell": "bash", "bat": "batch"}


def register_file_commands(app: typer.Typer) -> None:
    app.command(name="ls")(ls)
    app.command(name="cat")(cat)
    app.command(name="get")(get)
    app.command(name="put")(put)
    app.command(name="rm")(rm)
    app.command(name="mkdir")(mkdir)


def _transfer_progress() -> Progress:
    return Progress(
        TextColumn("[bold blue]{task.description}"),
        BarColumn(),
        DownloadColumn(),
        TransferSpeedColumn(),
        console=prompts.console,
    )


def ls(
    ctx: typer.Context,
    target: str = typer.Argument(..., help="Profile name or [user@]host[:port]"),
    path: str = typer.Argument(".", help="Remote directory"),
    show_all: bool = typer.Option(False, "--all", "-a", help="Include hidden entries"),
    as_json: bool = typer.Option(False, "--json", help="Print entries as JSON"),
):
    """List a remote directory"""

    async def command(runtime: Runtime) -> None:
        async with paired_session(runtime, target, prompts) as (session, channel_id):
            entries = await runtime.files.list(channel_id, path, show_hidden=show_all)

        if as_json:
            prompts.console.print_json(data=[entry.to_dict() for entry in entries])
            return

        table = Table(title=f"{session.title}:{path}", show_edge=False, box=None)
        table.add_column("Permissions", style="dim")
        table.add_column("Size", justify="right")
        table.add_column("Modified", style="dim")
        table.add_column("Name")
        for entry in entries:
            modified = (
                datetime.fromtimestamp(entry.modified_at).strftime("%Y-%m-%d %H:%M")
                if entry.modified_at is not None else ""
            )
            name = f"[bold blue]{entry.name}/[/bold blue]" if entry.is_directory else entry.name
            table.add_row(
                entry.permissions,
                "" if entry.is_directory else format_size(entry.size),
                modified,
                name,
            )
        prompts.console.print(table)

    run_async(ctx, command)


def cat(
    ctx: typer.Context,
    target: str = typer.Argument(..., help="Profile name or [user@]host[:port]"),
    path: str = typer.Argument(..., help="Remote file"),
    plain: bool = typer.Option(False, "--plain", help="Print without syntax highlighting"),
):
    """Show a remote file with syntax highlighting"""

    async def command(runtime: Runtime) -> None:
        async with paired_session(runtime, target, prompts) as (_, channel_id):
            entry = await runtime.files.stat(channel_id, path)
            preview = await runtime.files.preview(channel_id, entry)

        if preview is None:
            prompts.warning(f"{path} is a directory")
            raise typer.Exit(1)
        if plain:
            prompts.console.print(preview.content, markup=False, highlight=False, end="")
            return
        lexer = _LEXER_ALIASES.get(preview.language, preview.language)
        prompts.console.print(Syntax(preview.content, lexer, line_numbers=True))

    run_async(ctx, command)


def get(
    ctx: typer.Context,
    target: str = typer.Argument(..., help="Profile name or [user@]host[:port]"),
    remote_path: str = typer.Argument(..., help="Remote file"),
    local_path: Path = typer.Argument(Path("."), help="Local file or directory"),
):
    """Download a remote file"""
    if local_path.is_dir():
        local_path = local_path / posixpath.basename(remote_path)

    async def command(runtime: Runtime) -> None:
        async with paired_session(runtime, target, prompts) as (_, channel_id):
            with _transfer_progress() as progress:
                task = progress.add_task(posixpath.basename(remote_path), total=None)
                await runtime.files.download(
                    channel_id, remote_path, str(local_path),
                    progress=lambda done, total: progress.update(task, completed=done, total=total),
                )
        prompts.success(f"Downloaded {remote_path} -> {local_path}")

    run_async(ctx, command)


def put(
    ctx: typer.Context,
    target: str = typer.Argument(..., help="Profile name or [user@]host[:port]"),
    local_path: Path = typer.Argument(..., exists=True, dir_okay=False, help="Local file"),
    remote_path: str = typer.Argument(..., help="Remote file path"),
):
    """Upload a local file"""

    async def command(runtime: Runtime) -> None:
        async with paired_session(runtime, target, prompts) as (_, channel_id):
            with _transfer_progress() as progress:
                task = progress.add_task(local_path.name, total=local_path.stat().st_size)
                await runtime.files.upload(
                    channel_id, str(local_path), remote_path,
                    progress=lambda done, total: progress.update(task, completed=done, total=total),
                )
        prompts.success(f"Uploaded {local_path} -> {remote_path}")

    run_async(ctx, command)


def rm(
    ctx: typer.Context,
    target: str = typer.Argument(..., help="Profile name or [user@]host[:port]"),
    path: str = typer.Argument(..., help="Remote file or empty directory"),
):
    """Delete a remote file or empty directory"""

    async def command(runtime: Runtime) -> None:
        async with paired_session(runtime, target, prompts) as (_, channel_id):
            await runtime.files.delete(channel_id, path)
        prompts.success(f"Deleted {path}")

    run_async(ctx, command)


def mkdir(
    ctx: typer.Context,
    target: str = typer.Argument(..., help="Profile name or [user@]host[:port]"),
    path: str = typer.Argument(..., help="Remote directory to create"),
):
    """Create a remote directory"""

    async def command(runtime: Runtime) -> None:
        async with paired_session(runtime, target, prompts) as (_, channel_id):
            await runtime.files.mkdir(channel_id, path)
        prompts.success(f"Created {path}")

    run_async(ctx, command)
