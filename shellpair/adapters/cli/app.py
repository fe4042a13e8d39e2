"""
Main CLI application
"""
from pathlib import Path
from typing import Optional

import typer

from ...core.exceptions import ShellpairError
from ...core.logging import setup_logging
from ..config.loader import ConfigLoader
from .common import error_prompts
from .files import register_file_commands
from .profiles import create_profile_app
from .shell import register_shell_command

app = typer.Typer(
    name="shellpair",
    add_completion=False,
    help="SSH terminal sessions with a paired SFTP channel",
    no_args_is_help=True,
    rich_markup_mode="rich",
)

app.add_typer(create_profile_app(), name="profile")
register_file_commands(app)
register_shell_command(app)


@app.callback()
def main(
    ctx: typer.Context,
    config_file: Optional[Path] = typer.Option(
        None, "--config", "-c",
        help="Configuration file path (TOML)",
    ),
    log_level: Optional[str] = typer.Option(
        None, "--log-level", "-l",
        help="Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)",
    ),
    log_file: Optional[Path] = typer.Option(
        None, "--log-file",
        help="Log file path",
    ),
    settle_delay: Optional[float] = typer.Option(
        None, "--settle-delay",
        help="Seconds to wait after the terminal opens before pairing SFTP",
    ),
):
    """
    shellpair - SSH terminal sessions with a paired SFTP channel

    Saved profiles live under ~/.shellpair/profiles; passwords go to the
    system keyring when --save-password is used.
    """
    try:
        settings = ConfigLoader().load(
            toml_path=config_file,
            cli_overrides={
                "log_level": log_level,
                "log_file": str(log_file) if log_file else None,
                "session": {"settle_delay": settle_delay},
            },
        )
    except ShellpairError as e:
        error_prompts.error_panel(str(e), title="Configuration error")
        raise typer.Exit(1)

    setup_logging(level=settings.log_level, log_file=settings.log_file)
    ctx.obj = settings


def run():
    """CLI entry point"""
    app()


if __name__ == "__main__":
    run()
