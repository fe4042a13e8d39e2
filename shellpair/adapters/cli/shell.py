"""
Interactive terminal command
"""
import asyncio
import os
import shutil
import signal
import sys
import termios
import tty

import typer

from ...core.logging import get_logger
from .common import prompts, run_async
from .runtime import Runtime, open_session

logger = get_logger(__name__)


def register_shell_command(app: typer.Typer) -> None:
    app.command(name="shell")(shell)


def shell(
    ctx: typer.Context,
    target: str = typer.Argument(..., help="Profile name or [user@]host[:port]"),
):
    """Open an interactive terminal; the SFTP channel pairs in the background"""
    if not sys.stdin.isatty():
        prompts.warning("shell needs an interactive terminal")
        raise typer.Exit(1)

    async def command(runtime: Runtime) -> None:
        orchestrator = runtime.orchestrator
        async with orchestrator:
            session = await open_session(runtime, target, prompts)
            session_id = session.session_id
            prompts.console.print(f"[dim]Connected to {session.title}[/dim]")

            loop = asyncio.get_running_loop()
            closed = asyncio.Event()
            keystrokes: asyncio.Queue = asyncio.Queue()
            stdin_fd = sys.stdin.fileno()
            stdout = sys.stdout.buffer

            def on_output(sid: str, data: bytes) -> None:
                if sid == session_id:
                    stdout.write(data)
                    stdout.flush()

            def on_closed(sid: str) -> None:
                if sid == session_id:
                    closed.set()

            def on_stdin() -> None:
                data = os.read(stdin_fd, 1024)
                if not data:
                    closed.set()
                    return
                keystrokes.put_nowait(data)

            def on_resize() -> None:
                size = shutil.get_terminal_size()
                loop.create_task(orchestrator.resize(session_id, size.columns, size.lines))

            async def forward_input() -> None:
                while True:
                    data = await keystrokes.get()
                    await orchestrator.write_input(session_id, data)

            unsubscribe_output = orchestrator.on_terminal_output(on_output)
            unsubscribe_closed = orchestrator.on_session_closed(on_closed)
            saved_mode = termios.tcgetattr(stdin_fd)
            writer = loop.create_task(forward_input())
            try:
                tty.setraw(stdin_fd)
                loop.add_reader(stdin_fd, on_stdin)
                loop.add_signal_handler(signal.SIGWINCH, on_resize)
                on_resize()
                await closed.wait()
            finally:
                loop.remove_signal_handler(signal.SIGWINCH)
                loop.remove_reader(stdin_fd)
                termios.tcsetattr(stdin_fd, termios.TCSADRAIN, saved_mode)
                writer.cancel()
                unsubscribe_output()
                unsubscribe_closed()

        prompts.console.print(f"\n[dim]Connection to {session.title} closed[/dim]")

    run_async(ctx, command)
