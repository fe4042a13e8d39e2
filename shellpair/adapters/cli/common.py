"""
Shared helpers for CLI commands
"""
import asyncio
from typing import Any, Awaitable, Callable

import typer

from ...core.exceptions import ClassifiedError, ShellpairError
from ...core.logging import get_stderr_console, get_stdout_console
from .prompts import RichPromptProvider
from .runtime import Runtime, build_runtime

prompts = RichPromptProvider(get_stdout_console())
error_prompts = RichPromptProvider(get_stderr_console())


def run_async(ctx: typer.Context, command: Callable[[Runtime], Awaitable[Any]]) -> Any:
    """Build the runtime, run an async command and render its failures"""
    runtime = build_runtime(ctx.obj)

    async def main() -> Any:
        try:
            return await command(runtime)
        finally:
            await runtime.transport.close()

    try:
        return asyncio.run(main())
    except ClassifiedError as e:
        error_prompts.error_panel(e.message, title=e.category.value.replace("_", " ").title())
        raise typer.Exit(1)
    except ShellpairError as e:
        error_prompts.error_panel(str(e))
        raise typer.Exit(1)
