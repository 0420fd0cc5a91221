"""Shared helpers for CLI commands."""

from __future__ import annotations

from typing import TYPE_CHECKING, NoReturn

import typer

from relop.core.errors import ErrorCode
from relop.core.result import Err, Result
from relop.output.console import Style
from relop.output.errors import print_release_error, release_error_exit_code
from relop.services.release.errors import ReleaseError

if TYPE_CHECKING:
    from relop.cli.context import CLIContext


def exit_on_error[T](result: Result[T, ReleaseError], ctx: CLIContext) -> T:
    """Return the value of an Ok, or print the error and exit.

    Replaces the common pattern:
        if isinstance(result, Err):
            print_release_error(result.error, ctx.console)
            raise typer.Exit(code=1)
        value = result.value
    """
    if isinstance(result, Err):
        print_release_error(result.error, ctx.console)
        raise typer.Exit(code=release_error_exit_code(result.error))
    return result.value


def exit_with_error(ctx: CLIContext, message: str, *, hint: str | None = None) -> NoReturn:
    """Report a missing or invalid input and exit with the failure code."""
    ctx.console.error(message)
    if hint:
        ctx.console.print(f"hint: {hint}", Style.DIM)
    raise typer.Exit(code=int(ErrorCode.FAILURE))
