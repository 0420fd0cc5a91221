from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

import typer

from relop.core.config import OperatorConfig, resolve_config
from relop.core.errors import ErrorCode
from relop.core.result import Err
from relop.output.console import ConsoleProtocol, RichConsole, Style


@dataclass(frozen=True, slots=True)
class CLIContext:
    config: OperatorConfig
    console: ConsoleProtocol
    cwd: Path


def build_context(config_path: Path | None) -> CLIContext:
    console = RichConsole()
    cwd = Path.cwd()

    config_result = resolve_config(config_path, cwd=cwd)
    if isinstance(config_result, Err):
        error = config_result.error
        console.error(error.message)
        if error.hint:
            console.print(f"hint: {error.hint}", Style.DIM)
        raise typer.Exit(code=int(ErrorCode.FAILURE))

    return CLIContext(config=config_result.value, console=console, cwd=cwd)
