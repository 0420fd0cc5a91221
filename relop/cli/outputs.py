"""Pipeline output values.

Results are printed as ``key=value`` lines on stdout and, on GitHub Actions,
appended to the file named by ``GITHUB_OUTPUT`` so later steps can read them
as ``steps.<id>.outputs.<key>``.
"""

from __future__ import annotations

from collections.abc import Mapping
from pathlib import Path

import typer

from relop.core.result import Err, Ok, Result


def format_outputs(values: Mapping[str, str]) -> list[str]:
    lines: list[str] = []
    for key, value in values.items():
        if "\n" in value or "\r" in value:
            raise ValueError(f"output {key} must be a single line")
        lines.append(f"{key}={value}")
    return lines


def write_outputs(values: Mapping[str, str], *, output_file: Path | None) -> Result[None, str]:
    lines = format_outputs(values)
    for line in lines:
        typer.echo(line)

    if output_file is None:
        return Ok(None)

    try:
        with output_file.open("a", encoding="utf-8") as f:
            for line in lines:
                f.write(line + "\n")
    except OSError as e:
        return Err(f"cannot write pipeline outputs to {output_file}: {e}")
    return Ok(None)
