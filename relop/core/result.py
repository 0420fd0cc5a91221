"""Result type for explicit error handling.

Every fallible operation in the operator returns a ``Result``: ``Ok`` with the
value, or ``Err`` with a typed error payload. Exceptions raised by the standard
library are converted at the boundary where they occur.

Usage:
    def read_version(path: Path) -> Result[str, MetadataError]:
        if not path.exists():
            return Err(MetadataError(f"missing manifest: {path}"))
        return Ok("1.2.3")

    match read_version(path):
        case Ok(version):
            print(version)
        case Err(error):
            print(error.message)
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class Ok[T]:
    """Successful result.

    Attributes:
        value: The success value.
    """

    value: T

    def __repr__(self) -> str:
        return f"Ok({self.value!r})"


@dataclass(frozen=True, slots=True)
class Err[E]:
    """Failed result.

    Attributes:
        error: The error payload.
    """

    error: E

    def __repr__(self) -> str:
        return f"Err({self.error!r})"


type Result[T, E] = Ok[T] | Err[E]
