"""Error presentation utilities.

Centralized error formatting and exit code mapping for consistent UX.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from relop.core.errors import ErrorCode
from relop.output.console import Style
from relop.services.release.errors import (
    AuthError,
    DependencyCycleError,
    InvalidInputError,
    MetadataError,
    OrderViolationError,
    RegistryError,
    ReleaseError,
    TransientRegistryError,
)

if TYPE_CHECKING:
    from relop.output.console import ConsoleProtocol

__all__ = ["print_release_error", "release_error_exit_code"]


def print_release_error(error: ReleaseError, console: ConsoleProtocol) -> None:
    """Print a release error with a prefix naming its kind."""
    match error:
        case MetadataError(message=message):
            console.error(f"metadata: {message}")
        case AuthError(message=message):
            console.error(f"auth: {message}")
        case DependencyCycleError() | OrderViolationError():
            console.error(f"plan: {error.message}")
        case InvalidInputError(message=message):
            console.error(f"input: {message}")
        case TransientRegistryError(message=message):
            console.error(f"registry (retries exhausted): {message}")
        case RegistryError(message=message):
            console.error(f"registry: {message}")
    if error.hint:
        console.print(f"hint: {error.hint}", Style.DIM)


def release_error_exit_code(error: ReleaseError) -> int:
    """Every release error is fatal for the pipeline step."""
    del error
    return int(ErrorCode.FAILURE)
