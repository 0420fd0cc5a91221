"""Error types for detect and publish.

Each kind is its own frozen dataclass so callers can ``match`` on it. All of
them expose ``message`` and ``hint`` for uniform rendering.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class MetadataError:
    """Change-request or manifest query failed or returned malformed data."""

    message: str
    hint: str | None = None


@dataclass(frozen=True, slots=True)
class AuthError:
    """Credential rejected. Never retried."""

    message: str
    hint: str | None = None


@dataclass(frozen=True, slots=True)
class DependencyCycleError:
    cycle: tuple[str, ...]
    hint: str | None = "Break the cycle in the package manifests."

    @property
    def message(self) -> str:
        return "dependency cycle: " + " -> ".join(self.cycle)


@dataclass(frozen=True, slots=True)
class OrderViolationError:
    """Supplied order puts a package before one of its dependencies."""

    # (package, dependency) pairs
    violations: tuple[tuple[str, str], ...]
    hint: str | None = "Reorder the --crate arguments or drop --strict."

    @property
    def message(self) -> str:
        pairs = ", ".join(f"{pkg} before {dep}" for pkg, dep in self.violations)
        return f"package order violates dependencies: {pairs}"


@dataclass(frozen=True, slots=True)
class InvalidInputError:
    """Package list is unusable (duplicates, unpublishable packages)."""

    message: str
    hint: str | None = None


@dataclass(frozen=True, slots=True)
class TransientRegistryError:
    """Timeout, rate limit or server error. Retried with backoff."""

    message: str
    hint: str | None = None


@dataclass(frozen=True, slots=True)
class RegistryError:
    """Registry refused the request for a reason retrying will not fix."""

    message: str
    hint: str | None = None


ReleaseError = (
    MetadataError
    | AuthError
    | DependencyCycleError
    | OrderViolationError
    | InvalidInputError
    | TransientRegistryError
    | RegistryError
)


def is_transient(error: ReleaseError) -> bool:
    return isinstance(error, TransientRegistryError)
