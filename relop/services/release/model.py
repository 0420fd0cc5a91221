from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path

from relop.services.release.errors import ReleaseError


@dataclass(frozen=True, slots=True)
class Credential:
    """Registry or host token. Never rendered."""

    token: str = field(repr=False)

    def __str__(self) -> str:
        return "***"

    @property
    def is_empty(self) -> bool:
        return not self.token.strip()


@dataclass(frozen=True, slots=True)
class ChangeRequest:
    """The pull request a commit came from."""

    number: int
    labels: frozenset[str]
    merge_commit_sha: str | None = None


@dataclass(frozen=True, slots=True)
class ReleaseCandidate:
    commit_id: str
    change_id: int | None
    labels: frozenset[str]
    tag: str | None
    detected: bool

    @property
    def tag_name(self) -> str:
        return self.tag or ""


@dataclass(frozen=True, slots=True)
class Package:
    """Manifest snapshot, taken once per publish run."""

    name: str
    path: Path
    version: str
    dependencies: frozenset[str]
    publish: bool = True

    @property
    def ident(self) -> str:
        return f"{self.name}@{self.version}"


@dataclass(frozen=True, slots=True)
class PublishPlan:
    """Packages in an order where every in-plan dependency comes first."""

    packages: tuple[Package, ...]
    # (package, dependency) pairs the planner had to fix
    reordered: tuple[tuple[str, str], ...] = ()

    def __len__(self) -> int:
        return len(self.packages)

    @property
    def names(self) -> tuple[str, ...]:
        return tuple(p.name for p in self.packages)


class Outcome(Enum):
    SKIPPED = "skipped"
    PUBLISHED = "published"
    RETRYING = "retrying"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self is not Outcome.RETRYING


class PublishOutcome(Enum):
    """What the registry said about a publish request."""

    PUBLISHED = "published"
    ALREADY_PUBLISHED = "already_published"


class RunState(Enum):
    IDLE = "idle"
    VALIDATING = "validating"
    PLANNED = "planned"
    PUBLISHING = "publishing"
    DONE = "done"
    ABORTED = "aborted"


@dataclass(frozen=True, slots=True)
class PublishAttempt:
    package: Package
    outcome: Outcome
    attempt_count: int
    detail: str | None = None


def _empty_attempts() -> list[PublishAttempt]:
    return []


@dataclass
class PublishReport:
    """Append-only record of one publish run.

    Retried attempts show up as RETRYING entries. Every package the run
    reached ends with exactly one terminal entry.
    """

    state: RunState = RunState.IDLE
    attempts: list[PublishAttempt] = field(default_factory=_empty_attempts)
    error: ReleaseError | None = None

    def record(self, attempt: PublishAttempt) -> None:
        self.attempts.append(attempt)

    def abort(self, error: ReleaseError) -> None:
        self.state = RunState.ABORTED
        self.error = error

    def outcomes(self) -> dict[str, Outcome]:
        """Terminal outcome per package name, in plan order."""
        out: dict[str, Outcome] = {}
        for attempt in self.attempts:
            if attempt.outcome.is_terminal:
                out[attempt.package.name] = attempt.outcome
        return out

    def outcome_of(self, name: str) -> Outcome | None:
        return self.outcomes().get(name)

    def count(self, outcome: Outcome) -> int:
        return sum(1 for o in self.outcomes().values() if o is outcome)

    @property
    def succeeded(self) -> bool:
        return (
            self.state == RunState.DONE
            and self.error is None
            and Outcome.FAILED not in self.outcomes().values()
        )
