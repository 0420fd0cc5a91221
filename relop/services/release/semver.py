from __future__ import annotations

import re
from dataclasses import dataclass
from functools import total_ordering


_SEMVER_RE = re.compile(
    r"^(0|[1-9]\d*)\.(0|[1-9]\d*)\.(0|[1-9]\d*)"
    r"(?:-((?:0|[1-9]\d*|\d*[A-Za-z-][0-9A-Za-z-]*)(?:\.(?:0|[1-9]\d*|\d*[A-Za-z-][0-9A-Za-z-]*))*))?"
    r"(?:\+([0-9A-Za-z-]+(?:\.[0-9A-Za-z-]+)*))?$"
)


@total_ordering
@dataclass(frozen=True, slots=True)
class SemVer:
    """Semantic version. Build metadata is kept but ignored for ordering."""

    major: int
    minor: int
    patch: int
    pre: tuple[str, ...] = ()
    build: str | None = None

    @property
    def is_prerelease(self) -> bool:
        return bool(self.pre)

    def __str__(self) -> str:
        s = f"{self.major}.{self.minor}.{self.patch}"
        if self.pre:
            s += "-" + ".".join(self.pre)
        if self.build:
            s += "+" + self.build
        return s

    def to_tag(self, prefix: str = "v") -> str:
        return f"{prefix}{self}"

    def _key(self) -> tuple[int, int, int]:
        return (self.major, self.minor, self.patch)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, SemVer):
            return NotImplemented
        return self._key() == other._key() and self.pre == other.pre

    def __hash__(self) -> int:
        return hash((self._key(), self.pre))

    def __lt__(self, other: object) -> bool:
        if not isinstance(other, SemVer):
            return NotImplemented
        if self._key() != other._key():
            return self._key() < other._key()
        # A release ranks above any of its pre-releases.
        if not self.pre or not other.pre:
            return bool(self.pre) and not other.pre
        return _pre_lt(self.pre, other.pre)


def _pre_lt(a: tuple[str, ...], b: tuple[str, ...]) -> bool:
    for x, y in zip(a, b):
        if x == y:
            continue
        x_num, y_num = x.isdigit(), y.isdigit()
        if x_num and y_num:
            return int(x) < int(y)
        if x_num != y_num:
            # Numeric identifiers have lower precedence.
            return x_num
        return x < y
    return len(a) < len(b)


def parse_version(text: str) -> SemVer | None:
    m = _SEMVER_RE.match(text.strip())
    if m is None:
        return None
    pre = tuple(m.group(4).split(".")) if m.group(4) else ()
    return SemVer(int(m.group(1)), int(m.group(2)), int(m.group(3)), pre, m.group(5))


def is_newer(candidate: str, than: str) -> bool:
    """True when both parse and candidate ranks strictly above than."""
    a = parse_version(candidate)
    b = parse_version(than)
    if a is None or b is None:
        return False
    return a > b
