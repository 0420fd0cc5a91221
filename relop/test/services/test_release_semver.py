from __future__ import annotations

import pytest

from relop.services.release.semver import SemVer, is_newer, parse_version


def test_parse_release() -> None:
    assert parse_version("1.2.3") == SemVer(1, 2, 3)
    assert parse_version(" 0.10.0 ") == SemVer(0, 10, 0)


def test_parse_prerelease_and_build() -> None:
    v = parse_version("1.0.0-rc.1+build.5")
    assert v is not None
    assert v.pre == ("rc", "1")
    assert v.build == "build.5"
    assert v.is_prerelease
    assert str(v) == "1.0.0-rc.1+build.5"


@pytest.mark.parametrize("text", ["1.2", "v1.2.3", "01.2.3", "1.2.3-", "1.2.3-01", ""])
def test_parse_rejects_invalid(text: str) -> None:
    assert parse_version(text) is None


def test_build_metadata_ignored_for_equality() -> None:
    assert parse_version("1.0.0+a") == parse_version("1.0.0+b")
    assert hash(SemVer(1, 0, 0, build="a")) == hash(SemVer(1, 0, 0))


@pytest.mark.parametrize(
    ("lower", "higher"),
    [
        ("1.0.0", "1.0.1"),
        ("1.9.0", "1.10.0"),
        ("1.0.0-alpha", "1.0.0"),
        ("1.0.0-alpha", "1.0.0-alpha.1"),
        ("1.0.0-alpha.1", "1.0.0-alpha.beta"),
        ("1.0.0-beta.2", "1.0.0-beta.11"),
        ("1.0.0-rc.1", "1.0.0"),
    ],
)
def test_precedence(lower: str, higher: str) -> None:
    a = parse_version(lower)
    b = parse_version(higher)
    assert a is not None and b is not None
    assert a < b
    assert b > a


def test_to_tag() -> None:
    assert SemVer(2, 0, 1).to_tag() == "v2.0.1"
    assert SemVer(2, 0, 1).to_tag("release-") == "release-2.0.1"


def test_is_newer() -> None:
    assert is_newer("1.1.0", "1.0.0")
    assert not is_newer("1.0.0", "1.0.0")
    assert not is_newer("1.0.0-rc.1", "1.0.0")
    assert not is_newer("garbage", "1.0.0")
