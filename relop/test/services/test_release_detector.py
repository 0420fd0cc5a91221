from __future__ import annotations

from pathlib import Path

from relop.core.result import Err, Ok
from relop.output.console import MockConsole
from relop.services.release.detector import detect_release
from relop.services.release.errors import AuthError, MetadataError
from relop.services.release.model import ChangeRequest
from relop.services.release.tagging import TemplateTagStrategy
from relop.test._fakes import FakeMetadata, pkg

COMMIT = "0123456789abcdef0123456789abcdef01234567"
APP = pkg("app", version="1.3.0")


def _detect(metadata: FakeMetadata, *, console: MockConsole | None = None):
    return detect_release(
        COMMIT,
        metadata=metadata,
        label="release",
        leading_package=APP.path,
        tag_strategy=TemplateTagStrategy(),
        console=console or MockConsole(),
    )


def test_labelled_pull_request_is_a_release() -> None:
    metadata = FakeMetadata(APP, change=ChangeRequest(7, frozenset({"release", "ci"})))
    console = MockConsole()

    result = _detect(metadata, console=console)

    assert isinstance(result, Ok)
    candidate = result.value
    assert candidate.detected is True
    assert candidate.tag == "v1.3.0"
    assert candidate.tag_name == "v1.3.0"
    assert candidate.change_id == 7
    assert candidate.labels == frozenset({"release", "ci"})
    assert metadata.lookups == [COMMIT]
    assert metadata.reads == [str(APP.path)]
    assert console.find("release detected: v1.3.0")


def test_no_pull_request_is_not_a_release() -> None:
    metadata = FakeMetadata(APP, change=None)

    result = _detect(metadata)

    assert isinstance(result, Ok)
    assert result.value.detected is False
    assert result.value.tag_name == ""
    assert result.value.change_id is None
    assert metadata.reads == [str(APP.path)]


def test_missing_label_is_not_a_release() -> None:
    metadata = FakeMetadata(APP, change=ChangeRequest(7, frozenset({"Release", "docs"})))

    result = _detect(metadata)

    assert isinstance(result, Ok)
    assert result.value.detected is False
    assert result.value.tag_name == ""
    assert result.value.change_id == 7
    assert metadata.reads == [str(APP.path)]


def test_same_commit_gives_same_answer() -> None:
    metadata = FakeMetadata(APP, change=ChangeRequest(7, frozenset({"release"})))
    assert _detect(metadata) == _detect(metadata)


def test_lookup_failure_is_an_error_not_a_negative() -> None:
    metadata = FakeMetadata(APP, change_error=MetadataError(message="GitHub unavailable"))
    result = _detect(metadata)
    assert isinstance(result, Err)
    assert isinstance(result.error, MetadataError)


def test_auth_failure_propagates() -> None:
    metadata = FakeMetadata(APP, change_error=AuthError(message="bad token"))
    result = _detect(metadata)
    assert isinstance(result, Err)
    assert isinstance(result.error, AuthError)


def test_unreadable_manifest_is_an_error() -> None:
    metadata = FakeMetadata(change=ChangeRequest(7, frozenset({"release"})))
    result = _detect(metadata)
    assert isinstance(result, Err)
    assert isinstance(result.error, MetadataError)


def test_unreadable_manifest_fails_before_the_lookup() -> None:
    metadata = FakeMetadata(change=None)

    result = _detect(metadata)

    assert isinstance(result, Err)
    assert isinstance(result.error, MetadataError)
    assert metadata.lookups == []


def test_tag_uses_the_leading_package() -> None:
    other = pkg("lib", version="9.9.9")
    metadata = FakeMetadata(APP, other, change=ChangeRequest(1, frozenset({"release"})))
    result = detect_release(
        COMMIT,
        metadata=metadata,
        label="release",
        leading_package=Path("crates") / "lib",
        tag_strategy=TemplateTagStrategy("{name}-v{version}"),
        console=MockConsole(),
    )
    assert isinstance(result, Ok)
    assert result.value.tag == "lib-v9.9.9"
