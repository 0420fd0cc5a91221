from __future__ import annotations

import pytest

from relop.core.result import Err, Ok
from relop.services.release import github as github_mod
from relop.services.release.errors import AuthError, MetadataError
from relop.services.release.github import find_change_for_commit
from relop.services.release.model import ChangeRequest, Credential
from relop.tools.http import HttpError, MockHttpClient

API = "https://api.github.com"
SHA = "0123456789abcdef0123456789abcdef01234567"
URL = f"{API}/repos/acme/tools/commits/{SHA}/pulls?per_page=100"


def _no_sleep(seconds: float) -> None:
    del seconds


def _pr(number: int, *labels: str, merge_commit_sha: str | None = None) -> dict[str, object]:
    return {
        "number": number,
        "labels": [{"name": label} for label in labels],
        "merge_commit_sha": merge_commit_sha,
    }


def _find(http: MockHttpClient, *, token: str | None = "ghs_secret", commit: str = SHA):
    return find_change_for_commit(
        http=http,
        api_url=API,
        repository="acme/tools",
        commit_id=commit,
        credential=Credential(token) if token else None,
    )


def test_no_pull_request_returns_none() -> None:
    http = MockHttpClient()
    http.set_json(URL, [])
    assert _find(http) == Ok(None)


def test_returns_labels_of_the_pull_request() -> None:
    http = MockHttpClient()
    http.set_json(URL, [_pr(12, "release", "docs", merge_commit_sha=SHA)])

    result = _find(http)

    assert result == Ok(
        ChangeRequest(number=12, labels=frozenset({"release", "docs"}), merge_commit_sha=SHA)
    )


def test_prefers_pull_request_merged_as_this_commit() -> None:
    http = MockHttpClient()
    http.set_json(
        URL,
        [
            _pr(3, merge_commit_sha="f" * 40),
            _pr(9, "release", merge_commit_sha=SHA.upper()),
            _pr(5),
        ],
    )
    result = _find(http)
    assert isinstance(result, Ok)
    assert result.value is not None
    assert result.value.number == 9


def test_abbreviated_commit_matches_the_merge_commit() -> None:
    short = SHA[:7]
    http = MockHttpClient()
    http.set_json(
        f"{API}/repos/acme/tools/commits/{short}/pulls?per_page=100",
        [_pr(3), _pr(9, "release", merge_commit_sha=SHA)],
    )
    result = _find(http, commit=short)
    assert isinstance(result, Ok)
    assert result.value is not None
    assert result.value.number == 9


def test_lowest_number_wins_without_merge_match() -> None:
    http = MockHttpClient()
    http.set_json(URL, [_pr(8), _pr(4, "release"), _pr(6)])
    result = _find(http)
    assert isinstance(result, Ok)
    assert result.value is not None
    assert result.value.number == 4


def test_sends_bearer_token() -> None:
    http = MockHttpClient()
    http.set_json(URL, [])
    _find(http)

    _, url, headers = http.calls[0]
    assert url == URL
    assert headers["Authorization"] == "Bearer ghs_secret"
    assert headers["Accept"] == "application/vnd.github+json"


def test_anonymous_request_has_no_authorization() -> None:
    http = MockHttpClient()
    http.set_json(URL, [])
    _find(http, token=None)
    assert "Authorization" not in http.calls[0][2]


def test_retries_transient_errors(monkeypatch: pytest.MonkeyPatch) -> None:
    slept: list[float] = []
    monkeypatch.setattr(github_mod, "sleep", slept.append)

    http = MockHttpClient()
    http.set_json(URL, HttpError(URL, 502, "Bad Gateway"), [_pr(1, "release")])

    result = _find(http)

    assert isinstance(result, Ok)
    assert len(http.calls) == 2
    assert slept == [1.0]


def test_gives_up_after_repeated_transient_errors(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(github_mod, "sleep", _no_sleep)

    http = MockHttpClient()
    http.set_json(URL, HttpError(URL, 503, "Service Unavailable"))

    result = _find(http)

    assert isinstance(result, Err)
    assert isinstance(result.error, MetadataError)
    assert len(http.calls) == 3


def test_auth_failure_is_not_retried(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(github_mod, "sleep", _no_sleep)

    http = MockHttpClient()
    http.set_json(URL, HttpError(URL, 401, "Unauthorized"))

    result = _find(http)

    assert isinstance(result, Err)
    assert isinstance(result.error, AuthError)
    assert len(http.calls) == 1


def test_not_found_is_metadata_error() -> None:
    http = MockHttpClient()
    result = _find(http)
    assert isinstance(result, Err)
    assert isinstance(result.error, MetadataError)
    assert len(http.calls) == 1


@pytest.mark.parametrize(
    "payload",
    [
        {"message": "not a list"},
        [{"labels": []}],
        [{"number": 1}],
        [{"number": 1, "labels": [{"id": 5}]}],
        ["oops"],
    ],
)
def test_malformed_payload_is_metadata_error(payload: object) -> None:
    http = MockHttpClient()
    http.set_json(URL, payload)
    result = _find(http)
    assert isinstance(result, Err)
    assert isinstance(result.error, MetadataError)


@pytest.mark.parametrize(
    ("repository", "commit"),
    [("not-a-repo", SHA), ("acme/tools", "main"), ("acme/tools", "abc")],
)
def test_rejects_invalid_identifiers(repository: str, commit: str) -> None:
    http = MockHttpClient()
    result = find_change_for_commit(
        http=http, api_url=API, repository=repository, commit_id=commit, credential=None
    )
    assert isinstance(result, Err)
    assert isinstance(result.error, MetadataError)
    assert http.calls == []
