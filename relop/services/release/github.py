from __future__ import annotations

import re
from time import sleep
from urllib.parse import quote

from relop.core.result import Err, Ok, Result
from relop.core.structured import as_obj_list, as_str_dict, get_int, get_list, get_str
from relop.services.release.errors import AuthError, MetadataError, ReleaseError
from relop.services.release.model import ChangeRequest, Credential
from relop.services.release.timeouts import (
    METADATA_READ_RETRY_ATTEMPTS,
    METADATA_READ_RETRY_DELAY_SECONDS,
)
from relop.tools.http import HttpClient

_REPO_RE = re.compile(r"^[A-Za-z0-9_.-]+/[A-Za-z0-9_.-]+$")
_SHA_RE = re.compile(r"^[0-9a-fA-F]{7,40}$")


def _headers(credential: Credential | None) -> dict[str, str]:
    headers = {
        "Accept": "application/vnd.github+json",
        "X-GitHub-Api-Version": "2022-11-28",
    }
    if credential is not None and not credential.is_empty:
        headers["Authorization"] = f"Bearer {credential.token}"
    return headers


def github_get_json(
    *,
    http: HttpClient,
    url: str,
    credential: Credential | None,
    message: str,
    retry_attempts: int = METADATA_READ_RETRY_ATTEMPTS,
) -> Result[object, ReleaseError]:
    attempts = max(1, retry_attempts)
    for attempt in range(attempts):
        result = http.get_json(url, _headers(credential))
        if isinstance(result, Ok):
            return result

        error = result.error
        if error.is_auth_failure:
            return Err(
                AuthError(
                    message=f"{message}: token rejected (HTTP {error.status})",
                    hint="Check GITHUB_TOKEN and its repository permissions.",
                )
            )
        if attempt < attempts - 1 and error.is_transient:
            sleep(METADATA_READ_RETRY_DELAY_SECONDS * (attempt + 1))
            continue

        return Err(MetadataError(message=message, hint=str(error)))

    return Err(MetadataError(message=message))


def _parse_change(obj: object, *, url: str) -> Result[ChangeRequest, MetadataError]:
    data = as_str_dict(obj)
    if data is None:
        return Err(MetadataError(message="unexpected pull request payload", hint=url))

    number = get_int(data, "number")
    if number is None:
        return Err(MetadataError(message="pull request without a number", hint=url))

    labels_raw = get_list(data, "labels")
    if labels_raw is None:
        return Err(MetadataError(message=f"pull request #{number}: missing labels", hint=url))

    labels: set[str] = set()
    for label_obj in labels_raw:
        label = as_str_dict(label_obj)
        name = get_str(label, "name") if label is not None else None
        if name is None:
            return Err(
                MetadataError(message=f"pull request #{number}: malformed label", hint=url)
            )
        labels.add(name)

    return Ok(
        ChangeRequest(
            number=number,
            labels=frozenset(labels),
            merge_commit_sha=get_str(data, "merge_commit_sha"),
        )
    )


def _pick_change(changes: list[ChangeRequest], commit_id: str) -> ChangeRequest | None:
    if not changes:
        return None
    commit = commit_id.lower()
    # commit_id may be abbreviated; merge_commit_sha is always the full SHA.
    merged_here = [
        c for c in changes if (c.merge_commit_sha or "").lower().startswith(commit)
    ]
    pool = merged_here or changes
    return min(pool, key=lambda c: c.number)


def find_change_for_commit(
    *,
    http: HttpClient,
    api_url: str,
    repository: str,
    commit_id: str,
    credential: Credential | None,
) -> Result[ChangeRequest | None, ReleaseError]:
    """Return the pull request a commit belongs to, or None.

    Prefers the PR whose merge commit is this commit; among equals, the lowest
    PR number wins so the answer is stable.
    """
    if not _REPO_RE.match(repository):
        return Err(
            MetadataError(
                message=f"invalid repository: {repository!r}",
                hint="Expected owner/name (GITHUB_REPOSITORY).",
            )
        )
    if not _SHA_RE.match(commit_id):
        return Err(
            MetadataError(
                message=f"invalid commit reference: {commit_id!r}",
                hint="Expected a hex commit SHA (GITHUB_SHA).",
            )
        )

    url = f"{api_url}/repos/{repository}/commits/{quote(commit_id, safe='')}/pulls?per_page=100"
    obj = github_get_json(
        http=http,
        url=url,
        credential=credential,
        message=f"failed to query pull requests for {repository}@{commit_id[:12]}",
    )
    if isinstance(obj, Err):
        return obj

    raw = as_obj_list(obj.value)
    if raw is None:
        return Err(MetadataError(message="unexpected pull request list payload", hint=url))

    changes: list[ChangeRequest] = []
    for item in raw:
        parsed = _parse_change(item, url=url)
        if isinstance(parsed, Err):
            return parsed
        changes.append(parsed.value)

    return Ok(_pick_change(changes, commit_id))
