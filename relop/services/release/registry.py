from __future__ import annotations

import json
import os
from pathlib import Path
from typing import Protocol
from urllib.parse import quote

from relop.core.result import Err, Ok, Result
from relop.core.structured import as_str_dict, get_str, get_table
from relop.platform.process import ProcessError
from relop.platform.process import run as run_process
from relop.services.release.errors import (
    AuthError,
    RegistryError,
    ReleaseError,
    TransientRegistryError,
)
from relop.services.release.manifest import MANIFEST_FILE
from relop.services.release.model import Credential, Package, PublishOutcome
from relop.services.release.semver import parse_version
from relop.services.release.timeouts import CARGO_PUBLISH_TIMEOUT_SECONDS
from relop.tools.http import HttpClient, HttpError


class RegistryClient(Protocol):
    def latest_version(self, name: str) -> Result[str | None, ReleaseError]: ...

    def is_visible(self, name: str, version: str) -> Result[bool, ReleaseError]: ...

    def publish(
        self, package: Package, credential: Credential
    ) -> Result[PublishOutcome, ReleaseError]: ...


_ALREADY_PUBLISHED_MARKERS = (
    "already exists",
    "already uploaded",
)

_AUTH_MARKERS = (
    "status 401",
    "status 403",
    "unauthorized",
    "forbidden",
    "invalid api token",
    "api token is invalid",
    "no token found",
    "please provide a valid token",
)

_COMPILE_FAILURE_MARKERS = (
    "could not compile",
    "failed to verify package tarball",
)

_TRANSIENT_MARKERS = (
    "timed out",
    "timeout",
    "connection reset",
    "connection refused",
    "temporarily unavailable",
    "service unavailable",
    "bad gateway",
    "gateway timeout",
    "network is unreachable",
    "could not resolve host",
    "couldn't resolve host",
    "spurious network error",
    "too many requests",
    "rate limit",
    "status 429",
    "status 500",
    "status 502",
    "status 503",
    "status 504",
)


def classify_publish_failure(error: ProcessError) -> PublishOutcome | ReleaseError:
    """Map a failed `cargo publish` to an outcome or an error kind.

    Markers are matched against cargo's own messages only. rustc diagnostics
    quote source code, so a word like ``timeout`` in them says nothing about
    the registry. A build failure is never retried.
    """
    text = "\n".join(_cargo_messages(f"{error.stderr}\n{error.stdout}")).lower()
    detail = _last_line(error.stderr) or str(error)

    if any(marker in text for marker in _COMPILE_FAILURE_MARKERS):
        return RegistryError(message="crate failed to build before upload", hint=detail)
    if any(marker in text for marker in _ALREADY_PUBLISHED_MARKERS):
        return PublishOutcome.ALREADY_PUBLISHED
    if any(marker in text for marker in _AUTH_MARKERS):
        return AuthError(
            message="registry rejected the publish token",
            hint=detail,
        )
    if error.timed_out or any(marker in text for marker in _TRANSIENT_MARKERS):
        return TransientRegistryError(message="cargo publish failed transiently", hint=detail)
    return RegistryError(message="cargo publish failed", hint=detail)


def _cargo_messages(output: str) -> list[str]:
    """Non-empty output lines with rustc diagnostic blocks removed.

    A diagnostic is a header line followed by a ``-->`` span line, and runs
    until the next blank line.
    """
    lines = output.splitlines()
    kept: list[str] = []
    in_diagnostic = False
    for i, line in enumerate(lines):
        stripped = line.strip()
        if not stripped:
            in_diagnostic = False
            continue
        following = lines[i + 1].lstrip() if i + 1 < len(lines) else ""
        if not in_diagnostic and following.startswith("-->"):
            in_diagnostic = True
        if not in_diagnostic:
            kept.append(stripped)
    return kept


def _last_line(text: str) -> str | None:
    lines = [line.strip() for line in text.splitlines() if line.strip()]
    return lines[-1] if lines else None


def _http_error(error: HttpError, *, what: str) -> ReleaseError:
    if error.is_auth_failure:
        return AuthError(message=f"{what}: access denied (HTTP {error.status})", hint=error.url)
    if error.is_transient:
        return TransientRegistryError(message=f"{what}: {error}")
    return RegistryError(message=f"{what}: {error}")


def sparse_index_path(name: str) -> str:
    """Relative path of a crate's file in a Cargo sparse index."""
    n = name.lower()
    if len(n) == 1:
        return f"1/{n}"
    if len(n) == 2:
        return f"2/{n}"
    if len(n) == 3:
        return f"3/{n[0]}/{n}"
    return f"{n[0:2]}/{n[2:4]}/{n}"


def _same_version(a: str, b: str) -> bool:
    if a == b:
        return True
    va, vb = parse_version(a), parse_version(b)
    return va is not None and vb is not None and va == vb


class CratesIoRegistry:
    """crates.io: API for latest versions, sparse index for visibility, cargo to upload.

    Visibility is read from the sparse index rather than the API because the
    index is what dependents resolve against, and it lags the API.
    """

    def __init__(
        self,
        *,
        http: HttpClient,
        api_url: str = "https://crates.io/api/v1",
        index_url: str = "https://index.crates.io",
        cargo: str = "cargo",
    ) -> None:
        self._http = http
        self._api_url = api_url.rstrip("/")
        self._index_url = index_url.rstrip("/")
        self._cargo = cargo

    def latest_version(self, name: str) -> Result[str | None, ReleaseError]:
        url = f"{self._api_url}/crates/{quote(name, safe='')}"
        result = self._http.get_json(url)
        if isinstance(result, Err):
            if result.error.status == 404:
                return Ok(None)
            return Err(_http_error(result.error, what=f"latest version of {name}"))

        data = as_str_dict(result.value)
        crate = get_table(data, "crate") if data is not None else None
        if crate is None:
            return Err(RegistryError(message=f"unexpected crate payload for {name}", hint=url))
        return Ok(get_str(crate, "max_version"))

    def is_visible(self, name: str, version: str) -> Result[bool, ReleaseError]:
        url = f"{self._index_url}/{sparse_index_path(name)}"
        result = self._http.get_text(url)
        if isinstance(result, Err):
            if result.error.status == 404:
                return Ok(False)
            return Err(_http_error(result.error, what=f"index entry of {name}"))

        for line in result.value.splitlines():
            if not line.strip():
                continue
            try:
                entry_obj: object = json.loads(line)
            except json.JSONDecodeError:
                return Err(RegistryError(message=f"malformed index line for {name}", hint=url))
            entry = as_str_dict(entry_obj)
            vers = get_str(entry, "vers") if entry is not None else None
            if vers is not None and _same_version(vers, version):
                return Ok(True)
        return Ok(False)

    def publish(
        self, package: Package, credential: Credential
    ) -> Result[PublishOutcome, ReleaseError]:
        # The token only ever lives in the child's environment.
        env = dict(os.environ)
        env["CARGO_REGISTRY_TOKEN"] = credential.token
        cmd = [
            self._cargo,
            "publish",
            "--manifest-path",
            str(Path(package.path) / MANIFEST_FILE),
        ]

        result = run_process(
            cmd, cwd=package.path, env=env, timeout=CARGO_PUBLISH_TIMEOUT_SECONDS
        )
        if isinstance(result, Ok):
            return Ok(PublishOutcome.PUBLISHED)

        classified = classify_publish_failure(result.error)
        if isinstance(classified, PublishOutcome):
            return Ok(classified)
        return Err(classified)
