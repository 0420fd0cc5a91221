"""Metadata Source: change requests from GitHub, packages from Cargo manifests."""

from __future__ import annotations

from pathlib import Path
from typing import Protocol

from relop.core.result import Result
from relop.services.release.errors import ReleaseError
from relop.services.release.github import find_change_for_commit
from relop.services.release.manifest import read_manifest
from relop.services.release.model import ChangeRequest, Credential, Package
from relop.tools.http import HttpClient


class ManifestSource(Protocol):
    def read_manifest(self, path: Path) -> Result[Package, ReleaseError]: ...


class MetadataSource(ManifestSource, Protocol):
    def find_change_for_commit(
        self, commit_id: str
    ) -> Result[ChangeRequest | None, ReleaseError]: ...


class LocalManifestSource:
    """Cargo manifests from the local checkout, relative paths taken from root."""

    def __init__(self, *, root: Path | None = None) -> None:
        self._root = root or Path.cwd()

    def read_manifest(self, path: Path) -> Result[Package, ReleaseError]:
        return read_manifest(path if path.is_absolute() else self._root / path)


class GitHubMetadataSource(LocalManifestSource):
    """Adds pull request lookups through the GitHub REST API."""

    def __init__(
        self,
        *,
        http: HttpClient,
        repository: str,
        credential: Credential | None,
        api_url: str = "https://api.github.com",
        root: Path | None = None,
    ) -> None:
        super().__init__(root=root)
        self._http = http
        self._repository = repository
        self._credential = credential
        self._api_url = api_url.rstrip("/")

    def find_change_for_commit(
        self, commit_id: str
    ) -> Result[ChangeRequest | None, ReleaseError]:
        return find_change_for_commit(
            http=self._http,
            api_url=self._api_url,
            repository=self._repository,
            commit_id=commit_id,
            credential=self._credential,
        )
