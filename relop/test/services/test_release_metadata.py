from __future__ import annotations

from pathlib import Path

from relop.core.config import DetectConfig
from relop.core.result import Ok
from relop.services.release.metadata import GitHubMetadataSource, LocalManifestSource
from relop.services.release.model import ChangeRequest, Credential
from relop.tools.http import MockHttpClient

SHA = "abcdef1234567"


def _crate(root: Path) -> None:
    crate = root / "crates" / "app"
    crate.mkdir(parents=True)
    (crate / "Cargo.toml").write_text(
        '[package]\nname = "app"\nversion = "0.2.0"\n', encoding="utf-8"
    )


def test_local_source_resolves_relative_paths_from_root(tmp_path: Path) -> None:
    _crate(tmp_path)
    source = LocalManifestSource(root=tmp_path)

    result = source.read_manifest(Path("crates/app"))

    assert isinstance(result, Ok)
    assert result.value.name == "app"
    assert result.value.path == tmp_path / "crates" / "app"


def test_local_source_accepts_absolute_paths(tmp_path: Path) -> None:
    _crate(tmp_path)
    source = LocalManifestSource(root=tmp_path / "elsewhere")

    result = source.read_manifest(tmp_path / "crates" / "app")

    assert isinstance(result, Ok)


def test_github_source_queries_the_configured_host(tmp_path: Path) -> None:
    api = "https://ghe.example.com/api/v3"
    http = MockHttpClient()
    http.set_json(
        f"{api}/repos/acme/tools/commits/{SHA}/pulls?per_page=100",
        [{"number": 4, "labels": [{"name": "release"}], "merge_commit_sha": SHA}],
    )
    source = GitHubMetadataSource(
        http=http,
        repository="acme/tools",
        credential=Credential("ghs_secret"),
        api_url=api + "/",
        root=tmp_path,
    )

    result = source.find_change_for_commit(SHA)

    assert result == Ok(ChangeRequest(4, frozenset({"release"}), merge_commit_sha=SHA))


def test_default_leading_package_reads_a_virtual_workspace_root(tmp_path: Path) -> None:
    (tmp_path / "Cargo.toml").write_text(
        '[workspace]\nmembers = ["crates/*"]\n\n[workspace.package]\nversion = "0.9.0"\n',
        encoding="utf-8",
    )
    source = LocalManifestSource(root=tmp_path)

    result = source.read_manifest(Path(DetectConfig().package))

    assert isinstance(result, Ok)
    assert result.value.version == "0.9.0"
