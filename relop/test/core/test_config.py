from __future__ import annotations

from pathlib import Path

import pytest

from relop.core.config import (
    DEFAULT_CONFIG_FILE,
    OperatorConfig,
    PublishConfig,
    load_config,
    resolve_config,
)
from relop.core.result import Err, Ok


def test_defaults() -> None:
    cfg = OperatorConfig()
    assert cfg.detect.label == "release"
    assert cfg.detect.tag_format == "v{version}"
    assert cfg.detect.tag_strategy == "template"
    assert cfg.registry.index_url == "https://index.crates.io"
    assert cfg.publish == PublishConfig()
    assert cfg.publish.strict_order is False


def test_from_dict_reads_every_section() -> None:
    cfg = OperatorConfig.from_dict(
        {
            "github": {"api_url": "https://ghe.example.com/api/v3/", "repository": "acme/tools"},
            "detect": {
                "label": "ship-it",
                "package": "crates/app",
                "tag_strategy": "semver",
                "tag_format": "release-{version}",
                "allow_prerelease": False,
            },
            "registry": {"index_url": "https://index.example.com/"},
            "publish": {
                "strict_order": True,
                "max_attempts": 3,
                "backoff_base_seconds": 1,
                "visibility_timeout_seconds": 30.5,
            },
        }
    )
    assert cfg.github.api_url == "https://ghe.example.com/api/v3"
    assert cfg.github.repository == "acme/tools"
    assert cfg.detect.label == "ship-it"
    assert cfg.detect.package == "crates/app"
    assert cfg.detect.tag_strategy == "semver"
    assert cfg.detect.allow_prerelease is False
    assert cfg.registry.index_url == "https://index.example.com"
    assert cfg.publish.strict_order is True
    assert cfg.publish.max_attempts == 3
    assert cfg.publish.backoff_base_seconds == 1.0
    assert cfg.publish.visibility_timeout_seconds == 30.5


@pytest.mark.parametrize(
    ("section", "values"),
    [
        ("detect", {"tag_strategy": "calver"}),
        ("publish", {"max_attempts": 0}),
        ("publish", {"max_attempts": True}),
        ("publish", {"backoff_cap_seconds": -1}),
        ("publish", {"visibility_poll_seconds": "fast"}),
    ],
)
def test_from_dict_rejects_invalid_values(section: str, values: dict[str, object]) -> None:
    with pytest.raises(ValueError):
        OperatorConfig.from_dict({section: values})


def test_load_config(tmp_path: Path) -> None:
    path = tmp_path / "ops.toml"
    path.write_text('[detect]\nlabel = "publish"\n', encoding="utf-8")

    result = load_config(path)
    assert isinstance(result, Ok)
    assert result.value.detect.label == "publish"


def test_load_config_reports_invalid_toml(tmp_path: Path) -> None:
    path = tmp_path / "ops.toml"
    path.write_text("[detect\n", encoding="utf-8")

    result = load_config(path)
    assert isinstance(result, Err)
    assert "invalid TOML" in result.error.message
    assert result.error.path == path


def test_load_config_reports_invalid_values(tmp_path: Path) -> None:
    path = tmp_path / "ops.toml"
    path.write_text("[publish]\nmax_attempts = -2\n", encoding="utf-8")

    result = load_config(path)
    assert isinstance(result, Err)
    assert "max_attempts" in result.error.message


def test_resolve_config_without_default_file(tmp_path: Path) -> None:
    result = resolve_config(None, cwd=tmp_path)
    assert result == Ok(OperatorConfig())


def test_resolve_config_reads_default_file(tmp_path: Path) -> None:
    (tmp_path / DEFAULT_CONFIG_FILE).write_text(
        '[github]\nrepository = "acme/tools"\n', encoding="utf-8"
    )
    result = resolve_config(None, cwd=tmp_path)
    assert isinstance(result, Ok)
    assert result.value.github.repository == "acme/tools"


def test_resolve_config_explicit_file_must_exist(tmp_path: Path) -> None:
    result = resolve_config(tmp_path / "missing.toml", cwd=tmp_path)
    assert isinstance(result, Err)
    assert "not found" in result.error.message
