"""Typed configuration loading.

The operator reads an optional ``release-operator.toml``:

    [github]
    api_url = "https://api.github.com"
    repository = "owner/name"

    [detect]
    label = "release"
    package = "crates/app"
    tag_strategy = "template"     # or "semver"
    tag_format = "v{version}"

    [registry]
    api_url = "https://crates.io/api/v1"
    index_url = "https://index.crates.io"

    [publish]
    strict_order = false
    max_attempts = 5
    backoff_base_seconds = 2.0
    backoff_cap_seconds = 60.0
    visibility_timeout_seconds = 300.0
    visibility_poll_seconds = 5.0

Every key is optional. Command-line flags and environment variables override
file values at the CLI boundary; nothing below reads the environment.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path

from relop import __version__

from .result import Err, Ok, Result
from .structured import StrDict, as_str_dict, get_bool, get_float, get_int, get_str, get_table

__all__ = [
    "ConfigError",
    "DetectConfig",
    "GitHubConfig",
    "OperatorConfig",
    "PublishConfig",
    "RegistryConfig",
    "DEFAULT_CONFIG_FILE",
    "TAG_STRATEGIES",
    "load_config",
    "resolve_config",
]

DEFAULT_CONFIG_FILE = "release-operator.toml"

TAG_STRATEGIES = ("template", "semver")

# -----------------------------------------------------------------------------
# Defaults
# -----------------------------------------------------------------------------

GITHUB_API_URL = "https://api.github.com"
CRATES_IO_API_URL = "https://crates.io/api/v1"
CRATES_IO_INDEX_URL = "https://index.crates.io"
USER_AGENT = f"release-operator/{__version__}"

RELEASE_LABEL = "release"
TAG_FORMAT = "v{version}"

PUBLISH_MAX_ATTEMPTS = 5
BACKOFF_BASE_SECONDS = 2.0
BACKOFF_CAP_SECONDS = 60.0
VISIBILITY_TIMEOUT_SECONDS = 5 * 60.0
VISIBILITY_POLL_SECONDS = 5.0
VISIBILITY_POLL_CAP_SECONDS = 30.0


@dataclass(frozen=True, slots=True)
class ConfigError:
    """Config file could not be read or holds invalid values."""

    message: str
    path: Path | None = None
    hint: str | None = None


@dataclass(frozen=True, slots=True)
class GitHubConfig:
    api_url: str = GITHUB_API_URL
    repository: str | None = None


@dataclass(frozen=True, slots=True)
class DetectConfig:
    """How a commit turns into a release tag."""

    label: str = RELEASE_LABEL
    package: str = "."
    tag_strategy: str = "template"
    tag_format: str = TAG_FORMAT
    allow_prerelease: bool = True


@dataclass(frozen=True, slots=True)
class RegistryConfig:
    api_url: str = CRATES_IO_API_URL
    index_url: str = CRATES_IO_INDEX_URL
    user_agent: str = USER_AGENT


@dataclass(frozen=True, slots=True)
class PublishConfig:
    """Retry and propagation settings for the publish loop."""

    strict_order: bool = False
    max_attempts: int = PUBLISH_MAX_ATTEMPTS
    backoff_base_seconds: float = BACKOFF_BASE_SECONDS
    backoff_cap_seconds: float = BACKOFF_CAP_SECONDS
    visibility_timeout_seconds: float = VISIBILITY_TIMEOUT_SECONDS
    visibility_poll_seconds: float = VISIBILITY_POLL_SECONDS
    visibility_poll_cap_seconds: float = VISIBILITY_POLL_CAP_SECONDS


@dataclass(frozen=True, slots=True)
class OperatorConfig:
    github: GitHubConfig = field(default_factory=GitHubConfig)
    detect: DetectConfig = field(default_factory=DetectConfig)
    registry: RegistryConfig = field(default_factory=RegistryConfig)
    publish: PublishConfig = field(default_factory=PublishConfig)

    @classmethod
    def from_dict(cls, data: Mapping[str, object]) -> OperatorConfig:
        """Create config from a parsed TOML mapping.

        Raises:
            ValueError: If a value is present but out of range.
        """
        github: StrDict = get_table(data, "github") or {}
        detect: StrDict = get_table(data, "detect") or {}
        registry: StrDict = get_table(data, "registry") or {}
        publish: StrDict = get_table(data, "publish") or {}

        tag_strategy = get_str(detect, "tag_strategy") or "template"
        if tag_strategy not in TAG_STRATEGIES:
            raise ValueError(
                f"detect.tag_strategy must be one of {', '.join(TAG_STRATEGIES)}: {tag_strategy}"
            )

        allow_prerelease = get_bool(detect, "allow_prerelease")
        strict_order = get_bool(publish, "strict_order")

        publish_cfg = PublishConfig(
            strict_order=strict_order if strict_order is not None else False,
            max_attempts=_positive_int(publish, "max_attempts", PUBLISH_MAX_ATTEMPTS),
            backoff_base_seconds=_non_negative(
                publish, "backoff_base_seconds", BACKOFF_BASE_SECONDS
            ),
            backoff_cap_seconds=_non_negative(publish, "backoff_cap_seconds", BACKOFF_CAP_SECONDS),
            visibility_timeout_seconds=_non_negative(
                publish, "visibility_timeout_seconds", VISIBILITY_TIMEOUT_SECONDS
            ),
            visibility_poll_seconds=_non_negative(
                publish, "visibility_poll_seconds", VISIBILITY_POLL_SECONDS
            ),
            visibility_poll_cap_seconds=_non_negative(
                publish, "visibility_poll_cap_seconds", VISIBILITY_POLL_CAP_SECONDS
            ),
        )

        return cls(
            github=GitHubConfig(
                api_url=(get_str(github, "api_url") or GITHUB_API_URL).rstrip("/"),
                repository=get_str(github, "repository"),
            ),
            detect=DetectConfig(
                label=get_str(detect, "label") or RELEASE_LABEL,
                package=get_str(detect, "package") or ".",
                tag_strategy=tag_strategy,
                tag_format=get_str(detect, "tag_format") or TAG_FORMAT,
                allow_prerelease=allow_prerelease if allow_prerelease is not None else True,
            ),
            registry=RegistryConfig(
                api_url=(get_str(registry, "api_url") or CRATES_IO_API_URL).rstrip("/"),
                index_url=(get_str(registry, "index_url") or CRATES_IO_INDEX_URL).rstrip("/"),
                user_agent=get_str(registry, "user_agent") or USER_AGENT,
            ),
            publish=publish_cfg,
        )


def _positive_int(table: Mapping[str, object], key: str, default: int) -> int:
    if key not in table:
        return default
    value = get_int(table, key)
    if value is None or value < 1:
        raise ValueError(f"{key} must be an integer >= 1")
    return value


def _non_negative(table: Mapping[str, object], key: str, default: float) -> float:
    if key not in table:
        return default
    value = get_float(table, key)
    if value is None or value < 0:
        raise ValueError(f"{key} must be a number >= 0")
    return value


def _parse_toml(path: Path) -> Result[StrDict, ConfigError]:
    import tomllib

    try:
        data_obj: object = tomllib.loads(path.read_bytes().decode("utf-8"))
    except FileNotFoundError:
        return Err(ConfigError(f"config file not found: {path}", path=path))
    except PermissionError:
        return Err(ConfigError(f"permission denied reading: {path}", path=path))
    except tomllib.TOMLDecodeError as e:
        return Err(ConfigError(f"invalid TOML syntax: {e}", path=path))
    except UnicodeDecodeError as e:
        return Err(ConfigError(f"error reading config: {e}", path=path))

    data = as_str_dict(data_obj)
    if data is None:
        return Err(ConfigError("config root must be a TOML table", path=path))
    return Ok(data)


def load_config(path: Path) -> Result[OperatorConfig, ConfigError]:
    """Load and validate configuration from a TOML file."""
    result = _parse_toml(path)
    if isinstance(result, Err):
        return result

    try:
        return Ok(OperatorConfig.from_dict(result.value))
    except ValueError as e:
        return Err(ConfigError(f"invalid config: {e}", path=path))


def resolve_config(path: Path | None, *, cwd: Path) -> Result[OperatorConfig, ConfigError]:
    """Load an explicit config file, or the default one when present.

    An explicitly requested file must exist. The default file is optional.
    """
    if path is not None:
        return load_config(path)

    default = cwd / DEFAULT_CONFIG_FILE
    if not default.is_file():
        return Ok(OperatorConfig())
    return load_config(default)
