"""Release tag derivation.

The tag is a pure function of the leading package's manifest, so recomputing
it for the same commit always yields the same value.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol

from relop.core.config import DetectConfig
from relop.core.result import Err, Ok, Result
from relop.services.release.errors import MetadataError
from relop.services.release.model import Package
from relop.services.release.semver import parse_version


class TagStrategy(Protocol):
    def tag_for(self, package: Package) -> Result[str, MetadataError]: ...


@dataclass(frozen=True, slots=True)
class TemplateTagStrategy:
    """Format ``{version}`` and ``{name}`` into a template, e.g. ``v{version}``."""

    template: str = "v{version}"

    def tag_for(self, package: Package) -> Result[str, MetadataError]:
        try:
            tag = self.template.format(version=package.version, name=package.name)
        except (KeyError, IndexError, ValueError) as e:
            return Err(
                MetadataError(
                    message=f"invalid tag format {self.template!r}: {e}",
                    hint="Only {version} and {name} are available.",
                )
            )

        tag = tag.strip()
        if not tag or any(c.isspace() for c in tag):
            return Err(MetadataError(message=f"derived tag is not usable: {tag!r}"))
        return Ok(tag)


@dataclass(frozen=True, slots=True)
class SemverTagStrategy:
    """Require a semantic version and emit ``<prefix><version>``."""

    prefix: str = "v"
    allow_prerelease: bool = True

    def tag_for(self, package: Package) -> Result[str, MetadataError]:
        version = parse_version(package.version)
        if version is None:
            return Err(
                MetadataError(
                    message=f"{package.name}: version is not semver: {package.version}",
                    hint="Expected MAJOR.MINOR.PATCH[-PRE][+BUILD]",
                )
            )
        if version.is_prerelease and not self.allow_prerelease:
            return Err(
                MetadataError(
                    message=f"{package.name}: pre-release versions are not released: {version}",
                    hint="Set detect.allow_prerelease = true to release them.",
                )
            )
        return Ok(version.to_tag(self.prefix))


def tag_strategy_from_config(cfg: DetectConfig) -> TagStrategy:
    if cfg.tag_strategy == "semver":
        # The template's literal prefix (before {version}) doubles as the tag prefix.
        prefix = cfg.tag_format.split("{version}", 1)[0] if "{version}" in cfg.tag_format else "v"
        return SemverTagStrategy(prefix=prefix, allow_prerelease=cfg.allow_prerelease)
    return TemplateTagStrategy(template=cfg.tag_format)
