"""publish: push packages to the registry in dependency order."""

from __future__ import annotations

from dataclasses import replace
from pathlib import Path

import typer

from relop.cli.context import build_context
from relop.core.config import RegistryConfig
from relop.core.errors import ErrorCode
from relop.output.errors import print_release_error
from relop.services.release.metadata import LocalManifestSource
from relop.services.release.model import Credential
from relop.services.release.registry import CratesIoRegistry, RegistryClient
from relop.services.release.report import render_report
from relop.services.release.service import publish_packages
from relop.services.release.timeouts import HTTP_TIMEOUT_SECONDS
from relop.tools.http import RealHttpClient


def _build_registry(cfg: RegistryConfig) -> RegistryClient:
    return CratesIoRegistry(
        http=RealHttpClient(timeout=HTTP_TIMEOUT_SECONDS, user_agent=cfg.user_agent),
        api_url=cfg.api_url,
        index_url=cfg.index_url,
    )


def publish(
    token: str | None = typer.Option(
        None,
        "--token",
        envvar="CARGO_REGISTRY_TOKEN",
        help="Registry token.",
        show_default=False,
    ),
    crates: list[Path] | None = typer.Option(
        None,
        "--crate",
        help="Package directory. Repeat; order is the intended publish order.",
    ),
    strict: bool = typer.Option(
        False, "--strict", help="Fail on a wrong order instead of correcting it."
    ),
    config_path: Path | None = typer.Option(None, "--config", help="Config file."),
) -> None:
    """Publish the given packages, skipping versions already on the registry.

    Exits 0 when every package was published or skipped, 1 otherwise. The
    report goes to stderr.
    """
    ctx = build_context(config_path)
    cfg = ctx.config
    publish_cfg = replace(cfg.publish, strict_order=strict or cfg.publish.strict_order)

    report = publish_packages(
        crates or [],
        manifests=LocalManifestSource(root=ctx.cwd),
        registry=_build_registry(cfg.registry),
        credential=Credential(token or ""),
        config=publish_cfg,
        console=ctx.console,
    )

    render_report(report, ctx.console)
    if report.succeeded:
        return

    if report.error is not None:
        print_release_error(report.error, ctx.console)
    raise typer.Exit(code=int(ErrorCode.FAILURE))
