"""detect: decide whether the current commit is a release."""

from __future__ import annotations

from dataclasses import replace
from pathlib import Path

import typer

from relop.cli.commands._helpers import exit_on_error, exit_with_error
from relop.cli.context import build_context
from relop.cli.outputs import write_outputs
from relop.core.config import TAG_STRATEGIES
from relop.core.result import Err
from relop.services.release.detector import detect_release
from relop.services.release.metadata import GitHubMetadataSource, MetadataSource
from relop.services.release.model import Credential
from relop.services.release.tagging import tag_strategy_from_config
from relop.services.release.timeouts import HTTP_TIMEOUT_SECONDS
from relop.tools.http import RealHttpClient


def _build_metadata(
    *, api_url: str, repository: str, token: str | None, user_agent: str, root: Path
) -> MetadataSource:
    return GitHubMetadataSource(
        http=RealHttpClient(timeout=HTTP_TIMEOUT_SECONDS, user_agent=user_agent),
        repository=repository,
        credential=Credential(token) if token else None,
        api_url=api_url,
        root=root,
    )


def detect(
    commit: str | None = typer.Option(
        None, "--commit", envvar="GITHUB_SHA", help="Commit to inspect."
    ),
    repository: str | None = typer.Option(
        None, "--repository", envvar="GITHUB_REPOSITORY", help="owner/name on GitHub."
    ),
    token: str | None = typer.Option(
        None, "--token", envvar="GITHUB_TOKEN", help="GitHub token.", show_default=False
    ),
    label: str | None = typer.Option(
        None, "--label", envvar="RELEASE_LABEL", help="PR label that marks a release."
    ),
    package: Path | None = typer.Option(
        None,
        "--package",
        envvar="RELEASE_PACKAGE",
        help="Directory of the package whose version names the release.",
    ),
    tag_strategy: str | None = typer.Option(
        None, "--tag-strategy", help=f"One of: {', '.join(TAG_STRATEGIES)}."
    ),
    tag_format: str | None = typer.Option(
        None, "--tag-format", help="Tag template, e.g. 'v{version}'."
    ),
    config_path: Path | None = typer.Option(None, "--config", help="Config file."),
    output_file: Path | None = typer.Option(
        None, "--output-file", envvar="GITHUB_OUTPUT", help="Append outputs to this file."
    ),
) -> None:
    """Emit release-detected and tag-name for the current commit.

    Exits 0 whether or not a release is detected; 1 only when metadata
    cannot be read.
    """
    ctx = build_context(config_path)
    cfg = ctx.config

    if not commit:
        exit_with_error(ctx, "no commit to inspect", hint="Pass --commit or set GITHUB_SHA.")
    repo = repository or cfg.github.repository
    if not repo:
        exit_with_error(
            ctx, "no repository configured", hint="Pass --repository or set GITHUB_REPOSITORY."
        )
    if tag_strategy is not None and tag_strategy not in TAG_STRATEGIES:
        exit_with_error(ctx, f"unknown tag strategy: {tag_strategy}")

    detect_cfg = replace(
        cfg.detect,
        label=label or cfg.detect.label,
        package=str(package) if package is not None else cfg.detect.package,
        tag_strategy=tag_strategy or cfg.detect.tag_strategy,
        tag_format=tag_format or cfg.detect.tag_format,
    )

    metadata = _build_metadata(
        api_url=cfg.github.api_url,
        repository=repo,
        token=token,
        user_agent=cfg.registry.user_agent,
        root=ctx.cwd,
    )
    candidate = exit_on_error(
        detect_release(
            commit,
            metadata=metadata,
            label=detect_cfg.label,
            leading_package=Path(detect_cfg.package),
            tag_strategy=tag_strategy_from_config(detect_cfg),
            console=ctx.console,
        ),
        ctx,
    )

    written = write_outputs(
        {
            "release-detected": "true" if candidate.detected else "false",
            "tag-name": candidate.tag_name,
        },
        output_file=output_file,
    )
    if isinstance(written, Err):
        exit_with_error(ctx, written.error)
