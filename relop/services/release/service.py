from __future__ import annotations

from collections.abc import Sequence
from pathlib import Path

from relop.core.config import PublishConfig
from relop.core.result import Err
from relop.output.console import ConsoleProtocol, Style
from relop.services.release.backoff import RetryPolicy
from relop.services.release.errors import AuthError
from relop.services.release.executor import execute_plan
from relop.services.release.metadata import ManifestSource
from relop.services.release.model import Credential, PublishReport, RunState
from relop.services.release.planner import plan_publish
from relop.services.release.registry import RegistryClient


def publish_packages(
    paths: Sequence[Path],
    *,
    manifests: ManifestSource,
    registry: RegistryClient,
    credential: Credential,
    config: PublishConfig,
    console: ConsoleProtocol,
) -> PublishReport:
    """Run the whole publish state machine and return its report.

    Never raises for release failures: pre-flight errors and aborts are
    recorded on the report so the caller can always print it.
    """
    report = PublishReport(state=RunState.VALIDATING)

    planned = plan_publish(
        paths, manifests=manifests, strict=config.strict_order, console=console
    )
    if isinstance(planned, Err):
        report.abort(planned.error)
        return report

    plan = planned.value
    report.state = RunState.PLANNED
    if not plan.packages:
        console.info("no packages to publish")
        report.state = RunState.DONE
        return report

    if credential.is_empty:
        report.abort(
            AuthError(
                message="no registry token provided",
                hint="Pass --token or set CARGO_REGISTRY_TOKEN.",
            )
        )
        return report

    console.header(f"Publish plan ({len(plan)} packages)")
    for i, package in enumerate(plan.packages, start=1):
        console.print(f"{i:>3}. {package.ident}  {package.path}", Style.DIM)

    return execute_plan(
        plan,
        registry=registry,
        credential=credential,
        policy=RetryPolicy.from_config(config),
        console=console,
        report=report,
    )
