"""Publish Executor.

Walks a plan strictly in order. A package counts as done only once the
registry index serves it, because the next package may depend on it and
the upload acknowledgment can precede index propagation.
"""

from __future__ import annotations

from collections.abc import Callable
from time import sleep

from relop.core.result import Err, Ok, Result
from relop.output.console import ConsoleProtocol, Style
from relop.services.release.backoff import RetryPolicy
from relop.services.release.errors import ReleaseError, TransientRegistryError, is_transient
from relop.services.release.model import (
    Credential,
    Outcome,
    Package,
    PublishAttempt,
    PublishOutcome,
    PublishPlan,
    PublishReport,
    RunState,
)
from relop.services.release.registry import RegistryClient
from relop.services.release.semver import is_newer

_MIN_POLL_SECONDS = 0.5


def _read_with_retry[T](
    read: Callable[[], Result[T, ReleaseError]],
    *,
    policy: RetryPolicy,
) -> Result[T, ReleaseError]:
    result = read()
    for attempt in range(1, policy.max_attempts):
        if isinstance(result, Ok) or not is_transient(result.error):
            return result
        sleep(policy.backoff.delay(attempt))
        result = read()
    return result


def await_visibility(
    package: Package,
    *,
    registry: RegistryClient,
    policy: RetryPolicy,
    console: ConsoleProtocol,
) -> Result[None, ReleaseError]:
    """Poll until the registry serves package, or give up after the timeout.

    Timing out is transient: the caller retries the package like any other
    transient failure.
    """
    timeout = policy.visibility_timeout_seconds
    waited = 0.0
    polls = 0
    while True:
        visible = registry.is_visible(package.name, package.version)
        if isinstance(visible, Err):
            if not is_transient(visible.error):
                return visible
        elif visible.value:
            return Ok(None)

        remaining = timeout - waited
        if remaining <= 0:
            return Err(
                TransientRegistryError(
                    message=f"{package.ident} not visible on the registry after {timeout:.0f}s"
                )
            )

        polls += 1
        delay = min(max(policy.visibility_poll.delay(polls), _MIN_POLL_SECONDS), remaining)
        console.print(f"waiting for {package.ident} to appear on the index", Style.DIM)
        sleep(delay)
        waited += delay


def _warn_if_registry_ahead(
    package: Package,
    *,
    registry: RegistryClient,
    policy: RetryPolicy,
    console: ConsoleProtocol,
) -> None:
    latest = _read_with_retry(lambda: registry.latest_version(package.name), policy=policy)
    if isinstance(latest, Err):
        console.warning(f"{package.name}: could not read latest version: {latest.error.message}")
        return
    if latest.value is not None and is_newer(latest.value, package.version):
        console.warning(
            f"{package.name}: registry already has {latest.value}, publishing older {package.version}"
        )


def _publish_package(
    package: Package,
    *,
    registry: RegistryClient,
    credential: Credential,
    policy: RetryPolicy,
    console: ConsoleProtocol,
    report: PublishReport,
) -> ReleaseError | None:
    present = _read_with_retry(
        lambda: registry.is_visible(package.name, package.version), policy=policy
    )
    if isinstance(present, Err):
        report.record(PublishAttempt(package, Outcome.FAILED, 0, detail=present.error.message))
        return present.error
    if present.value:
        report.record(PublishAttempt(package, Outcome.SKIPPED, 0, detail="already on registry"))
        console.info(f"{package.ident} already on registry, skipping")
        return None

    _warn_if_registry_ahead(package, registry=registry, policy=policy, console=console)

    uploaded = False
    for attempt in range(1, policy.max_attempts + 1):
        console.print(
            f"publishing {package.ident} (attempt {attempt}/{policy.max_attempts})", Style.DIM
        )
        published = registry.publish(package, credential)
        if isinstance(published, Ok):
            uploaded = uploaded or published.value is PublishOutcome.PUBLISHED
            visible = await_visibility(
                package, registry=registry, policy=policy, console=console
            )
            if isinstance(visible, Ok):
                if uploaded:
                    report.record(PublishAttempt(package, Outcome.PUBLISHED, attempt))
                    console.success(f"published {package.ident}")
                else:
                    report.record(
                        PublishAttempt(
                            package, Outcome.SKIPPED, attempt, detail="already on registry"
                        )
                    )
                    console.info(f"{package.ident} was already uploaded")
                return None
            error = visible.error
        else:
            error = published.error

        if not is_transient(error) or attempt == policy.max_attempts:
            report.record(PublishAttempt(package, Outcome.FAILED, attempt, detail=error.message))
            return error

        delay = policy.backoff.delay(attempt)
        report.record(PublishAttempt(package, Outcome.RETRYING, attempt, detail=error.message))
        console.warning(f"{package.ident}: {error.message}; retrying in {delay:.0f}s")
        sleep(delay)

    raise AssertionError("retry loop exited without an outcome")


def execute_plan(
    plan: PublishPlan,
    *,
    registry: RegistryClient,
    credential: Credential,
    policy: RetryPolicy,
    console: ConsoleProtocol,
    report: PublishReport | None = None,
) -> PublishReport:
    """Publish every package of plan in order; stop at the first fatal error.

    Packages after a failure are not attempted: they may depend on the one
    that failed. Re-running the same plan resumes, since packages already
    on the registry are skipped.
    """
    report = report if report is not None else PublishReport()
    report.state = RunState.PUBLISHING

    for package in plan.packages:
        error = _publish_package(
            package,
            registry=registry,
            credential=credential,
            policy=policy,
            console=console,
            report=report,
        )
        if error is not None:
            report.abort(error)
            return report

    report.state = RunState.DONE
    return report
