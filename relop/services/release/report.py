from __future__ import annotations

from relop.output.console import ConsoleProtocol, Style
from relop.services.release.model import Outcome, PublishAttempt, PublishReport

_OUTCOME_STYLE = {
    Outcome.SKIPPED: Style.DIM,
    Outcome.PUBLISHED: Style.SUCCESS,
    Outcome.RETRYING: Style.WARNING,
    Outcome.FAILED: Style.ERROR,
}


def format_attempt(attempt: PublishAttempt) -> str:
    line = f"{attempt.package.ident:<32} {attempt.outcome.value:<10} attempt {attempt.attempt_count}"
    if attempt.detail:
        line += f"  ({attempt.detail})"
    return line


def render_report(report: PublishReport, console: ConsoleProtocol) -> None:
    """Print every attempt, then a one-line summary.

    Partial reports are printed in full so an aborted run shows exactly
    which packages made it. The cause of an abort is left to the caller.
    """
    console.header("Publish report")
    if not report.attempts:
        console.print("no packages attempted", Style.DIM)
    for attempt in report.attempts:
        console.print(format_attempt(attempt), _OUTCOME_STYLE[attempt.outcome])

    summary = (
        f"state={report.state.value} "
        f"published={report.count(Outcome.PUBLISHED)} "
        f"skipped={report.count(Outcome.SKIPPED)} "
        f"failed={report.count(Outcome.FAILED)}"
    )
    console.newline()
    if report.succeeded:
        console.success(summary)
        return

    console.print(summary, Style.BOLD)
