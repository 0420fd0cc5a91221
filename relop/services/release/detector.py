from __future__ import annotations

from pathlib import Path

from relop.core.result import Err, Ok, Result
from relop.output.console import ConsoleProtocol, Style
from relop.services.release.errors import ReleaseError
from relop.services.release.metadata import MetadataSource
from relop.services.release.model import ReleaseCandidate
from relop.services.release.tagging import TagStrategy


def detect_release(
    commit_id: str,
    *,
    metadata: MetadataSource,
    label: str,
    leading_package: Path,
    tag_strategy: TagStrategy,
    console: ConsoleProtocol,
) -> Result[ReleaseCandidate, ReleaseError]:
    """Decide whether commit_id is a release and which tag it gets.

    A metadata failure is an error, never "not detected": skipping a real
    release silently is worse than failing the pipeline. The leading package
    is read before the pull request lookup, so a broken package setting
    fails every run and not only the release commit.
    """
    package = metadata.read_manifest(leading_package)
    if isinstance(package, Err):
        return package

    change = metadata.find_change_for_commit(commit_id)
    if isinstance(change, Err):
        return change

    if change.value is None:
        console.info(f"no pull request associated with {commit_id[:12]}")
        return Ok(
            ReleaseCandidate(
                commit_id=commit_id,
                change_id=None,
                labels=frozenset(),
                tag=None,
                detected=False,
            )
        )

    pr = change.value
    labels = ", ".join(sorted(pr.labels)) or "(none)"
    console.print(f"pull request #{pr.number} labels: {labels}", Style.DIM)

    if label not in pr.labels:
        console.info(f"#{pr.number} is not labelled '{label}': no release")
        return Ok(
            ReleaseCandidate(
                commit_id=commit_id,
                change_id=pr.number,
                labels=pr.labels,
                tag=None,
                detected=False,
            )
        )

    tag = tag_strategy.tag_for(package.value)
    if isinstance(tag, Err):
        return tag

    console.success(f"release detected: {tag.value} ({package.value.ident}, #{pr.number})")
    return Ok(
        ReleaseCandidate(
            commit_id=commit_id,
            change_id=pr.number,
            labels=pr.labels,
            tag=tag.value,
            detected=True,
        )
    )
