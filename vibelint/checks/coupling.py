"""Change coupling: how widely the current diff spreads across the tree."""

from __future__ import annotations

from ..config import CouplingThresholds
from ..git.diff import DiffStat, DiffStatCollector
from ..logging import get_logger
from ..models import ChangedFile, CheckStatus, CouplingResult
from ..process import CommandRunner
from .base import Check, CheckContext

logger = get_logger("checks.coupling")


class CouplingCheck(Check):
    key = "coupling"
    name = "Coupling"

    def __init__(
        self,
        runner: CommandRunner | None = None,
        collector: DiffStatCollector | None = None,
    ) -> None:
        self._collector = collector or DiffStatCollector(runner)

    def run(self, context: CheckContext) -> CouplingResult:
        thresholds = context.settings.coupling
        stat = self._collector.collect(
            context.repo_path,
            thresholds.base_branch,
            timeout=context.settings.tool_timeout,
        )
        if stat is None:
            logger.info("No diff available for %s", context.repo_path)
            return CouplingResult(status=CheckStatus.PASS, summary="No diff available")
        return classify_coupling(stat, thresholds)


def classify_coupling(stat: DiffStat, thresholds: CouplingThresholds | None = None) -> CouplingResult:
    t = thresholds or CouplingThresholds()
    files_changed = len(stat.files)
    dirs_changed = len(stat.directories)

    if files_changed == 0:
        return CouplingResult(
            status=CheckStatus.PASS,
            summary=f"No changes against {stat.ref}",
            base_ref=stat.ref,
        )

    if files_changed >= t.fail_files or dirs_changed >= t.fail_dirs:
        status = CheckStatus.FAIL
    elif files_changed >= t.warn_files or dirs_changed >= t.warn_dirs:
        status = CheckStatus.WARN
    else:
        status = CheckStatus.PASS

    summary = (
        f"{files_changed} files, {dirs_changed} dirs "
        f"(+{stat.insertions} -{stat.deletions})"
    )
    return CouplingResult(
        status=status,
        summary=summary,
        issues=tuple(ChangedFile(path) for path in stat.files),
        files_changed=files_changed,
        dirs_changed=dirs_changed,
        additions=stat.insertions,
        deletions=stat.deletions,
        base_ref=stat.ref,
    )


__all__ = ["CouplingCheck", "classify_coupling"]
