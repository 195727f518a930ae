"""Code duplication via the jscpd clone detector."""

from __future__ import annotations

import json
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence, Tuple

from ..config import DuplicationThresholds
from ..models import CheckStatus, DuplicateEntry, DuplicateSpan, DuplicationResult, DuplicationStats
from ..process import CommandResult
from .base import CheckContext
from .external import EXCLUDED_DIRS, DelegatedCheck, ExternalTool, normalise_tool_path

JSCPD = ExternalTool(
    name="jscpd",
    executable="jscpd",
    install_hint="npm install -g jscpd",
)

REPORT_FILENAME = "jscpd-report.json"


@dataclass(frozen=True)
class CloneReport:
    duplicates: Tuple[DuplicateEntry, ...]
    statistics: Optional[DuplicationStats]


def _span(payload: Dict[str, Any], repo_path: Path) -> DuplicateSpan:
    return DuplicateSpan(
        relative_path=normalise_tool_path(str(payload["name"]), repo_path),
        start_line=int(payload["startLoc"]["line"]),
        end_line=int(payload["endLoc"]["line"]),
    )


def parse_jscpd_report(raw: str, repo_path: Path) -> CloneReport:
    """Parse a jscpd JSON report; raise ValueError/KeyError/TypeError when malformed."""
    data = json.loads(raw)
    if not isinstance(data, dict):
        raise ValueError("jscpd report must be a JSON object")

    duplicates: List[DuplicateEntry] = []
    for item in data.get("duplicates") or []:
        if not isinstance(item, dict):
            raise TypeError("jscpd duplicate entries must be objects")
        duplicates.append(
            DuplicateEntry(
                format=str(item.get("format", "")),
                lines=int(item.get("lines", 0)),
                tokens=int(item.get("tokens", 0)),
                first_file=_span(item["firstFile"], repo_path),
                second_file=_span(item["secondFile"], repo_path),
            )
        )

    statistics: Optional[DuplicationStats] = None
    raw_stats = data.get("statistics")
    if isinstance(raw_stats, dict):
        # jscpd nests aggregate numbers under "total"; older reports keep them flat.
        totals = raw_stats.get("total") if isinstance(raw_stats.get("total"), dict) else raw_stats
        if "clones" in totals:
            statistics = DuplicationStats(
                clones=int(totals["clones"]),
                duplicated_lines=int(totals.get("duplicatedLines", 0)),
                percentage=float(totals.get("percentage", 0.0)),
            )
    return CloneReport(duplicates=tuple(duplicates), statistics=statistics)


class DuplicationCheck(DelegatedCheck):
    """Classifies the total clone count reported by jscpd."""

    key = "duplication"
    name = "Duplication"
    tool = JSCPD

    def build_args(self, context: CheckContext, workdir: Path) -> Sequence[str]:
        thresholds = context.settings.duplication
        ignore = ",".join(f"**/{directory}/**" for directory in EXCLUDED_DIRS)
        return [
            "--reporters",
            "json",
            "--output",
            str(workdir),
            "--min-lines",
            str(thresholds.min_lines),
            "--ignore",
            ignore,
            "--silent",
            ".",
        ]

    def read_output(self, result: CommandResult, workdir: Path) -> Optional[str]:
        if not result.success:
            return None
        report = workdir / REPORT_FILENAME
        try:
            return report.read_text(encoding="utf-8")
        except OSError:
            return result.stdout or None

    def parse(self, raw: str, context: CheckContext) -> CloneReport:
        return parse_jscpd_report(raw, context.repo_path)

    def classify(self, payload: CloneReport, context: CheckContext) -> DuplicationResult:
        return classify_duplication(payload, context.settings.duplication)

    def degraded(self, summary: str, *, available: bool) -> DuplicationResult:
        return DuplicationResult(status=CheckStatus.PASS, summary=summary, available=available)


def classify_duplication(
    report: CloneReport, thresholds: DuplicationThresholds | None = None
) -> DuplicationResult:
    t = thresholds or DuplicationThresholds()
    clone_count = report.statistics.clones if report.statistics else len(report.duplicates)

    status = CheckStatus.PASS
    summary = "No significant duplication found"
    if clone_count >= t.fail_clones:
        status = CheckStatus.FAIL
        summary = f"{clone_count} code clone(s) detected"
    elif clone_count >= t.warn_clones:
        status = CheckStatus.WARN
        summary = f"{clone_count} code clone(s) detected"
    elif clone_count > 0:
        summary = f"{clone_count} minor clone(s)"

    return DuplicationResult(
        status=status,
        summary=summary,
        issues=report.duplicates,
        available=True,
        statistics=report.statistics,
    )


__all__ = [
    "CloneReport",
    "DuplicationCheck",
    "JSCPD",
    "classify_duplication",
    "parse_jscpd_report",
]
