"""Cyclomatic complexity via the lizard analyzer."""

from __future__ import annotations

import csv
import io
from dataclasses import dataclass
from pathlib import Path
from typing import List, Sequence

from ..config import ComplexityThresholds
from ..models import CheckStatus, ComplexityIssue, ComplexityResult
from .base import CheckContext
from .external import EXCLUDED_DIRS, DelegatedCheck, ExternalTool, normalise_tool_path

LIZARD = ExternalTool(
    name="lizard",
    executable="lizard",
    install_hint="pip install lizard",
)

# nloc, ccn, tokens, params, length, location, file, function, long_name, start, end
_CSV_COLUMNS = 11


@dataclass(frozen=True)
class FunctionMetric:
    """One row of lizard's CSV output."""

    relative_path: str
    name: str
    start_line: int
    complexity: int


def parse_lizard_csv(raw: str, repo_path: Path) -> List[FunctionMetric]:
    """Parse ``lizard --csv`` output; raise ValueError on a malformed row."""
    metrics: List[FunctionMetric] = []
    for row in csv.reader(io.StringIO(raw)):
        if not row:
            continue
        if row[0].strip().upper() == "NLOC":
            continue  # header emitted with --verbose
        if len(row) < _CSV_COLUMNS:
            raise ValueError(f"expected {_CSV_COLUMNS} columns, got {len(row)}")
        metrics.append(
            FunctionMetric(
                relative_path=normalise_tool_path(row[6], repo_path),
                name=row[7],
                start_line=int(row[9]),
                complexity=int(row[1]),
            )
        )
    return metrics


class ComplexityCheck(DelegatedCheck):
    """Classifies per-function cyclomatic complexity reported by lizard."""

    key = "complexity"
    name = "Complexity"
    tool = LIZARD

    def build_args(self, context: CheckContext, workdir: Path) -> Sequence[str]:
        args: List[str] = ["--csv"]
        for directory in EXCLUDED_DIRS:
            args.extend(["--exclude", f"./{directory}/*"])
        args.append(".")
        return args

    def parse(self, raw: str, context: CheckContext) -> List[FunctionMetric]:
        return parse_lizard_csv(raw, context.repo_path)

    def classify(self, payload: List[FunctionMetric], context: CheckContext) -> ComplexityResult:
        return classify_complexity(payload, context.settings.complexity)

    def degraded(self, summary: str, *, available: bool) -> ComplexityResult:
        return ComplexityResult(status=CheckStatus.PASS, summary=summary, available=available)


def classify_complexity(
    metrics: Sequence[FunctionMetric], thresholds: ComplexityThresholds | None = None
) -> ComplexityResult:
    t = thresholds or ComplexityThresholds()
    issues: List[ComplexityIssue] = []
    for metric in metrics:
        if metric.complexity >= t.fail:
            status = CheckStatus.FAIL
        elif metric.complexity >= t.warn:
            status = CheckStatus.WARN
        else:
            continue
        issues.append(
            ComplexityIssue(
                relative_path=metric.relative_path,
                function_name=metric.name,
                line_number=metric.start_line,
                complexity=metric.complexity,
                status=status,
            )
        )

    issues.sort(key=lambda issue: issue.complexity, reverse=True)
    fail_count = sum(1 for issue in issues if issue.status is CheckStatus.FAIL)
    warn_count = len(issues) - fail_count
    if fail_count:
        status = CheckStatus.FAIL
        summary = f"{fail_count} function(s) with complexity >= {t.fail}"
    elif warn_count:
        status = CheckStatus.WARN
        summary = f"{warn_count} function(s) with complexity >= {t.warn}"
    else:
        status = CheckStatus.PASS
        summary = "All functions within complexity limits"
    return ComplexityResult(status=status, summary=summary, issues=tuple(issues), available=True)


__all__ = [
    "ComplexityCheck",
    "FunctionMetric",
    "LIZARD",
    "classify_complexity",
    "parse_lizard_csv",
]
