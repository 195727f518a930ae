"""Tests for the jscpd-backed duplication check."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Dict, List, Optional

import pytest

from tests._fixtures.repo_builder import RepoBuilder
from tests._fixtures.runner import FakeRunner, ok
from vibelint.checks.duplication import REPORT_FILENAME, CloneReport, DuplicationCheck, classify_duplication
from vibelint.config import AnalysisSettings, DuplicationThresholds
from vibelint.models import CheckStatus, DuplicateEntry, DuplicateSpan, DuplicationStats
from vibelint.process import CommandResult


def _duplicate(first: str, second: str, lines: int = 12) -> Dict[str, Any]:
    return {
        "format": "typescript",
        "lines": lines,
        "tokens": 90,
        "firstFile": {"name": first, "startLoc": {"line": 1}, "endLoc": {"line": lines}},
        "secondFile": {"name": second, "startLoc": {"line": 40}, "endLoc": {"line": 39 + lines}},
    }


def _report(count: int) -> Dict[str, Any]:
    return {
        "duplicates": [_duplicate(f"src/a{index}.ts", f"src/b{index}.ts") for index in range(count)],
        "statistics": {"total": {"clones": count, "duplicatedLines": count * 12, "percentage": 4.25}},
    }


def _jscpd(report: Optional[Dict[str, Any]]) -> FakeRunner:
    def run(argv: List[str], cwd: Optional[Path]) -> CommandResult:
        if report is not None:
            output_dir = Path(argv[argv.index("--output") + 1])
            (output_dir / REPORT_FILENAME).write_text(json.dumps(report), encoding="utf-8")
        return ok("")

    return FakeRunner({("jscpd", "--version"): ok("4.0.5"), ("jscpd", "--reporters"): run})


def test_reads_report_file_and_fails_on_many_clones(repo_builder: RepoBuilder) -> None:
    result = DuplicationCheck(_jscpd(_report(10))).run(repo_builder.context())

    assert result.available is True
    assert result.status is CheckStatus.FAIL
    assert result.summary == "10 code clone(s) detected"
    assert result.statistics == DuplicationStats(clones=10, duplicated_lines=120, percentage=4.25)
    first = result.duplicates[0]
    assert str(first.first_file) == "src/a0.ts:1-12"
    assert str(first.second_file) == "src/b0.ts:40-51"


@pytest.mark.parametrize(
    ("count", "status", "summary"),
    [
        (0, CheckStatus.PASS, "No significant duplication found"),
        (2, CheckStatus.PASS, "2 minor clone(s)"),
        (3, CheckStatus.WARN, "3 code clone(s) detected"),
    ],
)
def test_clone_count_thresholds(
    repo_builder: RepoBuilder, count: int, status: CheckStatus, summary: str
) -> None:
    result = DuplicationCheck(_jscpd(_report(count))).run(repo_builder.context())

    assert result.status is status
    assert result.summary == summary


def test_min_lines_and_ignores_are_passed(repo_builder: RepoBuilder) -> None:
    runner = _jscpd(_report(0))
    settings = AnalysisSettings(duplication=DuplicationThresholds(min_lines=25))

    DuplicationCheck(runner).run(repo_builder.context(settings))

    run_call = runner.calls[1]
    assert run_call[run_call.index("--min-lines") + 1] == "25"
    assert "**/node_modules/**" in run_call[run_call.index("--ignore") + 1]


def test_missing_tool_degrades_to_unavailable_pass(repo_builder: RepoBuilder) -> None:
    result = DuplicationCheck(FakeRunner()).run(repo_builder.context())

    assert result.available is False
    assert result.status is CheckStatus.PASS
    assert "npm install -g jscpd" in result.summary


def test_missing_report_and_malformed_report_pass(repo_builder: RepoBuilder) -> None:
    empty = DuplicationCheck(_jscpd(None)).run(repo_builder.context())
    assert empty.status is CheckStatus.PASS
    assert empty.available is True
    assert empty.summary == "jscpd returned no results"

    malformed = DuplicationCheck(_jscpd({"duplicates": [{"format": "ts"}]})).run(repo_builder.context())
    assert malformed.status is CheckStatus.PASS
    assert malformed.summary == "Failed to parse jscpd output"


def test_clone_count_falls_back_to_duplicate_pairs() -> None:
    span = DuplicateSpan("a.ts", 1, 10)
    entry = DuplicateEntry(format="typescript", lines=10, tokens=50, first_file=span, second_file=span)
    report = CloneReport(duplicates=(entry,) * 4, statistics=None)

    result = classify_duplication(report, DuplicationThresholds(warn_clones=4, fail_clones=8))

    assert result.status is CheckStatus.WARN
    assert result.statistics is None
