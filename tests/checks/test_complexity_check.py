"""Tests for the lizard-backed complexity check."""

from __future__ import annotations

import pytest

from tests._fixtures.repo_builder import RepoBuilder
from tests._fixtures.runner import FakeRunner, failed, ok
from vibelint.checks.complexity import ComplexityCheck, FunctionMetric, classify_complexity, parse_lizard_csv
from vibelint.config import AnalysisSettings, ComplexityThresholds
from vibelint.models import CheckStatus

LIZARD_CSV = "\n".join(
    [
        '5,4,40,1,20,"simple@3-22@./src/api.ts","./src/api.ts","simple","simple( )",3,22',
        '30,12,200,2,45,"route@30-75@./src/api.ts","./src/api.ts","route","route( req , res )",30,75',
        '80,27,600,3,90,"parse@10-99@./lib/parser.py","./lib/parser.py","parse","parse( text )",10,99',
    ]
)


def _runner(run_output: str | None) -> FakeRunner:
    responses = {("lizard", "--version"): ok("1.17.10")}
    responses[("lizard", "--csv")] = failed() if run_output is None else ok(run_output)
    return FakeRunner(responses)


def test_classifies_functions_and_sorts_by_score(repo_builder: RepoBuilder) -> None:
    runner = _runner(LIZARD_CSV)

    result = ComplexityCheck(runner).run(repo_builder.context())

    assert result.available is True
    assert [(issue.function_name, issue.complexity, issue.status) for issue in result.issues] == [
        ("parse", 27, CheckStatus.FAIL),
        ("route", 12, CheckStatus.WARN),
    ]
    assert result.issues[0].relative_path == "lib/parser.py"
    assert result.issues[0].line_number == 10
    assert result.status is CheckStatus.FAIL
    assert result.summary == "1 function(s) with complexity >= 20"


def test_invocation_excludes_vendor_directories(repo_builder: RepoBuilder) -> None:
    runner = _runner("")
    settings = AnalysisSettings(tool_timeout=7.5)

    ComplexityCheck(runner).run(repo_builder.context(settings))

    run_call = runner.calls[1]
    assert run_call[:2] == ["lizard", "--csv"]
    assert "./node_modules/*" in run_call
    assert run_call[-1] == "."
    assert runner.timeouts == [7.5, 7.5]


def test_missing_tool_is_skipped_without_running(repo_builder: RepoBuilder) -> None:
    runner = FakeRunner()

    result = ComplexityCheck(runner).run(repo_builder.context())

    assert result.available is False
    assert result.status is CheckStatus.PASS
    assert result.summary.startswith("Skipped: lizard not installed")
    assert runner.calls == [["lizard", "--version"]]


@pytest.mark.parametrize("output", [None, "", "not,a,valid,row"])
def test_failed_or_unparseable_output_passes(repo_builder: RepoBuilder, output: str | None) -> None:
    result = ComplexityCheck(_runner(output)).run(repo_builder.context())

    assert result.available is True
    assert result.status is CheckStatus.PASS
    assert result.issues == ()


def test_parse_skips_header_and_normalises_absolute_paths(tmp_path) -> None:
    raw = "\n".join(
        [
            "NLOC,CCN,token,PARAM,length,location,file,function,long_name,start,end",
            f'3,2,10,0,3,"f@1-3@{tmp_path}/a.go","{tmp_path}/a.go","f","f( )",1,3',
        ]
    )

    metrics = parse_lizard_csv(raw, tmp_path)

    assert metrics == [FunctionMetric(relative_path="a.go", name="f", start_line=1, complexity=2)]


def test_warn_only_summary_and_custom_thresholds() -> None:
    metrics = [FunctionMetric("a.ts", "a", 1, 11), FunctionMetric("b.ts", "b", 1, 3)]

    warn = classify_complexity(metrics)
    assert warn.status is CheckStatus.WARN
    assert warn.summary == "1 function(s) with complexity >= 10"

    relaxed = classify_complexity(metrics, ComplexityThresholds(warn=15, fail=30))
    assert relaxed.status is CheckStatus.PASS
    assert relaxed.summary == "All functions within complexity limits"
