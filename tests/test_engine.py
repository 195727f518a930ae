"""Tests for the analysis engine."""

from __future__ import annotations

import shutil
import threading

import pytest

from tests._fixtures.repo_builder import RepoBuilder
from tests._fixtures.runner import FakeRunner
from vibelint.checks import Check, CheckContext, default_checks
from vibelint.config import ConfigError
from vibelint.engine import REPORT_KEYS, Engine, RepoMissingError
from vibelint.models import CheckResult, CheckStatus
from vibelint.stores import RepoNotFoundError, RepoRegistry

TS_WITH_EMPTY_CATCH = "\n".join(
    ["// header"] * 8
    + ["try {", "} catch (e) {}"]
    + ["export const value = 1;"] * 510
)


def test_typescript_scenario(repo_builder: RepoBuilder) -> None:
    (repo_builder.path() / "src").mkdir()
    (repo_builder.path() / "src" / "big.ts").write_text(TS_WITH_EMPTY_CATCH, encoding="utf-8")

    report = Engine(runner=FakeRunner()).run(repo_builder.path())

    assert report.total_files == 1
    assert [(lang.language, lang.file_count) for lang in report.language_summary] == [("typescript", 1)]

    (size_issue,) = report.file_size.issues
    assert (size_issue.relative_path, size_issue.lines, size_issue.status) == ("src/big.ts", 520, CheckStatus.FAIL)
    assert report.file_size.status is CheckStatus.FAIL

    (pattern_issue,) = report.error_patterns.issues
    assert pattern_issue.pattern == "empty catch"
    assert pattern_issue.line_number == 10
    assert report.error_patterns.status is CheckStatus.WARN

    assert report.complexity.available is False
    assert report.duplication.available is False
    assert report.coupling.summary == "No diff available"
    assert report.status is CheckStatus.FAIL


def test_check_summaries_follow_report_order(repo_builder: RepoBuilder) -> None:
    report = Engine(runner=FakeRunner()).run(repo_builder.path())

    assert [check.name for check in report.checks] == [
        "Complexity",
        "Duplication",
        "Error Handling",
        "File Size",
        "Function Size",
        "Dependencies",
        "Coupling",
    ]
    keys = {check.name: check.key for check in default_checks()}
    for summary in report.checks:
        result = getattr(report, keys[summary.name])
        assert summary.status is result.status
        assert summary.summary == result.summary
    assert report.status is CheckStatus.worst(check.status for check in report.checks)


def test_report_serialises_statuses_as_strings(repo_builder: RepoBuilder) -> None:
    repo_builder.write_lines("a.ts", 310)

    data = Engine(runner=FakeRunner()).run(repo_builder.path()).to_dict()

    assert data["status"] == "warn"
    assert data["file_size"]["status"] == "warn"
    assert data["file_size"]["issues"][0]["status"] == "warn"
    assert data["checks"][0]["status"] in {"pass", "warn", "fail"}


def test_unknown_identifier_raises_not_found(tmp_path) -> None:
    engine = Engine(registry=RepoRegistry(tmp_path / "repos.json"), runner=FakeRunner())

    with pytest.raises(RepoNotFoundError):
        engine.run("no-such-repo")


def test_registered_repo_missing_on_disk(repo_builder: RepoBuilder, tmp_path) -> None:
    registry = RepoRegistry(tmp_path / "repos.json")
    ref = registry.add(repo_builder.path())
    shutil.rmtree(repo_builder.path())

    with pytest.raises(RepoMissingError):
        Engine(registry=registry, runner=FakeRunner()).run(ref.id)


def test_registered_path_missing_on_disk(repo_builder: RepoBuilder, tmp_path) -> None:
    registry = RepoRegistry(tmp_path / "repos.json")
    registry.add(repo_builder.path())
    shutil.rmtree(repo_builder.path())

    with pytest.raises(RepoMissingError):
        Engine(registry=registry, runner=FakeRunner()).run(str(repo_builder.path()))


def test_registered_repo_resolves_by_id(repo_builder: RepoBuilder, tmp_path) -> None:
    registry = RepoRegistry(tmp_path / "repos.json")
    ref = registry.add(repo_builder.path(), name="demo")

    report = Engine(registry=registry, runner=FakeRunner()).run("demo")

    assert report.repo_id == ref.id
    assert report.repo_name == "demo"


def test_overrides_reach_checks(repo_builder: RepoBuilder) -> None:
    repo_builder.write_lines("a.ts", 310)

    report = Engine(runner=FakeRunner()).run(repo_builder.path(), {"size": {"file_warn_lines": 400}})

    assert report.file_size.status is CheckStatus.PASS


def test_bad_override_is_fatal(repo_builder: RepoBuilder) -> None:
    with pytest.raises(ConfigError):
        Engine(runner=FakeRunner()).run(repo_builder.path(), {"size": {"nope": 1}})


class _Exploding(Check):
    key = "coupling"
    name = "Coupling"

    def run(self, context: CheckContext) -> CheckResult:
        raise RuntimeError("boom")


class _Recording(Check):
    def __init__(self, key: str, seen: list[str], lock: threading.Lock) -> None:
        self.key = key
        self.name = key
        self._seen = seen
        self._lock = lock

    def run(self, context: CheckContext) -> CheckResult:
        with self._lock:
            self._seen.append(self.key)
        return CheckResult(status=CheckStatus.PASS, summary="ok")


def test_check_exception_propagates_after_others_finish(repo_builder: RepoBuilder) -> None:
    seen: list[str] = []
    lock = threading.Lock()
    checks = [_Recording(key, seen, lock) for key in REPORT_KEYS if key != "coupling"] + [_Exploding()]

    with pytest.raises(RuntimeError, match="boom"):
        Engine(checks=checks).run(repo_builder.path())

    assert sorted(seen) == sorted(key for key in REPORT_KEYS if key != "coupling")


def test_engine_requires_every_report_check() -> None:
    with pytest.raises(ValueError, match="coupling"):
        Engine(checks=[check for check in default_checks() if check.key != "coupling"])
