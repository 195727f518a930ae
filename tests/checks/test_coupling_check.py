"""Tests for the change-coupling check."""

from __future__ import annotations

from tests._fixtures.repo_builder import RepoBuilder
from tests._fixtures.runner import FakeRunner, ok
from vibelint.checks.coupling import CouplingCheck, classify_coupling
from vibelint.config import AnalysisSettings, CouplingThresholds
from vibelint.git.diff import DIFF_COMMAND, DiffStat
from vibelint.models import ChangedFile, CheckStatus


def _stat_output(files: int, dirs: int) -> str:
    lines = [f" pkg{index % dirs}/file{index}.ts | 2 +-" for index in range(files)]
    lines.append(f" {files} files changed, {files} insertions(+), {files} deletions(-)")
    return "\n".join(lines) + "\n"


def test_wide_change_against_main_fails(repo_builder: RepoBuilder) -> None:
    runner = FakeRunner({(*DIFF_COMMAND, "main...HEAD"): ok(_stat_output(45, 20))})

    result = CouplingCheck(runner).run(repo_builder.context())

    assert result.status is CheckStatus.FAIL
    assert result.files_changed == 45
    assert result.dirs_changed == 20
    assert result.additions == 45
    assert result.deletions == 45
    assert result.base_ref == "main"
    assert result.summary == "45 files, 20 dirs (+45 -45)"


def test_master_fallback_matches_direct_master_diff(repo_builder: RepoBuilder) -> None:
    output = _stat_output(5, 2)
    fallback = CouplingCheck(FakeRunner({(*DIFF_COMMAND, "master...HEAD"): ok(output)}))
    direct = CouplingCheck(FakeRunner({(*DIFF_COMMAND, "master...HEAD"): ok(output)}))
    master_settings = AnalysisSettings(coupling=CouplingThresholds(base_branch="master"))

    via_fallback = fallback.run(repo_builder.context())
    via_master = direct.run(repo_builder.context(master_settings))

    assert via_fallback == via_master
    assert via_fallback.base_ref == "master"
    assert via_fallback.status is CheckStatus.PASS


def test_configured_base_branch_is_tried_first(repo_builder: RepoBuilder) -> None:
    runner = FakeRunner({(*DIFF_COMMAND, "develop...HEAD"): ok(_stat_output(1, 1))})
    settings = AnalysisSettings(coupling=CouplingThresholds(base_branch="develop"))

    result = CouplingCheck(runner).run(repo_builder.context(settings))

    assert result.base_ref == "develop"
    assert len(runner.calls) == 1


def test_no_diff_available_passes(repo_builder: RepoBuilder) -> None:
    result = CouplingCheck(FakeRunner()).run(repo_builder.context())

    assert result.status is CheckStatus.PASS
    assert result.summary == "No diff available"
    assert result.base_ref is None


def test_empty_diff_reports_no_changes(repo_builder: RepoBuilder) -> None:
    runner = FakeRunner({(*DIFF_COMMAND, "HEAD~1"): ok("")})

    result = CouplingCheck(runner).run(repo_builder.context())

    assert result.status is CheckStatus.PASS
    assert result.summary == "No changes against HEAD~1"
    assert result.files_changed == 0


def test_each_dimension_applies_independently() -> None:
    few_files_many_dirs = DiffStat(ref="main", files=tuple(f"d{index}/f.py" for index in range(15)))
    assert classify_coupling(few_files_many_dirs).status is CheckStatus.FAIL

    warn_on_dirs = DiffStat(ref="main", files=tuple(f"d{index}/f.py" for index in range(8)))
    assert classify_coupling(warn_on_dirs).status is CheckStatus.WARN

    warn_on_files = DiffStat(ref="main", files=tuple(f"src/f{index}.py" for index in range(20)))
    assert classify_coupling(warn_on_files).status is CheckStatus.WARN

    calm = DiffStat(ref="main", files=("a.py", "b/c.py"), insertions=3, deletions=1)
    result = classify_coupling(calm)
    assert result.status is CheckStatus.PASS
    assert result.summary == "2 files, 2 dirs (+3 -1)"


def test_changed_files_are_reported_as_issues() -> None:
    stat = DiffStat(ref="main", files=("a.py", "pkg/b.py"), insertions=2, deletions=0)

    result = classify_coupling(stat)

    assert result.issues == (ChangedFile("a.py"), ChangedFile("pkg/b.py"))
    assert [issue.relative_path for issue in result.issues] == ["a.py", "pkg/b.py"]
    assert result.issues[1].description == "pkg/b.py changed"
