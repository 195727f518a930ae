"""Tests for the error-handling anti-pattern scanner."""

from __future__ import annotations

from tests._fixtures.repo_builder import RepoBuilder
from vibelint.checks.error_patterns import ERROR_PATTERNS, ErrorPatternCheck, scan_lines
from vibelint.config import AnalysisSettings, ErrorPatternThresholds
from vibelint.models import CheckStatus


def test_empty_catch_in_typescript(repo_builder: RepoBuilder) -> None:
    repo_builder.write(
        {
            "src/api.ts": """
            export async function load() {
              try {
                await fetch("/x");
              } catch (e) {}
            }
            """,
        }
    )

    result = ErrorPatternCheck().run(repo_builder.context())

    assert len(result.issues) == 1
    issue = result.issues[0]
    assert issue.relative_path == "src/api.ts"
    assert issue.line_number == 4
    assert issue.pattern == "empty catch"
    assert issue.snippet == "} catch (e) {}"
    assert result.status is CheckStatus.WARN
    assert result.summary == "1 error handling issue(s) found"


def test_python_patterns() -> None:
    content = "try:\n    run()\nexcept:\n    pass\ntry:\n    run()\nexcept ValueError: pass\n"

    issues = scan_lines("tool.py", content, ERROR_PATTERNS["python"])

    assert [(issue.line_number, issue.pattern) for issue in issues] == [
        (3, "bare except"),
        (7, "except pass"),
    ]


def test_rust_go_and_ruby_patterns() -> None:
    rust = scan_lines("main.rs", "let v = read().unwrap();\nlet w = read().expect();\n", ERROR_PATTERNS["rust"])
    assert [issue.pattern for issue in rust] == ["unwrap()", "expect() without message"]

    go = scan_lines("main.go", "\tval, _ := parse(s)\n", ERROR_PATTERNS["go"])
    assert [issue.pattern for issue in go] == ["ignored error"]

    ruby = scan_lines("job.rb", "begin\n  work\nrescue\nend\nx = y rescue => nil\n", ERROR_PATTERNS["ruby"])
    assert [issue.pattern for issue in ruby] == ["bare rescue", "rescue => nil"]


def test_one_issue_per_line_and_snippet_truncated() -> None:
    line = "} catch (err) { /* TODO */ }" + " " * 10 + "x" * 150
    issues = scan_lines("a.js", line, ERROR_PATTERNS["javascript"])

    assert len(issues) == 1
    assert len(issues[0].snippet) == 100


def test_status_escalates_with_issue_count(repo_builder: RepoBuilder) -> None:
    repo_builder.write({"bad.py": "".join("try:\n    x()\nexcept:\n    y()\n" for _ in range(5))})

    result = ErrorPatternCheck().run(repo_builder.context())
    assert len(result.issues) == 5
    assert result.status is CheckStatus.FAIL

    lenient = AnalysisSettings(error_patterns=ErrorPatternThresholds(warn_issues=1, fail_issues=10))
    assert ErrorPatternCheck().run(repo_builder.context(lenient)).status is CheckStatus.WARN


def test_clean_repository_passes(repo_builder: RepoBuilder) -> None:
    repo_builder.write({"ok.ts": "try { run(); } catch (e) { log(e); }\n", "notes.md": "catch (e) {}\n"})

    result = ErrorPatternCheck().run(repo_builder.context())

    assert result.status is CheckStatus.PASS
    assert result.issues == ()
    assert result.summary == "No error handling issues found"
