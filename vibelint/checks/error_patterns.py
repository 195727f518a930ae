"""Line-oriented scan for error-handling anti-patterns."""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Dict, Iterable, List, Pattern, Tuple

from ..config import ErrorPatternThresholds
from ..models import CheckResult, CheckStatus, ErrorPatternIssue, SourceFile
from .base import Check, CheckContext, read_source

SNIPPET_LENGTH = 100


@dataclass(frozen=True)
class ErrorPattern:
    name: str
    regex: Pattern[str]


def _pattern(name: str, expression: str, flags: int = 0) -> ErrorPattern:
    return ErrorPattern(name=name, regex=re.compile(expression, flags))


_JS_PATTERNS: Tuple[ErrorPattern, ...] = (
    _pattern("empty catch", r"catch\s*\([^)]*\)\s*\{\s*\}"),
    _pattern("catch with only comment", r"catch\s*\([^)]*\)\s*\{\s*//[^\n]*\s*\}"),
    _pattern(
        "todo/fixme in error handling",
        r"catch\s*\([^)]*\)\s*\{[^}]*(?:TODO|FIXME|HACK)",
        re.IGNORECASE,
    ),
)

# Matching is line-local: patterns that span several lines are not detected.
ERROR_PATTERNS: Dict[str, Tuple[ErrorPattern, ...]] = {
    "typescript": _JS_PATTERNS,
    "javascript": _JS_PATTERNS,
    "python": (
        _pattern("bare except", r"except\s*:"),
        _pattern("except pass", r"^\s*except[^:]*:\s*pass\s*(?:#.*)?$"),
    ),
    "go": (_pattern("ignored error", r"[^_]\s*,\s*_\s*:?=\s*\w+\("),),
    "java": (_pattern("empty catch", r"catch\s*\([^)]+\)\s*\{\s*\}"),),
    "rust": (
        _pattern("unwrap()", r"\.unwrap\(\)"),
        _pattern("expect() without message", r"\.expect\(\s*\)"),
    ),
    "csharp": (_pattern("empty catch", r"catch\s*(?:\([^)]*\))?\s*\{\s*\}"),),
    "ruby": (
        _pattern("bare rescue", r"rescue\s*$"),
        _pattern("rescue => nil", r"rescue\s.*=>\s*nil"),
    ),
}


class ErrorPatternCheck(Check):
    """Reports lines matching a known error-handling anti-pattern."""

    key = "error_patterns"
    name = "Error Handling"

    def run(self, context: CheckContext) -> CheckResult:
        return check_error_patterns(context.files, context.settings.error_patterns)


def scan_lines(relative_path: str, content: str, patterns: Iterable[ErrorPattern]) -> List[ErrorPatternIssue]:
    """Return at most one issue per line, for the first pattern that matches."""
    ordered = tuple(patterns)
    issues: List[ErrorPatternIssue] = []
    for index, line in enumerate(content.split("\n")):
        for pattern in ordered:
            if pattern.regex.search(line):
                issues.append(
                    ErrorPatternIssue(
                        relative_path=relative_path,
                        line_number=index + 1,
                        pattern=pattern.name,
                        snippet=line.strip()[:SNIPPET_LENGTH],
                    )
                )
                break
    return issues


def check_error_patterns(
    files: Iterable[SourceFile], thresholds: ErrorPatternThresholds | None = None
) -> CheckResult:
    t = thresholds or ErrorPatternThresholds()
    issues: List[ErrorPatternIssue] = []
    for source in files:
        patterns = ERROR_PATTERNS.get(source.language)
        if not patterns:
            continue
        content = read_source(source)
        if content is None:
            continue
        issues.extend(scan_lines(source.relative_path, content, patterns))

    count = len(issues)
    if count >= t.fail_issues:
        status = CheckStatus.FAIL
    elif count >= t.warn_issues and count > 0:
        status = CheckStatus.WARN
    else:
        status = CheckStatus.PASS
    if count:
        summary = f"{count} error handling issue(s) found"
    else:
        summary = "No error handling issues found"
    return CheckResult(status=status, summary=summary, issues=tuple(issues))


__all__ = [
    "ERROR_PATTERNS",
    "ErrorPattern",
    "ErrorPatternCheck",
    "check_error_patterns",
    "scan_lines",
]
