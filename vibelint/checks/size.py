"""File-size and function-size checks."""

from __future__ import annotations

import re
from typing import Dict, Iterable, List, Pattern, Sequence, Tuple

from ..config import SizeThresholds
from ..models import CheckResult, CheckStatus, FileSizeIssue, FunctionSizeIssue, SourceFile
from .base import Check, CheckContext, read_source

# Names that method-style patterns would otherwise mistake for declarations.
_KEYWORDS = r"(?:if|for|while|switch|catch|return|new|throw|else|do|try|typeof|await|super|using|lock|foreach)"
_KEYWORD_GUARD = r"(?!" + _KEYWORDS + r"\b)"
_LEADING_KEYWORD_GUARD = r"^(?!\s*" + _KEYWORDS + r"\b)"

FUNCTION_PATTERNS: Dict[str, Tuple[Pattern[str], ...]] = {
    "typescript": (
        re.compile(r"^\s*(?:export\s+)?(?:async\s+)?function\s+(\w+)"),
        re.compile(
            r"^\s*(?:export\s+)?(?:const|let|var)\s+(\w+)\s*=\s*(?:async\s+)?(?:\([^)]*\)|[^=])\s*=>"
        ),
        re.compile(
            r"^\s*(?:public|private|protected)?\s*(?:static\s+)?(?:async\s+)?"
            + _KEYWORD_GUARD
            + r"(\w+)\s*\("
        ),
    ),
    "javascript": (
        re.compile(r"^\s*(?:export\s+)?(?:async\s+)?function\s+(\w+)"),
        re.compile(
            r"^\s*(?:export\s+)?(?:const|let|var)\s+(\w+)\s*=\s*(?:async\s+)?(?:\([^)]*\)|[^=])\s*=>"
        ),
        re.compile(r"^\s*" + _KEYWORD_GUARD + r"(\w+)\s*\([^)]*\)\s*\{"),
    ),
    "python": (re.compile(r"^\s*(?:async\s+)?def\s+(\w+)"),),
    "go": (re.compile(r"^\s*func\s+(?:\([^)]+\)\s+)?(\w+)"),),
    "java": (
        re.compile(
            _LEADING_KEYWORD_GUARD
            + r"\s*(?:public|private|protected)?\s*(?:static\s+)?(?:\w+\s+)+(\w+)\s*\("
        ),
    ),
    "rust": (re.compile(r"^\s*(?:pub\s+)?(?:async\s+)?fn\s+(\w+)"),),
    "csharp": (
        re.compile(
            _LEADING_KEYWORD_GUARD
            + r"\s*(?:public|private|protected|internal)?\s*(?:static\s+)?(?:async\s+)?(?:\w+\s+)+(\w+)\s*\("
        ),
    ),
    "ruby": (re.compile(r"^\s*def\s+(\w+)"),),
}


def count_lines(content: str) -> int:
    """Line count as the number of newline-separated segments."""
    return len(content.split("\n"))


def detect_functions(lines: Sequence[str], patterns: Sequence[Pattern[str]]) -> List[Tuple[str, int]]:
    """Return ``(name, start_line)`` for each line matching a function pattern.

    Only the first matching pattern is used per line.
    """
    functions: List[Tuple[str, int]] = []
    for index, line in enumerate(lines):
        for pattern in patterns:
            match = pattern.match(line)
            if match and match.group(1):
                functions.append((match.group(1), index + 1))
                break
    return functions


def estimate_function_lengths(
    functions: Sequence[Tuple[str, int]], total_lines: int
) -> List[Tuple[str, int, int]]:
    """Return ``(name, start_line, length)`` using the next start as the end.

    This is an approximation: functions are assumed to appear in file order
    without nesting, so nested definitions, anonymous functions and
    constructs the patterns miss all skew the estimate.
    """
    estimates: List[Tuple[str, int, int]] = []
    for index, (name, start) in enumerate(functions):
        if index + 1 < len(functions):
            end = functions[index + 1][1] - 1
        else:
            end = total_lines
        estimates.append((name, start, end - start + 1))
    return estimates


def _classify(value: int, warn: int, fail: int) -> CheckStatus | None:
    if value >= fail:
        return CheckStatus.FAIL
    if value >= warn:
        return CheckStatus.WARN
    return None


def _summarise(
    statuses: Sequence[CheckStatus], *, noun: str, warn: int, fail: int, unit: str
) -> Tuple[CheckStatus, str]:
    fail_count = sum(1 for status in statuses if status is CheckStatus.FAIL)
    warn_count = sum(1 for status in statuses if status is CheckStatus.WARN)
    if fail_count:
        return CheckStatus.FAIL, f"{fail_count} {noun}(s) over {fail} {unit}"
    if warn_count:
        return CheckStatus.WARN, f"{warn_count} {noun}(s) over {warn} {unit}"
    return CheckStatus.PASS, f"All {noun}s within size limits"


class FileSizeCheck(Check):
    """Flags files whose line count crosses the size thresholds."""

    key = "file_size"
    name = "File Size"

    def run(self, context: CheckContext) -> CheckResult:
        return check_file_sizes(context.files, context.settings.size)


class FunctionSizeCheck(Check):
    """Flags functions whose estimated length crosses the size thresholds."""

    key = "function_size"
    name = "Function Size"

    def run(self, context: CheckContext) -> CheckResult:
        return check_function_sizes(context.files, context.settings.size)


def check_file_sizes(files: Iterable[SourceFile], thresholds: SizeThresholds | None = None) -> CheckResult:
    t = thresholds or SizeThresholds()
    issues: List[FileSizeIssue] = []
    for source in files:
        content = read_source(source)
        if content is None:
            continue
        lines = count_lines(content)
        status = _classify(lines, t.file_warn_lines, t.file_fail_lines)
        if status is not None:
            issues.append(FileSizeIssue(relative_path=source.relative_path, lines=lines, status=status))

    issues.sort(key=lambda issue: issue.lines, reverse=True)
    status, summary = _summarise(
        [issue.status for issue in issues],
        noun="file",
        warn=t.file_warn_lines,
        fail=t.file_fail_lines,
        unit="lines",
    )
    return CheckResult(status=status, summary=summary, issues=tuple(issues))


def check_function_sizes(files: Iterable[SourceFile], thresholds: SizeThresholds | None = None) -> CheckResult:
    t = thresholds or SizeThresholds()
    issues: List[FunctionSizeIssue] = []
    for source in files:
        patterns = FUNCTION_PATTERNS.get(source.language)
        if not patterns:
            continue
        content = read_source(source)
        if content is None:
            continue
        lines = content.split("\n")
        functions = detect_functions(lines, patterns)
        for name, start, length in estimate_function_lengths(functions, len(lines)):
            status = _classify(length, t.func_warn_lines, t.func_fail_lines)
            if status is None:
                continue
            issues.append(
                FunctionSizeIssue(
                    relative_path=source.relative_path,
                    function_name=name,
                    lines=length,
                    line_number=start,
                    status=status,
                )
            )

    issues.sort(key=lambda issue: issue.lines, reverse=True)
    status, summary = _summarise(
        [issue.status for issue in issues],
        noun="function",
        warn=t.func_warn_lines,
        fail=t.func_fail_lines,
        unit="lines",
    )
    return CheckResult(status=status, summary=summary, issues=tuple(issues))


__all__ = [
    "FUNCTION_PATTERNS",
    "FileSizeCheck",
    "FunctionSizeCheck",
    "check_file_sizes",
    "check_function_sizes",
    "count_lines",
    "detect_functions",
    "estimate_function_lengths",
]
