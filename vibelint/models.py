"""Core data models shared across vibelint components."""

from __future__ import annotations

from dataclasses import asdict, dataclass
from enum import Enum
from typing import Any, Dict, Iterable, Optional, Tuple


class CheckStatus(str, Enum):
    """Tri-state outcome of a check, ordered pass < warn < fail."""

    PASS = "pass"
    WARN = "warn"
    FAIL = "fail"

    @property
    def rank(self) -> int:
        return _STATUS_RANK[self]

    @property
    def label(self) -> str:
        return self.value.upper()

    @classmethod
    def worst(cls, statuses: Iterable["CheckStatus"]) -> "CheckStatus":
        """Return the most severe status, or PASS for an empty iterable."""
        result = cls.PASS
        for status in statuses:
            if status.rank > result.rank:
                result = status
        return result


_STATUS_RANK = {CheckStatus.PASS: 0, CheckStatus.WARN: 1, CheckStatus.FAIL: 2}


@dataclass(frozen=True)
class SourceFile:
    """A source file discovered by the collector."""

    absolute_path: str
    relative_path: str
    language: str
    extension: str


@dataclass(frozen=True)
class LanguageCount:
    language: str
    file_count: int


# ---------------------------------------------------------------------------
# Issues


@dataclass(frozen=True)
class FileSizeIssue:
    relative_path: str
    lines: int
    status: CheckStatus

    @property
    def description(self) -> str:
        return f"{self.relative_path}: {self.lines} lines ({self.status.label})"


@dataclass(frozen=True)
class FunctionSizeIssue:
    relative_path: str
    function_name: str
    lines: int
    line_number: int
    status: CheckStatus

    @property
    def description(self) -> str:
        return (
            f"`{self.function_name}` in {self.relative_path}:{self.line_number}: "
            f"{self.lines} lines"
        )


@dataclass(frozen=True)
class ErrorPatternIssue:
    relative_path: str
    line_number: int
    pattern: str
    snippet: str

    @property
    def description(self) -> str:
        return f"{self.relative_path}:{self.line_number}: {self.pattern}"


@dataclass(frozen=True)
class ComplexityIssue:
    relative_path: str
    function_name: str
    line_number: int
    complexity: int
    status: CheckStatus

    @property
    def description(self) -> str:
        return (
            f"`{self.function_name}` in {self.relative_path}:{self.line_number}: "
            f"complexity {self.complexity}"
        )


@dataclass(frozen=True)
class DuplicateSpan:
    relative_path: str
    start_line: int
    end_line: int

    def __str__(self) -> str:
        return f"{self.relative_path}:{self.start_line}-{self.end_line}"


@dataclass(frozen=True)
class DuplicateEntry:
    format: str
    lines: int
    tokens: int
    first_file: DuplicateSpan
    second_file: DuplicateSpan

    @property
    def relative_path(self) -> str:
        return self.first_file.relative_path

    @property
    def description(self) -> str:
        return f"{self.first_file} <> {self.second_file} ({self.lines} lines)"


@dataclass(frozen=True)
class DuplicationStats:
    clones: int
    duplicated_lines: int
    percentage: float


@dataclass(frozen=True)
class DependencyChange:
    name: str
    version: Optional[str]
    manifest: str

    @property
    def relative_path(self) -> str:
        return self.manifest

    @property
    def description(self) -> str:
        suffix = f" ({self.version})" if self.version else ""
        return f"{self.name}{suffix} in {self.manifest}"


@dataclass(frozen=True)
class ChangedFile:
    relative_path: str

    @property
    def description(self) -> str:
        return f"{self.relative_path} changed"


# ---------------------------------------------------------------------------
# Results


@dataclass(frozen=True)
class CheckResult:
    """Generic envelope produced by every check."""

    status: CheckStatus
    summary: str
    issues: Tuple[Any, ...] = ()


@dataclass(frozen=True)
class ComplexityResult(CheckResult):
    available: bool = True


@dataclass(frozen=True)
class DuplicationResult(CheckResult):
    available: bool = True
    statistics: Optional[DuplicationStats] = None

    @property
    def duplicates(self) -> Tuple[DuplicateEntry, ...]:
        return self.issues


@dataclass(frozen=True)
class DependencyResult(CheckResult):
    new_deps: Tuple[DependencyChange, ...] = ()
    removed_deps: Tuple[DependencyChange, ...] = ()


@dataclass(frozen=True)
class CouplingResult(CheckResult):
    files_changed: int = 0
    dirs_changed: int = 0
    additions: int = 0
    deletions: int = 0
    base_ref: Optional[str] = None


@dataclass(frozen=True)
class CheckSummary:
    """Row of the report's summary table."""

    name: str
    status: CheckStatus
    summary: str


@dataclass(frozen=True)
class AnalysisReport:
    """Aggregate result of one pipeline run."""

    repo_id: str
    repo_name: str
    repo_path: str
    timestamp: str
    language_summary: Tuple[LanguageCount, ...]
    total_files: int
    checks: Tuple[CheckSummary, ...]
    file_size: CheckResult
    function_size: CheckResult
    error_patterns: CheckResult
    complexity: ComplexityResult
    duplication: DuplicationResult
    dependencies: DependencyResult
    coupling: CouplingResult

    @property
    def status(self) -> CheckStatus:
        """Overall health: the worst status across all checks."""
        return CheckStatus.worst(check.status for check in self.checks)

    def to_dict(self) -> Dict[str, Any]:
        """Return JSON-serialisable data with statuses flattened to strings."""
        data = _plain(asdict(self))
        data["status"] = self.status.value
        return data


def _plain(value: Any) -> Any:
    if isinstance(value, CheckStatus):
        return value.value
    if isinstance(value, dict):
        return {key: _plain(item) for key, item in value.items()}
    if isinstance(value, (list, tuple)):
        return [_plain(item) for item in value]
    return value


__all__ = [
    "AnalysisReport",
    "ChangedFile",
    "CheckResult",
    "CheckStatus",
    "CheckSummary",
    "ComplexityIssue",
    "ComplexityResult",
    "CouplingResult",
    "DependencyChange",
    "DependencyResult",
    "DuplicateEntry",
    "DuplicateSpan",
    "DuplicationResult",
    "DuplicationStats",
    "ErrorPatternIssue",
    "FileSizeIssue",
    "FunctionSizeIssue",
    "LanguageCount",
    "SourceFile",
]
