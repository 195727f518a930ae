"""Base classes for quality checks."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional, Sequence

from ..config import AnalysisSettings
from ..models import CheckResult, SourceFile


@dataclass(frozen=True)
class CheckContext:
    """Read-only inputs shared by every check in a run."""

    repo_path: Path
    files: Sequence[SourceFile]
    settings: AnalysisSettings = field(default_factory=AnalysisSettings)


class Check(ABC):
    """Contract for checks that turn a collected repository into a result."""

    #: Stable identifier, also the report attribute holding the result.
    key: str = ""
    #: Display name used in the report's summary table.
    name: str = ""

    @abstractmethod
    def run(self, context: CheckContext) -> CheckResult:
        """Produce a fresh result; must not mutate shared state."""


def read_source(source: SourceFile) -> Optional[str]:
    """Return the file's text, or None when it cannot be read or decoded."""
    try:
        return Path(source.absolute_path).read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError):
        return None


__all__ = ["Check", "CheckContext", "read_source"]
