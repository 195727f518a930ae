"""Diff statistics with an ordered fallback chain of base references."""

from __future__ import annotations

import re
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, List, Optional, Sequence, Tuple

from ..logging import get_logger
from ..process import CommandRunner, run_command

_SUMMARY_PATTERN = re.compile(r"\d+\s+files?\s+changed")
_INSERTIONS_PATTERN = re.compile(r"(\d+)\s+insertion")
_DELETIONS_PATTERN = re.compile(r"(\d+)\s+deletion")
_BRACE_RENAME = re.compile(r"\{([^{}]*?) => ([^{}]*?)\}")

# Wide stat output keeps long paths whole; quotePath off keeps non-ASCII paths unescaped.
DIFF_COMMAND = ("git", "-c", "core.quotePath=false", "diff", "--stat=1000")

logger = get_logger("git.diff")


@dataclass(frozen=True)
class DiffStrategy:
    """A single revision expression to diff the working state against."""

    label: str
    revision: str


@dataclass(frozen=True)
class DiffStat:
    """Parsed ``git diff --stat`` output."""

    ref: str
    files: Tuple[str, ...]
    insertions: int = 0
    deletions: int = 0

    @property
    def directories(self) -> Tuple[str, ...]:
        """Unique parent directories, with "." for files at the repository root."""
        seen: List[str] = []
        for path in self.files:
            parent = path.rsplit("/", 1)[0] if "/" in path else "."
            if parent not in seen:
                seen.append(parent)
        return tuple(seen)


def default_strategies(base_branch: str = "main") -> Tuple[DiffStrategy, ...]:
    """Configured base branch, then master, then the previous commit."""
    candidates = (
        DiffStrategy(label=base_branch, revision=f"{base_branch}...HEAD"),
        DiffStrategy(label="master", revision="master...HEAD"),
        DiffStrategy(label="HEAD~1", revision="HEAD~1"),
    )
    unique: List[DiffStrategy] = []
    for strategy in candidates:
        if all(existing.revision != strategy.revision for existing in unique):
            unique.append(strategy)
    return tuple(unique)


class DiffStatCollector:
    """Runs ``git diff --stat`` against each strategy until one succeeds."""

    def __init__(
        self,
        runner: CommandRunner | None = None,
        strategies: Callable[[str], Sequence[DiffStrategy]] = default_strategies,
    ) -> None:
        self._runner = runner or run_command
        self._strategies = strategies

    def collect(
        self, repo_path: Path, base_branch: str = "main", *, timeout: float | None = None
    ) -> Optional[DiffStat]:
        """Return the first successful diff, or None when every strategy fails."""
        for strategy in self._strategies(base_branch):
            result = self._runner(
                [*DIFF_COMMAND, strategy.revision],
                cwd=repo_path,
                timeout=timeout,
            )
            if result.success:
                logger.debug("Diff against %s succeeded", strategy.label)
                return parse_diff_stat(result.stdout, ref=strategy.label)
            logger.debug("Diff against %s failed; trying next strategy", strategy.label)
        return None


def parse_diff_stat(output: str, *, ref: str) -> DiffStat:
    """Parse stat lines into changed paths plus insertion/deletion totals."""
    lines = [line for line in output.splitlines() if line.strip()]
    summary = ""
    if lines and _SUMMARY_PATTERN.search(lines[-1]):
        summary = lines[-1]
        lines = lines[:-1]

    files: List[str] = []
    for line in lines:
        path = line.split("|", 1)[0].strip()
        if path:
            files.append(_resolve_rename(path))

    insertions = _first_int(_INSERTIONS_PATTERN, summary)
    deletions = _first_int(_DELETIONS_PATTERN, summary)
    return DiffStat(ref=ref, files=tuple(files), insertions=insertions, deletions=deletions)


def _resolve_rename(path: str) -> str:
    if " => " not in path:
        return path
    if _BRACE_RENAME.search(path):
        resolved = _BRACE_RENAME.sub(lambda match: match.group(2), path)
        return Path(resolved).as_posix().replace("//", "/")
    return path.split(" => ", 1)[1].strip()


def _first_int(pattern: re.Pattern[str], text: str) -> int:
    match = pattern.search(text)
    return int(match.group(1)) if match else 0


__all__ = [
    "DIFF_COMMAND",
    "DiffStat",
    "DiffStatCollector",
    "DiffStrategy",
    "default_strategies",
    "parse_diff_stat",
]
