"""Source file collection and language classification."""

from __future__ import annotations

import os
from collections import defaultdict
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Iterable, List

from .logging import get_logger
from .models import LanguageCount, SourceFile

DEFAULT_MAX_FILES = 10_000

LANGUAGE_BY_EXTENSION: Dict[str, str] = {
    ".ts": "typescript",
    ".tsx": "typescript",
    ".js": "javascript",
    ".jsx": "javascript",
    ".py": "python",
    ".go": "go",
    ".java": "java",
    ".rs": "rust",
    ".cs": "csharp",
    ".rb": "ruby",
}

SKIP_DIRS = frozenset(
    {
        "node_modules",
        ".git",
        "dist",
        "build",
        "target",
        ".next",
        "__pycache__",
        "vendor",
        ".venv",
        "venv",
        ".vibelint",
        ".claude",
        ".cursor",
        ".windsurf",
        "coverage",
        ".nyc_output",
    }
)

logger = get_logger("collector")


@dataclass(frozen=True)
class LanguageSummary:
    """Files grouped under one language."""

    language: str
    file_count: int
    files: tuple[SourceFile, ...]

    def as_count(self) -> LanguageCount:
        return LanguageCount(language=self.language, file_count=self.file_count)


def detect_language(filename: str) -> str | None:
    """Return the language key for ``filename`` or None when unrecognised."""
    return LANGUAGE_BY_EXTENSION.get(Path(filename).suffix.lower())


def collect_source_files(
    repo_path: str | Path, max_files: int = DEFAULT_MAX_FILES
) -> List[SourceFile]:
    """Walk ``repo_path`` depth-first and return recognised source files.

    Coverage is best-effort: the walk stops as soon as ``max_files`` entries
    have been collected, even partway through a directory, so a very large
    repository is only partially analysed. Directories that cannot be read
    are skipped and the walk continues elsewhere.
    """
    root = Path(repo_path)
    results: List[SourceFile] = []

    def _walk(directory: Path) -> None:
        if len(results) >= max_files:
            return
        try:
            with os.scandir(directory) as iterator:
                entries = sorted(iterator, key=lambda entry: entry.name)
        except OSError as exc:
            logger.debug("Skipping unreadable directory %s: %s", directory, exc)
            return

        for entry in entries:
            if len(results) >= max_files:
                return
            try:
                is_dir = entry.is_dir(follow_symlinks=False)
                is_file = entry.is_file()
            except OSError:
                continue
            if is_dir:
                if entry.name in SKIP_DIRS or entry.name.startswith("."):
                    continue
                _walk(Path(entry.path))
            elif is_file:
                extension = Path(entry.name).suffix.lower()
                language = LANGUAGE_BY_EXTENSION.get(extension)
                if language is None:
                    continue
                absolute = Path(entry.path)
                results.append(
                    SourceFile(
                        absolute_path=str(absolute),
                        relative_path=absolute.relative_to(root).as_posix(),
                        language=language,
                        extension=extension,
                    )
                )

    _walk(root)
    return results


def summarize_languages(files: Iterable[SourceFile]) -> List[LanguageSummary]:
    """Group files by language, largest group first."""
    grouped: Dict[str, List[SourceFile]] = defaultdict(list)
    for source in files:
        grouped[source.language].append(source)
    summaries = [
        LanguageSummary(language=language, file_count=len(items), files=tuple(items))
        for language, items in grouped.items()
    ]
    summaries.sort(key=lambda summary: (-summary.file_count, summary.language))
    return summaries


__all__ = [
    "DEFAULT_MAX_FILES",
    "LANGUAGE_BY_EXTENSION",
    "LanguageSummary",
    "SKIP_DIRS",
    "collect_source_files",
    "detect_language",
    "summarize_languages",
]
