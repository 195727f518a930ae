"""Analysis engine: resolve, collect, run every check, aggregate."""

from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from datetime import UTC, datetime
from enum import Enum
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Sequence

from .checks import Check, CheckContext, default_checks
from .collector import collect_source_files, summarize_languages
from .config import Overrides, load_settings
from .logging import get_logger
from .models import AnalysisReport, CheckResult, CheckSummary, SourceFile
from .process import CommandRunner
from .stores.repos import RepoNotFoundError, RepoRegistry, repo_id_for

# Attributes of AnalysisReport that hold a check result.
REPORT_KEYS = (
    "complexity",
    "duplication",
    "error_patterns",
    "file_size",
    "function_size",
    "dependencies",
    "coupling",
)


class RepoMissingError(FileNotFoundError):
    """Raised when a registered repository's directory no longer exists."""


class RunPhase(str, Enum):
    RESOLVING = "resolving"
    COLLECTING = "collecting"
    CHECKING = "checking"
    AGGREGATING = "aggregating"
    DONE = "done"


@dataclass(frozen=True)
class ResolvedRepo:
    id: str
    name: str
    path: Path


def resolve_repo(identifier: str | Path, registry: RepoRegistry | None = None) -> ResolvedRepo:
    """Map a registry id, name or filesystem path to a repository on disk."""
    if registry is not None:
        ref = registry.find(str(identifier))
        if ref is not None:
            path = Path(ref.path)
            if not path.is_dir():
                raise RepoMissingError(f"Repository path does not exist: {path}")
            return ResolvedRepo(id=ref.id, name=ref.name, path=path)

    candidate = Path(identifier).expanduser()
    if candidate.is_dir():
        resolved = candidate.resolve()
        return ResolvedRepo(id=repo_id_for(resolved), name=resolved.name, path=resolved)
    raise RepoNotFoundError(f"Repository not found: {identifier}")


class Engine:
    """Runs the full check battery over one repository per call.

    Runs are independent and hold no shared mutable state; a failure in any
    check propagates to the caller after the remaining checks finish.
    """

    def __init__(
        self,
        registry: RepoRegistry | None = None,
        runner: CommandRunner | None = None,
        checks: Optional[Iterable[Check]] = None,
        max_workers: int | None = None,
    ) -> None:
        self.registry = registry
        self.checks: List[Check] = list(checks) if checks is not None else default_checks(runner)
        self.max_workers = max_workers
        self.logger = get_logger("engine")
        missing = [key for key in REPORT_KEYS if key not in {check.key for check in self.checks}]
        if missing:
            raise ValueError(f"Engine is missing checks for: {', '.join(missing)}")

    def run(self, identifier: str | Path, overrides: Optional[Overrides] = None) -> AnalysisReport:
        self._enter(RunPhase.RESOLVING, identifier)
        repo = self.resolve(identifier)

        settings = load_settings(repo.path, overrides)

        self._enter(RunPhase.COLLECTING, repo.path)
        files = collect_source_files(repo.path, max_files=settings.max_files)
        if len(files) >= settings.max_files:
            self.logger.warning(
                "Stopped collecting at %d files; results cover part of %s",
                settings.max_files,
                repo.path,
            )
        context = CheckContext(repo_path=repo.path, files=tuple(files), settings=settings)

        self._enter(RunPhase.CHECKING, f"{len(self.checks)} checks over {len(files)} files")
        results = self._run_checks(context)

        self._enter(RunPhase.AGGREGATING, repo.name)
        report = self._aggregate(repo, files, results)

        self._enter(RunPhase.DONE, report.status.value)
        return report

    def resolve(self, identifier: str | Path) -> ResolvedRepo:
        return resolve_repo(identifier, self.registry)

    # ------------------------------------------------------------------
    # Internal helpers

    def _enter(self, phase: RunPhase, detail: object) -> None:
        self.logger.info("[%s] %s", phase.value, detail)

    def _run_checks(self, context: CheckContext) -> Dict[str, CheckResult]:
        workers = self.max_workers or len(self.checks)
        with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="vibelint-check") as pool:
            futures = {check.key: pool.submit(check.run, context) for check in self.checks}
        # Leaving the context manager waits for every task; result() re-raises.
        return {key: future.result() for key, future in futures.items()}

    def _aggregate(
        self, repo: ResolvedRepo, files: Sequence[SourceFile], results: Dict[str, CheckResult]
    ) -> AnalysisReport:
        summaries = tuple(
            CheckSummary(name=check.name, status=results[check.key].status, summary=results[check.key].summary)
            for check in self.checks
        )
        languages = tuple(summary.as_count() for summary in summarize_languages(files))
        return AnalysisReport(
            repo_id=repo.id,
            repo_name=repo.name,
            repo_path=str(repo.path),
            timestamp=datetime.now(UTC).isoformat().replace("+00:00", "Z"),
            language_summary=languages,
            total_files=len(files),
            checks=summaries,
            **{key: results[key] for key in REPORT_KEYS},
        )


__all__ = ["Engine", "REPORT_KEYS", "RepoMissingError", "ResolvedRepo", "RunPhase", "resolve_repo"]
