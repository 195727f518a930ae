"""Analysis history: full snapshots plus compact trend metrics per repository."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Dict, List, Optional

from ..config import vibelint_home
from ..models import AnalysisReport

_HISTORY_VERSION = 1
HISTORY_DIRNAME = "history"
DEFAULT_HISTORY_LIMIT = 20


def analysis_snapshot(report: AnalysisReport) -> Dict[str, Any]:
    """Full record of one run; coupling lives under ``diff_stats``."""
    data = report.to_dict()
    coupling = data.pop("coupling")
    return {
        "repo_id": report.repo_id,
        "timestamp": report.timestamp,
        "status": report.status.value,
        "total_files": report.total_files,
        "language_summary": data["language_summary"],
        "checks": data["checks"],
        "results": {
            key: data[key]
            for key in (
                "file_size",
                "function_size",
                "error_patterns",
                "complexity",
                "duplication",
                "dependencies",
            )
        },
        "diff_stats": coupling,
    }


def metrics_snapshot(report: AnalysisReport) -> Dict[str, Any]:
    """Issue counts only, for plotting trends across runs."""
    duplication = report.duplication
    clones = duplication.statistics.clones if duplication.statistics else len(duplication.duplicates)
    return {
        "repo_id": report.repo_id,
        "timestamp": report.timestamp,
        "total_files": report.total_files,
        "file_size_issues": len(report.file_size.issues),
        "function_size_issues": len(report.function_size.issues),
        "error_pattern_issues": len(report.error_patterns.issues),
        "complexity_issues": len(report.complexity.issues),
        "duplication_clones": clones,
        "dependency_changes": len(report.dependencies.new_deps) + len(report.dependencies.removed_deps),
        "coupling_files": report.coupling.files_changed,
        "coupling_dirs": report.coupling.dirs_changed,
    }


class HistoryStore:
    """One JSON file per repository under ``<home>/history``.

    Records are appended newest-last; reads return newest first.
    """

    def __init__(self, root: Path | None = None, *, max_entries: int = 200) -> None:
        self._root = root if root is not None else vibelint_home() / HISTORY_DIRNAME
        self._max_entries = max_entries

    def record(self, report: AnalysisReport) -> None:
        payload = self._load(report.repo_id)
        payload["analyses"].append(analysis_snapshot(report))
        payload["metrics"].append(metrics_snapshot(report))
        payload["analyses"] = payload["analyses"][-self._max_entries:]
        payload["metrics"] = payload["metrics"][-self._max_entries:]
        self._write(report.repo_id, payload)

    def latest(self, repo_id: str) -> Optional[Dict[str, Any]]:
        analyses = self._load(repo_id)["analyses"]
        return analyses[-1] if analyses else None

    def history(self, repo_id: str, limit: int = DEFAULT_HISTORY_LIMIT) -> List[Dict[str, Any]]:
        analyses = self._load(repo_id)["analyses"]
        return list(reversed(analyses))[: max(limit, 0)]

    def metrics(self, repo_id: str, limit: int = DEFAULT_HISTORY_LIMIT) -> List[Dict[str, Any]]:
        metrics = self._load(repo_id)["metrics"]
        return list(reversed(metrics))[: max(limit, 0)]

    # ------------------------------------------------------------------
    # Internal helpers

    def _file(self, repo_id: str) -> Path:
        return self._root / f"{repo_id}.json"

    def _load(self, repo_id: str) -> Dict[str, Any]:
        empty: Dict[str, Any] = {"version": _HISTORY_VERSION, "analyses": [], "metrics": []}
        try:
            data = json.loads(self._file(repo_id).read_text(encoding="utf-8"))
        except FileNotFoundError:
            return empty
        except (OSError, json.JSONDecodeError):
            return empty
        if not isinstance(data, dict) or data.get("version") != _HISTORY_VERSION:
            return empty
        analyses = data.get("analyses")
        metrics = data.get("metrics")
        return {
            "version": _HISTORY_VERSION,
            "analyses": [item for item in analyses if isinstance(item, dict)] if isinstance(analyses, list) else [],
            "metrics": [item for item in metrics if isinstance(item, dict)] if isinstance(metrics, list) else [],
        }

    def _write(self, repo_id: str, payload: Dict[str, Any]) -> None:
        path = self._file(repo_id)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(json.dumps(payload, indent=2, sort_keys=True), encoding="utf-8")


__all__ = [
    "DEFAULT_HISTORY_LIMIT",
    "HistoryStore",
    "analysis_snapshot",
    "metrics_snapshot",
]
