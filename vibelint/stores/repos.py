"""Registry of repositories known to vibelint."""

from __future__ import annotations

from dataclasses import asdict, dataclass
from datetime import UTC, datetime
import hashlib
import json
from pathlib import Path
from typing import Dict, List, Optional

from ..config import vibelint_home

_REGISTRY_VERSION = 1
REGISTRY_FILENAME = "repos.json"


class RepoNotFoundError(LookupError):
    """Raised when an identifier matches no registered repository."""


@dataclass(frozen=True)
class RepoRef:
    id: str
    name: str
    path: str
    added_at: str


def repo_id_for(path: Path) -> str:
    """Stable short identifier derived from the resolved path."""
    digest = hashlib.sha1(str(path).encode("utf-8")).hexdigest()
    return digest[:12]


class RepoRegistry:
    """JSON-backed mapping of repository ids to paths on disk."""

    def __init__(self, path: Path | None = None) -> None:
        self._path = path if path is not None else vibelint_home() / REGISTRY_FILENAME
        self._repos: Dict[str, RepoRef] = {}
        self._load(self._path)

    @property
    def path(self) -> Path:
        return self._path

    def add(self, repo_path: Path, *, name: str | None = None) -> RepoRef:
        """Register ``repo_path`` (idempotent) and persist the registry."""
        resolved = Path(repo_path).expanduser().resolve()
        if not resolved.is_dir():
            raise FileNotFoundError(f"Repository path does not exist: {resolved}")
        repo_id = repo_id_for(resolved)
        existing = self._repos.get(repo_id)
        if existing is not None and (name is None or name == existing.name):
            return existing
        ref = RepoRef(
            id=repo_id,
            name=name or (existing.name if existing else resolved.name),
            path=str(resolved),
            added_at=existing.added_at if existing else _now(),
        )
        self._repos[repo_id] = ref
        self.persist()
        return ref

    def get(self, repo_id: str) -> RepoRef:
        try:
            return self._repos[repo_id]
        except KeyError:
            raise RepoNotFoundError(f"Repository not found: {repo_id}") from None

    def find(self, identifier: str) -> Optional[RepoRef]:
        """Look up by id, then by name, then by resolved path."""
        if identifier in self._repos:
            return self._repos[identifier]
        for ref in self._repos.values():
            if ref.name == identifier:
                return ref
        # Compared against the stored path so a deleted checkout still matches.
        resolved = str(Path(identifier).expanduser().resolve())
        for ref in self._repos.values():
            if ref.path == resolved:
                return ref
        return None

    def list(self) -> List[RepoRef]:
        return sorted(self._repos.values(), key=lambda ref: ref.name)

    def remove(self, repo_id: str) -> None:
        if self._repos.pop(repo_id, None) is None:
            raise RepoNotFoundError(f"Repository not found: {repo_id}")
        self.persist()

    def persist(self) -> None:
        payload = {
            "version": _REGISTRY_VERSION,
            "repos": [asdict(ref) for ref in self.list()],
        }
        self._path.parent.mkdir(parents=True, exist_ok=True)
        self._path.write_text(json.dumps(payload, indent=2, sort_keys=True), encoding="utf-8")

    # ------------------------------------------------------------------
    # Internal helpers

    def _load(self, path: Path) -> None:
        try:
            data = json.loads(path.read_text(encoding="utf-8"))
        except FileNotFoundError:
            return
        except (OSError, json.JSONDecodeError):
            return
        if not isinstance(data, dict) or data.get("version") != _REGISTRY_VERSION:
            return
        entries = data.get("repos")
        if not isinstance(entries, list):
            return
        for raw in entries:
            if not isinstance(raw, dict):
                continue
            if not all(isinstance(raw.get(key), str) for key in ("id", "name", "path", "added_at")):
                continue
            ref = RepoRef(id=raw["id"], name=raw["name"], path=raw["path"], added_at=raw["added_at"])
            self._repos[ref.id] = ref


def _now() -> str:
    return datetime.now(UTC).isoformat().replace("+00:00", "Z")


__all__ = ["REGISTRY_FILENAME", "RepoNotFoundError", "RepoRef", "RepoRegistry", "repo_id_for"]
