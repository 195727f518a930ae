"""Persistence for the repository registry and analysis history."""

from .history import HistoryStore
from .repos import RepoNotFoundError, RepoRef, RepoRegistry

__all__ = ["HistoryStore", "RepoNotFoundError", "RepoRef", "RepoRegistry"]
