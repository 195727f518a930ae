"""Git helpers used by the coupling and dependency-drift checks."""

from .diff import DiffStat, DiffStatCollector, DiffStrategy, default_strategies, parse_diff_stat
from .history import RevisionReader

__all__ = [
    "DiffStat",
    "DiffStatCollector",
    "DiffStrategy",
    "RevisionReader",
    "default_strategies",
    "parse_diff_stat",
]
