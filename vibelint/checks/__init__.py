"""Quality checks run by the engine."""

from __future__ import annotations

from typing import List

from ..process import CommandRunner
from .base import Check, CheckContext, read_source
from .complexity import ComplexityCheck
from .coupling import CouplingCheck
from .dependencies import DependencyCheck
from .duplication import DuplicationCheck
from .error_patterns import ErrorPatternCheck
from .external import DelegatedCheck, ExternalTool
from .size import FileSizeCheck, FunctionSizeCheck


def default_checks(runner: CommandRunner | None = None) -> List[Check]:
    """Every built-in check, in report order."""
    return [
        ComplexityCheck(runner),
        DuplicationCheck(runner),
        ErrorPatternCheck(),
        FileSizeCheck(),
        FunctionSizeCheck(),
        DependencyCheck(runner),
        CouplingCheck(runner),
    ]


__all__ = [
    "Check",
    "CheckContext",
    "ComplexityCheck",
    "CouplingCheck",
    "DelegatedCheck",
    "DependencyCheck",
    "DuplicationCheck",
    "ErrorPatternCheck",
    "ExternalTool",
    "FileSizeCheck",
    "FunctionSizeCheck",
    "default_checks",
    "read_source",
]
