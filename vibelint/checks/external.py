"""Shared plumbing for checks delegated to external analyzer processes."""

from __future__ import annotations

import tempfile
from abc import abstractmethod
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Optional, Sequence, Tuple

from ..logging import get_logger
from ..models import CheckResult
from ..process import CommandResult, CommandRunner, run_command
from .base import Check, CheckContext

# Directories excluded from every external analyzer run.
EXCLUDED_DIRS: Tuple[str, ...] = (
    "node_modules",
    "dist",
    "build",
    "target",
    ".vibelint",
    "vendor",
    ".git",
    "coverage",
)

logger = get_logger("checks.external")


@dataclass(frozen=True)
class ExternalTool:
    """An optional analyzer binary that is probed before use."""

    name: str
    executable: str
    install_hint: str
    version_args: Tuple[str, ...] = ("--version",)


class DelegatedCheck(Check):
    """Probe, run, parse and classify an external tool, degrading to a pass.

    A missing tool yields ``available=False`` with a passing status. A failed
    run, empty output or output that cannot be parsed yields a passing
    ``available=True`` result, so a flaky tool never aborts the pipeline.
    """

    tool: ExternalTool

    def __init__(self, runner: CommandRunner | None = None) -> None:
        self._runner = runner or run_command

    def is_available(self, *, timeout: float | None = None) -> bool:
        result = self._runner(
            [self.tool.executable, *self.tool.version_args], timeout=timeout
        )
        return result.success

    def run(self, context: CheckContext) -> CheckResult:
        timeout = context.settings.tool_timeout
        if not self.is_available(timeout=timeout):
            logger.info("%s not installed; skipping %s check", self.tool.name, self.key)
            return self.degraded(
                f"Skipped: {self.tool.name} not installed ({self.tool.install_hint})",
                available=False,
            )

        with tempfile.TemporaryDirectory(prefix="vibelint-") as scratch:
            workdir = Path(scratch)
            args = self.build_args(context, workdir)
            result = self._runner(
                [self.tool.executable, *args], cwd=context.repo_path, timeout=timeout
            )
            raw = self.read_output(result, workdir)

        if not raw:
            logger.info("%s produced no output for %s", self.tool.name, context.repo_path)
            return self.degraded(f"{self.tool.name} returned no results", available=True)

        try:
            payload = self.parse(raw, context)
        except (ValueError, KeyError, TypeError) as exc:
            logger.warning("Could not parse %s output: %s", self.tool.name, exc)
            return self.degraded(f"Failed to parse {self.tool.name} output", available=True)

        return self.classify(payload, context)

    def read_output(self, result: CommandResult, workdir: Path) -> Optional[str]:
        """Return the tool's raw structured output; stdout by default."""
        if not result.success:
            return None
        return result.stdout

    @abstractmethod
    def build_args(self, context: CheckContext, workdir: Path) -> Sequence[str]:
        """Arguments passed after the executable name."""

    @abstractmethod
    def parse(self, raw: str, context: CheckContext) -> Any:
        """Parse raw output; raise ValueError, KeyError or TypeError when malformed."""

    @abstractmethod
    def classify(self, payload: Any, context: CheckContext) -> CheckResult:
        """Turn parsed output into a result using the run's thresholds."""

    @abstractmethod
    def degraded(self, summary: str, *, available: bool) -> CheckResult:
        """Passing result carrying an explanatory summary."""


def normalise_tool_path(path: str, repo_path: Path) -> str:
    """Return ``path`` relative to the repository in POSIX form."""
    candidate = Path(path)
    if candidate.is_absolute():
        try:
            return candidate.relative_to(repo_path).as_posix()
        except ValueError:
            try:
                return candidate.resolve().relative_to(repo_path.resolve()).as_posix()
            except ValueError:
                return candidate.as_posix()
    normalised = candidate.as_posix()
    while normalised.startswith("./"):
        normalised = normalised[2:]
    return normalised


__all__ = ["DelegatedCheck", "EXCLUDED_DIRS", "ExternalTool", "normalise_tool_path"]
