"""Subprocess helpers shared by git lookups and external analyzers."""

from __future__ import annotations

import subprocess
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Optional, Sequence

from .logging import get_logger

DEFAULT_TIMEOUT = 30.0

logger = get_logger("process")


@dataclass(frozen=True)
class CommandResult:
    """Captured outcome of a single command invocation."""

    stdout: str
    success: bool
    returncode: Optional[int] = None


CommandRunner = Callable[..., CommandResult]


def run_command(
    args: Sequence[str],
    *,
    cwd: Path | str | None = None,
    timeout: float | None = DEFAULT_TIMEOUT,
) -> CommandResult:
    """Run ``args`` without a shell and report success instead of raising.

    A missing executable, a non-zero exit code and a timeout all produce
    ``success=False`` with empty output.
    """
    command = list(args)
    try:
        completed = subprocess.run(
            command,
            cwd=str(cwd) if cwd is not None else None,
            capture_output=True,
            text=True,
            encoding="utf-8",
            errors="replace",
            timeout=timeout,
            check=False,
        )
    except FileNotFoundError:
        logger.debug("Command not found: %s", command[0])
        return CommandResult(stdout="", success=False)
    except subprocess.TimeoutExpired:
        logger.warning("Command timed out after %ss: %s", timeout, " ".join(command))
        return CommandResult(stdout="", success=False)
    except OSError as exc:
        logger.debug("Command failed to start (%s): %s", exc, " ".join(command))
        return CommandResult(stdout="", success=False)

    if completed.returncode != 0:
        logger.debug(
            "Command exited with %d: %s", completed.returncode, " ".join(command)
        )
        return CommandResult(stdout="", success=False, returncode=completed.returncode)
    return CommandResult(
        stdout=completed.stdout.strip(), success=True, returncode=completed.returncode
    )


__all__ = ["CommandResult", "CommandRunner", "DEFAULT_TIMEOUT", "run_command"]
