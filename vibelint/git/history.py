"""Read committed revisions of repository files."""

from __future__ import annotations

from pathlib import Path
from typing import Optional

from ..process import CommandRunner, run_command


class RevisionReader:
    """Fetches file contents as of an earlier commit via ``git show``."""

    def __init__(self, runner: CommandRunner | None = None) -> None:
        self._runner = runner or run_command

    def read(
        self,
        repo_path: Path,
        relative_path: str,
        *,
        revision: str = "HEAD~1",
        timeout: float | None = None,
    ) -> Optional[str]:
        """Return the file at ``revision``, or None when git cannot produce it.

        None covers a repository without that many commits, a file that did
        not exist yet, and a directory that is not a git repository at all.
        """
        result = self._runner(
            ["git", "show", f"{revision}:{relative_path}"],
            cwd=repo_path,
            timeout=timeout,
        )
        if not result.success:
            return None
        return result.stdout


__all__ = ["RevisionReader"]
