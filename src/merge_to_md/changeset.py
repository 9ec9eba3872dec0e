"""Change sets reported by version control, as an alternative source of paths."""

from __future__ import annotations

import os
import subprocess  # noqa: S404
from typing import TYPE_CHECKING, Protocol

from merge_to_md.exceptions import GitCommandError
from merge_to_md.logging import logger

if TYPE_CHECKING:
    from pathlib import Path

_MOVED_STATUSES = frozenset("RC")


class ChangedPathsProvider(Protocol):
    """Anything able to list the paths of added or modified files."""

    def get_changed_paths(self) -> list[str]:
        """Return the changed paths, relative to the working directory."""
        ...


def parse_porcelain(output: str) -> list[str]:
    """Parse the output of ``git status --porcelain -z`` into a list of paths.

    Entries are NUL-terminated: a two-character status code, a space, then the
    path, unquoted. A rename or copy entry holds the new path and is followed by
    an extra field with the original path, which is skipped. Deleted entries
    (``D`` in either column) are dropped. The order of the entries is kept.

    Args:
        output (str): the raw command output

    Returns:
        list[str]: the added/modified paths, as printed by git
    """
    paths: list[str] = []
    fields = iter(output.split("\0"))
    for entry in fields:
        if len(entry) < 4:
            continue
        status = entry[:2]
        if _MOVED_STATUSES.intersection(status):
            next(fields, None)
        if "D" in status:
            continue
        paths.append(entry[3:])
    return paths


class GitStatusProvider:
    """List added and modified files of the git work tree containing `root`.

    git prints porcelain paths relative to the top of the work tree; they are
    rewritten relative to `root` so that they can be resolved like path arguments.
    """

    def __init__(self, root: Path, git_bin: str = "git") -> None:
        self.root = root
        self.git_bin = git_bin

    def _run(self, *args: str) -> str:
        cmd = [self.git_bin, *args]
        try:
            out = subprocess.run(  # noqa: S603
                cmd,
                cwd=str(self.root),
                text=True,
                capture_output=True,
                check=False,
            )
        except FileNotFoundError as e:
            raise GitCommandError(command=" ".join(cmd), returncode=127, stdout="", stderr=str(e)) from e
        if out.returncode != 0:
            raise GitCommandError(
                command=" ".join(cmd),
                returncode=out.returncode,
                stdout=out.stdout,
                stderr=out.stderr,
            )
        return out.stdout

    def get_changed_paths(self) -> list[str]:
        """Return the added/modified paths, relative to `root`, in git's order.

        Raises:
            GitCommandError: if git is missing or one of its invocations fails.

        Returns:
            list[str]: the changed paths
        """
        prefix = self._run("rev-parse", "--show-prefix").rstrip("\n")
        paths = parse_porcelain(self._run("status", "--porcelain", "-z"))
        logger.info("git status reported %d added/modified paths", len(paths))
        if not prefix:
            return paths
        return [os.path.relpath(p, prefix).replace("\\", "/") for p in paths]
