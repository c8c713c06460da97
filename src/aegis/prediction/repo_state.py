"""
Live repository state for predictive probes.

Wraps the handful of git queries the probes need. Each distinct query runs at
most once per RepoState, so one monitoring pass sees one consistent snapshot.
A failed or timed-out git command reads as "nothing there", never an error.
"""

from __future__ import annotations

import fnmatch
import hashlib
from pathlib import Path

from aegis.shared.infrastructure.execution.command_runner import CommandResult, CommandRunner
from aegis.shared.infrastructure.logging import get_logger

logger = get_logger(__name__)


class RepoState:
    def __init__(self, project_root: Path, runner: CommandRunner | None = None) -> None:
        self.project_root = Path(project_root)
        self.runner = runner or CommandRunner()
        self._cache: dict[tuple[str, ...], CommandResult] = {}

    def _git(self, *args: str) -> CommandResult:
        if args not in self._cache:
            self._cache[args] = self.runner.run(["git", *args], cwd=self.project_root)
        return self._cache[args]

    def _lines(self, *args: str) -> list[str]:
        result = self._git(*args)
        if not result.is_success:
            return []
        return [line for line in result.stdout.splitlines() if line.strip()]

    @property
    def is_git_repo(self) -> bool:
        return self._git("rev-parse", "--is-inside-work-tree").is_success

    def head(self) -> str | None:
        lines = self._lines("rev-parse", "HEAD")
        return lines[0].strip() if lines else None

    def modified_files(self) -> list[str]:
        """Paths with uncommitted changes (staged, unstaged or untracked)."""
        files = []
        for line in self._lines("status", "--porcelain", "--untracked-files=all"):
            path = line[3:].strip()
            if " -> " in path:
                path = path.split(" -> ", 1)[1]
            files.append(path.strip('"'))
        return files

    def is_modified(self, path: str) -> bool:
        target = path.rstrip("/")
        return any(f == target for f in self.modified_files())

    def is_directory_modified(self, directory: str) -> bool:
        prefix = directory.rstrip("/") + "/"
        return any(f.startswith(prefix) for f in self.modified_files())

    def modified_matching(self, pattern: str) -> list[str]:
        return [f for f in self.modified_files() if fnmatch.fnmatch(f, pattern)]

    def staged_files(self) -> list[str]:
        return self._lines("diff", "--cached", "--name-only")

    def commits_since(self, since: str, grep: str | None = None) -> list[str]:
        args = ["log", f"--since={since}", "--oneline"]
        if grep:
            args.append(f"--grep={grep}")
        return self._lines(*args)

    def fingerprint(self) -> str:
        """Stable digest of HEAD plus working-tree status."""
        raw = "\n".join([self.head() or "no-head", *sorted(self.modified_files())])
        return hashlib.sha256(raw.encode()).hexdigest()[:16]
