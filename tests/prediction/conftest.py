"""Fixtures for predictive monitoring tests."""

from __future__ import annotations

import pytest

from aegis.prediction.repo_state import RepoState
from aegis.shared.infrastructure.execution.command_runner import CommandResult


class FakeRunner:
    """Answers git queries from a table keyed by the argument tuple after ``git``."""

    def __init__(self, responses=None):
        self.responses = dict(responses or {})
        self.calls = []

    def run(self, command, cwd=None, timeout=None, env=None):
        args = tuple(command[1:])
        self.calls.append(args)
        if args not in self.responses:
            return CommandResult(" ".join(command), 128, "", "not a git repository", 0.0)
        return CommandResult(" ".join(command), 0, self.responses[args], "", 0.0)


@pytest.fixture
def make_repo(project_root):
    """Factory returning a RepoState backed by canned git output, plus its runner."""

    def _make(responses=None):
        runner = FakeRunner(responses)
        return RepoState(project_root, runner=runner), runner

    return _make


@pytest.fixture
def repo_state(make_repo):
    repo, _ = make_repo()
    return repo
