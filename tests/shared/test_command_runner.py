"""Tests for CommandRunner."""

from __future__ import annotations

import sys

from aegis.shared.infrastructure.execution.command_runner import CommandRunner


def python(code: str) -> list[str]:
    return [sys.executable, "-c", code]


class TestCommandRunner:
    def test_success(self):
        result = CommandRunner().run(python("print('hello')"))

        assert result.is_success
        assert result.stdout.strip() == "hello"

    def test_undecodable_output_is_replaced(self):
        result = CommandRunner().run(
            python("import sys; sys.stdout.buffer.write(b'\\xff\\xfe ok'); sys.stderr.buffer.write(b'\\xff'); sys.exit(3)")
        )

        assert result.exit_code == 3
        assert not result.is_success
        assert result.stdout == "�� ok"
        assert result.stderr == "�"

    def test_missing_executable(self, tmp_path):
        result = CommandRunner().run([str(tmp_path / "no-such-tool")])

        assert result.exit_code == 127
        assert not result.is_success

    def test_timeout_uses_default(self):
        result = CommandRunner(default_timeout=0.2).run(python("import time; time.sleep(5)"))

        assert result.is_timeout
        assert result.exit_code == -1
        assert not result.is_success
