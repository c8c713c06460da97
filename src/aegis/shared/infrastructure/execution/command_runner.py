"""
Command Runner Service.

Runs external commands (git queries, remediation scripts) as blocking calls
with an explicit timeout. A timeout, a missing executable or a non-zero exit
comes back as a failed CommandResult; nothing here raises to the caller.
Long-lived processes are never waited on: they are spawned detached and
write to a log file.
"""

from __future__ import annotations

import os
import shlex
import subprocess
import time
from dataclasses import dataclass
from pathlib import Path

from aegis.shared.infrastructure.logging import get_logger

logger = get_logger(__name__)

DEFAULT_TIMEOUT = 30.0


@dataclass
class CommandResult:
    """Result of a command execution."""

    command: str
    exit_code: int
    stdout: str
    stderr: str
    duration: float
    is_timeout: bool = False

    @property
    def is_success(self) -> bool:
        """Check if command succeeded."""
        return self.exit_code == 0 and not self.is_timeout


class CommandRunner:
    """Blocking command execution with timeout and structured logging."""

    def __init__(self, default_timeout: float = DEFAULT_TIMEOUT):
        self.default_timeout = default_timeout

    def run(
        self,
        command: str | list[str],
        cwd: str | Path | None = None,
        timeout: float | None = None,
        env: dict[str, str] | None = None,
    ) -> CommandResult:
        """
        Execute a command and wait for it to finish.

        Args:
            command: Command string (split with shlex) or argument list
            cwd: Working directory
            timeout: Seconds before the process is killed
            env: Extra environment variables merged over os.environ

        Returns:
            CommandResult; exit code 127 when the executable is missing,
            -1 on timeout
        """
        args = shlex.split(command) if isinstance(command, str) else list(command)
        cmd_str = " ".join(args)
        timeout_val = timeout if timeout is not None else self.default_timeout

        run_env = os.environ.copy()
        if env:
            run_env.update(env)

        logger.debug("executing_command", command=cmd_str, cwd=str(cwd or "."), timeout=timeout_val)
        start = time.perf_counter()

        try:
            completed = subprocess.run(
                args,
                cwd=str(cwd) if cwd else None,
                env=run_env,
                capture_output=True,
                text=True,
                encoding="utf-8",
                errors="replace",
                timeout=timeout_val,
                check=False,
            )
        except subprocess.TimeoutExpired as e:
            logger.warning("command_timeout", command=cmd_str, timeout=timeout_val)
            return CommandResult(
                command=cmd_str,
                exit_code=-1,
                stdout=_decode(e.stdout),
                stderr=_decode(e.stderr) or f"timed out after {timeout_val}s",
                duration=time.perf_counter() - start,
                is_timeout=True,
            )
        except (FileNotFoundError, PermissionError, NotADirectoryError) as e:
            logger.warning("command_unavailable", command=cmd_str, error=str(e))
            return CommandResult(
                command=cmd_str,
                exit_code=127,
                stdout="",
                stderr=str(e),
                duration=time.perf_counter() - start,
            )

        result = CommandResult(
            command=cmd_str,
            exit_code=completed.returncode,
            stdout=completed.stdout or "",
            stderr=completed.stderr or "",
            duration=time.perf_counter() - start,
        )
        if not result.is_success:
            logger.debug("command_failed", command=cmd_str, exit_code=result.exit_code)
        return result

    def spawn_detached(
        self,
        command: str | list[str],
        log_path: Path,
        cwd: str | Path | None = None,
    ) -> int | None:
        """Start a long-running process in its own session and return its pid.

        Output goes to ``log_path``; the caller never waits on the process.
        Returns None if the process could not be started.
        """
        args = shlex.split(command) if isinstance(command, str) else list(command)
        cmd_str = " ".join(args)
        log_path = Path(log_path)
        log_path.parent.mkdir(parents=True, exist_ok=True)

        try:
            with open(log_path, "ab") as log_file:
                process = subprocess.Popen(
                    args,
                    cwd=str(cwd) if cwd else None,
                    stdin=subprocess.DEVNULL,
                    stdout=log_file,
                    stderr=subprocess.STDOUT,
                    start_new_session=True,
                )
        except OSError as e:
            logger.warning("detached_spawn_failed", command=cmd_str, error=str(e))
            return None

        logger.info("detached_process_started", command=cmd_str, pid=process.pid, log=str(log_path))
        return process.pid


def _decode(data: bytes | str | None) -> str:
    if data is None:
        return ""
    if isinstance(data, bytes):
        return data.decode("utf-8", errors="replace")
    return data
