"""Advisory repository lock and atomic file replacement."""

from __future__ import annotations

import contextlib
import fcntl
import os
import tempfile
import time
from pathlib import Path
from typing import Iterator

from aegis.shared.domain.exceptions import LockTimeoutError
from aegis.shared.infrastructure.logging import get_logger

logger = get_logger(__name__)

_POLL_INTERVAL = 0.05


@contextlib.contextmanager
def file_lock(lock_path: Path, timeout: float = 10.0) -> Iterator[Path]:
    """Hold an exclusive flock on ``lock_path`` for the duration of the block.

    Raises:
        LockTimeoutError: if another writer holds the lock past ``timeout``.
    """
    lock_path = Path(lock_path)
    lock_path.parent.mkdir(parents=True, exist_ok=True)
    deadline = time.monotonic() + timeout

    handle = open(lock_path, "a+")
    try:
        while True:
            try:
                fcntl.flock(handle.fileno(), fcntl.LOCK_EX | fcntl.LOCK_NB)
                break
            except BlockingIOError:
                if time.monotonic() >= deadline:
                    logger.warning("lock_timeout", path=str(lock_path), timeout=timeout)
                    raise LockTimeoutError(
                        f"Could not acquire {lock_path} within {timeout}s",
                        context={"path": str(lock_path)},
                    )
                time.sleep(_POLL_INTERVAL)

        logger.debug("lock_acquired", path=str(lock_path))
        try:
            yield lock_path
        finally:
            fcntl.flock(handle.fileno(), fcntl.LOCK_UN)
            logger.debug("lock_released", path=str(lock_path))
    finally:
        handle.close()


def atomic_write_text(path: Path, text: str, encoding: str = "utf-8") -> None:
    """Replace ``path`` with ``text`` via tempfile + os.replace.

    Readers see either the old or the new content, never a partial write.
    """
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)

    fd, tmp_path = tempfile.mkstemp(dir=str(path.parent), prefix=f".{path.name}.", suffix=".tmp")
    closed = False
    try:
        os.write(fd, text.encode(encoding))
        os.fsync(fd)
        os.close(fd)
        closed = True
        if path.exists():
            os.chmod(tmp_path, path.stat().st_mode & 0o777)
        os.replace(tmp_path, str(path))
    except BaseException:
        if not closed:
            os.close(fd)
        with contextlib.suppress(OSError):
            os.unlink(tmp_path)
        raise
