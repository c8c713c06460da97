"""Tests for the repository lock and atomic writes."""

from __future__ import annotations

import os
from unittest.mock import patch

import pytest

from aegis.shared.domain.exceptions import AegisError, LockTimeoutError
from aegis.shared.infrastructure.file_lock import atomic_write_text, file_lock


class TestFileLock:
    def test_lock_is_reentrant_after_release(self, tmp_path):
        lock_path = tmp_path / "state" / "repair.lock"

        with file_lock(lock_path, timeout=0.1):
            assert lock_path.exists()
        with file_lock(lock_path, timeout=0.1):
            pass

    def test_contended_lock_times_out(self, tmp_path):
        lock_path = tmp_path / "repair.lock"

        with file_lock(lock_path, timeout=1.0):
            with pytest.raises(LockTimeoutError) as exc:
                with file_lock(lock_path, timeout=0.1):
                    pass

        assert isinstance(exc.value, AegisError)
        assert exc.value.context == {"path": str(lock_path)}
        assert "within 0.1s" in str(exc.value)


class TestAtomicWriteText:
    def test_writes_and_replaces(self, tmp_path):
        path = tmp_path / "nested" / "file.txt"

        atomic_write_text(path, "first")
        atomic_write_text(path, "second")

        assert path.read_text() == "second"
        assert [p.name for p in path.parent.iterdir()] == ["file.txt"]

    def test_failed_replace_keeps_original(self, tmp_path):
        path = tmp_path / "file.txt"
        path.write_text("original")

        with patch("aegis.shared.infrastructure.file_lock.os.replace", side_effect=OSError("disk full")):
            with pytest.raises(OSError):
                atomic_write_text(path, "replacement")

        assert path.read_text() == "original"
        assert [p.name for p in tmp_path.iterdir()] == ["file.txt"]

    def test_preserves_mode(self, tmp_path):
        path = tmp_path / "script.sh"
        path.write_text("echo hi")
        os.chmod(path, 0o755)

        atomic_write_text(path, "echo bye")

        assert path.stat().st_mode & 0o777 == 0o755
