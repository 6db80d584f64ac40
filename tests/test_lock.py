"""Tests for reconciliation locking."""
import fcntl
import os
import time

import pytest

from ark.core.lock import LockError, ReconcileLock, check_lock_status


class TestReconcileLock:
    """Test file-based locking mechanism."""

    def test_acquire_and_release(self, tmp_path):
        """Can acquire and release lock."""
        lock_file = tmp_path / "reconcile.lock"
        lock = ReconcileLock(lock_file=lock_file)

        assert lock.acquire() is True
        assert lock_file.exists()

        lock.release()
        assert lock_file.exists()
        assert lock_file.read_text() == ""

    def test_concurrent_lock_fails(self, tmp_path):
        """Second lock attempt fails when first is held."""
        lock_file = tmp_path / "reconcile.lock"

        lock1 = ReconcileLock(lock_file=lock_file, timeout=0)
        lock1.acquire()

        lock2 = ReconcileLock(lock_file=lock_file, timeout=0)
        with pytest.raises(LockError) as exc_info:
            lock2.acquire()

        assert "Another Ark reconciliation is in progress" in str(exc_info.value)
        assert f"PID {os.getpid()}" in str(exc_info.value)
        assert lock2.lock_fd is None

        lock1.release()

    def test_context_manager(self, tmp_path):
        """Lock works as context manager."""
        lock_file = tmp_path / "reconcile.lock"

        with ReconcileLock(lock_file=lock_file):
            assert lock_file.exists()

        assert check_lock_status(lock_file) is None

    def test_waiter_keeps_same_lock_file(self, tmp_path):
        """A process that opened the file before release still excludes newcomers."""
        lock_file = tmp_path / "reconcile.lock"
        holder = ReconcileLock(lock_file=lock_file)
        holder.acquire()
        waiter = open(lock_file, 'a+')

        holder.release()
        fcntl.flock(waiter.fileno(), fcntl.LOCK_EX | fcntl.LOCK_NB)
        try:
            with pytest.raises(LockError):
                ReconcileLock(lock_file=lock_file).acquire()
        finally:
            fcntl.flock(waiter.fileno(), fcntl.LOCK_UN)
            waiter.close()

    def test_lock_timeout(self, tmp_path):
        """Lock times out after specified period."""
        lock_file = tmp_path / "reconcile.lock"

        lock1 = ReconcileLock(lock_file=lock_file)
        lock1.acquire()

        lock2 = ReconcileLock(lock_file=lock_file, timeout=0.5)
        start = time.monotonic()

        with pytest.raises(LockError) as exc_info:
            lock2.acquire()

        elapsed = time.monotonic() - start
        assert elapsed >= 0.5
        assert elapsed < 2.0
        assert "Timeout waiting for lock" in str(exc_info.value)

        lock1.release()

    def test_lock_info_written(self, tmp_path):
        """Lock file contains PID and timestamp."""
        lock_file = tmp_path / "reconcile.lock"
        lock = ReconcileLock(lock_file=lock_file)

        lock.acquire()
        lines = lock_file.read_text().splitlines()

        assert len(lines) >= 2
        assert str(os.getpid()) in lines[0]
        assert '-' in lines[1]

        lock.release()

    def test_lock_directory_creation(self, tmp_path):
        """Lock directory is created if missing."""
        lock_file = tmp_path / "subdir" / "ark" / "reconcile.lock"

        with ReconcileLock(lock_file=lock_file):
            assert lock_file.parent.exists()


class TestCheckLockStatus:
    """Test lock inspection."""

    def test_no_lock_file(self, tmp_path):
        assert check_lock_status(tmp_path / "missing.lock") is None

    def test_held_lock(self, tmp_path):
        lock_file = tmp_path / "reconcile.lock"

        with ReconcileLock(lock_file=lock_file):
            info = check_lock_status(lock_file)

        assert info['pid'] == str(os.getpid())
        assert info['lock_file'] == str(lock_file)

    def test_stale_lock_file(self, tmp_path):
        """A lock file nobody holds is reported as free."""
        lock_file = tmp_path / "reconcile.lock"
        lock_file.write_text("12345\n2024-01-01 00:00:00\n")

        assert check_lock_status(lock_file) is None
