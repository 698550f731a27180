"""
Cross-process advisory locks scoped to a directory.

A lock is a zero-length file ``<scope_dir>/<name>`` on which an exclusive,
non-blocking claim is attempted. Only the claim matters: the file is never
deleted and is reused by later runs.
"""

import sys
import time
from enum import Enum
from pathlib import Path
from typing import IO, Any, Callable, Optional

from loguru import logger

from updater.utils.constants import LOCK_MAX_RETRIES, LOCK_RETRY_DELAY

if sys.platform == "win32":
    import msvcrt
else:
    import fcntl


class LockStatus(Enum):
    HELD = "held"
    BUSY = "busy"
    IO_ERROR = "io_error"


def _try_lock(handle: IO[Any]) -> bool:
    try:
        if sys.platform == "win32":
            handle.seek(0)
            msvcrt.locking(handle.fileno(), msvcrt.LK_NBLCK, 1)
        else:
            fcntl.flock(handle.fileno(), fcntl.LOCK_EX | fcntl.LOCK_NB)
    except OSError:
        return False
    return True


def _unlock(handle: IO[Any]) -> None:
    if sys.platform == "win32":
        handle.seek(0)
        msvcrt.locking(handle.fileno(), msvcrt.LK_UNLCK, 1)
    else:
        fcntl.flock(handle.fileno(), fcntl.LOCK_UN)


def auto_retry(
    func: Callable[[], bool],
    max_retries: int = LOCK_MAX_RETRIES,
    retry_delay: float = LOCK_RETRY_DELAY,
) -> bool:
    """
    Call func until it returns True, at most max_retries + 1 times.

    This is bounded polling with a fixed delay, not a queued wait: a third party
    may still win the resource between two attempts.

    :param func: Callable returning True on success
    :param max_retries: Number of retries after the first attempt
    :param retry_delay: Delay between attempts, in seconds
    :return: True if one of the attempts succeeded
    """
    if func():
        return True
    for _ in range(max_retries):
        time.sleep(retry_delay)
        if func():
            return True
    return False


class MutualExclusionLock:
    """
    Exclusive lock on ``scope_dir / name`` shared between processes.

    Usage:
        lock = MutualExclusionLock(install_dir, "SpadsUpdater.lock")
        if lock.acquire() is LockStatus.HELD:
            try:
                ...
            finally:
                lock.release()
    """

    def __init__(self, scope_dir: str | Path, name: str) -> None:
        self.path = Path(scope_dir) / name
        self._handle: Optional[IO[Any]] = None

    @property
    def held(self) -> bool:
        return self._handle is not None

    def acquire(
        self,
        max_retries: int = LOCK_MAX_RETRIES,
        retry_delay: float = LOCK_RETRY_DELAY,
    ) -> LockStatus:
        """
        Open the lock file and claim it, polling up to max_retries times.

        :return: LockStatus.HELD, LockStatus.BUSY after exhausting retries, or
                 LockStatus.IO_ERROR if the lock file cannot be opened
        """
        if self._handle is not None:
            return LockStatus.HELD
        try:
            handle = open(self.path, "a")
        except OSError as e:
            logger.error(f'Unable to write lock file "{self.path}" ({e})')
            return LockStatus.IO_ERROR

        if not auto_retry(lambda: _try_lock(handle), max_retries, retry_delay):
            handle.close()
            return LockStatus.BUSY

        self._handle = handle
        logger.debug(f"Acquired lock {self.path}")
        return LockStatus.HELD

    def release(self) -> None:
        """Release the claim. Does nothing if the lock is not held."""
        if self._handle is None:
            return
        handle, self._handle = self._handle, None
        try:
            _unlock(handle)
        except OSError as e:
            logger.warning(f"Failed to unlock {self.path}: {e}")
        finally:
            handle.close()
        logger.debug(f"Released lock {self.path}")

    def is_locked(self) -> bool:
        """
        Check whether another holder currently owns the lock.

        The claim is taken and immediately released when free. An unwritable lock
        file is logged and reported as not locked.
        """
        if self._handle is not None:
            return True
        try:
            with open(self.path, "a") as handle:
                if not _try_lock(handle):
                    return True
                _unlock(handle)
        except OSError as e:
            logger.error(f'Unable to write lock file "{self.path}" ({e})')
        return False

    def __enter__(self) -> "MutualExclusionLock":
        self.acquire()
        return self

    def __exit__(self, *args: Any) -> None:
        self.release()
