"""
Single-instance enforcement for the curve watcher.

Two watchers on the same folder would convert every file twice. The lock is
an OS-level lock on a file under ~/.curvewatch, so it disappears with the
process even if it crashes.
"""

import os
import sys
import logging
from pathlib import Path
from typing import Optional, TextIO

if sys.platform == "win32":
    import msvcrt
else:
    import fcntl

logger = logging.getLogger(__name__)


class InstanceLockedError(RuntimeError):
    """Raised when another watcher already holds the lock."""
    pass


class SingleInstanceLock:
    """
    Non-blocking exclusive lock on a file.

    Usage:
        with SingleInstanceLock(lock_path):
            run_watcher()
    """

    def __init__(self, lock_path: Path):
        self.lock_path = Path(lock_path)
        self._fp: Optional[TextIO] = None

    def acquire(self):
        self.lock_path.parent.mkdir(parents=True, exist_ok=True)
        fp = open(self.lock_path, "a+")
        try:
            if sys.platform == "win32":
                fp.seek(0)
                msvcrt.locking(fp.fileno(), msvcrt.LK_NBLCK, 1)
            else:
                fcntl.flock(fp.fileno(), fcntl.LOCK_EX | fcntl.LOCK_NB)
        except OSError:
            fp.close()
            raise InstanceLockedError(
                f"Another curvewatch instance is already running (lock: {self.lock_path})"
            )

        # Owner PID for humans; the lock itself is what matters
        fp.seek(0)
        fp.truncate()
        fp.write(f"{os.getpid()}\n")
        fp.flush()
        self._fp = fp
        logger.debug(f"Acquired instance lock {self.lock_path}")

    def release(self):
        if self._fp is None:
            return
        try:
            if sys.platform == "win32":
                self._fp.seek(0)
                msvcrt.locking(self._fp.fileno(), msvcrt.LK_UNLCK, 1)
            else:
                fcntl.flock(self._fp.fileno(), fcntl.LOCK_UN)
        finally:
            self._fp.close()
            self._fp = None
        logger.debug(f"Released instance lock {self.lock_path}")

    @property
    def is_held(self) -> bool:
        return self._fp is not None

    def __enter__(self):
        self.acquire()
        return self

    def __exit__(self, exc_type, exc, tb):
        self.release()
