"""
File reading utilities for the curve watcher.

The test bench keeps an export file open for a short while after creating
it. Reads are retried on a fixed schedule until the file can be opened.
"""

import time
import logging
from pathlib import Path
from typing import Callable, List, Optional

logger = logging.getLogger(__name__)

# Fixed retry policy: 10 attempts, 100 ms apart, no backoff.
READ_ATTEMPTS = 10
READ_RETRY_INTERVAL = 0.1


class FileLockedError(OSError):
    """Raised when a file could not be read within the retry budget."""

    def __init__(self, path: Path, attempts: int):
        super().__init__(f"File is in use and could not be read after {attempts} attempts: {path}")
        self.path = path
        self.attempts = attempts


def split_lines(text: str) -> List[str]:
    """Split on \\r\\n, \\n or \\r. A trailing newline does not add an empty line."""
    lines = text.replace("\r\n", "\n").replace("\r", "\n").split("\n")
    if lines and lines[-1] == "":
        lines.pop()
    return lines


class RetryingReader:
    """Reads a whole text file, retrying while another process holds it."""

    def __init__(self, attempts: int = READ_ATTEMPTS,
                 retry_interval: float = READ_RETRY_INTERVAL,
                 sleep: Callable[[float], None] = time.sleep):
        """
        Args:
            attempts: Maximum number of read attempts
            retry_interval: Seconds to wait between attempts
            sleep: Blocking wait function (replaced in tests)
        """
        if attempts < 1:
            raise ValueError(f"attempts must be >= 1, got {attempts}")
        self.attempts = attempts
        self.retry_interval = retry_interval
        self._sleep = sleep

    def read_text(self, path: Path) -> str:
        """
        Read the full file content as text.

        Raises:
            FileLockedError: every attempt failed
        """
        last_error: Optional[OSError] = None

        for attempt in range(1, self.attempts + 1):
            try:
                with open(path, "r", encoding="utf-8-sig", errors="replace", newline="") as f:
                    text = f.read()
                if attempt > 1:
                    logger.debug(f"Read {Path(path).name} on attempt {attempt}")
                return text
            except OSError as e:
                last_error = e
                logger.debug(f"Read attempt {attempt}/{self.attempts} failed for {path}: {e}")
                if attempt < self.attempts:
                    self._sleep(self.retry_interval)

        raise FileLockedError(Path(path), self.attempts) from last_error

    def read_lines(self, path: Path) -> List[str]:
        """Read the file and return its lines without line terminators."""
        return split_lines(self.read_text(path))
