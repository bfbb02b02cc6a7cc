"""
Read -> parse -> filter -> emit pipeline for the curve watcher.

Filesystem events only put paths on a queue. A single consumer thread takes
them off one at a time and does the blocking work:

  1. settle delay (gives the instrument a moment to finish writing)
  2. read with retry
  3. parse into a MeasurementRecord
  4. drop records without serial number or samples
  5. drop records whose program number is not allowed
  6. write JSON

A failure at any step abandons that one file; the consumer keeps going.
"""

import time
import queue
import logging
import threading
from enum import Enum
from pathlib import Path
from dataclasses import dataclass
from collections import Counter
from typing import Callable, Dict, FrozenSet, Iterable, List, Optional

from curvewatch.watcher.reader import RetryingReader, FileLockedError
from curvewatch.watcher.parser import MeasurementParser
from curvewatch.watcher.record import MeasurementRecord
from curvewatch.watcher.program_filter import ProgramFilter
from curvewatch.watcher.emitter import JsonEmitter

logger = logging.getLogger(__name__)

SETTLE_DELAY = 0.1
QUEUE_POLL_SECONDS = 0.5


class Outcome(Enum):
    WRITTEN = "written"
    LOCKED = "locked"
    INVALID = "invalid"
    FILTERED = "filtered"
    WRITE_FAILED = "write_failed"
    ERROR = "error"

    @property
    def is_failure(self) -> bool:
        """Outcomes that mean something went wrong (not an expected skip)."""
        return self in (Outcome.LOCKED, Outcome.WRITE_FAILED, Outcome.ERROR)


@dataclass
class PipelineResult:
    """Result of processing one file."""
    path: Path
    outcome: Outcome
    record: Optional[MeasurementRecord] = None
    output_path: Optional[Path] = None
    message: str = ""


class WatchPipeline:
    """Queue plus single consumer that converts measurement files."""

    def __init__(self, output_dir: Path, allowed_programs: FrozenSet[int],
                 reader: Optional[RetryingReader] = None,
                 emitter: Optional[JsonEmitter] = None,
                 settle_delay: float = SETTLE_DELAY,
                 sleep: Callable[[float], None] = time.sleep):
        """
        Args:
            output_dir: Folder for JSON output (created if missing)
            allowed_programs: Program numbers to convert
            reader: File reader (default: RetryingReader with fixed policy)
            emitter: JSON writer (default: JsonEmitter on output_dir)
            settle_delay: Seconds to wait before the first read
            sleep: Blocking wait function (replaced in tests)
        """
        self.reader = reader or RetryingReader()
        self.program_filter = ProgramFilter(allowed_programs)
        self.emitter = emitter or JsonEmitter(output_dir)
        self.settle_delay = settle_delay
        self._sleep = sleep

        self._queue: "queue.Queue[Optional[Path]]" = queue.Queue()
        self._thread: Optional[threading.Thread] = None
        self._stop_event = threading.Event()
        self.counts: Counter = Counter()

    # =========================================================================
    # QUEUE / CONSUMER
    # =========================================================================

    def submit(self, path: Path):
        """Queue a file for processing."""
        self._queue.put(Path(path))
        logger.debug(f"Queued: {path}")

    @property
    def pending(self) -> int:
        return self._queue.qsize()

    def start(self):
        """Start the consumer thread (non-blocking)."""
        if self._thread is not None and self._thread.is_alive():
            return
        self._stop_event.clear()
        self._thread = threading.Thread(
            target=self.run, args=(self._stop_event,),
            name="curvewatch-pipeline", daemon=True
        )
        self._thread.start()

    def stop(self, timeout: float = 10.0):
        """Stop the consumer after the file in progress is finished."""
        self._stop_event.set()
        self._queue.put(None)
        if self._thread is not None:
            self._thread.join(timeout=timeout)
            if self._thread.is_alive():
                logger.warning("Pipeline thread did not stop within timeout")
            self._thread = None

        dropped = 0
        while True:
            try:
                item = self._queue.get_nowait()
            except queue.Empty:
                break
            if item is not None:
                dropped += 1
        if dropped:
            logger.warning(f"{dropped} queued file(s) were not processed before shutdown")

    @property
    def is_running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def run(self, shutdown_event: threading.Event):
        """
        Consume queued paths until shutdown_event is set.

        Errors are caught per file so the consumer never dies.
        """
        logger.info("Pipeline consumer started")

        while not shutdown_event.is_set():
            try:
                item = self._queue.get(timeout=QUEUE_POLL_SECONDS)
            except queue.Empty:
                continue
            if item is None:
                break
            self.process_file(item)

        logger.info("Pipeline consumer stopped")

    # =========================================================================
    # PER-FILE PROCESSING
    # =========================================================================

    def process_file(self, path: Path, settle: bool = True) -> PipelineResult:
        """Run the full pipeline on one file and return what happened."""
        path = Path(path)
        try:
            result = self._process(path, settle)
        except Exception as e:
            logger.error(f"Unexpected error while processing {path}: {e}", exc_info=True)
            result = PipelineResult(path, Outcome.ERROR, message=str(e))

        self.counts[result.outcome] += 1
        return result

    def _process(self, path: Path, settle: bool) -> PipelineResult:
        logger.info(f"Processing {path}")
        if settle and self.settle_delay > 0:
            self._sleep(self.settle_delay)

        try:
            lines = self.reader.read_lines(path)
        except FileLockedError as e:
            logger.error(f"Giving up on {path.name}: {e}")
            return PipelineResult(path, Outcome.LOCKED, message=str(e))

        record = MeasurementParser().parse(lines, source_path=path)

        if not record.is_valid():
            reason = record.invalid_reason()
            logger.warning(f"No usable curve in {path.name} ({reason})")
            return PipelineResult(path, Outcome.INVALID, record=record, message=reason)

        if not self.program_filter.accept(record.program_number):
            message = f"program number {record.program_number} is not in the filter list"
            logger.info(f"Skipping {path.name}: {message}")
            return PipelineResult(path, Outcome.FILTERED, record=record, message=message)

        output_path = self.emitter.emit(record)
        if output_path is None:
            return PipelineResult(path, Outcome.WRITE_FAILED, record=record,
                                  message="JSON write failed")

        logger.info(
            f"Converted {path.name} -> {output_path.name} "
            f"(serial={record.serial_number}, program={record.program_number}, "
            f"samples={record.n_samples})"
        )
        return PipelineResult(path, Outcome.WRITTEN, record=record, output_path=output_path)

    def process_many(self, paths: Iterable[Path], settle: bool = False) -> List[PipelineResult]:
        """Process files synchronously in order (used by curvewatch-process).

        A path given twice is processed twice and gets two results.
        """
        return [self.process_file(p, settle=settle) for p in paths]

    def summary(self) -> Dict[str, int]:
        """Outcome counts since the pipeline was created."""
        return {outcome.value: self.counts.get(outcome, 0) for outcome in Outcome}
