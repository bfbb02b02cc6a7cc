"""
Filesystem watcher for the instrument export folder.

Uses watchdog to receive "file created" events for *.csv files and hands the
paths to the WatchPipeline queue. The event callback never blocks: reading,
parsing and writing all happen on the pipeline's consumer thread.
"""

import logging
import threading
from pathlib import Path
from typing import Optional

from watchdog.observers import Observer
from watchdog.events import FileSystemEventHandler

from curvewatch.config import WatcherConfig
from curvewatch.watcher.pipeline import WatchPipeline

logger = logging.getLogger(__name__)


class CsvCreatedHandler(FileSystemEventHandler):
    """Queues newly created files with the watched extension."""

    def __init__(self, pipeline: WatchPipeline, extension: str = ".csv"):
        super().__init__()
        self.pipeline = pipeline
        self.extension = extension.lower()

    def _is_watched_file(self, path: str) -> bool:
        return Path(path).suffix.lower() == self.extension

    def on_created(self, event):
        """Handle file creation."""
        if event.is_directory:
            return
        src_path = event.src_path
        if isinstance(src_path, bytes):
            src_path = src_path.decode()
        if not self._is_watched_file(src_path):
            return
        logger.info(f"New file detected: {src_path}")
        self.pipeline.submit(Path(src_path))


class DirectoryWatcher:
    """
    Watches the configured folder and converts new measurement files.

    Usage:
        watcher = DirectoryWatcher(config)
        watcher.start()   # Non-blocking
        ...
        watcher.stop()

    Or blocking:
        watcher.run(shutdown_event)
    """

    def __init__(self, config: WatcherConfig, pipeline: Optional[WatchPipeline] = None):
        self.config = config
        self.watch_folder = config.require_watch_folder()
        output_folder = config.require_output_folder()

        self.pipeline = pipeline or WatchPipeline(
            output_dir=output_folder,
            allowed_programs=config.program_filter,
        )

        self._observer: Optional[Observer] = None
        self._handler: Optional[CsvCreatedHandler] = None

    def start(self):
        """Start watching (non-blocking)."""
        if self._observer is not None:
            return

        self.pipeline.start()

        handler = CsvCreatedHandler(self.pipeline, self.config.file_extension)
        observer = Observer()
        observer.schedule(
            handler,
            str(self.watch_folder),
            recursive=False
        )
        observer.start()

        # Only a started observer is recorded, so stop() never joins an unstarted thread
        self._handler = handler
        self._observer = observer

        logger.info(f"Watching: {self.watch_folder} (*{self.config.file_extension})")

    def stop(self):
        """Stop watching. The file in progress is finished first."""
        if self._observer:
            self._observer.stop()
            self._observer.join(timeout=5)
            self._observer = None

        self.pipeline.stop()
        logger.info("Watcher stopped")

    def run(self, shutdown_event: threading.Event):
        """Run watcher until shutdown_event is set (blocking)."""
        try:
            self.start()
            while not shutdown_event.is_set():
                if not self.is_running:
                    logger.error("Watcher thread died unexpectedly, stopping")
                    break
                shutdown_event.wait(timeout=1.0)
        finally:
            self.stop()

    @property
    def is_running(self) -> bool:
        """Check if observer and pipeline consumer are both alive."""
        return (
            self._observer is not None
            and self._observer.is_alive()
            and self.pipeline.is_running
        )
