"""
JSON output for accepted curves.

Each record becomes one file in the output folder:

    <serial>_<YYYYMMDDHHMMSS>.json

    [
      {
        "CurveId": "<serial>",
        "x_vals": [...],
        "y_vals": [...]
      }
    ]
"""

import os
import json
import logging
from pathlib import Path
from datetime import datetime
from typing import Callable, List, Optional

from curvewatch.watcher.record import MeasurementRecord

logger = logging.getLogger(__name__)

TIMESTAMP_FORMAT = "%Y%m%d%H%M%S"


def build_document(record: MeasurementRecord) -> List[dict]:
    """Single-element array with the curve id and both sample columns."""
    return [
        {
            "CurveId": record.serial_number,
            "x_vals": record.x_vals.tolist(),
            "y_vals": record.y_vals.tolist(),
        }
    ]


def output_filename(serial_number: str, when: datetime) -> str:
    return f"{serial_number}_{when.strftime(TIMESTAMP_FORMAT)}.json"


class JsonEmitter:
    """Writes accepted records to the output folder."""

    def __init__(self, output_dir: Path, clock: Callable[[], datetime] = datetime.now):
        """
        Args:
            output_dir: Destination folder (created if missing)
            clock: Source of the filename timestamp (replaced in tests)
        """
        self.output_dir = Path(output_dir)
        self.output_dir.mkdir(parents=True, exist_ok=True)
        self._clock = clock

    def target_path(self, record: MeasurementRecord) -> Path:
        return self.output_dir / output_filename(record.serial_number, self._clock())

    def emit(self, record: MeasurementRecord) -> Optional[Path]:
        """
        Serialize record to JSON.

        Returns:
            Path of the written file, or None if the write failed
        """
        try:
            path = self.target_path(record)
            if path.parent.resolve() != self.output_dir.resolve():
                logger.error(
                    f"Failed to save JSON for '{record.serial_number}': "
                    f"serial number is not a valid file name"
                )
                return None

            text = json.dumps(build_document(record), indent=2, ensure_ascii=False)
            tmp = path.with_name(f"{path.name}.{os.getpid()}.tmp")
            try:
                tmp.write_text(text, encoding="utf-8")
                tmp.replace(path)
            finally:
                if tmp.exists():
                    tmp.unlink()

            logger.info(f"Saved {path}")
            return path

        except (OSError, ValueError) as e:
            logger.error(f"Failed to save JSON for '{record.serial_number}': {e}")
            return None
