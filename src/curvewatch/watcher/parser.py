"""
Parser for the test bench's semicolon-delimited CSV export.

File layout:

    Part serial number;SN42
    Measuring program number;7
    ...                              <- other header lines, ignored
    s;mm;KN                          <- column header, starts the data section
    0;0.0;0.0;...
    1;1.5;3.2;...

The parser is a two-state machine (PREAMBLE -> DATA_SECTION). The first
column-header line switches to DATA_SECTION and there is no way back, so
header lines that show up after it are treated as (malformed) data rows.
"""

import re
import math
import logging
from enum import Enum
from pathlib import Path
from dataclasses import dataclass, field
from typing import Iterable, List, Optional, Tuple

from curvewatch.watcher.record import MeasurementRecord

logger = logging.getLogger(__name__)

SERIAL_PREFIX = "part serial number;"
PROGRAM_PREFIX = "measuring program number;"
COLUMN_HEADER_PREFIX = "s;mm;kn"

DELIMITER = ";"
MIN_DATA_FIELDS = 4
X_FIELD = 1
Y_FIELD = 2

# Decimal point only, optional sign and exponent. No thousands separators,
# no digit-group underscores, no locale-specific decimal comma.
_FLOAT_RE = re.compile(r"[+-]?(?:[0-9]+\.?[0-9]*|\.[0-9]+)(?:[eE][+-]?[0-9]+)?")
_INT_RE = re.compile(r"[+-]?[0-9]+")

# Program numbers are 32-bit signed on the instrument side
INT32_MIN = -2 ** 31
INT32_MAX = 2 ** 31 - 1


def parse_float(text: str) -> Optional[float]:
    """Parse an invariant-culture float. Returns None if not a finite number."""
    text = text.strip()
    if not _FLOAT_RE.fullmatch(text):
        return None
    value = float(text)
    if not math.isfinite(value):
        return None
    return value


def parse_int(text: str) -> Optional[int]:
    """Parse a 32-bit signed decimal integer. Returns None on failure or overflow."""
    text = text.strip()
    if not _INT_RE.fullmatch(text):
        return None
    value = int(text)
    if not INT32_MIN <= value <= INT32_MAX:
        return None
    return value


class ParserState(Enum):
    PREAMBLE = "preamble"
    DATA_SECTION = "data_section"


@dataclass
class ParseAccumulator:
    """Values collected while walking the file."""
    serial_number: str = ""
    program_number: int = 0
    samples: List[Tuple[float, float]] = field(default_factory=list)
    skipped_rows: int = 0


class MeasurementParser:
    """
    Single-pass state machine over the lines of one export file.

    Usage:
        parser = MeasurementParser()
        record = parser.parse(lines)

    feed() can also be called line by line, followed by finish().
    """

    def __init__(self):
        self.state = ParserState.PREAMBLE
        self.acc = ParseAccumulator()

    def reset(self):
        self.state = ParserState.PREAMBLE
        self.acc = ParseAccumulator()

    def feed(self, raw_line: str):
        """Consume one line and update state/accumulator."""
        line = raw_line.strip()
        if not line:
            return

        if self.state is ParserState.PREAMBLE:
            self._handle_preamble(line)
        else:
            self._handle_data(line)

    def _handle_preamble(self, line: str):
        lowered = line.lower()

        if lowered.startswith(SERIAL_PREFIX):
            self.acc.serial_number = line.split(DELIMITER)[1].strip()
        elif lowered.startswith(PROGRAM_PREFIX):
            number = parse_int(line.split(DELIMITER)[1])
            if number is None:
                logger.debug(f"Unparseable program number line: {line!r}")
                number = 0
            self.acc.program_number = number
        elif lowered.startswith(COLUMN_HEADER_PREFIX):
            self.state = ParserState.DATA_SECTION

    def _handle_data(self, line: str):
        parts = line.split(DELIMITER)
        if len(parts) < MIN_DATA_FIELDS:
            self.acc.skipped_rows += 1
            return

        x = parse_float(parts[X_FIELD])
        y = parse_float(parts[Y_FIELD])
        if x is None or y is None:
            self.acc.skipped_rows += 1
            return

        self.acc.samples.append((x, y))

    def finish(self, source_path: Optional[Path] = None) -> MeasurementRecord:
        """End of input: build the record from whatever was accumulated."""
        if self.acc.skipped_rows:
            logger.debug(f"Skipped {self.acc.skipped_rows} malformed data rows"
                         + (f" in {source_path.name}" if source_path else ""))
        return MeasurementRecord(
            serial_number=self.acc.serial_number,
            program_number=self.acc.program_number,
            samples=list(self.acc.samples),
            source_path=source_path,
        )

    def parse(self, lines: Iterable[str], source_path: Optional[Path] = None) -> MeasurementRecord:
        """Parse a full sequence of lines into a MeasurementRecord."""
        self.reset()
        for line in lines:
            self.feed(line)
        return self.finish(source_path)


def parse_lines(lines: Iterable[str], source_path: Optional[Path] = None) -> MeasurementRecord:
    """Convenience wrapper: parse lines with a fresh parser."""
    return MeasurementParser().parse(lines, source_path)
