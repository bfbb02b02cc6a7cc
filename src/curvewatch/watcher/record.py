"""
Measurement record produced by the CSV parser.

One record per exported test: the part serial number, the measuring program
that produced it, and the force/displacement samples in file order.
"""

from pathlib import Path
from dataclasses import dataclass, field
from typing import List, Optional, Tuple

import numpy as np


@dataclass
class MeasurementRecord:
    """
    Parsed contents of one instrument export.

    Attributes:
        serial_number: Part serial number, "" if the header line was missing
        program_number: Measuring program number, 0 if missing or unparseable
        samples: (x, y) pairs in file order (displacement mm, force kN)
        source_path: File the record was parsed from
    """
    serial_number: str = ""
    program_number: int = 0
    samples: List[Tuple[float, float]] = field(default_factory=list)
    source_path: Optional[Path] = None

    @property
    def n_samples(self) -> int:
        return len(self.samples)

    @property
    def x_vals(self) -> np.ndarray:
        """x column as float64 array (same length as y_vals)."""
        if not self.samples:
            return np.empty(0, dtype=np.float64)
        return np.asarray([x for x, _ in self.samples], dtype=np.float64)

    @property
    def y_vals(self) -> np.ndarray:
        """y column as float64 array (same length as x_vals)."""
        if not self.samples:
            return np.empty(0, dtype=np.float64)
        return np.asarray([y for _, y in self.samples], dtype=np.float64)

    def is_valid(self) -> bool:
        """Usable for output only with a serial number and at least one sample."""
        return bool(self.serial_number) and bool(self.samples)

    def invalid_reason(self) -> str:
        """Human-readable reason why is_valid() is False, or empty string."""
        reasons = []
        if not self.serial_number:
            reasons.append("no part serial number")
        if not self.samples:
            reasons.append("no data samples")
        return ", ".join(reasons)
