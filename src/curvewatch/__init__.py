"""
curvewatch - Force/displacement curve converter for a mechanical test bench
=========================================================================

Watches the instrument's export folder for new measurement CSV files and
converts every curve whose measuring program is on the allow-list into a
JSON document for downstream tooling.

Pipeline Steps:
    1. watch    - watchdog observer queues newly created *.csv files
    2. read     - read the file, retrying while the instrument still holds it
    3. parse    - header/data state machine -> MeasurementRecord
    4. filter   - keep records whose program number is allowed
    5. emit     - write <serial>_<timestamp>.json to the output folder

Usage:
    from curvewatch.config import WatcherConfig
    from curvewatch.watcher import DirectoryWatcher
"""

__version__ = "1.0.0"
