"""
curvewatch.watcher - Folder watcher that converts measurement CSV files.

    watcher.py         watchdog observer, queues new *.csv files
    pipeline.py        queue consumer: read -> parse -> filter -> emit
    reader.py          whole-file read with fixed retry (file still in use)
    parser.py          header/data state machine for the instrument export
    record.py          MeasurementRecord
    program_filter.py  program-number allow-list
    emitter.py         <serial>_<timestamp>.json writer
    instance.py        single-instance lock
    cli.py             curvewatch / curvewatch-process / curvewatch-info

Configuration (in ~/.curvewatch/config.json):
    watch_folder:    folder the instrument exports into
    output_folder:   where JSON files are written (created if missing)
    filter:          comma-separated program numbers to convert, e.g. "7,9"
    log_dir:         optional, default ~/.curvewatch/logs

Files that already exist when the watcher starts are not converted; use
curvewatch-process for those.
"""

from curvewatch.watcher.record import MeasurementRecord
from curvewatch.watcher.reader import RetryingReader, FileLockedError
from curvewatch.watcher.parser import MeasurementParser, ParserState, parse_lines
from curvewatch.watcher.program_filter import ProgramFilter
from curvewatch.watcher.emitter import JsonEmitter
from curvewatch.watcher.pipeline import WatchPipeline, PipelineResult, Outcome
from curvewatch.watcher.watcher import DirectoryWatcher, CsvCreatedHandler

__all__ = [
    "MeasurementRecord",
    "RetryingReader",
    "FileLockedError",
    "MeasurementParser",
    "ParserState",
    "parse_lines",
    "ProgramFilter",
    "JsonEmitter",
    "WatchPipeline",
    "PipelineResult",
    "Outcome",
    "DirectoryWatcher",
    "CsvCreatedHandler",
]
