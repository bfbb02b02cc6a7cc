#!/usr/bin/env python3
"""
curvewatch Configuration

Watch folder, output folder and program-number allow-list for the watcher.
Values are read from a JSON file (preferred) or environment variables.

Config file lookup order:
    1. explicit path (curvewatch --config PATH)
    2. $CURVEWATCH_CONFIG
    3. ~/.curvewatch/config.json

Example config.json:
    {
        "watch_folder": "D:/Testing/Export",
        "output_folder": "D:/Testing/Curves",
        "filter": "7, 9, 12"
    }
"""

import os
import json
from pathlib import Path
from typing import Optional, List, FrozenSet, Union, Iterable


# =============================================================================
# CONFIGURATION ERRORS
# =============================================================================

class ConfigurationError(Exception):
    """Raised when required configuration is missing."""
    pass


# =============================================================================
# CONFIGURATION LOADING
# =============================================================================

CONFIG_DIR = Path.home() / ".curvewatch"
DEFAULT_CONFIG_FILE = CONFIG_DIR / "config.json"
DEFAULT_LOG_DIR = CONFIG_DIR / "logs"
DEFAULT_LOCK_FILE = CONFIG_DIR / "curvewatch.lock"
DEFAULT_FILE_EXTENSION = ".csv"


def resolve_config_path(config_path: Optional[Union[str, Path]] = None) -> Path:
    """Pick the config file: explicit path > $CURVEWATCH_CONFIG > ~/.curvewatch/config.json."""
    if config_path:
        return Path(config_path)
    env_path = os.getenv("CURVEWATCH_CONFIG")
    if env_path:
        return Path(env_path)
    return DEFAULT_CONFIG_FILE


def _load_config(config_file: Path) -> dict:
    """Load configuration from JSON file."""
    try:
        with open(config_file, "r", encoding="utf-8") as f:
            data = json.load(f)
    except (OSError, ValueError) as e:
        raise ConfigurationError(f"Could not read config file {config_file}: {e}") from e
    if not isinstance(data, dict):
        raise ConfigurationError(f"Config must be a JSON object: {config_file}")
    return data


def parse_program_filter(value: Union[None, str, int, Iterable]) -> FrozenSet[int]:
    """
    Parse the program-number allow-list.

    Accepts a comma-separated string ("7, 9,12") or a list of ints/strings.
    Empty entries, entries that are not integers and negative numbers are
    dropped silently.

    Returns:
        frozenset of allowed program numbers

    Raises:
        ConfigurationError: value is neither a string nor a list
    """
    if value is None:
        return frozenset()
    if isinstance(value, bool):
        return frozenset()
    if isinstance(value, int):
        return frozenset([value]) if value >= 0 else frozenset()
    if isinstance(value, str):
        entries = value.split(",")
    elif isinstance(value, (list, tuple, set, frozenset)):
        entries = list(value)
    else:
        raise ConfigurationError(
            f"filter must be a comma-separated string or a list of integers, got {value!r}"
        )

    allowed = set()
    for entry in entries:
        if isinstance(entry, bool):
            continue
        if isinstance(entry, int):
            number = entry
        else:
            text = str(entry).strip()
            if not text:
                continue
            try:
                number = int(text)
            except ValueError:
                continue
        if number >= 0:
            allowed.add(number)
    return frozenset(allowed)


# =============================================================================
# WATCHER CONFIGURATION
# =============================================================================

class WatcherConfig:
    """Configuration for the curve watcher.

    Every key falls back to an environment variable when absent from the
    config file, except log_dir and file_extension which have defaults.
    """

    def __init__(self, config_dict: dict = None, source: Optional[Path] = None):
        cfg = config_dict or {}
        self.source: Optional[Path] = source

        _watch = cfg.get('watch_folder') or os.getenv("CURVEWATCH_WATCH_FOLDER")
        self.watch_folder: Optional[Path] = Path(str(_watch).strip()) if _watch and str(_watch).strip() else None

        _output = cfg.get('output_folder') or os.getenv("CURVEWATCH_OUTPUT_FOLDER")
        self.output_folder: Optional[Path] = Path(str(_output).strip()) if _output and str(_output).strip() else None

        _filter = cfg['filter'] if 'filter' in cfg else os.getenv("CURVEWATCH_FILTER")
        self.program_filter: FrozenSet[int] = parse_program_filter(_filter)

        self.log_dir: Optional[Path] = (
            Path(str(cfg['log_dir'])) if cfg.get('log_dir') else None
        )
        extension = cfg.get('file_extension') or DEFAULT_FILE_EXTENSION
        if not isinstance(extension, str):
            raise ConfigurationError(f"file_extension must be a string like \".csv\", got {extension!r}")
        if not extension.startswith('.'):
            extension = '.' + extension
        self.file_extension: str = extension.lower()

    @classmethod
    def from_dict(cls, config_dict: dict) -> 'WatcherConfig':
        return cls(config_dict)

    @classmethod
    def load(cls, config_path: Optional[Union[str, Path]] = None) -> 'WatcherConfig':
        """
        Load watcher config from the resolved JSON file.

        Raises:
            ConfigurationError: config file missing or unreadable, or a value
                has the wrong type
        """
        config_file = resolve_config_path(config_path)
        if not config_file.is_file():
            raise ConfigurationError(
                f"Config file not found: {config_file}\n\n"
                f"Create it with at least:\n"
                f'  {{"watch_folder": "...", "output_folder": "...", "filter": "1,2"}}'
            )
        return cls(_load_config(config_file), source=config_file)

    def to_dict(self) -> dict:
        """Serialize to dict for saving to config.json."""
        d = {
            'filter': ",".join(str(n) for n in sorted(self.program_filter)),
            'file_extension': self.file_extension,
        }
        if self.watch_folder:
            d['watch_folder'] = str(self.watch_folder)
        if self.output_folder:
            d['output_folder'] = str(self.output_folder)
        if self.log_dir:
            d['log_dir'] = str(self.log_dir)
        return d

    def validate(self) -> List[str]:
        """Check paths are configured correctly. Returns list of problems (empty = OK)."""
        problems = []

        if self.watch_folder is None:
            problems.append("watch_folder not configured")
        elif not self.watch_folder.is_dir():
            problems.append(f"watch_folder does not exist: {self.watch_folder}")

        if self.output_folder is None:
            problems.append("output_folder not configured")

        return problems

    def require_watch_folder(self) -> Path:
        """Get watch_folder, raising helpful error if not configured."""
        if self.watch_folder is None:
            raise ConfigurationError("watch_folder is not configured")
        return self.watch_folder

    def require_output_folder(self) -> Path:
        """Get output_folder, raising helpful error if not configured."""
        if self.output_folder is None:
            raise ConfigurationError("output_folder is not configured")
        return self.output_folder

    def get_log_dir(self) -> Path:
        """Get log directory, defaulting to ~/.curvewatch/logs."""
        if self.log_dir:
            return self.log_dir
        return DEFAULT_LOG_DIR


def print_config(config: WatcherConfig):
    """Print the resolved configuration and any problems."""
    print("=" * 60)
    print("curvewatch Configuration")
    print("=" * 60)
    print(f"\nConfig file:    {config.source or '(not loaded)'}")
    print(f"Watch folder:   {config.watch_folder or '(not configured)'}")
    print(f"Output folder:  {config.output_folder or '(not configured)'}")
    allowed = ", ".join(str(n) for n in sorted(config.program_filter)) or "(empty)"
    print(f"Program filter: {allowed}")
    print(f"File extension: {config.file_extension}")
    print(f"Log directory:  {config.get_log_dir()}")

    problems = config.validate()
    if problems:
        print("\nProblems:")
        for problem in problems:
            print(f"  - {problem}")
    else:
        print("\nConfiguration OK")
    print()
