"""
Configuration management for Eagle Export
"""

import os
import tomllib
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from loguru import logger


@dataclass
class LibraryConfig:
    """Configuration for the source library and destination tree."""

    path: Optional[str] = None  # Root of the .library directory
    output_dir: Optional[str] = None  # Where exported files are written


@dataclass
class ExportConfig:
    """Configuration for export behaviour."""

    overwrite: bool = False  # Re-copy every asset regardless of timestamps
    force: bool = False  # Delete the whole output tree before exporting
    group_by_smart_folder: bool = False
    max_workers: int = 0  # 0 = one worker per CPU
    uncategorized_name: str = "uncategorized"
    show_progress: bool = True

    def validate(self) -> None:
        """Validate export configuration values.

        Raises:
            ValueError: If configuration values are invalid
        """
        if self.max_workers < 0:
            raise ValueError(
                f"max_workers must be 0 (auto) or a positive number, got {self.max_workers}"
            )
        name = self.uncategorized_name.strip()
        if not name or "/" in name or "\\" in name or name in (".", ".."):
            raise ValueError(
                f"uncategorized_name must be a single folder name, got {self.uncategorized_name!r}"
            )


@dataclass
class LoggingConfig:
    """Configuration for logging."""

    level: str = "INFO"  # DEBUG, INFO, WARNING, ERROR, CRITICAL
    log_file: Optional[str] = (
        None  # Custom log file path (default: ~/.local/share/eagle-export/eagle-export.log)
    )
    console_output: bool = False  # Also output to stderr (for debugging)

    def validate(self) -> None:
        valid_levels = {"TRACE", "DEBUG", "INFO", "SUCCESS", "WARNING", "ERROR", "CRITICAL"}
        if self.level.upper() not in valid_levels:
            raise ValueError(
                f"Invalid log level: {self.level}. Valid levels are: {sorted(valid_levels)}"
            )


@dataclass
class Config:
    """Main configuration object."""

    library: LibraryConfig = field(default_factory=LibraryConfig)
    export: ExportConfig = field(default_factory=ExportConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)

    def validate(self) -> None:
        self.export.validate()
        self.logging.validate()


def get_config_dir() -> Path:
    """Get the configuration directory path."""
    config_home = os.environ.get("XDG_CONFIG_HOME")
    if config_home:
        return Path(config_home) / "eagle-export"
    return Path.home() / ".config" / "eagle-export"


def get_config_path() -> Path:
    """Get the main configuration file path.

    Checks for config.toml in the following order:
    1. Current working directory
    2. XDG_CONFIG_HOME/eagle-export (or ~/.config/eagle-export)
    """
    local_config = Path.cwd() / "config.toml"
    if local_config.exists():
        return local_config

    return get_config_dir() / "config.toml"


def get_data_dir() -> Path:
    """Get the data directory path."""
    data_home = os.environ.get("XDG_DATA_HOME")
    if data_home:
        return Path(data_home) / "eagle-export"
    return Path.home() / ".local" / "share" / "eagle-export"


def create_default_config() -> str:
    """Create a default configuration TOML content."""
    return """
# Eagle Export Configuration

[library]
# Path to the Eagle library (the directory containing mtime.json)
# path = "~/Pictures/My.library"

# Directory exported files are written to
# output_dir = "~/Pictures/export"

[export]
# Re-copy every asset even when timestamps match
overwrite = false

# Delete the entire output directory before exporting
force = false

# Place assets into folders named after the smart folder they match
group_by_smart_folder = false

# Number of concurrent copy workers (0 = one per CPU)
max_workers = 0

# Folder used for assets that match no smart folder
uncategorized_name = "uncategorized"

# Show a progress bar while exporting
show_progress = true

[logging]
# Log level: DEBUG, INFO, WARNING, ERROR, CRITICAL
level = "INFO"

# Custom log file path (default: ~/.local/share/eagle-export/eagle-export.log)
# log_file = "~/eagle-export.log"

# Also print log records to stderr
console_output = false
"""


def _parse_config(toml_data: dict) -> Config:
    config = Config()

    if "library" in toml_data:
        library_data = toml_data["library"]
        path = library_data.get("path", config.library.path)
        output_dir = library_data.get("output_dir", config.library.output_dir)
        config.library = LibraryConfig(
            path=str(Path(path).expanduser()) if path else None,
            output_dir=str(Path(output_dir).expanduser()) if output_dir else None,
        )

    if "export" in toml_data:
        export_data = toml_data["export"]
        config.export = ExportConfig(
            overwrite=export_data.get("overwrite", config.export.overwrite),
            force=export_data.get("force", config.export.force),
            group_by_smart_folder=export_data.get(
                "group_by_smart_folder", config.export.group_by_smart_folder
            ),
            max_workers=export_data.get("max_workers", config.export.max_workers),
            uncategorized_name=export_data.get(
                "uncategorized_name", config.export.uncategorized_name
            ),
            show_progress=export_data.get("show_progress", config.export.show_progress),
        )

    if "logging" in toml_data:
        logging_data = toml_data["logging"]
        log_file = logging_data.get("log_file")
        if log_file:
            log_file = str(Path(log_file).expanduser())
        config.logging = LoggingConfig(
            level=logging_data.get("level", config.logging.level).upper(),
            log_file=log_file,
            console_output=logging_data.get(
                "console_output", config.logging.console_output
            ),
        )

    return config


def _apply_env_overrides(config: Config) -> None:
    library_path = os.environ.get("EAGLE_EXPORT_LIBRARY")
    if library_path:
        config.library.path = str(Path(library_path).expanduser())

    output_dir = os.environ.get("EAGLE_EXPORT_OUTPUT")
    if output_dir:
        config.library.output_dir = str(Path(output_dir).expanduser())

    log_level = os.environ.get("EAGLE_EXPORT_LOG_LEVEL")
    if log_level:
        config.logging.level = log_level.upper()


def load_config(config_path: Optional[Path] = None) -> Config:
    """Load configuration from file or create default.

    Environment variables override TOML values:
    - EAGLE_EXPORT_LIBRARY
    - EAGLE_EXPORT_OUTPUT
    - EAGLE_EXPORT_LOG_LEVEL

    Args:
        config_path: Explicit config file; skips the lookup and the
            default-file creation when given

    Raises:
        ValueError: If the file is not valid TOML or holds invalid values
    """
    # Load .env file from config directory if it exists
    from dotenv import load_dotenv

    env_path = get_config_dir() / ".env"
    if env_path.exists():
        load_dotenv(env_path)

    if config_path is None:
        config_path = get_config_path()
        if not config_path.exists():
            try:
                config_path.parent.mkdir(parents=True, exist_ok=True)
                with open(config_path, "w", encoding="utf-8") as f:
                    f.write(create_default_config())
                logger.info(f"Created default configuration at: {config_path}")
            except OSError as e:
                logger.warning(f"Could not write default configuration to {config_path}: {e}")
            config = Config()
            _apply_env_overrides(config)
            config.validate()
            return config

    try:
        with open(config_path, "rb") as f:
            toml_data = tomllib.load(f)
    except tomllib.TOMLDecodeError as e:
        raise ValueError(f"Invalid configuration file {config_path}: {e}") from e

    config = _parse_config(toml_data)
    _apply_env_overrides(config)
    config.validate()
    return config
