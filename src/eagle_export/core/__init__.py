"""Core infrastructure layer - no business logic dependencies.

This module provides foundation-level services:
- Configuration management (TOML)
- Logging and user-facing output (Loguru)
- Console management (Rich)
- Destination file store abstraction

Clean architecture principle: The core layer has no dependencies on
domain or application layers.
"""

# Configuration
from .config import (
    Config,
    ExportConfig,
    LibraryConfig,
    LoggingConfig,
    load_config,
    get_config_dir,
    get_config_path,
    get_data_dir,
    create_default_config,
)

# Output
from .output import log, set_quiet, setup_loguru

# Console
from .console import get_console

# File store
from .filestore import FileStore, FileTimes, LocalFileStore

__all__ = [
    # Config
    "Config",
    "ExportConfig",
    "LibraryConfig",
    "LoggingConfig",
    "load_config",
    "get_config_dir",
    "get_config_path",
    "get_data_dir",
    "create_default_config",
    # Output
    "log",
    "set_quiet",
    "setup_loguru",
    # Console
    "get_console",
    # File store
    "FileStore",
    "FileTimes",
    "LocalFileStore",
]
