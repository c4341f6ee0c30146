"""Library domain - Eagle library documents.

This domain handles:
- Asset, smart folder and library data models
- Loading the mtime index, library metadata and per-asset records
"""

# Models
from .models import ALL_KEY, AssetInfo, LibraryInfo, MtimeIndex, SmartFolder

# Exceptions
from .exceptions import EagleExportError, MetadataUnreadable

# Loading
from .metadata import (
    get_asset_dir,
    get_asset_source_path,
    load_asset_info,
    load_library_info,
    load_mtime_index,
)

__all__ = [
    # Models
    "ALL_KEY",
    "AssetInfo",
    "LibraryInfo",
    "MtimeIndex",
    "SmartFolder",
    # Exceptions
    "EagleExportError",
    "MetadataUnreadable",
    # Loading
    "get_asset_dir",
    "get_asset_source_path",
    "load_asset_info",
    "load_library_info",
    "load_mtime_index",
]
