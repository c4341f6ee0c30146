"""Export domain - incremental library export.

This domain handles:
- Smart folder rule evaluation (categories)
- Incremental, timestamp-preserving copies
- Bounded concurrent export with aggregated errors
- Progress reporting
"""

from .copier import copy_asset, needs_copy
from .engine import (
    UNCATEGORIZED,
    ExportOptions,
    ExportResult,
    Library,
    export_library,
    resolve_destination,
)
from .exceptions import (
    AssetExportError,
    CopyFailed,
    DestinationConflict,
    DestinationPrepFailed,
    ExportFailed,
    InvalidRule,
)
from .filters import SmartFolderFilter, validate_condition, validate_rule
from .progress import ByteCounter, ProgressSink, RichProgressSink

__all__ = [
    # Copying
    "copy_asset",
    "needs_copy",
    # Engine
    "UNCATEGORIZED",
    "ExportOptions",
    "ExportResult",
    "Library",
    "export_library",
    "resolve_destination",
    # Exceptions
    "AssetExportError",
    "CopyFailed",
    "DestinationConflict",
    "DestinationPrepFailed",
    "ExportFailed",
    "InvalidRule",
    # Filters
    "SmartFolderFilter",
    "validate_condition",
    "validate_rule",
    # Progress
    "ByteCounter",
    "ProgressSink",
    "RichProgressSink",
]
