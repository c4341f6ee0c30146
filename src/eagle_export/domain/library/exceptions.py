"""Library-specific exceptions for error handling."""

from pathlib import Path
from typing import Optional


class EagleExportError(Exception):
    """Base exception for all export operations."""

    pass


class MetadataUnreadable(EagleExportError):
    """Raised when a library or asset metadata document is missing or malformed.

    ``asset_id`` is None for library-wide documents (mtime index, library
    metadata) and set for a single asset's record.
    """

    def __init__(self, path: Path, reason: str, asset_id: Optional[str] = None):
        self.path = path
        self.reason = reason
        self.asset_id = asset_id
        scope = f"asset '{asset_id}'" if asset_id else "library"
        super().__init__(f"Unreadable {scope} metadata at {path}: {reason}")
