"""Export-specific exceptions for error handling."""

from pathlib import Path
from typing import Optional, Sequence

from ..library.exceptions import EagleExportError


class DestinationPrepFailed(EagleExportError):
    """Raised when the output directory cannot be cleaned before a forced export."""

    def __init__(self, path: Path, message: Optional[str] = None):
        self.path = path
        super().__init__(message or f"delete directory '{path}' failed")


class InvalidRule(EagleExportError):
    """Raised when a smart folder rule is structurally inconsistent."""

    def __init__(self, folder_name: str, reason: str):
        self.folder_name = folder_name
        self.reason = reason
        super().__init__(f"Invalid rule in smart folder '{folder_name}': {reason}")


class CopyFailed(EagleExportError):
    """Raised when opening, streaming or re-timing a copy fails.

    The underlying OSError is chained as ``__cause__``.
    """

    def __init__(self, source: Path, destination: Path, step: str, reason: str):
        self.source = source
        self.destination = destination
        self.step = step
        super().__init__(f"{step} failed for {destination}: {reason}")


class AssetExportError(EagleExportError):
    """A task-fatal failure bound to the asset and step that produced it."""

    def __init__(self, asset_id: str, step: str, error: Exception):
        self.asset_id = asset_id
        self.step = step
        self.error = error
        super().__init__(f"asset '{asset_id}' ({step}): {error}")


class ExportFailed(ExceptionGroup):
    """Every task error from an export run."""

    def derive(self, excs: Sequence[Exception]) -> "ExportFailed":
        return ExportFailed(self.message, excs)


class DestinationConflict(EagleExportError):
    """Raised when a second asset resolves to a destination already claimed this run."""

    def __init__(self, destination: Path, claimed_by: str):
        self.destination = destination
        self.claimed_by = claimed_by
        super().__init__(f"destination {destination} already claimed by asset '{claimed_by}'")
