"""
Library export engine for Eagle Export

Exports every live asset of a library into a plain directory tree,
optionally grouped by smart folder. Work is fanned out to a bounded
thread pool, one task per asset. A failing asset never stops the others:
every task runs to completion and the failures are returned together.
"""

import os
import threading
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional, Union

from loguru import logger

from ...core.filestore import FileStore, LocalFileStore
from ..library.exceptions import EagleExportError
from ..library.metadata import (
    get_asset_source_path,
    load_asset_info,
    load_library_info,
    load_mtime_index,
)
from .copier import copy_asset
from .exceptions import (
    AssetExportError,
    DestinationConflict,
    DestinationPrepFailed,
    ExportFailed,
)
from .filters import SmartFolderFilter
from .progress import ProgressSink

UNCATEGORIZED = "uncategorized"

# Task outcomes
COPIED = "copied"
UP_TO_DATE = "up_to_date"
DELETED = "deleted"


@dataclass
class ExportOptions:
    """Options for a single export run."""

    overwrite: bool = False  # Re-copy regardless of timestamps
    force: bool = False  # Remove the whole output tree first
    group_by_smart_folder: bool = False
    progress: Optional[ProgressSink] = None
    max_workers: Optional[int] = None  # None = one per CPU
    uncategorized_name: str = UNCATEGORIZED


@dataclass
class ExportResult:
    """Summary of an export run.

    ``errors`` holds one AssetExportError per failed asset, in completion
    order. An empty list means every asset exported.
    """

    total: int = 0
    copied: int = 0
    up_to_date: int = 0
    deleted: int = 0
    bytes_copied: int = 0
    errors: list[AssetExportError] = field(default_factory=list)

    @property
    def failed(self) -> int:
        return len(self.errors)

    @property
    def ok(self) -> bool:
        return not self.errors

    def raise_for_errors(self) -> None:
        """Raise ExportFailed grouping every task error, if there are any."""
        if self.errors:
            raise ExportFailed(f"{len(self.errors)} asset(s) failed to export", self.errors)


@dataclass(frozen=True)
class _Outcome:
    status: str
    bytes_copied: int = 0


class _DestinationClaims:
    """Destinations claimed so far in one run, shared by all workers."""

    def __init__(self):
        self._lock = threading.Lock()
        self._owners: dict[Path, str] = {}

    def claim(self, destination: Path, asset_id: str) -> None:
        with self._lock:
            owner = self._owners.setdefault(destination, asset_id)
        if owner != asset_id:
            raise DestinationConflict(destination, owner)


def resolve_destination(
    output_dir: Path,
    file_name: str,
    category: Optional[str] = None,
    uncategorized_name: str = UNCATEGORIZED,
) -> Path:
    """Destination path for an asset.

    ``category`` None means grouping is off (flat export); an empty
    category means grouping is on and nothing matched.
    """
    if category is None:
        return output_dir / file_name
    if category == "":
        return output_dir / uncategorized_name / file_name
    return output_dir / category / file_name


def _export_asset(
    library_dir: Path,
    output_dir: Path,
    asset_id: str,
    recorded_mtime_ms: int,
    folder_filter: Optional[SmartFolderFilter],
    options: ExportOptions,
    store: FileStore,
    claims: _DestinationClaims,
) -> _Outcome:
    step = "metadata"
    try:
        asset = load_asset_info(library_dir, asset_id)
        if asset.is_deleted:
            logger.debug(f"Skipping deleted asset {asset_id}")
            return _Outcome(DELETED)

        category = None
        if folder_filter is not None:
            step = "categorize"
            category = folder_filter.evaluate(asset)

        step = "destination"
        destination = resolve_destination(
            output_dir, asset.file_name, category, options.uncategorized_name
        )
        claims.claim(destination, asset_id)

        step = "copy"
        source = get_asset_source_path(library_dir, asset)
        copied = copy_asset(
            source,
            destination,
            recorded_mtime_ms,
            store,
            overwrite=options.overwrite,
            progress=options.progress,
        )
    except EagleExportError as e:
        raise AssetExportError(asset_id, step, e) from e

    if copied is None:
        return _Outcome(UP_TO_DATE)
    return _Outcome(COPIED, copied)


def export_library(
    library_dir: Union[str, Path],
    output_dir: Union[str, Path],
    options: Optional[ExportOptions] = None,
    store: Optional[FileStore] = None,
) -> ExportResult:
    """Export a library into ``output_dir``.

    Args:
        library_dir: Library root (holds mtime.json and metadata.json)
        output_dir: Destination directory
        options: Export options (defaults: incremental, flat)
        store: Destination file store (default: local filesystem)

    Returns:
        ExportResult; check ``errors`` or call ``raise_for_errors()``

    Raises:
        DestinationPrepFailed: If ``force`` is set and the output tree
            cannot be removed
        MetadataUnreadable: If mtime.json or metadata.json is unusable
        ValueError: If ``options.max_workers`` is less than 1
    """
    library_dir = Path(library_dir)
    output_dir = Path(output_dir)
    options = options or ExportOptions()
    store = store or LocalFileStore()

    if options.max_workers is not None and options.max_workers < 1:
        raise ValueError(f"max_workers must be at least 1, got {options.max_workers}")

    if options.force:
        logger.info(f"Removing output directory before export: {output_dir}")
        try:
            store.remove_tree(output_dir)
        except OSError as e:
            raise DestinationPrepFailed(output_dir) from e

    index = load_mtime_index(library_dir)
    library_info = load_library_info(library_dir)

    folder_filter = None
    if options.group_by_smart_folder:
        folder_filter = SmartFolderFilter(library_info)
        for error in folder_filter.errors:
            logger.warning(str(error))

    progress = options.progress
    if progress is not None:
        progress.set_total(index.total)

    max_workers = options.max_workers or os.cpu_count() or 1
    result = ExportResult(total=len(index))
    claims = _DestinationClaims()

    logger.info(
        f"Exporting {len(index)} assets from {library_dir} to {output_dir} "
        f"(workers={max_workers}, overwrite={options.overwrite}, "
        f"group_by_smart_folder={options.group_by_smart_folder})"
    )

    with ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="eagle-export") as executor:
        futures = {
            executor.submit(
                _export_asset,
                library_dir,
                output_dir,
                asset_id,
                mtime,
                folder_filter,
                options,
                store,
                claims,
            ): asset_id
            for asset_id, mtime in index.items()
        }

        for future in as_completed(futures):
            asset_id = futures[future]
            try:
                outcome = future.result()
            except AssetExportError as e:
                logger.error(f"Export failed: {e}")
                result.errors.append(e)
            except Exception as e:
                logger.exception(f"Unexpected error exporting asset {asset_id}")
                result.errors.append(AssetExportError(asset_id, "unexpected", e))
            else:
                if outcome.status == COPIED:
                    result.copied += 1
                    result.bytes_copied += outcome.bytes_copied
                elif outcome.status == UP_TO_DATE:
                    result.up_to_date += 1
                else:
                    result.deleted += 1
            finally:
                if progress is not None:
                    progress.asset_done()

    logger.info(
        f"Export finished: {result.copied} copied, {result.up_to_date} up to date, "
        f"{result.deleted} deleted, {result.failed} failed ({result.bytes_copied} bytes)"
    )
    return result


class Library:
    """An Eagle library on disk, exported through a destination store."""

    def __init__(self, base_dir: Union[str, Path], store: Optional[FileStore] = None):
        self.base_dir = Path(base_dir)
        self.store = store or LocalFileStore()

    def export(self, output_dir: Union[str, Path], options: Optional[ExportOptions] = None) -> ExportResult:
        return export_library(self.base_dir, output_dir, options, self.store)
