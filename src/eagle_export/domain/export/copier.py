"""
Incremental asset copying.

Decides whether an asset's content needs to be copied to the destination
and performs the copy. Source files are read from the local filesystem;
destination writes go through a FileStore.
"""

import os
from pathlib import Path
from typing import Optional

from loguru import logger

from ...core.filestore import FileStore, FileTimes
from .exceptions import CopyFailed
from .progress import ProgressSink

CHUNK_SIZE = 1024 * 1024  # 1 MiB


def needs_copy(
    source_times: FileTimes,
    dest_times: Optional[FileTimes],
    recorded_mtime_ms: int,
    overwrite: bool = False,
) -> bool:
    """Return True if the destination must be (re)written.

    A copy is needed when any of these hold:
    - the destination does not exist
    - source and destination filesystem mtimes differ
    - the recorded index mtime differs from the destination mtime (in ms)
    - overwrite is requested
    """
    if overwrite or dest_times is None:
        return True
    if source_times.mtime_ns != dest_times.mtime_ns:
        return True
    return recorded_mtime_ms != dest_times.mtime_ms


def _stream(src_file, dst_file, progress: Optional[ProgressSink]) -> int:
    copied = 0
    while True:
        chunk = src_file.read(CHUNK_SIZE)
        if not chunk:
            break
        dst_file.write(chunk)
        copied += len(chunk)
        if progress is not None:
            progress.advance(len(chunk))
    return copied


def copy_asset(
    source: Path,
    destination: Path,
    recorded_mtime_ms: int,
    store: FileStore,
    overwrite: bool = False,
    progress: Optional[ProgressSink] = None,
) -> Optional[int]:
    """Copy one asset if it changed since the last export.

    Args:
        source: Content file inside the library
        destination: Target path in the destination store
        recorded_mtime_ms: The asset's entry in mtime.json
        store: Destination file store
        overwrite: Copy even when timestamps say the destination is current
        progress: Optional sink receiving streamed byte counts

    Returns:
        Bytes copied, or None if the destination was already up to date

    Raises:
        CopyFailed: If opening, streaming, or setting times fails. The
            destination is left as the failing step left it.
    """
    try:
        src_file = open(source, "rb")
    except OSError as e:
        raise CopyFailed(source, destination, "open source", str(e)) from e

    with src_file:
        try:
            source_times = FileTimes.from_stat(os.fstat(src_file.fileno()))
        except OSError as e:
            raise CopyFailed(source, destination, "stat source", str(e)) from e

        try:
            dest_times = store.stat(destination)
        except OSError as e:
            raise CopyFailed(source, destination, "stat destination", str(e)) from e

        if not needs_copy(source_times, dest_times, recorded_mtime_ms, overwrite):
            logger.debug(f"Up to date: {destination}")
            return None

        try:
            store.makedirs(destination.parent)
        except OSError as e:
            raise CopyFailed(source, destination, "create directory", str(e)) from e

        try:
            dst_file = store.open_write(destination)
        except OSError as e:
            raise CopyFailed(source, destination, "open destination", str(e)) from e

        try:
            with dst_file:
                copied = _stream(src_file, dst_file, progress)
        except OSError as e:
            raise CopyFailed(source, destination, "copy", str(e)) from e

    try:
        store.set_times(destination, source_times.atime_ns, source_times.mtime_ns)
    except OSError as e:
        raise CopyFailed(source, destination, "set times", str(e)) from e

    logger.debug(f"Copied {copied} bytes: {source} -> {destination}")
    return copied
