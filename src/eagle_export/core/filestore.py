"""
Destination file store abstraction.

The export engine writes through a FileStore so that it never assumes a
particular backing store. LocalFileStore is the on-disk implementation;
tests and embedders may supply their own.
"""

import os
import shutil
from pathlib import Path
from typing import BinaryIO, NamedTuple, Optional, Protocol, Union

PathLike = Union[str, Path]


class FileTimes(NamedTuple):
    """Timestamps and size of a stored file, nanosecond precision."""

    atime_ns: int
    mtime_ns: int
    size: int = 0

    @property
    def mtime_ms(self) -> int:
        return self.mtime_ns // 1_000_000

    @classmethod
    def from_stat(cls, st: os.stat_result) -> "FileTimes":
        return cls(atime_ns=st.st_atime_ns, mtime_ns=st.st_mtime_ns, size=st.st_size)


class FileStore(Protocol):
    """Hierarchical file store used for destination writes."""

    def open_write(self, path: PathLike) -> BinaryIO:
        """Open a file for writing, creating or truncating it."""
        ...

    def makedirs(self, path: PathLike) -> None:
        """Create a directory and its parents. Existing directories are fine."""
        ...

    def remove_tree(self, path: PathLike) -> None:
        """Recursively remove a path. A missing path is fine."""
        ...

    def stat(self, path: PathLike) -> Optional[FileTimes]:
        """Return file times, or None when the path does not exist."""
        ...

    def set_times(self, path: PathLike, atime_ns: int, mtime_ns: int) -> None:
        """Set access and modification times."""
        ...


class LocalFileStore:
    """FileStore backed by the local filesystem.

    Relative paths are resolved against ``root`` when one is given,
    otherwise against the process working directory.
    """

    def __init__(self, root: Optional[PathLike] = None):
        self.root = Path(root).expanduser() if root is not None else None

    def _resolve(self, path: PathLike) -> Path:
        p = Path(path)
        if self.root is not None and not p.is_absolute():
            return self.root / p
        return p

    def open_write(self, path: PathLike) -> BinaryIO:
        return open(self._resolve(path), "wb")

    def makedirs(self, path: PathLike) -> None:
        target = self._resolve(path)
        try:
            target.mkdir(parents=True, exist_ok=True)
        except FileExistsError:
            # Lost a race with another worker creating the same directory
            if not target.is_dir():
                raise

    def remove_tree(self, path: PathLike) -> None:
        target = self._resolve(path)
        if target.is_symlink() or target.is_file():
            target.unlink()
            return
        if target.exists():
            shutil.rmtree(target)

    def stat(self, path: PathLike) -> Optional[FileTimes]:
        try:
            return FileTimes.from_stat(os.stat(self._resolve(path)))
        except FileNotFoundError:
            return None

    def set_times(self, path: PathLike, atime_ns: int, mtime_ns: int) -> None:
        os.utime(self._resolve(path), ns=(atime_ns, mtime_ns))
