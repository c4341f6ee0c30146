"""Shared fixtures: throwaway Eagle libraries on disk."""

import json
import os
from pathlib import Path
from typing import Any, Optional

import pytest


def set_mtime_ms(path: Path, mtime_ms: int) -> None:
    """Set both atime and mtime of a file to a millisecond timestamp."""
    ns = mtime_ms * 1_000_000
    os.utime(path, ns=(ns, ns))


class LibraryBuilder:
    """Build an Eagle-style library under a temporary directory."""

    def __init__(self, root: Path):
        self.root = root
        self.root.mkdir(parents=True, exist_ok=True)
        self.mtimes: dict[str, int] = {}
        self.smart_folders: list[dict[str, Any]] = []
        self.folders: list[dict[str, Any]] = []
        self.total: Optional[int] = None

    def add_asset(
        self,
        asset_id: str,
        name: str = "x",
        ext: str = "jpg",
        content: bytes = b"image-bytes",
        mtime_ms: int = 1_600_000_000_000,
        deleted: bool = False,
        source_mtime_ms: Optional[int] = None,
        write_content: bool = True,
        **extra: Any,
    ) -> Path:
        """Add an asset; returns the path of its content file."""
        info_dir = self.root / "images" / f"{asset_id}.info"
        info_dir.mkdir(parents=True, exist_ok=True)
        record = {"id": asset_id, "name": name, "ext": ext, "isDeleted": deleted, **extra}
        (info_dir / "metadata.json").write_text(json.dumps(record), encoding="utf-8")

        content_path = info_dir / f"{name}.{ext}"
        if write_content:
            content_path.write_bytes(content)
            set_mtime_ms(content_path, source_mtime_ms if source_mtime_ms is not None else mtime_ms)

        self.mtimes[asset_id] = mtime_ms
        return content_path

    def add_index_entry(self, asset_id: str, mtime_ms: int) -> None:
        """Index an asset without writing any metadata for it."""
        self.mtimes[asset_id] = mtime_ms

    def write(self) -> Path:
        index = {"all": self.total if self.total is not None else len(self.mtimes), **self.mtimes}
        (self.root / "mtime.json").write_text(json.dumps(index), encoding="utf-8")
        metadata = {"folders": self.folders, "smartFolders": self.smart_folders}
        (self.root / "metadata.json").write_text(json.dumps(metadata), encoding="utf-8")
        return self.root


@pytest.fixture
def library(tmp_path: Path) -> LibraryBuilder:
    """A library builder rooted at tmp_path/My.library."""
    return LibraryBuilder(tmp_path / "My.library")


@pytest.fixture
def output_dir(tmp_path: Path) -> Path:
    return tmp_path / "export"
