"""
Library domain models.

Read-only snapshots of the documents an Eagle library keeps on disk.
None of these are mutated during an export.
"""

from dataclasses import dataclass, field
from typing import Any, NamedTuple, Optional

# Reserved mtime.json key holding the total asset count
ALL_KEY = "all"


class AssetInfo(NamedTuple):
    """Per-asset metadata record (images/<id>.info/metadata.json)."""

    id: str
    name: str
    ext: str
    is_deleted: bool = False
    tags: tuple[str, ...] = ()
    folders: tuple[str, ...] = ()  # Physical folder ids the asset belongs to
    annotation: str = ""
    url: str = ""
    size: int = 0
    width: int = 0
    height: int = 0
    star: int = 0  # Rating, 0-5
    modification_time: Optional[int] = None  # ms since epoch

    @property
    def file_name(self) -> str:
        """Content file name as stored in the library and in the export."""
        return f"{self.name}.{self.ext}" if self.ext else self.name

    def attribute(self, name: str) -> Any:
        """Value of a rule-inspectable attribute."""
        return getattr(self, name)


@dataclass(frozen=True)
class SmartFolder:
    """A named, rule-defined virtual grouping of assets."""

    id: str
    name: str
    conditions: tuple[dict[str, Any], ...] = ()
    children: tuple["SmartFolder", ...] = ()


@dataclass(frozen=True)
class LibraryInfo:
    """Library-wide metadata document (metadata.json)."""

    smart_folders: tuple[SmartFolder, ...] = ()
    folder_ids: frozenset[str] = field(default_factory=frozenset)

    def iter_smart_folders(self):
        """Yield every smart folder, depth-first, parents before children."""
        stack = list(reversed(self.smart_folders))
        while stack:
            folder = stack.pop()
            yield folder
            stack.extend(reversed(folder.children))


@dataclass(frozen=True)
class MtimeIndex:
    """Parsed mtime.json: asset id -> last modification time in ms."""

    total: int
    entries: dict[str, int] = field(default_factory=dict)

    def __len__(self) -> int:
        return len(self.entries)

    def items(self):
        return self.entries.items()
