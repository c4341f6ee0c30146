"""
Library metadata loading.

Reads the documents an Eagle library keeps on disk:

- ``mtime.json``: asset id -> modification time (ms), plus the ``all`` count
- ``metadata.json``: library-wide folders and smart folders
- ``images/<id>.info/metadata.json``: one record per asset

Library-wide failures abort an export; per-asset failures only fail
that asset.
"""

import json
from pathlib import Path
from typing import Any, Optional

from loguru import logger

from .exceptions import MetadataUnreadable
from .models import ALL_KEY, AssetInfo, LibraryInfo, MtimeIndex, SmartFolder

MTIME_FILE = "mtime.json"
LIBRARY_METADATA_FILE = "metadata.json"
IMAGES_DIR = "images"
ASSET_METADATA_FILE = "metadata.json"


def get_asset_dir(library_dir: Path, asset_id: str) -> Path:
    """Directory holding one asset's metadata and content file."""
    return Path(library_dir) / IMAGES_DIR / f"{asset_id}.info"


def get_asset_source_path(library_dir: Path, asset: AssetInfo) -> Path:
    """Path of the asset's content file inside the library."""
    return get_asset_dir(library_dir, asset.id) / asset.file_name


def _read_json(path: Path, asset_id: Optional[str] = None) -> Any:
    try:
        with open(path, "r", encoding="utf-8") as f:
            return json.load(f)
    except FileNotFoundError as e:
        raise MetadataUnreadable(path, "file not found", asset_id) from e
    except json.JSONDecodeError as e:
        raise MetadataUnreadable(path, f"invalid JSON ({e})", asset_id) from e
    except (OSError, UnicodeDecodeError) as e:
        raise MetadataUnreadable(path, str(e), asset_id) from e


def _as_int(value: Any) -> Optional[int]:
    """Return value as int if it is an integral number, else None."""
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float) and value.is_integer():
        return int(value)
    return None


def load_mtime_index(library_dir: Path) -> MtimeIndex:
    """Load the modification-time index.

    Args:
        library_dir: Library root

    Returns:
        MtimeIndex with the ``all`` total split out of the entries

    Raises:
        MetadataUnreadable: If the file is missing, malformed, or lacks ``all``
    """
    path = Path(library_dir) / MTIME_FILE
    data = _read_json(path)

    if not isinstance(data, dict):
        raise MetadataUnreadable(path, f"expected an object, got {type(data).__name__}")

    if ALL_KEY not in data:
        raise MetadataUnreadable(path, f"field '{ALL_KEY}' not exists")

    total = _as_int(data[ALL_KEY])
    if total is None or total < 0:
        raise MetadataUnreadable(path, f"field '{ALL_KEY}' is not a count: {data[ALL_KEY]!r}")

    entries: dict[str, int] = {}
    for asset_id, value in data.items():
        if asset_id == ALL_KEY:
            continue
        mtime = _as_int(value)
        if mtime is None:
            raise MetadataUnreadable(
                path, f"modification time for '{asset_id}' is not an integer: {value!r}"
            )
        entries[asset_id] = mtime

    logger.debug(f"Loaded mtime index: {len(entries)} entries (all={total})")
    return MtimeIndex(total=total, entries=entries)


def _parse_smart_folder(data: Any, path: Path) -> SmartFolder:
    if not isinstance(data, dict):
        raise MetadataUnreadable(path, f"smart folder must be an object, got {data!r}")

    folder_id = data.get("id")
    name = data.get("name")
    if not isinstance(folder_id, str) or not isinstance(name, str):
        raise MetadataUnreadable(path, f"smart folder without id/name: {data!r}")

    conditions = data.get("conditions") or []
    children = data.get("children") or []
    if not isinstance(conditions, list) or not isinstance(children, list):
        raise MetadataUnreadable(
            path, f"smart folder '{name}' has non-list conditions or children"
        )
    for condition in conditions:
        if not isinstance(condition, dict):
            raise MetadataUnreadable(path, f"smart folder '{name}' has a non-object condition")

    return SmartFolder(
        id=folder_id,
        name=name,
        conditions=tuple(conditions),
        children=tuple(_parse_smart_folder(child, path) for child in children),
    )


def _collect_folder_ids(folders: Any, path: Path) -> set[str]:
    ids: set[str] = set()
    stack = list(folders)
    while stack:
        folder = stack.pop()
        if not isinstance(folder, dict) or not isinstance(folder.get("id"), str):
            raise MetadataUnreadable(path, f"folder without id: {folder!r}")
        ids.add(folder["id"])
        children = folder.get("children") or []
        if not isinstance(children, list):
            raise MetadataUnreadable(path, f"folder '{folder['id']}' has non-list children")
        stack.extend(children)
    return ids


def load_library_info(library_dir: Path) -> LibraryInfo:
    """Load the library-wide metadata document.

    Raises:
        MetadataUnreadable: If the file is missing or malformed
    """
    path = Path(library_dir) / LIBRARY_METADATA_FILE
    data = _read_json(path)

    if not isinstance(data, dict):
        raise MetadataUnreadable(path, f"expected an object, got {type(data).__name__}")

    smart_folders = data.get("smartFolders") or []
    folders = data.get("folders") or []
    if not isinstance(smart_folders, list) or not isinstance(folders, list):
        raise MetadataUnreadable(path, "'smartFolders' and 'folders' must be lists")

    info = LibraryInfo(
        smart_folders=tuple(_parse_smart_folder(sf, path) for sf in smart_folders),
        folder_ids=frozenset(_collect_folder_ids(folders, path)),
    )
    logger.debug(
        f"Loaded library metadata: {len(info.smart_folders)} top-level smart folders, "
        f"{len(info.folder_ids)} folders"
    )
    return info


def _str_list(value: Any, field_name: str, path: Path, asset_id: str) -> tuple[str, ...]:
    if value is None:
        return ()
    if not isinstance(value, list) or not all(isinstance(v, str) for v in value):
        raise MetadataUnreadable(path, f"'{field_name}' must be a list of strings", asset_id)
    return tuple(value)


def load_asset_info(library_dir: Path, asset_id: str) -> AssetInfo:
    """Load a single asset's metadata record.

    Args:
        library_dir: Library root
        asset_id: Asset identifier (key in mtime.json)

    Raises:
        MetadataUnreadable: Scoped to ``asset_id`` if the record is missing
            or malformed
    """
    path = get_asset_dir(library_dir, asset_id) / ASSET_METADATA_FILE
    data = _read_json(path, asset_id)

    if not isinstance(data, dict):
        raise MetadataUnreadable(path, f"expected an object, got {type(data).__name__}", asset_id)

    is_deleted = data.get("isDeleted", False)
    if not isinstance(is_deleted, bool):
        raise MetadataUnreadable(path, f"'isDeleted' must be a boolean, got {is_deleted!r}", asset_id)
    name = data.get("name")
    ext = data.get("ext", "")

    if is_deleted:
        # Deleted records are skipped, only the flag matters
        return AssetInfo(
            id=asset_id,
            name=name if isinstance(name, str) else "",
            ext=ext if isinstance(ext, str) else "",
            is_deleted=True,
        )

    if not isinstance(name, str) or not name:
        raise MetadataUnreadable(path, "missing 'name'", asset_id)
    if not isinstance(ext, str):
        raise MetadataUnreadable(path, f"'ext' must be a string, got {ext!r}", asset_id)

    numbers = {}
    for key in ("size", "width", "height", "star"):
        value = data.get(key, 0)
        number = _as_int(value) if value is not None else 0
        if number is None:
            raise MetadataUnreadable(path, f"'{key}' must be an integer, got {value!r}", asset_id)
        numbers[key] = number

    annotation = data.get("annotation") or ""
    url = data.get("url") or ""

    return AssetInfo(
        id=asset_id,
        name=name,
        ext=ext,
        is_deleted=False,
        tags=_str_list(data.get("tags"), "tags", path, asset_id),
        folders=_str_list(data.get("folders"), "folders", path, asset_id),
        annotation=annotation if isinstance(annotation, str) else str(annotation),
        url=url if isinstance(url, str) else str(url),
        modification_time=_as_int(data.get("modificationTime")),
        **numbers,
    )
