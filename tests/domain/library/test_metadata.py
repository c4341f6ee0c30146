"""Tests for library metadata loading."""

import json

import pytest

from eagle_export.domain.library import (
    AssetInfo,
    MetadataUnreadable,
    get_asset_source_path,
    load_asset_info,
    load_library_info,
    load_mtime_index,
)


class TestLoadMtimeIndex:
    """Tests for load_mtime_index."""

    def test_splits_all_from_entries(self, library):
        library.add_asset("a1", mtime_ms=1000)
        library.add_asset("a2", mtime_ms=2000)
        root = library.write()

        index = load_mtime_index(root)

        assert index.total == 2
        assert index.entries == {"a1": 1000, "a2": 2000}
        assert "all" not in index.entries
        assert len(index) == 2

    def test_missing_file(self, tmp_path):
        with pytest.raises(MetadataUnreadable) as exc_info:
            load_mtime_index(tmp_path)
        assert exc_info.value.asset_id is None
        assert "not found" in str(exc_info.value)

    def test_missing_all_entry(self, tmp_path):
        (tmp_path / "mtime.json").write_text(json.dumps({"a1": 1000}))
        with pytest.raises(MetadataUnreadable, match="'all' not exists"):
            load_mtime_index(tmp_path)

    def test_malformed_json(self, tmp_path):
        (tmp_path / "mtime.json").write_text("{not json")
        with pytest.raises(MetadataUnreadable, match="invalid JSON"):
            load_mtime_index(tmp_path)

    def test_non_object_document(self, tmp_path):
        (tmp_path / "mtime.json").write_text("[1, 2, 3]")
        with pytest.raises(MetadataUnreadable, match="expected an object"):
            load_mtime_index(tmp_path)

    def test_non_integer_timestamp(self, tmp_path):
        (tmp_path / "mtime.json").write_text(json.dumps({"all": 1, "a1": "yesterday"}))
        with pytest.raises(MetadataUnreadable, match="not an integer"):
            load_mtime_index(tmp_path)

    def test_integral_float_is_accepted(self, tmp_path):
        (tmp_path / "mtime.json").write_text(json.dumps({"all": 1, "a1": 1000.0}))
        assert load_mtime_index(tmp_path).entries == {"a1": 1000}


class TestLoadLibraryInfo:
    """Tests for load_library_info."""

    def test_nested_smart_folders_and_folder_ids(self, library):
        library.folders = [{"id": "F1", "name": "Work", "children": [{"id": "F2", "name": "Sub"}]}]
        library.smart_folders = [
            {
                "id": "S1",
                "name": "Photos",
                "conditions": [],
                "children": [{"id": "S2", "name": "Cats", "conditions": []}],
            }
        ]
        root = library.write()

        info = load_library_info(root)

        assert info.folder_ids == frozenset({"F1", "F2"})
        assert [f.name for f in info.iter_smart_folders()] == ["Photos", "Cats"]
        assert info.smart_folders[0].children[0].id == "S2"

    def test_missing_sections_default_to_empty(self, tmp_path):
        (tmp_path / "metadata.json").write_text("{}")
        info = load_library_info(tmp_path)
        assert info.smart_folders == ()
        assert info.folder_ids == frozenset()

    def test_missing_file(self, tmp_path):
        with pytest.raises(MetadataUnreadable):
            load_library_info(tmp_path)

    def test_smart_folder_without_name(self, tmp_path):
        (tmp_path / "metadata.json").write_text(json.dumps({"smartFolders": [{"id": "S1"}]}))
        with pytest.raises(MetadataUnreadable, match="without id/name"):
            load_library_info(tmp_path)

    def test_smart_folders_not_a_list(self, tmp_path):
        (tmp_path / "metadata.json").write_text(json.dumps({"smartFolders": {"id": "S1"}}))
        with pytest.raises(MetadataUnreadable, match="must be lists"):
            load_library_info(tmp_path)


class TestLoadAssetInfo:
    """Tests for load_asset_info."""

    def test_full_record(self, library):
        library.add_asset(
            "a1",
            name="sunset",
            ext="png",
            tags=["Beach", "summer"],
            folders=["F1"],
            annotation="golden hour",
            width=1920,
            height=1080,
            star=4,
            modificationTime=1234,
        )
        root = library.write()

        asset = load_asset_info(root, "a1")

        assert asset == AssetInfo(
            id="a1",
            name="sunset",
            ext="png",
            tags=("Beach", "summer"),
            folders=("F1",),
            annotation="golden hour",
            width=1920,
            height=1080,
            star=4,
            modification_time=1234,
        )
        assert asset.file_name == "sunset.png"
        assert get_asset_source_path(root, asset) == root / "images" / "a1.info" / "sunset.png"

    def test_deleted_record_needs_only_the_flag(self, library):
        root = library.write()
        info_dir = root / "images" / "a2.info"
        info_dir.mkdir(parents=True)
        (info_dir / "metadata.json").write_text(json.dumps({"isDeleted": True}))

        asset = load_asset_info(root, "a2")

        assert asset.is_deleted

    def test_missing_record_is_scoped_to_asset(self, library):
        root = library.write()
        with pytest.raises(MetadataUnreadable) as exc_info:
            load_asset_info(root, "ghost")
        assert exc_info.value.asset_id == "ghost"
        assert "asset 'ghost'" in str(exc_info.value)

    def test_missing_name(self, library):
        root = library.write()
        info_dir = root / "images" / "a1.info"
        info_dir.mkdir(parents=True)
        (info_dir / "metadata.json").write_text(json.dumps({"ext": "jpg"}))
        with pytest.raises(MetadataUnreadable, match="missing 'name'"):
            load_asset_info(root, "a1")

    def test_bad_tags(self, library):
        library.add_asset("a1", tags="not-a-list")
        root = library.write()
        with pytest.raises(MetadataUnreadable, match="'tags' must be a list"):
            load_asset_info(root, "a1")

    @pytest.mark.parametrize("flag", ["false", "true", 0, 1, None])
    def test_is_deleted_must_be_boolean(self, library, flag):
        library.add_asset("a1", deleted=flag)
        root = library.write()
        with pytest.raises(MetadataUnreadable, match="'isDeleted' must be a boolean") as exc_info:
            load_asset_info(root, "a1")
        assert exc_info.value.asset_id == "a1"

    def test_file_name_without_extension(self):
        assert AssetInfo(id="a", name="README", ext="").file_name == "README"
