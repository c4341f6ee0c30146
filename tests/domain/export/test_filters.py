"""Tests for smart folder rule evaluation."""

import pytest

from eagle_export.domain.export import InvalidRule, SmartFolderFilter, validate_rule
from eagle_export.domain.library import AssetInfo, LibraryInfo, SmartFolder


def make_asset(**kwargs) -> AssetInfo:
    defaults = {"id": "a1", "name": "photo", "ext": "jpg"}
    defaults.update(kwargs)
    return AssetInfo(**defaults)


def rule(prop, method, value=None) -> dict:
    return {"property": prop, "method": method, "value": value}


def folder(name, *rules, match="AND", boolean="TRUE", children=(), conditions=None) -> SmartFolder:
    if conditions is None:
        conditions = ({"match": match, "boolean": boolean, "rules": list(rules)},) if rules else ()
    return SmartFolder(id=name, name=name, conditions=tuple(conditions), children=tuple(children))


def make_filter(*folders, folder_ids=()) -> SmartFolderFilter:
    return SmartFolderFilter(
        LibraryInfo(smart_folders=tuple(folders), folder_ids=frozenset(folder_ids))
    )


class TestValidateRule:
    """Tests for validate_rule."""

    def test_unknown_property(self):
        with pytest.raises(ValueError, match="Invalid property"):
            validate_rule(rule("colour", "is", "red"), frozenset())

    def test_method_not_valid_for_property(self):
        with pytest.raises(ValueError, match="not valid for numeric property"):
            validate_rule(rule("width", "contain", "1"), frozenset())

    def test_non_numeric_value(self):
        with pytest.raises(ValueError, match="not a valid number"):
            validate_rule(rule("star", ">", "lots"), frozenset())

    def test_undefined_folder(self):
        with pytest.raises(ValueError, match="undefined folder"):
            validate_rule(rule("folders", "union", ["F9"]), frozenset({"F1"}))

    def test_rating_alias_and_normalization(self):
        assert validate_rule(rule("rating", ">=", "4"), frozenset()).property == "star"
        assert validate_rule(rule("ext", "is", ".PNG"), frozenset()).value == "png"
        assert validate_rule(rule("tags", "union", "Cat"), frozenset()).value == frozenset({"cat"})


class TestListRules:
    """Tests for tags/folders rules."""

    def test_union_matches_any_tag_case_insensitively(self):
        f = make_filter(folder("Animals", rule("tags", "union", ["cat", "dog"])))
        assert f.evaluate(make_asset(tags=("Dog",))) == "Animals"
        assert f.evaluate(make_asset(tags=("bird",))) == ""

    def test_intersection_needs_all(self):
        f = make_filter(folder("Both", rule("tags", "intersection", ["cat", "dog"])))
        assert f.evaluate(make_asset(tags=("cat", "dog", "bird"))) == "Both"
        assert f.evaluate(make_asset(tags=("cat",))) == ""

    def test_equal_and_empty(self):
        f = make_filter(
            folder("Exact", rule("tags", "equal", ["cat"])),
            folder("Untagged", rule("tags", "empty")),
        )
        assert f.evaluate(make_asset(tags=("cat",))) == "Exact"
        assert f.evaluate(make_asset(tags=())) == "Untagged"
        assert f.evaluate(make_asset(tags=("cat", "dog"))) == ""

    def test_folder_membership(self):
        f = make_filter(folder("Work", rule("folders", "union", ["F1"])), folder_ids={"F1"})
        assert f.evaluate(make_asset(folders=("F1",))) == "Work"
        assert f.evaluate(make_asset(folders=("F2",))) == ""


class TestTextAndNumericRules:
    """Tests for text and numeric rules."""

    @pytest.mark.parametrize(
        "method,value,expected",
        [
            ("contain", "UNS", True),
            ("uncontain", "uns", False),
            ("is", "sunset", True),
            ("isNot", "sunset", False),
            ("startWith", "sun", True),
            ("endWith", "set", True),
            ("endWith", "sun", False),
        ],
    )
    def test_text_methods(self, method, value, expected):
        f = make_filter(folder("Hit", rule("name", method, value)))
        assert (f.evaluate(make_asset(name="Sunset")) == "Hit") is expected

    @pytest.mark.parametrize(
        "method,value,expected",
        [("=", 1920, True), ("!=", 1920, False), (">", 1000, True), ("<", 1000, False),
         (">=", "1920", True), ("<=", 1919, False)],
    )
    def test_numeric_methods(self, method, value, expected):
        f = make_filter(folder("Wide", rule("width", method, value)))
        assert (f.evaluate(make_asset(width=1920)) == "Wide") is expected


class TestConditions:
    """Tests for condition match/boolean handling."""

    def test_or_match(self):
        f = make_filter(folder("Either", rule("ext", "is", "png"), rule("star", ">=", 4), match="OR"))
        assert f.evaluate(make_asset(ext="png")) == "Either"
        assert f.evaluate(make_asset(star=5)) == "Either"
        assert f.evaluate(make_asset(star=1)) == ""

    def test_boolean_false_negates(self):
        f = make_filter(folder("NotCats", rule("tags", "union", ["cat"]), boolean="FALSE"))
        assert f.evaluate(make_asset(tags=("dog",))) == "NotCats"
        assert f.evaluate(make_asset(tags=("cat",))) == ""

    def test_all_conditions_must_hold(self):
        f = make_filter(
            folder(
                "Big PNG",
                conditions=[
                    {"rules": [rule("ext", "is", "png")]},
                    {"rules": [rule("width", ">", 1000)]},
                ],
            )
        )
        assert f.evaluate(make_asset(ext="png", width=2000)) == "Big PNG"
        assert f.evaluate(make_asset(ext="png", width=10)) == ""


class TestTreeEvaluation:
    """Tests for nesting and ordering."""

    def test_first_top_level_match_wins(self):
        f = make_filter(
            folder("First", rule("tags", "union", ["cat"])),
            folder("Second", rule("tags", "union", ["cat"])),
        )
        assert f.evaluate(make_asset(tags=("cat",))) == "First"

    def test_deepest_matching_child(self):
        child = folder("Cats", rule("tags", "union", ["cat"]))
        parent = folder("Photos", rule("ext", "is", "jpg"), children=[child])
        f = make_filter(parent)
        assert f.evaluate(make_asset(tags=("cat",))) == "Photos/Cats"
        assert f.evaluate(make_asset(tags=("dog",))) == "Photos"
        assert f.evaluate(make_asset(ext="png", tags=("cat",))) == ""

    def test_conditionless_folder_groups_children(self):
        child = folder("Cats", rule("tags", "union", ["cat"]))
        f = make_filter(folder("Animals", children=[child]))
        assert f.evaluate(make_asset(tags=("cat",))) == "Animals/Cats"
        assert f.evaluate(make_asset(tags=("dog",))) == ""

    def test_folder_names_stay_single_segment(self):
        f = make_filter(folder("a/b", rule("ext", "is", "jpg")))
        assert f.evaluate(make_asset()) == "a_b"


class TestInvalidRules:
    """Invalid rules fail the assets that reach them, nothing else."""

    def test_errors_are_collected_at_construction(self):
        f = make_filter(folder("Broken", rule("folders", "union", ["missing"])))
        assert len(f.errors) == 1
        assert f.errors[0].folder_name == "Broken"

    def test_evaluate_raises_when_reaching_invalid_folder(self):
        f = make_filter(
            folder("Good", rule("tags", "union", ["cat"])),
            folder("Broken", rule("colour", "is", "red")),
        )
        assert f.evaluate(make_asset(tags=("cat",))) == "Good"
        with pytest.raises(InvalidRule, match="Broken"):
            f.evaluate(make_asset(tags=("dog",)))

    def test_bad_match_value(self):
        f = make_filter(folder("Odd", rule("ext", "is", "jpg"), match="XOR"))
        with pytest.raises(InvalidRule, match="AND' or 'OR"):
            f.evaluate(make_asset())
