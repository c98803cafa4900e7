"""Unit tests for exercise_pipeline.overrides."""

from __future__ import annotations

import pytest

from exercise_pipeline.errors import ConfigError
from exercise_pipeline.items import ExerciseSchema
from exercise_pipeline.overrides import (
    MergedRecords,
    TagOverrideMap,
    find_orphans,
    merge_overrides,
    merge_record_tags,
)


def _ex(exercise_id: str, tags: list[str]) -> ExerciseSchema:
    return ExerciseSchema(id=exercise_id, name=exercise_id, tags=tags)


class TestTagOverrideMap:
    def test_flat_shape(self):
        m = TagOverrideMap.from_mapping({"heightening": ["ex-1", "ex-9"]})
        assert m.tags == {"heightening": frozenset({"ex-1", "ex-9"})}

    def test_curated_file_shape(self):
        m = TagOverrideMap.from_mapping({
            "tags": {"grounding": {"description": "who/what/where", "exercises": ["zip-zap"]}},
        })
        assert m.tags == {"grounding": frozenset({"zip-zap"})}

    def test_tag_names_lowercased_and_merged(self):
        m = TagOverrideMap.from_mapping({"Heightening": ["a"], "heightening ": ["b"]})
        assert m.tags == {"heightening": frozenset({"a", "b"})}

    def test_blank_ids_ignored(self):
        m = TagOverrideMap.from_mapping({"x": ["a", " ", ""]})
        assert m.exercise_ids == frozenset({"a"})

    def test_empty(self):
        m = TagOverrideMap.from_mapping(None)
        assert len(m) == 0
        assert m.exercise_ids == frozenset()

    def test_by_exercise(self):
        m = TagOverrideMap.from_mapping({"a": ["ex-1"], "b": ["ex-1", "ex-2"]})
        assert m.by_exercise() == {
            "ex-1": frozenset({"a", "b"}),
            "ex-2": frozenset({"b"}),
        }

    def test_loads_fixture(self, overrides_path):
        from exercise_pipeline.profiles import load_overrides

        m = load_overrides(overrides_path)
        assert set(m.tags) == {"heightening", "grounding"}
        assert m.exercise_ids == frozenset({"yes-and", "improwiki:ghost", "zip-zap"})


class TestMergeRecordTags:
    def test_adds_and_sorts(self):
        assert merge_record_tags(["game"], ["heightening"]) == ["game", "heightening"]

    def test_nothing_added(self):
        assert merge_record_tags(["b", "a"], ["a"]) is None


class TestMergeOverrides:
    def test_orphan_and_merge(self):
        override_map = TagOverrideMap.from_mapping({"heightening": ["ex-1", "ex-9"]})
        result = merge_overrides([_ex("ex-1", ["game"])], override_map)

        assert isinstance(result, MergedRecords)
        assert result.records[0].tags == ["game", "heightening"]
        assert result.stats.updated == 1
        assert result.stats.orphaned_ids == ("ex-9",)
        assert result.matched_ids == frozenset({"ex-1"})
        assert len(result.records) == 1

    def test_unmatched_record_is_same_object(self):
        record = _ex("ex-2", ["zeta", "alpha"])
        result = merge_overrides([record], TagOverrideMap.from_mapping({"x": ["ex-1"]}))
        assert result.records[0] is record

    def test_no_new_tags_leaves_order_alone(self):
        record = _ex("ex-1", ["zeta", "heightening"])
        result = merge_overrides([record], TagOverrideMap.from_mapping({"heightening": ["ex-1"]}))
        assert result.records[0] is record
        assert result.records[0].tags == ["zeta", "heightening"]
        assert result.stats.updated == 0
        assert result.matched_ids == frozenset({"ex-1"})

    def test_never_removes_tags(self):
        records = [_ex("a", ["x", "y"]), _ex("b", ["z"])]
        result = merge_overrides(records, TagOverrideMap.from_mapping({"w": ["a", "b"]}))
        for before, after in zip(records, result.records):
            assert set(before.tags) <= set(after.tags)

    def test_idempotent(self):
        override_map = TagOverrideMap.from_mapping(
            {"heightening": ["ex-1"], "grounding": ["ex-2"]},
        )
        records = [_ex("ex-1", ["game"]), _ex("ex-2", [])]
        once = merge_overrides(records, override_map)
        twice = merge_overrides(once.records, override_map)
        assert [r.tags for r in twice.records] == [r.tags for r in once.records]
        assert twice.stats.updated == 0

    def test_input_not_mutated(self):
        record = _ex("ex-1", ["game"])
        merge_overrides([record], TagOverrideMap.from_mapping({"heightening": ["ex-1"]}))
        assert record.tags == ["game"]

    def test_order_preserved(self):
        records = [_ex(i, []) for i in ("c", "a", "b")]
        result = merge_overrides(records, TagOverrideMap.from_mapping({"t": ["a"]}))
        assert [r.id for r in result.records] == ["c", "a", "b"]


class TestFindOrphans:
    def test_sorted(self):
        m = TagOverrideMap.from_mapping({"t": ["z", "a", "m"]})
        assert find_orphans(m, ["m"]) == ("a", "z")

    def test_none(self):
        m = TagOverrideMap.from_mapping({"t": ["a"]})
        assert find_orphans(m, {"a", "b"}) == ()


class TestOverrideShapes:
    @pytest.mark.parametrize("data, tag", [
        ({"heightening": 5}, "heightening"),
        ({"tags": {"x": {"exercises": 5}}}, "x"),
        ({"grounding": ["zip-zap", {"id": "a"}]}, "grounding"),
        ({"grounding": [True]}, "grounding"),
    ])
    def test_bad_entry_names_tag(self, data, tag):
        with pytest.raises(ConfigError, match=repr(tag)):
            TagOverrideMap.from_mapping(data)

    def test_not_a_mapping(self):
        with pytest.raises(ConfigError):
            TagOverrideMap.from_mapping(["ex-1"])  # type: ignore[arg-type]

    def test_single_string_id(self):
        assert TagOverrideMap.from_mapping({"x": "ex-1"}).tags == {"x": frozenset({"ex-1"})}

    def test_integer_ids_in_list(self):
        assert TagOverrideMap.from_mapping({"x": [7, "ex-1"]}).exercise_ids == frozenset(
            {"7", "ex-1"},
        )

    def test_null_entry_is_empty(self):
        assert TagOverrideMap.from_mapping({"x": None}).tags == {"x": frozenset()}
