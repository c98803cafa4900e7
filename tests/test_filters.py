"""Unit tests for exercise_pipeline.filters."""

from __future__ import annotations

import pytest

from exercise_pipeline.filters import blocking_tags, filter_non_exercises
from exercise_pipeline.items import ExerciseSchema
from exercise_pipeline.overrides import TagOverrideMap, merge_overrides


def _merged(*records: ExerciseSchema, overrides: dict | None = None):
    return merge_overrides(records, TagOverrideMap.from_mapping(overrides))


def _ex(exercise_id: str, tags: list[str]) -> ExerciseSchema:
    return ExerciseSchema(id=exercise_id, tags=tags)


class TestBlockingTags:
    def test_case_insensitive(self):
        assert blocking_tags(["Theater", "game"], {"theater"}) == {"Theater"}

    def test_no_hits(self):
        assert blocking_tags(["game"], {"theater"}) == set()


class TestFilterNonExercises:
    def test_blocked_record_removed(self):
        merged = _merged(_ex("a", ["game"]), _ex("b", ["theater", "scene-work"]), _ex("c", []))
        result = filter_non_exercises(merged, {"theater"})
        assert [r.id for r in result.kept] == ["a", "c"]
        assert result.removed_count == 1
        assert result.removed_ids == ["b"]

    def test_relative_order_kept(self):
        records = [_ex(i, ["theater"] if i in ("b", "d") else []) for i in "abcde"]
        result = filter_non_exercises(_merged(*records), {"theater"})
        assert [r.id for r in result.kept] == ["a", "c", "e"]

    def test_only_removes(self):
        records = [_ex("a", ["x"]), _ex("b", ["y"])]
        result = filter_non_exercises(_merged(*records), {"y"})
        assert len(result.kept) <= len(records)
        assert all(r in records for r in result.kept)

    def test_merged_tag_triggers_removal(self):
        merged = _merged(_ex("a", ["game"]), overrides={"improv groups": ["a"]})
        result = filter_non_exercises(merged, {"improv groups"})
        assert result.kept == []
        assert result.removed_ids == ["a"]

    def test_empty_blocklist_keeps_all(self):
        merged = _merged(_ex("a", ["theater"]))
        assert filter_non_exercises(merged, set()).removed_count == 0

    def test_rejects_unmerged_records(self):
        with pytest.raises(TypeError, match="MergedRecords"):
            filter_non_exercises([_ex("a", [])], {"theater"})  # type: ignore[arg-type]
