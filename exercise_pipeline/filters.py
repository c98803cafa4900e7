"""Drop records that are not exercises (promotional, group, glossary pages)."""

from __future__ import annotations

import logging
from collections.abc import Iterable
from typing import TYPE_CHECKING, NamedTuple

from exercise_pipeline.overrides import MergedRecords

if TYPE_CHECKING:
    from exercise_pipeline.items import ExerciseSchema

logger = logging.getLogger(__name__)


class FilterResult(NamedTuple):
    kept: list[ExerciseSchema]
    removed_count: int
    removed_ids: list[str]


def blocking_tags(tags: Iterable[str], blocked: Iterable[str]) -> set[str]:
    """Return the tags in *tags* that appear in *blocked* (case-insensitive)."""
    blocked_lower = {b.lower() for b in blocked}
    return {t for t in tags if t.lower() in blocked_lower}


def filter_non_exercises(merged: MergedRecords, blocked_tags: Iterable[str]) -> FilterResult:
    """Remove every record whose tags intersect *blocked_tags*.

    Matching records are dropped whole; the rest keep their relative order.
    Only accepts the output of :func:`~exercise_pipeline.overrides.merge_overrides`
    because merged-in tags can themselves trigger removal.
    """
    if not isinstance(merged, MergedRecords):
        raise TypeError(
            "filter_non_exercises() takes the MergedRecords returned by "
            f"merge_overrides(), not {type(merged).__name__}",
        )

    blocked = {b.lower() for b in blocked_tags}
    kept: list[ExerciseSchema] = []
    removed_ids: list[str] = []
    for record in merged.records:
        hits = blocking_tags(record.tags, blocked)
        if hits:
            logger.debug("Filtering %s (non-exercise tags: %s)", record.id, sorted(hits))
            removed_ids.append(record.id)
            continue
        kept.append(record)

    return FilterResult(kept=kept, removed_count=len(removed_ids), removed_ids=removed_ids)
