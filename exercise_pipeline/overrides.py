"""Curated tag overrides and the merge step that applies them.

Overrides are tags the source sites never assign (e.g. ``heightening``,
``grounding``) but that describe what an exercise teaches.  They live in a
version-controlled file keyed by exercise id, so they survive re-scraping.
Ids in that file that match no record are reported as orphans: the file is
the only source of truth for these tags, and a typo would otherwise go
unnoticed.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from exercise_pipeline.errors import ConfigError

if TYPE_CHECKING:
    from exercise_pipeline.items import ExerciseSchema

logger = logging.getLogger(__name__)


def _clean_tag(tag: str) -> str:
    return " ".join(str(tag).split()).lower()


def _entry_ids(tag: Any, entry: Any) -> list[str]:
    # Integer ids inside a list are accepted in string form, like record ids.
    ids = entry.get("exercises", []) if isinstance(entry, Mapping) else entry
    if ids is None:
        return []
    if isinstance(ids, str):
        ids = [ids]
    if not isinstance(ids, (list, tuple, set, frozenset)):
        raise ConfigError(
            f"override tag {tag!r}: expected a list of exercise ids, got {type(ids).__name__}",
        )
    bad = [i for i in ids if not isinstance(i, (str, int)) or isinstance(i, bool)]
    if bad:
        raise ConfigError(f"override tag {tag!r}: exercise ids must be strings, got {bad!r}")
    return [str(i).strip() for i in ids if str(i).strip()]


@dataclass(frozen=True)
class TagOverrideMap:
    """Immutable mapping of tag name → exercise ids that should carry it."""

    tags: Mapping[str, frozenset[str]] = field(default_factory=dict)

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any] | None) -> TagOverrideMap:
        """Build from either curated-file shape.

        Accepts ``{"tags": {tag: {"exercises": [ids]}}}`` and ``{tag: [ids]}``.
        Tag names are lower-cased; blank tags and ids are ignored.

        Raises:
            :class:`ConfigError`: if an entry does not have one of those shapes.
        """
        if not data:
            return cls()
        if not isinstance(data, Mapping):
            raise ConfigError(
                f"overrides must be a mapping of tag to ids, not {type(data).__name__}",
            )
        if isinstance(data.get("tags"), Mapping):
            data = data["tags"]

        tags: dict[str, set[str]] = {}
        for raw_tag, entry in data.items():
            tag = _clean_tag(raw_tag)
            if not tag:
                continue
            bucket = tags.setdefault(tag, set())
            bucket.update(_entry_ids(raw_tag, entry))
        return cls({t: frozenset(ids) for t, ids in tags.items()})

    def __len__(self) -> int:
        return len(self.tags)

    @property
    def exercise_ids(self) -> frozenset[str]:
        """Every exercise id referenced by any tag."""
        return frozenset().union(*self.tags.values()) if self.tags else frozenset()

    def by_exercise(self) -> dict[str, frozenset[str]]:
        """Invert to exercise id → tags to add."""
        inverted: dict[str, set[str]] = {}
        for tag, ids in self.tags.items():
            for exercise_id in ids:
                inverted.setdefault(exercise_id, set()).add(tag)
        return {k: frozenset(v) for k, v in inverted.items()}


@dataclass(frozen=True)
class MergeStats:
    updated: int = 0
    orphaned_ids: tuple[str, ...] = ()


@dataclass(frozen=True)
class MergedRecords:
    """Records that have been through :func:`merge_overrides`.

    The exercise filter only accepts this type, so filtering cannot run on
    records whose final tag set is not yet known.
    """

    records: tuple[ExerciseSchema, ...]
    stats: MergeStats
    matched_ids: frozenset[str] = frozenset()


def find_orphans(override_map: TagOverrideMap, seen_ids: Iterable[str]) -> tuple[str, ...]:
    """Return override ids absent from *seen_ids*, sorted."""
    return tuple(sorted(override_map.exercise_ids - set(seen_ids)))


def merge_record_tags(tags: Iterable[str], extra: Iterable[str]) -> list[str] | None:
    """Return the sorted union of *tags* and *extra*, or ``None`` if unchanged."""
    current = list(tags)
    existing = set(current)
    added = [t for t in extra if t not in existing]
    if not added:
        return None
    return sorted(existing.union(added))


def merge_overrides(
    records: Iterable[ExerciseSchema],
    override_map: TagOverrideMap,
) -> MergedRecords:
    """Union each record's tags with the overrides for its id.

    A record's tags are rewritten (sorted, deduplicated) only when at least
    one tag is actually added, so re-running is a no-op.  Never removes a tag.
    """
    by_id = override_map.by_exercise()
    merged: list[ExerciseSchema] = []
    matched: set[str] = set()
    updated = 0

    for record in records:
        extra = by_id.get(record.id)
        if extra is None:
            merged.append(record)
            continue
        matched.add(record.id)
        new_tags = merge_record_tags(record.tags, sorted(extra))
        if new_tags is None:
            merged.append(record)
            continue
        merged.append(record.model_copy(update={"tags": new_tags}))
        updated += 1

    orphans = find_orphans(override_map, matched)
    logger.info("Applied tag overrides to %d exercise(s)", updated)
    return MergedRecords(
        records=tuple(merged),
        stats=MergeStats(updated=updated, orphaned_ids=orphans),
        matched_ids=frozenset(matched),
    )
