"""Tag clean-up: strip hashtags, lower-case, apply aliases and a blacklist."""

from __future__ import annotations

import re
from collections import Counter
from collections.abc import Iterable, Mapping
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from exercise_pipeline.items import ExerciseSchema

_HASHTAG_RE = re.compile(r"^#\s*")
_WHITESPACE_RE = re.compile(r"\s+")


def normalize_tag(tag: str, aliases: Mapping[str, str] | None = None) -> str:
    """``"#  Mime\\nObject "`` → ``"object work"`` (with the default aliases)."""
    cleaned = _HASHTAG_RE.sub("", tag)
    cleaned = _WHITESPACE_RE.sub(" ", cleaned).strip().lower()
    if not cleaned:
        return ""
    if aliases:
        cleaned = aliases.get(cleaned, cleaned)
    return cleaned


def normalize_tags(
    records: Iterable[ExerciseSchema],
    aliases: Mapping[str, str] | None = None,
    blacklist: Iterable[str] = (),
    min_frequency: int = 0,
) -> tuple[list[ExerciseSchema], int]:
    """Recompute tags from ``rawTags`` (falling back to ``tags``).

    Returns ``(records, changed_count)``.  ``rawTags`` is left intact.  With
    *min_frequency* > 0, tags used by fewer records are dropped.
    """
    records = list(records)
    banned = set(blacklist)

    def source(record: ExerciseSchema) -> list[str]:
        return record.rawTags if record.rawTags is not None else record.tags

    counts: Counter[str] = Counter()
    for record in records:
        counts.update(normalize_tag(t, aliases) for t in source(record))

    out: list[ExerciseSchema] = []
    changed = 0
    for record in records:
        tags = sorted({
            tag
            for tag in (normalize_tag(t, aliases) for t in source(record))
            if tag and tag not in banned and counts[tag] >= min_frequency
        })
        if tags != record.tags:
            record = record.model_copy(update={"tags": tags})
            changed += 1
        out.append(record)
    return out, changed
