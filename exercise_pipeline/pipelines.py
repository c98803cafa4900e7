"""Scrapy item pipelines: description cleanup → tag overrides → non-exercise filter.

For crawlers that yield :class:`~exercise_pipeline.items.ExerciseItem`s
directly.  Priorities live in ``settings.ITEM_PIPELINES``; the filter must run
after the override merge and refuses items that skipped it.

Scrapy 2.14+ compatible: open_spider, close_spider, and process_item do NOT
take a `spider` argument.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import TYPE_CHECKING, Any

from exercise_pipeline import settings as default_settings
from exercise_pipeline.errors import ConfigError
from exercise_pipeline.extractors.compose import clean_description
from exercise_pipeline.filters import blocking_tags
from exercise_pipeline.items import ExerciseItem
from exercise_pipeline.overrides import TagOverrideMap, find_orphans, merge_record_tags
from exercise_pipeline.profiles import load_overrides
from exercise_pipeline.providers import ProviderConvention, resolve_provider

if TYPE_CHECKING:
    from scrapy.crawler import Crawler

logger = logging.getLogger(__name__)


def _drop_item(msg: str) -> Exception:
    from scrapy.exceptions import DropItem  # type: ignore[import-untyped]

    return DropItem(msg)


# ---------------------------------------------------------------------------
# Pipeline 1: description cleanup
# ---------------------------------------------------------------------------

class DescriptionCleanupPipeline:
    """Rebuild ``description`` from ``description_raw`` using the item's provider."""

    def __init__(self, default_provider: str = "") -> None:
        self.default_provider = default_provider
        self._cleaned = 0

    @classmethod
    def from_crawler(cls, crawler: Crawler) -> DescriptionCleanupPipeline:
        return cls(default_provider=crawler.settings.get("EXERCISE_PROVIDER", ""))

    def process_item(self, item: Any) -> Any:
        if not isinstance(item, ExerciseItem):
            return item

        raw = item.get("description_raw")
        if raw is None or (isinstance(raw, str) and not raw.strip()):
            return item

        provider = item.get("provider") or self.default_provider
        convention: ProviderConvention | None = resolve_provider(provider)
        if convention is None:
            logger.warning("No convention for provider %r (%s)", provider, item.get("id", ""))
            return item

        try:
            cleaned = clean_description(raw, convention)
        except ConfigError:
            raise
        except Exception as exc:
            logger.warning("Malformed description for %s: %s", item.get("id", ""), exc)
            cleaned = ""
        if cleaned != item.get("description"):
            item["description"] = cleaned
            self._cleaned += 1
        return item

    def close_spider(self) -> None:
        logger.info("DescriptionCleanupPipeline: cleaned %d descriptions", self._cleaned)


# ---------------------------------------------------------------------------
# Pipeline 2: curated tag overrides
# ---------------------------------------------------------------------------

class TagOverridePipeline:
    """Merge curated override tags into each item; report orphaned ids on close."""

    def __init__(self, override_map: TagOverrideMap) -> None:
        self.override_map = override_map
        self._by_id = override_map.by_exercise()
        self._seen: set[str] = set()
        self._updated = 0

    @classmethod
    def from_crawler(cls, crawler: Crawler) -> TagOverridePipeline:
        path = crawler.settings.get(
            "EXERCISE_OVERRIDES_PATH", default_settings.EXERCISE_OVERRIDES_PATH,
        )
        override_map = load_overrides(Path(path)) if path else TagOverrideMap()
        return cls(override_map)

    def open_spider(self) -> None:
        logger.info(
            "TagOverridePipeline open; %d tag(s) covering %d exercise(s)",
            len(self.override_map), len(self._by_id),
        )

    def process_item(self, item: Any) -> Any:
        if not isinstance(item, ExerciseItem):
            return item

        exercise_id = item.get("id", "")
        extra = self._by_id.get(exercise_id)
        if extra is not None:
            self._seen.add(exercise_id)
            new_tags = merge_record_tags(item.get("tags") or [], sorted(extra))
            if new_tags is not None:
                item["tags"] = new_tags
                self._updated += 1
        item["_overrides_applied"] = True
        return item

    @property
    def orphaned_ids(self) -> tuple[str, ...]:
        return find_orphans(self.override_map, self._seen)

    def close_spider(self) -> None:
        logger.info("TagOverridePipeline: applied overrides to %d exercises", self._updated)
        orphans = self.orphaned_ids
        if orphans:
            logger.warning(
                "%d override id(s) matched no scraped exercise: %s",
                len(orphans), ", ".join(orphans),
            )


# ---------------------------------------------------------------------------
# Pipeline 3: non-exercise filter
# ---------------------------------------------------------------------------

class NonExerciseFilterPipeline:
    """Drop items tagged as promotional, group, theater or glossary pages."""

    def __init__(self, blocked_tags: frozenset[str] | set[str]) -> None:
        self.blocked_tags = frozenset(t.lower() for t in blocked_tags)
        self._removed = 0

    @classmethod
    def from_crawler(cls, crawler: Crawler) -> NonExerciseFilterPipeline:
        blocked = (
            crawler.settings.getlist("NON_EXERCISE_TAGS") or default_settings.NON_EXERCISE_TAGS
        )
        return cls(frozenset(blocked))

    def process_item(self, item: Any) -> Any:
        if not isinstance(item, ExerciseItem):
            return item

        exercise_id = item.get("id", "")
        if not item.get("_overrides_applied"):
            raise _drop_item(
                f"{exercise_id}: filtered before tag overrides were applied; "
                "check ITEM_PIPELINES order",
            )

        hits = blocking_tags(item.get("tags") or [], self.blocked_tags)
        if hits:
            self._removed += 1
            raise _drop_item(f"Non-exercise content ({', '.join(sorted(hits))}): {exercise_id}")
        # The marker is pipeline-internal; keep it out of feed exports.
        del item["_overrides_applied"]
        return item

    def close_spider(self) -> None:
        logger.info("NonExerciseFilterPipeline: filtered %d non-exercise items", self._removed)
