"""Default settings for exercise_pipeline.

Doubles as a Scrapy settings module for crawlers that feed scraped
``ExerciseItem``s through the cleanup pipelines.  Anything here can be
overridden by a YAML config file (see :mod:`exercise_pipeline.profiles`).
"""

from __future__ import annotations

# ---------------------------------------------------------------------------
# Project identity
# ---------------------------------------------------------------------------
BOT_NAME = "exercise_pipeline"

# ---------------------------------------------------------------------------
# Exercise filter
# ---------------------------------------------------------------------------
# Tags marking promotional, group, theater and glossary pages.  A record
# carrying any of these is dropped entirely, not just stripped of the tag.
NON_EXERCISE_TAGS: frozenset[str] = frozenset({
    "improv groups",
    "improv group",
    "theater",
    "theatre",
    "improv glossary",
})

# ---------------------------------------------------------------------------
# Tag normalization (opt-in)
# ---------------------------------------------------------------------------
NORMALIZE_TAGS = False

# Consolidate singular/plural variants and rename source categories
TAG_ALIASES: dict[str, str] = {
    "character": "characters",
    "problem": "problem-solving",
    "less": "restraint",
    # group-related tags
    "ensemble": "teamwork",
    "group": "teamwork",
    "support": "teamwork",
    "trust": "teamwork",
    # place/space tags
    "environments": "environment",
    "setting": "environment",
    "mime environment": "environment",
    # mime
    "mime": "object work",
    "mime object": "object work",
}

# Removed from records; the records themselves are kept
TAG_BLACKLIST: frozenset[str] = frozenset({"exercise", "game", "other"})

# 0 disables frequency pruning.  Pruning is not idempotent once the filter
# has removed records, so it stays off unless asked for.
MIN_TAG_FREQUENCY = 0

# ---------------------------------------------------------------------------
# Attribution
# ---------------------------------------------------------------------------
MODIFIED_NOTE = "Cleaned descriptions, normalized tags"

# ---------------------------------------------------------------------------
# Item pipelines (Scrapy)
# ---------------------------------------------------------------------------
# Filtering must come after the override merge: merged-in tags can
# themselves disqualify a record.
ITEM_PIPELINES: dict[str, int] = {
    "exercise_pipeline.pipelines.DescriptionCleanupPipeline": 200,
    "exercise_pipeline.pipelines.TagOverridePipeline": 300,
    "exercise_pipeline.pipelines.NonExerciseFilterPipeline": 400,
}

# Curated tag overrides file read by TagOverridePipeline
EXERCISE_OVERRIDES_PATH = ""

# ---------------------------------------------------------------------------
# Logging
# ---------------------------------------------------------------------------
LOG_LEVEL = "INFO"
LOG_FORMAT = "%(asctime)s [%(name)s] %(levelname)s: %(message)s"
