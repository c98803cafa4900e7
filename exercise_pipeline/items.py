"""Scrapy Items and Pydantic validation schemas for exercise collections."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import scrapy
from pydantic import BaseModel, ConfigDict, Field, field_validator

# ---------------------------------------------------------------------------
# Scrapy Item
# ---------------------------------------------------------------------------

class ExerciseItem(scrapy.Item):
    """Raw scraped exercise passed through Scrapy pipelines."""

    # Identity
    id = scrapy.Field()
    name = scrapy.Field()
    sourceUrl = scrapy.Field()
    provider = scrapy.Field()

    # Content
    description = scrapy.Field()
    description_raw = scrapy.Field()
    summary = scrapy.Field()

    # Tags
    tags = scrapy.Field()
    rawTags = scrapy.Field()

    # Pipeline-internal: set by TagOverridePipeline
    _overrides_applied = scrapy.Field()


# ---------------------------------------------------------------------------
# Pydantic models
# ---------------------------------------------------------------------------

def split_tags(value: Any) -> tuple[list[str], list[Any]]:
    """Split a raw ``tags`` value into ``(tags, non_strings)``.

    Numbers are kept in string form; ``None``, containers and booleans are
    dropped.  Every non-string value, kept or not, is listed in
    ``non_strings``.  A bare string counts as a one-tag list.
    """
    if value is None:
        return [], []
    if isinstance(value, str):
        return [value], []
    if not isinstance(value, (list, tuple)):
        return [], [value]
    kept: list[str] = []
    rejected: list[Any] = []
    for tag in value:
        if isinstance(tag, str):
            kept.append(tag)
        elif isinstance(tag, (int, float)) and not isinstance(tag, bool):
            kept.append(str(tag))
            rejected.append(tag)
        else:
            rejected.append(tag)
    return kept, rejected


def _scalar_to_str(v: Any) -> Any:
    if isinstance(v, (int, float)) and not isinstance(v, bool):
        return str(v)
    return v


class ExerciseSchema(BaseModel):
    """One instructional exercise.

    ``description_raw`` is the captured source markup and is never rewritten;
    ``description`` is derived from it.  It is kept as captured even when it
    is not a string, so the cleanup stage can report it as malformed.
    Unknown keys are preserved so a collection round-trips unchanged apart
    from the fields we own.
    """

    model_config = ConfigDict(extra="allow")

    id: str
    name: str = ""
    description: str = ""
    description_raw: Any = None
    tags: list[str] = Field(default_factory=list)
    rawTags: list[str] | None = None
    summary: str | None = None
    sourceUrl: str | None = None
    provider: str | None = None

    @field_validator("id", mode="before")
    @classmethod
    def require_id(cls, v: Any) -> Any:
        # Integer ids from numbered sources are accepted as their string form.
        if isinstance(v, int) and not isinstance(v, bool):
            v = str(v)
        if isinstance(v, str):
            v = v.strip()
            if not v:
                raise ValueError("id must not be empty")
        return v

    @field_validator("name", "description", mode="before")
    @classmethod
    def coerce_text(cls, v: Any) -> Any:
        return "" if v is None else _scalar_to_str(v)

    @field_validator("summary", "sourceUrl", "provider", mode="before")
    @classmethod
    def coerce_optional_text(cls, v: Any) -> Any:
        return _scalar_to_str(v)

    @field_validator("tags", mode="before")
    @classmethod
    def coerce_tags(cls, v: Any) -> Any:
        return split_tags(v)[0]

    @field_validator("rawTags", mode="before")
    @classmethod
    def coerce_raw_tags(cls, v: Any) -> Any:
        return None if v is None else split_tags(v)[0]


class Attribution(BaseModel):
    """Provenance block carried by every collection file."""

    model_config = ConfigDict(extra="allow")

    source: str = ""
    sourceUrl: str | None = None
    license: str | None = None
    licenseUrl: str | None = None
    note: str | None = None
    scrapedAt: str | None = None
    modified: str | None = None


class ExerciseCollection(BaseModel):
    """One provider's exercises plus their attribution."""

    attribution: Attribution = Field(default_factory=Attribution)
    exercises: list[ExerciseSchema] = Field(default_factory=list)

    def provider_for(self, record: ExerciseSchema) -> str:
        """Return the provider name governing *record*'s markup."""
        return record.provider or self.attribution.source

    def to_dict(self) -> dict[str, Any]:
        return {
            "attribution": self.attribution.model_dump(exclude_unset=True),
            "exercises": [ex.model_dump(exclude_unset=True) for ex in self.exercises],
        }


# ---------------------------------------------------------------------------
# Conversion and file I/O
# ---------------------------------------------------------------------------

def exercise_item_to_schema(item: ExerciseItem) -> ExerciseSchema:
    """Convert a Scrapy ExerciseItem dict to a validated ExerciseSchema."""
    return ExerciseSchema(
        id=item.get("id", ""),
        name=item.get("name", ""),
        description=item.get("description", "") or "",
        description_raw=item.get("description_raw"),
        tags=item.get("tags") or [],
        rawTags=item.get("rawTags"),
        summary=item.get("summary"),
        sourceUrl=item.get("sourceUrl"),
        provider=item.get("provider"),
    )


def read_collection_file(path: str | Path) -> dict[str, Any]:
    """Read a collection file as plain JSON, without validating records."""
    return json.loads(Path(path).read_text(encoding="utf-8"))


def write_collection(path: str | Path, collection: ExerciseCollection) -> None:
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(
        json.dumps(collection.to_dict(), indent=2, ensure_ascii=False) + "\n",
        encoding="utf-8",
    )
