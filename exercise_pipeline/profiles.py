"""YAML-based cleanup profiles.

A profile supplies the three externally owned inputs (skip-list, blocked
tags, curated overrides) plus optional per-provider tweaks::

    skipSections: [Credits]
    blockedTags: [theater, improv groups]
    overrides: inferred-tags.json        # or an inline {tag: [ids]} mapping
    normalizeTags: false
    providers:
      learnimprov:
        skipSections: [Synonyms, Credits, Sources]

JSON is valid YAML, so JSON profiles and override files load the same way.
"""

from __future__ import annotations

import dataclasses
from pathlib import Path
from typing import Any, Literal

import yaml
from pydantic import BaseModel, ConfigDict, Field, PrivateAttr, ValidationError, field_validator

from exercise_pipeline import settings
from exercise_pipeline.errors import ConfigError
from exercise_pipeline.overrides import TagOverrideMap
from exercise_pipeline.providers import ProviderConvention, get_providers


def _read_yaml(path: str | Path) -> Any:
    try:
        return yaml.safe_load(Path(path).read_text(encoding="utf-8"))
    except (OSError, yaml.YAMLError) as exc:
        raise ConfigError(f"Could not read {path}: {exc}") from exc


class ProviderSettings(BaseModel):
    """Partial override of a :class:`ProviderConvention`; unset keys inherit."""

    model_config = ConfigDict(populate_by_name=True, extra="forbid")

    match: str | None = None
    container: str | None = None
    heading_tags: list[str] | None = Field(default=None, alias="headingTags")
    skip_sections: list[str] | None = Field(default=None, alias="skipSections")
    layout: Literal["sections", "flow"] | None = None
    noise_phrases: list[str] | None = Field(default=None, alias="noisePhrases")

    def apply(self, name: str, base: ProviderConvention | None) -> ProviderConvention:
        convention = base or ProviderConvention(name=name, match=name)
        changes: dict[str, Any] = {}
        for key, value in self.model_dump(exclude_unset=True).items():
            if key in ("heading_tags", "noise_phrases"):
                value = tuple(value)
            elif key == "skip_sections":
                value = frozenset(value)
            changes[key] = value
        return dataclasses.replace(convention, **changes)


class CleanupConfig(BaseModel):
    """Validated pipeline configuration."""

    model_config = ConfigDict(populate_by_name=True, extra="forbid")

    skip_sections: frozenset[str] = Field(default_factory=frozenset, alias="skipSections")
    blocked_tags: frozenset[str] = Field(
        default=settings.NON_EXERCISE_TAGS, alias="blockedTags",
    )
    overrides: dict[str, Any] = Field(default_factory=dict)
    providers: dict[str, ProviderSettings] = Field(default_factory=dict)

    normalize_tags: bool = Field(default=settings.NORMALIZE_TAGS, alias="normalizeTags")
    tag_aliases: dict[str, str] = Field(
        default_factory=lambda: dict(settings.TAG_ALIASES), alias="tagAliases",
    )
    tag_blacklist: frozenset[str] = Field(default=settings.TAG_BLACKLIST, alias="tagBlacklist")
    min_tag_frequency: int = Field(
        default=settings.MIN_TAG_FREQUENCY, ge=0, alias="minTagFrequency",
    )

    _override_map: TagOverrideMap = PrivateAttr(default_factory=TagOverrideMap)

    @field_validator("overrides", mode="before")
    @classmethod
    def check_overrides(cls, v: Any) -> Any:
        """Normalize either curated shape to ``{tag: [ids]}``."""
        if v is None:
            return {}
        try:
            override_map = TagOverrideMap.from_mapping(v)
        except ConfigError as exc:
            raise ValueError(str(exc)) from exc
        return {tag: sorted(ids) for tag, ids in override_map.tags.items()}

    def model_post_init(self, __context: Any) -> None:
        self._override_map = TagOverrideMap.from_mapping(self.overrides)

    @property
    def override_map(self) -> TagOverrideMap:
        return self._override_map

    def conventions(self) -> dict[str, ProviderConvention]:
        """Registered conventions with this profile's tweaks and global skips applied."""
        result = {c.name: c for c in get_providers()}
        for name, tweaks in self.providers.items():
            result[name] = tweaks.apply(name, result.get(name))
        return {
            name: convention.with_extra_skips(self.skip_sections)
            for name, convention in result.items()
        }


def load_overrides(path: str | Path) -> TagOverrideMap:
    """Load a curated overrides file (``{"tags": {...}}`` or ``{tag: [ids]}``)."""
    data = _read_yaml(path)
    if data is None:
        return TagOverrideMap()
    if not isinstance(data, dict):
        raise ConfigError(f"{path}: expected a mapping of tag → exercise ids")
    try:
        return TagOverrideMap.from_mapping(data)
    except ConfigError as exc:
        raise ConfigError(f"{path}: {exc}") from exc


def load_config(path: str | Path | None = None, **options: Any) -> CleanupConfig:
    """Load a YAML profile and return a validated :class:`CleanupConfig`.

    A string ``overrides`` value is read as a path relative to the profile.
    Keyword arguments take precedence over file values.
    """
    data: dict[str, Any] = {}
    if path is not None:
        loaded = _read_yaml(path) or {}
        if not isinstance(loaded, dict):
            raise ConfigError(f"{path}: expected a mapping at top level")
        data.update(loaded)
    data.update(options)

    ref = data.get("overrides")
    if isinstance(ref, (str, Path)):
        ref_path = Path(ref)
        if path is not None and not ref_path.is_absolute():
            ref_path = Path(path).parent / ref_path
        data["overrides"] = {
            tag: sorted(ids) for tag, ids in load_overrides(ref_path).tags.items()
        }

    try:
        return CleanupConfig.model_validate(data)
    except ValidationError as exc:
        where = f" in {path}" if path is not None else ""
        raise ConfigError(f"Invalid configuration{where}: {exc}") from exc
