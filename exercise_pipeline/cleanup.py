"""exercise_pipeline.cleanup - run the full normalization pass over a collection.

Order of stages::

    validate → clean descriptions → (normalize tags) → merge overrides → filter

Description cleaning and tag work are independent, but the filter must see
the final tag set, so it only accepts the merger's output.

Basic usage::

    from exercise_pipeline.cleanup import process_file
    from exercise_pipeline.profiles import load_config

    report = process_file("data/learnimprov-exercises.json", load_config("cleanup.yaml"))
    print(report.cleaned, report.filtered, report.orphaned_ids)
"""

from __future__ import annotations

import logging
from datetime import UTC, datetime
from pathlib import Path
from typing import Any, Literal

from pydantic import BaseModel, Field, ValidationError

from exercise_pipeline import settings
from exercise_pipeline.errors import ConfigError, EmptyCollectionError
from exercise_pipeline.extractors.compose import clean_description
from exercise_pipeline.filters import filter_non_exercises
from exercise_pipeline.items import (
    Attribution,
    ExerciseCollection,
    ExerciseSchema,
    read_collection_file,
    split_tags,
    write_collection,
)
from exercise_pipeline.overrides import TagOverrideMap, merge_overrides
from exercise_pipeline.profiles import CleanupConfig
from exercise_pipeline.providers import resolve_provider
from exercise_pipeline.tags import normalize_tags

logger = logging.getLogger(__name__)

IssueKind = Literal["malformed", "missing_field", "invalid_field", "unknown_provider", "orphaned"]


# ---------------------------------------------------------------------------
# Report
# ---------------------------------------------------------------------------

class Issue(BaseModel):
    kind: IssueKind
    record_id: str = ""
    index: int | None = None
    message: str = ""


class ProcessingReport(BaseModel):
    """Counts and per-record problems from one processing pass."""

    source: str = ""
    input_count: int = 0
    output_count: int = 0
    cleaned: int = 0
    normalized: int = 0
    merged: int = 0
    filtered: int = 0
    malformed: int = 0
    missing_fields: int = 0
    missing_summaries: int = 0
    orphaned_ids: list[str] = Field(default_factory=list)
    matched_override_ids: list[str] = Field(default_factory=list)
    filtered_ids: list[str] = Field(default_factory=list)
    issues: list[Issue] = Field(default_factory=list)

    @property
    def orphaned(self) -> int:
        return len(self.orphaned_ids)

    def add_issue(self, kind: IssueKind, record_id: str = "", message: str = "",
                  index: int | None = None) -> None:
        self.issues.append(Issue(kind=kind, record_id=record_id, index=index, message=message))


# ---------------------------------------------------------------------------
# Stages
# ---------------------------------------------------------------------------

def _validate_record(raw: Any, index: int, report: ProcessingReport) -> ExerciseSchema | None:
    """Validate one raw record, or report it and return ``None``.

    Only an unusable ``id`` excludes a record.  Fields of the wrong type are
    dropped from the record and reported as ``invalid_field``; non-string
    tags are reported but kept in string form where possible.
    """
    if not isinstance(raw, dict):
        report.add_issue("missing_field", "", f"record is {type(raw).__name__}, not an object",
                         index)
        report.missing_fields += 1
        return None

    record_id = str(raw.get("id") or "")
    for key in ("tags", "rawTags"):
        _, non_strings = split_tags(raw.get(key))
        if non_strings:
            logger.warning("Exercise %s: non-string %s %r", record_id or f"#{index}", key,
                           non_strings)
            report.add_issue(
                "invalid_field", record_id, f"{key}: non-string values {non_strings!r}", index,
            )

    data = raw
    for attempt in range(2):
        try:
            return ExerciseSchema.model_validate(data)
        except ValidationError as exc:
            bad_fields = {str(err["loc"][0]) for err in exc.errors() if err["loc"]}
            if attempt or not bad_fields or "id" in bad_fields:
                logger.warning("Dropping exercise #%d (%s): %d validation error(s)",
                               index, record_id or "no id", exc.error_count())
                report.add_issue("missing_field", record_id, str(exc.errors()[0]["msg"]), index)
                report.missing_fields += 1
                return None
            for name in sorted(bad_fields):
                logger.warning("Exercise %s: dropping invalid %s %r",
                               record_id, name, raw.get(name))
                report.add_issue("invalid_field", record_id, f"{name}: {raw.get(name)!r}", index)
            data = {k: v for k, v in raw.items() if k not in bad_fields}
    return None


def parse_collection(data: Any, report: ProcessingReport) -> ExerciseCollection:
    """Validate raw collection *data* record by record.

    Records without a usable ``id`` are excluded and reported; they cannot be
    joined against overrides.  Everything else stays, see :func:`_validate_record`.
    """
    if not isinstance(data, dict):
        raise EmptyCollectionError("Collection is missing or not a JSON object")
    raw_exercises = data.get("exercises")
    if not raw_exercises or not isinstance(raw_exercises, list):
        raise EmptyCollectionError("Collection has no exercises")

    attribution = Attribution.model_validate(data.get("attribution") or {})
    exercises: list[ExerciseSchema] = []
    for index, raw in enumerate(raw_exercises):
        record = _validate_record(raw, index, report)
        if record is not None:
            exercises.append(record)

    report.input_count = len(raw_exercises)
    return ExerciseCollection(attribution=attribution, exercises=exercises)


def clean_descriptions(
    collection: ExerciseCollection,
    config: CleanupConfig,
    report: ProcessingReport,
) -> list[ExerciseSchema]:
    """Recompute every ``description`` from ``description_raw``.

    Records without raw markup keep their description.  A fragment that
    cannot be processed degrades to ``""`` and is reported as ``malformed``.
    An invalid provider selector is a :class:`ConfigError` and aborts.
    """
    conventions = config.conventions()
    out: list[ExerciseSchema] = []
    unknown: set[str] = set()

    for record in collection.exercises:
        raw = record.description_raw
        if raw is None or (isinstance(raw, str) and not raw.strip()):
            out.append(record)
            continue

        provider = collection.provider_for(record)
        convention = resolve_provider(provider, conventions)
        if convention is None:
            if provider not in unknown:
                logger.warning("No convention for provider %r; descriptions left as-is", provider)
                unknown.add(provider)
            report.add_issue("unknown_provider", record.id, f"provider {provider!r}")
            out.append(record)
            continue

        try:
            cleaned = clean_description(raw, convention)
        except ConfigError:
            raise
        except Exception as exc:
            logger.warning("Malformed description for %s: %s", record.id, exc)
            report.add_issue("malformed", record.id, str(exc))
            report.malformed += 1
            cleaned = ""

        if cleaned != record.description:
            record = record.model_copy(update={"description": cleaned})
            report.cleaned += 1
        out.append(record)
    return out


def stamp_modified(attribution: Attribution, today: str | None = None) -> Attribution:
    """Return *attribution* with its ``modified`` note set for today."""
    today = today or datetime.now(UTC).strftime("%Y-%m-%d")
    return attribution.model_copy(update={"modified": f"{today}: {settings.MODIFIED_NOTE}"})


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------

def process_collection(
    data: Any,
    config: CleanupConfig | None = None,
    *,
    override_map: TagOverrideMap | None = None,
    report_orphans: bool = True,
    today: str | None = None,
) -> tuple[ExerciseCollection, ProcessingReport]:
    """Run every stage over raw collection *data*.

    Args:
        data:         Parsed collection JSON (``{"attribution", "exercises"}``)
                      or an :class:`ExerciseCollection`.
        config:       Pipeline configuration; defaults apply when omitted.
        override_map: Curated overrides; defaults to ``config.override_map``.
        report_orphans: Warn about override ids absent from this collection.
                      Pass ``False`` when one override file spans several
                      collections and orphans are computed across all of them
                      with :func:`~exercise_pipeline.overrides.find_orphans`.
        today:        ``YYYY-MM-DD`` for the attribution note (default: UTC now).

    Returns:
        ``(collection, report)``.

    Raises:
        :class:`EmptyCollectionError`: if there is nothing to process.
    """
    config = config or CleanupConfig()
    overrides = override_map if override_map is not None else config.override_map
    if isinstance(data, ExerciseCollection):
        data = data.to_dict()

    report = ProcessingReport()
    collection = parse_collection(data, report)
    report.source = collection.attribution.source

    records = clean_descriptions(collection, config, report)

    if config.normalize_tags:
        records, report.normalized = normalize_tags(
            records,
            aliases=config.tag_aliases,
            blacklist=config.tag_blacklist,
            min_frequency=config.min_tag_frequency,
        )

    merged = merge_overrides(records, overrides)
    report.merged = merged.stats.updated
    report.matched_override_ids = sorted(merged.matched_ids)
    if report_orphans:
        report.orphaned_ids = list(merged.stats.orphaned_ids)

    result = filter_non_exercises(merged, config.blocked_tags)
    report.filtered = result.removed_count
    report.filtered_ids = result.removed_ids
    report.output_count = len(result.kept)
    report.missing_summaries = sum(1 for ex in result.kept if not ex.summary)

    if report.orphaned_ids:
        logger.warning(
            "%d override id(s) not found in %s: %s",
            len(report.orphaned_ids), report.source or "collection",
            ", ".join(report.orphaned_ids),
        )
        for orphan in report.orphaned_ids:
            report.add_issue("orphaned", orphan, "override id matches no exercise")

    logger.info(
        "%s: cleaned %d, merged %d, filtered %d, final count %d",
        report.source or "collection", report.cleaned, report.merged,
        report.filtered, report.output_count,
    )
    out = ExerciseCollection(
        attribution=stamp_modified(collection.attribution, today),
        exercises=result.kept,
    )
    return out, report


def process_file(
    path: str | Path,
    config: CleanupConfig | None = None,
    *,
    override_map: TagOverrideMap | None = None,
    report_orphans: bool = True,
    dry_run: bool = False,
    today: str | None = None,
) -> ProcessingReport:
    """Load, process and (unless *dry_run*) rewrite the collection at *path*."""
    path = Path(path)
    logger.info("Processing %s", path)
    try:
        data = read_collection_file(path)
    except (OSError, ValueError) as exc:
        raise EmptyCollectionError(f"Could not read {path}: {exc}", path=str(path)) from exc

    try:
        collection, report = process_collection(
            data, config, override_map=override_map,
            report_orphans=report_orphans, today=today,
        )
    except EmptyCollectionError as exc:
        exc.path = str(path)
        raise

    if not dry_run:
        write_collection(path, collection)
    return report
