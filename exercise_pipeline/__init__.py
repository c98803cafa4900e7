"""exercise_pipeline - normalize scraped exercise collections.

Cleans provider HTML into a safe semantic subset, merges curated tag
overrides, and drops records that are not real exercises.

Quick usage::

    from exercise_pipeline import load_config, process_file

    config = load_config("cleanup.yaml")
    report = process_file("data/learnimprov-exercises.json", config)
    print(report.cleaned, report.merged, report.filtered)

Single fragment::

    from exercise_pipeline import clean_description, get_provider

    html = clean_description(raw_html, get_provider("learnimprov"))
"""

from exercise_pipeline.cleanup import ProcessingReport, process_collection, process_file
from exercise_pipeline.errors import ConfigError, EmptyCollectionError, PipelineError
from exercise_pipeline.extractors import clean_description, sanitize_html, segment_sections
from exercise_pipeline.filters import filter_non_exercises
from exercise_pipeline.overrides import TagOverrideMap, merge_overrides
from exercise_pipeline.profiles import CleanupConfig, load_config, load_overrides
from exercise_pipeline.providers import (
    ProviderConvention,
    get_provider,
    register_provider,
    resolve_provider,
)

__version__ = "0.1.0"
__all__ = [
    "CleanupConfig",
    "ConfigError",
    "EmptyCollectionError",
    "PipelineError",
    "ProcessingReport",
    "ProviderConvention",
    "TagOverrideMap",
    "clean_description",
    "filter_non_exercises",
    "get_provider",
    "load_config",
    "load_overrides",
    "merge_overrides",
    "process_collection",
    "process_file",
    "register_provider",
    "resolve_provider",
    "sanitize_html",
    "segment_sections",
]
