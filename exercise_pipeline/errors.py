"""Exceptions raised by exercise_pipeline.

Per-record problems never escape :func:`~exercise_pipeline.cleanup.process_collection`;
they are collected in the :class:`~exercise_pipeline.cleanup.ProcessingReport`
instead.
"""

from __future__ import annotations


class PipelineError(RuntimeError):
    """Base class for pipeline errors."""


class EmptyCollectionError(PipelineError):
    """Raised when the input collection is absent or holds no exercises.

    Attributes:
        path -- the file that was being processed ("" if not file-backed)
    """

    def __init__(self, message: str, path: str = "") -> None:
        super().__init__(message)
        self.path = path


class ConfigError(PipelineError):
    """Raised when a config or overrides file cannot be read or validated."""


class MalformedFragmentError(PipelineError):
    """Raised by :func:`~exercise_pipeline.extractors.clean_description` for
    markup that cannot be cleaned.  The cleanup stage turns it into an empty
    description and a ``malformed`` issue for that record.
    """
