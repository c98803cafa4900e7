"""Extraction sub-package: sanitize, segment and recompose exercise HTML."""

from .compose import clean_description, compose_sections
from .sanitize import find_markup_error, sanitize_html
from .sections import (
    BoldParagraphHeading,
    ContentBlock,
    ExplicitHeading,
    HeadingMarker,
    Section,
    detect_headings,
    segment_flow,
    segment_sections,
)

__all__ = [
    "BoldParagraphHeading",
    "ContentBlock",
    "ExplicitHeading",
    "HeadingMarker",
    "Section",
    "clean_description",
    "compose_sections",
    "detect_headings",
    "find_markup_error",
    "sanitize_html",
    "segment_flow",
    "segment_sections",
]
