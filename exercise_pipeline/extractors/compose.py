"""Re-serialize extracted sections into one clean HTML fragment."""

from __future__ import annotations

import html as html_lib
import logging
from typing import TYPE_CHECKING

from exercise_pipeline.errors import MalformedFragmentError

from .sanitize import find_markup_error, sanitize_html
from .sections import Section, segment_flow, segment_sections

if TYPE_CHECKING:
    from collections.abc import Iterable

    from exercise_pipeline.providers import ProviderConvention

logger = logging.getLogger(__name__)


def compose_sections(sections: Iterable[Section]) -> str:
    """Render *sections* as ``<hN>title</hN>`` + blocks, then sanitize.

    Output is deterministic: the same sections always give the same string.
    Raises :class:`MalformedFragmentError` if the result cannot be sanitized.
    """
    parts: list[str] = []
    for section in sections:
        if section.title:
            tag = section.heading_tag
            parts.append(f"<{tag}>{html_lib.escape(section.title, quote=False)}</{tag}>")
        parts.extend(block.html for block in section.blocks)
    return sanitize_html("".join(parts), strict=True)


def clean_description(raw_html: str | None, convention: ProviderConvention) -> str:
    """Extract the wanted sections of *raw_html* as clean, attribute-free HTML.

    Parse what we want rather than remove what we don't: anything outside the
    provider's recognized sections is lost.

    Raises:
        :class:`MalformedFragmentError`: if *raw_html* is neither ``None`` nor
        a string, or fails :func:`find_markup_error`.
    """
    if raw_html is None:
        return ""
    if not isinstance(raw_html, str):
        raise MalformedFragmentError(
            f"fragment is {type(raw_html).__name__}, not a string",
        )
    if not raw_html.strip():
        return ""
    problem = find_markup_error(raw_html)
    if problem:
        raise MalformedFragmentError(problem)

    if convention.layout == "flow":
        sections = segment_flow(raw_html, convention)
    else:
        sections = segment_sections(raw_html, convention)
    logger.debug("%s: composed %d section(s)", convention.name, len(sections))
    return compose_sections(sections)
