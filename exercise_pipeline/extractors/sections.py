"""Split exercise-page HTML into titled sections.

Two heading conventions exist in the wild:

* explicit heading elements (``<h3>Description</h3>``), and
* bold-only paragraphs (``<p><strong>Description</strong></p>``), used by
  block-editor pages in place of real headings.

The convention is decided once per fragment: if the content container holds
any explicit heading element, only those are used; otherwise the direct
children of the container are scanned for bold-only paragraphs.  The two are
never mixed.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import TYPE_CHECKING, Literal, NamedTuple

from bs4 import BeautifulSoup, Tag

from exercise_pipeline.errors import ConfigError

if TYPE_CHECKING:
    from exercise_pipeline.providers import ProviderConvention

logger = logging.getLogger(__name__)

# Block kinds retained between headings; anything else (embeds, widgets,
# images, tables) is dropped.
CONTENT_BLOCK_TAGS = frozenset({"p", "ul", "ol", "blockquote", "pre"})

_WHITESPACE_RE = re.compile(r"\s+")

HeadingKind = Literal["explicit", "bold_paragraph"]


# ---------------------------------------------------------------------------
# Data types
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class ExplicitHeading:
    """A real heading element (``<h2>``, ``<h3>`` …)."""

    element: Tag
    kind: HeadingKind = "explicit"

    @property
    def title(self) -> str:
        return _clean_text(self.element.get_text())


@dataclass(frozen=True)
class BoldParagraphHeading:
    """A ``<p>`` whose whole text is a single bold/strong run."""

    element: Tag
    kind: HeadingKind = "bold_paragraph"

    @property
    def title(self) -> str:
        return bold_heading_title(self.element) or ""


HeadingMarker = ExplicitHeading | BoldParagraphHeading


class ContentBlock(NamedTuple):
    tag: str
    html: str
    text: str


class Section(NamedTuple):
    """A titled run of content blocks in document order.

    ``title`` is empty only for the leading untitled run of a ``flow`` layout.
    ``heading_tag`` is the element the title is rendered as.
    """

    title: str
    blocks: tuple[ContentBlock, ...]
    heading_tag: str = "h3"


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _clean_text(text: str) -> str:
    return _WHITESPACE_RE.sub(" ", text).strip()


def bold_heading_title(el: object) -> str | None:
    """Return the title if *el* is a bold-only paragraph, else ``None``.

    ``<p><strong>Setup</strong></p>`` → ``"Setup"``.  The paragraph's full text
    must equal the text of its first ``<b>``/``<strong>`` run.
    """
    if not isinstance(el, Tag) or el.name != "p":
        return None
    bold = el.find(["b", "strong"])
    if not isinstance(bold, Tag):
        return None
    bold_text = _clean_text(bold.get_text())
    if bold_text and bold_text == _clean_text(el.get_text()):
        return bold_text
    return None


def _to_block(el: Tag) -> ContentBlock:
    return ContentBlock(tag=el.name, html=str(el), text=_clean_text(el.get_text()))


def _sibling_tags(el: Tag):
    for sib in el.next_siblings:
        if isinstance(sib, Tag):
            yield sib


def find_container(soup: BeautifulSoup, convention: ProviderConvention) -> Tag | None:
    """Return the provider's content container, or ``None`` if absent.

    An unusable selector is a configuration problem, not a fragment problem,
    and raises :class:`ConfigError`.
    """
    if convention.container:
        try:
            found = soup.select_one(convention.container)
        except Exception as exc:
            raise ConfigError(
                f"{convention.name}: invalid container selector "
                f"{convention.container!r}: {exc}",
            ) from exc
        return found if isinstance(found, Tag) else None
    body = soup.find("body")
    return body if isinstance(body, Tag) else None


# ---------------------------------------------------------------------------
# Heading detection
# ---------------------------------------------------------------------------

def _find_explicit_headings(container: Tag, convention: ProviderConvention) -> list[HeadingMarker]:
    return [
        ExplicitHeading(el)
        for el in container.find_all(list(convention.heading_tags))
        if isinstance(el, Tag)
    ]


def _find_bold_headings(container: Tag) -> list[HeadingMarker]:
    return [
        BoldParagraphHeading(el)
        for el in container.find_all(True, recursive=False)
        if bold_heading_title(el) is not None
    ]


def detect_headings(container: Tag, convention: ProviderConvention) -> list[HeadingMarker]:
    """Return heading markers of exactly one kind, in document order."""
    explicit = _find_explicit_headings(container, convention)
    if explicit:
        return explicit
    return _find_bold_headings(container)


def _is_marker_of_kind(el: Tag, kind: HeadingKind, convention: ProviderConvention) -> bool:
    if kind == "explicit":
        return el.name in convention.heading_tags
    return bold_heading_title(el) is not None


# ---------------------------------------------------------------------------
# Segmentation
# ---------------------------------------------------------------------------

def _parse(html: str) -> BeautifulSoup | None:
    if not html or not html.strip():
        return None
    return BeautifulSoup(html, "lxml")


def segment_sections(html: str, convention: ProviderConvention) -> list[Section]:
    """Split *html* into titled sections using *convention*.

    Each heading owns the recognized content blocks that follow it up to the
    next heading of the same kind.  Skip-listed and empty sections are omitted.
    A fragment without the container, or without headings, yields ``[]``.
    """
    soup = _parse(html)
    if soup is None:
        return []
    container = find_container(soup, convention)
    if container is None:
        logger.debug("No %r container found", convention.container)
        return []

    markers = detect_headings(container, convention)
    if not markers:
        return []
    kind = markers[0].kind
    logger.debug("Detected %d %s heading(s)", len(markers), kind)

    sections: list[Section] = []
    for marker in markers:
        title = marker.title
        if title in convention.skip_sections:
            continue

        blocks: list[ContentBlock] = []
        for el in _sibling_tags(marker.element):
            if _is_marker_of_kind(el, kind, convention):
                break
            if el.name in CONTENT_BLOCK_TAGS:
                blocks.append(_to_block(el))

        if blocks:
            sections.append(Section(title=title, blocks=tuple(blocks)))
    return sections


def segment_flow(html: str, convention: ProviderConvention) -> list[Section]:
    """Segment a page whose body text may precede the first heading.

    Walks the container's direct children in order.  Blocks before the first
    heading form an untitled leading section.  Explicit headings keep their
    element name; bold-only paragraphs become ``<h3>``.  Empty blocks and
    blocks containing a noise phrase are dropped.
    """
    soup = _parse(html)
    if soup is None:
        return []
    container = find_container(soup, convention)
    if container is None:
        return []

    sections: list[Section] = []
    title, heading_tag = "", "h3"
    blocks: list[ContentBlock] = []
    skipping = False

    def flush() -> None:
        if blocks and not skipping:
            sections.append(Section(title=title, blocks=tuple(blocks), heading_tag=heading_tag))

    for el in container.find_all(True, recursive=False):
        text = _clean_text(el.get_text())
        if not text:
            continue
        if any(phrase in text for phrase in convention.noise_phrases):
            continue

        if el.name in convention.heading_tags:
            new_title, new_tag = text, el.name
        else:
            new_title, new_tag = bold_heading_title(el) or "", "h3"

        if new_title:
            flush()
            title, heading_tag, blocks = new_title, new_tag, []
            skipping = title in convention.skip_sections
        elif el.name in CONTENT_BLOCK_TAGS:
            blocks.append(_to_block(el))

    flush()
    return sections
