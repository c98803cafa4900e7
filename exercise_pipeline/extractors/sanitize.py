"""Strip presentational attributes from HTML fragments.

Only ``href`` on ``<a>`` survives; element and text structure is left alone.
Fragments are parsed with ``html.parser`` rather than lxml because lxml wraps
bare top-level text in ``<p>`` and adds ``<html>/<body>``.
"""

from __future__ import annotations

import logging
import re

from bs4 import BeautifulSoup, Tag

from exercise_pipeline.errors import MalformedFragmentError

logger = logging.getLogger(__name__)

_KEEP_ATTRS: dict[str, frozenset[str]] = {
    "a": frozenset({"href"}),
}

_CONTROL_CHARS_RE = re.compile(r"[\x00-\x08\x0b\x0c\x0e-\x1f\x7f]")
_MARKUP_START_RE = re.compile(r"<[A-Za-z/!?]")

# (opening, closing) pairs checked in this order
_CONSTRUCTS: tuple[tuple[str, str], ...] = (
    ("<!--", "-->"),
    ("<![CDATA[", "]]>"),
    ("<", ">"),
)


def find_markup_error(html: str) -> str | None:
    """Return a short description of what is wrong with *html*, or ``None``.

    Flags control characters, marked sections other than CDATA (e.g. Word's
    ``<![if !supportLists]>``) and tags, comments or CDATA blocks that are
    never closed.  Stray ``<`` in text (``a < b``) is fine.
    """
    match = _CONTROL_CHARS_RE.search(html)
    if match:
        return f"control character {match.group()!r} at offset {match.start()}"

    pos = 0
    while True:
        match = _MARKUP_START_RE.search(html, pos)
        if match is None:
            return None
        start = match.start()
        if html.startswith("<![", start) and not html.startswith("<![CDATA[", start):
            return f"unsupported marked section at offset {start}"
        for opening, closing in _CONSTRUCTS:
            if html.startswith(opening, start):
                end = html.find(closing, start + len(opening))
                if end == -1:
                    return f"unterminated {opening!r} at offset {start}"
                pos = end + len(closing)
                break


def _strip_attributes(soup: BeautifulSoup) -> None:
    for el in soup.find_all(True):
        if not isinstance(el, Tag) or not el.attrs:
            continue
        keep = _KEEP_ATTRS.get(el.name, frozenset())
        el.attrs = {k: v for k, v in el.attrs.items() if k in keep}


def sanitize_html(html: str, strict: bool = False) -> str:
    """Return *html* with every attribute removed except ``<a href>``.

    Empty input yields ``""``.  Markup the parser rejects also yields ``""``
    unless *strict* is set, in which case :class:`MalformedFragmentError`
    is raised so the caller can report it.
    """
    if not html or not html.strip():
        return ""

    try:
        soup = BeautifulSoup(html, "html.parser")
        _strip_attributes(soup)
        return soup.decode()
    except Exception as exc:
        if strict:
            raise MalformedFragmentError(f"could not sanitize fragment: {exc}") from exc
        logger.warning("sanitize: could not parse fragment: %s", exc)
        return ""
