"""exercise_pipeline.providers - source-site conventions and their registry.

Each exercise provider marks up its pages differently.  A
:class:`ProviderConvention` captures where the content lives, which elements
act as section headings, and which sections to throw away.

Usage::

    from exercise_pipeline.providers import ProviderConvention, register_provider

    register_provider(ProviderConvention(
        name="improvresource",
        match="improvresource",
        container="article .body",
        skip_sections=frozenset({"Related"}),
    ))

Conventions are resolved from a collection's attribution ``source`` string
(substring match, longest ``match`` wins).
"""

from __future__ import annotations

import dataclasses
from dataclasses import dataclass, field
from typing import Literal

Layout = Literal["sections", "flow"]


@dataclass(frozen=True)
class ProviderConvention:
    """How one provider structures its exercise pages.

    Attributes:
        name:          Registry key, also used as the record ``provider`` value.
        match:         Substring of the attribution ``source`` selecting this
                       convention.
        container:     CSS selector for the content column.  ``None`` means the
                       whole fragment is content.
        heading_tags:  Elements treated as explicit section headings.
        skip_sections: Section titles whose heading *and* content are dropped.
        layout:        ``"sections"`` keeps only titled sections; ``"flow"``
                       keeps every recognized block in document order.
        noise_phrases: Blocks whose text contains any of these are dropped
                       (``flow`` layout only).
    """

    name: str
    match: str = ""
    container: str | None = None
    heading_tags: tuple[str, ...] = ("h3",)
    skip_sections: frozenset[str] = field(default_factory=frozenset)
    layout: Layout = "sections"
    noise_phrases: tuple[str, ...] = ()

    def with_extra_skips(self, titles: frozenset[str] | set[str]) -> ProviderConvention:
        """Return a copy whose skip-list also contains *titles*."""
        if not titles:
            return self
        return dataclasses.replace(self, skip_sections=self.skip_sections | frozenset(titles))


LEARNIMPROV = ProviderConvention(
    name="learnimprov",
    match="learnimprov",
    container=".entry-content",
    heading_tags=("h3",),
    skip_sections=frozenset({"Synonyms", "Credits"}),
    layout="sections",
)

IMPROWIKI = ProviderConvention(
    name="improwiki",
    match="improwiki",
    container=".col-lg-9",
    heading_tags=("h2", "h3"),
    layout="flow",
    noise_phrases=(
        "Text is available under CC BY-SA",
        "You can also create collections",
        "To overview",
    ),
)

_BUILTINS: tuple[ProviderConvention, ...] = (LEARNIMPROV, IMPROWIKI)


# ---------------------------------------------------------------------------
# Module-level registry
# ---------------------------------------------------------------------------

_registry: dict[str, ProviderConvention] = {c.name: c for c in _BUILTINS}


def register_provider(convention: ProviderConvention) -> None:
    """Register (or replace) a :class:`ProviderConvention` by name."""
    _registry[convention.name] = convention


def get_provider(name: str) -> ProviderConvention | None:
    return _registry.get(name)


def get_providers() -> list[ProviderConvention]:
    """Return all registered conventions."""
    return list(_registry.values())


def resolve_provider(
    source: str | None,
    providers: dict[str, ProviderConvention] | None = None,
) -> ProviderConvention | None:
    """Return the convention for *source*, or ``None`` if nothing matches.

    An exact name match wins; otherwise the convention with the longest
    ``match`` substring contained in *source* is chosen.
    """
    if not source:
        return None
    pool = providers if providers is not None else _registry
    key = source.strip().lower()
    if key in pool:
        return pool[key]

    best: ProviderConvention | None = None
    best_len = 0
    for convention in pool.values():
        needle = (convention.match or convention.name).lower()
        if needle and needle in key and len(needle) > best_len:
            best, best_len = convention, len(needle)
    return best


def clear_providers() -> None:
    """Reset the registry to the built-in conventions. Primarily for tests."""
    _registry.clear()
    _registry.update({c.name: c for c in _BUILTINS})
