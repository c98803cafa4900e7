"""Unit tests for exercise_pipeline.extractors.compose."""

from __future__ import annotations

import pytest

from exercise_pipeline.errors import ConfigError, MalformedFragmentError
from exercise_pipeline.extractors.compose import clean_description, compose_sections
from exercise_pipeline.extractors.sections import ContentBlock, Section
from exercise_pipeline.providers import IMPROWIKI, LEARNIMPROV, ProviderConvention

CREDITS_ONLY = ProviderConvention(name="plain", skip_sections=frozenset({"Credits"}))

SCENARIO = "<h3>Description</h3><p>Say yes.</p><h3>Credits</h3><p>Site X</p>"


class TestComposeSections:
    def test_title_then_blocks(self):
        section = Section("Setup", (ContentBlock("p", "<p>Stand.</p>", "Stand."),))
        assert compose_sections([section]) == "<h3>Setup</h3><p>Stand.</p>"

    def test_title_is_escaped(self):
        section = Section("Q & A", (ContentBlock("p", "<p>x</p>", "x"),))
        assert compose_sections([section]) == "<h3>Q &amp; A</h3><p>x</p>"

    def test_untitled_section_has_no_heading(self):
        section = Section("", (ContentBlock("p", "<p>Lead.</p>", "Lead."),))
        assert compose_sections([section]) == "<p>Lead.</p>"

    def test_heading_tag_respected(self):
        section = Section("Variations", (ContentBlock("p", "<p>v</p>", "v"),), "h2")
        assert compose_sections([section]) == "<h2>Variations</h2><p>v</p>"

    def test_block_attributes_stripped(self):
        block = ContentBlock("p", '<p class="x" style="y">Hi</p>', "Hi")
        assert compose_sections([Section("T", (block,))]) == "<h3>T</h3><p>Hi</p>"

    def test_no_sections(self):
        assert compose_sections([]) == ""


class TestCleanDescription:
    def test_skip_listed_section_removed_exactly(self):
        assert clean_description(SCENARIO, CREDITS_ONLY) == "<h3>Description</h3><p>Say yes.</p>"

    def test_learnimprov_container(self):
        raw = f'<div class="entry-content">{SCENARIO}</div>'
        assert clean_description(raw, LEARNIMPROV) == "<h3>Description</h3><p>Say yes.</p>"

    def test_deterministic(self, learnimprov_h3_html):
        first = clean_description(learnimprov_h3_html, LEARNIMPROV)
        assert first == clean_description(learnimprov_h3_html, LEARNIMPROV)

    def test_idempotent_on_own_output(self):
        once = clean_description(SCENARIO, CREDITS_ONLY)
        assert clean_description(once, CREDITS_ONLY) == once

    def test_h3_page(self, learnimprov_h3_html):
        out = clean_description(learnimprov_h3_html, LEARNIMPROV)
        assert out.startswith("<h3>Introduction</h3><p>A classic ")
        assert '<a href="https://www.learnimprov.com/accepting/">acceptance</a>' in out
        assert "<h3>Description</h3><p>Players stand in a circle.</p><ul>" in out
        assert "<h3>Variations</h3><blockquote><p>Try it in gibberish.</p></blockquote>" in out
        for absent in ("Synonyms", "Credits", "Share this", "iframe", "Recent posts",
                       "class=", "style=", "target=", "cite="):
            assert absent not in out

    def test_bold_page(self, learnimprov_bold_html):
        out = clean_description(learnimprov_bold_html, LEARNIMPROV)
        assert out == (
            "<h3>Setup</h3><p>Stand in a circle.</p>"
            "<h3>How to play</h3><p>Pass a clap <strong>around</strong> the circle.</p>"
            "<ol><li>Clap</li><li>Pass</li></ol>"
        )

    def test_flow_layout(self, improwiki_html):
        assert clean_description(improwiki_html, IMPROWIKI) == (
            "<p>An energy warm-up.</p>"
            "<h3>Rules</h3><p>Pass the energy.</p>"
            "<h2>Variations</h2><ul><li>Add a fourth word.</li></ul>"
        )

    def test_no_headings_gives_empty(self):
        raw = '<div class="entry-content"><p>Only prose.</p></div>'
        assert clean_description(raw, LEARNIMPROV) == ""

    def test_blank_input(self):
        assert clean_description("", LEARNIMPROV) == ""
        assert clean_description("  \n ", LEARNIMPROV) == ""
        assert clean_description(None, LEARNIMPROV) == ""

    @pytest.mark.parametrize("raw", [
        "<h3>Description</h3><p>Say yes.</p><p",
        "<h3>Description</h3>\x00<p>Say yes.</p>",
        "<![if !supportLists]><h3>Description</h3><p>Say yes.</p>",
        123,
        [b"<p>x</p>"],
    ])
    def test_malformed_input_raises(self, raw):
        with pytest.raises(MalformedFragmentError):
            clean_description(raw, CREDITS_ONLY)

    def test_invalid_selector_is_config_error(self):
        convention = ProviderConvention(name="broken", container="div[unclosed")
        with pytest.raises(ConfigError, match="broken"):
            clean_description(SCENARIO, convention)
