"""Shared pytest fixtures."""

from __future__ import annotations

import json
import shutil
from pathlib import Path

import pytest

from exercise_pipeline.providers import clear_providers

FIXTURES_DIR = Path(__file__).parent / "fixtures"


def _read_fixture(name: str) -> str:
    return (FIXTURES_DIR / name).read_text(encoding="utf-8")


@pytest.fixture(autouse=True)
def _reset_providers():
    yield
    clear_providers()


@pytest.fixture
def learnimprov_h3_html() -> str:
    return _read_fixture("learnimprov_h3.html")


@pytest.fixture
def learnimprov_bold_html() -> str:
    return _read_fixture("learnimprov_bold.html")


@pytest.fixture
def improwiki_html() -> str:
    return _read_fixture("improwiki.html")


@pytest.fixture
def collection_data() -> dict:
    return json.loads(_read_fixture("learnimprov-exercises.json"))


@pytest.fixture
def overrides_path() -> Path:
    return FIXTURES_DIR / "inferred-tags.json"


@pytest.fixture
def collection_file(tmp_path: Path) -> Path:
    dest = tmp_path / "learnimprov-exercises.json"
    shutil.copy(FIXTURES_DIR / "learnimprov-exercises.json", dest)
    return dest
