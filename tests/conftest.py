from __future__ import annotations

from pathlib import Path

import pytest
from fastapi.testclient import TestClient

from brewcrafter.config import Settings
from brewcrafter.parser import BeerXMLParser
from brewcrafter.web import create_app
from tests.utils import MINIMAL_XML, SAMPLE_XML, write_recipe


@pytest.fixture()
def recipes_dir(tmp_path: Path) -> Path:
    path = tmp_path / "Recipes"
    path.mkdir()
    return path


@pytest.fixture()
def sample_dir(recipes_dir: Path) -> Path:
    write_recipe(recipes_dir, "cosmic-pale-ale", SAMPLE_XML)
    write_recipe(recipes_dir, "quick-stout", MINIMAL_XML)
    return recipes_dir


@pytest.fixture()
def parser(sample_dir: Path) -> BeerXMLParser:
    return BeerXMLParser(sample_dir)


@pytest.fixture()
def settings(sample_dir: Path) -> Settings:
    return Settings(_env_file=None, recipes_dir=sample_dir, language="en", totp_secret=None)


@pytest.fixture()
def client(settings: Settings) -> TestClient:
    return TestClient(create_app(settings))
