from __future__ import annotations

import pytest
from lxml import etree
from pydantic import ValidationError

from brewcrafter.label import LabelDesign, render_label_svg, summarize_ingredients
from brewcrafter.models import Recipe
from brewcrafter.parser import parse_recipe
from tests.utils import SAMPLE_XML

SVG = "{http://www.w3.org/2000/svg}"


def test_summarize_ingredients() -> None:
    recipe = parse_recipe(SAMPLE_XML)
    assert summarize_ingredients(recipe) == "Pale Malt, Crystal 40, Cascade..."
    assert summarize_ingredients(Recipe()) == "N/A"


def test_design_from_recipe() -> None:
    recipe = parse_recipe(SAMPLE_XML)
    design = LabelDesign.from_recipe(recipe, volume="75CL", tagline=None)
    assert design.beer_name == "Cosmic Pale Ale"
    assert design.description == "Dry hop <3 days"
    assert design.volume == "75CL"
    assert design.tagline == LabelDesign().tagline


def test_design_rejects_bad_colours() -> None:
    with pytest.raises(ValidationError):
        LabelDesign(background_color="red")


@pytest.mark.parametrize(("volume", "height"), [("33CL", "175"), ("75CL", "225")])
def test_render_label_svg(volume: str, height: str) -> None:
    recipe = parse_recipe(SAMPLE_XML)
    svg = etree.fromstring(render_label_svg(LabelDesign.from_recipe(recipe, volume=volume), recipe))

    assert svg.tag == f"{SVG}svg"
    assert svg.get("viewBox") == f"0 0 500 {height}"
    assert svg.find(f"{SVG}title").text == "Cosmic Pale Ale"
    assert svg.find(f".//{SVG}circle[@id='srm-swatch']").get("fill") == "#E0C000"
    texts = [t.text for t in svg.iter(f"{SVG}text")]
    assert any(t.startswith("ABV 5.4%") for t in texts)


def test_render_label_without_recipe_shows_na() -> None:
    svg = etree.fromstring(render_label_svg(LabelDesign()))
    texts = [t.text for t in svg.iter(f"{SVG}text")]
    assert "ABV N/A  |  IBU N/A  |  SRM N/A" in texts
    assert svg.find(f".//{SVG}circle").get("fill") == "#CCCCCC"


def test_background_image_is_linked() -> None:
    svg = etree.fromstring(render_label_svg(LabelDesign(background_image="https://example.com/bg.png")))
    image = svg.find(f"{SVG}image")
    assert image.get("{http://www.w3.org/1999/xlink}href") == "https://example.com/bg.png"
