"""Bottle label rendering as SVG."""

from typing import Literal

from lxml import etree
from pydantic import Field

from brewcrafter.calculations import srm_to_hex
from brewcrafter.models import BrewModel, Recipe

SVG_NS = "http://www.w3.org/2000/svg"
XLINK_NS = "http://www.w3.org/1999/xlink"

LABEL_WIDTH_PX = 500
LABEL_HEIGHT_PX = {"33CL": 175, "75CL": 225}
# Physical size of the printed label, front and back side by side
PHYSICAL_DIMENSIONS_CM = {"33CL": (20, 7), "75CL": (26, 9)}

HEX_COLOR = r"^#[0-9a-fA-F]{6}$"


def summarize_ingredients(recipe: Recipe) -> str:
    """Short ingredient line: two fermentables, two hops and the first yeast."""
    names = [f.name.split(" (")[0] for f in recipe.fermentables[:2]]
    names.extend(h.name for h in recipe.hops[:2])
    if recipe.yeasts:
        names.append(recipe.yeasts[0].name.split(" (")[0])

    if not names:
        return "N/A"
    summary = ", ".join(names[:3])
    if len(names) > 3:
        summary += "..."
    return summary


class LabelDesign(BrewModel):
    volume: Literal["33CL", "75CL"] = "33CL"

    # Front
    beer_name: str = Field(default="Cosmic Haze IPA", min_length=1)

    # Back
    description: str = (
        "A juicy and hazy IPA, bursting with tropical fruit aromas and a smooth, "
        "pillowy mouthfeel. Perfect for exploring the cosmos or just chilling on your couch."
    )
    ingredients: str = (
        "Water, Barley Malts (Pilsen, Vienna, CaraPils), Flaked Oats, Wheat Malt, "
        "Hops (Citra, Mosaic, Galaxy), Yeast."
    )
    brewing_date: str = "Brewed on: 15/07/2024"
    brewing_location: str = "Starbase Brewery, Alpha Nebula"

    # Shared
    brewery_name: str = "Galaxy Brews Co."
    tagline: str = "Crafted with passion, enjoyed with friends."
    background_image: str | None = None
    background_color: str = Field(default="#333333", pattern=HEX_COLOR)
    text_color: str = Field(default="#FFFFFF", pattern=HEX_COLOR)

    @classmethod
    def from_recipe(cls, recipe: Recipe, **overrides) -> "LabelDesign":
        """Pre-fill the label text from a recipe, keeping design choices from overrides."""
        values = {
            "beer_name": recipe.name,
            "ingredients": summarize_ingredients(recipe),
        }
        if recipe.notes:
            values["description"] = recipe.notes
        values.update({k: v for k, v in overrides.items() if v is not None})
        return cls(**values)


def _fmt(value: float | None, digits: int, suffix: str = "") -> str:
    if value is None:
        return "N/A"
    return f"{value:.{digits}f}{suffix}"


def _text(parent: etree._Element, x: float, y: float, content: str, size: int, color: str, **attrs) -> etree._Element:
    el = etree.SubElement(
        parent,
        f"{{{SVG_NS}}}text",
        x=str(x),
        y=str(y),
        fill=color,
        **{"font-size": str(size), "font-family": "Georgia, serif"},
        **attrs,
    )
    el.text = content
    return el


def _wrap(text: str, width: int) -> list[str]:
    lines: list[str] = []
    current = ""
    for word in text.split():
        if current and len(current) + 1 + len(word) > width:
            lines.append(current)
            current = word
        else:
            current = f"{current} {word}".strip()
    if current:
        lines.append(current)
    return lines


def render_label_svg(design: LabelDesign, recipe: Recipe | None = None) -> bytes:
    """
    Render the front and back label side by side as an SVG document.

    Recipe statistics (ABV, IBU, SRM swatch) are shown when a recipe is
    given and has them; otherwise they read N/A.
    """
    height = LABEL_HEIGHT_PX[design.volume]
    half = LABEL_WIDTH_PX / 2
    width_cm, height_cm = PHYSICAL_DIMENSIONS_CM[design.volume]

    svg = etree.Element(
        f"{{{SVG_NS}}}svg",
        nsmap={None: SVG_NS, "xlink": XLINK_NS},
        width=f"{width_cm}cm",
        height=f"{height_cm}cm",
        viewBox=f"0 0 {LABEL_WIDTH_PX} {height}",
    )
    etree.SubElement(svg, f"{{{SVG_NS}}}title").text = design.beer_name
    etree.SubElement(
        svg, f"{{{SVG_NS}}}rect", x="0", y="0", width=str(LABEL_WIDTH_PX), height=str(height), fill=design.background_color
    )
    if design.background_image:
        etree.SubElement(
            svg,
            f"{{{SVG_NS}}}image",
            {f"{{{XLINK_NS}}}href": design.background_image},
            x="0",
            y="0",
            width=str(LABEL_WIDTH_PX),
            height=str(height),
            preserveAspectRatio="xMidYMid slice",
            opacity="0.35",
        )

    color = design.text_color

    # Front
    front = etree.SubElement(svg, f"{{{SVG_NS}}}g", id="front")
    _text(front, half / 2, 28, design.brewery_name, 12, color, **{"text-anchor": "middle"})
    _text(front, half / 2, height / 2, design.beer_name, 22, color, **{"text-anchor": "middle", "font-weight": "bold"})
    _text(front, half / 2, height / 2 + 22, design.tagline, 9, color, **{"text-anchor": "middle", "font-style": "italic"})

    abv = recipe.abv if recipe else None
    ibu = recipe.ibu if recipe else None
    srm = recipe.color if recipe else None
    stats = f"ABV {_fmt(abv, 1, '%')}  |  IBU {_fmt(ibu, 0)}  |  SRM {_fmt(srm, 0)}"
    _text(front, half / 2, height - 18, stats, 10, color, **{"text-anchor": "middle"})
    etree.SubElement(
        front,
        f"{{{SVG_NS}}}circle",
        id="srm-swatch",
        cx=str(half - 20),
        cy=str(height - 22),
        r="8",
        fill=srm_to_hex(srm),
        stroke=color,
    )

    etree.SubElement(svg, f"{{{SVG_NS}}}line", x1=str(half), y1="8", x2=str(half), y2=str(height - 8), stroke=color)

    # Back
    back = etree.SubElement(svg, f"{{{SVG_NS}}}g", id="back")
    y = 24.0
    for line in _wrap(design.description, 48)[:6]:
        _text(back, half + 12, y, line, 9, color)
        y += 12
    y += 6
    for line in _wrap(f"Ingredients: {design.ingredients}", 48)[:3]:
        _text(back, half + 12, y, line, 8, color)
        y += 11
    _text(back, half + 12, height - 30, design.brewing_date, 8, color)
    _text(back, half + 12, height - 16, design.brewing_location, 8, color)

    return etree.tostring(svg, xml_declaration=True, encoding="UTF-8", pretty_print=True)
