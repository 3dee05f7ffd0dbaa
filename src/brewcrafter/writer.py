"""BeerXML generation from validated recipe forms."""

import re

from brewcrafter.models import RecipeForm

DEFAULT_FILE_STEM = "nouvelle-recette"

_XML_ESCAPES = {
    "<": "&lt;",
    ">": "&gt;",
    "&": "&amp;",
    "'": "&apos;",
    '"': "&quot;",
}
_XML_ESCAPE_RE = re.compile(r"[<>&'\"]")

# Anything outside letters, digits, accented Latin letters and "_.-"
_UNSAFE_FILENAME_RE = re.compile(r"[^a-zA-Z0-9À-ÿ_.-]")
_DOT_RUN_RE = re.compile(r"\.{2,}")


def xml_escape(text: str | None) -> str:
    """Escape the five reserved XML characters."""
    if text is None:
        return ""
    return _XML_ESCAPE_RE.sub(lambda m: _XML_ESCAPES[m.group(0)], text)


def recipe_filename(name: str | None) -> str:
    """Turn a recipe name into a safe ``.xml`` file name."""
    stem = _UNSAFE_FILENAME_RE.sub("_", name or "")
    # ".." never reaches a slug
    stem = _DOT_RUN_RE.sub(".", stem)
    if stem.endswith("."):
        stem = stem[:-1]
    if not stem.strip("_"):
        stem = DEFAULT_FILE_STEM
    return f"{stem}.xml"


def _tag(indent: int, tag: str, value: str) -> str:
    return f"{'  ' * indent}<{tag}>{value}</{tag}>"


def _empty(indent: int, tag: str) -> str:
    return f"{'  ' * indent}<{tag}/>"


def generate_recipe_xml(data: RecipeForm) -> str:
    """
    Serialise a recipe form into a BeerXML document.

    Tag order and per-field precision are fixed: gravities to 3 places,
    volumes to 2, times to 0, fermentable amounts to 3, hop amounts to 4.
    Water profiles are not part of the form and are written as an empty
    placeholder.
    """
    lines = [
        '<?xml version="1.0" encoding="UTF-8"?>',
        "<RECIPES>",
        "  <RECIPE>",
        _tag(2, "NAME", xml_escape(data.name)),
        _tag(2, "VERSION", "1"),
        _tag(2, "TYPE", xml_escape(data.type)),
    ]
    if data.brewer:
        lines.append(_tag(2, "BREWER", xml_escape(data.brewer)))
    lines.extend([
        _tag(2, "BATCH_SIZE", f"{data.batch_size:.2f}"),
        _tag(2, "BOIL_SIZE", f"{data.boil_size:.2f}"),
        _tag(2, "BOIL_TIME", f"{data.boil_time:.0f}"),
    ])
    if data.efficiency is not None:
        lines.append(_tag(2, "EFFICIENCY", f"{data.efficiency:.1f}"))

    # Target values
    if data.og is not None:
        lines.append(_tag(2, "OG", f"{data.og:.3f}"))
    if data.fg is not None:
        lines.append(_tag(2, "FG", f"{data.fg:.3f}"))
    if data.abv is not None:
        lines.append(_tag(2, "ABV", f"{data.abv:.2f}"))
    if data.ibu is not None:
        lines.append(_tag(2, "IBU", f"{data.ibu:.1f}"))
    if data.color_srm is not None:
        lines.append(_tag(2, "COLOR", f"{data.color_srm:.1f}"))
    if data.notes:
        lines.append(_tag(2, "NOTES", xml_escape(data.notes)))

    # Style
    if data.style.name:
        lines.append("    <STYLE>")
        lines.append(_tag(3, "NAME", xml_escape(data.style.name)))
        lines.append(_tag(3, "VERSION", "1"))
        if data.style.category:
            lines.append(_tag(3, "CATEGORY", xml_escape(data.style.category)))
        if data.style.style_guide:
            lines.append(_tag(3, "STYLE_GUIDE", xml_escape(data.style.style_guide)))
        lines.append(_tag(3, "TYPE", xml_escape(data.style.type)))
        lines.append("    </STYLE>")

    # Fermentables
    if data.fermentables:
        lines.append("    <FERMENTABLES>")
        for f in data.fermentables:
            lines.append("      <FERMENTABLE>")
            lines.append(_tag(4, "NAME", xml_escape(f.name)))
            lines.append(_tag(4, "VERSION", "1"))
            lines.append(_tag(4, "TYPE", xml_escape(f.type)))
            lines.append(_tag(4, "AMOUNT", f"{f.amount_kg:.3f}"))
            lines.append(_tag(4, "YIELD", f"{f.yield_percentage:.1f}"))
            lines.append(_tag(4, "COLOR", f"{f.color:.1f}"))
            lines.append("      </FERMENTABLE>")
        lines.append("    </FERMENTABLES>")
    else:
        lines.append(_empty(2, "FERMENTABLES"))

    # Hops
    if data.hops:
        lines.append("    <HOPS>")
        for h in data.hops:
            lines.append("      <HOP>")
            lines.append(_tag(4, "NAME", xml_escape(h.name)))
            lines.append(_tag(4, "VERSION", "1"))
            lines.append(_tag(4, "ALPHA", f"{h.alpha:.1f}"))
            lines.append(_tag(4, "AMOUNT", f"{h.amount_kg:.4f}"))
            lines.append(_tag(4, "USE", xml_escape(h.use)))
            lines.append(_tag(4, "TIME", f"{h.time:.0f}"))
            if h.form:
                lines.append(_tag(4, "FORM", xml_escape(h.form)))
            lines.append("      </HOP>")
        lines.append("    </HOPS>")
    else:
        lines.append(_empty(2, "HOPS"))

    # Yeasts
    if data.yeasts:
        lines.append("    <YEASTS>")
        for y in data.yeasts:
            lines.append("      <YEAST>")
            lines.append(_tag(4, "NAME", xml_escape(y.name)))
            lines.append(_tag(4, "VERSION", "1"))
            lines.append(_tag(4, "TYPE", xml_escape(y.type)))
            lines.append(_tag(4, "FORM", xml_escape(y.form)))
            lines.append(_tag(4, "AMOUNT", f"{y.amount:.3f}"))
            if y.laboratory:
                lines.append(_tag(4, "LABORATORY", xml_escape(y.laboratory)))
            if y.product_id:
                lines.append(_tag(4, "PRODUCT_ID", xml_escape(y.product_id)))
            lines.append(_tag(4, "ATTENUATION", f"{y.attenuation:.1f}"))
            lines.append("      </YEAST>")
        lines.append("    </YEASTS>")
    else:
        lines.append(_empty(2, "YEASTS"))

    # Miscs
    if data.miscs:
        lines.append("    <MISCS>")
        for m in data.miscs:
            lines.append("      <MISC>")
            lines.append(_tag(4, "NAME", xml_escape(m.name)))
            lines.append(_tag(4, "VERSION", "1"))
            lines.append(_tag(4, "TYPE", xml_escape(m.type)))
            lines.append(_tag(4, "USE", xml_escape(m.use)))
            lines.append(_tag(4, "TIME", f"{m.time:.0f}"))
            lines.append(_tag(4, "AMOUNT", f"{m.amount:.3f}"))
            lines.append("      </MISC>")
        lines.append("    </MISCS>")
    else:
        lines.append(_empty(2, "MISCS"))

    lines.append(_empty(2, "WATERS"))

    # Mash
    lines.append("    <MASH>")
    lines.append(_tag(3, "NAME", xml_escape(data.mash.name)))
    lines.append(_tag(3, "VERSION", "1"))
    if data.mash.grain_temp is not None:
        lines.append(_tag(3, "GRAIN_TEMP", f"{data.mash.grain_temp:.1f}"))
    if data.mash.mash_steps:
        lines.append("      <MASH_STEPS>")
        for step in data.mash.mash_steps:
            lines.append("        <MASH_STEP>")
            lines.append(_tag(5, "NAME", xml_escape(step.name)))
            lines.append(_tag(5, "VERSION", "1"))
            lines.append(_tag(5, "TYPE", xml_escape(step.type)))
            lines.append(_tag(5, "STEP_TEMP", f"{step.step_temp:.1f}"))
            lines.append(_tag(5, "STEP_TIME", f"{step.step_time:.0f}"))
            if step.infuse_amount is not None:
                lines.append(_tag(5, "INFUSE_AMOUNT", f"{step.infuse_amount:.2f}"))
            lines.append("        </MASH_STEP>")
        lines.append("      </MASH_STEPS>")
    else:
        lines.append(_empty(3, "MASH_STEPS"))
    lines.append("    </MASH>")

    lines.append("  </RECIPE>")
    lines.append("</RECIPES>")
    return "\n".join(lines) + "\n"
