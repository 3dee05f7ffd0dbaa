"""BrewCrafter MCP Server - recipe tools for assistants."""

import json
import logging

from mcp.server.fastmcp import FastMCP
from pydantic import ValidationError

from brewcrafter.calculations import HopAddition
from brewcrafter.calculations import calculate_abv as _calculate_abv
from brewcrafter.calculations import calculate_ibu as _calculate_ibu
from brewcrafter.calculations import correct_gravity as _correct_gravity
from brewcrafter.config import configure_logging, get_settings
from brewcrafter.errors import InvalidSlugError, RecipeNotFoundError, RecipeStoreError
from brewcrafter.fermentation import RaptClient, simulate_fermentation
from brewcrafter.matching import RecipeMatcher
from brewcrafter.models import FermentationData, Recipe, RecipeFile, RecipeForm
from brewcrafter.parser import BeerXMLParser

logger = logging.getLogger(__name__)

# Initialize the MCP server
mcp = FastMCP("BrewCrafter")


def _get_parser() -> BeerXMLParser:
    """Parser over the configured recipe directory, re-read on every call."""
    return BeerXMLParser(get_settings().recipes_dir)


def _fmt(value: float | None, fmt: str, suffix: str = "") -> str:
    return "N/A" if value is None else f"{value:{fmt}}{suffix}"


def _not_found(slug: str, parser: BeerXMLParser) -> str:
    message = f"Recipe '{slug}' not found."
    suggestions = RecipeMatcher(parser.get_recipe_summaries()).suggest_slugs(slug)
    if suggestions:
        message += "\n\nDid you mean one of these?\n" + "\n".join(f"  - {s}" for s in suggestions)
    return message


def _format_recipe(slug: str, recipe: Recipe) -> str:
    lines = [f"# {recipe.name}\n"]
    lines.append(f"**Slug:** {slug}")
    lines.append(f"**Type:** {recipe.type}")
    lines.append(f"**Brewer:** {recipe.brewer or 'Not specified'}")

    if recipe.style:
        lines.append(f"\n## Style: {recipe.style.name}")
        if recipe.style.category:
            lines.append(f"Category: {recipe.style.category}")

    lines.append("\n## Targets")
    lines.append(f"- **OG:** {_fmt(recipe.og, '.3f')}")
    lines.append(f"- **FG:** {_fmt(recipe.fg, '.3f')}")
    lines.append(f"- **ABV:** {_fmt(recipe.abv, '.1f', '%')}")
    lines.append(f"- **IBU:** {_fmt(recipe.ibu, '.0f')}")
    lines.append(f"- **SRM:** {_fmt(recipe.color, '.0f')}")
    lines.append(f"- **Batch Size:** {recipe.batch_size:.1f} L")
    lines.append(f"- **Boil Size:** {recipe.boil_size:.1f} L")
    lines.append(f"- **Boil Time:** {recipe.boil_time:.0f} min")
    lines.append(f"- **Efficiency:** {_fmt(recipe.efficiency, '.0f', '%')}")

    if recipe.fermentables:
        lines.append("\n## Fermentables")
        for f in recipe.fermentables:
            lines.append(f"- {f.amount:.3f} kg **{f.name}** [{f.color:.0f} SRM, {f.type}]")
        lines.append(f"- **Total:** {recipe.total_grain_kg:.3f} kg")

    if recipe.hops:
        lines.append("\n## Hops")
        for h in sorted(recipe.hops, key=lambda h: h.time, reverse=True):
            lines.append(f"- {h.amount_grams:.1f} g **{h.name}** ({h.alpha:.1f}% AA) @ {h.time:.0f} min [{h.use}]")

    if recipe.yeasts:
        lines.append("\n## Yeast")
        for y in recipe.yeasts:
            lab = " ".join(p for p in (y.laboratory, y.product_id) if p)
            lines.append(f"- **{y.name}**" + (f" ({lab})" if lab else "") + f"\n  {y.type} | {y.form}")

    if recipe.mash and recipe.mash.mash_steps:
        lines.append(f"\n## Mash Profile: {recipe.mash.name}")
        for step in recipe.mash.mash_steps:
            lines.append(f"- **{step.name}**: {step.step_temp:.0f}°C for {step.step_time:.0f} min [{step.type}]")

    if recipe.miscs:
        lines.append("\n## Other Ingredients")
        for m in recipe.miscs:
            lines.append(f"- {m.amount:.3f} {m.name} @ {m.use}")

    if recipe.notes:
        lines.append(f"\n## Notes\n{recipe.notes}")

    if recipe.steps_markdown:
        lines.append(f"\n## Steps\n{recipe.steps_markdown}")

    return "\n".join(lines)


# === Recipe Tools ===


@mcp.tool()
def list_recipes(search: str | None = None) -> str:
    """
    List all recipes in the recipe directory.

    Args:
        search: Optional fuzzy search on recipe name, slug or style

    Returns:
        Formatted list of recipes with basic info (name, style, OG, IBU, ABV)
    """
    summaries = RecipeMatcher(_get_parser().get_recipe_summaries()).search(search)

    if not summaries:
        return "No recipes found."

    lines = ["# Recipes\n"]
    for r in summaries:
        lines.append(
            f"- **{r.name}** ({r.style_name or 'No style'}) `{r.slug}`\n"
            f"  OG: {_fmt(r.og, '.3f')} | FG: {_fmt(r.fg, '.3f')} | IBU: {_fmt(r.ibu, '.0f')} | "
            f"ABV: {_fmt(r.abv, '.1f', '%')} | SRM: {_fmt(r.color, '.0f')}"
        )
    return "\n".join(lines)


@mcp.tool()
def get_recipe(slug: str) -> str:
    """
    Get full details of a specific recipe.

    Args:
        slug: Recipe slug (the file name without .xml)

    Returns:
        Complete recipe details including ingredients, mash and notes
    """
    parser = _get_parser()
    recipe = parser.get_recipe(slug)
    if not recipe:
        return _not_found(slug, parser)
    return _format_recipe(slug, recipe)


@mcp.tool()
def save_recipe(recipe_json: str, slug: str | None = None) -> str:
    """
    Create or overwrite a recipe file.

    Args:
        recipe_json: JSON object with the recipe form fields, e.g.
            {"name": "Pale Ale", "batchSize": 20, "fermentables": [{"name": "Pale Malt", "amount": 5}],
             "hops": [{"name": "Cascade", "alpha": 5.5, "amount": 30, "time": 60}]}
            Hop amounts default to grams, fermentable amounts to kilograms.
        slug: Existing slug to overwrite; derived from the name when omitted

    Returns:
        Confirmation message with the slug the recipe was saved under
    """
    try:
        form = RecipeForm.model_validate(json.loads(recipe_json))
    except json.JSONDecodeError as e:
        return f"Error parsing JSON: {e}"
    except ValidationError as e:
        return f"Invalid recipe:\n{e}"

    try:
        saved_slug = _get_parser().save_recipe(form, slug=slug)
    except InvalidSlugError as e:
        return f"Error saving recipe: {e}"
    except RecipeStoreError:
        return "Error saving recipe. Check the server logs for details."

    return f"✅ Recipe '{form.name}' saved as `{saved_slug}`."


@mcp.tool()
def import_recipes(files_json: str) -> str:
    """
    Import BeerXML files into the recipe directory.

    Args:
        files_json: JSON array of files: [{"fileName": "pale.xml", "content": "<RECIPES>..."}, ...]
            Files not ending in .xml are skipped; existing files are overwritten.

    Returns:
        Summary of written, skipped and failed files
    """
    try:
        files = [RecipeFile.model_validate(f) for f in json.loads(files_json)]
    except json.JSONDecodeError as e:
        return f"Error parsing JSON: {e}"
    except (ValidationError, TypeError) as e:
        return f"Invalid file list: {e}"

    try:
        result = _get_parser().add_recipe_files(files)
    except RecipeStoreError:
        return "Error importing recipes. Check the server logs for details."

    lines = [f"# Import: {result.count} recipe file(s) written\n"]
    for name in result.written:
        lines.append(f"- ✅ {name}")
    for name in result.skipped:
        lines.append(f"- ⏭️ {name} (skipped, not an .xml file)")
    for name, error in result.errors.items():
        lines.append(f"- ❌ {name}: {error}")
    return "\n".join(lines)


@mcp.tool()
def delete_recipe(slug: str) -> str:
    """
    Delete a recipe file and its steps file.

    Args:
        slug: Recipe slug to delete

    Returns:
        Confirmation or error message
    """
    try:
        _get_parser().delete_recipe(slug)
    except (InvalidSlugError, RecipeNotFoundError) as e:
        return f"{e}."
    except RecipeStoreError:
        return "Error deleting recipe. Check the server logs for details."
    return f"Recipe '{slug}' deleted."


@mcp.tool()
def export_recipe_beerxml(slug: str) -> str:
    """
    Export a recipe in the canonical BeerXML layout for use with other brewing software.

    Args:
        slug: Recipe slug to export

    Returns:
        BeerXML formatted string
    """
    parser = _get_parser()
    try:
        xml = parser.export_recipe_beerxml(slug)
    except ValidationError as e:
        return f"Recipe '{slug}' cannot be exported:\n{e}"
    if xml is None:
        return _not_found(slug, parser)
    return xml


# === Calculator Tools ===


@mcp.tool()
def calculate_abv(og: float, fg: float) -> str:
    """
    Calculate alcohol by volume.

    Args:
        og: Original gravity (e.g., 1.050)
        fg: Final gravity (e.g., 1.010)
    """
    abv = _calculate_abv(og, fg)
    if abv is None:
        return "Cannot calculate ABV: OG must be greater than FG and both must be positive."
    return f"**ABV:** {abv:.2f}%"


@mcp.tool()
def calculate_ibu(og: float, boil_volume_l: float, hops_json: str) -> str:
    """
    Estimate bitterness with the Tinseth formula.

    Args:
        og: Boil gravity (e.g., 1.050)
        boil_volume_l: Boil volume in liters
        hops_json: JSON array of additions: [{"amount_g": 30, "alpha": 5.5, "time": 60}, ...]

    Returns:
        Total IBU estimate
    """
    try:
        additions = [
            HopAddition(amount_g=float(h["amount_g"]), alpha=float(h["alpha"]), time_min=float(h["time"]))
            for h in json.loads(hops_json)
        ]
    except json.JSONDecodeError as e:
        return f"Error parsing JSON: {e}"
    except (KeyError, TypeError, ValueError) as e:
        return f"Invalid hop addition: {e}"

    ibu = _calculate_ibu(og, boil_volume_l, additions)
    if ibu is None:
        return "Cannot calculate IBU: gravity and boil volume must be positive."
    return f"**IBU (Tinseth):** {ibu:.1f}"


@mcp.tool()
def correct_gravity(measured_sg: float, measured_temp_c: float, calibration_temp_c: float = 20.0) -> str:
    """
    Correct a hydrometer reading for temperature.

    Args:
        measured_sg: Gravity as read on the hydrometer
        measured_temp_c: Sample temperature in Celsius
        calibration_temp_c: Hydrometer calibration temperature (default 20°C)
    """
    corrected = _correct_gravity(measured_sg, measured_temp_c, calibration_temp_c)
    if corrected is None:
        return "Cannot correct gravity: the measured gravity must be positive."
    return f"**Corrected gravity:** {corrected:.3f} (measured {measured_sg:.3f} at {measured_temp_c:.1f}°C)"


# === Fermentation Tools ===


@mcp.tool()
def get_fermentation_data(slug: str, pill_id: str | None = None) -> str:
    """
    Get fermentation temperature and gravity readings for a recipe.

    Args:
        slug: Recipe slug
        pill_id: Optional RAPT Pill id; without it a simulated curve is returned

    Returns:
        One reading per day as a markdown table
    """
    parser = _get_parser()
    if parser.get_recipe(slug) is None:
        return _not_found(slug, parser)

    if pill_id:
        settings = get_settings()
        data = RaptClient(settings.rapt_email, settings.rapt_password).get_fermentation_data(pill_id)
    else:
        data = FermentationData(data=simulate_fermentation(slug), source="simulated")

    if data.error:
        return f"Error: {data.error}"
    if not data.data:
        return "No fermentation data available."

    lines = [f"# Fermentation ({data.source})\n", "| Time | Temp (°C) | Gravity |", "|---|---|---|"]
    # Simulated curves are hourly; one row per day is enough
    step = 24 if data.source == "simulated" else 1
    for point in data.data[::step]:
        lines.append(f"| {point.time} | {_fmt(point.temperature, '.1f')} | {_fmt(point.gravity, '.3f')} |")
    return "\n".join(lines)


def main():
    """Run the BrewCrafter MCP server."""
    configure_logging(get_settings().log_level)
    mcp.run()


if __name__ == "__main__":
    main()
