"""Reader and store for BeerXML recipe files kept in a flat directory."""

import html
import logging
import os
import re
from pathlib import Path

from brewcrafter.errors import InvalidSlugError, RecipeNotFoundError, RecipeStoreError
from brewcrafter.models import (
    Fermentable,
    Hop,
    IngestResult,
    MashProfile,
    MashStep,
    Misc,
    Recipe,
    RecipeFile,
    RecipeForm,
    RecipeSummary,
    Style,
    Yeast,
)
from brewcrafter.writer import generate_recipe_xml, recipe_filename

logger = logging.getLogger(__name__)

RECIPE_SUFFIX = ".xml"
STEPS_SUFFIX = ".md"

# Blocks nested inside <RECIPE>; their tags must not leak into recipe-level fields
RECIPE_SUB_BLOCKS = ("STYLE", "FERMENTABLES", "HOPS", "YEASTS", "MISCS", "WATERS", "MASH", "EQUIPMENT")

# Leading number, the way most BeerXML producers pad values ("20.0 L", "1.050")
_NUMBER_RE = re.compile(r"\s*([-+]?(?:\d+\.?\d*|\.\d+)(?:[eE][-+]?\d+)?)")


# === Tag Extraction ===


def _tag_pattern(tag: str) -> re.Pattern:
    return re.compile(rf"<{tag}>([\s\S]*?)</{tag}>", re.IGNORECASE)


def extract_tag_content(xml: str, tag: str) -> str | None:
    """Return the trimmed content of the first ``<tag>...</tag>``, or None."""
    match = _tag_pattern(tag).search(xml)
    if match is None:
        return None
    return match.group(1).strip()


def extract_tag_blocks(xml: str, tag: str) -> list[str]:
    """Return the raw content of every ``<tag>...</tag>`` block."""
    return [m.group(1) for m in _tag_pattern(tag).finditer(xml)]


def strip_tag_blocks(xml: str, tags: tuple[str, ...]) -> str:
    """Remove whole sub-blocks so only the enclosing level's own tags remain."""
    for tag in tags:
        xml = _tag_pattern(tag).sub("", xml)
    return xml


def parse_number(text: str | None) -> float | None:
    """
    Parse a numeric tag value.

    Absent tags (None) stay None. Present but empty or malformed values
    degrade to 0.
    """
    if text is None:
        return None
    match = _NUMBER_RE.match(text)
    if match is None:
        return 0.0
    return float(match.group(1))


def _text(xml: str, tag: str) -> str | None:
    value = extract_tag_content(xml, tag)
    if value is None:
        return None
    return html.unescape(value)


def _text_or(xml: str, tag: str, default: str = "N/A") -> str:
    return _text(xml, tag) or default


def _number(xml: str, tag: str) -> float | None:
    return parse_number(extract_tag_content(xml, tag))


def _required_number(xml: str, tag: str) -> float:
    value = _number(xml, tag)
    return 0.0 if value is None else value


# === Sub-block Parsers ===


def _parse_style(block: str) -> Style:
    return Style(
        name=_text_or(block, "NAME"),
        category=_text(block, "CATEGORY"),
        style_guide=_text(block, "STYLE_GUIDE"),
        type=_text(block, "TYPE"),
        og_min=_number(block, "OG_MIN"),
        og_max=_number(block, "OG_MAX"),
        fg_min=_number(block, "FG_MIN"),
        fg_max=_number(block, "FG_MAX"),
        ibu_min=_number(block, "IBU_MIN"),
        ibu_max=_number(block, "IBU_MAX"),
        color_min=_number(block, "COLOR_MIN"),
        color_max=_number(block, "COLOR_MAX"),
        abv_min=_number(block, "ABV_MIN"),
        abv_max=_number(block, "ABV_MAX"),
    )


def _parse_fermentables(block: str) -> list[Fermentable]:
    return [
        Fermentable(
            name=_text_or(item, "NAME"),
            amount=_required_number(item, "AMOUNT"),
            type=_text_or(item, "TYPE"),
            yield_percentage=_required_number(item, "YIELD"),
            color=_required_number(item, "COLOR"),
        )
        for item in extract_tag_blocks(block, "FERMENTABLE")
    ]


def _parse_hops(block: str) -> list[Hop]:
    return [
        Hop(
            name=_text_or(item, "NAME"),
            amount=_required_number(item, "AMOUNT"),
            use=_text_or(item, "USE"),
            time=_required_number(item, "TIME"),
            alpha=_required_number(item, "ALPHA"),
            form=_text(item, "FORM"),
        )
        for item in extract_tag_blocks(block, "HOP")
    ]


def _parse_yeasts(block: str) -> list[Yeast]:
    return [
        Yeast(
            name=_text_or(item, "NAME"),
            amount=_required_number(item, "AMOUNT"),
            type=_text_or(item, "TYPE"),
            form=_text_or(item, "FORM"),
            laboratory=_text(item, "LABORATORY"),
            product_id=_text(item, "PRODUCT_ID"),
            attenuation=_number(item, "ATTENUATION"),
        )
        for item in extract_tag_blocks(block, "YEAST")
    ]


def _parse_miscs(block: str) -> list[Misc]:
    return [
        Misc(
            name=_text_or(item, "NAME"),
            amount=_required_number(item, "AMOUNT"),
            use=_text_or(item, "USE"),
            time=_required_number(item, "TIME"),
            type=_text_or(item, "TYPE"),
        )
        for item in extract_tag_blocks(block, "MISC")
    ]


def _parse_mash(block: str) -> MashProfile:
    steps_block = extract_tag_content(block, "MASH_STEPS")
    own = strip_tag_blocks(block, ("MASH_STEPS",))
    steps = []
    if steps_block:
        steps = [
            MashStep(
                name=_text_or(item, "NAME"),
                type=_text_or(item, "TYPE"),
                step_temp=_required_number(item, "STEP_TEMP"),
                step_time=_required_number(item, "STEP_TIME"),
                infuse_amount=_number(item, "INFUSE_AMOUNT"),
            )
            for item in extract_tag_blocks(steps_block, "MASH_STEP")
        ]
    return MashProfile(
        name=_text_or(own, "NAME"),
        grain_temp=_number(own, "GRAIN_TEMP"),
        mash_steps=steps,
    )


# === Document Parsers ===


def parse_recipe_summary(xml: str, slug: str) -> RecipeSummary | None:
    """Extract listing fields. Returns None without a <RECIPE> block or recipe name."""
    recipe_block = extract_tag_content(xml, "RECIPE")
    if not recipe_block:
        return None

    own = strip_tag_blocks(recipe_block, RECIPE_SUB_BLOCKS)
    name = _text(own, "NAME")
    if not name:
        return None

    style_block = extract_tag_content(recipe_block, "STYLE")
    return RecipeSummary(
        slug=slug,
        name=name,
        type=_text_or(own, "TYPE"),
        style_name=_text(style_block, "NAME") if style_block else None,
        og=_number(own, "OG"),
        fg=_number(own, "FG"),
        ibu=_number(own, "IBU"),
        color=_number(own, "COLOR"),
        abv=_number(own, "ABV"),
        batch_size=_number(own, "BATCH_SIZE"),
    )


def parse_recipe(xml: str) -> Recipe | None:
    """Extract a full recipe. Returns None when the <RECIPE> block is missing."""
    recipe_block = extract_tag_content(xml, "RECIPE")
    if not recipe_block:
        return None

    own = strip_tag_blocks(recipe_block, RECIPE_SUB_BLOCKS)
    style_block = extract_tag_content(recipe_block, "STYLE")
    fermentables_block = extract_tag_content(recipe_block, "FERMENTABLES")
    hops_block = extract_tag_content(recipe_block, "HOPS")
    yeasts_block = extract_tag_content(recipe_block, "YEASTS")
    miscs_block = extract_tag_content(recipe_block, "MISCS")
    mash_block = extract_tag_content(recipe_block, "MASH")

    version = _number(own, "VERSION")

    return Recipe(
        name=_text_or(own, "NAME", "Untitled Recipe"),
        version=int(version) if version else 1,
        type=_text_or(own, "TYPE"),
        brewer=_text(own, "BREWER"),
        batch_size=_required_number(own, "BATCH_SIZE"),
        boil_size=_required_number(own, "BOIL_SIZE"),
        boil_time=_required_number(own, "BOIL_TIME"),
        efficiency=_number(own, "EFFICIENCY"),
        notes=_text(own, "NOTES"),
        og=_number(own, "OG"),
        fg=_number(own, "FG"),
        abv=_number(own, "ABV"),
        ibu=_number(own, "IBU"),
        color=_number(own, "COLOR"),
        style=_parse_style(style_block) if style_block else None,
        fermentables=_parse_fermentables(fermentables_block) if fermentables_block else [],
        hops=_parse_hops(hops_block) if hops_block else [],
        yeasts=_parse_yeasts(yeasts_block) if yeasts_block else [],
        miscs=_parse_miscs(miscs_block) if miscs_block else [],
        mash=_parse_mash(mash_block) if mash_block is not None else None,
    )


# === Recipe Directory ===


class BeerXMLParser:
    """Reads and writes BeerXML recipe files in one flat directory."""

    def __init__(self, recipes_path: str | Path):
        """Initialize parser with the recipe directory."""
        self.recipes_path = Path(recipes_path)

    def _check_slug(self, slug: str) -> str:
        if not slug or ".." in slug or "/" in slug or "\\" in slug or slug != os.path.basename(slug):
            raise InvalidSlugError(f"Invalid recipe slug: {slug!r}")
        return slug

    def _get_file_path(self, slug: str) -> Path:
        """Get full path to a recipe file."""
        return self.recipes_path / f"{self._check_slug(slug)}{RECIPE_SUFFIX}"

    def _read_text(self, path: Path) -> str:
        return path.read_text(encoding="utf-8", errors="replace")

    # === Read Operations ===

    def get_recipe_summaries(self) -> list[RecipeSummary]:
        """List every parseable recipe file. Never raises on directory errors."""
        try:
            paths = sorted(p for p in self.recipes_path.iterdir() if p.suffix == RECIPE_SUFFIX and p.is_file())
        except OSError as e:
            logger.error("Cannot read recipe directory %s: %s", self.recipes_path, e)
            return []

        summaries = []
        for path in paths:
            try:
                content = self._read_text(path)
            except OSError as e:
                logger.warning("Skipping unreadable recipe file %s: %s", path.name, e)
                continue
            summary = parse_recipe_summary(content, path.stem)
            if summary:
                summaries.append(summary)

        return sorted(summaries, key=lambda s: s.name.lower())

    def get_recipe(self, slug: str) -> Recipe | None:
        """Get a fully parsed recipe by slug, or None if missing or unparseable."""
        try:
            path = self._get_file_path(slug)
        except InvalidSlugError:
            logger.warning("Rejected invalid recipe slug %r", slug)
            return None

        if not path.exists():
            return None

        try:
            content = self._read_text(path)
        except OSError as e:
            logger.error("Cannot read recipe file %s: %s", path, e)
            return None

        recipe = parse_recipe(content)
        if recipe is None:
            return None

        steps_path = path.with_suffix(STEPS_SUFFIX)
        if steps_path.exists():
            try:
                recipe.steps_markdown = self._read_text(steps_path)
            except OSError as e:
                logger.warning("Cannot read steps file %s: %s", steps_path, e)

        return recipe

    # === Write Operations ===

    def save_recipe(self, form: RecipeForm, slug: str | None = None) -> str:
        """
        Serialise a recipe form and write it to ``<slug>.xml``.

        Without a slug, one is derived from the recipe name. Existing files
        with the same name are overwritten.

        Returns:
            The slug the recipe was written under
        """
        if slug is None:
            slug = recipe_filename(form.name)[: -len(RECIPE_SUFFIX)]
        path = self._get_file_path(slug)

        try:
            self.recipes_path.mkdir(parents=True, exist_ok=True)
            path.write_text(generate_recipe_xml(form), encoding="utf-8")
        except OSError as e:
            logger.error("Failed to write recipe file %s: %s", path, e)
            raise RecipeStoreError(f"Failed to save recipe '{form.name}'") from e

        logger.info("Recipe file %s saved", path.name)
        return slug

    def add_recipe_files(self, files: list[RecipeFile]) -> IngestResult:
        """
        Write a batch of uploaded recipe files into the recipe directory.

        Only ``.xml`` files are kept; names are reduced to their base
        component and existing files are silently overwritten. A failure on
        one file is recorded and the rest of the batch continues.
        """
        result = IngestResult()

        try:
            self.recipes_path.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            logger.error("Cannot create recipe directory %s: %s", self.recipes_path, e)
            raise RecipeStoreError("Failed to save recipes") from e

        for file in files:
            if not file.file_name.endswith(RECIPE_SUFFIX):
                logger.warning("Skipping non-XML file: %s", file.file_name)
                result.skipped.append(file.file_name)
                continue

            safe_name = os.path.basename(file.file_name.replace("\\", "/"))
            if safe_name == RECIPE_SUFFIX:
                logger.warning("Skipping file with empty name: %s", file.file_name)
                result.skipped.append(file.file_name)
                continue

            try:
                (self.recipes_path / safe_name).write_text(file.content, encoding="utf-8")
            except OSError as e:
                logger.error("Error saving recipe file %s: %s", safe_name, e)
                result.errors[safe_name] = "Failed to save file"
                continue

            result.written.append(safe_name)
            logger.info("Recipe file %s saved successfully", safe_name)

        result.count = len(result.written)
        return result

    def delete_recipe(self, slug: str) -> None:
        """Delete a recipe file (and its steps file, if any)."""
        path = self._get_file_path(slug)
        if not path.exists():
            raise RecipeNotFoundError(slug)

        try:
            path.unlink()
            path.with_suffix(STEPS_SUFFIX).unlink(missing_ok=True)
        except OSError as e:
            logger.error("Error deleting recipe file %s: %s", path.name, e)
            raise RecipeStoreError(f"Failed to delete recipe '{slug}'") from e

        logger.info("Recipe file %s deleted", path.name)

    def export_recipe_beerxml(self, slug: str) -> str | None:
        """Re-serialise a stored recipe in the canonical BeerXML layout."""
        recipe = self.get_recipe(slug)
        if recipe is None:
            return None
        return generate_recipe_xml(RecipeForm.from_recipe(recipe))
