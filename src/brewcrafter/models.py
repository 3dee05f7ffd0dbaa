"""
Data models for BeerXML recipes.

All models use Pydantic v2. Python attributes are snake_case and serialise
to camelCase JSON (``batchSize``, ``yieldPercentage``...). Amounts follow
BeerXML units: kilograms, litres, minutes and Celsius.
"""

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel


class BrewModel(BaseModel):
    """Base model accepting both snake_case and camelCase input."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_json_dict(self) -> dict:
        return self.model_dump(by_alias=True, mode="json")


# === Parsed Recipe Records ===


class RecipeSummary(BrewModel):
    """Minimal recipe data used for listings."""

    slug: str
    name: str
    type: str = "N/A"
    style_name: str | None = None
    og: float | None = None
    fg: float | None = None
    ibu: float | None = None
    color: float | None = None  # SRM
    abv: float | None = None
    batch_size: float | None = None  # Liters


class Style(BrewModel):
    name: str = "N/A"
    category: str | None = None
    style_guide: str | None = None
    type: str | None = None
    og_min: float | None = None
    og_max: float | None = None
    fg_min: float | None = None
    fg_max: float | None = None
    ibu_min: float | None = None
    ibu_max: float | None = None
    color_min: float | None = None
    color_max: float | None = None
    abv_min: float | None = None
    abv_max: float | None = None


class Fermentable(BrewModel):
    name: str = "N/A"
    amount: float = 0.0  # kg
    type: str = "N/A"
    yield_percentage: float = 0.0
    color: float = 0.0  # SRM


class Hop(BrewModel):
    name: str = "N/A"
    amount: float = 0.0  # kg
    use: str = "N/A"
    time: float = 0.0  # minutes
    alpha: float = 0.0  # percent
    form: str | None = None

    @property
    def amount_grams(self) -> float:
        return self.amount * 1000


class Yeast(BrewModel):
    name: str = "N/A"
    amount: float = 0.0
    type: str = "N/A"
    form: str = "N/A"
    laboratory: str | None = None
    product_id: str | None = None
    attenuation: float | None = None  # percent


class Misc(BrewModel):
    name: str = "N/A"
    amount: float = 0.0
    use: str = "N/A"
    time: float = 0.0
    type: str = "N/A"


class MashStep(BrewModel):
    name: str = "N/A"
    type: str = "N/A"
    step_temp: float = 0.0  # Celsius
    step_time: float = 0.0  # minutes
    infuse_amount: float | None = None  # Liters


class MashProfile(BrewModel):
    name: str = "N/A"
    grain_temp: float | None = None  # Celsius
    mash_steps: list[MashStep] = Field(default_factory=list)


class Recipe(BrewModel):
    """A fully parsed BeerXML recipe."""

    name: str = "Untitled Recipe"
    version: int = 1
    type: str = "N/A"
    brewer: str | None = None
    batch_size: float = 0.0  # Liters
    boil_size: float = 0.0  # Liters
    boil_time: float = 0.0  # minutes
    efficiency: float | None = None
    notes: str | None = None
    style: Style | None = None
    fermentables: list[Fermentable] = Field(default_factory=list)
    hops: list[Hop] = Field(default_factory=list)
    yeasts: list[Yeast] = Field(default_factory=list)
    miscs: list[Misc] = Field(default_factory=list)
    mash: MashProfile | None = None

    # Calculated values that may also be stored in the file
    og: float | None = None
    fg: float | None = None
    abv: float | None = None
    ibu: float | None = None
    color: float | None = None  # SRM

    steps_markdown: str | None = None

    @property
    def total_grain_kg(self) -> float:
        return sum(f.amount for f in self.fermentables)


# === Form Records (write side) ===

RecipeType = Literal["All Grain", "Extract", "Partial Mash"]
MassUnit = Literal["kg", "g"]


class StyleForm(BrewModel):
    name: str = ""
    category: str = ""
    style_guide: str = ""
    type: str = "Ale"


class FermentableForm(BrewModel):
    name: str = Field(..., min_length=1)
    type: str = "Grain"
    amount: float = Field(..., ge=0)
    amount_unit: MassUnit = "kg"
    yield_percentage: float = Field(default=0.0, ge=0, le=100, alias="yield")
    color: float = Field(default=0.0, ge=0)

    @property
    def amount_kg(self) -> float:
        return self.amount / 1000 if self.amount_unit == "g" else self.amount


class HopForm(BrewModel):
    name: str = Field(..., min_length=1)
    alpha: float = Field(default=0.0, ge=0, le=100)
    amount: float = Field(..., ge=0)
    amount_unit: MassUnit = "g"
    use: str = "Boil"
    time: float = Field(default=0.0, ge=0)
    form: str | None = "Pellet"

    @property
    def amount_kg(self) -> float:
        return self.amount / 1000 if self.amount_unit == "g" else self.amount


class YeastForm(BrewModel):
    name: str = Field(..., min_length=1)
    type: str = "Ale"
    form: str = "Dry"
    amount: float = Field(default=0.0, ge=0)
    laboratory: str = ""
    product_id: str = ""
    attenuation: float = Field(default=75.0, ge=0, le=100)


class MiscForm(BrewModel):
    name: str = Field(..., min_length=1)
    type: str = "Spice"
    use: str = "Boil"
    time: float = Field(default=0.0, ge=0)
    amount: float = Field(default=0.0, ge=0)


class MashStepForm(BrewModel):
    name: str = Field(..., min_length=1)
    type: str = "Infusion"
    step_temp: float
    step_time: float = Field(..., ge=0)
    infuse_amount: float | None = None


def _default_mash_steps() -> list[MashStepForm]:
    return [MashStepForm(name="Saccharification", type="Infusion", step_temp=67, step_time=60)]


class MashForm(BrewModel):
    name: str = "Single Infusion"
    grain_temp: float | None = None
    mash_steps: list[MashStepForm] = Field(default_factory=_default_mash_steps)


class RecipeForm(BrewModel):
    """
    Validated, form-shaped recipe ready for serialisation.

    Validation happens here, before the writer sees the record.
    """

    name: str = Field(..., min_length=2)
    type: RecipeType = "All Grain"
    brewer: str = ""
    batch_size: float = Field(default=20.0, gt=0)
    boil_size: float = Field(default=25.0, gt=0)
    boil_time: int = Field(default=60, gt=0)
    efficiency: float | None = Field(default=72.0, ge=0, le=100)
    notes: str = ""

    og: float | None = Field(default=None, gt=0)
    fg: float | None = Field(default=None, gt=0)
    abv: float | None = Field(default=None, ge=0)
    ibu: float | None = Field(default=None, ge=0)
    color_srm: float | None = Field(default=None, ge=0)

    style: StyleForm = Field(default_factory=StyleForm)
    fermentables: list[FermentableForm] = Field(default_factory=list)
    hops: list[HopForm] = Field(default_factory=list)
    yeasts: list[YeastForm] = Field(default_factory=list)
    miscs: list[MiscForm] = Field(default_factory=list)
    mash: MashForm = Field(default_factory=MashForm)

    @field_validator("name")
    @classmethod
    def strip_name(cls, v: str) -> str:
        v = v.strip()
        if len(v) < 2:
            raise ValueError("name must contain at least 2 characters")
        return v

    @classmethod
    def from_recipe(cls, recipe: Recipe) -> "RecipeForm":
        """Convert a parsed recipe into form values for editing."""
        recipe_type = recipe.type if recipe.type in ("All Grain", "Extract", "Partial Mash") else "All Grain"
        style = recipe.style

        if recipe.mash and recipe.mash.mash_steps:
            mash_steps = [
                MashStepForm(
                    name=s.name,
                    type=s.type,
                    step_temp=s.step_temp,
                    step_time=s.step_time,
                    infuse_amount=s.infuse_amount,
                )
                for s in recipe.mash.mash_steps
            ]
        else:
            mash_steps = _default_mash_steps()

        return cls(
            name=recipe.name,
            type=recipe_type,
            brewer=recipe.brewer or "",
            batch_size=recipe.batch_size or 20.0,
            boil_size=recipe.boil_size or 25.0,
            boil_time=int(round(recipe.boil_time)) or 60,
            efficiency=recipe.efficiency or 72.0,
            notes=recipe.notes or "",
            og=recipe.og or None,
            fg=recipe.fg or None,
            abv=recipe.abv,
            ibu=recipe.ibu,
            color_srm=recipe.color,
            style=StyleForm(
                name=style.name if style and style.name != "N/A" else "",
                category=(style.category or "") if style else "",
                style_guide=(style.style_guide or "") if style else "",
                type=(style.type or "Ale") if style else "Ale",
            ),
            fermentables=[
                FermentableForm(
                    name=f.name,
                    type=f.type,
                    amount=f.amount,
                    amount_unit="kg",
                    yield_percentage=min(f.yield_percentage, 100),
                    color=f.color,
                )
                for f in recipe.fermentables
            ],
            hops=[
                HopForm(
                    name=h.name,
                    alpha=min(h.alpha, 100),
                    amount=round(h.amount_grams, 4),
                    amount_unit="g",
                    use=h.use,
                    time=h.time,
                    form=h.form or "Pellet",
                )
                for h in recipe.hops
            ],
            yeasts=[
                YeastForm(
                    name=y.name,
                    type=y.type,
                    form=y.form,
                    amount=y.amount,
                    laboratory=y.laboratory or "",
                    product_id=y.product_id or "",
                    attenuation=75.0 if y.attenuation is None else min(y.attenuation, 100),
                )
                for y in recipe.yeasts
            ],
            miscs=[
                MiscForm(name=m.name, type=m.type, use=m.use, time=m.time, amount=m.amount)
                for m in recipe.miscs
            ],
            mash=MashForm(
                name=recipe.mash.name if recipe.mash else "Single Infusion",
                grain_temp=recipe.mash.grain_temp if recipe.mash else None,
                mash_steps=mash_steps,
            ),
        )


# === Ingestion ===


class RecipeFile(BrewModel):
    """An uploaded recipe file."""

    file_name: str
    content: str


class IngestResult(BrewModel):
    count: int = 0
    written: list[str] = Field(default_factory=list)
    skipped: list[str] = Field(default_factory=list)
    errors: dict[str, str] = Field(default_factory=dict)

    @property
    def success(self) -> bool:
        return not self.errors


# === Fermentation Data ===


class FermentationDataPoint(BrewModel):
    time: str  # e.g. "2d 5h"
    temperature: float | None = None  # Celsius
    gravity: float | None = None  # SG


class FermentationData(BrewModel):
    data: list[FermentationDataPoint] = Field(default_factory=list)
    source: Literal["simulated", "rapt"] = "simulated"
    error: str | None = None
