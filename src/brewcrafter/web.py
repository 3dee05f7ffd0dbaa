"""Web application: JSON API plus server-rendered recipe pages."""

import logging
import re
from pathlib import Path

import uvicorn
from fastapi import APIRouter, Depends, FastAPI, File, HTTPException, Query, Request, UploadFile
from fastapi.responses import HTMLResponse, JSONResponse, Response
from fastapi.templating import Jinja2Templates
from pydantic import ValidationError

from brewcrafter.auth import AdminGate, require_admin
from brewcrafter.calculations import (
    DEFAULT_CALIBRATION_TEMP_C,
    HopAddition,
    calculate_abv,
    calculate_ibu,
    correct_gravity,
    srm_to_hex,
)
from brewcrafter.config import Settings, configure_logging, get_settings
from brewcrafter.errors import InvalidSlugError, RecipeNotFoundError, RecipeStoreError
from brewcrafter.fermentation import RaptClient, simulate_fermentation
from brewcrafter.i18n import resolve_language, translator
from brewcrafter.label import LabelDesign, render_label_svg
from brewcrafter.matching import RecipeMatcher
from brewcrafter.models import FermentationData, RecipeFile, RecipeForm
from brewcrafter.parser import RECIPE_SUFFIX, BeerXMLParser

logger = logging.getLogger(__name__)

TEMPLATES_DIR = Path(__file__).parent / "templates"

templates = Jinja2Templates(directory=str(TEMPLATES_DIR))
templates.env.filters["srm_hex"] = srm_to_hex

# Blank rows appended to the form so new ingredients can be entered without scripts
EXTRA_FORM_ROWS = {"fermentables": 2, "hops": 2, "yeasts": 1, "miscs": 1, "mash_steps": 1}

GENERIC_ERROR = "An internal error occurred"

_KEY_PART_RE = re.compile(r"[^\[\]]+")


# === Dependencies ===


def get_app_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_parser(request: Request) -> BeerXMLParser:
    return request.app.state.parser


def get_language(request: Request, lang: str | None = Query(default=None)) -> str:
    return resolve_language(lang, request.app.state.settings.language)


# === Form Decoding ===


def _listify(node):
    if isinstance(node, dict):
        node = {k: _listify(v) for k, v in node.items()}
        if node and all(k.isdigit() for k in node):
            return [node[k] for k in sorted(node, key=int)]
    return node


def _drop_blank_rows(node):
    if isinstance(node, list):
        return [_drop_blank_rows(row) for row in node if not isinstance(row, dict) or row.get("name")]
    if isinstance(node, dict):
        return {k: _drop_blank_rows(v) for k, v in node.items()}
    return node


def form_to_dict(items) -> dict:
    """
    Decode bracketed form field names into nested data.

    ``hops[0][name]=Cascade`` becomes ``{"hops": [{"name": "Cascade"}]}``.
    Empty values are dropped so optional fields fall back to their defaults,
    and list rows without a name are treated as unused blank rows.
    """
    data: dict = {}
    for key, value in items:
        if not isinstance(value, str):
            continue
        value = value.strip()
        if not value:
            continue
        parts = _KEY_PART_RE.findall(key)
        if not parts:
            continue
        node = data
        for part in parts[:-1]:
            node = node.setdefault(part, {})
            if not isinstance(node, dict):
                break
        else:
            node[parts[-1]] = value
    return _drop_blank_rows(_listify(data))


def _format_errors(exc: ValidationError) -> list[str]:
    return [f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}" for err in exc.errors()]


def _empty_form_values() -> dict:
    return RecipeForm.model_construct(name="").model_dump()


def _with_blank_rows(values: dict) -> dict:
    values = dict(values)
    for key in ("fermentables", "hops", "yeasts", "miscs"):
        values[key] = list(values.get(key) or []) + [{} for _ in range(EXTRA_FORM_ROWS[key])]
    mash = dict(values.get("mash") or {})
    mash["mash_steps"] = list(mash.get("mash_steps") or []) + [{} for _ in range(EXTRA_FORM_ROWS["mash_steps"])]
    values["mash"] = mash
    return values


def _render_form(
    request: Request,
    lang: str,
    values: dict,
    slug: str | None = None,
    errors: list[str] | None = None,
    status_code: int = 200,
):
    return templates.TemplateResponse(
        request,
        "form.html",
        {
            "lang": lang,
            "t": translator(lang),
            "values": _with_blank_rows(values),
            "slug": slug,
            "errors": errors or [],
            "admin_required": request.app.state.settings.admin_gate_enabled,
        },
        status_code=status_code,
    )


def _render_not_found(request: Request, lang: str, slug: str, parser: BeerXMLParser):
    suggestions = RecipeMatcher(parser.get_recipe_summaries()).suggest_slugs(slug)
    return templates.TemplateResponse(
        request,
        "not_found.html",
        {"lang": lang, "t": translator(lang), "slug": slug, "suggestions": suggestions},
        status_code=404,
    )


# === JSON API ===

api = APIRouter(prefix="/api")


@api.get("/recipes/summaries")
def list_recipe_summaries(q: str | None = None, parser: BeerXMLParser = Depends(get_parser)):
    """Summary listing, optionally filtered by a fuzzy search query."""
    try:
        summaries = RecipeMatcher(parser.get_recipe_summaries()).search(q)
    except Exception:
        logger.exception("Error listing recipes")
        return JSONResponse(status_code=500, content={"error": "Failed to load recipes"})
    return [s.to_json_dict() for s in summaries]


@api.get("/recipes/{slug}")
def get_recipe_json(slug: str, parser: BeerXMLParser = Depends(get_parser)):
    recipe = parser.get_recipe(slug)
    if recipe is None:
        suggestions = RecipeMatcher(parser.get_recipe_summaries()).suggest_slugs(slug)
        return JSONResponse(
            status_code=404,
            content={"error": str(RecipeNotFoundError(slug)), "suggestions": suggestions},
        )
    return recipe.to_json_dict()


@api.post("/recipes/upload", dependencies=[Depends(require_admin)])
async def upload_recipes(files: list[UploadFile] = File(...), parser: BeerXMLParser = Depends(get_parser)):
    """Store uploaded BeerXML files. Non-XML files are skipped."""
    recipe_files = []
    for upload in files:
        content = await upload.read()
        recipe_files.append(
            RecipeFile(file_name=upload.filename or "", content=content.decode("utf-8", errors="replace"))
        )

    try:
        result = parser.add_recipe_files(recipe_files)
    except RecipeStoreError:
        return JSONResponse(status_code=500, content={"error": "Failed to save recipes"})

    return {**result.to_json_dict(), "success": result.success}


@api.delete("/recipes/{slug}", dependencies=[Depends(require_admin)])
def delete_recipe(slug: str, parser: BeerXMLParser = Depends(get_parser)):
    try:
        parser.delete_recipe(slug)
    except InvalidSlugError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except RecipeNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except RecipeStoreError:
        return JSONResponse(status_code=500, content={"error": "Failed to delete recipe"})
    return {"deleted": slug}


@api.get("/recipes/{slug}/fermentation")
def get_fermentation(
    slug: str,
    pill_id: str | None = None,
    parser: BeerXMLParser = Depends(get_parser),
    settings: Settings = Depends(get_app_settings),
):
    """Chart data: simulated by default, RAPT Pill telemetry when a pill id is given."""
    if parser.get_recipe(slug) is None:
        raise HTTPException(status_code=404, detail=str(RecipeNotFoundError(slug)))

    if pill_id:
        data = RaptClient(settings.rapt_email, settings.rapt_password).get_fermentation_data(pill_id)
    else:
        data = FermentationData(data=simulate_fermentation(slug), source="simulated")
    return data.to_json_dict()


@api.get("/calculator/abv")
def abv_calculator(og: float, fg: float):
    return {"abv": calculate_abv(og, fg)}


@api.get("/calculator/ibu")
def ibu_calculator(
    og: float,
    volume: float,
    amount: list[float] = Query(default=[]),
    alpha: list[float] = Query(default=[]),
    time: list[float] = Query(default=[]),
):
    """Tinseth IBU; each hop addition is one (amount, alpha, time) triple of query values."""
    if not len(amount) == len(alpha) == len(time):
        raise HTTPException(status_code=422, detail="amount, alpha and time must have the same length")
    additions = [HopAddition(amount_g=a, alpha=aa, time_min=t) for a, aa, t in zip(amount, alpha, time)]
    return {"ibu": calculate_ibu(og, volume, additions)}


@api.get("/calculator/gravity")
def gravity_calculator(sg: float, temp: float, calibration: float = 20.0):
    return {"correctedGravity": correct_gravity(sg, temp, calibration)}


# === Pages ===

pages = APIRouter()


@pages.get("/", response_class=HTMLResponse)
def index_page(
    request: Request,
    q: str | None = None,
    lang: str = Depends(get_language),
    parser: BeerXMLParser = Depends(get_parser),
):
    summaries = RecipeMatcher(parser.get_recipe_summaries()).search(q)
    return templates.TemplateResponse(
        request,
        "index.html",
        {"lang": lang, "t": translator(lang), "recipes": summaries, "q": q or ""},
    )


@pages.get("/recipes/new", response_class=HTMLResponse)
def new_recipe_page(request: Request, lang: str = Depends(get_language)):
    return _render_form(request, lang, _empty_form_values())


@pages.get("/recipes/{slug}", response_class=HTMLResponse)
def recipe_page(
    request: Request,
    slug: str,
    lang: str = Depends(get_language),
    parser: BeerXMLParser = Depends(get_parser),
):
    recipe = parser.get_recipe(slug)
    if recipe is None:
        return _render_not_found(request, lang, slug, parser)

    # One reading per day keeps the table short
    daily = simulate_fermentation(slug)[::24]
    return templates.TemplateResponse(
        request,
        "detail.html",
        {"lang": lang, "t": translator(lang), "slug": slug, "recipe": recipe, "fermentation": daily},
    )


@pages.get("/recipes/{slug}/edit", response_class=HTMLResponse)
def edit_recipe_page(
    request: Request,
    slug: str,
    lang: str = Depends(get_language),
    parser: BeerXMLParser = Depends(get_parser),
):
    recipe = parser.get_recipe(slug)
    if recipe is None:
        return _render_not_found(request, lang, slug, parser)

    try:
        values = RecipeForm.from_recipe(recipe).model_dump()
    except ValidationError as e:
        # Stored values outside form bounds; start from defaults and show why
        logger.warning("Recipe %s does not fit the edit form: %s", slug, e)
        return _render_form(request, lang, {**_empty_form_values(), "name": recipe.name}, slug=slug, errors=_format_errors(e))
    return _render_form(request, lang, values, slug=slug)


@pages.post("/recipes")
async def submit_recipe(
    request: Request,
    lang: str = Depends(get_language),
    parser: BeerXMLParser = Depends(get_parser),
):
    """Validate the submitted form, store the recipe and send it back as a download."""
    data = form_to_dict((await request.form()).multi_items())
    slug = data.pop("slug", None)
    admin_code = data.pop("admin_code", None) or request.headers.get("x-admin-code")

    gate = AdminGate(request.app.state.settings)
    if gate.enabled and not gate.verify(admin_code):
        return _render_form(request, lang, data, slug=slug, errors=["Invalid or missing admin code"], status_code=401)

    try:
        form = RecipeForm.model_validate(data)
    except ValidationError as e:
        return _render_form(request, lang, data, slug=slug, errors=_format_errors(e), status_code=422)

    try:
        slug = parser.save_recipe(form, slug=slug)
    except InvalidSlugError as e:
        return _render_form(request, lang, data, errors=[str(e)], status_code=422)
    except RecipeStoreError:
        return _render_form(request, lang, data, slug=slug, errors=[GENERIC_ERROR], status_code=500)

    filename = f"{slug}{RECIPE_SUFFIX}"
    return Response(
        content=(parser.recipes_path / filename).read_bytes(),
        media_type="application/xml",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


def _query_float(request: Request, name: str) -> float | None:
    raw = request.query_params.get(name)
    try:
        return float(raw) if raw else None
    except ValueError:
        return None


def _query_floats(request: Request, name: str) -> list[float | None]:
    values = []
    for raw in request.query_params.getlist(name):
        try:
            values.append(float(raw) if raw else None)
        except ValueError:
            values.append(None)
    return values


@pages.get("/calculator", response_class=HTMLResponse)
def calculator_page(request: Request, lang: str = Depends(get_language)):
    """ABV, IBU and gravity correction calculators; blank or malformed inputs give no result."""
    og = _query_float(request, "og")
    fg = _query_float(request, "fg")
    ibu_og = _query_float(request, "ibu_og")
    volume = _query_float(request, "volume")
    sg = _query_float(request, "sg")
    temp = _query_float(request, "temp")
    calibration = _query_float(request, "calibration")

    hop_rows = list(zip(_query_floats(request, "amount"), _query_floats(request, "alpha"), _query_floats(request, "time")))
    additions = [
        HopAddition(amount_g=a, alpha=aa, time_min=t) for a, aa, t in hop_rows if None not in (a, aa, t)
    ]

    results = {
        "abv": calculate_abv(og, fg),
        "ibu": calculate_ibu(ibu_og, volume, additions) if additions else None,
        "gravity": correct_gravity(sg, temp, calibration or DEFAULT_CALIBRATION_TEMP_C) if temp is not None else None,
    }
    return templates.TemplateResponse(
        request,
        "calculator.html",
        {
            "lang": lang,
            "t": translator(lang),
            "params": request.query_params,
            "hop_rows": hop_rows + [(None, None, None)] * EXTRA_FORM_ROWS["hops"],
            "results": results,
        },
    )


@pages.get("/admin/setup-totp", response_class=HTMLResponse)
def setup_totp_page(request: Request, lang: str = Depends(get_language)):
    """Enrolment page showing the otpauth URI for the configured admin secret."""
    return templates.TemplateResponse(
        request,
        "setup_totp.html",
        {"lang": lang, "t": translator(lang), "uri": AdminGate(request.app.state.settings).provisioning_uri()},
    )


@pages.get("/label/{slug}.svg")
def label_image(
    slug: str,
    volume: str | None = None,
    beer_name: str | None = None,
    description: str | None = None,
    brewing_date: str | None = None,
    brewing_location: str | None = None,
    brewery_name: str | None = None,
    tagline: str | None = None,
    background_image: str | None = None,
    background_color: str | None = None,
    text_color: str | None = None,
    parser: BeerXMLParser = Depends(get_parser),
):
    """Render the recipe's bottle label; query parameters override the design."""
    recipe = parser.get_recipe(slug)
    if recipe is None:
        raise HTTPException(status_code=404, detail=str(RecipeNotFoundError(slug)))

    try:
        design = LabelDesign.from_recipe(
            recipe,
            volume=volume,
            beer_name=beer_name,
            description=description,
            brewing_date=brewing_date,
            brewing_location=brewing_location,
            brewery_name=brewery_name,
            tagline=tagline,
            background_image=background_image,
            background_color=background_color,
            text_color=text_color,
        )
    except ValidationError as e:
        raise HTTPException(status_code=422, detail=_format_errors(e))

    return Response(content=render_label_svg(design, recipe), media_type="image/svg+xml")


# === Application ===


def create_app(settings: Settings | None = None) -> FastAPI:
    """Build the web application around one recipe directory."""
    settings = settings or get_settings()

    app = FastAPI(title="BrewCrafter")
    app.state.settings = settings
    app.state.parser = BeerXMLParser(settings.recipes_dir)
    app.include_router(api)
    app.include_router(pages)

    logger.info("Serving recipes from %s", settings.recipes_dir)
    return app


def main():
    """Run the BrewCrafter web server."""
    settings = get_settings()
    configure_logging(settings.log_level)
    uvicorn.run(create_app(settings), host=settings.host, port=settings.port)


if __name__ == "__main__":
    main()
