from __future__ import annotations

from pathlib import Path

import pyotp
import pytest
from fastapi.testclient import TestClient

from brewcrafter.config import Settings
from brewcrafter.models import FermentationData, FermentationDataPoint
from brewcrafter.parser import BeerXMLParser, parse_recipe
from brewcrafter.web import create_app, form_to_dict
from tests.utils import MINIMAL_XML, SAMPLE_XML

SECRET = pyotp.random_base32()


@pytest.fixture()
def admin_client(sample_dir: Path) -> TestClient:
    settings = Settings(_env_file=None, recipes_dir=sample_dir, language="en", totp_secret=SECRET)
    return TestClient(create_app(settings))


# === Form decoding ===


def test_form_to_dict_nests_and_drops_blank_rows() -> None:
    data = form_to_dict(
        [
            ("name", " Session IPA "),
            ("og", ""),
            ("style[name]", "American IPA"),
            ("hops[1][name]", "Mosaic"),
            ("hops[0][name]", "Citra"),
            ("hops[0][amount]", "25"),
            ("hops[2][amount_unit]", "g"),
            ("mash[mash_steps][0][name]", "Rest"),
        ]
    )
    assert data == {
        "name": "Session IPA",
        "style": {"name": "American IPA"},
        "hops": [{"name": "Citra", "amount": "25"}, {"name": "Mosaic"}],
        "mash": {"mash_steps": [{"name": "Rest"}]},
    }


# === JSON API ===


def test_summaries(client: TestClient) -> None:
    resp = client.get("/api/recipes/summaries")
    assert resp.status_code == 200
    body = resp.json()
    assert [r["slug"] for r in body] == ["cosmic-pale-ale", "quick-stout"]
    assert body[0]["styleName"] == "American Pale Ale"


def test_summaries_search(client: TestClient) -> None:
    resp = client.get("/api/recipes/summaries", params={"q": "stout"})
    assert [r["slug"] for r in resp.json()] == ["quick-stout"]


def test_summaries_failure_is_generic(client: TestClient, monkeypatch: pytest.MonkeyPatch) -> None:
    def boom(self):
        raise RuntimeError("secret detail")

    monkeypatch.setattr(BeerXMLParser, "get_recipe_summaries", boom)
    resp = client.get("/api/recipes/summaries")
    assert resp.status_code == 500
    assert resp.json() == {"error": "Failed to load recipes"}


def test_recipe_json(client: TestClient) -> None:
    resp = client.get("/api/recipes/cosmic-pale-ale")
    assert resp.status_code == 200
    body = resp.json()
    assert body["name"] == "Cosmic Pale Ale"
    assert body["batchSize"] == 20.0
    assert body["fermentables"][0]["yieldPercentage"] == 80.0


def test_recipe_json_not_found_suggests(client: TestClient) -> None:
    resp = client.get("/api/recipes/cosmic-pale")
    assert resp.status_code == 404
    assert resp.json()["suggestions"] == ["cosmic-pale-ale"]


def test_upload(client: TestClient, sample_dir: Path) -> None:
    resp = client.post(
        "/api/recipes/upload",
        files=[
            ("files", ("new.xml", MINIMAL_XML, "application/xml")),
            ("files", ("notes.txt", "hello", "text/plain")),
        ],
    )
    assert resp.status_code == 200
    body = resp.json()
    assert body["count"] == 1
    assert body["skipped"] == ["notes.txt"]
    assert body["success"] is True
    assert (sample_dir / "new.xml").exists()
    assert not (sample_dir / "notes.txt").exists()


def test_delete(client: TestClient, sample_dir: Path) -> None:
    assert client.delete("/api/recipes/quick-stout").json() == {"deleted": "quick-stout"}
    assert not (sample_dir / "quick-stout.xml").exists()
    assert client.delete("/api/recipes/quick-stout").status_code == 404


def test_admin_gate(admin_client: TestClient, sample_dir: Path) -> None:
    assert admin_client.delete("/api/recipes/quick-stout").status_code == 401
    assert admin_client.delete("/api/recipes/quick-stout", headers={"X-Admin-Code": "000000x"}).status_code == 401
    assert (sample_dir / "quick-stout.xml").exists()

    code = pyotp.TOTP(SECRET).now()
    resp = admin_client.delete("/api/recipes/quick-stout", headers={"X-Admin-Code": code})
    assert resp.status_code == 200

    resp = admin_client.post("/api/recipes/upload", files=[("files", ("a.xml", SAMPLE_XML, "application/xml"))])
    assert resp.status_code == 401


def test_reads_are_not_gated(admin_client: TestClient) -> None:
    assert admin_client.get("/api/recipes/summaries").status_code == 200
    assert admin_client.get("/recipes/cosmic-pale-ale").status_code == 200


def test_simulated_fermentation(client: TestClient) -> None:
    body = client.get("/api/recipes/cosmic-pale-ale/fermentation").json()
    assert body["source"] == "simulated"
    assert len(body["data"]) == 168
    assert client.get("/api/recipes/missing/fermentation").status_code == 404


def test_rapt_fermentation(client: TestClient, monkeypatch: pytest.MonkeyPatch) -> None:
    class FakeRapt:
        def __init__(self, email, password):
            pass

        def get_fermentation_data(self, pill_id):
            point = FermentationDataPoint(time="0d 0h", temperature=19.5, gravity=1.048)
            return FermentationData(data=[point], source="rapt")

    monkeypatch.setattr("brewcrafter.web.RaptClient", FakeRapt)
    body = client.get("/api/recipes/cosmic-pale-ale/fermentation", params={"pill_id": "p1"}).json()
    assert body == {"data": [{"time": "0d 0h", "temperature": 19.5, "gravity": 1.048}], "source": "rapt", "error": None}


def test_calculators(client: TestClient) -> None:
    assert client.get("/api/calculator/abv", params={"og": 1.050, "fg": 1.010}).json()["abv"] == pytest.approx(5.25)
    assert client.get("/api/calculator/abv", params={"og": 1.010, "fg": 1.050}).json()["abv"] is None

    params = [("og", 1.050), ("volume", 20), ("amount", 30), ("alpha", 5.5), ("time", 60)]
    assert client.get("/api/calculator/ibu", params=params).json()["ibu"] == pytest.approx(19.0, abs=0.5)
    assert client.get("/api/calculator/ibu", params=params[:-1]).status_code == 422

    body = client.get("/api/calculator/gravity", params={"sg": 1.050, "temp": 20}).json()
    assert body["correctedGravity"] == pytest.approx(1.050)


# === Pages ===


def test_index_page(client: TestClient) -> None:
    resp = client.get("/")
    assert resp.status_code == 200
    assert "Cosmic Pale Ale" in resp.text
    assert "Recipes" in resp.text
    assert "Recettes" in client.get("/", params={"lang": "fr"}).text


def test_detail_page(client: TestClient) -> None:
    resp = client.get("/recipes/cosmic-pale-ale")
    assert resp.status_code == 200
    assert "Jean &amp; Marie" in resp.text
    assert "/label/cosmic-pale-ale.svg" in resp.text


def test_not_found_page(client: TestClient) -> None:
    resp = client.get("/recipes/cosmic-pale")
    assert resp.status_code == 404
    assert "/recipes/cosmic-pale-ale" in resp.text


def test_new_and_edit_pages(client: TestClient) -> None:
    assert client.get("/recipes/new").status_code == 200
    resp = client.get("/recipes/cosmic-pale-ale/edit")
    assert resp.status_code == 200
    assert 'value="Cosmic Pale Ale"' in resp.text
    assert 'name="slug" value="cosmic-pale-ale"' in resp.text
    assert client.get("/recipes/missing/edit").status_code == 404


def test_submit_new_recipe(client: TestClient, sample_dir: Path) -> None:
    resp = client.post(
        "/recipes",
        data={
            "name": "Session IPA",
            "batch_size": "19",
            "fermentables[0][name]": "Pale Malt",
            "fermentables[0][amount]": "4",
            "fermentables[0][amount_unit]": "kg",
            "fermentables[1][name]": "",
            "fermentables[1][amount_unit]": "kg",
            "hops[0][name]": "Citra",
            "hops[0][amount]": "25",
            "hops[0][amount_unit]": "g",
            "hops[0][time]": "10",
        },
    )
    assert resp.status_code == 200
    assert resp.headers["content-disposition"] == 'attachment; filename="Session_IPA.xml"'

    recipe = parse_recipe(resp.text)
    assert recipe.name == "Session IPA"
    assert len(recipe.fermentables) == 1
    assert recipe.hops[0].amount_grams == pytest.approx(25)
    assert (sample_dir / "Session_IPA.xml").read_text(encoding="utf-8") == resp.text


def test_submit_edit_overwrites_slug(client: TestClient, sample_dir: Path) -> None:
    resp = client.post("/recipes", data={"slug": "quick-stout", "name": "Quicker Stout", "type": "Extract"})
    assert resp.status_code == 200
    assert BeerXMLParser(sample_dir).get_recipe("quick-stout").name == "Quicker Stout"


def test_submit_invalid_recipe_rerenders_form(client: TestClient, sample_dir: Path) -> None:
    resp = client.post("/recipes", data={"name": "x", "batch_size": "-1"})
    assert resp.status_code == 422
    assert "The form has errors." in resp.text
    assert "batch_size" in resp.text
    assert sorted(p.name for p in sample_dir.iterdir()) == ["cosmic-pale-ale.xml", "quick-stout.xml"]


def test_submit_requires_admin_code_when_gated(admin_client: TestClient) -> None:
    assert admin_client.post("/recipes", data={"name": "Gated"}).status_code == 401
    code = pyotp.TOTP(SECRET).now()
    assert admin_client.post("/recipes", data={"name": "Gated", "admin_code": code}).status_code == 200


def test_label_svg(client: TestClient) -> None:
    resp = client.get("/label/cosmic-pale-ale.svg", params={"volume": "75CL"})
    assert resp.status_code == 200
    assert resp.headers["content-type"].startswith("image/svg+xml")
    assert b'viewBox="0 0 500 225"' in resp.content

    assert client.get("/label/cosmic-pale-ale.svg", params={"text_color": "white"}).status_code == 422
    assert client.get("/label/missing.svg").status_code == 404


def test_calculator_page(client: TestClient) -> None:
    resp = client.get("/calculator")
    assert resp.status_code == 200
    assert 'id="abv-result">- %' in resp.text

    params = [
        ("og", "1.050"), ("fg", "1.010"),
        ("ibu_og", "1.050"), ("volume", "20"), ("amount", "30"), ("alpha", "5.5"), ("time", "60"),
        ("amount", ""), ("alpha", ""), ("time", ""),
        ("sg", "1.050"), ("temp", "20"), ("calibration", "20"),
    ]
    text = client.get("/calculator", params=params).text
    assert 'id="abv-result">5.25 %' in text
    assert 'id="ibu-result">19.0' in text
    assert 'id="gravity-result">1.050' in text


def test_calculator_page_ignores_malformed_input(client: TestClient) -> None:
    resp = client.get("/calculator", params={"og": "abc", "fg": "1.010", "temp": "x"})
    assert resp.status_code == 200
    assert 'id="abv-result">- %' in resp.text
    assert 'id="gravity-result">-' in resp.text


def test_setup_totp_page(admin_client: TestClient) -> None:
    resp = admin_client.get("/admin/setup-totp")
    assert resp.status_code == 200
    assert "otpauth://totp/" in resp.text
    assert f"secret={SECRET}" in resp.text


def test_setup_totp_page_without_secret(client: TestClient) -> None:
    resp = client.get("/admin/setup-totp")
    assert resp.status_code == 200
    assert "otpauth://" not in resp.text
    assert "BREWCRAFTER_TOTP_SECRET" in resp.text
