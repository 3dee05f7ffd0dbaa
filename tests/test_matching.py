from __future__ import annotations

from brewcrafter.matching import RecipeMatcher, normalize_name
from brewcrafter.models import RecipeSummary

SUMMARIES = [
    RecipeSummary(slug="cosmic-pale-ale", name="Cosmic Pale Ale", style_name="American Pale Ale"),
    RecipeSummary(slug="imperial-stout", name="Imperial Stout", style_name="Russian Imperial Stout"),
    RecipeSummary(slug="saison-2023", name="Saison 2023 (Farmhouse)", style_name="Saison"),
]


def test_normalize_name() -> None:
    assert normalize_name("Saison 2023 (Farmhouse)") == "saison"
    assert normalize_name("cosmic-pale_ale") == "cosmic pale ale"


def test_exact_match_scores_one() -> None:
    matches = RecipeMatcher(SUMMARIES).match("imperial stout")
    assert matches[0].slug == "imperial-stout"
    assert matches[0].confidence == 1.0


def test_search_filters_by_name() -> None:
    results = RecipeMatcher(SUMMARIES).search("pale")
    assert [r.slug for r in results] == ["cosmic-pale-ale"]


def test_empty_search_returns_everything() -> None:
    matcher = RecipeMatcher(SUMMARIES)
    assert matcher.search(None) == SUMMARIES
    assert matcher.search("   ") == SUMMARIES
    assert matcher.match("") == []


def test_suggest_slugs() -> None:
    matcher = RecipeMatcher(SUMMARIES)
    assert matcher.suggest_slugs("cosmic-pale")[0] == "cosmic-pale-ale"
    assert matcher.suggest_slugs("zzzzzz") == []
