"""Fuzzy recipe matching for search and "did you mean" suggestions."""

import re
from dataclasses import dataclass

from rapidfuzz import fuzz, process

from brewcrafter.models import RecipeSummary


@dataclass
class RecipeMatch:
    """A scored match against a recipe summary."""

    slug: str
    name: str
    confidence: float


def normalize_name(name: str) -> str:
    """Normalize a recipe name or slug for comparison."""
    name = name.lower()
    # Slugs use separators where names use spaces
    name = re.sub(r"[_\-.]+", " ", name)
    # Remove parenthetical content
    name = re.sub(r"\([^)]*\)", "", name)
    # Remove year/vintage (e.g., "2023")
    name = re.sub(r"\b20\d{2}\b", "", name)
    return " ".join(name.split())


class RecipeMatcher:
    """Fuzzy matcher over recipe summaries."""

    def __init__(self, summaries: list[RecipeSummary]):
        """Initialize with the current recipe listing."""
        self.summaries = summaries

    def _score(self, query: str, summary: RecipeSummary) -> float:
        query_normalized = normalize_name(query)
        scores = []
        for candidate in (summary.name, summary.slug):
            candidate_normalized = normalize_name(candidate)

            # Exact match after normalization
            if query_normalized == candidate_normalized:
                return 1.0

            scores.append(fuzz.ratio(query_normalized, candidate_normalized) / 100.0 * 0.8)
            # Handles word reordering
            scores.append(fuzz.token_set_ratio(query_normalized, candidate_normalized) / 100.0 * 0.9)
            # Handles substrings
            scores.append(fuzz.partial_ratio(query_normalized, candidate_normalized) / 100.0 * 0.7)

        # Style names help searches like "ipa" or "stout"
        if summary.style_name:
            style_normalized = normalize_name(summary.style_name)
            scores.append(fuzz.token_set_ratio(query_normalized, style_normalized) / 100.0 * 0.6)

        return max(scores)

    def match(self, query: str, threshold: float = 0.5, limit: int = 10) -> list[RecipeMatch]:
        """
        Match a query string to recipes.

        Args:
            query: Free-text recipe name, slug or style
            threshold: Minimum confidence score (0.0 to 1.0)
            limit: Maximum number of matches to return

        Returns:
            List of RecipeMatch objects sorted by confidence
        """
        if not query.strip():
            return []

        matches = []
        for summary in self.summaries:
            score = self._score(query, summary)
            if score >= threshold:
                matches.append(RecipeMatch(slug=summary.slug, name=summary.name, confidence=round(score, 3)))

        matches.sort(key=lambda m: (-m.confidence, m.name.lower()))
        return matches[:limit]

    def search(self, query: str | None) -> list[RecipeSummary]:
        """Filter summaries by query; an empty query returns everything."""
        if not query or not query.strip():
            return list(self.summaries)
        by_slug = {s.slug: s for s in self.summaries}
        return [by_slug[m.slug] for m in self.match(query, threshold=0.6, limit=len(self.summaries))]

    def suggest_slugs(self, slug: str, limit: int = 3) -> list[str]:
        """Suggest existing slugs close to one that was not found."""
        slugs = [s.slug for s in self.summaries]
        results = process.extract(normalize_name(slug), slugs, scorer=fuzz.ratio, processor=normalize_name, limit=limit)
        return [candidate for candidate, score, _ in results if score > 60]
