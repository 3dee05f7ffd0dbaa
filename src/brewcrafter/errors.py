"""Exceptions raised by BrewCrafter."""


class BrewCrafterError(Exception):
    """Base class for all BrewCrafter errors."""


class ConfigError(BrewCrafterError):
    pass


class RecipeNotFoundError(BrewCrafterError):
    """No recipe file exists for the requested slug."""

    def __init__(self, slug: str):
        super().__init__(f"Recipe '{slug}' not found")
        self.slug = slug


class InvalidSlugError(BrewCrafterError):
    pass


class RecipeStoreError(BrewCrafterError):
    """A filesystem operation on the recipe directory failed."""


class RaptError(BrewCrafterError):
    """The RAPT cloud API could not be reached or returned bad data."""
