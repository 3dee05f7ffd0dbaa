"""BrewCrafter - browse, edit and label BeerXML recipes."""

__version__ = "0.1.0"
