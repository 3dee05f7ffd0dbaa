"""UI strings for the supported languages."""

from brewcrafter.config import SUPPORTED_LANGUAGES

DEFAULT_LANGUAGE = "fr"

TRANSLATIONS: dict[str, dict[str, str]] = {
    "app_title": {"fr": "BrewCrafter", "en": "BrewCrafter"},
    "recipes": {"fr": "Recettes", "en": "Recipes"},
    "new_recipe": {"fr": "Nouvelle recette", "en": "New recipe"},
    "edit_recipe": {"fr": "Modifier la recette", "en": "Edit recipe"},
    "back_to_recipe": {"fr": "Retour à la recette", "en": "Back to recipe"},
    "no_recipes": {"fr": "Aucune recette trouvée.", "en": "No recipes found."},
    "not_found": {"fr": "Recette introuvable", "en": "Recipe not found"},
    "did_you_mean": {"fr": "Vouliez-vous dire :", "en": "Did you mean:"},
    "search": {"fr": "Rechercher", "en": "Search"},
    "save_and_download": {
        "fr": "Enregistrer et télécharger la recette (.xml)",
        "en": "Save and download recipe (.xml)",
    },
    "fermentables": {"fr": "Fermentescibles", "en": "Fermentables"},
    "hops": {"fr": "Houblons", "en": "Hops"},
    "yeasts": {"fr": "Levures", "en": "Yeasts"},
    "miscs": {"fr": "Autres ingrédients", "en": "Other ingredients"},
    "mash": {"fr": "Empâtage", "en": "Mash"},
    "style": {"fr": "Style", "en": "Style"},
    "notes": {"fr": "Notes", "en": "Notes"},
    "steps": {"fr": "Étapes", "en": "Steps"},
    "label": {"fr": "Étiquette", "en": "Label"},
    "fermentation": {"fr": "Fermentation", "en": "Fermentation"},
    "name": {"fr": "Nom", "en": "Name"},
    "type": {"fr": "Type", "en": "Type"},
    "brewer": {"fr": "Brasseur", "en": "Brewer"},
    "batch_size": {"fr": "Volume du lot (L)", "en": "Batch size (L)"},
    "boil_size": {"fr": "Volume d'ébullition (L)", "en": "Boil size (L)"},
    "boil_time": {"fr": "Temps d'ébullition (min)", "en": "Boil time (min)"},
    "efficiency": {"fr": "Rendement (%)", "en": "Efficiency (%)"},
    "calculator": {"fr": "Calculateurs", "en": "Calculators"},
    "abv_calculator": {"fr": "Calcul de l'ABV", "en": "ABV calculator"},
    "ibu_calculator": {"fr": "Calcul des IBU (Tinseth)", "en": "IBU calculator (Tinseth)"},
    "gravity_calculator": {"fr": "Correction de densité", "en": "Gravity correction"},
    "boil_volume": {"fr": "Volume d'ébullition (L)", "en": "Boil volume (L)"},
    "hop_amount": {"fr": "Quantité (g)", "en": "Amount (g)"},
    "alpha_acid": {"fr": "Acides alpha (%)", "en": "Alpha acid (%)"},
    "hop_time": {"fr": "Temps d'ébullition (min)", "en": "Boil time (min)"},
    "measured_sg": {"fr": "Densité mesurée", "en": "Measured gravity"},
    "measured_temp": {"fr": "Température mesurée (°C)", "en": "Measured temperature (°C)"},
    "calibration_temp": {"fr": "Température de calibration (°C)", "en": "Calibration temperature (°C)"},
    "calculate": {"fr": "Calculer", "en": "Calculate"},
    "result": {"fr": "Résultat", "en": "Result"},
    "setup_totp": {"fr": "Configuration TOTP", "en": "TOTP setup"},
    "totp_instructions": {
        "fr": "Ajoutez cette URI à votre application d'authentification une seule fois.",
        "en": "Add this URI to your authenticator app once.",
    },
    "totp_warning": {
        "fr": "Cette URI contient le secret admin. Ne la partagez pas.",
        "en": "This URI contains the admin secret. Do not share it.",
    },
    "totp_not_configured": {
        "fr": "Aucun secret TOTP configuré (BREWCRAFTER_TOTP_SECRET). Les modifications ne sont pas protégées.",
        "en": "No TOTP secret configured (BREWCRAFTER_TOTP_SECRET). Changes are not protected.",
    },
    "invalid_form": {"fr": "Le formulaire contient des erreurs.", "en": "The form has errors."},
    "generic_error": {
        "fr": "Une erreur interne est survenue.",
        "en": "An internal error occurred.",
    },
}


def resolve_language(requested: str | None, default: str = DEFAULT_LANGUAGE) -> str:
    """Pick a supported language, falling back to the default."""
    if requested and requested.lower() in SUPPORTED_LANGUAGES:
        return requested.lower()
    return default


def translate(key: str, language: str) -> str:
    """Look up a UI string; unknown keys are returned unchanged."""
    entry = TRANSLATIONS.get(key)
    if entry is None:
        return key
    return entry.get(language) or entry[DEFAULT_LANGUAGE]


def translator(language: str):
    """Bind ``translate`` to one language for use in templates."""
    return lambda key: translate(key, language)
