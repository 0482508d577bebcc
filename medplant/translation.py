"""
translation.py - Bundled translations of plant information.

Translations live in data/translations.json, keyed by lower-case English
plant name and then by language code.
"""

import json
import logging
from functools import lru_cache

from medplant.config import DATA_DIR

logger = logging.getLogger(__name__)

TRANSLATED_FIELDS = ("name", "description", "uses", "preparation", "precautions")


@lru_cache(maxsize=1)
def load_translations():
    with open(DATA_DIR / "translations.json", encoding="utf-8") as f:
        return json.load(f)


def supported_languages():
    languages = {"en"}
    for by_language in load_translations().values():
        languages.update(by_language)
    return sorted(languages)


def translate_plant_info(plant, language):
    """
    Return a copy of `plant` carrying `translated_*` fields for `language`.

    Plants or languages without a bundled translation come back unchanged.
    """
    if not plant or not language or language == "en":
        return plant

    translation = load_translations().get((plant.get("name") or "").lower(), {}).get(language)
    if not translation:
        logger.debug(f"No {language} translation for {plant.get('name')}")
        return plant

    translated = dict(plant)
    for key in TRANSLATED_FIELDS:
        if translation.get(key):
            translated[f"translated_{key}"] = translation[key]
    for key in ("hindi_name", "sanskrit_name"):
        if translation.get(key):
            translated[key] = translation[key]
    return translated
