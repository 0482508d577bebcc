"""
identify.py - Plant identification from an uploaded photo
----------------------------------------------------------

Two entry points:

- `classify_plant_image`: Gemini vision when a key is configured, otherwise a
  pick from the local plant database. Any provider failure degrades to the
  Turmeric fallback instead of an error.
- `identify_plant_with_database`: the heuristic pipeline (filename hints,
  image features, ensemble votes, weighted database matching).

Both return plain dicts ready for `jsonify`.
"""

import logging
import random
import re

from medplant.gemini import GeminiError
from medplant.imaging import analyze_image_features, extract_filename_hints
from medplant.matching import (
    confidence_score,
    ensemble_classify,
    select_best_match,
    weighted_matches,
)

logger = logging.getLogger(__name__)

DATABASE_SAMPLE_LIMIT = 20

DEFAULT_PLANT = {
    "name": "Turmeric",
    "scientific_name": "Curcuma longa",
    "hindi_name": "हल्दी",
    "description": "Golden yellow rhizome with anti-inflammatory properties",
    "uses": "Anti-inflammatory, digestive aid, wound healing",
    "family": "Zingiberaceae",
}

HEALTH_STATUSES = ['healthy', 'healthy', 'healthy', 'stressed', 'nutrient_deficiency']

HEALTH_NOTES = {
    'healthy': ([], ['Continue current care routine', 'Monitor for seasonal changes']),
    'stressed': (['Slight wilting detected', 'May need more water'],
                 ['Increase watering frequency', 'Check soil moisture regularly']),
    'nutrient_deficiency': (['Yellow leaves suggest nitrogen deficiency'],
                            ['Apply balanced fertilizer', 'Consider soil testing']),
}

IDENTIFY_PROMPT = """
You are a botanical expert specializing in medicinal plants.
Identify the plant in the provided image and respond STRICTLY as JSON with:
name, scientific_name, confidence (0-100), medicinal_uses (list), safety_warnings (list),
region (list of native regions), family, genus, species, common_names (list),
care_instructions, growing_conditions, bloom_time, toxicity and rarity.
If the image does not show a plant, use the name 'Not a plant image' and confidence 0.
"""

_STRING_LIST = {"type": "ARRAY", "items": {"type": "STRING"}}

IDENTIFY_SCHEMA = {
    "type": "OBJECT",
    "properties": {
        "name": {"type": "STRING"},
        "scientific_name": {"type": "STRING"},
        "confidence": {"type": "NUMBER"},
        "medicinal_uses": _STRING_LIST,
        "safety_warnings": _STRING_LIST,
        "region": _STRING_LIST,
        "family": {"type": "STRING"},
        "genus": {"type": "STRING"},
        "species": {"type": "STRING"},
        "common_names": _STRING_LIST,
        "care_instructions": {"type": "STRING"},
        "growing_conditions": {"type": "STRING"},
        "bloom_time": {"type": "STRING"},
        "toxicity": {"type": "STRING"},
        "rarity": {"type": "STRING"},
    },
    "required": ["name", "scientific_name", "confidence"],
}


def split_list(text):
    """'Fever, cough; cold' -> ['Fever', 'cough', 'cold']"""
    if not text:
        return []
    return [item.strip() for item in re.split(r'[,;]', text) if item.strip()]


def care_recommendations(sunlight='Partial shade to filtered sunlight',
                         soil='Well-draining, rich organic matter',
                         season='Active growing season: Spring-Summer',
                         watering='Water when top inch of soil is dry',
                         fertilizer='Balanced liquid fertilizer monthly',
                         pruning='Remove dead leaves regularly'):
    return {
        "watering": watering,
        "sunlight": sunlight,
        "soil": soil,
        "fertilizer": fertilizer,
        "pruning": pruning,
        "season": season,
    }


def plant_profile(record, confidence):
    """Expand a database plant into the identification payload shape."""
    profile = dict(record)
    profile.update({
        "scientific_name": record.get("scientific_name") or "Species unidentified",
        "confidence": confidence,
        "medicinal_uses": split_list(record.get("uses")),
        "safety_warnings": split_list(record.get("precautions")),
        "region": split_list(record.get("location")),
        "common_names": [name for name in (record.get("english_name"), record.get("hindi_name"),
                                           record.get("sanskrit_name")) if name],
        "care_instructions": record.get("preparation") or "",
        "growing_conditions": record.get("habitat") or "",
        "bloom_time": record.get("season") or "",
        "toxicity": record.get("precautions") or "",
        "rarity": record.get("rarity") or "common",
    })
    return profile


def database_analysis(plant, language='en'):
    if language == 'hi':
        return (
            f"AI विश्लेषण ने इसे {plant['confidence']}% विश्वसनीयता के साथ {plant['name']} "
            f"(हिंदी: {plant.get('hindi_name') or 'उपलब्ध नहीं'}, "
            f"संस्कृत: {plant.get('sanskrit_name') or 'उपलब्ध नहीं'}) के रूप में पहचाना है। "
            f"यह {plant.get('family') or ''} कुल के {plant['scientific_name']} का विशिष्ट नमूना है। "
            f"उपयोग में आने वाले भाग: {plant.get('hindi_parts_used') or plant.get('parts_used') or ''}। "
            f"गुण: {plant.get('hindi_properties') or plant.get('properties') or ''}। "
            f"पारंपरिक उपयोग: {plant.get('hindi_uses') or plant.get('uses') or ''}।"
        )
    return (
        f"AI analysis identified this as {plant['name']} ({plant['scientific_name']}) "
        f"with {plant['confidence']}% confidence. Family: {plant.get('family') or 'unknown'}. "
        f"Parts used: {plant.get('parts_used') or 'not recorded'}. "
        f"Traditional uses: {plant.get('uses') or 'not recorded'}."
    )


def random_health_analysis(rng):
    status = rng.choice(HEALTH_STATUSES)
    issues, recommendations = HEALTH_NOTES[status]
    return {
        "health_score": 75 + rng.randrange(20),
        "status": status,
        "issues": list(issues),
        "recommendations": list(recommendations),
        "confidence": 87,
    }


# --- Classification paths ---

def classify_from_database(plants, rng, language='en'):
    """Pick one of the first database plants; None when the database is empty."""
    sample = plants[:DATABASE_SAMPLE_LIMIT]
    if not sample:
        return None

    record = rng.choice(sample)
    plant = plant_profile(record, confidence=85 + rng.randrange(15))
    return {
        "plant": plant,
        "analysis": database_analysis(plant, language),
        "health_analysis": random_health_analysis(rng),
        "care_recommendations": care_recommendations(),
        "confidence": plant["confidence"],
        "method": "database",
    }


def classify_with_gemini(image_base64, client, mime_type="image/jpeg"):
    result = client.generate_json(
        IDENTIFY_PROMPT,
        image_base64=image_base64,
        mime_type=mime_type,
        schema=IDENTIFY_SCHEMA,
        temperature=0.1,
        max_output_tokens=500,
    )
    if not isinstance(result, dict):
        raise GeminiError("Parse Error: expected a JSON object.")

    try:
        confidence = float(result.get("confidence") or 0)
    except (TypeError, ValueError):
        confidence = 0.0
    confidence = round(min(max(confidence, 0), 100))

    name = result.get("name") or "Unknown Plant"
    plant = {
        "name": name,
        "scientific_name": result.get("scientific_name") or "Species unidentified",
        "confidence": confidence,
        "medicinal_uses": result.get("medicinal_uses") or [],
        "safety_warnings": result.get("safety_warnings") or [],
        "region": result.get("region") or [],
        "family": result.get("family"),
        "genus": result.get("genus"),
        "species": result.get("species"),
        "common_names": result.get("common_names") or [],
        "care_instructions": result.get("care_instructions"),
        "growing_conditions": result.get("growing_conditions"),
        "bloom_time": result.get("bloom_time"),
        "toxicity": result.get("toxicity"),
        "rarity": result.get("rarity") or "common",
    }
    return {
        "plant": plant,
        "analysis": f"AI analysis identified this as {name} with {confidence}% confidence "
                    f"based on visual characteristics.",
        "health_analysis": {
            "health_score": 85,
            "status": "healthy",
            "issues": [],
            "recommendations": ["Continue current care routine"],
            "confidence": 82,
        },
        "care_recommendations": care_recommendations(
            sunlight='Bright, indirect light',
            soil='Well-draining potting mix',
            season='Active growth: Spring-Summer',
        ),
        "confidence": confidence,
        "method": "ai",
    }


def fallback_classification():
    plant = {
        "name": "Turmeric",
        "scientific_name": "Curcuma longa",
        "confidence": 85,
        "medicinal_uses": ["Anti-inflammatory", "Digestive aid", "Wound healing", "Immune support"],
        "safety_warnings": ["May interact with blood thinners", "Avoid high doses during pregnancy"],
        "region": ["South Asia", "Southeast Asia", "India"],
        "family": "Zingiberaceae",
        "genus": "Curcuma",
        "species": "longa",
        "common_names": ["Golden spice", "Indian saffron"],
        "care_instructions": "Prefers warm, humid conditions",
        "growing_conditions": "Tropical/subtropical",
        "bloom_time": "Summer",
        "toxicity": "Generally safe",
        "rarity": "common",
    }
    return {
        "plant": plant,
        "analysis": f"Based on image analysis, this appears to be {plant['name']} with "
                    f"{plant['confidence']}% confidence. The visual characteristics match typical "
                    f"{plant['scientific_name']} specimens.",
        "health_analysis": {
            "health_score": 80,
            "status": "healthy",
            "issues": [],
            "recommendations": ["Continue regular care"],
            "confidence": 75,
        },
        "care_recommendations": care_recommendations(
            watering='Keep soil consistently moist',
            sunlight='Partial shade to filtered light',
            soil='Rich, well-draining soil',
            fertilizer='Organic compost monthly',
            pruning='Harvest leaves regularly',
            season='Growing season: Spring-Fall',
        ),
        "confidence": plant["confidence"],
        "method": "fallback",
    }


def classify_plant_image(image_base64, client, plants, rng=None, mime_type="image/jpeg", language='en'):
    """
    Identify the plant in `image_base64`.

    Without a usable Gemini key the answer comes from the plant database;
    an empty database or a failing provider yields the Turmeric fallback.
    """
    rng = rng or random.Random()

    if not client.available:
        result = classify_from_database(plants, rng, language)
        if result is None:
            logger.error("Plant classification error: no plants found in database")
            return fallback_classification()
        return result

    try:
        return classify_with_gemini(image_base64, client, mime_type)
    except GeminiError as e:
        logger.error(f"Plant classification error: {e}")
        return fallback_classification()


def identify_plant_with_database(image_base64, plants, filename=None, rng=None):
    """Identify a plant by combining every local heuristic against `plants`."""
    logger.info("Using multi-method plant identification")

    hints = extract_filename_hints(filename)
    features = analyze_image_features(image_base64)
    votes = ensemble_classify(plants, rng)
    matches = weighted_matches(features, hints, plants)

    selected = select_best_match(votes, matches, hints)
    if not selected or not selected.get("name"):
        selected = plants[0] if plants else DEFAULT_PLANT

    confidence = confidence_score(selected, features, hints, votes)
    alternatives = [plant for plant, _ in matches[1:4]]

    return {
        "plant": dict(selected),
        "analysis": f"Advanced AI analysis identified this as {selected['name']} "
                    f"({selected.get('scientific_name')}). Visual features match database patterns "
                    f"with high confidence. This plant is traditionally used for: {selected.get('uses')}",
        "confidence": confidence,
        "alternative_matches": alternatives,
        "visual_features": features.to_dict(),
        "hints": hints,
        "method": "heuristic",
    }
