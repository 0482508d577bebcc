"""
advisor.py - Knowledge search, health analysis, care schedules and growth outlook.

Each helper asks Gemini for a JSON answer when a key is configured and
otherwise returns a canned demo answer. Provider errors are logged and
replaced by a neutral fallback.
"""

import copy
import json
import logging
import random

from medplant.gemini import GeminiError

logger = logging.getLogger(__name__)


def _ask(client, prompt, image_base64=None, mime_type="image/jpeg", max_output_tokens=500):
    result = client.generate_json(prompt, image_base64=image_base64, mime_type=mime_type,
                                  max_output_tokens=max_output_tokens)
    if not isinstance(result, dict):
        raise GeminiError("Parse Error: expected a JSON object.")
    return result


# --- Knowledge search ---

def search_plant_knowledge(query, client):
    if not client.available:
        return {
            "suggestions": [
                f'For "{query}": Try turmeric for anti-inflammatory effects',
                "Consider ginger for digestive issues",
                "Aloe vera may help with skin conditions",
            ],
            "related_plants": ["Turmeric", "Ginger", "Aloe Vera", "Neem", "Ashwagandha"],
            "usage_guidance": "Always consult healthcare providers before using medicinal plants. "
                              "Start with small amounts and monitor for reactions.",
        }

    prompt = f"""
    You are a medicinal plant expert. Provide helpful, safe guidance about traditional plant medicine
    and always emphasize safety and professional consultation.
    Provide guidance for: "{query}".
    Return JSON with: {{"suggestions": ["..."], "related_plants": ["..."], "usage_guidance": "safety advice"}}
    """
    try:
        result = _ask(client, prompt, max_output_tokens=300)
    except GeminiError as e:
        logger.error(f"Knowledge search error: {e}")
        return {
            "suggestions": ["Search temporarily unavailable"],
            "related_plants": [],
            "usage_guidance": "Please consult healthcare providers for medical advice.",
        }

    return {
        "suggestions": result.get("suggestions") or [],
        "related_plants": result.get("related_plants") or [],
        "usage_guidance": result.get("usage_guidance") or "",
    }


# --- Health analysis ---

DEMO_HEALTH_CONDITIONS = [
    {
        "health_score": 92,
        "status": "healthy",
        "diseases": [],
        "pests": [],
        "deficiencies": [],
        "treatment": ["Continue regular care", "Monitor for changes"],
        "severity": "mild",
        "confidence": 89,
    },
    {
        "health_score": 78,
        "status": "nutrient_deficiency",
        "diseases": [],
        "pests": [],
        "deficiencies": ["Nitrogen deficiency", "Possible magnesium shortage"],
        "treatment": ["Apply balanced NPK fertilizer", "Add compost", "Check soil pH"],
        "severity": "mild",
        "confidence": 85,
    },
    {
        "health_score": 65,
        "status": "pest_damage",
        "diseases": [],
        "pests": ["Aphids", "Scale insects"],
        "deficiencies": [],
        "treatment": ["Neem oil spray", "Remove affected parts", "Improve air circulation"],
        "severity": "moderate",
        "confidence": 82,
    },
]

HEALTH_STATUSES = ("healthy", "diseased", "pest_damage", "nutrient_deficiency", "stressed")
SEVERITIES = ("mild", "moderate", "severe")


def analyze_plant_health(image_base64, client, rng=None, mime_type="image/jpeg"):
    """Assess plant health from a photo: score, status, problems and treatment."""
    if not client.available:
        rng = rng or random.Random()
        return copy.deepcopy(rng.choice(DEMO_HEALTH_CONDITIONS))

    prompt = """
    You are a plant pathologist. Analyze this plant's health for diseases, pests and nutritional
    deficiencies. Return JSON: {"health_score": 0-100,
    "status": "healthy|diseased|pest_damage|nutrient_deficiency|stressed",
    "diseases": [], "pests": [], "deficiencies": [], "treatment": [],
    "severity": "mild|moderate|severe", "confidence": 0-100}
    """
    try:
        result = _ask(client, prompt, image_base64=image_base64, mime_type=mime_type, max_output_tokens=600)
    except GeminiError as e:
        logger.error(f"Health analysis error: {e}")
        return {
            "health_score": 75,
            "status": "healthy",
            "diseases": [],
            "pests": [],
            "deficiencies": [],
            "treatment": ["Analysis temporarily unavailable"],
            "severity": "mild",
            "confidence": 50,
        }

    status = result.get("status")
    severity = result.get("severity")
    return {
        "health_score": result.get("health_score", 75),
        "status": status if status in HEALTH_STATUSES else "healthy",
        "diseases": result.get("diseases") or [],
        "pests": result.get("pests") or [],
        "deficiencies": result.get("deficiencies") or [],
        "treatment": result.get("treatment") or [],
        "severity": severity if severity in SEVERITIES else "mild",
        "confidence": result.get("confidence", 50),
    }


# --- Care schedule ---

def _schedule(watering, fertilizing, pruning, repotting, monitoring):
    return {
        "watering": dict(zip(("frequency", "amount", "tips"), watering)),
        "fertilizing": dict(zip(("frequency", "type", "tips"), fertilizing)),
        "pruning": dict(zip(("frequency", "season", "tips"), pruning)),
        "repotting": dict(zip(("frequency", "season", "tips"), repotting)),
        "monitoring": dict(zip(("checks", "frequency"), monitoring)),
    }


def demo_care_schedule(plant_name):
    name = plant_name.lower()

    if 'aloe' in name or 'cactus' in name:
        return _schedule(
            ('Every 2-3 weeks', 'Light watering until drainage',
             ['Check soil dryness first', 'Avoid overwatering', 'Reduce in winter']),
            ('Monthly in growing season', 'Diluted succulent fertilizer',
             ['Skip fertilizing in winter', 'Use low-nitrogen formula']),
            ('As needed', 'Spring-Summer', ['Remove dead or damaged parts', 'Use clean, sharp tools']),
            ('Every 2-3 years', 'Spring', ['Use well-draining soil', 'Choose slightly larger pot']),
            (['Soil moisture', 'Pest inspection', 'Growth patterns'], 'Weekly'),
        )

    if 'turmeric' in name or 'ginger' in name:
        return _schedule(
            ('When top inch of soil is dry', 'Thorough watering until drainage',
             ['Keep soil consistently moist', 'Use lukewarm water', 'Increase humidity']),
            ('Bi-weekly in growing season', 'Balanced liquid fertilizer',
             ['Dilute to half strength', 'Feed more in active growth']),
            ('Monthly', 'Year-round', ['Remove yellowing leaves', 'Harvest regularly for best growth']),
            ('Annually', 'Spring', ['Use rich, organic soil', 'Provide good drainage']),
            (['Soil moisture', 'Leaf health', 'Root development'], '2-3 times per week'),
        )

    return _schedule(
        ('2-3 times per week', 'Deep watering until drainage',
         ['Water early morning', 'Check soil moisture first', 'Adjust for season']),
        ('Monthly', 'Balanced NPK fertilizer', ['Follow package instructions', 'Reduce in winter']),
        ('Seasonal', 'Spring-Fall', ['Remove dead/diseased parts', 'Shape for growth']),
        ('Every 1-2 years', 'Spring', ['Check root bound condition', 'Refresh soil']),
        (['Overall health', 'Pest signs', 'Growth progress'], 'Weekly'),
    )


def generate_care_schedule(plant_name, location, season, client):
    if not client.available:
        return demo_care_schedule(plant_name)

    prompt = f"""
    You are a horticulture expert. Create a detailed care schedule for {plant_name} in {location}
    during the {season} season. Return JSON with the keys watering {{frequency, amount, tips}},
    fertilizing {{frequency, type, tips}}, pruning {{frequency, season, tips}},
    repotting {{frequency, season, tips}} and monitoring {{checks, frequency}}.
    """
    try:
        return _ask(client, prompt, max_output_tokens=800)
    except GeminiError as e:
        logger.error(f"Care schedule error: {e}")
        return _schedule(
            ('Weekly', 'Moderate', ['Check soil moisture']),
            ('Monthly', 'Balanced', ['Follow instructions']),
            ('As needed', 'Growing season', ['Remove dead parts']),
            ('Yearly', 'Spring', ['Use fresh soil']),
            (['General health'], 'Weekly'),
        )


# --- Growth prediction ---

GROWTH_PROFILES = {
    'fast': {
        "timeframe": '6 months',
        "gain": 50,
        "milestones": ['New shoots in 2 weeks', 'Double height in 3 months', 'Mature size in 6 months'],
        "recommendations": ['Provide support structures', 'Increase fertilization', 'Monitor spacing'],
        "risks": ['Overcrowding', 'Wind damage', 'Nutrient depletion'],
        "optimal_conditions": ['High humidity', 'Consistent moisture', 'Rich soil'],
    },
    'slow': {
        "timeframe": '2 years',
        "gain": 15,
        "milestones": ['New leaves in 1 month', 'Visible growth in 6 months', 'Established in 2 years'],
        "recommendations": ['Patient care routine', 'Minimal disturbance', 'Quality over quantity'],
        "risks": ['Overwatering', 'Frequent repotting', 'Environmental stress'],
        "optimal_conditions": ['Stable environment', 'Gradual changes', 'Long-term consistency'],
    },
    'moderate': {
        "timeframe": '1 year',
        "gain": 25,
        "milestones": ['New growth in 2 weeks', 'Significant development in 3 months', 'Mature form in 1 year'],
        "recommendations": ['Regular care schedule', 'Seasonal adjustments', 'Monitor development'],
        "risks": ['Seasonal stress', 'Inconsistent care', 'Environmental changes'],
        "optimal_conditions": ['Moderate light', 'Regular watering', 'Balanced nutrition'],
    },
}


def growth_rate(plant_name):
    name = plant_name.lower()
    if 'bamboo' in name:
        return 'fast'
    if 'oak' in name:
        return 'slow'
    return 'moderate'


def predict_plant_growth(plant_data, client):
    """
    Predict growth for a plant described by `plant_data`
    (name, age in days, current_height in cm, environment, care_history).
    """
    current_height = float(plant_data.get("current_height") or 0)

    if not client.available:
        profile = GROWTH_PROFILES[growth_rate(plant_data.get("name", ""))]
        return {
            "expected_growth": {
                "timeframe": profile["timeframe"],
                "height": current_height + profile["gain"],
                "milestones": list(profile["milestones"]),
            },
            "recommendations": list(profile["recommendations"]),
            "risks": list(profile["risks"]),
            "optimal_conditions": list(profile["optimal_conditions"]),
        }

    prompt = f"""
    You are a plant growth specialist. Predict plant development for: {json.dumps(plant_data, ensure_ascii=False)}.
    Return JSON with expected_growth {{timeframe, height, milestones}}, recommendations, risks
    and optimal_conditions.
    """
    try:
        return _ask(client, prompt, max_output_tokens=600)
    except GeminiError as e:
        logger.error(f"Growth prediction error: {e}")
        return {
            "expected_growth": {"timeframe": '6 months', "height": current_height + 20, "milestones": []},
            "recommendations": ['Continue regular care'],
            "risks": ['Environmental stress'],
            "optimal_conditions": ['Stable conditions'],
        }
