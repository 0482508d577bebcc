import random

from medplant.advisor import (
    DEMO_HEALTH_CONDITIONS,
    analyze_plant_health,
    demo_care_schedule,
    generate_care_schedule,
    growth_rate,
    predict_plant_growth,
    search_plant_knowledge,
)
from tests.conftest import StubGemini, image_base64


def test_search_demo_answer(offline_gemini):
    result = search_plant_knowledge("joint pain", offline_gemini)

    assert result["suggestions"][0].startswith('For "joint pain"')
    assert "Turmeric" in result["related_plants"]
    assert "consult" in result["usage_guidance"]


def test_search_uses_gemini_answer():
    gemini = StubGemini(answer={"suggestions": ["Try ginger tea"], "related_plants": ["Ginger"]})
    result = search_plant_knowledge("nausea", gemini)

    assert result == {"suggestions": ["Try ginger tea"], "related_plants": ["Ginger"], "usage_guidance": ""}
    assert '"nausea"' in gemini.calls[0][0]


def test_search_failure(failing_gemini):
    result = search_plant_knowledge("fever", failing_gemini)
    assert result["suggestions"] == ["Search temporarily unavailable"]
    assert result["related_plants"] == []


def test_health_demo_answer_is_a_copy(offline_gemini):
    result = analyze_plant_health(image_base64(), offline_gemini, rng=random.Random(0))

    assert result in DEMO_HEALTH_CONDITIONS
    result["treatment"].append("mutated")
    assert all("mutated" not in condition["treatment"] for condition in DEMO_HEALTH_CONDITIONS)


def test_health_answer_is_validated():
    gemini = StubGemini(answer={"health_score": 40, "status": "on fire", "severity": "catastrophic",
                                "diseases": ["Leaf spot"]})
    result = analyze_plant_health(image_base64(), gemini)

    assert result["health_score"] == 40
    assert result["status"] == "healthy"
    assert result["severity"] == "mild"
    assert result["diseases"] == ["Leaf spot"]
    assert gemini.calls[0][1]["image_base64"]


def test_health_failure(failing_gemini):
    result = analyze_plant_health(image_base64(), failing_gemini)
    assert result["confidence"] == 50
    assert result["treatment"] == ["Analysis temporarily unavailable"]


def test_demo_care_schedules():
    assert demo_care_schedule("Aloe Vera")["watering"]["frequency"] == "Every 2-3 weeks"
    assert demo_care_schedule("Turmeric")["fertilizing"]["frequency"] == "Bi-weekly in growing season"
    generic = demo_care_schedule("Tulsi")
    assert generic["monitoring"] == {"checks": ["Overall health", "Pest signs", "Growth progress"],
                                     "frequency": "Weekly"}
    assert set(generic) == {"watering", "fertilizing", "pruning", "repotting", "monitoring"}


def test_care_schedule_with_gemini():
    schedule = {"watering": {"frequency": "Daily"}}
    gemini = StubGemini(answer=schedule)

    assert generate_care_schedule("Neem", "Pune", "summer", gemini) == schedule
    assert "Neem in Pune" in gemini.calls[0][0]


def test_care_schedule_failure(failing_gemini):
    schedule = generate_care_schedule("Neem", "Pune", "summer", failing_gemini)
    assert schedule["watering"]["frequency"] == "Weekly"


def test_growth_rates():
    assert growth_rate("Giant Bamboo") == "fast"
    assert growth_rate("Oak") == "slow"
    assert growth_rate("Tulsi") == "moderate"


def test_growth_demo_prediction(offline_gemini):
    result = predict_plant_growth({"name": "Bamboo", "current_height": 30}, offline_gemini)

    assert result["expected_growth"]["timeframe"] == "6 months"
    assert result["expected_growth"]["height"] == 80
    assert len(result["expected_growth"]["milestones"]) == 3

    moderate = predict_plant_growth({"name": "Tulsi", "current_height": 10}, offline_gemini)
    assert moderate["expected_growth"] == {
        "timeframe": "1 year",
        "height": 35,
        "milestones": ["New growth in 2 weeks", "Significant development in 3 months",
                       "Mature form in 1 year"],
    }


def test_growth_failure(failing_gemini):
    result = predict_plant_growth({"name": "Neem", "current_height": 12.5}, failing_gemini)
    assert result["expected_growth"]["height"] == 32.5
    assert result["expected_growth"]["timeframe"] == "6 months"


def test_health_analysis_passes_image_type():
    gemini = StubGemini(answer={"health_score": 90, "status": "healthy"})
    analyze_plant_health(image_base64(), gemini, mime_type="image/webp")

    assert gemini.calls[0][1]["mime_type"] == "image/webp"
