import base64
import random

from medplant.identify import (
    classify_plant_image,
    identify_plant_with_database,
    plant_profile,
    split_list,
)
from tests.conftest import BROWN, YELLOW, StubGemini, image_base64


def test_split_list():
    assert split_list("Fever, cough; cold") == ["Fever", "cough", "cold"]
    assert split_list("") == []
    assert split_list(None) == []


def test_plant_profile_lists(plants):
    profile = plant_profile(plants[0], confidence=90)

    assert profile["confidence"] == 90
    assert profile["medicinal_uses"] == [
        "Inflammation", "arthritis", "wound healing", "digestive disorders", "immunity",
    ]
    assert profile["safety_warnings"] == ["May increase bleeding risk", "avoid with gallstones"]
    assert profile["region"] == ["India", "South Asia", "Southeast Asia"]
    assert profile["common_names"] == ["Turmeric", "हल्दी", "हरिद्रा"]


def test_database_pick_without_key(plants, offline_gemini):
    result = classify_plant_image(image_base64(), offline_gemini, plants, rng=random.Random(1))

    assert result["method"] == "database"
    assert result["plant"]["name"] in {plant["name"] for plant in plants}
    assert 85 <= result["confidence"] <= 99
    assert result["confidence"] == result["plant"]["confidence"]
    assert result["analysis"].startswith("AI analysis identified this as")
    assert 75 <= result["health_analysis"]["health_score"] <= 94
    assert set(result["care_recommendations"]) == {
        "watering", "sunlight", "soil", "fertilizer", "pruning", "season",
    }
    assert offline_gemini.calls == []


def test_database_pick_in_hindi(plants, offline_gemini):
    result = classify_plant_image(image_base64(), offline_gemini, plants, rng=random.Random(1), language="hi")
    assert result["analysis"].startswith("AI विश्लेषण")


def test_empty_database_uses_fallback(offline_gemini):
    result = classify_plant_image(image_base64(), offline_gemini, [])

    assert result["method"] == "fallback"
    assert result["plant"]["name"] == "Turmeric"
    assert result["confidence"] == 85


def test_gemini_answer_is_normalized(plants):
    gemini = StubGemini(answer={"name": "Holy Basil", "scientific_name": "Ocimum tenuiflorum",
                                "confidence": 150, "medicinal_uses": ["Cough"]})

    result = classify_plant_image(image_base64(), gemini, plants, mime_type="image/png")

    assert result["method"] == "ai"
    assert result["confidence"] == 100
    assert result["plant"]["name"] == "Holy Basil"
    assert result["plant"]["medicinal_uses"] == ["Cough"]
    assert result["plant"]["safety_warnings"] == []
    assert result["plant"]["rarity"] == "common"

    _, kwargs = gemini.calls[0]
    assert kwargs["mime_type"] == "image/png"
    assert kwargs["schema"]["required"] == ["name", "scientific_name", "confidence"]


def test_gemini_garbage_confidence(plants):
    gemini = StubGemini(answer={"name": "Neem", "confidence": "very high"})
    assert classify_plant_image(image_base64(), gemini, plants)["confidence"] == 0


def test_gemini_failure_uses_fallback(plants, failing_gemini):
    result = classify_plant_image(image_base64(), failing_gemini, plants)

    assert result["method"] == "fallback"
    assert result["plant"]["name"] == "Turmeric"


def test_gemini_non_object_answer_uses_fallback(plants):
    result = classify_plant_image(image_base64(), StubGemini(answer=["Neem"]), plants)
    assert result["method"] == "fallback"


def test_heuristics_follow_filename_hint(plants):
    result = identify_plant_with_database(image_base64(BROWN), plants, filename="fresh_ginger.jpg",
                                          rng=random.Random(5))

    assert result["method"] == "heuristic"
    assert result["plant"]["name"] == "Ginger"
    assert result["confidence"] == 95
    assert result["hints"] == ["ginger"]
    assert "brown" in result["visual_features"]["colors"]
    assert len(result["alternative_matches"]) == 3
    assert result["alternative_matches"][0]["name"] == "Turmeric"
    assert "traditionally used for" in result["analysis"]


def test_heuristics_yellow_rhizome_without_hint(plants):
    result = identify_plant_with_database(image_base64(YELLOW), plants, rng=random.Random(5))

    assert result["plant"]["name"] in {plant["name"] for plant in plants}
    assert 60 <= result["confidence"] <= 95
    assert result["visual_features"]["root_type"] == "rhizome"


def test_heuristics_survive_bad_image(plants):
    payload = base64.b64encode(b"not an image").decode()
    result = identify_plant_with_database(payload, plants, filename="neem_leaf.png", rng=random.Random(2))

    assert result["plant"]["name"] == "Neem"


def test_heuristics_without_plants():
    result = identify_plant_with_database(image_base64(), [], rng=random.Random(2))
    assert result["plant"]["name"] == "Turmeric"
    assert result["alternative_matches"] == []
