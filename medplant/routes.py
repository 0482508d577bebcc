"""
routes.py - HTTP API for plant identification, plant lookup, advice and narration.

Images arrive either as a multipart `image` file (browser form) or as a
base64 string in a JSON body (`image`, optionally a data URI, plus
`filename`).
"""

import base64
import binascii
import io
import logging
import mimetypes
from collections import namedtuple

from flask import Blueprint, current_app, jsonify, request, send_file
from sqlalchemy import or_

from medplant.advisor import (
    analyze_plant_health,
    generate_care_schedule,
    predict_plant_growth,
    search_plant_knowledge,
)
from medplant.errors import APIError, json_object
from medplant.identify import classify_plant_image, identify_plant_with_database
from medplant.imaging import decode_image_payload, image_digest
from medplant.matching import similar_plants
from medplant.models import db, Identification, Plant, User
from medplant.speech import build_narration
from medplant.translation import supported_languages, translate_plant_info

logger = logging.getLogger(__name__)

api_bp = Blueprint("api", __name__, url_prefix="/api")

Upload = namedtuple("Upload", ["filename", "data", "mime_type"])


# --- Request helpers ---

def _gemini():
    return current_app.extensions["gemini"]


def _speech():
    return current_app.extensions["speech"]


def _rng():
    return current_app.extensions["rng"]


def _payload():
    if request.is_json:
        return json_object(request.get_json(silent=True))
    return request.form


def allowed_file(filename):
    return '.' in filename and filename.rsplit('.', 1)[1].lower() in current_app.config["ALLOWED_EXTENSIONS"]


def read_upload():
    """Return the uploaded image as an Upload, raising APIError when it is unusable."""
    if request.is_json:
        data = json_object(request.get_json(silent=True))
        image_b64 = data.get("image")
        if not image_b64:
            raise APIError("Missing image")
        filename = data.get("filename") or "upload.jpg"
        if not isinstance(image_b64, str) or not isinstance(filename, str):
            raise APIError("image and filename must be strings")
        try:
            image_bytes = decode_image_payload(image_b64)
        except (binascii.Error, ValueError) as e:
            raise APIError(f"Invalid image format or decoding error: {e}")
    else:
        if "image" not in request.files:
            raise APIError("No image uploaded")
        file = request.files["image"]
        if file.filename == "":
            raise APIError("No selected file")
        filename = file.filename
        image_bytes = file.read()

    if not allowed_file(filename):
        raise APIError("Invalid file type. Please upload an image (png, jpg, jpeg, webp, gif).")
    if not image_bytes:
        raise APIError("Uploaded image is empty")

    mime_type = mimetypes.guess_type(filename)[0] or "image/jpeg"
    return Upload(filename, image_bytes, mime_type)


def to_base64(upload):
    return base64.b64encode(upload.data).decode("utf-8")


def request_language():
    language = _payload().get("language") or request.args.get("language") or "en"
    if not isinstance(language, str):
        raise APIError("Invalid language code")
    language = language.strip().lower()
    if len(language) > 10:
        raise APIError("Invalid language code")
    return language


def optional_user_id(value):
    if value in (None, ""):
        return None
    try:
        user_id = int(value)
    except (TypeError, ValueError):
        raise APIError("user_id must be an integer")
    if db.session.get(User, user_id) is None:
        raise APIError("User not found", 404)
    return user_id


def all_plants():
    return [plant.to_dict() for plant in Plant.query.order_by(Plant.id).all()]


def get_plant_or_404(plant_id):
    plant = db.session.get(Plant, plant_id)
    if plant is None:
        raise APIError("Plant not found", 404)
    return plant


def record_identification(result, upload, language, user_id):
    plant = result["plant"]
    identification = Identification(
        user_id=user_id,
        plant_id=plant.get("id") if isinstance(plant.get("id"), int) else None,
        plant_name=plant.get("name"),
        confidence=result["confidence"],
        method=result["method"],
        language=language,
        filename=upload.filename,
        image_hash=image_digest(upload.data),
    )
    db.session.add(identification)
    db.session.commit()
    return identification


# --- Identification ---

@api_bp.route("/identify", methods=["POST"])
def identify():
    """Identify a plant photo with the vision model (or the database fallback)."""
    upload = read_upload()
    language = request_language()
    user_id = optional_user_id(_payload().get("user_id"))
    image_b64 = to_base64(upload)

    result = classify_plant_image(
        image_b64, _gemini(), all_plants(), rng=_rng(), mime_type=upload.mime_type, language=language
    )
    result["plant"] = translate_plant_info(result["plant"], language)
    identification = record_identification(result, upload, language, user_id)

    logger.info(f"Identified {result['plant']['name']} ({result['confidence']}%) via {result['method']}")
    return jsonify({
        **result,
        "language": language,
        "image_url": f"data:{upload.mime_type};base64,{image_b64}",
        "identification_id": identification.id,
    })


@api_bp.route("/plants/identify-enhanced", methods=["POST"])
def identify_enhanced():
    """Identify a plant photo with the local heuristics over the plant database."""
    upload = read_upload()
    language = request_language()
    user_id = optional_user_id(_payload().get("user_id"))
    image_b64 = to_base64(upload)

    result = identify_plant_with_database(image_b64, all_plants(), filename=upload.filename, rng=_rng())
    result["plant"] = translate_plant_info(result["plant"], language)
    result["alternative_matches"] = [
        translate_plant_info(plant, language) for plant in result["alternative_matches"]
    ]
    identification = record_identification(result, upload, language, user_id)

    return jsonify({
        **result,
        "language": language,
        "image_url": f"data:{upload.mime_type};base64,{image_b64}",
        "identification_id": identification.id,
    })


@api_bp.route("/identifications", methods=["GET"])
def list_identifications():
    limit = request.args.get("limit", 20, type=int)
    query = Identification.query.order_by(Identification.id.desc())
    user_id = optional_user_id(request.args.get("user_id"))
    if user_id is not None:
        query = query.filter_by(user_id=user_id)
    return jsonify([row.to_dict() for row in query.limit(max(1, min(limit, 100))).all()])


# --- Plant lookup ---

@api_bp.route("/plants", methods=["GET"])
def list_plants():
    query = Plant.query.order_by(Plant.id)

    term = (request.args.get("q") or "").strip()
    if term:
        pattern = f"%{term}%"
        query = query.filter(or_(
            Plant.name.ilike(pattern),
            Plant.english_name.ilike(pattern),
            Plant.hindi_name.ilike(pattern),
            Plant.scientific_name.ilike(pattern),
            Plant.uses.ilike(pattern),
        ))

    limit = request.args.get("limit", type=int)
    if limit:
        query = query.limit(max(1, min(limit, 100)))

    return jsonify([plant.to_dict() for plant in query.all()])


@api_bp.route("/plants/<int:plant_id>", methods=["GET"])
def get_plant(plant_id):
    plant = get_plant_or_404(plant_id)
    language = (request.args.get("language") or "en").lower()
    return jsonify(translate_plant_info(plant.to_dict(), language))


@api_bp.route("/plants/<int:plant_id>/similar", methods=["GET"])
def get_similar_plants(plant_id):
    target = get_plant_or_404(plant_id).to_dict()
    count = request.args.get("count", 3, type=int)
    return jsonify(similar_plants(target, all_plants(), count=max(1, min(count, 10))))


# --- Advice ---

@api_bp.route("/search", methods=["POST"])
def search():
    query = str(_payload().get("query") or "").strip()
    if not query:
        raise APIError("Missing query")
    return jsonify(search_plant_knowledge(query, _gemini()))


@api_bp.route("/health-analysis", methods=["POST"])
def health_analysis():
    upload = read_upload()
    return jsonify(analyze_plant_health(to_base64(upload), _gemini(), rng=_rng(), mime_type=upload.mime_type))


@api_bp.route("/care-schedule", methods=["POST"])
def care_schedule():
    data = _payload()
    plant_name = str(data.get("plant_name") or "").strip()
    if not plant_name:
        raise APIError("Missing plant_name")
    location = data.get("location") or "India"
    season = data.get("season") or "current"
    return jsonify(generate_care_schedule(plant_name, location, season, _gemini()))


@api_bp.route("/growth-prediction", methods=["POST"])
def growth_prediction():
    data = json_object(request.get_json(silent=True))
    if not isinstance(data.get("name"), (str, type(None))):
        raise APIError("name must be a string")
    if not str(data.get("name") or "").strip():
        raise APIError("Missing name")

    try:
        plant_data = {
            "name": data["name"].strip(),
            "age": int(data.get("age") or 0),
            "current_height": float(data.get("current_height") or 0),
            "environment": data.get("environment") or "",
            "care_history": list(data.get("care_history") or []),
        }
    except (TypeError, ValueError, OverflowError):
        raise APIError("age and current_height must be numbers")

    return jsonify(predict_plant_growth(plant_data, _gemini()))


# --- Narration ---

@api_bp.route("/tts", methods=["POST"])
def text_to_speech():
    """
    Narrate `text`, or the description of `plant_id`, in `language`.

    Responds with audio/mpeg when a provider produced audio, otherwise with
    JSON asking the client to use browser speech.
    """
    data = _payload()
    language = request_language()
    text = str(data.get("text") or "").strip()

    if not text and data.get("plant_id"):
        try:
            plant_id = int(data["plant_id"])
        except (TypeError, ValueError):
            raise APIError("plant_id must be an integer")
        plant = translate_plant_info(get_plant_or_404(plant_id).to_dict(), language)
        text = build_narration(plant, language)

    if not text:
        raise APIError("Missing text or plant_id")

    audio = _speech().synthesize(text, language)
    if audio:
        return send_file(io.BytesIO(audio), mimetype="audio/mpeg", download_name="narration.mp3")

    return jsonify({"use_browser_tts": True, "text": text, "language": language})


# --- Service status ---

@api_bp.route("/status", methods=["GET"])
def status():
    return jsonify({
        "status": "ok",
        "ai_enabled": _gemini().available,
        "tts_providers": [name for name, _ in _speech().providers_for("en")],
        "plants": Plant.query.count(),
        "languages": supported_languages(),
    })
