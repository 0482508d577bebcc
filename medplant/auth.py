"""
auth.py - Demo account endpoints.

There are no server-side sessions: the client stores the returned user
record and re-validates it through GET /api/users/<id> on start-up.
"""

import logging

from flask import Blueprint, jsonify, request
from sqlalchemy import or_

from medplant.errors import APIError, json_object
from medplant.models import db, User

logger = logging.getLogger(__name__)

auth_bp = Blueprint("auth", __name__, url_prefix="/api")


def _require_fields(data, *fields):
    not_text = [name for name in fields if data.get(name) is not None and not isinstance(data[name], str)]
    if not_text:
        raise APIError(f"Fields must be strings: {', '.join(not_text)}")

    missing = [name for name in fields if not (data.get(name) or "").strip()]
    if missing:
        raise APIError(f"Missing required fields: {', '.join(missing)}")


@auth_bp.route("/auth/register", methods=["POST"])
def register():
    data = json_object(request.get_json(silent=True))
    _require_fields(data, "name", "email", "username", "password")

    email = data["email"].strip().lower()
    username = data["username"].strip()

    existing = User.query.filter(or_(User.email == email, User.username == username)).first()
    if existing:
        raise APIError("An account with this email or username already exists", 409)

    user = User(name=data["name"].strip(), email=email, username=username)
    user.set_password(data["password"])
    db.session.add(user)
    db.session.commit()

    logger.info(f"Registered user {user.id} ({username})")
    return jsonify(user.to_dict()), 201


@auth_bp.route("/auth/login", methods=["POST"])
def login():
    data = json_object(request.get_json(silent=True))
    _require_fields(data, "email", "password")

    user = User.query.filter_by(email=data["email"].strip().lower()).first()
    if user is None or not user.check_password(data["password"]):
        raise APIError("Invalid credentials", 401)

    return jsonify(user.to_dict())


@auth_bp.route("/users/<int:user_id>", methods=["GET"])
def get_user(user_id):
    user = db.session.get(User, user_id)
    if user is None:
        raise APIError("User not found", 404)
    return jsonify(user.to_dict())
