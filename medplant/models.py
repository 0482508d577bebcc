"""
models.py - ORM models for the plant identification service
-----------------------------------------------------------

Tables:
- `plant`: medicinal plant reference data, with Hindi/Sanskrit content
- `user`: demo accounts (the client keeps the logged-in user locally)
- `identification`: history of identification requests

The plant table is read-only at runtime; rows come from the seed file.
"""

import datetime

from flask_sqlalchemy import SQLAlchemy
from werkzeug.security import generate_password_hash, check_password_hash

db = SQLAlchemy()


class Plant(db.Model):
    """
    Table: plant

    Core botanical fields plus traditional-medicine content. Every text field
    has an optional `hindi_*` twin used when the client asks for Hindi.
    """
    __tablename__ = "plant"

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(120), nullable=False, index=True)
    scientific_name = db.Column(db.String(200))
    english_name = db.Column(db.String(120))
    hindi_name = db.Column(db.String(120))
    sanskrit_name = db.Column(db.String(120))
    regional_names = db.Column(db.Text)

    family = db.Column(db.String(120))
    genus = db.Column(db.String(120))
    species = db.Column(db.String(120))

    description = db.Column(db.Text)
    uses = db.Column(db.Text)
    preparation = db.Column(db.Text)
    precautions = db.Column(db.Text)
    parts_used = db.Column(db.Text)
    properties = db.Column(db.Text)
    therapeutic_actions = db.Column(db.Text)
    dosage = db.Column(db.Text)
    chemical_compounds = db.Column(db.Text)

    location = db.Column(db.Text)
    habitat = db.Column(db.Text)
    season = db.Column(db.String(120))
    rarity = db.Column(db.String(40), default="common")
    image_url = db.Column(db.String(500))

    hindi_description = db.Column(db.Text)
    hindi_uses = db.Column(db.Text)
    hindi_preparation = db.Column(db.Text)
    hindi_precautions = db.Column(db.Text)
    hindi_parts_used = db.Column(db.Text)
    hindi_properties = db.Column(db.Text)
    hindi_dosage = db.Column(db.Text)
    hindi_therapeutic_actions = db.Column(db.Text)

    def to_dict(self):
        return {column.name: getattr(self, column.name) for column in self.__table__.columns}


class User(db.Model):
    __tablename__ = "user"

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(120), nullable=False)
    email = db.Column(db.String(200), unique=True, nullable=False, index=True)
    username = db.Column(db.String(80), unique=True, nullable=False, index=True)
    password_hash = db.Column(db.String(256), nullable=False)
    created_at = db.Column(db.DateTime, default=datetime.datetime.utcnow)

    identifications = db.relationship("Identification", backref="user", lazy=True)

    def set_password(self, password):
        self.password_hash = generate_password_hash(password)

    def check_password(self, password):
        return check_password_hash(self.password_hash, password)

    def to_dict(self):
        return {
            "id": self.id,
            "name": self.name,
            "email": self.email,
            "username": self.username,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }


class Identification(db.Model):
    """
    Table: identification

    One row per identification request. `method` records which path produced
    the answer: ai, database, heuristic or fallback.
    """
    __tablename__ = "identification"

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey("user.id"), nullable=True, index=True)
    plant_id = db.Column(db.Integer, db.ForeignKey("plant.id"), nullable=True)
    plant_name = db.Column(db.String(120))
    confidence = db.Column(db.Float)
    method = db.Column(db.String(20))
    language = db.Column(db.String(10), default="en")
    filename = db.Column(db.String(200))
    image_hash = db.Column(db.String(32), index=True)
    created_at = db.Column(db.DateTime, default=datetime.datetime.utcnow)

    def to_dict(self):
        return {
            "id": self.id,
            "user_id": self.user_id,
            "plant_id": self.plant_id,
            "plant_name": self.plant_name,
            "confidence": self.confidence,
            "method": self.method,
            "language": self.language,
            "filename": self.filename,
            "image_hash": self.image_hash,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }
