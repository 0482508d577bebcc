"""
config.py - Central configuration for the medicinal plant identification service.

Values come from the environment; a local .env file is loaded first so
provider keys can live outside the shell profile.
"""

import os
from pathlib import Path

from dotenv import load_dotenv


# --- Load .env ---

load_dotenv()


# --- Paths ---

PACKAGE_DIR = Path(__file__).resolve().parent
BASE_DIR = PACKAGE_DIR.parent
FRONTEND_DIR = BASE_DIR / "frontend"
DATA_DIR = PACKAGE_DIR / "data"


def env_flag(name: str, default: str = "false") -> bool:
    return os.getenv(name, default).lower() in ("true", "1", "yes")


def key_configured(key) -> bool:
    """An empty key or the `demo-key` placeholder means the provider is off."""
    return bool(key) and key != "demo-key"


class Config:
    SECRET_KEY = os.getenv("SECRET_KEY", "medplant-dev-secret-change-in-production")
    SQLALCHEMY_DATABASE_URI = os.getenv(
        "DATABASE_URL",
        "sqlite:///" + str(BASE_DIR / "medplant.db")
    )
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    MAX_CONTENT_LENGTH = int(os.getenv("MAX_UPLOAD_MB", 16)) * 1024 * 1024
    ALLOWED_EXTENSIONS = {"png", "jpg", "jpeg", "webp", "gif"}

    DEBUG = env_flag("DEBUG")
    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
    HOST = os.getenv("HOST", "127.0.0.1")
    PORT = int(os.getenv("PORT", 5000))
    SEED_ON_START = env_flag("SEED_ON_START", "true")

    # --- Gemini (vision + text) ---
    GEMINI_API_KEY = os.getenv("GENERATIVE_LANGUAGE_API_KEY", "")
    GEMINI_API_URL = os.getenv(
        "GEMINI_API_URL",
        "https://generativelanguage.googleapis.com/v1beta/models/gemini-2.0-flash:generateContent"
    )
    GEMINI_TIMEOUT = float(os.getenv("GEMINI_TIMEOUT", 30))

    # --- Text-to-speech providers ---
    ELEVENLABS_API_KEY = os.getenv("ELEVENLABS_API_KEY", "")
    GOOGLE_CLOUD_TTS_API_KEY = os.getenv("GOOGLE_CLOUD_TTS_API_KEY", "")
    OPENAI_API_KEY = os.getenv("OPENAI_API_KEY", "")
    TTS_TIMEOUT = float(os.getenv("TTS_TIMEOUT", 30))


class TestingConfig(Config):
    TESTING = True
    SQLALCHEMY_DATABASE_URI = "sqlite://"
    SEED_ON_START = True
    GEMINI_API_KEY = ""
    ELEVENLABS_API_KEY = ""
    GOOGLE_CLOUD_TTS_API_KEY = ""
    OPENAI_API_KEY = ""
