# medplant/app.py
import logging
import random

from flask import Flask, send_from_directory
from flask_cors import CORS

from medplant.auth import auth_bp
from medplant.config import Config, FRONTEND_DIR
from medplant.errors import register_error_handlers
from medplant.gemini import GeminiClient
from medplant.models import db
from medplant.routes import api_bp
from medplant.seed import init_db_command, seed_plants
from medplant.speech import SpeechSynthesizer

logger = logging.getLogger(__name__)


def configure_logging(level):
    logging.basicConfig(level=level, format='%(asctime)s - %(levelname)s - %(name)s - %(message)s')


def create_app(config_object=None):
    """
    Build the Flask application.

    The upload page is served from the 'frontend' folder at the project
    root; the JSON API lives under /api.
    """
    # static_folder=None: the frontend is served by the explicit routes below
    app = Flask(__name__, static_folder=None)
    app.config.from_object(config_object or Config)
    configure_logging(app.config["LOG_LEVEL"])

    # Enable CORS for all routes so a separately hosted frontend can call the API
    CORS(app)

    db.init_app(app)

    app.extensions["gemini"] = GeminiClient(
        app.config["GEMINI_API_KEY"],
        api_url=app.config["GEMINI_API_URL"],
        timeout=app.config["GEMINI_TIMEOUT"],
    )
    app.extensions["speech"] = SpeechSynthesizer(
        elevenlabs_key=app.config["ELEVENLABS_API_KEY"],
        google_key=app.config["GOOGLE_CLOUD_TTS_API_KEY"],
        openai_key=app.config["OPENAI_API_KEY"],
        timeout=app.config["TTS_TIMEOUT"],
    )
    app.extensions["rng"] = random.Random()

    if not app.extensions["gemini"].available:
        logger.warning("GENERATIVE_LANGUAGE_API_KEY not set - identification uses the local plant database.")

    app.register_blueprint(api_bp)
    app.register_blueprint(auth_bp)
    register_error_handlers(app)
    app.cli.add_command(init_db_command)

    with app.app_context():
        db.create_all()
        if app.config["SEED_ON_START"]:
            seed_plants()

    # Route to serve the upload page
    @app.route('/')
    def serve_index():
        return send_from_directory(FRONTEND_DIR, 'index.html')

    # Route to serve other static files (CSS, JS, images)
    @app.route('/<path:filename>')
    def serve_static(filename):
        return send_from_directory(FRONTEND_DIR, filename)

    return app


if __name__ == '__main__':
    application = create_app()
    application.run(
        debug=application.config["DEBUG"],
        host=application.config["HOST"],
        port=application.config["PORT"],
    )
