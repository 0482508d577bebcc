import base64
import io
import random
import struct
import zlib

import pytest
from PIL import Image

from medplant.app import create_app
from medplant.config import TestingConfig
from medplant.gemini import GeminiError
from medplant.models import db
from medplant.seed import load_seed_plants

GREEN = (0, 160, 0)
YELLOW = (220, 200, 40)
BROWN = (150, 90, 40)


def image_bytes(color=GREEN, size=(64, 64), fmt="PNG"):
    buffered = io.BytesIO()
    Image.new("RGB", size, color).save(buffered, format=fmt)
    return buffered.getvalue()


def image_base64(color=GREEN, size=(64, 64)):
    return base64.b64encode(image_bytes(color, size)).decode("utf-8")


def oversized_png(width=20000, height=20000):
    """A tiny PNG whose header claims far more pixels than Pillow will open."""
    def chunk(kind, data):
        return struct.pack(">I", len(data)) + kind + data + struct.pack(">I", zlib.crc32(kind + data) & 0xFFFFFFFF)

    header = struct.pack(">IIBBBBB", width, height, 8, 2, 0, 0, 0)
    return (b"\x89PNG\r\n\x1a\n" + chunk(b"IHDR", header)
            + chunk(b"IDAT", zlib.compress(b"")) + chunk(b"IEND", b""))


class StubGemini:
    """Stands in for GeminiClient: returns `answer` or raises `error`."""

    def __init__(self, answer=None, error=None, available=True):
        self.answer = answer
        self.error = error
        self.available = available
        self.calls = []

    def generate_json(self, prompt, **kwargs):
        self.calls.append((prompt, kwargs))
        if self.error:
            raise self.error
        return self.answer


@pytest.fixture
def app():
    app = create_app(TestingConfig)
    app.extensions["rng"] = random.Random(7)
    yield app
    with app.app_context():
        db.session.remove()
        db.drop_all()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def plants():
    return load_seed_plants()


@pytest.fixture
def offline_gemini():
    return StubGemini(available=False)


@pytest.fixture
def failing_gemini():
    return StubGemini(error=GeminiError("API Call Failed: 503 Server Error"))
