"""
imaging.py - Visual feature heuristics for plant photos
-------------------------------------------------------

Used when no vision model is configured. The uploaded image is decoded with
Pillow, shrunk to a thumbnail and scored with a handful of simple rules:

- color coverage (yellow / brown / orange / green pixel share)
- texture complexity (normalized grayscale entropy)
- leaf outline (largest green contour, via OpenCV)
- payload size class

The rules are rough approximations. They only feed the weighted database
matcher in `matching.py` and never stand on their own.
"""

import base64
import binascii
import hashlib
import io
import logging
import math
import re
from dataclasses import dataclass, field, asdict

import cv2
import numpy as np
from PIL import Image

logger = logging.getLogger(__name__)

THUMBNAIL_SIZE = (256, 256)
MIN_CONTOUR_AREA = 40  # ignore specks in the green mask

PLANT_NAME_HINTS = [
    'ginger', 'turmeric', 'neem', 'tulsi', 'aloe', 'ashwagandha', 'brahmi',
    'guduchi', 'shatavari', 'triphala', 'fenugreek', 'garlic', 'onion',
    'cinnamon', 'cardamom', 'clove', 'black pepper', 'long pepper',
    'cumin', 'coriander', 'fennel', 'ajwain', 'mustard', 'sesame',
    'amla', 'giloy',
]

# Per-pixel color rules on 0-255 RGB channels
COLOR_RULES = {
    'yellow': lambda r, g, b: (r > 180) & (g > 180) & (b < 100),
    'brown': lambda r, g, b: (r > 100) & (r < 180) & (g > 50) & (g < 120) & (b < 80),
    'orange': lambda r, g, b: (r > 200) & (g > 100) & (g < 180) & (b < 100),
    'green': lambda r, g, b: (g > r) & (g > b) & (g > 100),
}

DATA_URI_PREFIX = re.compile(r'^data:image/[a-zA-Z0-9.+-]+;base64,')


@dataclass
class VisualFeatures:
    colors: list = field(default_factory=list)
    shapes: list = field(default_factory=list)
    textures: list = field(default_factory=list)
    size: str = 'medium'
    leaf_pattern: str = 'unknown'
    root_type: str = 'unknown'
    surface_texture: str = 'unknown'

    def to_dict(self):
        return asdict(self)


# --- Filename hints ---

def extract_filename_hints(filename):
    """Return the known plant names mentioned in an upload's filename."""
    if not filename:
        return []

    # "long_pepper-01.jpg" should still match "long pepper"
    normalized = re.sub(r'[_\-.]+', ' ', filename.lower())
    return [plant for plant in PLANT_NAME_HINTS if plant in normalized]


# --- Decoding ---

def decode_image_payload(image_base64: str) -> bytes:
    """Strip an optional data URI prefix and base64-decode the rest."""
    return base64.b64decode(DATA_URI_PREFIX.sub('', image_base64.strip()))


def load_pixels(image_bytes: bytes) -> np.ndarray:
    """Decode image bytes into an RGB uint8 array no larger than THUMBNAIL_SIZE."""
    image = Image.open(io.BytesIO(image_bytes)).convert("RGB")
    image.thumbnail(THUMBNAIL_SIZE)
    return np.asarray(image, dtype=np.uint8)


def image_digest(data) -> str:
    if isinstance(data, str):
        data = data.encode('utf-8')
    return hashlib.md5(data).hexdigest()


# --- Pixel statistics ---

def _channels(pixels):
    return (pixels[..., i].astype(np.int16) for i in range(3))


def color_intensity(pixels: np.ndarray, color: str) -> float:
    """Percentage (0-100) of pixels that satisfy the rule for `color`."""
    if color not in COLOR_RULES:
        raise ValueError(f"Unknown color rule: {color}")
    if pixels.size == 0:
        return 0.0

    r, g, b = _channels(pixels)
    mask = COLOR_RULES[color](r, g, b)
    return float(mask.mean() * 100)


def texture_complexity(pixels: np.ndarray) -> float:
    """Grayscale histogram entropy scaled to 0-1 (8 bits is the maximum)."""
    gray = cv2.cvtColor(pixels, cv2.COLOR_RGB2GRAY)
    histogram = np.bincount(gray.ravel(), minlength=256)
    probabilities = histogram[histogram > 0] / gray.size
    entropy = -np.sum(probabilities * np.log2(probabilities))
    return max(0.0, float(entropy) / 8)


def leaf_shape(pixels: np.ndarray):
    """
    Describe the outline of the largest green region.

    Returns a (shapes, leaf_pattern) pair. Long thin outlines read as linear
    leaves, ragged outlines (low solidity) as lobed or serrated, compact ones
    as round/palmate.
    """
    r, g, b = _channels(pixels)
    green_mask = COLOR_RULES['green'](r, g, b).astype(np.uint8) * 255

    contours, _ = cv2.findContours(green_mask, cv2.RETR_EXTERNAL, cv2.CHAIN_APPROX_SIMPLE)
    contours = [cnt for cnt in contours if cv2.contourArea(cnt) >= MIN_CONTOUR_AREA]
    if not contours:
        return ['oval'], 'unknown'

    leaf = max(contours, key=cv2.contourArea)
    area = cv2.contourArea(leaf)
    perimeter = cv2.arcLength(leaf, True)
    _, (width, height), _ = cv2.minAreaRect(leaf)
    hull_area = cv2.contourArea(cv2.convexHull(leaf))

    aspect = max(width, height) / max(min(width, height), 1.0)
    solidity = area / hull_area if hull_area else 1.0
    circularity = 4 * math.pi * area / perimeter ** 2 if perimeter else 0.0

    if aspect >= 3:
        return ['linear', 'elongated'], 'linear'
    if solidity < 0.7:
        return ['curved', 'wavy'], 'lobed'
    if solidity < 0.85:
        return ['angular', 'serrated'], 'serrated'
    if circularity >= 0.7:
        return ['round', 'circular'], 'palmate'
    return ['oval'], 'simple'


def size_class(n_bytes: int) -> str:
    if n_bytes < 50000:
        return 'small'
    if n_bytes < 150000:
        return 'medium'
    if n_bytes < 300000:
        return 'large'
    return 'very large'


# --- Feature extraction ---

def statistical_features(image_base64: str) -> VisualFeatures:
    """Deterministic stand-in features for payloads that cannot be decoded."""
    features = VisualFeatures()
    bucket = int(image_digest(image_base64), 16) % 3
    if bucket == 0:
        features.colors += ['yellow', 'golden']
        features.root_type = 'rhizome'
    elif bucket == 1:
        features.colors += ['brown', 'tan']
        features.root_type = 'root'
    else:
        features.colors += ['green', 'leafy']
        features.leaf_pattern = 'compound'
    return features


def analyze_image_features(image_base64: str) -> VisualFeatures:
    """
    Extract the visual features used by the weighted database matcher.

    Decoding problems are not fatal: the payload falls back to
    `statistical_features` so identification can still proceed.
    """
    try:
        image_bytes = decode_image_payload(image_base64)
        pixels = load_pixels(image_bytes)
    except (binascii.Error, ValueError, OSError, Image.DecompressionBombError) as e:
        logger.warning(f"Image analysis fallback - using statistical features ({e})")
        return statistical_features(image_base64)

    features = VisualFeatures(size=size_class(len(image_bytes)))

    yellow = color_intensity(pixels, 'yellow')
    brown = color_intensity(pixels, 'brown')
    orange = color_intensity(pixels, 'orange')
    green = color_intensity(pixels, 'green')

    if yellow > brown and yellow > 30:
        features.colors += ['yellow', 'golden', 'bright']
        features.root_type = 'rhizome'
        features.surface_texture = 'smooth'
    elif brown > yellow and brown > 25:
        features.colors += ['brown', 'tan', 'earthy']
        features.root_type = 'root'
        features.surface_texture = 'fibrous'
    elif orange > 20:
        features.colors += ['orange', 'reddish']
        features.root_type = 'tuber'

    if green > 40:
        features.colors.append('green')
        features.shapes, features.leaf_pattern = leaf_shape(pixels)

    complexity = texture_complexity(pixels)
    if complexity > 0.7:
        features.textures += ['rough', 'fibrous', 'ridged']
    elif complexity > 0.4:
        features.textures += ['medium', 'segmented']
    else:
        features.textures += ['smooth', 'uniform']

    logger.debug(
        f"Image features: yellow={yellow:.1f} brown={brown:.1f} orange={orange:.1f} "
        f"green={green:.1f} texture={complexity:.2f}"
    )
    return features
