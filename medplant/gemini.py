"""
gemini.py - Minimal client for the Gemini generateContent REST endpoint.

Calls go through `requests`; the API key travels as the `key` query
parameter. Every failure surfaces as `GeminiError` so callers can fall back
to the local heuristics.
"""

import json
import logging

import requests

from medplant.config import key_configured

logger = logging.getLogger(__name__)

DEFAULT_API_URL = "https://generativelanguage.googleapis.com/v1beta/models/gemini-2.0-flash:generateContent"


class GeminiError(Exception):
    """Raised when the Gemini API is unavailable or returns an unusable answer."""


def extract_text(result: dict) -> str:
    """Return the text of the first candidate's first part."""
    candidates = result.get("candidates") or []
    if candidates:
        content = candidates[0].get("content") or {}
        parts = content.get("parts") or []
        if parts:
            return parts[0].get("text", "").strip()
    raise GeminiError("Gemini response contained no candidates.")


class GeminiClient:
    def __init__(self, api_key, api_url=DEFAULT_API_URL, timeout=30, session=None):
        self.api_key = api_key
        self.api_url = api_url
        self.timeout = timeout
        self.session = session or requests.Session()

    @property
    def available(self) -> bool:
        return key_configured(self.api_key)

    def generate(self, parts, generation_config=None) -> str:
        """Send one user turn made of `parts` and return the reply text."""
        if not self.available:
            raise GeminiError("API Key Missing")

        payload = {"contents": [{"role": "user", "parts": parts}]}
        if generation_config:
            payload["generationConfig"] = generation_config

        try:
            response = self.session.post(
                self.api_url,
                params={"key": self.api_key},
                headers={'Content-Type': 'application/json'},
                json=payload,
                timeout=self.timeout,
            )
            response.raise_for_status()
            result = response.json()
        except requests.exceptions.RequestException as e:
            raise GeminiError(f"API Call Failed: {e}") from e
        except ValueError as e:
            raise GeminiError("Parse Error: Failed to parse Gemini response.") from e

        return extract_text(result)

    def generate_json(self, prompt, image_base64=None, mime_type="image/jpeg", schema=None,
                      temperature=0.2, max_output_tokens=500):
        """
        Ask for a JSON answer, optionally about an inline image.

        `schema` is passed through as Gemini's `responseSchema`.
        """
        parts = [{"text": prompt}]
        if image_base64:
            parts.append({"inlineData": {"mimeType": mime_type, "data": image_base64}})

        generation_config = {
            "responseMimeType": "application/json",
            "temperature": temperature,
            "maxOutputTokens": max_output_tokens,
        }
        if schema:
            generation_config["responseSchema"] = schema

        text = self.generate(parts, generation_config)
        try:
            return json.loads(text)
        except json.JSONDecodeError as e:
            logger.debug(f"Unparseable Gemini output: {text[:200]}")
            raise GeminiError("Parse Error: Invalid JSON from Gemini.") from e
