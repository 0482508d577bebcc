"""
speech.py - Narration text and text-to-speech synthesis
-------------------------------------------------------

`build_narration` turns a (translated) plant record into readable sentences.
`SpeechSynthesizer` converts text to MP3 through whichever providers have
keys configured:

- Indian languages: Google Cloud TTS (native voices) only
- everything else: ElevenLabs, then Google Cloud TTS, then OpenAI

When no provider answers, `synthesize` returns None and the client falls back
to the browser's own speech synthesis.
"""

import base64
import binascii
import logging
import re

import requests

from medplant.config import key_configured

logger = logging.getLogger(__name__)

INDIAN_LANGUAGES = frozenset(['hi', 'bn', 'ta', 'te', 'mr', 'gu', 'kn', 'ml', 'or', 'pa'])

ELEVENLABS_URL = "https://api.elevenlabs.io/v1/text-to-speech/{voice_id}"
ELEVENLABS_VOICE_ID = 'EXAVITQu4vr4xnSDxMaL'

GOOGLE_TTS_URL = "https://texttospeech.googleapis.com/v1/text:synthesize"
GOOGLE_VOICES = {
    'hi': ('hi-IN', 'hi-IN-Neural2-A'),
    'bn': ('bn-IN', 'bn-IN-Standard-A'),
    'ta': ('ta-IN', 'ta-IN-Standard-A'),
    'te': ('te-IN', 'te-IN-Standard-A'),
    'gu': ('gu-IN', 'gu-IN-Standard-A'),
    'kn': ('kn-IN', 'kn-IN-Standard-A'),
    'ml': ('ml-IN', 'ml-IN-Standard-A'),
    'mr': ('mr-IN', 'mr-IN-Standard-A'),
    'es': ('es-ES', 'es-ES-Neural2-A'),
}
DEFAULT_GOOGLE_VOICE = ('en-US', 'en-US-Neural2-F')

OPENAI_TTS_URL = "https://api.openai.com/v1/audio/speech"
OPENAI_VOICES = {'es': 'shimmer'}
DEFAULT_OPENAI_VOICE = 'alloy'

NARRATION_LABELS = {
    'en': ('Uses', 'Precautions', '.'),
    'hi': ('उपयोग', 'सावधानियां', '।'),
}


class SpeechError(Exception):
    """Raised when a text-to-speech provider call fails."""


# --- Narration text ---

def format_sentences(text):
    """
    Normalize whitespace and put each sentence on its own line.

    A sentence ends at a letter followed by '.', '!' or '?' (so decimals such
    as 2.5 stay intact) or at a Devanagari danda, when the next word does not
    start in lower case.
    """
    if not isinstance(text, str):
        text = str(text)

    cleaned = re.sub(r'\s+', ' ', text).strip()
    sentences = re.split(r'(?:(?<=[^\W\d_][.!?])|(?<=।))\s+(?![a-z])', cleaned)
    return "\n".join(sentence.strip() for sentence in sentences if sentence.strip())


def build_narration(plant, language='en'):
    """Compose the text read aloud for a plant: name, description, uses, precautions."""
    uses_label, precautions_label, stop = NARRATION_LABELS.get(language, NARRATION_LABELS['en'])

    def pick(key):
        value = plant.get(f'translated_{key}')
        if not value and language == 'hi':
            value = plant.get(f'hindi_{key}')
        return (value or plant.get(key) or '').strip().rstrip('.।')

    sentences = [f"{text}{stop}" for text in (pick('name'), pick('description')) if text]
    if pick('uses'):
        sentences.append(f"{uses_label}: {pick('uses')}{stop}")
    if pick('precautions'):
        sentences.append(f"{precautions_label}: {pick('precautions')}{stop}")
    return format_sentences(" ".join(sentences))


# --- Synthesis ---

class SpeechSynthesizer:
    def __init__(self, elevenlabs_key='', google_key='', openai_key='', timeout=30, session=None):
        self.elevenlabs_key = elevenlabs_key
        self.google_key = google_key
        self.openai_key = openai_key
        self.timeout = timeout
        self.session = session or requests.Session()

    def providers_for(self, language):
        """Providers to try, in order, for `language`."""
        google = ('google', self.google_cloud) if key_configured(self.google_key) else None
        if language in INDIAN_LANGUAGES:
            return [google] if google else []

        providers = []
        if key_configured(self.elevenlabs_key):
            providers.append(('elevenlabs', self.elevenlabs))
        if google:
            providers.append(google)
        if key_configured(self.openai_key):
            providers.append(('openai', self.openai))
        return providers

    def synthesize(self, text, language='en'):
        """Return MP3 bytes for `text`, or None when the browser should speak it."""
        providers = self.providers_for(language)
        if not providers:
            logger.info(f"No TTS provider configured for {language} - using browser speech")
            return None

        for name, provider in providers:
            try:
                audio = provider(text, language)
            except SpeechError as e:
                logger.error(f"{name} TTS error: {e}")
                continue
            if audio:
                logger.info(f"Using {name} TTS for {language}")
                return audio
        return None

    def _post(self, url, **kwargs):
        try:
            response = self.session.post(url, timeout=self.timeout, **kwargs)
            response.raise_for_status()
        except requests.exceptions.RequestException as e:
            raise SpeechError(str(e)) from e
        return response

    def elevenlabs(self, text, language):
        response = self._post(
            ELEVENLABS_URL.format(voice_id=ELEVENLABS_VOICE_ID),
            headers={
                'Accept': 'audio/mpeg',
                'Content-Type': 'application/json',
                'xi-api-key': self.elevenlabs_key,
            },
            json={
                "text": text,
                "model_id": "eleven_multilingual_v2",
                "voice_settings": {
                    "stability": 0.5,
                    "similarity_boost": 0.5,
                    "style": 0.5,
                    "use_speaker_boost": True,
                },
            },
        )
        return response.content

    def google_cloud(self, text, language):
        language_code, voice_name = GOOGLE_VOICES.get(language, DEFAULT_GOOGLE_VOICE)
        response = self._post(
            GOOGLE_TTS_URL,
            params={"key": self.google_key},
            json={
                "input": {"text": text},
                "voice": {"languageCode": language_code, "name": voice_name, "ssmlGender": "FEMALE"},
                "audioConfig": {
                    "audioEncoding": "MP3",
                    "speakingRate": 0.9,  # slightly slower for clearer pronunciation
                    "pitch": 0,
                    "volumeGainDb": 0,
                },
            },
        )
        try:
            audio_content = response.json().get("audioContent")
        except (ValueError, AttributeError) as e:
            raise SpeechError("Google Cloud TTS returned invalid JSON") from e
        if not audio_content:
            return None
        try:
            return base64.b64decode(audio_content)
        except (binascii.Error, TypeError) as e:
            raise SpeechError("Google Cloud TTS returned malformed audioContent") from e

    def openai(self, text, language):
        response = self._post(
            OPENAI_TTS_URL,
            headers={'Authorization': f'Bearer {self.openai_key}'},
            json={
                "model": "tts-1",
                "voice": OPENAI_VOICES.get(language, DEFAULT_OPENAI_VOICE),
                "input": text,
                "response_format": "mp3",
                "speed": 0.9,
            },
        )
        return response.content
