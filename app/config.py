import os
from typing import Any

OPENAI_CHAT_URL = "https://api.openai.com/v1/chat/completions"
OPENAI_IMAGES_URL = "https://api.openai.com/v1/images/generations"
OPENAI_TRANSCRIPTIONS_URL = "https://api.openai.com/v1/audio/transcriptions"
OPENAI_SPEECH_URL = "https://api.openai.com/v1/audio/speech"
FAL_SDXL_URL = "https://fal.run/fal-ai/fast-sdxl"

CHAT_MODEL = "gpt-3.5-turbo"
VISION_MODEL = "gpt-4o"
TRANSCRIBE_MODEL = "whisper-1"
SPEECH_MODEL = "tts-1"
IMAGE_MODEL_PRIMARY = "dall-e-3"
IMAGE_MODEL_SECONDARY = "dall-e-2"

# Google keys get pasted into OPENAI_API_KEY often enough to check for them.
INVALID_OPENAI_KEY_PREFIX = "AIza"

PROVIDERS: dict[str, dict[str, Any]] = {
    "openai": {
        "label": "OpenAI",
        "capabilities": ["chat", "vision", "image", "transcribe", "speech"],
        "requiresKey": "OPENAI_API_KEY",
    },
    "fal": {
        "label": "Fal.ai",
        "capabilities": ["image"],
        "requiresKey": "FAL_KEY",
    },
}


def openai_api_key() -> str | None:
    api_key = (os.getenv("OPENAI_API_KEY") or "").strip()
    if not api_key or api_key.startswith(INVALID_OPENAI_KEY_PREFIX):
        return None
    return api_key


def fal_api_key() -> str | None:
    return (os.getenv("FAL_KEY") or "").strip() or None


def provider_key(provider_id: str) -> str | None:
    if provider_id == "openai":
        return openai_api_key()
    if provider_id == "fal":
        return fal_api_key()
    raise KeyError(provider_id)


def log_level() -> str:
    return (os.getenv("LOG_LEVEL") or "INFO").upper()
