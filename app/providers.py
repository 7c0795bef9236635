import base64
import logging
from dataclasses import dataclass
from typing import Any

import httpx

from app import config

logger = logging.getLogger(__name__)

CHAT_SYSTEM_PROMPT = (
    "You are a helpful AI assistant for users with disabilities. You are empathetic, supportive, and provide "
    "accurate information. You can:\n"
    "- Describe environments and sounds\n"
    "- Answer questions about time, date, weather\n"
    "- Help with calculations and general knowledge\n"
    "- Provide emotional support and encouragement\n"
    "- Assist with daily tasks and accessibility needs\n\n"
    "Always be conversational, supportive, and helpful. Keep responses concise but informative."
)

ENVIRONMENT_PROMPTS: dict[str, str] = {
    "sounds": (
        "You are an AI assistant that can analyze environmental sounds. Describe the acoustic environment in "
        "detail, including background noise, conversations, mechanical sounds, and overall ambiance. Be specific "
        "and helpful for someone who cannot see."
    ),
    "people": (
        "You are an AI assistant that can sense people and activity in an environment. Describe how many people "
        "are around, what they're doing, their general mood and energy level, and the social atmosphere."
    ),
    "safety": (
        "You are an AI assistant focused on environmental safety. Analyze potential hazards, safe pathways, "
        "emergency exits, and general safety considerations for someone with disabilities."
    ),
    "navigation": (
        "You are an AI assistant that helps with navigation and spatial awareness. Describe the layout, "
        "obstacles, pathways, and important landmarks or reference points."
    ),
    "general": (
        "You are an AI assistant that provides comprehensive environmental analysis. Describe the overall "
        "environment including sounds, people, safety, and navigation aspects for someone who needs detailed "
        "environmental awareness."
    ),
}

VISION_SYSTEM_PROMPT = (
    "You are an AI assistant for blind people. Please describe the content of the image clearly, with as much "
    "detail as possible including objects, people, colors, text, and spatial relationships."
)

SECONDARY_PROMPT_LIMIT = 1000
SECONDARY_IMAGE_SIZE = "512x512"


class ProviderUnavailable(Exception):
    """The provider could not produce a usable result."""

    def __init__(self, provider: str, message: str, status_code: int | None = None):
        super().__init__(f"{provider}: {message}")
        self.provider = provider
        self.message = message
        self.status_code = status_code


@dataclass
class ProviderResult:
    payload: Any
    model: str
    usage: dict[str, Any] | None = None


def _provider_error(provider_name: str, response: httpx.Response) -> ProviderUnavailable:
    try:
        payload = response.json()
    except ValueError:
        return ProviderUnavailable(
            provider_name, f"unexpected error ({response.status_code})", response.status_code
        )

    error_obj = payload.get("error") if isinstance(payload, dict) else None
    if isinstance(error_obj, dict) and error_obj.get("message"):
        return ProviderUnavailable(provider_name, error_obj["message"], response.status_code)

    return ProviderUnavailable(provider_name, f"error ({response.status_code})", response.status_code)


async def _post(
    client: httpx.AsyncClient,
    provider_name: str,
    url: str,
    timeout: float,
    **kwargs: Any,
) -> httpx.Response:
    try:
        response = await client.post(url, timeout=timeout, **kwargs)
    except httpx.HTTPError as exc:
        logger.error("%s request to %s failed: %s", provider_name, url, exc)
        raise ProviderUnavailable(provider_name, f"request failed: {exc}") from exc

    if response.status_code >= 400:
        error = _provider_error(provider_name, response)
        logger.error("%s responded with status %s: %s", provider_name, response.status_code, error.message)
        raise error
    return response


def _json(provider_name: str, response: httpx.Response) -> dict[str, Any]:
    try:
        payload = response.json()
    except ValueError as exc:
        raise ProviderUnavailable(provider_name, "response was not JSON") from exc
    if not isinstance(payload, dict):
        raise ProviderUnavailable(provider_name, "response was not a JSON object")
    return payload


def _completion_text(payload: dict[str, Any]) -> str:
    try:
        content = payload["choices"][0]["message"]["content"]
    except (KeyError, IndexError, TypeError) as exc:
        raise ProviderUnavailable("OpenAI", "invalid response format from chat completion") from exc
    if not isinstance(content, str) or not content.strip():
        raise ProviderUnavailable("OpenAI", "chat completion returned no content")
    return content


def _openai_headers(api_key: str) -> dict[str, str]:
    return {
        "Authorization": f"Bearer {api_key}",
        "Content-Type": "application/json",
    }


async def _chat_completion(
    client: httpx.AsyncClient,
    api_key: str,
    model: str,
    messages: list[dict[str, Any]],
    max_tokens: int,
    temperature: float | None = None,
) -> ProviderResult:
    body: dict[str, Any] = {"model": model, "messages": messages, "max_tokens": max_tokens}
    if temperature is not None:
        body["temperature"] = temperature

    response = await _post(
        client,
        "OpenAI",
        config.OPENAI_CHAT_URL,
        timeout=60.0,
        headers=_openai_headers(api_key),
        json=body,
    )
    payload = _json("OpenAI", response)
    return ProviderResult(payload=_completion_text(payload), model=model, usage=payload.get("usage"))


async def chat(client: httpx.AsyncClient, api_key: str, message: str, context: str = "") -> ProviderResult:
    return await _chat_completion(
        client,
        api_key,
        config.CHAT_MODEL,
        [
            {"role": "system", "content": context or CHAT_SYSTEM_PROMPT},
            {"role": "user", "content": message},
        ],
        max_tokens=500,
        temperature=0.7,
    )


async def analyze_environment(
    client: httpx.AsyncClient, api_key: str, request_type: str, context: str = ""
) -> ProviderResult:
    system_prompt = ENVIRONMENT_PROMPTS.get(request_type, ENVIRONMENT_PROMPTS["general"])
    user_prompt = context or (
        "Please analyze the current environment and provide a detailed description focusing on "
        f"{request_type} aspects."
    )
    return await _chat_completion(
        client,
        api_key,
        config.CHAT_MODEL,
        [
            {"role": "system", "content": system_prompt},
            {"role": "user", "content": user_prompt},
        ],
        max_tokens=400,
        temperature=0.7,
    )


async def describe_image(client: httpx.AsyncClient, api_key: str, content: bytes, mime_type: str) -> ProviderResult:
    image_b64 = base64.b64encode(content).decode("utf-8")
    return await _chat_completion(
        client,
        api_key,
        config.VISION_MODEL,
        [
            {"role": "system", "content": VISION_SYSTEM_PROMPT},
            {
                "role": "user",
                "content": [
                    {"type": "image_url", "image_url": {"url": f"data:{mime_type};base64,{image_b64}"}},
                ],
            },
        ],
        max_tokens=800,
    )


async def transcribe(
    client: httpx.AsyncClient,
    api_key: str,
    filename: str,
    content: bytes,
    mime_type: str,
    language: str,
) -> ProviderResult:
    response = await _post(
        client,
        "OpenAI",
        config.OPENAI_TRANSCRIPTIONS_URL,
        timeout=60.0,
        headers={"Authorization": f"Bearer {api_key}"},
        data={"model": config.TRANSCRIBE_MODEL, "language": language, "response_format": "json"},
        files={"file": (filename, content, mime_type)},
    )
    payload = _json("OpenAI", response)
    text = payload.get("text")
    if not isinstance(text, str):
        raise ProviderUnavailable("OpenAI", "transcription returned no text")
    return ProviderResult(
        payload={"text": text, "duration": payload.get("duration")},
        model=config.TRANSCRIBE_MODEL,
    )


async def synthesize_speech(
    client: httpx.AsyncClient, api_key: str, text: str, voice: str, speed: float
) -> ProviderResult:
    response = await _post(
        client,
        "OpenAI",
        config.OPENAI_SPEECH_URL,
        timeout=30.0,
        headers=_openai_headers(api_key),
        json={
            "model": config.SPEECH_MODEL,
            "input": text,
            "voice": voice,
            "speed": speed,
            "response_format": "mp3",
        },
    )
    if not response.content:
        raise ProviderUnavailable("OpenAI", "speech synthesis returned no audio content")
    return ProviderResult(payload=response.content, model=config.SPEECH_MODEL)


def _image_url(provider_name: str, payload: dict[str, Any], key: str) -> str:
    try:
        url = payload[key][0]["url"]
    except (KeyError, IndexError, TypeError) as exc:
        raise ProviderUnavailable(provider_name, "returned no image payload") from exc
    if not url:
        raise ProviderUnavailable(provider_name, "returned an empty image url")
    return url


async def _openai_image(client: httpx.AsyncClient, api_key: str, body: dict[str, Any]) -> ProviderResult:
    response = await _post(
        client,
        "OpenAI",
        config.OPENAI_IMAGES_URL,
        timeout=120.0,
        headers=_openai_headers(api_key),
        json=body,
    )
    payload = _json("OpenAI", response)
    return ProviderResult(
        payload=_image_url("OpenAI", payload, "data"),
        model=body["model"],
        usage=payload.get("usage"),
    )


async def generate_image(client: httpx.AsyncClient, api_key: str, prompt: str, size: str) -> ProviderResult:
    """Generate an image URL, trying the primary model then the secondary one.

    The secondary attempt is not a transient-fault retry: it uses a shorter
    prompt and a fixed smaller size because the cheaper model requires them.
    """
    try:
        return await _openai_image(
            client,
            api_key,
            {
                "model": config.IMAGE_MODEL_PRIMARY,
                "prompt": prompt,
                "n": 1,
                "size": size,
                "quality": "standard",
                "response_format": "url",
            },
        )
    except ProviderUnavailable as exc:
        logger.warning("%s failed (%s), trying %s", config.IMAGE_MODEL_PRIMARY, exc, config.IMAGE_MODEL_SECONDARY)

    return await _openai_image(
        client,
        api_key,
        {
            "model": config.IMAGE_MODEL_SECONDARY,
            "prompt": prompt[:SECONDARY_PROMPT_LIMIT],
            "n": 1,
            "size": SECONDARY_IMAGE_SIZE,
            "response_format": "url",
        },
    )


async def generate_image_fal(client: httpx.AsyncClient, api_key: str, prompt: str) -> ProviderResult:
    response = await _post(
        client,
        "Fal.ai",
        config.FAL_SDXL_URL,
        timeout=120.0,
        headers={"Authorization": f"Key {api_key}", "Content-Type": "application/json"},
        json={
            "prompt": prompt,
            "image_size": "square_hd",
            "num_inference_steps": 25,
            "guidance_scale": 7.5,
            "num_images": 1,
            "enable_safety_checker": True,
        },
    )
    payload = _json("Fal.ai", response)
    return ProviderResult(payload=_image_url("Fal.ai", payload, "images"), model="stable-diffusion-xl")
