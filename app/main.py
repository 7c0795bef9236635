import base64
import logging
from contextlib import asynccontextmanager
from typing import Any

import httpx
from dotenv import load_dotenv
from fastapi import Depends, FastAPI, File, Form, HTTPException, Request, UploadFile
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from app import config, fallbacks, providers, signs
from app.routing import (
    SOURCE_FAL,
    SOURCE_FALLBACK_AFTER_ERROR,
    get_http_client,
    with_fallback,
)
from app.schemas import (
    ChatRequest,
    ChatResponse,
    DescribeImageResponse,
    EnvironmentRequest,
    EnvironmentResponse,
    ImageRequest,
    ImageResponse,
    SignLanguageRequest,
    SignLanguageResponse,
    SignVideoRequest,
    SignVideoResponse,
    SpeechRequest,
    TranscriptionResponse,
)

logger = logging.getLogger(__name__)

VISION_UNAVAILABLE_NOTE = "(Note: AI vision service temporarily unavailable)"
TRANSCRIPTION_UNAVAILABLE_NOTE = "(Note: AI transcription service temporarily unavailable)"

OPENAI_IMAGE_SUFFIX = "Professional photography style, good lighting, clear details, vibrant colors."
FAL_IMAGE_SUFFIX = "high quality, detailed, photorealistic, professional photography, 8k resolution, masterpiece"


def _enhance_openai_prompt(prompt: str) -> str:
    return f"High quality, detailed, photorealistic image of {prompt}. {OPENAI_IMAGE_SUFFIX}"


def _enhance_fal_prompt(prompt: str) -> str:
    return f"{prompt}, {FAL_IMAGE_SUFFIX}"


async def _read_upload(upload: UploadFile | None, kind: str, missing_detail: str, invalid_detail: str) -> bytes:
    if upload is None:
        raise HTTPException(status_code=400, detail=missing_detail)
    if not (upload.content_type or "").startswith(f"{kind}/"):
        raise HTTPException(status_code=400, detail=invalid_detail)
    content = await upload.read()
    if not content:
        raise HTTPException(status_code=400, detail=f"The uploaded {kind} file is empty.")
    return content


@asynccontextmanager
async def lifespan(_: FastAPI):
    load_dotenv()
    logging.basicConfig(
        level=config.log_level(),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
    yield


app = FastAPI(title="SensAble", lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(StarletteHTTPException)
async def http_error_handler(_: Request, exc: StarletteHTTPException) -> JSONResponse:
    body = exc.detail if isinstance(exc.detail, dict) else {"error": exc.detail}
    return JSONResponse(status_code=exc.status_code, content=body, headers=getattr(exc, "headers", None))


@app.exception_handler(RequestValidationError)
async def validation_error_handler(_: Request, exc: RequestValidationError) -> JSONResponse:
    errors = jsonable_encoder(exc.errors())
    if any(error.get("type") == "json_invalid" for error in errors):
        logger.error("Malformed request body: %s", errors)
        return JSONResponse(
            status_code=500,
            content={"error": "Failed to process request", "details": "Request body is not valid JSON."},
        )
    return JSONResponse(status_code=400, content={"error": "Invalid request body", "details": errors})


@app.exception_handler(Exception)
async def internal_error_handler(_: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled error")
    return JSONResponse(
        status_code=500,
        content={"error": "Failed to process request", "details": str(exc) or exc.__class__.__name__},
    )


@app.get("/health")
async def health() -> dict[str, str]:
    return {"status": "healthy"}


@app.get("/api/providers")
async def get_providers() -> dict[str, Any]:
    result = {}
    for provider_id, details in config.PROVIDERS.items():
        result[provider_id] = {
            **details,
            "hasKey": config.provider_key(provider_id) is not None,
        }
    return {"providers": result}


@app.post("/api/chat", response_model=ChatResponse, response_model_exclude_none=True)
async def chat(payload: ChatRequest, client: httpx.AsyncClient = Depends(get_http_client)) -> ChatResponse:
    message = payload.message.strip()
    if not message:
        raise HTTPException(status_code=400, detail="Message is required")

    outcome = await with_fallback(
        "chat",
        config.openai_api_key(),
        lambda api_key: providers.chat(client, api_key, message, payload.context.strip()),
        lambda: fallbacks.chat_reply(message),
    )
    return ChatResponse(response=outcome.payload, source=outcome.source, usage=outcome.usage, error=outcome.error)


@app.post("/api/analyze-environment", response_model=EnvironmentResponse, response_model_exclude_none=True)
async def analyze_environment(
    payload: EnvironmentRequest, client: httpx.AsyncClient = Depends(get_http_client)
) -> EnvironmentResponse:
    request_type = payload.requestType.strip() or "general"

    outcome = await with_fallback(
        "analyze-environment",
        config.openai_api_key(),
        lambda api_key: providers.analyze_environment(client, api_key, request_type, payload.context.strip()),
        lambda: fallbacks.environment_analysis(request_type),
    )
    return EnvironmentResponse(
        analysis=outcome.payload,
        source=outcome.source,
        type=request_type,
        usage=outcome.usage,
        error=outcome.error,
    )


@app.post("/api/describe-image", response_model=DescribeImageResponse, response_model_exclude_none=True)
async def describe_image(
    image: UploadFile | None = File(default=None),
    client: httpx.AsyncClient = Depends(get_http_client),
) -> DescribeImageResponse:
    content = await _read_upload(image, "image", "No image file provided.", "Please upload a valid image file.")
    filename = image.filename or "image"
    mime_type = image.content_type or "image/png"

    outcome = await with_fallback(
        "describe-image",
        config.openai_api_key(),
        lambda api_key: providers.describe_image(client, api_key, content, mime_type),
        lambda: fallbacks.image_description(filename, len(content)),
        note=VISION_UNAVAILABLE_NOTE,
    )
    return DescribeImageResponse(description=outcome.payload, source=outcome.source, error=outcome.error)


@app.post("/api/speech-to-text", response_model=TranscriptionResponse, response_model_exclude_none=True)
async def speech_to_text(
    audio: UploadFile | None = File(default=None),
    language: str = Form("en"),
    client: httpx.AsyncClient = Depends(get_http_client),
) -> TranscriptionResponse:
    content = await _read_upload(
        audio,
        "audio",
        "Audio file is required",
        "Invalid file type: please upload a valid audio file.",
    )
    filename = audio.filename or "recording.wav"
    mime_type = audio.content_type or "audio/wav"
    language = language.strip() or "en"

    outcome = await with_fallback(
        "speech-to-text",
        config.openai_api_key(),
        lambda api_key: providers.transcribe(client, api_key, filename, content, mime_type, language),
        lambda: fallbacks.transcription(len(content)),
        note=TRANSCRIPTION_UNAVAILABLE_NOTE,
    )
    if isinstance(outcome.payload, dict):
        text, duration = outcome.payload["text"], outcome.payload.get("duration")
    else:
        text, duration = outcome.payload, fallbacks.estimate_duration(len(content))

    return TranscriptionResponse(
        text=text,
        language=language,
        duration=duration,
        source=outcome.source,
        error=outcome.error,
    )


@app.post("/api/text-to-speech")
async def text_to_speech(payload: SpeechRequest, client: httpx.AsyncClient = Depends(get_http_client)) -> dict[str, Any]:
    text = payload.text.strip()
    if not text:
        raise HTTPException(status_code=400, detail="Text is required")

    outcome = await with_fallback(
        "text-to-speech",
        config.openai_api_key(),
        lambda api_key: providers.synthesize_speech(client, api_key, text, payload.voice, payload.speed),
        lambda: fallbacks.speech_instructions(text, payload.voice, payload.speed),
    )
    if isinstance(outcome.payload, bytes):
        audio_b64 = base64.b64encode(outcome.payload).decode("utf-8")
        return {
            "audioData": f"data:audio/mp3;base64,{audio_b64}",
            "voice": payload.voice,
            "speed": payload.speed,
            "text": text,
            "source": outcome.source,
        }

    body: dict[str, Any] = {
        "fallback": True,
        "instructions": outcome.payload,
        "source": outcome.source,
    }
    if outcome.error:
        body["error"] = outcome.error
    return body


@app.post("/api/generate-image", response_model=ImageResponse, response_model_exclude_none=True)
async def generate_image(payload: ImageRequest, client: httpx.AsyncClient = Depends(get_http_client)) -> ImageResponse:
    prompt = payload.prompt.strip()
    if not prompt:
        raise HTTPException(status_code=400, detail="Prompt is required")

    api_key = config.openai_api_key()
    if api_key is None:
        raise HTTPException(status_code=503, detail={"error": "OpenAI API key not configured", "fallback": True})

    enhanced = _enhance_openai_prompt(prompt)
    outcome = await with_fallback(
        "generate-image",
        api_key,
        lambda key: providers.generate_image(client, key, enhanced, payload.size),
        lambda: fallbacks.placeholder_image_url(prompt, payload.size),
    )
    degraded = outcome.source == SOURCE_FALLBACK_AFTER_ERROR or outcome.model == config.IMAGE_MODEL_SECONDARY
    return ImageResponse(
        imageUrl=outcome.payload,
        model=outcome.model,
        prompt=enhanced,
        source=outcome.source,
        usage=outcome.usage,
        fallback=True if degraded else None,
        error=outcome.error,
    )


@app.post("/api/generate-image-fal", response_model=ImageResponse, response_model_exclude_none=True)
async def generate_image_fal(
    payload: ImageRequest, client: httpx.AsyncClient = Depends(get_http_client)
) -> ImageResponse:
    prompt = payload.prompt.strip()
    if not prompt:
        raise HTTPException(status_code=400, detail="Prompt is required")

    enhanced = _enhance_fal_prompt(prompt)
    outcome = await with_fallback(
        "generate-image-fal",
        config.fal_api_key(),
        lambda api_key: providers.generate_image_fal(client, api_key, enhanced),
        lambda: fallbacks.placeholder_image_url(prompt),
        provider_source=SOURCE_FAL,
    )
    return ImageResponse(
        imageUrl=outcome.payload,
        model=outcome.model,
        prompt=enhanced,
        source=outcome.source,
        error=outcome.error,
    )


@app.post("/api/generate-sign-language", response_model=SignLanguageResponse)
async def generate_sign_language(payload: SignLanguageRequest) -> SignLanguageResponse:
    if not payload.text.strip():
        raise HTTPException(status_code=400, detail="Text is required")
    return SignLanguageResponse(**signs.translate(payload.text, payload.language))


@app.post("/api/generate-sign-video", response_model=SignVideoResponse)
async def generate_sign_video(payload: SignVideoRequest) -> SignVideoResponse:
    text = payload.text.strip()
    if not text:
        raise HTTPException(status_code=400, detail="Text is required")
    return SignVideoResponse(videoUrl=fallbacks.sign_video_url(text), text=text, duration="5 seconds")
