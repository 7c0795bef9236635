from typing import Any

from pydantic import BaseModel


class ChatRequest(BaseModel):
    message: str = ""
    context: str = ""


class ChatResponse(BaseModel):
    response: str
    source: str
    usage: dict[str, Any] | None = None
    error: str | None = None


class EnvironmentRequest(BaseModel):
    context: str = ""
    requestType: str = "general"


class EnvironmentResponse(BaseModel):
    analysis: str
    source: str
    type: str
    usage: dict[str, Any] | None = None
    error: str | None = None


class DescribeImageResponse(BaseModel):
    description: str
    source: str
    error: str | None = None


class TranscriptionResponse(BaseModel):
    text: str
    language: str
    duration: float | None = None
    source: str
    error: str | None = None


class SpeechRequest(BaseModel):
    text: str = ""
    voice: str = "alloy"
    speed: float = 1.0


class ImageRequest(BaseModel):
    prompt: str = ""
    size: str = "1024x1024"


class ImageResponse(BaseModel):
    imageUrl: str
    model: str | None = None
    prompt: str
    source: str
    usage: dict[str, Any] | None = None
    fallback: bool | None = None
    error: str | None = None


class SignWord(BaseModel):
    word: str
    signImage: str
    gloss: str
    description: str


class SignLanguageRequest(BaseModel):
    text: str = ""
    language: str = "en"
    format: str = "gloss"


class SignLanguageResponse(BaseModel):
    words: list[SignWord]
    fullGloss: str
    originalText: str
    language: str


class SignVideoRequest(BaseModel):
    text: str = ""


class SignVideoResponse(BaseModel):
    videoUrl: str
    text: str
    duration: str
