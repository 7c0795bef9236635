import base64
import re

import httpx
import pytest

from app import fallbacks
from app.main import TRANSCRIPTION_UNAVAILABLE_NOTE, VISION_UNAVAILABLE_NOTE
from tests.conftest import chat_completion

TIME_REPLY = re.compile(r"^Good (morning|afternoon|evening)! The current time is \d{1,2}:\d{2}:\d{2} (AM|PM)\.$")


def audio_file(content: bytes = b"\x00" * 32000, mime: str = "audio/webm", name: str = "recording.webm"):
    return {"audio": (name, content, mime)}


def image_file(content: bytes = b"\x89PNG" * 10, mime: str = "image/png", name: str = "photo.png"):
    return {"image": (name, content, mime)}


# Validation


@pytest.mark.parametrize(
    ("path", "body", "message"),
    [
        ("/api/chat", {"message": ""}, "Message is required"),
        ("/api/chat", {}, "Message is required"),
        ("/api/text-to-speech", {"text": "   "}, "Text is required"),
        ("/api/generate-image", {"prompt": ""}, "Prompt is required"),
        ("/api/generate-image-fal", {}, "Prompt is required"),
        ("/api/generate-sign-language", {"text": ""}, "Text is required"),
        ("/api/generate-sign-video", {}, "Text is required"),
    ],
)
def test_missing_required_field_is_rejected(client, provider, openai_key, path, body, message):
    response = client.post(path, json=body)

    assert response.status_code == 400
    assert response.json() == {"error": message}
    assert provider.requests == []


def test_speech_to_text_rejects_non_audio(client, provider, openai_key):
    response = client.post("/api/speech-to-text", files=audio_file(b"hello", "text/plain", "notes.txt"))

    assert response.status_code == 400
    assert "invalid file type" in response.json()["error"].lower()
    assert provider.requests == []


def test_speech_to_text_requires_audio(client, provider):
    response = client.post("/api/speech-to-text", data={"language": "en"})

    assert response.status_code == 400
    assert response.json() == {"error": "Audio file is required"}


def test_speech_to_text_rejects_empty_audio(client, provider):
    response = client.post("/api/speech-to-text", files=audio_file(b""))

    assert response.status_code == 400


def test_describe_image_requires_image(client, provider):
    response = client.post("/api/describe-image", data={"note": "nothing attached"})

    assert response.status_code == 400
    assert response.json() == {"error": "No image file provided."}


def test_describe_image_rejects_empty_image(client, provider, openai_key):
    response = client.post("/api/describe-image", files=image_file(b""))

    assert response.status_code == 400
    assert response.json() == {"error": "The uploaded image file is empty."}
    assert provider.requests == []


def test_describe_image_rejects_non_image(client, provider, openai_key):
    response = client.post("/api/describe-image", files=image_file(b"%PDF", "application/pdf", "file.pdf"))

    assert response.status_code == 400
    assert response.json() == {"error": "Please upload a valid image file."}
    assert provider.requests == []


def test_malformed_json_is_internal_error(client, provider):
    response = client.post("/api/chat", content=b"{not json", headers={"Content-Type": "application/json"})

    assert response.status_code == 500
    assert response.json()["error"] == "Failed to process request"


def test_wrong_body_type_is_client_error(client, provider):
    response = client.post("/api/chat", json={"message": ["a", "list"]})

    assert response.status_code == 400


# Missing configuration


def test_chat_time_without_credential(client, provider):
    response = client.post("/api/chat", json={"message": "What time is it?"})

    assert response.status_code == 200
    body = response.json()
    assert body["source"] == "fallback"
    assert TIME_REPLY.match(body["response"])
    assert provider.requests == []


def test_chat_oversized_arithmetic_still_falls_back(client, provider):
    for message in ("9" * 400 + " + 1", "9" * 400 + " / 3", "9" * 5000 + " + 1"):
        response = client.post("/api/chat", json={"message": message})

        assert response.status_code == 200
        body = response.json()
        assert body["source"] == "fallback"
        assert body["response"]


def test_google_key_counts_as_missing(client, provider, monkeypatch):
    monkeypatch.setenv("OPENAI_API_KEY", "AIzaSyExample")

    response = client.post("/api/chat", json={"message": "hello"})

    assert response.json()["source"] == "fallback"
    assert response.json()["response"] in fallbacks.GREETING_REPLIES
    assert provider.requests == []


@pytest.mark.parametrize(
    ("path", "kwargs", "field"),
    [
        ("/api/chat", {"json": {"message": "tell me something"}}, "response"),
        ("/api/analyze-environment", {"json": {"requestType": "safety"}}, "analysis"),
        ("/api/describe-image", {"files": image_file()}, "description"),
        ("/api/speech-to-text", {"files": audio_file()}, "text"),
        ("/api/generate-image-fal", {"json": {"prompt": "a lighthouse"}}, "imageUrl"),
    ],
)
def test_without_credential_uses_fallback(client, provider, path, kwargs, field):
    response = client.post(path, **kwargs)

    assert response.status_code == 200
    body = response.json()
    assert body["source"] == "fallback"
    assert body[field]
    assert "error" not in body
    assert provider.requests == []


def test_environment_fallback_matches_type(client, provider):
    body = client.post("/api/analyze-environment", json={"requestType": "navigation"}).json()

    assert body["analysis"] == fallbacks.ENVIRONMENT_ANALYSES["navigation"]
    assert body["type"] == "navigation"


def test_speech_to_text_fallback_estimates_duration(client, provider):
    body = client.post(
        "/api/speech-to-text", files=audio_file(b"\x00" * 16000 * 7), data={"language": "de"}
    ).json()

    assert body["duration"] == 7
    assert body["language"] == "de"
    assert "medium-length recording" in body["text"]


def test_text_to_speech_fallback_returns_instructions(client, provider):
    response = client.post("/api/text-to-speech", json={"text": "Read this", "voice": "nova"})

    assert response.status_code == 200
    body = response.json()
    assert body["fallback"] is True
    assert body["source"] == "fallback"
    assert body["instructions"] == fallbacks.speech_instructions("Read this", "nova", 1.0)


def test_generate_image_without_credential_is_unavailable(client, provider):
    response = client.post("/api/generate-image", json={"prompt": "a lighthouse"})

    assert response.status_code == 503
    assert response.json() == {"error": "OpenAI API key not configured", "fallback": True}
    assert provider.requests == []


# Provider failure


@pytest.mark.parametrize("failure", ["status", "network"])
def test_chat_provider_failure_degrades_to_fallback(client, provider, openai_key, failure):
    if failure == "status":
        provider.fail_with_status(503)
    else:
        provider.fail_with_network_error()

    response = client.post("/api/chat", json={"message": "hello"})

    assert response.status_code == 200
    body = response.json()
    assert body["source"] == "fallback_after_error"
    assert body["error"] == "API temporarily unavailable"
    assert body["response"]
    assert len(provider.requests) == 1


def test_malformed_provider_payload_degrades_to_fallback(client, provider, openai_key):
    provider.responder = lambda request: httpx.Response(200, json={"unexpected": True})

    body = client.post("/api/analyze-environment", json={"requestType": "people"}).json()

    assert body["source"] == "fallback_after_error"
    assert body["analysis"] == fallbacks.ENVIRONMENT_ANALYSES["people"]


def test_describe_image_failure_appends_note(client, provider, openai_key):
    provider.fail_with_status(500)

    body = client.post("/api/describe-image", files=image_file()).json()

    assert body["source"] == "fallback_after_error"
    assert body["description"].endswith(VISION_UNAVAILABLE_NOTE)
    assert body["description"].startswith("I can see an image that appears to be a photograph.")


def test_speech_to_text_failure_appends_note(client, provider, openai_key):
    provider.fail_with_network_error()

    body = client.post("/api/speech-to-text", files=audio_file()).json()

    assert body["source"] == "fallback_after_error"
    assert body["text"].endswith(TRANSCRIPTION_UNAVAILABLE_NOTE)
    assert body["duration"] == 2


def test_text_to_speech_failure_returns_instructions(client, provider, openai_key):
    provider.fail_with_status(500)

    response = client.post("/api/text-to-speech", json={"text": "Read this"})

    assert response.status_code == 200
    body = response.json()
    assert body["source"] == "fallback_after_error"
    assert body["fallback"] is True
    assert body["instructions"]["text"] == "Read this"


def test_generate_image_both_models_failing_returns_placeholder(client, provider, openai_key):
    provider.fail_with_status(500)

    response = client.post("/api/generate-image", json={"prompt": "a lighthouse"})

    assert response.status_code == 200
    body = response.json()
    assert body["source"] == "fallback_after_error"
    assert body["imageUrl"] == fallbacks.placeholder_image_url("a lighthouse")
    assert body["fallback"] is True
    assert len(provider.requests) == 2


def test_fal_failure_returns_placeholder(client, provider, fal_key):
    provider.fail_with_network_error()

    body = client.post("/api/generate-image-fal", json={"prompt": "a boat"}).json()

    assert body["source"] == "fallback_after_error"
    assert body["imageUrl"].startswith("/placeholder.svg")


# Provider success


def test_chat_provider_success(client, provider, openai_key):
    provider.responder = lambda request: chat_completion("Hello from the model", usage={"total_tokens": 9})

    response = client.post("/api/chat", json={"message": "hello"})

    assert response.status_code == 200
    assert response.json() == {
        "response": "Hello from the model",
        "source": "openai",
        "usage": {"total_tokens": 9},
    }


def test_environment_provider_success(client, provider, openai_key):
    provider.responder = lambda request: chat_completion("Busy street, cars passing.")

    body = client.post("/api/analyze-environment", json={"requestType": "sounds", "context": "outside"}).json()

    assert body == {"analysis": "Busy street, cars passing.", "source": "openai", "type": "sounds"}


def test_describe_image_provider_success(client, provider, openai_key):
    provider.responder = lambda request: chat_completion("A red bicycle leaning on a wall.")

    body = client.post("/api/describe-image", files=image_file()).json()

    assert body == {"description": "A red bicycle leaning on a wall.", "source": "openai"}


def test_speech_to_text_provider_success(client, provider, openai_key):
    provider.responder = lambda request: httpx.Response(200, json={"text": "turn left here", "duration": 1.5})

    body = client.post("/api/speech-to-text", files=audio_file()).json()

    assert body == {"text": "turn left here", "language": "en", "duration": 1.5, "source": "openai"}
    assert str(provider.requests[0].url).endswith("/audio/transcriptions")


def test_text_to_speech_provider_success(client, provider, openai_key):
    provider.responder = lambda request: httpx.Response(200, content=b"mp3-bytes")

    body = client.post("/api/text-to-speech", json={"text": "Hi", "voice": "echo", "speed": 1.5}).json()

    assert body["source"] == "openai"
    assert body["audioData"] == "data:audio/mp3;base64," + base64.b64encode(b"mp3-bytes").decode()
    assert body["voice"] == "echo"
    assert body["speed"] == 1.5


def test_generate_image_provider_success(client, provider, openai_key):
    provider.responder = lambda request: httpx.Response(200, json={"data": [{"url": "https://img/1.png"}]})

    body = client.post("/api/generate-image", json={"prompt": "a lighthouse"}).json()

    assert body["imageUrl"] == "https://img/1.png"
    assert body["model"] == "dall-e-3"
    assert body["source"] == "openai"
    assert "a lighthouse" in body["prompt"]
    assert "fallback" not in body


def test_generate_image_secondary_model_is_flagged(client, provider, openai_key):
    def respond(request):
        if b"dall-e-3" in request.content:
            return httpx.Response(400, json={"error": {"message": "nope"}})
        return httpx.Response(200, json={"data": [{"url": "https://img/2.png"}]})

    provider.responder = respond

    body = client.post("/api/generate-image", json={"prompt": "a lighthouse"}).json()

    assert body["imageUrl"] == "https://img/2.png"
    assert body["model"] == "dall-e-2"
    assert body["source"] == "openai"
    assert body["fallback"] is True


def test_fal_provider_success(client, provider, fal_key):
    provider.responder = lambda request: httpx.Response(200, json={"images": [{"url": "https://fal/1.png"}]})

    body = client.post("/api/generate-image-fal", json={"prompt": "a boat"}).json()

    assert body["imageUrl"] == "https://fal/1.png"
    assert body["source"] == "fal"
    assert body["model"] == "stable-diffusion-xl"


# Local-only routes


def test_generate_sign_language(client, provider):
    response = client.post("/api/generate-sign-language", json={"text": "thank you"})

    assert response.status_code == 200
    body = response.json()
    assert len(body["words"]) == 2
    assert body["fullGloss"] == "THANK YOU"
    assert body["originalText"] == "thank you"
    assert body["language"] == "en"


def test_generate_sign_video(client, provider):
    body = client.post("/api/generate-sign-video", json={"text": "good morning"}).json()

    assert body == {
        "videoUrl": "/placeholder-sign-video.mp4?text=good%20morning",
        "text": "good morning",
        "duration": "5 seconds",
    }


def test_providers_report_credentials(client, provider, fal_key, monkeypatch):
    monkeypatch.setenv("OPENAI_API_KEY", "AIzaWrongProvider")

    body = client.get("/api/providers").json()["providers"]

    assert body["openai"]["hasKey"] is False
    assert body["fal"]["hasKey"] is True


def test_health(client):
    assert client.get("/health").json() == {"status": "healthy"}
