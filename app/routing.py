import logging
from collections.abc import AsyncIterator, Awaitable, Callable
from dataclasses import dataclass
from typing import Any

import httpx

from app.providers import ProviderResult, ProviderUnavailable

logger = logging.getLogger(__name__)

SOURCE_OPENAI = "openai"
SOURCE_FAL = "fal"
SOURCE_FALLBACK = "fallback"
SOURCE_FALLBACK_AFTER_ERROR = "fallback_after_error"

UNAVAILABLE_ERROR = "API temporarily unavailable"


@dataclass
class Outcome:
    payload: Any
    source: str
    model: str | None = None
    usage: dict[str, Any] | None = None
    error: str | None = None


async def get_http_client() -> AsyncIterator[httpx.AsyncClient]:
    async with httpx.AsyncClient(timeout=60.0) as client:
        yield client


async def with_fallback(
    operation: str,
    api_key: str | None,
    provider_call: Callable[[str], Awaitable[ProviderResult]],
    fallback: Callable[[], Any],
    provider_source: str = SOURCE_OPENAI,
    note: str | None = None,
) -> Outcome:
    """Run ``provider_call`` when a key is configured, else ``fallback``.

    A provider failure is never propagated: it is logged and replaced by the
    fallback payload tagged ``fallback_after_error``. When ``note`` is given
    and the fallback payload is text, the note is appended to it.
    """
    if api_key is None:
        logger.info("%s: provider credential not configured, using fallback", operation)
        return Outcome(payload=fallback(), source=SOURCE_FALLBACK)

    try:
        result = await provider_call(api_key)
    except ProviderUnavailable as exc:
        logger.warning("%s: provider unavailable, using fallback: %s", operation, exc)
        payload = fallback()
        if note and isinstance(payload, str):
            payload = f"{payload} {note}"
        return Outcome(payload=payload, source=SOURCE_FALLBACK_AFTER_ERROR, error=UNAVAILABLE_ERROR)

    return Outcome(payload=result.payload, source=provider_source, model=result.model, usage=result.usage)
