from __future__ import annotations

from .exceptions import ServiceError
from fridgechef.config import Settings

try:
    from openai import AsyncOpenAI
except Exception as e:  # pragma: no cover
    raise ServiceError("Failed to import OpenAI SDK. Install with `pip install openai`") from e


def build_openai_client(settings: Settings) -> AsyncOpenAI:
    """
    The one AsyncOpenAI client the app shares for recipes, images and speech.
    Single-shot: no SDK retries.
    """
    kwargs = {"api_key": settings.openai_api_key, "max_retries": 0}
    if settings.openai_timeout_s is not None:
        kwargs["timeout"] = settings.openai_timeout_s
    try:
        return AsyncOpenAI(**kwargs)
    except Exception as e:
        raise ServiceError("Could not initialize OpenAI client") from e
