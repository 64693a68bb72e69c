from __future__ import annotations

from enum import Enum
from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field

from fridgechef.config import Settings
from fridgechef.services.metrics import MetricsLogger

router = APIRouter(prefix="/api/v1/metrics", tags=["metrics"])


def get_settings() -> Settings:
    return Settings()


class UIEvent(str, Enum):
    """What the front-end times: card grid paint, image load, first narration audio."""
    RECIPES_RENDER = "recipes_render"
    RECIPE_IMAGE_LOAD = "recipe_image_load"
    NARRATION_AUDIO_START = "narration_audio_start"


class UILatency(BaseModel):
    name: UIEvent
    duration_ms: float = Field(..., ge=0)
    recipe_name: Optional[str] = Field(None, max_length=200)
    extra: Optional[Dict[str, Any]] = None


@router.post("/ui")
def log_ui_latency(payload: UILatency, settings: Settings = Depends(get_settings)):
    extra = dict(payload.extra or {})
    if payload.recipe_name:
        extra["recipe"] = payload.recipe_name
    MetricsLogger(settings).log_latency(payload.name.value, payload.duration_ms, origin="frontend", extra=extra)
    return {"ok": True}
