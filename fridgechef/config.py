from __future__ import annotations
from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field
from typing import Optional, List
from dotenv import load_dotenv
load_dotenv()  # populates os.environ from .env


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    # Gateway
    openai_api_key: str = Field(...)
    openai_model_vision: str = "gpt-4o-mini"
    openai_model_recipes: str = "gpt-4o-mini"
    openai_model_image: str = "gpt-image-1"
    openai_image_size: str = "1024x1024"
    openai_timeout_s: Optional[float] = None
    recipe_count: int = Field(5, ge=1)

    # Speech
    openai_model_tts: str = "tts-1"
    openai_tts_voice: str = "alloy"
    openai_tts_format: str = "mp3"

    # Narration
    narration_max_sessions: int = Field(256, ge=1)

    # Metrics
    data_dir: str = "data"

    # Logging / tracing
    log_level: str = "INFO"
    telemetry_enabled: bool = False
    otlp_endpoint: str = "http://127.0.0.1:6006/v1/traces"

    # CORS
    cors_allow_origins: List[str] = Field(default_factory=lambda: ["http://127.0.0.1:5173"])
