from __future__ import annotations

from typing import Optional
from .exceptions import SpeechError
from fridgechef.config import Settings
from .clients import AsyncOpenAI, build_openai_client


MEDIA_TYPES = {
    "mp3": "audio/mpeg",
    "opus": "audio/ogg",
    "aac": "audio/aac",
    "flac": "audio/flac",
    "wav": "audio/wav",
    "pcm": "audio/L16",
}


class OpenAISpeechSynthesizer:
    """
    Thin wrapper around the OpenAI speech endpoint. No fallback: errors bubble as SpeechError.
    """
    def __init__(self, settings: Settings, client: Optional[AsyncOpenAI] = None):
        self._client = client or build_openai_client(settings)
        self.model_name = settings.openai_model_tts
        self.voice = settings.openai_tts_voice
        self.response_format = settings.openai_tts_format

    @property
    def media_type(self) -> str:
        return MEDIA_TYPES.get(self.response_format, "application/octet-stream")

    async def synthesize(self, text: str) -> bytes:
        if not text.strip():
            raise SpeechError("Nothing to synthesize")
        try:
            resp = await self._client.audio.speech.create(
                model=self.model_name,
                voice=self.voice,
                input=text,
                response_format=self.response_format,
            )
            return await resp.aread()
        except Exception as e:
            raise SpeechError(f"Speech synthesis failed: {e}") from e
