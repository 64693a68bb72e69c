# tests/unit/test_speech.py
import asyncio
from types import SimpleNamespace

import pytest

from fridgechef.config import Settings
from fridgechef.services.exceptions import SpeechError
from fridgechef.services.speech import OpenAISpeechSynthesizer


class _Audio:
    def __init__(self, data):
        self._data = data

    async def aread(self):
        return self._data


def _client(exc=None):
    requests = []

    async def create(**kwargs):
        requests.append(kwargs)
        if exc:
            raise exc
        return _Audio(b"ID3fake")

    return SimpleNamespace(audio=SimpleNamespace(speech=SimpleNamespace(create=create))), requests


def test_synthesize_uses_configured_voice():
    client, requests = _client()
    tts = OpenAISpeechSynthesizer(Settings(openai_api_key="test", openai_tts_voice="nova"), client=client)
    assert asyncio.run(tts.synthesize("Step 1. Whisk.")) == b"ID3fake"
    assert requests[0]["voice"] == "nova"
    assert requests[0]["input"] == "Step 1. Whisk."
    assert tts.media_type == "audio/mpeg"


def test_synthesize_wraps_errors():
    client, _ = _client(exc=RuntimeError("quota"))
    tts = OpenAISpeechSynthesizer(Settings(openai_api_key="test"), client=client)
    with pytest.raises(SpeechError, match="quota"):
        asyncio.run(tts.synthesize("Step 1. Whisk."))


def test_synthesize_refuses_blank_text():
    client, requests = _client()
    tts = OpenAISpeechSynthesizer(Settings(openai_api_key="test"), client=client)
    with pytest.raises(SpeechError):
        asyncio.run(tts.synthesize("  "))
    assert requests == []
