from __future__ import annotations

import asyncio
from typing import Optional

from fastapi import APIRouter, Depends, Header, HTTPException, Request, Response, status
from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from fridgechef.config import Settings
from fridgechef.core.models import Recipe
from fridgechef.core.narration import NarrationState
from fridgechef.services.exceptions import NarrationSessionNotFound, SpeechError
from fridgechef.services.narration import NarrationRegistry, OpenSession
from fridgechef.services.speech import OpenAISpeechSynthesizer

router = APIRouter(prefix="/api/v1/narration", tags=["narration"])

# ---- DI helpers --------------------------------------------------------------

def get_settings() -> Settings:
    return Settings()

def get_registry(request: Request) -> NarrationRegistry:
    return request.app.state.narration

def get_speech(request: Request, settings: Settings = Depends(get_settings)) -> OpenAISpeechSynthesizer:
    return OpenAISpeechSynthesizer(settings, client=request.app.state.openai)

def get_session(session_id: str, registry: NarrationRegistry = Depends(get_registry)) -> OpenSession:
    try:
        return registry.get(session_id)
    except NarrationSessionNotFound as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))

# ---- Models ------------------------------------------------------------------

class _Camel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class UtteranceView(_Camel):
    id: str
    text: str
    audio_url: str


class NarrationSnapshot(_Camel):
    session_id: str
    recipe_name: str
    state: NarrationState
    speaking: bool
    current_step: int
    step_count: int
    utterance: Optional[UtteranceView] = None


class PlaybackFailure(BaseModel):
    reason: str = ""


def snapshot(entry: OpenSession, request: Request) -> NarrationSnapshot:
    s = entry.session
    utterance = None
    current = entry.engine.current
    if s.speaking and current is not None:
        utterance = UtteranceView(
            id=current.id,
            text=current.text,
            audio_url=str(request.url_for("utterance_audio", session_id=entry.id, utterance_id=current.id)),
        )
    return NarrationSnapshot(
        session_id=entry.id,
        recipe_name=entry.recipe.name,
        state=s.state,
        speaking=s.speaking,
        current_step=s.current_step,
        step_count=s.step_count,
        utterance=utterance,
    )

# ---- Routes ------------------------------------------------------------------
# All handlers are async: the state machine and its futures live on the event loop.

@router.post("/sessions", response_model=NarrationSnapshot, status_code=status.HTTP_201_CREATED)
async def open_session(
    recipe: Recipe,
    request: Request,
    registry: NarrationRegistry = Depends(get_registry),
    x_device_id: Optional[str] = Header(default=None),
):
    # a device narrates one recipe at a time; reopening replaces its previous session
    entry = registry.open(recipe, client_key=x_device_id)
    return snapshot(entry, request)


@router.get("/sessions/{session_id}", response_model=NarrationSnapshot)
async def get_narration(request: Request, entry: OpenSession = Depends(get_session)):
    return snapshot(entry, request)


@router.post("/sessions/{session_id}/play", response_model=NarrationSnapshot)
async def play(request: Request, entry: OpenSession = Depends(get_session)):
    entry.session.play()
    return snapshot(entry, request)


@router.post("/sessions/{session_id}/pause", response_model=NarrationSnapshot)
async def pause(request: Request, entry: OpenSession = Depends(get_session)):
    entry.session.pause()
    return snapshot(entry, request)


@router.post("/sessions/{session_id}/stop", response_model=NarrationSnapshot)
async def stop(request: Request, entry: OpenSession = Depends(get_session)):
    entry.session.stop()
    return snapshot(entry, request)


@router.post("/sessions/{session_id}/utterances/{utterance_id}/finished", response_model=NarrationSnapshot)
async def utterance_finished(utterance_id: str, request: Request, entry: OpenSession = Depends(get_session)):
    if not entry.engine.finish(utterance_id):
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Utterance is not playing")
    await asyncio.sleep(0)  # let the session consume the completion
    return snapshot(entry, request)


@router.post("/sessions/{session_id}/utterances/{utterance_id}/failed", response_model=NarrationSnapshot)
async def utterance_failed(
    utterance_id: str,
    failure: PlaybackFailure,
    request: Request,
    entry: OpenSession = Depends(get_session),
):
    if not entry.engine.fail(utterance_id, failure.reason):
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Utterance is not playing")
    await asyncio.sleep(0)
    return snapshot(entry, request)


@router.get("/sessions/{session_id}/utterances/{utterance_id}/audio", name="utterance_audio")
async def utterance_audio(
    utterance_id: str,
    entry: OpenSession = Depends(get_session),
    speech: OpenAISpeechSynthesizer = Depends(get_speech),
):
    utt = entry.engine.lookup(utterance_id)
    if utt is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Utterance is not current")
    try:
        audio = await speech.synthesize(utt.text)
    except SpeechError as e:
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=str(e))
    return Response(content=audio, media_type=speech.media_type)


@router.delete("/sessions/{session_id}", status_code=status.HTTP_204_NO_CONTENT)
async def close_session(session_id: str, registry: NarrationRegistry = Depends(get_registry)):
    try:
        registry.close(session_id)
    except NarrationSessionNotFound as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    return Response(status_code=status.HTTP_204_NO_CONTENT)
