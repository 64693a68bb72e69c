from __future__ import annotations

import asyncio
import logging
import uuid
from dataclasses import dataclass, field
from typing import Dict, Optional

from .exceptions import NarrationSessionNotFound
from fridgechef.core.models import Recipe
from fridgechef.core.narration import NarrationEngine, NarrationSession

logger = logging.getLogger(__name__)


@dataclass
class Utterance:
    id: str
    text: str
    future: asyncio.Future
    paused: bool = False


class ClientPlaybackEngine(NarrationEngine):
    """
    The browser does the actual playback. `speak` hands out an utterance id;
    the client fetches its audio, plays it and reports back through
    `finish` or `fail`, which resolve the future the session is waiting on.
    """

    def __init__(self) -> None:
        self._current: Optional[Utterance] = None

    @property
    def current(self) -> Optional[Utterance]:
        return self._current

    def speak(self, text: str) -> "asyncio.Future[None]":
        self.cancel()  # one utterance at a time
        fut = asyncio.get_running_loop().create_future()
        self._current = Utterance(id=uuid.uuid4().hex, text=text, future=fut)
        return fut

    def pause(self) -> None:
        if self._current is not None:
            self._current.paused = True

    def cancel(self) -> None:
        utt, self._current = self._current, None
        if utt is not None and not utt.future.done():
            utt.future.cancel()

    def lookup(self, utterance_id: str) -> Optional[Utterance]:
        if self._current is not None and self._current.id == utterance_id:
            return self._current
        return None

    def finish(self, utterance_id: str) -> bool:
        """Client reports the utterance played to the end."""
        utt = self._take(utterance_id)
        if utt is None:
            return False
        utt.future.set_result(None)
        return True

    def fail(self, utterance_id: str, reason: str) -> bool:
        """Client reports playback could not happen."""
        utt = self._take(utterance_id)
        if utt is None:
            return False
        utt.future.set_exception(RuntimeError(reason or "playback failed"))
        return True

    def _take(self, utterance_id: str) -> Optional[Utterance]:
        utt = self.lookup(utterance_id)
        if utt is None or utt.paused or utt.future.done():
            return None
        self._current = None
        return utt


@dataclass
class OpenSession:
    id: str
    recipe: Recipe
    engine: ClientPlaybackEngine = field(default_factory=ClientPlaybackEngine)
    client_key: Optional[str] = None
    session: NarrationSession = field(init=False)

    def __post_init__(self) -> None:
        self.session = NarrationSession(self.recipe.instructions, self.engine)


class NarrationRegistry:
    """
    In-memory narration sessions for recipes currently open in a browser.

    Bounded: a client key keeps at most one session (opening another replaces
    it), and past `max_sessions` the oldest session is closed and dropped.
    """

    def __init__(self, max_sessions: int = 256) -> None:
        if max_sessions < 1:
            raise ValueError("max_sessions must be >= 1")
        self.max_sessions = max_sessions
        self._sessions: Dict[str, OpenSession] = {}  # insertion order == age
        self._by_client: Dict[str, str] = {}

    def __len__(self) -> int:
        return len(self._sessions)

    def open(self, recipe: Recipe, client_key: Optional[str] = None) -> OpenSession:
        if client_key and client_key in self._by_client:
            logger.info("Replacing narration session for client %s", client_key)
            self.close(self._by_client[client_key])
        while len(self._sessions) >= self.max_sessions:
            oldest = next(iter(self._sessions))
            logger.info("Evicting narration session %s (limit %d)", oldest, self.max_sessions)
            self.close(oldest)
        entry = OpenSession(id=uuid.uuid4().hex, recipe=recipe, client_key=client_key or None)
        self._sessions[entry.id] = entry
        if entry.client_key:
            self._by_client[entry.client_key] = entry.id
        return entry

    def get(self, session_id: str) -> OpenSession:
        try:
            return self._sessions[session_id]
        except KeyError:
            raise NarrationSessionNotFound(f"No narration session {session_id}") from None

    def close(self, session_id: str) -> None:
        entry = self._sessions.pop(session_id, None)
        if entry is None:
            raise NarrationSessionNotFound(f"No narration session {session_id}")
        if entry.client_key and self._by_client.get(entry.client_key) == session_id:
            del self._by_client[entry.client_key]
        entry.session.close()

    def close_all(self) -> None:
        for sid in list(self._sessions):
            self.close(sid)
