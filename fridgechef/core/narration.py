# fridgechef/core/narration.py
from __future__ import annotations

import asyncio
import logging
from abc import ABC, abstractmethod
from enum import Enum
from typing import List, Optional, Sequence

logger = logging.getLogger(__name__)


class NarrationState(str, Enum):
    IDLE = "idle"
    SPEAKING = "speaking"
    PAUSED = "paused"
    COMPLETED = "completed"


class NarrationEngine(ABC):
    """
    Text-to-speech collaborator. `speak` returns a future that resolves when
    the utterance ends on its own, is cancelled when it is cut short, and
    carries an exception when playback fails.
    """

    @abstractmethod
    def speak(self, text: str) -> "asyncio.Future[None]": ...

    @abstractmethod
    def pause(self) -> None: ...

    @abstractmethod
    def cancel(self) -> None: ...


def step_text(instructions: Sequence[str], index: int) -> str:
    return f"Step {index + 1}. {instructions[index]}"


class NarrationSession:
    """
    Step-by-step narration of one recipe's instructions.

    IDLE      --play-->  SPEAKING(0)
    SPEAKING  --done-->  SPEAKING(i+1) or COMPLETED
    SPEAKING  --pause--> PAUSED(i)
    PAUSED    --play-->  SPEAKING(i), narrated again from the start of the step
    COMPLETED --play-->  SPEAKING(0)
    any       --stop-->  IDLE

    Only the completion of the utterance issued last counts; anything older
    (superseded by pause, stop or replay) is ignored.
    """

    def __init__(self, instructions: Sequence[str], engine: NarrationEngine):
        self._instructions: List[str] = list(instructions)
        self._engine = engine
        self._state = NarrationState.IDLE
        self._step = 0
        self._pending: Optional[asyncio.Future] = None
        self._text: Optional[str] = None

    # ---- read side ----------------------------------------------------------

    @property
    def state(self) -> NarrationState:
        return self._state

    @property
    def speaking(self) -> bool:
        return self._state is NarrationState.SPEAKING

    @property
    def current_step(self) -> int:
        return self._step

    @property
    def step_count(self) -> int:
        return len(self._instructions)

    @property
    def utterance_text(self) -> Optional[str]:
        return self._text if self.speaking else None

    # ---- user actions -------------------------------------------------------

    def play(self) -> None:
        if self._state is NarrationState.SPEAKING:
            return
        if self._state is NarrationState.PAUSED:
            # the suspended utterance is dropped, the step is narrated again
            self._pending = None
            self._engine.cancel()
            self._start(self._step)
        else:
            self._start(0)

    def pause(self) -> None:
        if self._state is not NarrationState.SPEAKING:
            return
        self._pending = None
        self._engine.pause()
        self._state = NarrationState.PAUSED

    def stop(self) -> None:
        self._pending = None
        self._text = None
        self._engine.cancel()
        self._state = NarrationState.IDLE
        self._step = 0

    def close(self) -> None:
        self.stop()

    # ---- internals ----------------------------------------------------------

    def _start(self, index: int) -> None:
        if index >= len(self._instructions):
            self._complete()
            return
        self._step = index
        self._state = NarrationState.SPEAKING
        self._text = step_text(self._instructions, index)
        try:
            fut = self._engine.speak(self._text)
        except Exception as e:
            logger.warning("Could not start narration of step %d: %s", index + 1, e)
            self.stop()
            return
        self._pending = fut
        fut.add_done_callback(self._on_utterance_done)

    def _on_utterance_done(self, fut: asyncio.Future) -> None:
        if fut is not self._pending:
            return
        self._pending = None
        if fut.cancelled():
            self.stop()
            return
        exc = fut.exception()
        if exc is not None:
            logger.warning("Narration of step %d failed: %s", self._step + 1, exc)
            self.stop()
            return
        self._start(self._step + 1)

    def _complete(self) -> None:
        self._pending = None
        self._text = None
        self._state = NarrationState.COMPLETED
        self._step = len(self._instructions)
