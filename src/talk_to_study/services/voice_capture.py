"""Single-utterance voice input."""

import asyncio
import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Protocol

from talk_to_study.domain.speech import CaptureState

_logger = logging.getLogger(__name__)

TranscriptHandler = Callable[[str], None]
CaptureListener = Callable[[CaptureState], None]


class SpeechRecognizer(Protocol):
    """Platform speech-to-text backend."""

    async def recognize_once(self, locale_tag: str) -> str:
        """Listen for one utterance and return its transcript.

        Raises ``CaptureError`` when nothing usable was heard.
        """


@dataclass
class VoiceCapture:
    """Listens for one utterance at a time and hands back its transcript."""

    recognizer: SpeechRecognizer
    on_transcript: TranscriptHandler | None = None
    _state: CaptureState = field(default=CaptureState.IDLE, init=False)
    _task: asyncio.Task[None] | None = field(default=None, init=False)
    _token: int = field(default=0, init=False)
    _listeners: list[CaptureListener] = field(default_factory=list, init=False)

    @property
    def state(self) -> CaptureState:
        return self._state

    def add_listener(self, listener: CaptureListener) -> Callable[[], None]:
        """Register a state listener and return a function that removes it."""
        self._listeners.append(listener)

        def remove() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return remove

    def start(self, locale_tag: str) -> bool:
        """Begin listening in ``locale_tag``; returns False if already listening.

        Must be called from a running event loop.
        """
        if self._state is CaptureState.LISTENING:
            return False
        self._token += 1
        self._set_state(CaptureState.LISTENING)
        self._task = asyncio.get_running_loop().create_task(
            self._listen(self._token, locale_tag)
        )
        return True

    def stop(self) -> None:
        """End the current session without delivering a transcript."""
        if self._state is not CaptureState.LISTENING:
            return
        self._token += 1
        if self._task is not None:
            self._task.cancel()
            self._task = None
        self._set_state(CaptureState.IDLE)

    def toggle(self, locale_tag: str) -> None:
        if self._state is CaptureState.LISTENING:
            self.stop()
        else:
            self.start(locale_tag)

    async def wait(self) -> None:
        """Wait for the current session to finish, if any."""
        task = self._task
        if task is None:
            return
        try:
            await task
        except asyncio.CancelledError:
            if not task.cancelled():
                raise

    async def _listen(self, token: int, locale_tag: str) -> None:
        try:
            transcript = await self.recognizer.recognize_once(locale_tag)
        except Exception as exc:
            _logger.warning("Voice capture ended without a transcript: %s", exc)
            self._finish(token)
            return
        if token != self._token:
            return
        if transcript.strip() and self.on_transcript is not None:
            try:
                self.on_transcript(transcript)
            except Exception:
                _logger.exception("Transcript handler failed")
        self._finish(token)

    def _finish(self, token: int) -> None:
        if token != self._token:
            return
        self._task = None
        self._set_state(CaptureState.IDLE)

    def _set_state(self, state: CaptureState) -> None:
        self._state = state
        for listener in list(self._listeners):
            try:
                listener(state)
            except Exception:
                _logger.exception("Capture listener failed")
