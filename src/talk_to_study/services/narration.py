"""Text-to-speech narration with progress, pause and volume control."""

import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Protocol

from talk_to_study.domain.speech import NarrationSnapshot, NarrationState, Utterance

_logger = logging.getLogger(__name__)

NarrationListener = Callable[[NarrationSnapshot], None]


class NarrationEvents(Protocol):
    """Callbacks a speech backend fires while an utterance plays."""

    def on_boundary(self, char_index: int) -> None:
        """Report that speech reached ``char_index`` of the utterance text."""

    def on_end(self) -> None:
        """Report natural completion."""

    def on_error(self, error: Exception) -> None:
        """Report a backend failure."""


class SpeechSynthesizer(Protocol):
    """Platform text-to-speech backend; plays one utterance at a time."""

    def speak(self, utterance: Utterance, events: NarrationEvents) -> None:
        """Start speaking, replacing anything already playing."""

    def cancel(self) -> None:
        """Stop playback immediately."""

    def pause(self) -> None:
        """Pause playback."""

    def resume(self) -> None:
        """Resume paused playback."""

    def set_volume(self, volume: float) -> None:
        """Change the volume of the current utterance."""


@dataclass(frozen=True)
class _UtteranceEvents:
    """Routes backend events for one utterance back to its narrator."""

    narrator: "SpeechNarrator"
    token: int

    def on_boundary(self, char_index: int) -> None:
        self.narrator._handle_boundary(self.token, char_index)

    def on_end(self) -> None:
        self.narrator._handle_end(self.token)

    def on_error(self, error: Exception) -> None:
        self.narrator._handle_error(self.token, error)


@dataclass
class SpeechNarrator:
    """Drives at most one narration session at a time.

    Backend failures never reach the caller: they are logged and the narrator
    falls back to idle.
    """

    synthesizer: SpeechSynthesizer | None
    rate: float = 0.9
    volume: float = 1.0
    _text: str = field(default="", init=False)
    _locale_tag: str = field(default="", init=False)
    _progress: float = field(default=0.0, init=False)
    _state: NarrationState = field(default=NarrationState.IDLE, init=False)
    _token: int = field(default=0, init=False)
    _listeners: list[NarrationListener] = field(default_factory=list, init=False)

    def __post_init__(self) -> None:
        self.volume = _clamp(self.volume, 0.0, 1.0)

    @property
    def state(self) -> NarrationState:
        return self._state

    @property
    def progress(self) -> float:
        return self._progress

    @property
    def available(self) -> bool:
        return self.synthesizer is not None

    def snapshot(self) -> NarrationSnapshot:
        """Return the observable narration state."""
        return NarrationSnapshot(
            text=self._text,
            locale_tag=self._locale_tag,
            volume=self.volume,
            progress_percent=self._progress,
            state=self._state,
        )

    def add_listener(self, listener: NarrationListener) -> Callable[[], None]:
        """Register a change listener and return a function that removes it."""
        self._listeners.append(listener)

        def remove() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return remove

    def start(self, text: str, locale_tag: str, volume: float | None = None) -> None:
        """Speak ``text``, stopping any narration already in progress."""
        self.stop()
        if self.synthesizer is None:
            _logger.info("Narration skipped: no speech synthesizer available")
            return
        if volume is not None:
            self.volume = _clamp(volume, 0.0, 1.0)
        self._token += 1
        self._text = text
        self._locale_tag = locale_tag
        self._progress = 0.0
        self._state = NarrationState.SPEAKING
        self._notify()
        utterance = Utterance(
            text=text, locale_tag=locale_tag, volume=self.volume, rate=self.rate
        )
        try:
            self.synthesizer.speak(utterance, _UtteranceEvents(self, self._token))
        except Exception as exc:
            self._handle_error(self._token, exc)

    def stop(self) -> None:
        """Cancel playback and reset progress."""
        self._token += 1
        if self.synthesizer is not None and self._state in {
            NarrationState.SPEAKING,
            NarrationState.PAUSED,
        }:
            try:
                self.synthesizer.cancel()
            except Exception as exc:
                _logger.warning("Speech cancel failed: %s", exc)
        changed = self._state is not NarrationState.IDLE or self._progress != 0.0
        self._state = NarrationState.IDLE
        self._progress = 0.0
        if changed:
            self._notify()

    def pause(self) -> None:
        """Pause a speaking session; otherwise do nothing."""
        if self._state is not NarrationState.SPEAKING or self.synthesizer is None:
            return
        try:
            self.synthesizer.pause()
        except Exception as exc:
            self._handle_error(self._token, exc)
            return
        self._state = NarrationState.PAUSED
        self._notify()

    def resume(self) -> None:
        """Resume a paused session; otherwise do nothing."""
        if self._state is not NarrationState.PAUSED or self.synthesizer is None:
            return
        try:
            self.synthesizer.resume()
        except Exception as exc:
            self._handle_error(self._token, exc)
            return
        self._state = NarrationState.SPEAKING
        self._notify()

    def toggle_pause(self) -> None:
        if self._state is NarrationState.PAUSED:
            self.resume()
        else:
            self.pause()

    def set_volume(self, volume: float) -> None:
        """Set the volume for the current and future sessions."""
        self.volume = _clamp(volume, 0.0, 1.0)
        if self.synthesizer is not None and self._state in {
            NarrationState.SPEAKING,
            NarrationState.PAUSED,
        }:
            try:
                self.synthesizer.set_volume(self.volume)
            except Exception as exc:
                _logger.warning("Speech volume change failed: %s", exc)
        self._notify()

    def _handle_boundary(self, token: int, char_index: int) -> None:
        if token != self._token or self._state is not NarrationState.SPEAKING:
            return
        total = len(self._text)
        if total == 0:
            return
        percent = _clamp(char_index / total * 100, 0.0, 100.0)
        if percent > self._progress:
            self._progress = percent
            self._notify()

    def _handle_end(self, token: int) -> None:
        if token != self._token:
            return
        self._progress = 100.0
        self._state = NarrationState.ENDED
        self._notify()

    def _handle_error(self, token: int, error: Exception) -> None:
        if token != self._token:
            return
        _logger.warning("Narration failed: %s", error)
        self._token += 1
        self._state = NarrationState.IDLE
        self._progress = 0.0
        self._notify()

    def _notify(self) -> None:
        snapshot = self.snapshot()
        for listener in list(self._listeners):
            try:
                listener(snapshot)
            except Exception:
                _logger.exception("Narration listener failed")


def _clamp(value: float, low: float, high: float) -> float:
    return max(low, min(high, value))
