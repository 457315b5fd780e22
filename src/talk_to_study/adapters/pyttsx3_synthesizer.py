"""Local platform text-to-speech via pyttsx3."""

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Any

import pyttsx3

from talk_to_study.domain.speech import Utterance
from talk_to_study.errors import NarrationError
from talk_to_study.services.narration import NarrationEvents, SpeechSynthesizer

_logger = logging.getLogger(__name__)


@dataclass
class Pyttsx3Synthesizer(SpeechSynthesizer):
    """Speech synthesizer driven from the asyncio loop.

    pyttsx3 runs in external-loop mode, so every engine callback fires from
    ``iterate()`` on the event loop. The engine has no pause, so pausing stops
    it and resuming speaks the rest of the text from the last word boundary.
    """

    engine: Any
    poll_interval_seconds: float = 0.05
    _default_rate: float = field(default=200.0, init=False)
    _utterance: Utterance | None = field(default=None, init=False)
    _events: NarrationEvents | None = field(default=None, init=False)
    _current_name: str | None = field(default=None, init=False)
    _counter: int = field(default=0, init=False)
    _offset: int = field(default=0, init=False)
    _last_index: int = field(default=0, init=False)
    _pump: asyncio.Task[None] | None = field(default=None, init=False)
    _loop_started: bool = field(default=False, init=False)

    @classmethod
    def create(cls) -> "Pyttsx3Synthesizer | None":
        """Create a synthesizer, or None if the platform has no TTS driver."""
        try:
            engine = pyttsx3.init()
        except (ImportError, OSError, RuntimeError) as exc:
            _logger.warning("Text-to-speech unavailable: %s", exc)
            return None
        return cls(engine=engine)

    def __post_init__(self) -> None:
        self._default_rate = float(self.engine.getProperty("rate") or 200)
        self.engine.connect("started-word", self._on_word)
        self.engine.connect("finished-utterance", self._on_finished)
        self.engine.connect("error", self._on_error)

    def speak(self, utterance: Utterance, events: NarrationEvents) -> None:
        """Start speaking, replacing anything already playing."""
        self._halt()
        self._utterance = utterance
        self._events = events
        self._offset = 0
        self._last_index = 0
        voices = self.engine.getProperty("voices") or []
        voice_id = _find_voice(voices, utterance.locale_tag)
        if voice_id is not None:
            self.engine.setProperty("voice", voice_id)
        self.engine.setProperty("rate", int(self._default_rate * utterance.rate))
        self._say_from(0, utterance.volume)

    def cancel(self) -> None:
        self._halt()
        self._utterance = None
        self._events = None

    def pause(self) -> None:
        if self._utterance is None:
            return
        self._halt()

    def resume(self) -> None:
        if self._utterance is None:
            return
        self._say_from(self._last_index, self._utterance.volume)

    def set_volume(self, volume: float) -> None:
        if self._utterance is None:
            return
        self._utterance = Utterance(
            text=self._utterance.text,
            locale_tag=self._utterance.locale_tag,
            volume=volume,
            rate=self._utterance.rate,
        )
        if self._current_name is not None:
            self._halt()
            self._say_from(self._last_index, volume)

    async def close(self) -> None:
        """Stop the engine loop."""
        self.cancel()
        if self._pump is not None:
            self._pump.cancel()
            self._pump = None
        if self._loop_started:
            self.engine.endLoop()
            self._loop_started = False

    def _say_from(self, index: int, volume: float) -> None:
        if self._utterance is None:
            return
        self._counter += 1
        self._current_name = f"utterance-{self._counter}"
        self._offset = index
        self.engine.setProperty("volume", volume)
        self.engine.say(self._utterance.text[index:], self._current_name)
        self._ensure_pump()

    def _halt(self) -> None:
        if self._current_name is None:
            return
        self._current_name = None
        self.engine.stop()

    def _ensure_pump(self) -> None:
        if self._pump is not None and not self._pump.done():
            return
        if not self._loop_started:
            self.engine.startLoop(False)
            self._loop_started = True
        self._pump = asyncio.get_running_loop().create_task(self._run_pump())

    async def _run_pump(self) -> None:
        while True:
            self.engine.iterate()
            await asyncio.sleep(self.poll_interval_seconds)

    def _on_word(self, name: str, location: int, length: int) -> None:
        if name != self._current_name or self._events is None:
            return
        self._last_index = self._offset + location
        self._events.on_boundary(self._last_index)

    def _on_finished(self, name: str, completed: bool) -> None:
        if name != self._current_name or self._events is None:
            return
        self._current_name = None
        if completed:
            self._events.on_end()
        else:
            self._events.on_error(NarrationError("utterance interrupted"))

    def _on_error(self, name: str, exception: Exception) -> None:
        if name != self._current_name or self._events is None:
            return
        self._current_name = None
        self._events.on_error(exception)


def _find_voice(voices: list[Any], tag: str) -> str | None:
    """Return the id of the first installed voice that speaks ``tag``."""
    wanted = tag.lower().replace("_", "-")
    language = wanted.split("-", 1)[0]
    fallback: str | None = None
    for voice in voices:
        for raw in getattr(voice, "languages", None) or []:
            if isinstance(raw, bytes):
                raw = raw.decode("utf-8", errors="ignore").lstrip("\x05")
            code = str(raw).lower().replace("_", "-")
            if code == wanted:
                return voice.id
            if fallback is None and code.split("-", 1)[0] == language:
                fallback = voice.id
    return fallback
