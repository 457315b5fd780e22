"""Session state machine: analyze, narrate, converse."""

import asyncio
import logging
from collections.abc import Callable
from dataclasses import dataclass, field

from talk_to_study.config import MAX_IMAGE_BYTES
from talk_to_study.domain.chat import ChatTurn, Speaker
from talk_to_study.domain.languages import Language, locale_tag
from talk_to_study.domain.learning import LearningRecord
from talk_to_study.domain.sessions import (
    AnalysisOutcome,
    AnalysisPhase,
    SessionSnapshot,
    advance_analysis,
)
from talk_to_study.domain.speech import CaptureState
from talk_to_study.errors import AnalysisError, ImageIntakeError
from talk_to_study.services.analysis import ContentAnalyzer
from talk_to_study.services.conversation import ConversationResponder, build_context
from talk_to_study.services.images import EncodedImage, encode_image
from talk_to_study.services.narration import SpeechNarrator
from talk_to_study.services.voice_capture import VoiceCapture

_logger = logging.getLogger(__name__)

SessionListener = Callable[[SessionSnapshot], None]


@dataclass
class LearningSession:
    """Owns image, content, chat and speech state for one learner."""

    analyzer: ContentAnalyzer
    responder: ConversationResponder
    narrator: SpeechNarrator
    voice_capture: VoiceCapture | None = None
    language: Language = Language.ENGLISH
    max_image_bytes: int = MAX_IMAGE_BYTES
    image: EncodedImage | None = field(default=None, init=False)
    content: LearningRecord | None = field(default=None, init=False)
    chat: list[ChatTurn] = field(default_factory=list, init=False)
    chat_input: str = field(default="", init=False)
    chat_loading: bool = field(default=False, init=False)
    error: str | None = field(default=None, init=False)
    _phase: AnalysisPhase = field(default=AnalysisPhase.IDLE, init=False)
    _listeners: list[SessionListener] = field(default_factory=list, init=False)
    _background: set[asyncio.Task[None]] = field(default_factory=set, init=False)

    def __post_init__(self) -> None:
        self.narrator.add_listener(lambda _: self._notify())
        if self.voice_capture is not None:
            self.voice_capture.on_transcript = self._handle_transcript
            self.voice_capture.add_listener(lambda _: self._notify())

    @property
    def analyzing(self) -> bool:
        return self._phase is AnalysisPhase.ANALYZING

    @property
    def locale_tag(self) -> str:
        return locale_tag(self.language)

    def snapshot(self) -> SessionSnapshot:
        """Return every observable field."""
        capture_state = (
            self.voice_capture.state
            if self.voice_capture is not None
            else CaptureState.IDLE
        )
        return SessionSnapshot(
            has_image=self.image is not None,
            image_mime_type=self.image.mime_type if self.image else None,
            content=self.content,
            analyzing=self.analyzing,
            chat=tuple(self.chat),
            chat_loading=self.chat_loading,
            chat_input=self.chat_input,
            error=self.error,
            language=self.language,
            locale_tag=self.locale_tag,
            narration=self.narrator.snapshot(),
            capture_state=capture_state,
            voice_capture_available=self.voice_capture is not None,
        )

    def subscribe(self, listener: SessionListener) -> Callable[[], None]:
        """Register a change listener and return a function that removes it."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def load_image(self, data: bytes, mime_type: str | None) -> None:
        """Accept a new image; invalidates the current explanation."""
        self.error = None
        try:
            image = encode_image(data, mime_type, self.max_image_bytes)
        except ImageIntakeError as exc:
            _logger.info("Rejected image upload: %s", exc)
            self.error = exc.user_message
            self._notify()
            raise
        self.image = image
        self.content = None
        self._notify()

    def reject_image(self, error: ImageIntakeError) -> None:
        """Record an intake failure raised before the bytes reached the session."""
        self.error = error.user_message
        self._notify()

    def remove_image(self) -> None:
        self.image = None
        self.error = None
        self._notify()

    async def analyze(self) -> AnalysisOutcome:
        """Explain the loaded image.

        Results for an image that was replaced or removed while the request
        was in flight are discarded.
        """
        if self.image is None or self.analyzing:
            return AnalysisOutcome.IGNORED
        image = self.image
        language = self.language
        self.narrator.stop()
        self._phase = advance_analysis(self._phase, AnalysisPhase.ANALYZING)
        self.error = None
        self._notify()
        try:
            record = await self.analyzer.analyze(image, language)
        except AnalysisError as exc:
            _logger.exception("Image analysis failed")
            if self.image is not image:
                return AnalysisOutcome.DISCARDED
            self.error = exc.user_message
            return AnalysisOutcome.FAILED
        else:
            if self.image is not image:
                _logger.info("Discarded analysis of a replaced image: %s", record.topic)
                return AnalysisOutcome.DISCARDED
            self.content = record
            self.chat = []
            self.error = None
            _logger.info("Image analyzed: topic=%s language=%s", record.topic, language)
            return AnalysisOutcome.COMPLETED
        finally:
            self._phase = advance_analysis(self._phase, AnalysisPhase.IDLE)
            self._notify()

    def set_chat_input(self, text: str) -> None:
        self.chat_input = text
        self._notify()

    async def send_message(self, text: str | None = None) -> str | None:
        """Ask a follow-up question; returns the reply, or None if not sent.

        Only one question is in flight at a time. A reply to content that was
        replaced while waiting is dropped and not narrated.
        """
        message = text or self.chat_input
        if not message.strip() or self.content is None or self.chat_loading:
            return None
        record = self.content
        language = self.language
        self.chat.append(ChatTurn(speaker=Speaker.USER, text=message))
        self.chat_input = ""
        self.chat_loading = True
        self._notify()
        history = list(self.chat)
        try:
            reply = await self.responder.respond(
                build_context(record), history, language
            )
            if self.content is not record:
                _logger.info("Dropped reply to a question about replaced content")
                return None
            self.chat.append(ChatTurn(speaker=Speaker.ASSISTANT, text=reply))
        finally:
            self.chat_loading = False
            self._notify()
        self.narrator.start(reply, locale_tag(language))
        return reply

    def clear_chat(self) -> None:
        self.chat = []
        self._notify()

    def set_language(self, language: Language) -> None:
        """Switch language for subsequent requests, narration and capture."""
        self.language = language
        self._notify()

    def read_aloud(self) -> None:
        """Narrate the current explanation."""
        if self.content is None:
            return
        self.narrator.start(narration_text(self.content), self.locale_tag)

    def stop_narration(self) -> None:
        self.narrator.stop()

    def pause_narration(self) -> None:
        self.narrator.pause()

    def resume_narration(self) -> None:
        self.narrator.resume()

    def toggle_pause(self) -> None:
        self.narrator.toggle_pause()

    def set_volume(self, volume: float) -> None:
        self.narrator.set_volume(volume)

    def start_listening(self) -> bool:
        """Start one voice capture in the current locale."""
        if self.voice_capture is None:
            return False
        return self.voice_capture.start(self.locale_tag)

    def stop_listening(self) -> None:
        if self.voice_capture is not None:
            self.voice_capture.stop()

    def toggle_listening(self) -> None:
        if self.voice_capture is not None:
            self.voice_capture.toggle(self.locale_tag)

    async def drain(self) -> None:
        """Wait for messages sent from voice transcripts to finish."""
        while self._background:
            await asyncio.gather(*list(self._background))

    async def close(self) -> None:
        """Stop speech and cancel voice messages still waiting for a reply."""
        self.stop_listening()
        self.stop_narration()
        pending = list(self._background)
        for task in pending:
            task.cancel()
        await asyncio.gather(*pending, return_exceptions=True)

    def _handle_transcript(self, transcript: str) -> None:
        self.chat_input = transcript
        self._notify()
        task = asyncio.get_running_loop().create_task(self._send_transcript(transcript))
        self._background.add(task)
        task.add_done_callback(self._background.discard)

    async def _send_transcript(self, transcript: str) -> None:
        await self.send_message(transcript)

    def _notify(self) -> None:
        if not self._listeners:
            return
        snapshot = self.snapshot()
        for listener in list(self._listeners):
            try:
                listener(snapshot)
            except Exception:
                _logger.exception("Session listener failed")


def narration_text(record: LearningRecord) -> str:
    """Build the read-aloud script for a learning record."""
    key_points = ". ".join(record.key_points)
    return (
        f"Topic: {record.topic}. "
        f"Simple Explanation: {record.explanation}. "
        f"Key Points: {key_points}. "
        f"Example: {record.example}."
    )
