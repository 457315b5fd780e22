"""FastAPI application factory."""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI, File, Request, Response, UploadFile, status
from fastapi.responses import JSONResponse

from talk_to_study.api.models import (
    AnalyzeResponse,
    CapturedImageRequest,
    ChatInputRequest,
    LanguageRequest,
    MessageRequest,
    SessionView,
    VolumeRequest,
)
from talk_to_study.app_logging import configure_logging
from talk_to_study.containers import AppContainer
from talk_to_study.domain.languages import LOCALE_TAGS
from talk_to_study.domain.sessions import AnalysisOutcome
from talk_to_study.errors import (
    FileReadError,
    ImageIntakeError,
    TooLargeError,
    UnsupportedFormatError,
)
from talk_to_study.services.images import decode_data_url
from talk_to_study.services.sessions import LearningSession

_INTAKE_STATUS: dict[type[ImageIntakeError], int] = {
    UnsupportedFormatError: status.HTTP_415_UNSUPPORTED_MEDIA_TYPE,
    TooLargeError: status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
    FileReadError: status.HTTP_400_BAD_REQUEST,
}


def create_app(container: AppContainer) -> FastAPI:  # noqa: PLR0915
    """Create a FastAPI app configured with dependencies."""
    configure_logging()
    logger = logging.getLogger(__name__)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        logger.info(
            "Learning session ready: language=%s speech=%s voice_capture=%s",
            container.session.language,
            container.session.narrator.available,
            container.session.voice_capture is not None,
        )
        yield
        await app.state.container.close_resources()

    app = FastAPI(lifespan=lifespan)
    app.state.container = container

    def _session(request: Request) -> LearningSession:
        state_container: AppContainer = request.app.state.container
        return state_container.session

    def _view(session: LearningSession) -> SessionView:
        return SessionView.from_snapshot(session.snapshot())

    @app.exception_handler(ImageIntakeError)
    async def image_intake_error(
        request: Request, exc: ImageIntakeError
    ) -> JSONResponse:
        status_code = _INTAKE_STATUS.get(type(exc), status.HTTP_400_BAD_REQUEST)
        return JSONResponse(
            status_code=status_code,
            content={"detail": exc.user_message},
        )

    @app.get("/health")
    async def health() -> dict[str, str]:
        """Simple health check endpoint."""
        return {"status": "ok"}

    @app.get("/languages")
    async def languages() -> dict[str, list[dict[str, str]]]:
        """List supported languages with their speech locale tags."""
        return {
            "languages": [
                {"language": language.value, "locale_tag": tag}
                for language, tag in LOCALE_TAGS.items()
            ]
        }

    @app.get("/session")
    async def get_session(request: Request) -> SessionView:
        """Return the observable session state."""
        return _view(_session(request))

    @app.post("/session/image")
    async def upload_image(
        request: Request, file: UploadFile = File(...)
    ) -> SessionView:
        """Load an uploaded image, replacing the current explanation."""
        session = _session(request)
        try:
            data = await file.read()
        except OSError as exc:
            logger.exception("Failed to read uploaded image")
            error = FileReadError(str(exc))
            session.reject_image(error)
            raise error from exc
        session.load_image(data, file.content_type)
        return _view(session)

    @app.post("/session/image/capture")
    async def capture_image(
        payload: CapturedImageRequest, request: Request
    ) -> SessionView:
        """Load a camera capture sent as a data URL."""
        session = _session(request)
        try:
            data, mime_type = decode_data_url(payload.data_url)
        except FileReadError as exc:
            session.reject_image(exc)
            raise
        session.load_image(data, mime_type)
        return _view(session)

    @app.delete("/session/image")
    async def remove_image(request: Request) -> SessionView:
        """Drop the current image."""
        session = _session(request)
        session.remove_image()
        return _view(session)

    @app.post("/session/analyze")
    async def analyze(request: Request, response: Response) -> AnalyzeResponse:
        """Explain the loaded image."""
        session = _session(request)
        outcome = await session.analyze()
        if outcome is AnalysisOutcome.FAILED:
            response.status_code = status.HTTP_502_BAD_GATEWAY
        return AnalyzeResponse(status=outcome, session=_view(session))

    @app.put("/session/language")
    async def set_language(payload: LanguageRequest, request: Request) -> SessionView:
        """Change the output and speech language."""
        session = _session(request)
        session.set_language(payload.language)
        return _view(session)

    @app.put("/session/chat/input")
    async def set_chat_input(
        payload: ChatInputRequest, request: Request
    ) -> SessionView:
        """Update the chat input buffer."""
        session = _session(request)
        session.set_chat_input(payload.text)
        return _view(session)

    @app.post("/session/chat/messages")
    async def send_message(payload: MessageRequest, request: Request) -> SessionView:
        """Ask a follow-up question about the current explanation."""
        session = _session(request)
        await session.send_message(payload.text)
        return _view(session)

    @app.delete("/session/chat/messages")
    async def clear_chat(request: Request) -> SessionView:
        """Clear the conversation log."""
        session = _session(request)
        session.clear_chat()
        return _view(session)

    @app.post("/session/narration/read-aloud")
    async def read_aloud(request: Request) -> SessionView:
        """Narrate the current explanation."""
        session = _session(request)
        session.read_aloud()
        return _view(session)

    @app.post("/session/narration/stop")
    async def stop_narration(request: Request) -> SessionView:
        session = _session(request)
        session.stop_narration()
        return _view(session)

    @app.post("/session/narration/pause")
    async def pause_narration(request: Request) -> SessionView:
        session = _session(request)
        session.pause_narration()
        return _view(session)

    @app.post("/session/narration/resume")
    async def resume_narration(request: Request) -> SessionView:
        session = _session(request)
        session.resume_narration()
        return _view(session)

    @app.post("/session/narration/toggle")
    async def toggle_narration(request: Request) -> SessionView:
        session = _session(request)
        session.toggle_pause()
        return _view(session)

    @app.put("/session/narration/volume")
    async def set_volume(payload: VolumeRequest, request: Request) -> SessionView:
        """Set narration volume."""
        session = _session(request)
        session.set_volume(payload.volume)
        return _view(session)

    @app.post("/session/capture/start")
    async def start_capture(request: Request) -> SessionView:
        """Listen for one spoken question."""
        session = _session(request)
        session.start_listening()
        return _view(session)

    @app.post("/session/capture/stop")
    async def stop_capture(request: Request) -> SessionView:
        session = _session(request)
        session.stop_listening()
        return _view(session)

    return app
