import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware

from neurosense.config import Settings, get_settings
from neurosense.relay import routes
from neurosense.voice.stt import STTProvider, build_provider_chain
from neurosense.voice.tts import SarvamSynthesizer, Synthesizer

logger = logging.getLogger(__name__)


def create_app(
    settings: Settings | None = None,
    *,
    stt: STTProvider | None = None,
    synthesizer: Synthesizer | None = None,
) -> FastAPI:
    settings = settings or get_settings()
    stt = stt or build_provider_chain(settings)
    synthesizer = synthesizer or SarvamSynthesizer(
        settings.sarvam_api_key,
        base_url=settings.sarvam_base_url,
        language_code=settings.language_code,
        speaker=settings.sarvam_tts_speaker,
        pace=settings.speech_rate,
        timeout=settings.provider_timeout,
    )

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        yield
        await stt.close()
        close = getattr(synthesizer, "close", None)
        if close is not None:
            await close()

    app = FastAPI(title="NeuroSense Speech Relay", lifespan=lifespan)
    app.state.stt = stt
    app.state.synthesizer = synthesizer

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError):
        # Same {"error": ...} body as the handlers return.
        logger.warning(f"Rejected malformed request to {request.url.path}: {exc.errors()}")
        return routes.error_response("Invalid request body")

    app.include_router(routes.router)

    return app
