"""Speech-to-text.

Remote providers are tried in a fixed order: Sarvam AI first (Kannada
``saarika`` model), then OpenAI Whisper. An offline faster-whisper model can
be configured as a last resort. ``RelaySTT`` calls the NeuroSense relay
instead of the providers directly.
"""

from __future__ import annotations

import asyncio
import io
import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING

import httpx

from neurosense.errors import ProviderError, STTConfigurationError, TranscriptionError
from neurosense.voice.audio_io import AudioPayload

if TYPE_CHECKING:
    from neurosense.config import Settings

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TranscriptionResult:
    text: str
    provider: str


def _guess_mime(data: bytes) -> tuple[str, str]:
    if data[:4] == b"RIFF":
        return "audio.wav", "audio/wav"
    return "audio.webm", "audio/webm"


class STTProvider:
    name: str = "unknown"

    @property
    def is_configured(self) -> bool:
        return True

    async def transcribe(self, payload: AudioPayload) -> TranscriptionResult:
        raise NotImplementedError

    async def close(self) -> None:
        return None


class _HTTPProvider(STTProvider):
    """Shared httpx plumbing for remote providers."""

    def __init__(self, *, base_url: str, timeout: float, client: httpx.AsyncClient | None = None) -> None:
        self._base_url = base_url.rstrip("/")
        self._timeout = timeout
        self._client = client

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create the HTTP client."""
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=self._timeout)
        return self._client

    async def close(self) -> None:
        """Close the HTTP client."""
        if self._client:
            await self._client.aclose()
            self._client = None

    async def _post(self, path: str, **kwargs) -> dict:
        client = await self._get_client()
        try:
            resp = await client.post(f"{self._base_url}{path}", **kwargs)
        except httpx.HTTPError as e:
            raise ProviderError(f"{self.name} request failed: {e}", provider=self.name) from e

        if not resp.is_success:
            raise ProviderError(
                f"{self.name} returned {resp.status_code}: {resp.text[:200]}",
                provider=self.name,
                status_code=resp.status_code,
            )
        try:
            return resp.json()
        except ValueError as e:
            raise ProviderError(f"{self.name} returned invalid JSON", provider=self.name) from e


class SarvamSTT(_HTTPProvider):
    name = "sarvam"

    def __init__(
        self,
        api_key: str | None,
        *,
        base_url: str = "https://api.sarvam.ai",
        model: str = "saarika:v2.5",
        language_code: str = "kn-IN",
        timeout: float = 30.0,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        super().__init__(base_url=base_url, timeout=timeout, client=client)
        self._api_key = api_key
        self._model = model
        self._language_code = language_code

    @property
    def is_configured(self) -> bool:
        return bool(self._api_key)

    async def transcribe(self, payload: AudioPayload) -> TranscriptionResult:
        audio = payload.to_bytes()
        filename, mime = _guess_mime(audio)
        data = await self._post(
            "/speech-to-text",
            headers={"api-subscription-key": self._api_key or ""},
            files={"file": (filename, audio, mime)},
            data={"model": self._model, "language_code": self._language_code},
        )
        text = data.get("transcript")
        if text is None:
            raise ProviderError("sarvam response has no transcript", provider=self.name)
        return TranscriptionResult(text=str(text).strip(), provider=self.name)


class OpenAISTT(_HTTPProvider):
    name = "openai"

    def __init__(
        self,
        api_key: str | None,
        *,
        base_url: str = "https://api.openai.com/v1",
        model: str = "whisper-1",
        language: str = "kn",
        timeout: float = 30.0,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        super().__init__(base_url=base_url, timeout=timeout, client=client)
        self._api_key = api_key
        self._model = model
        self._language = language

    @property
    def is_configured(self) -> bool:
        return bool(self._api_key)

    async def transcribe(self, payload: AudioPayload) -> TranscriptionResult:
        audio = payload.to_bytes()
        filename, mime = _guess_mime(audio)
        data = await self._post(
            "/audio/transcriptions",
            headers={"Authorization": f"Bearer {self._api_key}"},
            files={"file": (filename, audio, mime)},
            data={"model": self._model, "language": self._language},
        )
        text = data.get("text")
        if text is None:
            raise ProviderError("openai response has no text", provider=self.name)
        return TranscriptionResult(text=str(text).strip(), provider=self.name)


class WhisperSTT(STTProvider):
    """Offline faster-whisper wrapper."""

    name = "whisper-local"

    def __init__(self, model_size: str | None, *, language: str | None = None, device: str = "cpu") -> None:
        self._model_size = model_size
        self._language = language
        self._device = device
        self._model = None

    @property
    def is_configured(self) -> bool:
        return bool(self._model_size)

    def _load_model(self):
        if self._model is not None:
            return self._model

        try:
            from faster_whisper import WhisperModel  # type: ignore
        except Exception as e:  # pragma: no cover
            raise ProviderError(
                "faster-whisper is required for local STT. Install with: pip install -e '.[voice]'",
                provider=self.name,
            ) from e

        self._model = WhisperModel(self._model_size, device=self._device)
        return self._model

    async def transcribe(self, payload: AudioPayload) -> TranscriptionResult:
        audio = payload.to_bytes()

        def _run() -> TranscriptionResult:
            model = self._load_model()
            segments, _info = model.transcribe(io.BytesIO(audio), language=self._language, vad_filter=True)
            text = " ".join(s.text.strip() for s in segments if s.text).strip()
            return TranscriptionResult(text=text, provider=self.name)

        try:
            return await asyncio.to_thread(_run)
        except ProviderError:
            raise
        except Exception as e:
            raise ProviderError(f"local whisper failed: {e}", provider=self.name) from e


class FallbackSTT(STTProvider):
    """
    Tries each configured provider once, in order.

    Any failure of a provider (network error or non-success response) moves
    on to the next one; only when all of them fail is the error surfaced.
    """

    name = "fallback"

    def __init__(self, providers: list[STTProvider]) -> None:
        self._providers = list(providers)

    @property
    def providers(self) -> list[STTProvider]:
        return list(self._providers)

    @property
    def is_configured(self) -> bool:
        return any(p.is_configured for p in self._providers)

    async def transcribe(self, payload: AudioPayload) -> TranscriptionResult:
        configured = [p for p in self._providers if p.is_configured]
        if not configured:
            raise STTConfigurationError("No API keys configured for speech-to-text")

        errors: list[str] = []
        for provider in configured:
            logger.info(f"[VOICE][STT] attempting provider={provider.name}")
            try:
                result = await provider.transcribe(payload)
            except ProviderError as e:
                logger.warning(f"[VOICE][STT] provider={provider.name} failed, trying next: {e}")
                errors.append(str(e))
                continue
            logger.info(f"[VOICE][STT] provider={provider.name} ok text={result.text[:80]!r}")
            return result

        raise TranscriptionError("All speech-to-text providers failed: " + "; ".join(errors))

    async def close(self) -> None:
        for provider in self._providers:
            await provider.close()


class RelaySTT(_HTTPProvider):
    """Client for the NeuroSense relay's ``/speech-to-text`` endpoint."""

    name = "relay"

    def __init__(self, relay_url: str, *, timeout: float = 60.0, client: httpx.AsyncClient | None = None) -> None:
        super().__init__(base_url=relay_url, timeout=timeout, client=client)

    async def transcribe(self, payload: AudioPayload) -> TranscriptionResult:
        client = await self._get_client()
        try:
            resp = await client.post(f"{self._base_url}/speech-to-text", json={"audio": payload.data})
        except httpx.HTTPError as e:
            raise TranscriptionError(f"relay request failed: {e}") from e

        try:
            data = resp.json()
        except ValueError:
            data = {}
        if not resp.is_success:
            raise TranscriptionError(data.get("error") or f"relay returned {resp.status_code}")
        return TranscriptionResult(text=str(data.get("text") or "").strip(), provider=str(data.get("provider", "")))


def build_provider_chain(settings: "Settings", *, client: httpx.AsyncClient | None = None) -> FallbackSTT:
    """Build the primary/fallback chain from settings."""
    language = settings.language_code.split("-", 1)[0]
    providers: list[STTProvider] = [
        SarvamSTT(
            settings.sarvam_api_key,
            base_url=settings.sarvam_base_url,
            model=settings.sarvam_stt_model,
            language_code=settings.language_code,
            timeout=settings.provider_timeout,
            client=client,
        ),
        OpenAISTT(
            settings.openai_api_key,
            base_url=settings.openai_base_url,
            model=settings.openai_stt_model,
            language=language,
            timeout=settings.provider_timeout,
            client=client,
        ),
    ]
    if settings.local_stt_model:
        providers.append(WhisperSTT(settings.local_stt_model, language=language))
    return FallbackSTT(providers)


def build_stt(settings: "Settings") -> STTProvider:
    """Relay client when a relay URL is configured, otherwise the direct provider chain."""
    if settings.relay_url:
        return RelaySTT(settings.relay_url)
    return build_provider_chain(settings)
