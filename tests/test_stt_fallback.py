import base64

import httpx
import pytest

from neurosense.errors import STTConfigurationError, TranscriptionError
from neurosense.voice.audio_io import AudioPayload
from neurosense.voice.stt import FallbackSTT, OpenAISTT, RelaySTT, SarvamSTT

WAV = b"RIFF\x00\x00\x00\x00WAVEfmt "


def _payload() -> AudioPayload:
    return AudioPayload(data=base64.b64encode(WAV).decode("ascii"), sample_rate=16000, duration_s=1.0)


def _client(handler) -> httpx.AsyncClient:
    return httpx.AsyncClient(transport=httpx.MockTransport(handler))


def _chain(client, *, sarvam_key="sk", openai_key="ok") -> FallbackSTT:
    return FallbackSTT([SarvamSTT(sarvam_key, client=client), OpenAISTT(openai_key, client=client)])


@pytest.mark.asyncio
async def test_primary_provider_answers() -> None:
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json={"transcript": " ನನಗೆ ೬೮ ವರ್ಷ "})

    async with _client(handler) as client:
        result = await _chain(client).transcribe(_payload())

    assert result.provider == "sarvam"
    assert result.text == "ನನಗೆ ೬೮ ವರ್ಷ"
    assert len(seen) == 1
    request = seen[0]
    assert request.url.path == "/speech-to-text"
    assert request.headers["api-subscription-key"] == "sk"
    assert b"saarika:v2.5" in request.content
    assert b"kn-IN" in request.content


@pytest.mark.asyncio
async def test_primary_error_status_falls_back_to_openai() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        if request.url.host == "api.sarvam.ai":
            return httpx.Response(500, json={"error": "overloaded"})
        assert request.headers["authorization"] == "Bearer ok"
        assert b"whisper-1" in request.content
        return httpx.Response(200, json={"text": "I am 72 years old"})

    async with _client(handler) as client:
        result = await _chain(client).transcribe(_payload())

    assert result.provider == "openai"
    assert result.text == "I am 72 years old"


@pytest.mark.asyncio
async def test_primary_network_error_falls_back_to_openai() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        if request.url.host == "api.sarvam.ai":
            raise httpx.ConnectError("connection refused", request=request)
        return httpx.Response(200, json={"text": "hello"})

    async with _client(handler) as client:
        result = await _chain(client).transcribe(_payload())

    assert result.provider == "openai"


@pytest.mark.asyncio
async def test_unconfigured_primary_is_skipped() -> None:
    hosts: list[str] = []

    def handler(request: httpx.Request) -> httpx.Response:
        hosts.append(request.url.host)
        return httpx.Response(200, json={"text": "hello"})

    async with _client(handler) as client:
        result = await _chain(client, sarvam_key=None).transcribe(_payload())

    assert result.provider == "openai"
    assert hosts == ["api.openai.com"]


@pytest.mark.asyncio
async def test_all_providers_failing_raises_transcription_error() -> None:
    calls = 0

    def handler(request: httpx.Request) -> httpx.Response:
        nonlocal calls
        calls += 1
        return httpx.Response(503, text="unavailable")

    async with _client(handler) as client:
        with pytest.raises(TranscriptionError):
            await _chain(client).transcribe(_payload())

    # Each provider is tried exactly once.
    assert calls == 2


@pytest.mark.asyncio
async def test_no_keys_configured() -> None:
    chain = _chain(None, sarvam_key=None, openai_key=None)
    assert chain.is_configured is False
    with pytest.raises(STTConfigurationError, match="No API keys configured"):
        await chain.transcribe(_payload())


@pytest.mark.asyncio
async def test_relay_client_posts_base64_audio() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        assert request.url.path == "/speech-to-text"
        assert base64.b64encode(WAV).decode("ascii").encode() in request.content
        return httpx.Response(200, json={"text": "ಹೌದು", "provider": "sarvam"})

    async with _client(handler) as client:
        result = await RelaySTT("http://relay.local", client=client).transcribe(_payload())

    assert result.text == "ಹೌದು"
    assert result.provider == "sarvam"


@pytest.mark.asyncio
async def test_relay_error_body_is_surfaced() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(500, json={"error": "No API keys configured for speech-to-text"})

    async with _client(handler) as client:
        with pytest.raises(TranscriptionError, match="No API keys configured"):
            await RelaySTT("http://relay.local", client=client).transcribe(_payload())
