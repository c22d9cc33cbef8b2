import base64

from fastapi.testclient import TestClient

from neurosense.config import Settings
from neurosense.errors import ProviderError
from neurosense.relay import create_app
from neurosense.voice.stt import FallbackSTT, OpenAISTT, SarvamSTT, STTProvider, TranscriptionResult

AUDIO_B64 = base64.b64encode(b"RIFF-fake-wav").decode("ascii")


class FakeSTT(STTProvider):
    name = "fake"

    def __init__(self) -> None:
        self.payloads = []

    async def transcribe(self, payload):
        self.payloads.append(payload)
        return TranscriptionResult(text="ನನಗೆ 68 ವರ್ಷ", provider="sarvam")


class FakeSynthesizer:
    name = "sarvam"

    def __init__(self, error: Exception | None = None) -> None:
        self._error = error

    async def synthesize(self, text: str) -> bytes:
        if self._error is not None:
            raise self._error
        return b"RIFF-audio"


def _client(stt=None, synthesizer=None) -> TestClient:
    app = create_app(Settings(), stt=stt or FakeSTT(), synthesizer=synthesizer or FakeSynthesizer())
    return TestClient(app)


def test_health() -> None:
    assert _client().get("/health").json() == {"status": "ok"}


def test_speech_to_text_returns_text_and_provider() -> None:
    stt = FakeSTT()
    resp = _client(stt=stt).post("/speech-to-text", json={"audio": AUDIO_B64})

    assert resp.status_code == 200
    assert resp.json() == {"text": "ನನಗೆ 68 ವರ್ಷ", "provider": "sarvam"}
    assert stt.payloads[0].to_bytes() == b"RIFF-fake-wav"


def test_speech_to_text_without_audio() -> None:
    resp = _client().post("/speech-to-text", json={})

    assert resp.status_code == 500
    assert resp.json() == {"error": "No audio data provided"}


def test_speech_to_text_rejects_bad_base64() -> None:
    resp = _client().post("/speech-to-text", json={"audio": "not base64!!"})

    assert resp.status_code == 500
    assert "error" in resp.json()


def test_speech_to_text_without_keys() -> None:
    stt = FallbackSTT([SarvamSTT(None), OpenAISTT(None)])
    resp = _client(stt=stt).post("/speech-to-text", json={"audio": AUDIO_B64})

    assert resp.status_code == 500
    assert resp.json() == {"error": "No API keys configured for speech-to-text"}


def test_text_to_speech_returns_base64_audio() -> None:
    resp = _client().post("/text-to-speech", json={"text": "ನಿಮ್ಮ ವಯಸ್ಸು ಎಷ್ಟು?"})

    assert resp.status_code == 200
    data = resp.json()
    assert base64.b64decode(data["audioContent"]) == b"RIFF-audio"
    assert data["provider"] == "sarvam"


def test_text_to_speech_errors() -> None:
    assert _client().post("/text-to-speech", json={"text": " "}).json() == {"error": "No text provided"}

    failing = FakeSynthesizer(ProviderError("sarvam tts returned 401", provider="sarvam", status_code=401))
    resp = _client(synthesizer=failing).post("/text-to-speech", json={"text": "hello"})
    assert resp.status_code == 500
    assert resp.json() == {"error": "sarvam tts returned 401"}


def test_malformed_json_uses_error_body() -> None:
    resp = _client().post(
        "/speech-to-text",
        content=b"not json",
        headers={"Content-Type": "application/json"},
    )

    assert resp.status_code == 500
    assert resp.json() == {"error": "Invalid request body"}


def test_wrongly_typed_field_uses_error_body() -> None:
    client = _client()

    resp = client.post("/speech-to-text", json={"audio": 123})
    assert resp.status_code == 500
    assert resp.json() == {"error": "Invalid request body"}

    resp = client.post("/text-to-speech", json={"text": ["a", "b"]})
    assert resp.status_code == 500
    assert "detail" not in resp.json()


def test_relay_documents_error_body() -> None:
    schema = _client().get("/openapi.json").json()
    responses = schema["paths"]["/speech-to-text"]["post"]["responses"]
    assert "ErrorResponse" in responses["500"]["content"]["application/json"]["schema"]["$ref"]
