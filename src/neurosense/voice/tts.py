"""Text-to-speech.

Two interchangeable strategies:
- ``PiperTTS``: on-device synthesis via the Piper CLI, with the voice chosen
  by language-tag prefix from the installed voice models.
- ``RemoteTTS``: a remote synthesis call (Sarvam AI directly, or through the
  NeuroSense relay) returning WAV audio that is played locally.

Both return a ``SpeechResult`` exactly once per prompt instead of raising.
"""

from __future__ import annotations

import asyncio
import base64
import logging
import re
import shutil
import subprocess
import tempfile
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING, Protocol

import httpx

from neurosense.errors import NeuroSenseError, ProviderError, SynthesisError

if TYPE_CHECKING:
    from neurosense.config import Settings

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SpeechResult:
    ok: bool
    provider: str
    error: str | None = None

    @classmethod
    def success(cls, provider: str) -> "SpeechResult":
        return cls(ok=True, provider=provider)

    @classmethod
    def failure(cls, provider: str, error: str) -> "SpeechResult":
        return cls(ok=False, provider=provider, error=error)


class AudioPlayer(Protocol):
    async def play_wav_bytes(self, data: bytes) -> None: ...


class TTSProvider:
    name: str = "unknown"

    async def speak(self, text: str) -> SpeechResult:
        raise NotImplementedError

    async def close(self) -> None:
        return None


def _language_of_voice(model_path: Path) -> str:
    # Piper voices are named like "kn_IN-voice-medium.onnx".
    return model_path.name.split("-", 1)[0].replace("_", "-").lower()


def select_voice(voices: list[Path], language_code: str, default: Path | None = None) -> Path | None:
    """
    Pick the first voice whose language tag matches the requested language.

    Matching is by primary-language prefix, so ``kn-IN`` matches ``kn_IN-*``
    and ``kn-*`` voices. Falls back to ``default`` when nothing matches.
    """
    primary = language_code.split("-", 1)[0].lower()
    for voice in sorted(voices):
        if _language_of_voice(voice).startswith(primary):
            return voice
    return default


@dataclass(frozen=True)
class TTSConfig:
    piper_bin: str = "piper"
    voices_dir: str | None = None  # directory of *.onnx voices
    default_model: str | None = None  # used when no voice matches the language
    language_code: str = "kn-IN"
    speech_rate: float = 0.9
    max_chars_per_chunk: int = 350
    timeout_s: float = 60.0


class PiperTTS(TTSProvider):
    name = "piper"

    def __init__(self, player: AudioPlayer, config: TTSConfig | None = None) -> None:
        self._player = player
        self._config = config or TTSConfig()
        self._validated_piper_path: str | None = None

    @property
    def config(self) -> TTSConfig:
        return self._config

    def is_available(self) -> tuple[bool, str]:
        try:
            _ = self._require_piper()
            _ = self._require_voice()
            return True, "ok"
        except SynthesisError as e:
            return False, str(e)

    def available_voices(self) -> list[Path]:
        if not self._config.voices_dir:
            return []
        return sorted(Path(self._config.voices_dir).expanduser().glob("*.onnx"))

    def _require_voice(self) -> Path:
        default = Path(self._config.default_model) if self._config.default_model else None
        voice = select_voice(self.available_voices(), self._config.language_code, default)
        if voice is None:
            raise SynthesisError(
                f"No Piper voice for language {self._config.language_code!r}. "
                "Set NEUROSENSE_PIPER_VOICES_DIR or NEUROSENSE_PIPER_DEFAULT_MODEL."
            )
        return voice

    def _require_piper(self) -> str:
        if self._validated_piper_path:
            return self._validated_piper_path

        p = shutil.which(self._config.piper_bin)
        if not p:
            raise SynthesisError(
                "piper CLI not found. Install piper (binary) and ensure it's on PATH, "
                "or set NEUROSENSE_PIPER_BIN."
            )
        self._validated_piper_path = p
        return p

    def _chunk_text(self, text: str) -> list[str]:
        t = (text or "").strip()
        if not t:
            return []

        # Split on sentence-ish boundaries (including the Devanagari danda), then re-pack.
        parts = [p.strip() for p in re.split(r"(?<=[.!?।])\s+", t) if p.strip()]
        chunks: list[str] = []
        current = ""
        for p in parts:
            if not current:
                current = p
                continue
            if len(current) + 1 + len(p) <= self._config.max_chars_per_chunk:
                current = current + " " + p
            else:
                chunks.append(current)
                current = p
        if current:
            chunks.append(current)
        return chunks

    def _synthesize_chunk(self, piper_bin: str, voice: Path, chunk: str, wav_path: Path) -> None:
        # Piper's length scale is the inverse of speaking rate.
        length_scale = 1.0 / self._config.speech_rate if self._config.speech_rate > 0 else 1.0
        cmd = [
            piper_bin,
            "--model",
            str(voice),
            "--output_file",
            str(wav_path),
            "--length_scale",
            f"{length_scale:.3f}",
        ]
        try:
            subprocess.run(
                cmd,
                input=chunk,
                text=True,
                check=True,
                stdout=subprocess.DEVNULL,
                stderr=subprocess.PIPE,
                timeout=self._config.timeout_s,
            )
        except subprocess.TimeoutExpired as e:
            raise SynthesisError(f"piper timed out after {self._config.timeout_s:.1f}s. model={voice!s}") from e
        except subprocess.CalledProcessError as e:
            stderr = (e.stderr or "").strip()
            raise SynthesisError(
                f"piper failed (exit={e.returncode}). model={voice!s}. stderr={stderr or '<empty>'}"
            ) from e

    async def speak(self, text: str) -> SpeechResult:
        if not (text or "").strip():
            return SpeechResult.failure(self.name, "No question available to read.")

        try:
            piper_bin = self._require_piper()
            voice = self._require_voice()
            logger.info(f"[VOICE][TTS] piper voice={voice.name} lang={self._config.language_code}")
            with tempfile.TemporaryDirectory(prefix="neurosense_tts_") as tmp:
                for idx, chunk in enumerate(self._chunk_text(text)):
                    wav_path = Path(tmp) / f"prompt_{idx:02d}.wav"
                    await asyncio.to_thread(self._synthesize_chunk, piper_bin, voice, chunk, wav_path)
                    await self._player.play_wav_bytes(wav_path.read_bytes())
        except (NeuroSenseError, OSError) as e:
            logger.warning(f"[VOICE][TTS] piper failed: {e}")
            return SpeechResult.failure(self.name, str(e) or type(e).__name__)

        return SpeechResult.success(self.name)


class SarvamSynthesizer:
    """Calls Sarvam AI's text-to-speech API and returns WAV bytes."""

    name = "sarvam"

    def __init__(
        self,
        api_key: str | None,
        *,
        base_url: str = "https://api.sarvam.ai",
        language_code: str = "kn-IN",
        speaker: str | None = None,
        pace: float = 0.9,
        timeout: float = 30.0,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self._api_key = api_key
        self._base_url = base_url.rstrip("/")
        self._language_code = language_code
        self._speaker = speaker
        self._pace = pace
        self._timeout = timeout
        self._client = client

    @property
    def is_configured(self) -> bool:
        return bool(self._api_key)

    async def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=self._timeout)
        return self._client

    async def close(self) -> None:
        if self._client:
            await self._client.aclose()
            self._client = None

    async def synthesize(self, text: str) -> bytes:
        if not self.is_configured:
            raise SynthesisError("No API key configured for text-to-speech")

        body: dict = {
            "inputs": [text],
            "target_language_code": self._language_code,
            "pace": self._pace,
        }
        if self._speaker:
            body["speaker"] = self._speaker

        client = await self._get_client()
        try:
            resp = await client.post(
                f"{self._base_url}/text-to-speech",
                headers={"api-subscription-key": self._api_key or ""},
                json=body,
            )
        except httpx.HTTPError as e:
            raise ProviderError(f"sarvam tts request failed: {e}", provider=self.name) from e
        if not resp.is_success:
            raise ProviderError(
                f"sarvam tts returned {resp.status_code}: {resp.text[:200]}",
                provider=self.name,
                status_code=resp.status_code,
            )

        audios = resp.json().get("audios") or []
        if not audios:
            raise ProviderError("sarvam tts response has no audio", provider=self.name)
        return base64.b64decode(audios[0])


class RelaySynthesizer:
    """Client for the NeuroSense relay's ``/text-to-speech`` endpoint."""

    name = "relay"

    def __init__(self, relay_url: str, *, timeout: float = 60.0, client: httpx.AsyncClient | None = None) -> None:
        self._relay_url = relay_url.rstrip("/")
        self._timeout = timeout
        self._client = client

    async def close(self) -> None:
        if self._client:
            await self._client.aclose()
            self._client = None

    async def synthesize(self, text: str) -> bytes:
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=self._timeout)
        try:
            resp = await self._client.post(f"{self._relay_url}/text-to-speech", json={"text": text})
        except httpx.HTTPError as e:
            raise ProviderError(f"relay tts request failed: {e}", provider=self.name) from e

        data = resp.json() if resp.content else {}
        if not resp.is_success:
            raise ProviderError(data.get("error") or f"relay returned {resp.status_code}", provider=self.name)
        return base64.b64decode(data["audioContent"])


class Synthesizer(Protocol):
    name: str

    async def synthesize(self, text: str) -> bytes: ...


class RemoteTTS(TTSProvider):
    """Remote synthesis followed by local playback."""

    def __init__(self, synthesizer: Synthesizer, player: AudioPlayer) -> None:
        self._synthesizer = synthesizer
        self._player = player
        self.name = f"remote:{synthesizer.name}"

    async def speak(self, text: str) -> SpeechResult:
        if not (text or "").strip():
            return SpeechResult.failure(self.name, "No question available to read.")

        try:
            audio = await self._synthesizer.synthesize(text)
            await self._player.play_wav_bytes(audio)
        except (NeuroSenseError, ValueError, KeyError, OSError) as e:
            logger.warning(f"[VOICE][TTS] remote synthesis failed: {e}")
            return SpeechResult.failure(self.name, str(e) or type(e).__name__)

        return SpeechResult.success(self.name)

    async def close(self) -> None:
        close = getattr(self._synthesizer, "close", None)
        if close is not None:
            await close()


def build_tts(settings: "Settings", player: AudioPlayer) -> TTSProvider:
    """Pick the synthesis strategy configured in settings."""
    if settings.tts_mode == "remote":
        if settings.relay_url:
            return RemoteTTS(RelaySynthesizer(settings.relay_url), player)
        return RemoteTTS(
            SarvamSynthesizer(
                settings.sarvam_api_key,
                base_url=settings.sarvam_base_url,
                language_code=settings.language_code,
                speaker=settings.sarvam_tts_speaker,
                pace=settings.speech_rate,
                timeout=settings.provider_timeout,
            ),
            player,
        )
    return PiperTTS(
        player,
        TTSConfig(
            piper_bin=settings.piper_bin,
            voices_dir=settings.piper_voices_dir,
            default_model=settings.piper_default_model,
            language_code=settings.language_code,
            speech_rate=settings.speech_rate,
        ),
    )
