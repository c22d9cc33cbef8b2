"""Audio capture + playback.

This module is intentionally "dumb hardware I/O": it knows nothing about the
assessment, questions, or speech providers.

It provides:
- push-to-talk microphone capture (start/stop) returning a base64 WAV payload
- echo cancellation (speaker output is halted before the mic opens) and a
  simple noise suppressor (DC removal + RMS noise gate)
- WAV encode/decode helpers and speaker playback
"""

from __future__ import annotations

import asyncio
import base64
import io
import logging
import wave
from dataclasses import dataclass
from typing import Any

import numpy as np

from neurosense.errors import MicrophoneError, RecordingStateError, SynthesisError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AudioIOConfig:
    sample_rate: int = 16000
    channels: int = 1
    dtype: str = "int16"  # sounddevice dtype and WAV sample width
    echo_cancellation: bool = True
    noise_suppression: bool = True
    # Blocks quieter than this (fraction of full scale) are silenced.
    noise_gate_rms: float = 0.01
    noise_gate_block_s: float = 0.02


@dataclass(frozen=True)
class AudioPayload:
    """A finished recording, ready to send to a transcription service."""

    data: str  # base64-encoded audio
    mime_type: str = "audio/wav"
    sample_rate: int | None = None
    duration_s: float | None = None

    @property
    def is_empty(self) -> bool:
        return not self.data or (self.duration_s is not None and self.duration_s <= 0)

    def to_bytes(self) -> bytes:
        return base64.b64decode(self.data)


class AudioIO:
    def __init__(self, config: AudioIOConfig | None = None, *, backend: Any = None) -> None:
        self._config = config or AudioIOConfig()
        # A sounddevice-compatible module; resolved lazily so import stays cheap.
        self._backend = backend
        self._recording_stream = None
        self._recording_frames: list[np.ndarray] = []

    @property
    def config(self) -> AudioIOConfig:
        return self._config

    @property
    def is_recording(self) -> bool:
        return self._recording_stream is not None

    def _require_sounddevice(self):
        if self._backend is not None:
            return self._backend
        try:
            import sounddevice as sd  # type: ignore

            self._backend = sd
            return sd
        except Exception as e:  # pragma: no cover
            raise MicrophoneError(
                "sounddevice is required for voice mode. Install Python deps with: pip install -e '.[voice]'. "
                "If you see 'PortAudio library not found', install PortAudio (Debian/Ubuntu: sudo apt-get install portaudio19-dev)."
            ) from e

    async def start_recording(self) -> None:
        """Open the microphone and start capturing (push-to-talk)."""
        if self._recording_stream is not None:
            raise RecordingStateError("A recording is already in progress")

        sd = self._require_sounddevice()
        self._recording_frames = []

        if self._config.echo_cancellation:
            # Nothing may be coming out of the speaker while the mic is open.
            await asyncio.to_thread(sd.stop)

        def callback(indata, frames, time, status):  # noqa: ANN001
            if status:
                logger.debug(f"Input status: {status}")
            self._recording_frames.append(indata.copy())

        try:
            stream = sd.InputStream(
                samplerate=self._config.sample_rate,
                channels=self._config.channels,
                dtype=self._config.dtype,
                callback=callback,
            )
        except Exception as e:
            raise MicrophoneError(
                "Failed to start recording. Please check microphone permissions."
            ) from e

        try:
            await asyncio.to_thread(stream.start)
        except Exception as e:
            await self._close_stream(stream)
            raise MicrophoneError(
                "Failed to start recording. Please check microphone permissions."
            ) from e

        self._recording_stream = stream
        logger.info("[VOICE][AUDIO] recording started")

    async def stop_recording(self) -> AudioPayload:
        """Stop capture, release the microphone, and return the encoded recording."""
        if self._recording_stream is None:
            raise RecordingStateError("No recording in progress")

        stream = self._recording_stream
        self._recording_stream = None

        try:
            await asyncio.to_thread(stream.stop)
        except Exception as e:
            raise MicrophoneError("Failed to finalize recording") from e
        finally:
            await self._close_stream(stream)

        if self._recording_frames:
            audio = np.concatenate(self._recording_frames, axis=0)
        else:
            audio = np.zeros((0, self._config.channels), dtype=np.int16)
        self._recording_frames = []

        if self._config.noise_suppression and audio.size:
            audio = self.suppress_noise(audio)

        wav_bytes = self.encode_wav(audio)
        duration = audio.shape[0] / float(self._config.sample_rate)
        logger.info(f"[VOICE][AUDIO] recording stopped dur={duration:.2f}s")
        return AudioPayload(
            data=base64.b64encode(wav_bytes).decode("ascii"),
            sample_rate=self._config.sample_rate,
            duration_s=duration,
        )

    async def _close_stream(self, stream) -> None:
        try:
            await asyncio.to_thread(stream.close)
        except Exception as e:
            raise MicrophoneError("Failed to release the microphone") from e

    def suppress_noise(self, audio: np.ndarray) -> np.ndarray:
        """Remove DC offset and silence blocks below the noise gate."""
        if audio.ndim == 1:
            audio = audio[:, None]

        samples = audio.astype(np.float32) / 32768.0
        samples -= samples.mean(axis=0, keepdims=True)

        block = max(1, int(self._config.sample_rate * self._config.noise_gate_block_s))
        for start in range(0, samples.shape[0], block):
            chunk = samples[start : start + block]
            rms = float(np.sqrt(np.mean(np.square(chunk))))
            if rms < self._config.noise_gate_rms:
                samples[start : start + block] = 0.0

        return np.clip(samples * 32768.0, -32768, 32767).astype(np.int16)

    def encode_wav(self, audio: np.ndarray) -> bytes:
        """Encode int16 PCM samples as an in-memory WAV file."""
        if audio.ndim == 1:
            audio = audio[:, None]

        audio_i16 = audio.astype(np.int16, copy=False)

        buf = io.BytesIO()
        with wave.open(buf, "wb") as wf:
            wf.setnchannels(self._config.channels)
            wf.setsampwidth(2)  # int16
            wf.setframerate(self._config.sample_rate)
            wf.writeframes(audio_i16.tobytes())
        return buf.getvalue()

    @staticmethod
    def decode_wav(data: bytes) -> tuple[np.ndarray, int]:
        with wave.open(io.BytesIO(data), "rb") as wf:
            sr = wf.getframerate()
            n_channels = wf.getnchannels()
            sampwidth = wf.getsampwidth()
            if sampwidth != 2:
                raise ValueError(f"Only 16-bit WAV supported, got sampwidth={sampwidth}")
            frames = wf.readframes(wf.getnframes())

        audio = np.frombuffer(frames, dtype=np.int16)
        return audio.reshape(-1, n_channels), sr

    async def play_wav_bytes(self, data: bytes, *, timeout_s: float = 60.0) -> None:
        """
        Play an in-memory WAV file and wait for it to finish.

        Raises:
            SynthesisError: If the audio cannot be decoded or the speaker fails.
        """
        try:
            sd = self._require_sounddevice()
        except MicrophoneError as e:
            raise SynthesisError(str(e)) from e

        try:
            audio, sr = self.decode_wav(data)
        except (wave.Error, ValueError, EOFError) as e:
            raise SynthesisError(f"Prompt audio is not a playable WAV file: {e}") from e

        audio_f32 = audio.astype(np.float32) / 32768.0
        if audio_f32.shape[1] == 1:
            audio_f32 = audio_f32[:, 0]

        try:
            sd.play(audio_f32, samplerate=sr, blocking=False)
            await asyncio.wait_for(asyncio.to_thread(sd.wait), timeout=timeout_s)
        except asyncio.TimeoutError as e:
            sd.stop()
            raise SynthesisError(f"Playback did not finish within {timeout_s:.0f}s") from e
        except Exception as e:
            raise SynthesisError(f"Playback failed: {e}") from e
