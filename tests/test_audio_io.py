import asyncio

import numpy as np
import pytest

from neurosense.errors import MicrophoneError, RecordingStateError
from neurosense.voice.audio_io import AudioIO, AudioIOConfig

SR = 16000


def _tone(amplitude: float, n: int = 1600, freq: float = 400.0) -> np.ndarray:
    t = np.arange(n) / SR
    return (amplitude * np.sin(2 * np.pi * freq * t)).astype(np.int16)[:, None]


class FakeStream:
    def __init__(self, callback, blocks, *, fail_start=False, fail_stop=False):
        self._callback = callback
        self._blocks = blocks
        self._fail_start = fail_start
        self._fail_stop = fail_stop
        self.active = False
        self.closed = False

    def start(self):
        if self._fail_start:
            raise OSError("Permission denied")
        self.active = True
        for block in self._blocks:
            self._callback(block, len(block), None, None)

    def stop(self):
        if self._fail_stop:
            raise OSError("device vanished")
        self.active = False

    def close(self):
        self.active = False
        self.closed = True


class FakeSoundDevice:
    def __init__(self, blocks=(), *, fail_open=False, fail_start=False, fail_stop=False):
        self.blocks = list(blocks)
        self.fail_open = fail_open
        self.fail_start = fail_start
        self.fail_stop = fail_stop
        self.streams: list[FakeStream] = []
        self.stop_calls = 0
        self.played: list[tuple[np.ndarray, int]] = []

    def InputStream(self, samplerate, channels, dtype, callback):  # noqa: N802
        if self.fail_open:
            raise OSError("No input device")
        stream = FakeStream(callback, self.blocks, fail_start=self.fail_start, fail_stop=self.fail_stop)
        self.streams.append(stream)
        return stream

    def stop(self):
        self.stop_calls += 1

    def play(self, data, samplerate, blocking=False):
        self.played.append((data, samplerate))

    def wait(self):
        return None


def test_recording_returns_wav_and_releases_microphone() -> None:
    sd = FakeSoundDevice([_tone(8000)])
    audio = AudioIO(AudioIOConfig(sample_rate=SR), backend=sd)

    async def _run():
        await audio.start_recording()
        assert audio.is_recording
        return await audio.stop_recording()

    payload = asyncio.run(_run())

    assert not audio.is_recording
    assert sd.streams[0].closed
    assert sd.stop_calls == 1  # speaker halted before the mic opened
    samples, sr = AudioIO.decode_wav(payload.to_bytes())
    assert sr == SR
    assert samples.shape == (1600, 1)
    assert payload.duration_s == pytest.approx(0.1)
    assert not payload.is_empty


def test_noise_gate_silences_quiet_blocks() -> None:
    sd = FakeSoundDevice([_tone(8000), _tone(50)])
    audio = AudioIO(AudioIOConfig(sample_rate=SR), backend=sd)

    async def _run():
        await audio.start_recording()
        return await audio.stop_recording()

    samples, _ = AudioIO.decode_wav(asyncio.run(_run()).to_bytes())

    assert np.abs(samples[:1600]).max() > 1000
    assert not samples[1600:].any()


def test_empty_recording_is_flagged() -> None:
    audio = AudioIO(AudioIOConfig(sample_rate=SR), backend=FakeSoundDevice())

    async def _run():
        await audio.start_recording()
        return await audio.stop_recording()

    assert asyncio.run(_run()).is_empty


@pytest.mark.asyncio
async def test_stop_without_recording_raises() -> None:
    audio = AudioIO(backend=FakeSoundDevice())
    with pytest.raises(RecordingStateError, match="No recording in progress"):
        await audio.stop_recording()


@pytest.mark.asyncio
async def test_second_start_is_rejected() -> None:
    audio = AudioIO(backend=FakeSoundDevice())
    await audio.start_recording()
    with pytest.raises(RecordingStateError):
        await audio.start_recording()
    await audio.stop_recording()


@pytest.mark.asyncio
async def test_permission_failure_becomes_microphone_error() -> None:
    sd = FakeSoundDevice(fail_start=True)
    audio = AudioIO(backend=sd)

    with pytest.raises(MicrophoneError, match="microphone permissions"):
        await audio.start_recording()

    assert not audio.is_recording
    assert sd.streams[0].closed


@pytest.mark.asyncio
async def test_missing_device_becomes_microphone_error() -> None:
    audio = AudioIO(backend=FakeSoundDevice(fail_open=True))
    with pytest.raises(MicrophoneError):
        await audio.start_recording()
    assert not audio.is_recording


@pytest.mark.asyncio
async def test_stream_is_closed_even_when_stop_fails() -> None:
    sd = FakeSoundDevice([_tone(8000)], fail_stop=True)
    audio = AudioIO(backend=sd)

    await audio.start_recording()
    with pytest.raises(MicrophoneError):
        await audio.stop_recording()

    assert sd.streams[0].closed
    assert not audio.is_recording


@pytest.mark.asyncio
async def test_play_wav_bytes_sends_audio_to_speaker() -> None:
    sd = FakeSoundDevice()
    audio = AudioIO(AudioIOConfig(sample_rate=SR), backend=sd)

    await audio.play_wav_bytes(audio.encode_wav(_tone(8000)))

    data, samplerate = sd.played[0]
    assert samplerate == SR
    assert data.shape == (1600,)


@pytest.mark.asyncio
async def test_close_failure_becomes_microphone_error() -> None:
    sd = FakeSoundDevice([_tone(8000)])
    audio = AudioIO(backend=sd)

    await audio.start_recording()

    def _broken_close():
        raise OSError("PortAudio error")

    sd.streams[0].close = _broken_close

    with pytest.raises(MicrophoneError, match="release the microphone"):
        await audio.stop_recording()
    assert not audio.is_recording
