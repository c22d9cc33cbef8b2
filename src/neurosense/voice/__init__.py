"""Voice subsystem.

This package provides the voice answering channel for the assessment:

prompt -> TTS -> speaker, mic -> STT -> answer extractor -> form

The session controller is the single authority for which question is active
and which audio operation may run.
"""

from neurosense.voice.audio_io import AudioIO, AudioIOConfig, AudioPayload
from neurosense.voice.stt import (
    FallbackSTT,
    OpenAISTT,
    RelaySTT,
    SarvamSTT,
    STTProvider,
    TranscriptionResult,
    WhisperSTT,
    build_stt,
)
from neurosense.voice.tts import (
    PiperTTS,
    RemoteTTS,
    SpeechResult,
    TTSConfig,
    TTSProvider,
    build_tts,
)
from neurosense.voice.voice_session import VoiceSession, VoiceSessionConfig, VoiceSessionState

__all__ = [
    "AudioIO",
    "AudioIOConfig",
    "AudioPayload",
    "FallbackSTT",
    "OpenAISTT",
    "PiperTTS",
    "RelaySTT",
    "RemoteTTS",
    "SarvamSTT",
    "SpeechResult",
    "STTProvider",
    "TTSConfig",
    "TTSProvider",
    "TranscriptionResult",
    "VoiceSession",
    "VoiceSessionConfig",
    "VoiceSessionState",
    "WhisperSTT",
    "build_stt",
    "build_tts",
]
