"""
Application configuration using pydantic-settings.

Loads configuration from environment variables and .env files.
"""

from functools import lru_cache
from typing import Literal

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="NEUROSENSE_",
        case_sensitive=False,
        populate_by_name=True,
        extra="ignore",
    )

    # Speech providers (unprefixed, matching the provider conventions)
    sarvam_api_key: str | None = Field(
        default=None,
        validation_alias=AliasChoices("SARVAM_API_KEY", "NEUROSENSE_SARVAM_API_KEY"),
        description="Sarvam AI subscription key (primary STT / remote TTS)",
    )
    openai_api_key: str | None = Field(
        default=None,
        validation_alias=AliasChoices("OPENAI_API_KEY", "NEUROSENSE_OPENAI_API_KEY"),
        description="OpenAI API key (fallback STT)",
    )
    sarvam_base_url: str = Field(
        default="https://api.sarvam.ai",
        description="Base URL for the Sarvam AI API",
    )
    openai_base_url: str = Field(
        default="https://api.openai.com/v1",
        description="Base URL for the OpenAI API",
    )
    sarvam_stt_model: str = Field(default="saarika:v2.5", description="Sarvam STT model")
    sarvam_tts_speaker: str | None = Field(default=None, description="Sarvam TTS speaker name")
    openai_stt_model: str = Field(default="whisper-1", description="OpenAI transcription model")
    provider_timeout: float = Field(
        default=30.0,
        description="Timeout in seconds for a single provider request",
    )

    # Optional offline STT
    local_stt_model: str | None = Field(
        default=None,
        description="faster-whisper model size to use as a last-resort STT provider",
    )

    # Relay
    relay_url: str | None = Field(
        default=None,
        description="Base URL of the speech relay; when set, clients call it instead of providers",
    )
    relay_host: str = Field(default="127.0.0.1", description="Relay bind host")
    relay_port: int = Field(default=8000, description="Relay bind port")

    # Voice session
    language_code: str = Field(
        default="kn-IN",
        description="BCP-47 tag for spoken prompts and transcription",
    )
    initial_prompt_delay_s: float = Field(
        default=0.5,
        description="Delay before the first prompt of a page is spoken",
    )
    next_prompt_delay_s: float = Field(
        default=1.0,
        description="Delay before the next prompt is spoken after an answer",
    )
    speech_rate: float = Field(default=0.9, description="Relative speaking rate for prompts")
    tts_mode: Literal["local", "remote"] = Field(
        default="local",
        description="Use on-device Piper voices or the remote synthesis API",
    )
    piper_bin: str = Field(default="piper", description="Path/name of the Piper TTS binary")
    piper_voices_dir: str | None = Field(
        default=None,
        description="Directory holding Piper *.onnx voice models",
    )
    piper_default_model: str | None = Field(
        default=None,
        description="Voice model used when no voice matches the language tag",
    )
    sample_rate: int = Field(default=16000, description="Microphone sample rate")

    # Application
    artifacts_dir: str = Field(
        default="data/assessments",
        description="Where submitted assessments are written",
    )
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="INFO",
        description="Logging level",
    )


@lru_cache
def get_settings() -> Settings:
    """
    Get cached application settings.

    Returns:
        Settings: Application settings instance.
    """
    return Settings()
