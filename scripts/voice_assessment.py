#!/usr/bin/env python

import argparse
import asyncio
import os

from neurosense.assessment.form_state import FormState
from neurosense.assessment.submission import JsonFileSubmissionSink
from neurosense.config import Settings, get_settings
from neurosense.io.voice_interface import VoiceInterface
from neurosense.main import setup_logging
from neurosense.voice.audio_io import AudioIO, AudioIOConfig
from neurosense.voice.stt import build_stt
from neurosense.voice.tts import build_tts


def _flag(v: str) -> bool:
    return (v or "").strip().lower() in {"1", "true", "yes", "y", "on"}


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(description="Run the NeuroSense assessment in voice mode")
    p.add_argument("--patient-id", default=None)
    p.add_argument(
        "--artifacts-dir",
        default=os.getenv("NEUROSENSE_ARTIFACTS_DIR"),
        help="Where submitted assessments are written",
    )
    p.add_argument(
        "--language",
        default=os.getenv("NEUROSENSE_LANGUAGE_CODE"),
        help="Language tag for prompts and transcription (default: NEUROSENSE_LANGUAGE_CODE or kn-IN)",
    )
    p.add_argument("--sample-rate", type=int, default=None)
    p.add_argument(
        "--noise-suppression",
        default=os.getenv("NEUROSENSE_NOISE_SUPPRESSION", "true"),
        help="Gate background noise in recordings (default: NEUROSENSE_NOISE_SUPPRESSION or true)",
    )

    # STT
    p.add_argument(
        "--relay-url",
        default=os.getenv("NEUROSENSE_RELAY_URL"),
        help="Send audio through the speech relay instead of calling providers directly",
    )
    p.add_argument(
        "--local-stt-model",
        default=os.getenv("NEUROSENSE_LOCAL_STT_MODEL"),
        help="faster-whisper model size used after the remote providers (default: NEUROSENSE_LOCAL_STT_MODEL)",
    )

    # TTS
    p.add_argument(
        "--tts-mode",
        default=os.getenv("NEUROSENSE_TTS_MODE"),
        choices=["local", "remote"],
        help="Speak prompts with local Piper voices or the remote API (default: NEUROSENSE_TTS_MODE or local)",
    )
    p.add_argument(
        "--piper-bin",
        default=os.getenv("NEUROSENSE_PIPER_BIN"),
        help="Path/name of Piper TTS binary (default: NEUROSENSE_PIPER_BIN or 'piper')",
    )
    p.add_argument(
        "--piper-voices-dir",
        default=os.getenv("NEUROSENSE_PIPER_VOICES_DIR"),
        help="Directory of Piper .onnx voices (default: NEUROSENSE_PIPER_VOICES_DIR)",
    )
    p.add_argument(
        "--piper-default-model",
        default=os.getenv("NEUROSENSE_PIPER_DEFAULT_MODEL"),
        help="Voice used when none matches the language (default: NEUROSENSE_PIPER_DEFAULT_MODEL)",
    )
    p.add_argument(
        "--speech-rate",
        type=float,
        default=os.getenv("NEUROSENSE_SPEECH_RATE"),
        help="Relative speaking rate (default: NEUROSENSE_SPEECH_RATE or 0.9)",
    )

    return p


def settings_from_args(args, settings: Settings) -> Settings:
    """Apply the command-line overrides on top of the loaded settings."""
    overrides = {
        "language_code": args.language,
        "sample_rate": args.sample_rate,
        "artifacts_dir": args.artifacts_dir,
        "relay_url": args.relay_url,
        "local_stt_model": args.local_stt_model,
        "tts_mode": args.tts_mode,
        "piper_bin": args.piper_bin,
        "piper_voices_dir": args.piper_voices_dir,
        "piper_default_model": args.piper_default_model,
        "speech_rate": args.speech_rate,
    }
    # Unset flags keep whatever the settings (.env included) already provide.
    return settings.model_copy(update={k: v for k, v in overrides.items() if v is not None})


async def main(argv: list[str] | None = None) -> None:
    args = build_parser().parse_args(argv)
    settings = settings_from_args(args, get_settings())

    audio = AudioIO(AudioIOConfig(sample_rate=settings.sample_rate, noise_suppression=_flag(args.noise_suppression)))
    interface = VoiceInterface(
        FormState(),
        JsonFileSubmissionSink(settings.artifacts_dir),
        settings,
        patient_id=args.patient_id,
        audio=audio,
        stt=build_stt(settings),
        tts=build_tts(settings, audio),
    )
    await interface.run()


if __name__ == "__main__":
    setup_logging()
    try:
        asyncio.run(main())
    except KeyboardInterrupt:
        raise SystemExit(0)
