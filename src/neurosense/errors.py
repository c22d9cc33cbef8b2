"""
Exception hierarchy shared by the voice subsystem and the relay.
"""


class NeuroSenseError(Exception):
    """Base class for all NeuroSense errors."""


class MicrophoneError(NeuroSenseError):
    """Raised when the microphone is denied, missing, or fails to open."""


class RecordingStateError(NeuroSenseError):
    """Raised when a recording operation is called in the wrong state."""


class STTConfigurationError(NeuroSenseError):
    """Raised when no speech-to-text provider is configured."""


class TranscriptionError(NeuroSenseError):
    """Raised when every configured speech-to-text provider failed."""


class ProviderError(NeuroSenseError):
    """Exception raised when a single remote speech provider call fails."""

    def __init__(self, message: str, provider: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.provider = provider
        self.status_code = status_code


class SynthesisError(NeuroSenseError):
    """Raised when a prompt cannot be synthesized or played."""
