from pydantic import BaseModel, Field


class SpeechToTextRequest(BaseModel):
    audio: str | None = Field(default=None, description="Base64-encoded audio blob")


class SpeechToTextResponse(BaseModel):
    text: str
    provider: str


class TextToSpeechRequest(BaseModel):
    text: str | None = Field(default=None, description="Prompt text to synthesize")


class TextToSpeechResponse(BaseModel):
    audioContent: str = Field(..., description="Base64-encoded WAV audio")
    provider: str


class ErrorResponse(BaseModel):
    error: str
