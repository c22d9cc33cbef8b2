import base64
import binascii
import logging

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse

from neurosense.errors import NeuroSenseError
from neurosense.relay.schemas import (
    ErrorResponse,
    SpeechToTextRequest,
    SpeechToTextResponse,
    TextToSpeechRequest,
    TextToSpeechResponse,
)
from neurosense.voice.audio_io import AudioPayload

logger = logging.getLogger(__name__)

router = APIRouter(tags=["speech"])

_ERROR_RESPONSES = {500: {"model": ErrorResponse, "description": "Missing input or provider failure"}}


def error_response(message: str) -> JSONResponse:
    return JSONResponse(status_code=500, content={"error": message})


@router.get("/health")
async def health():
    return {"status": "ok"}


@router.post("/speech-to-text", response_model=SpeechToTextResponse, responses=_ERROR_RESPONSES)
async def speech_to_text(body: SpeechToTextRequest, request: Request):
    if not body.audio:
        return error_response("No audio data provided")

    try:
        base64.b64decode(body.audio, validate=True)
    except (binascii.Error, ValueError):
        return error_response("Audio data is not valid base64")

    logger.info("Processing audio for transcription")
    stt = request.app.state.stt
    try:
        result = await stt.transcribe(AudioPayload(data=body.audio, mime_type="application/octet-stream"))
    except NeuroSenseError as e:
        logger.error(f"Error in speech-to-text: {e}")
        return error_response(str(e))

    return SpeechToTextResponse(text=result.text, provider=result.provider)


@router.post("/text-to-speech", response_model=TextToSpeechResponse, responses=_ERROR_RESPONSES)
async def text_to_speech(body: TextToSpeechRequest, request: Request):
    if not (body.text or "").strip():
        return error_response("No text provided")

    synthesizer = request.app.state.synthesizer
    try:
        audio = await synthesizer.synthesize(body.text)
    except NeuroSenseError as e:
        logger.error(f"Error in text-to-speech: {e}")
        return error_response(str(e))

    return TextToSpeechResponse(
        audioContent=base64.b64encode(audio).decode("ascii"),
        provider=synthesizer.name,
    )
