"""Voice session controller (glue layer).

This module sequences one assessment page in voice mode:
prompt -> TTS playback -> mic -> STT -> answer extraction -> next prompt

Only one audio operation is ever in flight: playback is refused while
recording and recording is refused while a prompt is playing.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, replace
from typing import Callable, Protocol

from neurosense.assessment.extractor import AnswerExtractor
from neurosense.assessment.form_state import FormState
from neurosense.assessment.questions import questions_for_page
from neurosense.assessment.schemas import Notice, NoticeVariant, Question
from neurosense.errors import (
    MicrophoneError,
    ProviderError,
    RecordingStateError,
    STTConfigurationError,
    TranscriptionError,
)
from neurosense.voice.audio_io import AudioPayload
from neurosense.voice.stt import STTProvider, TranscriptionResult
from neurosense.voice.tts import SpeechResult, TTSProvider

logger = logging.getLogger(__name__)

_LANGUAGE_NAMES = {"kn": "Kannada", "en": "English", "hi": "Hindi"}


@dataclass(frozen=True)
class VoiceSessionConfig:
    language_code: str = "kn-IN"
    # Gives the speech engine time to come up before the first prompt.
    initial_prompt_delay_s: float = 0.5
    next_prompt_delay_s: float = 1.0


@dataclass
class VoiceSessionState:
    page_index: int = 1
    question_index: int = 0
    is_recording: bool = False
    is_playing: bool = False
    voice_mode_enabled: bool = False
    section_complete: bool = False


class AudioCaptureProtocol(Protocol):
    async def start_recording(self) -> None: ...

    async def stop_recording(self) -> AudioPayload: ...


class VoiceSession:
    def __init__(
        self,
        *,
        form: FormState,
        audio: AudioCaptureProtocol,
        stt: STTProvider,
        tts: TTSProvider,
        extractor: AnswerExtractor | None = None,
        config: VoiceSessionConfig | None = None,
        on_notice: Callable[[Notice], None] | None = None,
    ) -> None:
        self._form = form
        self._audio = audio
        self._stt = stt
        self._tts = tts
        self._extractor = extractor or AnswerExtractor()
        self._config = config or VoiceSessionConfig()
        self._on_notice = on_notice

        self._state = VoiceSessionState(page_index=form.current_page)
        self._notices: list[Notice] = []
        self._pending_prompt: asyncio.Task | None = None

    @property
    def config(self) -> VoiceSessionConfig:
        return self._config

    @property
    def state(self) -> VoiceSessionState:
        """Get a snapshot of the session state."""
        return replace(self._state)

    @property
    def notices(self) -> list[Notice]:
        return list(self._notices)

    @property
    def questions(self) -> tuple[Question, ...]:
        return questions_for_page(self._state.page_index)

    @property
    def current_question(self) -> Question:
        return self.questions[self._state.question_index]

    @property
    def current_prompt(self) -> str:
        return self.current_question.prompt_for(self._config.language_code)

    @property
    def can_play(self) -> bool:
        """Replay is available only when nothing is recording or playing."""
        return self._state.voice_mode_enabled and not self._state.is_recording and not self._state.is_playing

    @property
    def can_record(self) -> bool:
        """Answering is available only when no prompt is playing."""
        return self._state.voice_mode_enabled and not self._state.is_playing

    # ------------------------------------------------------------------
    # Mode and page lifecycle
    # ------------------------------------------------------------------

    async def enable_voice_mode(self) -> None:
        """Turn voice mode on and start from the first question of the current page."""
        self._state.voice_mode_enabled = True
        await self._reset_page(self._form.current_page)
        logger.info(f"[VOICE][SESSION] voice mode on page={self._state.page_index}")

    async def disable_voice_mode(self) -> None:
        """Turn voice mode off. A prompt that is already playing runs to completion."""
        self._cancel_pending_prompt()
        await self._abort_recording()
        self._state.voice_mode_enabled = False
        self._state.question_index = 0
        self._state.section_complete = False
        logger.info("[VOICE][SESSION] voice mode off")

    async def change_page(self, page: int) -> None:
        """Follow a page change; restarts the question sequence when voice mode is on."""
        questions_for_page(page)
        await self._reset_page(page)

    async def _reset_page(self, page: int) -> None:
        self._cancel_pending_prompt()
        await self._abort_recording()
        self._state.page_index = page
        self._state.question_index = 0
        self._state.section_complete = False
        if self._state.voice_mode_enabled:
            self._schedule_prompt(self._config.initial_prompt_delay_s)

    # ------------------------------------------------------------------
    # Playback
    # ------------------------------------------------------------------

    async def replay_question(self) -> SpeechResult | None:
        """Play the current prompt again. Returns None if playback is not allowed right now."""
        if not self.can_play:
            logger.debug("[VOICE][SESSION] replay refused: audio operation in progress")
            return None
        return await self._play(self.current_prompt)

    async def _play(self, text: str) -> SpeechResult:
        self._state.is_playing = True
        try:
            result = await self._tts.speak(text)
        finally:
            self._state.is_playing = False

        if not result.ok:
            self._notify("Error", result.error or "Could not play the question.", NoticeVariant.DESTRUCTIVE)
        return result

    def _schedule_prompt(self, delay_s: float) -> None:
        self._cancel_pending_prompt()
        expected = (self._state.page_index, self._state.question_index)
        self._pending_prompt = asyncio.create_task(self._delayed_prompt(delay_s, expected))

    async def _delayed_prompt(self, delay_s: float, expected: tuple[int, int]) -> None:
        await asyncio.sleep(delay_s)
        if (self._state.page_index, self._state.question_index) != expected:
            return
        if not self.can_play:
            logger.info("[VOICE][SESSION] scheduled prompt skipped: audio operation in progress")
            return
        await self._play(self.current_prompt)

    def _cancel_pending_prompt(self) -> None:
        task = self._pending_prompt
        self._pending_prompt = None
        if task is not None and not task.done():
            task.cancel()

    async def wait_for_prompt(self) -> None:
        """Wait until a scheduled prompt (if any) has played or been skipped."""
        task = self._pending_prompt
        if task is None:
            return
        try:
            await task
        except asyncio.CancelledError:
            if not task.cancelled():
                raise

    # ------------------------------------------------------------------
    # Recording and answering
    # ------------------------------------------------------------------

    async def toggle_answering(self) -> TranscriptionResult | bool | None:
        if self._state.is_recording:
            return await self.stop_answering()
        return await self.start_answering()

    async def start_answering(self) -> bool:
        """Open the microphone for the current question. Returns True if recording started."""
        if not self.can_record or self._state.is_recording:
            logger.debug("[VOICE][SESSION] recording refused: audio operation in progress")
            return False

        # Claimed before the await so playback cannot start while the mic opens.
        self._state.is_recording = True
        try:
            await self._audio.start_recording()
        except (MicrophoneError, RecordingStateError) as e:
            self._state.is_recording = False
            logger.warning(f"[VOICE][SESSION] microphone unavailable: {e}")
            self._notify("Microphone Error", str(e), NoticeVariant.DESTRUCTIVE)
            return False

        language = _LANGUAGE_NAMES.get(self._config.language_code.split("-", 1)[0].lower(), "your language")
        self._notify("Recording Started", f"Speak your answer in {language}")
        return True

    async def stop_answering(self) -> TranscriptionResult | None:
        """
        Stop recording, transcribe, and apply the answer.

        On success the answer is written into the form and the session moves
        to the next question. On failure a notice is raised and the question
        index and form are left unchanged.
        """
        if not self._state.is_recording:
            return None

        question = self.current_question
        position = (self._state.page_index, self._state.question_index)

        self._state.is_recording = False
        try:
            payload = await self._audio.stop_recording()
        except (MicrophoneError, RecordingStateError) as e:
            logger.warning(f"[VOICE][SESSION] failed to stop recording: {e}")
            self._notify("Error", "Failed to process voice input", NoticeVariant.DESTRUCTIVE)
            return None

        if payload.is_empty:
            self._notify("Error", "No audio was captured. Please try again.", NoticeVariant.DESTRUCTIVE)
            return None

        try:
            result = await self._stt.transcribe(payload)
        except (TranscriptionError, STTConfigurationError, ProviderError) as e:
            logger.warning(f"[VOICE][SESSION] transcription failed: {e}")
            self._notify("Error", "Failed to process voice input", NoticeVariant.DESTRUCTIVE)
            return None

        self._notify("Success", f"Transcription: {result.text}")
        self._extractor.apply(result.text, question.field_key, self._form)

        if (self._state.page_index, self._state.question_index) != position or not self._state.voice_mode_enabled:
            logger.info("[VOICE][SESSION] page changed during transcription; not advancing")
            return result

        self._advance()
        return result

    def _advance(self) -> None:
        next_index = self._state.question_index + 1
        if next_index < len(self.questions):
            self._state.question_index = next_index
            self._schedule_prompt(self._config.next_prompt_delay_s)
        else:
            self._state.section_complete = True
            self._notify("Section Complete", "All questions answered for this section!")

    async def _abort_recording(self) -> None:
        if not self._state.is_recording:
            return
        self._state.is_recording = False
        try:
            await self._audio.stop_recording()
        except (MicrophoneError, RecordingStateError) as e:
            logger.warning(f"[VOICE][SESSION] failed to release microphone: {e}")

    async def close(self) -> None:
        self._cancel_pending_prompt()
        await self._abort_recording()

    def _notify(self, title: str, description: str, variant: NoticeVariant = NoticeVariant.DEFAULT) -> None:
        notice = Notice(title=title, description=description, variant=variant)
        self._notices.append(notice)
        if self._on_notice is not None:
            self._on_notice(notice)
