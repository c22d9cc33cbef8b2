"""Voice-based assessment interface.

This file stays intentionally thin: it maps terminal keys onto the
``VoiceSession`` controls and delegates everything else to it.
"""

from __future__ import annotations

import asyncio
import logging

from neurosense.assessment.form_state import FormState
from neurosense.assessment.questions import PAGE_TITLES
from neurosense.assessment.schemas import AssessmentSubmission, Notice, NoticeVariant
from neurosense.assessment.submission import SubmissionSink, submit_assessment
from neurosense.config import Settings
from neurosense.io.text_interface import AssessmentInterface, TextInterface
from neurosense.voice.audio_io import AudioIO, AudioIOConfig
from neurosense.voice.stt import STTProvider, build_stt
from neurosense.voice.tts import PiperTTS, TTSProvider, build_tts
from neurosense.voice.voice_session import VoiceSession, VoiceSessionConfig

logger = logging.getLogger(__name__)

_HELP = (
    "Keys: Enter=start/stop answering, r=replay question, t=type answer, "
    "n=next page, p=previous page, v=voice on/off, s=submit, q=quit"
)


class VoiceInterface(AssessmentInterface):
    def __init__(
        self,
        form: FormState,
        sink: SubmissionSink,
        settings: Settings,
        *,
        patient_id: str | None = None,
        audio: AudioIO | None = None,
        stt: STTProvider | None = None,
        tts: TTSProvider | None = None,
    ) -> None:
        self._form = form
        self._sink = sink
        self._patient_id = patient_id
        self._manual = TextInterface(form, sink, patient_id=patient_id)

        self._audio = audio or AudioIO(AudioIOConfig(sample_rate=settings.sample_rate))
        self._stt = stt or build_stt(settings)
        self._tts = tts or build_tts(settings, self._audio)

        self._session = VoiceSession(
            form=form,
            audio=self._audio,
            stt=self._stt,
            tts=self._tts,
            config=VoiceSessionConfig(
                language_code=settings.language_code,
                initial_prompt_delay_s=settings.initial_prompt_delay_s,
                next_prompt_delay_s=settings.next_prompt_delay_s,
            ),
            on_notice=self._print_notice,
        )

    @property
    def session(self) -> VoiceSession:
        return self._session

    async def run(self) -> AssessmentSubmission | None:
        print("\n" + "=" * 60)
        print("Neurological Risk Assessment (Voice Mode)")
        print("=" * 60 + "\n")

        if isinstance(self._tts, PiperTTS):
            ok, reason = self._tts.is_available()
            if not ok:
                print(f"Question voice: DISABLED. Reason: {reason}")

        print(_HELP)
        self._print_page()
        await self._session.enable_voice_mode()

        try:
            while True:
                command = (await self.receive_input()).strip().lower()

                if command == "":
                    await self._session.toggle_answering()
                elif command == "r":
                    await self._session.replay_question()
                elif command == "t":
                    await self._manual.ask(self._session.current_question)
                elif command == "n":
                    self._form.next_page()
                    self._print_page()
                    await self._session.change_page(self._form.current_page)
                elif command == "p":
                    self._form.previous_page()
                    self._print_page()
                    await self._session.change_page(self._form.current_page)
                elif command == "v":
                    if self._session.state.voice_mode_enabled:
                        await self._session.disable_voice_mode()
                        print("Voice mode off. Press t to type answers, v to turn voice back on.")
                    else:
                        await self._session.enable_voice_mode()
                elif command == "s":
                    submission = await submit_assessment(self._form, self._sink, patient_id=self._patient_id)
                    await self.send_message("Assessment Submitted. Processing your responses.")
                    return submission
                elif command in ("q", "quit", "exit"):
                    print("\nAssessment discarded.")
                    return None
                else:
                    print(_HELP)
        finally:
            await self._session.close()
            await self._stt.close()
            await self._tts.close()

    def _print_page(self) -> None:
        page = self._form.current_page
        print("\n" + "-" * 60)
        print(f"Page {page} of {self._form.total_pages}: {PAGE_TITLES[page]} ({self._form.progress:.0f}%)")
        print("-" * 60)

    def _print_notice(self, notice: Notice) -> None:
        marker = "!" if notice.variant == NoticeVariant.DESTRUCTIVE else "*"
        print(f"\n[{marker}] {notice.title}: {notice.description}")
        if notice.title == "Recording Started":
            print("    Press Enter to stop.")
        elif notice.title == "Section Complete" and not self._form.is_last_page:
            print("    Press n for the next page.")

    async def send_message(self, message: str) -> None:
        print(f"\n{message}\n")

    async def receive_input(self) -> str:
        state = self._session.state
        total = len(self._session.questions)
        prompt = f"[Q {state.question_index + 1}/{total}] {self._session.current_prompt}\n> "
        return await self._get_input(prompt)

    async def _get_input(self, prompt: str) -> str:
        # Runs in a thread so scheduled prompts keep playing while we wait.
        try:
            return await asyncio.to_thread(input, prompt)
        except EOFError:
            return "quit"
