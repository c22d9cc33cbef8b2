import asyncio
import base64

import pytest

from neurosense.assessment.form_state import FormState
from neurosense.assessment.questions import QUESTIONS
from neurosense.assessment.schemas import NoticeVariant
from neurosense.errors import MicrophoneError, RecordingStateError, TranscriptionError
from neurosense.voice.audio_io import AudioPayload
from neurosense.voice.stt import STTProvider, TranscriptionResult
from neurosense.voice.tts import SpeechResult, TTSProvider
from neurosense.voice.voice_session import VoiceSession, VoiceSessionConfig


class FakeAudio:
    def __init__(self, *, fail_start: bool = False) -> None:
        self.fail_start = fail_start
        self.device_held = False
        self.starts = 0

    async def start_recording(self) -> None:
        if self.fail_start:
            raise MicrophoneError("Permission denied")
        if self.device_held:
            raise RecordingStateError("A recording is already in progress")
        self.starts += 1
        self.device_held = True

    async def stop_recording(self) -> AudioPayload:
        if not self.device_held:
            raise RecordingStateError("No recording in progress")
        self.device_held = False
        return AudioPayload(
            data=base64.b64encode(b"RIFF-fake-wav").decode("ascii"),
            sample_rate=16000,
            duration_s=1.5,
        )


class FakeSTT(STTProvider):
    name = "fake"

    def __init__(self, outputs: list) -> None:
        self._outputs = list(outputs)
        self.calls = 0

    async def transcribe(self, payload: AudioPayload) -> TranscriptionResult:
        self.calls += 1
        if not self._outputs:
            raise AssertionError("No more fake STT outputs")
        out = self._outputs.pop(0)
        if isinstance(out, Exception):
            raise out
        return TranscriptionResult(text=out, provider=self.name)


class FakeTTS(TTSProvider):
    name = "fake"

    def __init__(self, gate: asyncio.Event | None = None) -> None:
        self.spoken: list[str] = []
        self.started = asyncio.Event()
        self._gate = gate

    async def speak(self, text: str) -> SpeechResult:
        self.spoken.append(text)
        self.started.set()
        if self._gate is not None:
            await self._gate.wait()
        return SpeechResult.success(self.name)


def _fast_config(**overrides) -> VoiceSessionConfig:
    values = {"initial_prompt_delay_s": 0.0, "next_prompt_delay_s": 0.0}
    values.update(overrides)
    return VoiceSessionConfig(**values)


def _session(form=None, *, audio=None, stt=None, tts=None, config=None) -> VoiceSession:
    return VoiceSession(
        form=form or FormState(),
        audio=audio or FakeAudio(),
        stt=stt or FakeSTT([]),
        tts=tts or FakeTTS(),
        config=config or _fast_config(),
    )


async def _answer(session: VoiceSession) -> TranscriptionResult | None:
    assert await session.start_answering() is True
    return await session.stop_answering()


@pytest.mark.asyncio
async def test_enabling_voice_mode_starts_at_first_question_and_plays_it() -> None:
    tts = FakeTTS()
    session = _session(tts=tts)

    await session.enable_voice_mode()
    await session.wait_for_prompt()

    state = session.state
    assert state.voice_mode_enabled is True
    assert state.page_index == 1
    assert state.question_index == 0
    assert tts.spoken == [QUESTIONS[1][0].prompt_text]


@pytest.mark.asyncio
async def test_spoken_answer_sets_field_and_next_prompt_plays() -> None:
    form = FormState()
    audio = FakeAudio()
    tts = FakeTTS()
    session = _session(form, audio=audio, stt=FakeSTT(["I am sixty eight"]), tts=tts)

    await session.enable_voice_mode()
    await session.wait_for_prompt()

    result = await _answer(session)
    assert result is not None
    assert result.text == "I am sixty eight"
    assert form.get("age") == 68
    assert session.state.question_index == 1

    await session.wait_for_prompt()
    assert tts.spoken == [QUESTIONS[1][0].prompt_text, QUESTIONS[1][1].prompt_text]
    assert audio.device_held is False


@pytest.mark.asyncio
async def test_transcription_failure_leaves_question_and_form_unchanged() -> None:
    form = FormState()
    audio = FakeAudio()
    tts = FakeTTS()
    session = _session(form, audio=audio, stt=FakeSTT([TranscriptionError("network down")]), tts=tts)

    await session.enable_voice_mode()
    await session.wait_for_prompt()

    assert await _answer(session) is None

    assert session.state.question_index == 0
    assert session.state.is_recording is False
    assert form.get("age") == 65
    assert form.answered_fields == set()
    assert audio.device_held is False
    assert session.notices[-1].variant == NoticeVariant.DESTRUCTIVE
    assert session.notices[-1].description == "Failed to process voice input"
    # No auto-advance, so no further prompt is spoken.
    await session.wait_for_prompt()
    assert len(tts.spoken) == 1


@pytest.mark.asyncio
async def test_recording_is_refused_while_a_prompt_is_playing() -> None:
    gate = asyncio.Event()
    audio = FakeAudio()
    tts = FakeTTS(gate)
    session = _session(audio=audio, tts=tts)

    await session.enable_voice_mode()
    await tts.started.wait()

    assert session.state.is_playing is True
    assert session.can_record is False
    assert await session.start_answering() is False
    assert audio.starts == 0

    gate.set()
    await session.wait_for_prompt()
    assert session.state.is_playing is False
    assert session.can_record is True


@pytest.mark.asyncio
async def test_playback_is_refused_while_recording() -> None:
    tts = FakeTTS()
    session = _session(tts=tts)

    await session.enable_voice_mode()
    await session.wait_for_prompt()

    assert await session.start_answering() is True
    assert session.state.is_recording is True
    assert session.can_play is False
    assert await session.replay_question() is None
    assert len(tts.spoken) == 1


@pytest.mark.asyncio
async def test_scheduled_prompt_is_skipped_when_recording_started_first() -> None:
    tts = FakeTTS()
    session = _session(tts=tts, config=_fast_config(initial_prompt_delay_s=0.05))

    await session.enable_voice_mode()
    assert await session.start_answering() is True
    await session.wait_for_prompt()

    assert tts.spoken == []
    assert session.state.is_playing is False


@pytest.mark.asyncio
async def test_replay_speaks_current_prompt_again() -> None:
    tts = FakeTTS()
    session = _session(tts=tts)

    await session.enable_voice_mode()
    await session.wait_for_prompt()
    result = await session.replay_question()

    assert result is not None and result.ok
    assert tts.spoken == [QUESTIONS[1][0].prompt_text] * 2


@pytest.mark.asyncio
async def test_changing_page_restarts_at_first_question() -> None:
    form = FormState()
    tts = FakeTTS()
    session = _session(form, stt=FakeSTT(["72"]), tts=tts)

    await session.enable_voice_mode()
    await session.wait_for_prompt()
    await _answer(session)
    assert session.state.question_index == 1

    form.next_page()
    await session.change_page(form.current_page)
    await session.wait_for_prompt()

    assert session.state.page_index == 2
    assert session.state.question_index == 0
    assert tts.spoken[-1] == QUESTIONS[2][0].prompt_text


@pytest.mark.asyncio
async def test_last_answer_on_page_reports_section_complete() -> None:
    form = FormState()
    form.go_to_page(2)
    stt = FakeSTT(["my father had alzheimer", "I have diabetes", "none", "penicillin"])
    session = _session(form, stt=stt)

    await session.enable_voice_mode()
    for _ in range(4):
        await session.wait_for_prompt()
        await _answer(session)

    assert session.state.section_complete is True
    assert session.state.question_index == 3
    assert session.notices[-1].title == "Section Complete"
    assert form.get("familyHistory") == ["Alzheimer's Disease"]
    assert form.get("medicalConditions") == ["Diabetes"]
    assert form.get("medications") == ["None"]
    assert form.get("allergies") == "penicillin"


@pytest.mark.asyncio
async def test_unmatched_answer_leaves_field_unset_but_advances() -> None:
    form = FormState()
    form.go_to_page(3)
    session = _session(form, stt=FakeSTT(["hmm, not sure"]))

    await session.enable_voice_mode()
    await session.wait_for_prompt()
    await _answer(session)

    assert form.get("physicalActivity") is None
    assert session.state.question_index == 1


@pytest.mark.asyncio
async def test_microphone_denied_surfaces_notice() -> None:
    session = _session(audio=FakeAudio(fail_start=True))

    await session.enable_voice_mode()
    await session.wait_for_prompt()

    assert await session.start_answering() is False
    assert session.state.is_recording is False
    assert session.notices[-1].title == "Microphone Error"
    assert session.can_play is True


@pytest.mark.asyncio
async def test_disabling_voice_mode_releases_microphone() -> None:
    audio = FakeAudio()
    session = _session(audio=audio)

    await session.enable_voice_mode()
    await session.wait_for_prompt()
    await session.start_answering()
    assert audio.device_held is True

    await session.disable_voice_mode()

    assert audio.device_held is False
    assert session.state.voice_mode_enabled is False
    assert session.state.is_recording is False
    assert await session.replay_question() is None


def test_english_session_speaks_english_prompts() -> None:
    tts = FakeTTS()
    session = _session(tts=tts, config=_fast_config(language_code="en-IN"))

    async def _run():
        await session.enable_voice_mode()
        await session.wait_for_prompt()

    asyncio.run(_run())
    assert tts.spoken == ["How old are you?"]
