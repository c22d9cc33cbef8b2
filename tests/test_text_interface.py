import asyncio
import builtins

import pytest

from neurosense.assessment.form_state import FormState
from neurosense.assessment.questions import QUESTIONS
from neurosense.io.text_interface import TextInterface, parse_manual_answer


def _question(field_key: str):
    return next(q for page in QUESTIONS.values() for q in page if q.field_key == field_key)


class MemorySink:
    def __init__(self) -> None:
        self.submissions = []

    async def submit(self, submission) -> None:
        self.submissions.append(submission)


def test_parse_manual_answer_accepts_numbers_and_names() -> None:
    assert parse_manual_answer(_question("age"), " 71 ") == 71
    assert parse_manual_answer(_question("gender"), "2") == "Female"
    assert parse_manual_answer(_question("sleepQuality"), "GOOD") == "good"
    assert parse_manual_answer(_question("coffeeConsumption"), "3-4") == "3-4"
    assert parse_manual_answer(_question("familyHistory"), "1, stroke") == [
        "Alzheimer's Disease",
        "Stroke",
    ]
    assert parse_manual_answer(_question("occupation"), "farmer") == "farmer"


def test_parse_manual_answer_rejects_unknown_options() -> None:
    with pytest.raises(ValueError):
        parse_manual_answer(_question("gender"), "9")
    with pytest.raises(ValueError):
        parse_manual_answer(_question("dietType"), "carnivore")
    with pytest.raises(ValueError):
        parse_manual_answer(_question("age"), "old")


def test_text_interface_walks_pages_and_submits(monkeypatch) -> None:
    answers = iter(
        ["70", "2", "", "", "", "", "", "n"]  # page 1
        + ["1,5", "", "", "", "n"]  # page 2
        + [""] * 7 + ["n"]  # page 3
        + [""] * 4 + ["s"]  # page 4
    )
    monkeypatch.setattr(builtins, "input", lambda prompt="": next(answers))

    form = FormState()
    sink = MemorySink()
    submission = asyncio.run(TextInterface(form, sink, patient_id="p-9").run())

    assert submission is not None
    assert sink.submissions == [submission]
    assert submission.patient_id == "p-9"
    assert submission.answers["age"] == 70
    assert submission.answers["gender"] == "Female"
    assert submission.answers["familyHistory"] == ["Alzheimer's Disease", "Heart Disease"]
    assert submission.answered_fields == ["age", "familyHistory", "gender"]


def test_text_interface_quit_discards(monkeypatch) -> None:
    def _eof(prompt=""):
        raise EOFError

    monkeypatch.setattr(builtins, "input", _eof)

    sink = MemorySink()
    assert asyncio.run(TextInterface(FormState(), sink).run()) is None
    assert sink.submissions == []
