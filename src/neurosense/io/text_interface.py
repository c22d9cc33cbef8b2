"""
Text-based assessment interface.

Provides a command-line form for filling in the questionnaire by typing,
the manual fallback whenever voice answering is unavailable.
"""

from abc import ABC, abstractmethod
from typing import Any

from neurosense.assessment.form_state import FormState
from neurosense.assessment.questions import CHOICE_OPTIONS, MULTI_CHOICE_OPTIONS, PAGE_TITLES, questions_for_page
from neurosense.assessment.schemas import AssessmentSubmission, FieldKind, Question
from neurosense.assessment.submission import SubmissionSink, submit_assessment


class AssessmentInterface(ABC):
    """Abstract base class for assessment interfaces."""

    @abstractmethod
    async def run(self) -> AssessmentSubmission | None:
        """Run the assessment interface. Returns the submission, or None if abandoned."""
        ...

    @abstractmethod
    async def send_message(self, message: str) -> None:
        """
        Send a message to the user.

        Args:
            message: Message to display.
        """
        ...

    @abstractmethod
    async def receive_input(self) -> str:
        """
        Receive input from the user.

        Returns:
            User's input string.
        """
        ...


def parse_manual_answer(question: Question, raw: str) -> Any:
    """
    Convert typed input into a value for the question's field.

    Choices may be typed as their value or their 1-based number; multi-choice
    answers are comma-separated.

    Raises:
        ValueError: If the input does not fit the field.
    """
    raw = raw.strip()
    key = question.field_key

    if question.kind == FieldKind.NUMBER and key != "coffeeConsumption":
        return int(raw)

    if key in CHOICE_OPTIONS:
        return _resolve_option(raw, CHOICE_OPTIONS[key])

    if question.kind == FieldKind.MULTI_CHOICE:
        options = MULTI_CHOICE_OPTIONS[key]
        return [_resolve_option(part, options) for part in raw.split(",") if part.strip()]

    return raw


def _resolve_option(raw: str, options: list[str]) -> str:
    raw = raw.strip()
    if raw.isdigit():
        idx = int(raw) - 1
        if 0 <= idx < len(options):
            return options[idx]
        raise ValueError(f"Choose a number between 1 and {len(options)}")
    for option in options:
        if option.lower() == raw.lower():
            return option
    raise ValueError(f"Unknown option {raw!r}; expected one of: {', '.join(options)}")


class TextInterface(AssessmentInterface):
    """
    Command-line text interface for the assessment.

    Walks the four pages in order; an empty answer (or q) keeps the current value.
    """

    def __init__(self, form: FormState, sink: SubmissionSink, *, patient_id: str | None = None) -> None:
        """
        Initialize the text interface.

        Args:
            form: Form state to fill in.
            sink: Where the finished assessment is delivered.
            patient_id: Optional patient identifier attached to the submission.
        """
        self._form = form
        self._sink = sink
        self._patient_id = patient_id

    async def run(self) -> AssessmentSubmission | None:
        """Run the interactive questionnaire."""
        print("\n" + "=" * 60)
        print("Neurological Risk Assessment")
        print("=" * 60 + "\n")

        while True:
            await self._fill_page(self._form.current_page)

            if self._form.is_last_page:
                choice = await self._get_input("\n[s]ubmit, [p]revious page, [q]uit: ")
            else:
                choice = await self._get_input("\n[n]ext page, [p]revious page, [q]uit: ")
            choice = choice.strip().lower()

            if choice in ("q", "quit", "exit"):
                print("\nAssessment discarded.")
                return None
            if choice in ("p", "previous"):
                self._form.previous_page()
            elif choice in ("s", "submit") and self._form.is_last_page:
                submission = await submit_assessment(self._form, self._sink, patient_id=self._patient_id)
                await self.send_message("Assessment Submitted. Processing your responses.")
                return submission
            else:
                self._form.next_page()

    async def _fill_page(self, page: int) -> None:
        print("\n" + "-" * 60)
        print(f"Page {page} of {self._form.total_pages}: {PAGE_TITLES[page]}")
        print("-" * 60)

        for question in questions_for_page(page):
            await self.ask(question)

    async def ask(self, question: Question) -> None:
        """Ask one question until a valid answer (or an empty line) is given."""
        options = CHOICE_OPTIONS.get(question.field_key) or MULTI_CHOICE_OPTIONS.get(question.field_key)
        print(f"\n{question.prompt_en}")
        if options:
            for i, option in enumerate(options, start=1):
                print(f"  {i}. {option}")

        while True:
            current = self._form.get(question.field_key)
            raw = await self._get_input(f"[{current}] > ")
            if not raw.strip() or raw.strip().lower() in ("q", "quit"):
                return
            try:
                self._form.set_field(question.field_key, parse_manual_answer(question, raw))
                return
            except ValueError as e:
                print(f"  {e}")

    async def send_message(self, message: str) -> None:
        """
        Display a message to the terminal.

        Args:
            message: Message to display.
        """
        print(f"\n{message}\n")

    async def receive_input(self) -> str:
        return await self._get_input("> ")

    async def _get_input(self, prompt: str) -> str:
        try:
            return input(prompt)
        except EOFError:
            return "quit"
