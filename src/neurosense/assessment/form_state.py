"""
Assessment form state management.

Holds the answers for one assessment attempt across all four pages and the
page cursor used by the front-ends.
"""

from datetime import datetime, timezone
from typing import Any

from pydantic import ValidationError
from pydantic.alias_generators import to_camel

from neurosense.assessment.questions import TOTAL_PAGES
from neurosense.assessment.schemas import AssessmentFormData, AssessmentSubmission

# Wire field key (camelCase) -> model attribute name.
_FIELD_ATTRS: dict[str, str] = {
    (info.alias or to_camel(name)): name for name, info in AssessmentFormData.model_fields.items()
}


class FormState:
    """
    Manages the mutable answers of one assessment attempt.

    Values are validated against ``AssessmentFormData`` on every write, so an
    invalid answer raises ``ValueError`` and leaves the previous value intact.
    """

    def __init__(self, data: AssessmentFormData | None = None) -> None:
        """
        Initialize form state.

        Args:
            data: Initial answers (defaults to the questionnaire defaults).
        """
        self._data = data or AssessmentFormData()
        self._answered: set[str] = set()
        self._current_page: int = 1
        self._started_at: datetime = datetime.now(timezone.utc)

    @property
    def data(self) -> AssessmentFormData:
        """Get a copy of the current answers."""
        return self._data.model_copy(deep=True)

    @property
    def current_page(self) -> int:
        """Get the 1-based page being filled in."""
        return self._current_page

    @property
    def total_pages(self) -> int:
        return TOTAL_PAGES

    @property
    def is_last_page(self) -> bool:
        return self._current_page == TOTAL_PAGES

    @property
    def progress(self) -> float:
        """Get completion progress as a percentage of pages reached."""
        return self._current_page / TOTAL_PAGES * 100

    @property
    def answered_fields(self) -> set[str]:
        """Get the wire keys of fields the user has set."""
        return set(self._answered)

    @property
    def started_at(self) -> datetime:
        return self._started_at

    def next_page(self) -> int:
        """Move to the next page (no-op on the last page). Returns the current page."""
        if self._current_page < TOTAL_PAGES:
            self._current_page += 1
        return self._current_page

    def previous_page(self) -> int:
        """Move to the previous page (no-op on the first page). Returns the current page."""
        if self._current_page > 1:
            self._current_page -= 1
        return self._current_page

    def go_to_page(self, page: int) -> int:
        if not 1 <= page <= TOTAL_PAGES:
            raise ValueError(f"Page must be between 1 and {TOTAL_PAGES}, got {page}")
        self._current_page = page
        return self._current_page

    def get(self, field_key: str) -> Any:
        """
        Read a field by its wire key.

        Args:
            field_key: camelCase field key (e.g. ``sleepQuality``).

        Returns:
            The current value.
        """
        return getattr(self._data, self._attr(field_key))

    def set_field(self, field_key: str, value: Any) -> None:
        """
        Write a field by its wire key.

        Args:
            field_key: camelCase field key.
            value: New value, validated against the form schema.

        Raises:
            KeyError: If the field does not exist.
            ValueError: If the value is not valid for the field.
        """
        attr = self._attr(field_key)
        try:
            setattr(self._data, attr, value)
        except ValidationError as e:
            raise ValueError(f"Invalid value for {field_key!r}: {value!r}") from e
        self._answered.add(field_key)

    def add_to_list(self, field_key: str, *values: str) -> list[str]:
        """Add values to a multi-select field, keeping order and skipping duplicates."""
        current = list(self.get(field_key))
        for value in values:
            if value not in current:
                current.append(value)
        self.set_field(field_key, current)
        return current

    def toggle_list_value(self, field_key: str, value: str, checked: bool) -> list[str]:
        """Checkbox semantics: add ``value`` when checked, remove it otherwise."""
        current = list(self.get(field_key))
        if checked:
            if value not in current:
                current.append(value)
        else:
            current = [v for v in current if v != value]
        self.set_field(field_key, current)
        return current

    def to_payload(self) -> dict[str, Any]:
        """Get the answers keyed by wire field name."""
        return self._data.model_dump(by_alias=True, mode="json")

    def to_submission(self, patient_id: str | None = None) -> AssessmentSubmission:
        """Build the hand-off document for the scoring pipeline."""
        return AssessmentSubmission(
            patient_id=patient_id,
            answers=self.to_payload(),
            answered_fields=sorted(self._answered),
            started_at=self._started_at,
        )

    @staticmethod
    def _attr(field_key: str) -> str:
        try:
            return _FIELD_ATTRS[field_key]
        except KeyError:
            raise KeyError(f"Unknown form field: {field_key}") from None
