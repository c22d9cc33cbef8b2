"""Map free-form transcripts onto structured form fields.

The heuristics are deliberately simple: numbers are pulled out of the text,
enumerated answers are matched against a bilingual (English/Kannada) keyword
table, and free-text answers are stored verbatim. Anything that does not
match leaves the field untouched.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import Any

from neurosense.assessment.form_state import FormState

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class KeywordRule:
    keywords: tuple[str, ...]
    value: str
    # Only applies when no other rule of a multi-choice field matched.
    exclusive: bool = False
    # Latin-script keywords must match a whole word ("no" must not hit "know").
    whole_word: bool = False

    def matches(self, lowered_text: str) -> bool:
        for keyword in self.keywords:
            if self.whole_word and keyword.isascii():
                if re.search(rf"\b{re.escape(keyword)}\b", lowered_text):
                    return True
            elif keyword in lowered_text:
                return True
        return False


@dataclass(frozen=True)
class ExtractedAnswer:
    field_key: str
    value: Any


def _r(value: str, *keywords: str, exclusive: bool = False, whole_word: bool = False) -> KeywordRule:
    return KeywordRule(
        keywords=tuple(k.lower() for k in keywords),
        value=value,
        exclusive=exclusive,
        whole_word=whole_word,
    )


NUMERIC_FIELDS = frozenset({"age", "weight", "height", "alcoholConsumption", "coffeeConsumption"})
TEXT_FIELDS = frozenset({"occupation", "languagePreference", "allergies", "moodChanges"})

_YES_NO = (
    _r("yes", "yes", "ಹೌದು", "ಇದೆ", whole_word=True),
    _r("no", "no", "ಇಲ್ಲ", whole_word=True),
)

# Single-choice fields. Rules are evaluated in order and the first match wins,
# so a keyword contained in another ("male" in "female") must come later.
CHOICE_RULES: dict[str, tuple[KeywordRule, ...]] = {
    "gender": (
        _r("Female", "female", "woman", "ಹೆಣ್ಣು", "ಮಹಿಳೆ"),
        _r("Male", "male", "ಗಂಡು", "ಪುರುಷ"),
        _r("Other", "other", "ಇತರ"),
    ),
    "education": (
        _r("high-school", "high", "ಹೈಸ್ಕೂಲ್"),
        _r("masters", "master", "ಸ್ನಾತಕೋತ್ತರ"),
        _r("doctorate", "doctorate", "phd", "ಡಾಕ್ಟರೇಟ್"),
        _r("bachelors", "bachelor", "ಪದವಿ"),
    ),
    "physicalActivity": (
        _r("sedentary", "sedentary", "inactive", "ಕುಳಿತಿರುವ"),
        _r("light", "light", "ಹಗುರ"),
        _r("moderate", "moderate", "ಮಧ್ಯಮ"),
        _r("active", "active", "ಸಕ್ರಿಯ"),
    ),
    "sleepQuality": (
        _r("poor", "poor", "ಕೆಟ್ಟ"),
        _r("fair", "fair", "ಸರಾಸರಿ"),
        _r("good", "good", "ಒಳ್ಳೆಯ"),
        _r("excellent", "excellent", "ಅತ್ಯುತ್ತಮ"),
    ),
    "smokingStatus": (
        _r("never", "never", "ಎಂದೂ ಇಲ್ಲ"),
        _r("former", "former", "quit", "ಹಿಂದೆ"),
        _r("current", "current", "ಈಗ"),
    ),
    "dietType": (
        _r("non-vegetarian", "non-veg", "non veg", "nonveg", "ಮಾಂಸಾಹಾರಿ"),
        _r("vegan", "vegan", "ವೀಗನ್"),
        _r("vegetarian", "vegetarian", "ಸಸ್ಯಾಹಾರಿ"),
        _r("mediterranean", "mediterranean"),
        _r("standard", "standard", "ಸಾಮಾನ್ಯ"),
    ),
    "socialEngagement": (
        _r("low", "low", "ಕಡಿಮೆ"),
        _r("moderate", "moderate", "ಮಧ್ಯಮ"),
        _r("high", "high", "ಹೆಚ್ಚು"),
    ),
    "memoryComplaints": _YES_NO,
    "speechIssues": _YES_NO,
}

# Multi-choice fields: every matching option is selected.
MULTI_CHOICE_RULES: dict[str, tuple[KeywordRule, ...]] = {
    "familyHistory": (
        _r("Alzheimer's Disease", "alzheimer", "ಅಲ್ಝೈಮರ್"),
        _r("Parkinson's Disease", "parkinson", "ಪಾರ್ಕಿನ್ಸನ್"),
        _r("Dementia", "dementia", "ಮರೆವು"),
        _r("Stroke", "stroke", "ಪಾರ್ಶ್ವವಾಯು"),
        _r("Heart Disease", "heart", "ಹೃದಯ"),
    ),
    "medicalConditions": (
        _r("Hypertension", "hypertension", "blood pressure", "ರಕ್ತದೊತ್ತಡ"),
        _r("Diabetes", "diabetes", "sugar", "ಮಧುಮೇಹ", "ಸಕ್ಕರೆ"),
        _r("High Cholesterol", "cholesterol", "ಕೊಲೆಸ್ಟ್ರಾಲ್"),
        _r("Depression", "depression", "ಖಿನ್ನತೆ"),
        _r("Anxiety", "anxiety", "ಆತಂಕ"),
        _r("Thyroid Disorder", "thyroid", "ಥೈರಾಯ್ಡ್"),
    ),
    "medications": (
        _r("Blood Pressure Medication", "blood pressure", "ರಕ್ತದೊತ್ತಡ"),
        _r("Diabetes Medication", "diabetes", "insulin", "metformin", "ಮಧುಮೇಹ"),
        _r("Cholesterol Medication", "cholesterol", "statin"),
        _r("Antidepressants", "antidepressant", "ಖಿನ್ನತೆ"),
        _r("Pain Relievers", "pain", "ನೋವು"),
        _r("None", "none", "no medication", "ಇಲ್ಲ", exclusive=True),
    ),
    "neurologicalSymptoms": (
        _r("Tremors or shaking", "tremor", "shak", "ನಡುಕ"),
        _r("Balance problems", "balance", "ಸಮತೋಲನ"),
        _r("Coordination difficulties", "coordination", "ಸಮನ್ವಯ"),
        _r("Stiffness or rigidity", "stiff", "rigid", "ಬಿಗಿತ"),
        _r("Slowed movement", "slow", "ನಿಧಾನ"),
        _r("Vision changes", "vision", "eyesight", "ದೃಷ್ಟಿ"),
        _r("Headaches", "headache", "ತಲೆನೋವು"),
        _r("Dizziness", "dizz", "ತಲೆತಿರುಗು"),
        _r("None of the above", "none", "no symptoms", "ಇಲ್ಲ", exclusive=True),
    ),
}


_DIGITS_RE = re.compile(r"\d+")
_WORD_RE = re.compile(r"[a-z]+")

_UNITS = {
    "zero": 0, "one": 1, "two": 2, "three": 3, "four": 4, "five": 5, "six": 6,
    "seven": 7, "eight": 8, "nine": 9, "ten": 10, "eleven": 11, "twelve": 12,
    "thirteen": 13, "fourteen": 14, "fifteen": 15, "sixteen": 16,
    "seventeen": 17, "eighteen": 18, "nineteen": 19,
}
_TENS = {
    "twenty": 20, "thirty": 30, "forty": 40, "fifty": 50,
    "sixty": 60, "seventy": 70, "eighty": 80, "ninety": 90,
}


def match_keywords(text: str, rules: tuple[KeywordRule, ...]) -> str | None:
    """Return the value of the first rule whose keyword occurs in ``text``."""
    lowered = text.lower()
    for rule in rules:
        if rule.matches(lowered):
            return rule.value
    return None


def match_all_keywords(text: str, rules: tuple[KeywordRule, ...]) -> list[str]:
    """Return the values of every matching rule; exclusive rules only if nothing else matched."""
    lowered = text.lower()
    found = [r.value for r in rules if not r.exclusive and r.matches(lowered)]
    if found:
        return found
    return [r.value for r in rules if r.exclusive and r.matches(lowered)][:1]


def _parse_number_words(text: str) -> int | None:
    total = 0
    current = 0
    seen = False
    for word in _WORD_RE.findall(text.lower()):
        if word in _UNITS:
            current += _UNITS[word]
        elif word in _TENS:
            current += _TENS[word]
        elif word == "hundred" and seen:
            current = (current or 1) * 100
        elif word == "thousand" and seen:
            total += (current or 1) * 1000
            current = 0
        elif word == "and" and seen:
            continue
        elif seen:
            break
        else:
            continue
        seen = True
    return total + current if seen else None


def extract_number(text: str) -> int | None:
    """
    Pull the first integer out of a transcript.

    Digit runs (any script, so Kannada numerals work) take precedence; if
    there are none, English number words are parsed ("sixty eight" -> 68).
    """
    m = _DIGITS_RE.search(text)
    if m:
        return int(m.group(0))
    return _parse_number_words(text)


def coffee_bucket(cups: int) -> str:
    if cups <= 0:
        return "none"
    if cups <= 2:
        return "1-2"
    if cups <= 4:
        return "3-4"
    return "5+"


class AnswerExtractor:
    """Applies the field-specific heuristics to a transcript."""

    def extract(self, text: str, field_key: str) -> ExtractedAnswer | None:
        """
        Derive a form value for ``field_key`` from ``text``.

        Returns:
            The extracted answer, or None when nothing usable was found.
        """
        text = (text or "").strip()
        if not text:
            return None

        if field_key in NUMERIC_FIELDS:
            number = extract_number(text)
            if number is None:
                return None
            if field_key == "coffeeConsumption":
                return ExtractedAnswer(field_key, coffee_bucket(number))
            return ExtractedAnswer(field_key, number)

        if field_key in CHOICE_RULES:
            value = match_keywords(text, CHOICE_RULES[field_key])
            return ExtractedAnswer(field_key, value) if value is not None else None

        if field_key in MULTI_CHOICE_RULES:
            values = match_all_keywords(text, MULTI_CHOICE_RULES[field_key])
            return ExtractedAnswer(field_key, values) if values else None

        if field_key in TEXT_FIELDS:
            return ExtractedAnswer(field_key, text)

        logger.debug(f"No extraction rule for field {field_key!r}")
        return None

    def apply(self, text: str, field_key: str, form: FormState) -> ExtractedAnswer | None:
        """
        Extract an answer and write it into the form.

        Unmatched text, or a value the form rejects, leaves the field unset.
        """
        answer = self.extract(text, field_key)
        if answer is None:
            logger.info(f"[VOICE][EXTRACT] no match field={field_key} text={text!r}")
            return None

        try:
            if field_key in MULTI_CHOICE_RULES:
                form.add_to_list(field_key, *answer.value)
            else:
                form.set_field(field_key, answer.value)
        except ValueError as e:
            logger.info(f"[VOICE][EXTRACT] rejected field={field_key} value={answer.value!r}: {e}")
            return None

        logger.info(f"[VOICE][EXTRACT] field={field_key} value={answer.value!r}")
        return answer
