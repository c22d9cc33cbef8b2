"""
Pydantic schemas for the assessment module.

Defines the questionnaire form, question descriptors, and user-facing notices.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Literal
from uuid import UUID, uuid4

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


def _now_utc() -> datetime:
    """Get current UTC datetime (timezone-aware)."""
    return datetime.now(timezone.utc)


Gender = Literal["Male", "Female", "Other"]
Education = Literal["high-school", "bachelors", "masters", "doctorate"]
ActivityLevel = Literal["sedentary", "light", "moderate", "active"]
SleepQuality = Literal["poor", "fair", "good", "excellent"]
SmokingStatus = Literal["never", "former", "current"]
DietType = Literal["standard", "mediterranean", "vegetarian", "non-vegetarian", "vegan"]
CoffeeConsumption = Literal["none", "1-2", "3-4", "5+"]
SocialEngagement = Literal["low", "moderate", "high"]


class FieldKind(str, Enum):
    """How a spoken answer maps onto a form field."""

    NUMBER = "number"
    CHOICE = "choice"
    TEXT = "text"
    MULTI_CHOICE = "multi_choice"


class NoticeVariant(str, Enum):
    """Visual weight of a user-facing notice."""

    DEFAULT = "default"
    DESTRUCTIVE = "destructive"


class Question(BaseModel):
    """A single spoken question bound to a form field."""

    model_config = ConfigDict(frozen=True)

    field_key: str = Field(..., description="Form field the answer is written into (wire name)")
    prompt_text: str = Field(..., description="Prompt in the regional language")
    prompt_en: str = Field(default="", description="English prompt")
    kind: FieldKind = Field(..., description="Extraction strategy for the answer")

    def prompt_for(self, language_code: str) -> str:
        """Return the prompt for a BCP-47 language tag, defaulting to the regional prompt."""
        if language_code.lower().startswith("en") and self.prompt_en:
            return self.prompt_en
        return self.prompt_text


class Notice(BaseModel):
    """A short message surfaced to the user (toast-style)."""

    title: str = Field(..., description="Short heading")
    description: str = Field(default="", description="Detail text")
    variant: NoticeVariant = Field(default=NoticeVariant.DEFAULT, description="Visual weight")
    created_at: datetime = Field(default_factory=_now_utc, description="When the notice was raised")


class AssessmentFormData(BaseModel):
    """
    The full four-page questionnaire.

    Attribute names are snake_case; the wire/field keys used by the question
    table are the camelCase aliases (e.g. ``languagePreference``).
    """

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        validate_assignment=True,
    )

    # Page 1: Demographics
    age: int = Field(default=65, ge=0, le=130, description="Age in years")
    gender: Gender | None = Field(default=None, description="Gender")
    weight: int = Field(default=70, ge=0, description="Weight in kg")
    height: int = Field(default=170, ge=0, description="Height in cm")
    education: Education | None = Field(default=None, description="Highest education level")
    occupation: str | None = Field(default=None, description="Occupation (free text)")
    language_preference: str | None = Field(
        default=None,
        description="Preferred language (free text from voice, or english/kannada/hindi)",
    )

    # Page 2: Medical & Family History
    family_history: list[str] = Field(default_factory=list, description="Family history conditions")
    medical_conditions: list[str] = Field(default_factory=list, description="Current medical conditions")
    medications: list[str] = Field(default_factory=list, description="Current medications")
    allergies: str | None = Field(default=None, description="Allergies (free text)")

    # Page 3: Lifestyle Factors
    physical_activity: ActivityLevel | None = Field(default=None, description="Physical activity level")
    sleep_quality: SleepQuality | None = Field(default=None, description="Sleep quality")
    alcohol_consumption: int = Field(default=0, ge=0, description="Drinks per week")
    smoking_status: SmokingStatus | None = Field(default=None, description="Smoking status")
    diet_type: DietType | None = Field(default=None, description="Diet type")
    coffee_consumption: CoffeeConsumption | None = Field(default=None, description="Cups of coffee per day")
    social_engagement: SocialEngagement | None = Field(default=None, description="Social engagement level")

    # Page 4: Cognitive & Neurological Symptoms
    memory_complaints: str | None = Field(default=None, description="Memory complaints (yes/no or severity)")
    speech_issues: str | None = Field(default=None, description="Speech/language issues (yes/no or severity)")
    neurological_symptoms: list[str] = Field(default_factory=list, description="Neurological symptoms")
    mood_changes: str | None = Field(default=None, description="Mood/behaviour changes (free text)")


class AssessmentSubmission(BaseModel):
    """A completed questionnaire handed off to the scoring pipeline."""

    submission_id: UUID = Field(default_factory=uuid4, description="Unique submission identifier")
    patient_id: str | None = Field(default=None, description="Patient identifier, if known")
    answers: dict[str, Any] = Field(..., description="Form answers keyed by wire field name")
    answered_fields: list[str] = Field(default_factory=list, description="Fields set by the user")
    started_at: datetime = Field(..., description="When the attempt started")
    submitted_at: datetime = Field(default_factory=_now_utc, description="When the form was submitted")
