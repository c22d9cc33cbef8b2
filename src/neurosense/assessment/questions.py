"""Static question schedule for the four-page assessment.

Each page asks its questions in a fixed order. Prompts are spoken in Kannada
by default; English prompts are used when the session language is ``en-*``.
"""

from __future__ import annotations

from neurosense.assessment.schemas import FieldKind, Question

TOTAL_PAGES = 4

PAGE_TITLES: dict[int, str] = {
    1: "Demographics",
    2: "Medical & Family History",
    3: "Lifestyle Factors",
    4: "Cognitive & Neurological Symptoms",
}

FAMILY_HISTORY_OPTIONS = [
    "Alzheimer's Disease",
    "Parkinson's Disease",
    "Dementia",
    "Stroke",
    "Heart Disease",
]
MEDICAL_CONDITION_OPTIONS = [
    "Hypertension",
    "Diabetes",
    "High Cholesterol",
    "Depression",
    "Anxiety",
    "Thyroid Disorder",
]
MEDICATION_OPTIONS = [
    "Blood Pressure Medication",
    "Diabetes Medication",
    "Cholesterol Medication",
    "Antidepressants",
    "Pain Relievers",
    "None",
]
NEUROLOGICAL_SYMPTOM_OPTIONS = [
    "Tremors or shaking",
    "Balance problems",
    "Coordination difficulties",
    "Stiffness or rigidity",
    "Slowed movement",
    "Vision changes",
    "Headaches",
    "Dizziness",
    "None of the above",
]

# Values offered for single-choice fields when answering manually.
CHOICE_OPTIONS: dict[str, list[str]] = {
    "gender": ["Male", "Female", "Other"],
    "education": ["high-school", "bachelors", "masters", "doctorate"],
    "languagePreference": ["english", "kannada", "hindi"],
    "physicalActivity": ["sedentary", "light", "moderate", "active"],
    "sleepQuality": ["poor", "fair", "good", "excellent"],
    "smokingStatus": ["never", "former", "current"],
    "dietType": ["standard", "mediterranean", "vegetarian", "non-vegetarian", "vegan"],
    "coffeeConsumption": ["none", "1-2", "3-4", "5+"],
    "socialEngagement": ["low", "moderate", "high"],
    "memoryComplaints": ["none", "mild", "moderate", "severe"],
    "speechIssues": ["none", "mild", "moderate", "severe"],
}

MULTI_CHOICE_OPTIONS: dict[str, list[str]] = {
    "familyHistory": FAMILY_HISTORY_OPTIONS,
    "medicalConditions": MEDICAL_CONDITION_OPTIONS,
    "medications": MEDICATION_OPTIONS,
    "neurologicalSymptoms": NEUROLOGICAL_SYMPTOM_OPTIONS,
}


def _q(field_key: str, kind: FieldKind, kannada: str, english: str) -> Question:
    return Question(field_key=field_key, prompt_text=kannada, prompt_en=english, kind=kind)


QUESTIONS: dict[int, tuple[Question, ...]] = {
    1: (
        _q("age", FieldKind.NUMBER, "ನಿಮ್ಮ ವಯಸ್ಸು ಎಷ್ಟು?", "How old are you?"),
        _q("gender", FieldKind.CHOICE, "ನಿಮ್ಮ ಲಿಂಗ ಯಾವುದು?", "What is your gender?"),
        _q("weight", FieldKind.NUMBER, "ನಿಮ್ಮ ತೂಕ ಎಷ್ಟು ಕಿಲೋಗ್ರಾಂ?", "What is your weight in kilograms?"),
        _q("height", FieldKind.NUMBER, "ನಿಮ್ಮ ಎತ್ತರ ಎಷ್ಟು ಸೆಂಟಿಮೀಟರ್?", "What is your height in centimetres?"),
        _q("education", FieldKind.CHOICE, "ನಿಮ್ಮ ವಿದ್ಯಾರ್ಹತೆ ಯಾವುದು?", "What is your highest level of education?"),
        _q("occupation", FieldKind.TEXT, "ನಿಮ್ಮ ಉದ್ಯೋಗ ಯಾವುದು?", "What is your occupation?"),
        _q("languagePreference", FieldKind.TEXT, "ನಿಮ್ಮ ಭಾಷಾ ಆಯ್ಕೆ ಯಾವುದು?", "Which language do you prefer?"),
    ),
    2: (
        _q(
            "familyHistory",
            FieldKind.MULTI_CHOICE,
            "ನಿಮ್ಮ ಕುಟುಂಬದಲ್ಲಿ ಯಾವುದೇ ಆರೋಗ್ಯ ಸಮಸ್ಯೆಗಳ ಇತಿಹಾಸ ಇದೆಯೇ?",
            "Is there any history of health problems in your family?",
        ),
        _q(
            "medicalConditions",
            FieldKind.MULTI_CHOICE,
            "ನಿಮಗೆ ಈಗಾಗಲೇ ಇರುವ ಯಾವುದೇ ವೈದ್ಯಕೀಯ ಸಮಸ್ಯೆಗಳಿವೆಯೇ?",
            "Do you have any existing medical conditions?",
        ),
        _q(
            "medications",
            FieldKind.MULTI_CHOICE,
            "ನೀವು ಈಗಾಗಲೇ ತೆಗೆದುಕೊಳ್ಳುವ ಔಷಧಿಗಳಾದರೂ ಇದೆಯೇ?",
            "Are you currently taking any medications?",
        ),
        _q("allergies", FieldKind.TEXT, "ನಿಮಗೆ ಯಾವುದೇ ಅಲರ್ಜಿ ಇದ್ದರೆ ವಿವರಿಸಿ.", "Please describe any allergies you have."),
    ),
    3: (
        _q("physicalActivity", FieldKind.CHOICE, "ನಿಮ್ಮ ದೈಹಿಕ ಚಟುವಟಿಕೆ ಮಟ್ಟ ಯಾವುದು?", "How physically active are you?"),
        _q("sleepQuality", FieldKind.CHOICE, "ನಿಮ್ಮ ನಿದ್ರೆಯ ಗುಣಮಟ್ಟ ಹೇಗಿದೆ?", "How would you rate your sleep quality?"),
        _q(
            "alcoholConsumption",
            FieldKind.NUMBER,
            "ನೀವು ವಾರಕ್ಕೆ ಎಷ್ಟು ಮದ್ಯಪಾನ ಮಾಡುತ್ತೀರಿ?",
            "How many alcoholic drinks do you have per week?",
        ),
        _q("smokingStatus", FieldKind.CHOICE, "ನಿಮ್ಮ ಧೂಮಪಾನ ಸ್ಥಿತಿ ಯಾವುದು?", "What is your smoking status?"),
        _q("dietType", FieldKind.CHOICE, "ನಿಮ್ಮ ಆಹಾರ ಪದ್ಧತಿ ಯಾವುದು?", "What kind of diet do you follow?"),
        _q(
            "coffeeConsumption",
            FieldKind.NUMBER,
            "ನೀವು ದಿನಕ್ಕೆ ಎಷ್ಟು ಕಾಫಿ ಕುಡಿಯುತ್ತೀರಿ?",
            "How many cups of coffee do you drink per day?",
        ),
        _q("socialEngagement", FieldKind.CHOICE, "ನಿಮ್ಮ ಸಾಮಾಜಿಕ ಚಟುವಟಿಕೆ ಮಟ್ಟ ಯಾವುದು?", "How socially active are you?"),
    ),
    4: (
        _q("memoryComplaints", FieldKind.CHOICE, "ನಿಮಗೆ ನೆನಪು ಸಂಬಂಧಿತ ಸಮಸ್ಯೆಗಳಿವೆಯೇ?", "Do you have any memory problems?"),
        _q(
            "speechIssues",
            FieldKind.CHOICE,
            "ನಿಮಗೆ ಮಾತು ಅಥವಾ ಭಾಷಾ ಸಮಸ್ಯೆಗಳಿವೆಯೇ?",
            "Do you have any speech or language difficulties?",
        ),
        _q(
            "neurologicalSymptoms",
            FieldKind.MULTI_CHOICE,
            "ನಿಮಗೆ ಯಾವುದೇ ನ್ಯೂರೋಲಾಜಿಕಲ್ ಲಕ್ಷಣಗಳಿವೆಯೇ?",
            "Do you have any neurological symptoms?",
        ),
        _q(
            "moodChanges",
            FieldKind.TEXT,
            "ನಿಮ್ಮ ಮನೋಭಾವದಲ್ಲಿ ಯಾವುದೇ ಬದಲಾವಣೆ ಇರುವುದನ್ನು ಗಮನಿಸಿದ್ದೀರಾ?",
            "Have you noticed any changes in your mood or behaviour?",
        ),
    ),
}


def questions_for_page(page: int) -> tuple[Question, ...]:
    """Return the ordered questions for a 1-based page number."""
    try:
        return QUESTIONS[page]
    except KeyError:
        raise ValueError(f"Unknown assessment page: {page} (expected 1..{TOTAL_PAGES})") from None

