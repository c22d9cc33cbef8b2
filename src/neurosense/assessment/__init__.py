"""
Assessment module: questionnaire schema, question schedule, form state and
answer extraction.
"""

from neurosense.assessment.extractor import AnswerExtractor, ExtractedAnswer, KeywordRule
from neurosense.assessment.form_state import FormState
from neurosense.assessment.questions import QUESTIONS, TOTAL_PAGES, questions_for_page
from neurosense.assessment.schemas import (
    AssessmentFormData,
    AssessmentSubmission,
    FieldKind,
    Notice,
    NoticeVariant,
    Question,
)
from neurosense.assessment.submission import JsonFileSubmissionSink, SubmissionSink, submit_assessment

__all__ = [
    "AnswerExtractor",
    "AssessmentFormData",
    "AssessmentSubmission",
    "ExtractedAnswer",
    "FieldKind",
    "FormState",
    "JsonFileSubmissionSink",
    "KeywordRule",
    "Notice",
    "NoticeVariant",
    "QUESTIONS",
    "Question",
    "SubmissionSink",
    "TOTAL_PAGES",
    "questions_for_page",
    "submit_assessment",
]
