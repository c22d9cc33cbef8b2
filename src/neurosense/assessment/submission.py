"""Hand-off of a completed assessment to the scoring pipeline.

Scoring itself lives elsewhere; this module only delivers the form.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Protocol

from neurosense.assessment.form_state import FormState
from neurosense.assessment.schemas import AssessmentSubmission

logger = logging.getLogger(__name__)


class SubmissionSink(Protocol):
    async def submit(self, submission: AssessmentSubmission) -> None: ...


class JsonFileSubmissionSink:
    """Writes each submission to ``<artifacts_dir>/<submission_id>/assessment.json``."""

    def __init__(self, artifacts_dir: str | Path) -> None:
        self._artifacts_dir = Path(artifacts_dir)

    async def submit(self, submission: AssessmentSubmission) -> None:
        out_dir = self._artifacts_dir / str(submission.submission_id)
        out_dir.mkdir(parents=True, exist_ok=True)
        path = out_dir / "assessment.json"
        data = submission.model_dump(mode="json")
        path.write_text(json.dumps(data, indent=2, ensure_ascii=False), encoding="utf-8")
        logger.info(f"Assessment submitted: {path}")


async def submit_assessment(
    form: FormState,
    sink: SubmissionSink,
    *,
    patient_id: str | None = None,
) -> AssessmentSubmission:
    """
    Hand the whole form to the submission sink.

    Args:
        form: Completed form state.
        sink: Destination for the submission.
        patient_id: Optional patient identifier.

    Returns:
        The submission that was delivered.
    """
    submission = form.to_submission(patient_id=patient_id)
    await sink.submit(submission)
    return submission
