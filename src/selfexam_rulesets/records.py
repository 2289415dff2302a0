"""Assessment record construction shared by both controllers."""

from __future__ import annotations

import copy
import uuid
from datetime import datetime, timezone
from typing import Any, Mapping

from selfexam_rulesets.constants import RECORD_ID_PREFIX
from selfexam_rulesets.models.result import (
    AssessmentKind,
    AssessmentRecord,
    RiskAssessmentResult,
)


def build_record(
    kind: AssessmentKind,
    answers: Mapping[str, Any],
    result: RiskAssessmentResult,
    completed_at: datetime | None = None,
) -> AssessmentRecord:
    """Snapshot ``answers`` and ``result`` into an immutable record.

    The id is ``{prefix}_{epoch_ms}_{random}``: derived from the completion
    time, with a short random suffix so two completions in the same
    millisecond still get distinct ids.
    """
    if completed_at is None:
        completed_at = datetime.now(timezone.utc)
    epoch_ms = int(completed_at.timestamp() * 1000)
    record_id = f"{RECORD_ID_PREFIX[kind.value]}_{epoch_ms}_{uuid.uuid4().hex[:6]}"
    return AssessmentRecord(
        id=record_id,
        kind=kind,
        timestamp=completed_at,
        # Deep copy: multi-select answers are lists the caller may keep mutating
        answers=copy.deepcopy(dict(answers)),
        result=result,
        completed=True,
    )
