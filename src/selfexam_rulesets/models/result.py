"""Assessment result and record models — the contract with the presentation layer.

These models are what the controllers hand back after scoring and what the
history store serialises.  Guidance is returned as opaque i18n keys; the
presentation layer resolves them to localised text.

    RiskAssessmentResult  scored outcome of one completed assessment
    AssessmentRecord      immutable, timestamped snapshot (answers + result)
    Progress              (current, total, percentage) tuple for progress bars
"""

from __future__ import annotations

import enum
from datetime import datetime
from typing import Any, List

from pydantic import BaseModel, ConfigDict, Field


class RiskLevel(str, enum.Enum):
    """Risk tier, ordered Low < Moderate < High."""

    LOW = "low"
    MODERATE = "moderate"
    HIGH = "high"

    @property
    def rank(self) -> int:
        return _RISK_RANK[self]


_RISK_RANK = {RiskLevel.LOW: 0, RiskLevel.MODERATE: 1, RiskLevel.HIGH: 2}


class Recommendation(str, enum.Enum):
    """Recommendation tier paired one-to-one with :class:`RiskLevel`."""

    CONTINUE_MONITORING = "continue_monitoring"
    SCHEDULE_CHECKUP = "schedule_checkup"
    URGENT_CONSULTATION = "urgent_consultation"


class AssessmentKind(str, enum.Enum):
    """Which flow produced a record; also selects the record-id prefix."""

    EXAM = "exam"
    SELF_CHECK = "self_check"


class RiskAssessmentResult(BaseModel):
    """Scored outcome of one completed assessment.

    ``red_flags`` lists question ids in catalog order, never in the order
    the user happened to answer them.
    """

    model_config = ConfigDict(frozen=True)

    risk_level: RiskLevel
    score: float
    max_score: float
    red_flags: List[str] = Field(default_factory=list)
    recommendation: Recommendation
    recommendation_key: str
    message_key: str
    next_steps_keys: List[str] = Field(default_factory=list)


class AssessmentRecord(BaseModel):
    """Immutable snapshot of one completed assessment.

    Created once at completion time and owned by the history store.
    """

    model_config = ConfigDict(frozen=True)

    id: str
    kind: AssessmentKind = AssessmentKind.EXAM
    timestamp: datetime
    answers: dict[str, Any]
    result: RiskAssessmentResult
    completed: bool = True


class Progress(BaseModel):
    """Position within a variable-length flow."""

    current: int
    total: int
    percentage: float
