"""Risk scoring — pure, deterministic, rule-based.

Two scorers share one tiering rule:

    RiskScorer        scores the guided exam questionnaire
    SelfCheckScorer   scores the answers collected by the self-check chats

Both are total over any answer set: unanswered questions, unknown qids and
answers of the wrong type contribute nothing and never raise.  This is an
educational screening aid, not a diagnosis; the result only carries opaque
guidance keys for the presentation layer.
"""

from __future__ import annotations

import logging
from functools import cached_property
from typing import Any, Mapping

from selfexam_rulesets.constants import (
    EXAM_GUIDANCE,
    EXAM_HIGH_FLAG_COUNT,
    HIGH_SCORE_THRESHOLD,
    LUMP_CHARACTERISTICS_QID,
    LUMP_MAX_BONUS,
    LUMP_TRAIT_BONUS,
    MODERATE_SCORE_THRESHOLD,
    SELF_CHECK_GUIDANCE,
    SELF_CHECK_HIGH_FLAG_COUNT,
)
from selfexam_rulesets.interfaces import Scorer
from selfexam_rulesets.models.question import Question
from selfexam_rulesets.models.result import (
    Recommendation,
    RiskAssessmentResult,
    RiskLevel,
)
from selfexam_rulesets.models.self_check import QuestionNode

logger = logging.getLogger(__name__)

_RECOMMENDATION = {
    RiskLevel.HIGH: Recommendation.URGENT_CONSULTATION,
    RiskLevel.MODERATE: Recommendation.SCHEDULE_CHECKUP,
    RiskLevel.LOW: Recommendation.CONTINUE_MONITORING,
}


def classify(
    score: float,
    red_flag_count: int,
    high_flag_threshold: int = EXAM_HIGH_FLAG_COUNT,
) -> RiskLevel:
    """Map a score and red-flag count to a tier; first match wins.

    High:     score >= 5 or red flags >= ``high_flag_threshold``
    Moderate: score >= 2 or at least one red flag
    Low:      otherwise
    """
    if score >= HIGH_SCORE_THRESHOLD or red_flag_count >= high_flag_threshold:
        return RiskLevel.HIGH
    if score >= MODERATE_SCORE_THRESHOLD or red_flag_count >= 1:
        return RiskLevel.MODERATE
    return RiskLevel.LOW


def _build_result(
    level: RiskLevel,
    score: float,
    max_score: float,
    red_flags: list[str],
    guidance: dict[str, dict],
) -> RiskAssessmentResult:
    bundle = guidance[level.value]
    return RiskAssessmentResult(
        risk_level=level,
        score=score,
        max_score=max_score,
        red_flags=red_flags,
        recommendation=_RECOMMENDATION[level],
        recommendation_key=bundle["recommendation_key"],
        message_key=bundle["message_key"],
        next_steps_keys=list(bundle["next_steps_keys"]),
    )


# ---------------------------------------------------------------------------
# Exam questionnaire
# ---------------------------------------------------------------------------

class RiskScorer(Scorer):
    """Scores exam answers against the questionnaire catalog.

    Args:
        questions: every catalog question in catalog order (visible or not)
    """

    def __init__(self, questions: list[Question]) -> None:
        self._questions = list(questions)

    @cached_property
    def max_score(self) -> float:
        """Sum of non-negative weights plus the lump-characteristics bonus cap."""
        return sum(max(q.weight, 0) for q in self._questions) + LUMP_MAX_BONUS

    def assess(self, answers: Mapping[str, Any]) -> RiskAssessmentResult:
        """Score ``answers`` and pick the tier.

        Every catalog question is visited in order, so red flags come out in
        catalog order no matter which order the user answered in.
        """
        score: float = 0
        red_flags: list[str] = []

        for question in self._questions:
            answer = answers.get(question.qid)
            if answer is None:
                continue

            # Only a literal True counts; "yes", 1 and friends do not
            if question.question_type == "boolean" and answer is True:
                score += question.weight
                if question.red_flag:
                    red_flags.append(question.qid)

            if question.qid == LUMP_CHARACTERISTICS_QID:
                score += _lump_bonus(answer)

        level = classify(score, len(red_flags), EXAM_HIGH_FLAG_COUNT)
        logger.debug("Exam scored: level=%s flags=%d", level.value, len(red_flags))
        return _build_result(level, score, self.max_score, red_flags, EXAM_GUIDANCE)


def _lump_bonus(answer: Any) -> float:
    """Fixed per-trait bonus for the selected lump characteristics."""
    if not isinstance(answer, (list, tuple, set, frozenset)):
        return 0
    return sum(bonus for trait, bonus in LUMP_TRAIT_BONUS.items() if trait in answer)


# ---------------------------------------------------------------------------
# Self-check conversations
# ---------------------------------------------------------------------------

class SelfCheckScorer(Scorer):
    """Scores self-check chat answers by concern flags.

    A question counts when the chosen quick-reply option is flagged
    ``is_concern``: its weight is added and its id is reported as a
    red flag.

    Args:
        questions: every conversation question node, in step then script order
    """

    def __init__(self, questions: list[QuestionNode]) -> None:
        self._questions = list(questions)

    @cached_property
    def max_score(self) -> float:
        return sum(q.weight for q in self._questions)

    def assess(self, answers: Mapping[str, Any]) -> RiskAssessmentResult:
        score: float = 0
        concerns: list[str] = []

        for question in self._questions:
            answer = answers.get(question.id)
            if not isinstance(answer, str) or not answer:
                continue
            option = question.option(answer)
            if option is not None and option.is_concern:
                score += question.weight
                concerns.append(question.id)

        level = classify(score, len(concerns), SELF_CHECK_HIGH_FLAG_COUNT)
        logger.debug("Self-check scored: level=%s concerns=%d", level.value, len(concerns))
        return _build_result(level, score, self.max_score, concerns, SELF_CHECK_GUIDANCE)
