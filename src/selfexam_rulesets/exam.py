"""ExamController — linear, skip-aware traversal of the exam questionnaire.

The controller owns a position ``(section_index, question_index)`` and the
answer set.  Navigation only ever lands on questions whose ``visible_when``
predicates hold against the *current* answers, re-evaluated on every call:

    advance()  next visible question in the section, else the first visible
               question of a later section; False means the exam is done
    retreat()  mirror image, scanning earlier sections from their last
               question; a no-op at the first visible question

All state changes are synchronous.  ``complete()`` returns the scored result
immediately and leaves persistence to the history store's background write.
"""

from __future__ import annotations

import logging
from typing import Any

from selfexam_rulesets.evaluator import VisibilityEvaluator
from selfexam_rulesets.history import HistoryStore
from selfexam_rulesets.interfaces import Scorer
from selfexam_rulesets.models.question import Question, Section
from selfexam_rulesets.models.result import (
    AssessmentKind,
    AssessmentRecord,
    Progress,
    RiskAssessmentResult,
)
from selfexam_rulesets.records import build_record

logger = logging.getLogger(__name__)


class ExamController:
    """Drives one guided exam session at a time.

    Args:
        sections: ordered catalog sections
        scorer: scoring engine applied on completion
        history: store receiving the completed record
    """

    def __init__(
        self,
        sections: list[Section],
        scorer: Scorer,
        history: HistoryStore,
    ) -> None:
        self._sections = list(sections)
        self._scorer = scorer
        self._history = history
        self._evaluator = VisibilityEvaluator()

        self._section_index = 0
        self._question_index = 0
        self._answers: dict[str, Any] = {}
        self._active = False
        self._result: RiskAssessmentResult | None = None
        self._last_record: AssessmentRecord | None = None

    # ==================================================================
    # Session lifecycle
    # ==================================================================

    def start(self) -> None:
        """Begin a fresh exam at (0, 0) with no answers."""
        self._section_index = 0
        self._question_index = 0
        self._answers = {}
        self._active = True
        self._result = None

    def reset(self) -> None:
        """Return to the initial, inactive state without scoring."""
        self.start()
        self._active = False

    def record_answer(self, qid: str, value: Any) -> None:
        """Store (or overwrite) the answer for ``qid``; position is unchanged."""
        self._answers[qid] = value

    def complete(self) -> RiskAssessmentResult:
        """Score the answers, hand the record to history, and end the session.

        Safe to call whenever ``advance()`` has reported there is nothing
        left.  The history write runs in the background; the returned result
        does not wait for it.
        """
        result = self._scorer.assess(self._answers)
        record = build_record(AssessmentKind.EXAM, self._answers, result)

        self._result = result
        self._last_record = record
        self._active = False

        self._history.append(record)
        logger.info("Exam completed: %s (%s)", record.id, result.risk_level.value)
        return result

    # ==================================================================
    # Navigation
    # ==================================================================

    def advance(self) -> bool:
        """Move to the next visible question.

        Returns False only when no visible question exists after the
        current position; that is the sole completion signal.
        """
        section = self._current_section_or_none()
        if section is not None:
            for q_idx in range(self._question_index + 1, len(section.questions)):
                if self._visible(section.questions[q_idx]):
                    self._question_index = q_idx
                    return True

        for s_idx in range(self._section_index + 1, len(self._sections)):
            for q_idx, question in enumerate(self._sections[s_idx].questions):
                if self._visible(question):
                    self._section_index = s_idx
                    self._question_index = q_idx
                    return True

        return False

    def retreat(self) -> None:
        """Move to the previous visible question; no-op at the first one."""
        section = self._current_section_or_none()
        if section is not None:
            for q_idx in range(self._question_index - 1, -1, -1):
                if self._visible(section.questions[q_idx]):
                    self._question_index = q_idx
                    return

        for s_idx in range(self._section_index - 1, -1, -1):
            questions = self._sections[s_idx].questions
            for q_idx in range(len(questions) - 1, -1, -1):
                if self._visible(questions[q_idx]):
                    self._section_index = s_idx
                    self._question_index = q_idx
                    return

    # ==================================================================
    # Progress
    # ==================================================================

    def progress(self) -> Progress:
        """Rank of the active question among the currently visible ones.

        ``current`` sums the visible counts of every earlier section plus the
        active question's 1-based rank within its own section's visible
        subset.  A question that has just become hidden ranks as 1.
        """
        total = self.visible_question_count()
        if total == 0:
            return Progress(current=0, total=0, percentage=0)

        current = sum(
            len(self._visible_in(section))
            for section in self._sections[: self._section_index]
        )

        section = self._current_section_or_none()
        rank = 0
        if section is not None and self._question_index < len(section.questions):
            active = section.questions[self._question_index]
            visible = self._visible_in(section)
            if active in visible:
                rank = visible.index(active)
        current += rank + 1

        current = min(current, total)
        return Progress(current=current, total=total, percentage=current / total * 100)

    def visible_question_count(self) -> int:
        """Number of visible questions across the whole catalog right now."""
        return sum(len(self._visible_in(section)) for section in self._sections)

    # ==================================================================
    # Accessors
    # ==================================================================

    @property
    def position(self) -> tuple[int, int]:
        return (self._section_index, self._question_index)

    @property
    def is_active(self) -> bool:
        return self._active

    @property
    def answers(self) -> dict[str, Any]:
        """Copy of the answer set."""
        return dict(self._answers)

    @property
    def result(self) -> RiskAssessmentResult | None:
        """Result of the last ``complete()``, cleared by ``start()``."""
        return self._result

    @property
    def last_record(self) -> AssessmentRecord | None:
        return self._last_record

    @property
    def current_section(self) -> Section | None:
        return self._current_section_or_none()

    @property
    def current_question(self) -> Question | None:
        section = self._current_section_or_none()
        if section is None or self._question_index >= len(section.questions):
            return None
        return section.questions[self._question_index]

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _current_section_or_none(self) -> Section | None:
        if 0 <= self._section_index < len(self._sections):
            return self._sections[self._section_index]
        return None

    def _visible(self, question: Question) -> bool:
        return self._evaluator.is_visible(question, self._answers)

    def _visible_in(self, section: Section) -> list[Question]:
        return self._evaluator.visible_questions(section.questions, self._answers)
