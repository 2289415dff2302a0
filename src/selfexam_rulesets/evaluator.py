"""VisibilityEvaluator — decides which questions are shown.

A question is visible when every predicate in its ``visible_when`` list
holds against the current answer set.  Predicates are pure functions of
the answers passed in; nothing is cached between calls, so answering a
later question can change what is visible on the very next lookup.

Predicates never raise.  A predicate that references an unanswered (or
unknown) qid is false, and a malformed comparison (bad regex, non-numeric
operand) is logged and treated as false.
"""

from __future__ import annotations

import logging
import re
from typing import Any, Mapping

from selfexam_rulesets.models.question import Predicate, Question

logger = logging.getLogger(__name__)


class VisibilityEvaluator:
    """Evaluates ``visible_when`` predicates against an answer set."""

    def is_visible(self, question: Question, answers: Mapping[str, Any]) -> bool:
        """True if all of the question's predicates hold (vacuously for none)."""
        return all(self.eval_predicate(pred, answers) for pred in question.visible_when)

    def visible_questions(
        self, questions: list[Question], answers: Mapping[str, Any]
    ) -> list[Question]:
        """Filter ``questions`` down to the visible ones, preserving order."""
        return [q for q in questions if self.is_visible(q, answers)]

    # ------------------------------------------------------------------
    # Predicate evaluation
    # ------------------------------------------------------------------

    def eval_predicate(self, pred: Predicate, answers: Mapping[str, Any]) -> bool:
        """Evaluate a single predicate against the answers mapping.

        If the referenced qid has not been answered yet, the predicate
        evaluates to False.
        """
        answer = answers.get(pred.qid)
        if answer is None:
            return False

        # Drill into dict answers when the predicate names a sub-field
        if pred.field is not None:
            if isinstance(answer, dict):
                answer = answer.get(pred.field)
            else:
                return False

        try:
            return self._compare(pred.op, answer, pred.value)
        except (TypeError, ValueError, LookupError, ArithmeticError, re.error) as exc:
            logger.warning(
                "Predicate on %s (%s) could not be evaluated: %s",
                pred.qid, pred.op, type(exc).__name__,
            )
            return False

    @staticmethod
    def _compare(op: str, answer: Any, value: Any) -> bool:
        """Apply an operator to an answer and an expected value.

        Numeric operators coerce both sides to float; answers that are not
        numbers make the comparison false.
        """
        if op == "eq":
            return answer == value

        if op == "ne":
            return answer != value

        # --- Numeric comparisons ---
        if op in ("lt", "le", "gt", "ge", "between"):
            # bool is an int subclass; a yes/no answer is never a number here
            if isinstance(answer, bool):
                return False
            try:
                ans_num = float(answer)
            except (TypeError, ValueError, OverflowError):
                return False

            if op == "lt":
                return ans_num < float(value)
            if op == "le":
                return ans_num <= float(value)
            if op == "gt":
                return ans_num > float(value)
            if op == "ge":
                return ans_num >= float(value)
            # between: value is [min, max]
            lo, hi = float(value[0]), float(value[1])
            return lo <= ans_num <= hi

        # --- Collection / string membership ---
        if op == "contains":
            if isinstance(answer, (list, tuple, set, frozenset)):
                return value in answer
            return str(value) in str(answer)

        if op == "not_contains":
            if isinstance(answer, (list, tuple, set, frozenset)):
                return value not in answer
            return str(value) not in str(answer)

        if op == "contains_any":
            if isinstance(answer, (list, tuple, set, frozenset)):
                return any(v in answer for v in value)
            ans_str = str(answer)
            return any(str(v) in ans_str for v in value)

        if op == "contains_all":
            if isinstance(answer, (list, tuple, set, frozenset)):
                return all(v in answer for v in value)
            ans_str = str(answer)
            return all(str(v) in ans_str for v in value)

        if op == "matches":
            return bool(re.search(str(value), str(answer)))

        logger.warning("Unknown predicate operator: %s", op)
        return False
