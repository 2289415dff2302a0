"""SelfCheckController — the multi-phase guided self-check flow.

State machine::

    landing ──start()──▶ step 0: instructions[0..k] ──enter_chat()──▶ chat
                                  ▲                                     │
                                  └───── complete_step_chat() ──────────┘
                                         (next step, page 0)
                         last step's chat ──complete_step_chat()──▶ results
    any ──reset()──▶ landing

Question-asking inside a chat phase belongs to a :class:`ConversationSession`.
The controller only sees the flat answers it returns when the chat is done,
and counts the whole chat as a single progress page so it never depends on
how many questions a script happens to contain.
"""

from __future__ import annotations

import logging

from selfexam_rulesets.history import HistoryStore
from selfexam_rulesets.interfaces import ConversationSession, Scorer
from selfexam_rulesets.models.result import (
    AssessmentKind,
    AssessmentRecord,
    Progress,
    RiskAssessmentResult,
)
from selfexam_rulesets.models.self_check import (
    FlowStage,
    Instruction,
    SelfCheckStep,
    StepPhase,
)
from selfexam_rulesets.records import build_record

logger = logging.getLogger(__name__)


class SelfCheckController:
    """Drives the instructions → chat → results flow across all steps.

    Args:
        steps: ordered self-check steps
        scorer: scoring engine applied to the aggregated chat answers
        history: store receiving the completed record
        conversation: optional chat engine; when given, ``enter_chat()``
            initialises it and ``complete_step_chat()`` can pull its answers
    """

    def __init__(
        self,
        steps: list[SelfCheckStep],
        scorer: Scorer,
        history: HistoryStore,
        conversation: ConversationSession | None = None,
    ) -> None:
        self._steps = list(steps)
        self._scorer = scorer
        self._history = history
        self._conversation = conversation

        self._stage = FlowStage.LANDING
        self._step_index = 0
        self._instruction_index = 0
        self._phase = StepPhase.INSTRUCTIONS
        self._all_answers: dict[str, str] = {}
        self._result: RiskAssessmentResult | None = None
        self._last_record: AssessmentRecord | None = None

    # ==================================================================
    # Lifecycle
    # ==================================================================

    def start(self) -> None:
        """Begin a new check at the first instruction page of step 0."""
        self._stage = FlowStage.IN_PROGRESS
        self._step_index = 0
        self._instruction_index = 0
        self._phase = StepPhase.INSTRUCTIONS
        self._all_answers = {}
        self._result = None

    def reset(self) -> None:
        """Abandon the current check and return to the landing stage."""
        self.start()
        self._stage = FlowStage.LANDING

    # ==================================================================
    # Instructions
    # ==================================================================

    def next_instruction(self) -> bool:
        """Move to the next instruction page of the current step.

        Returns False on the last page; the caller should then enter chat.
        Outside the instructions phase of a running check this is a no-op.
        """
        step = self.current_step
        if step is None or not self._on_instructions():
            return False
        if self._instruction_index < len(step.instructions) - 1:
            self._instruction_index += 1
            return True
        return False

    def previous_instruction(self) -> None:
        """Move back one instruction page; no-op on the first page or outside instructions."""
        if self._on_instructions() and self._instruction_index > 0:
            self._instruction_index -= 1

    def _on_instructions(self) -> bool:
        return self._stage is FlowStage.IN_PROGRESS and self._phase is StepPhase.INSTRUCTIONS

    def back_to_instructions(self) -> None:
        """Leave chat and show the current step's last instruction page."""
        step = self.current_step
        if step is None:
            return
        self._phase = StepPhase.INSTRUCTIONS
        self._instruction_index = max(len(step.instructions) - 1, 0)

    # ==================================================================
    # Chat
    # ==================================================================

    def enter_chat(self) -> None:
        """Switch the current step to its chat phase."""
        step = self.current_step
        if self._stage is not FlowStage.IN_PROGRESS or step is None:
            raise ValueError(f"Cannot enter chat: self-check is {self._stage.value}")
        self._phase = StepPhase.CHAT
        if self._conversation is not None:
            self._conversation.init(step.id)

    def complete_step_chat(self, step_answers: dict[str, str] | None = None) -> None:
        """Merge one step's chat answers, then advance or finish.

        When ``step_answers`` is None the answers are pulled from the attached
        conversation, which must report itself complete.  After the last step
        this calls :meth:`complete_check`.
        """
        if self._stage is not FlowStage.IN_PROGRESS:
            raise ValueError(
                f"Cannot complete step chat: self-check is {self._stage.value}"
            )
        if step_answers is None:
            step_answers = self._answers_from_conversation()

        # Question ids are unique across steps, so merging never overwrites
        self._all_answers.update(step_answers)

        if self._step_index < len(self._steps) - 1:
            self._step_index += 1
            self._instruction_index = 0
            self._phase = StepPhase.INSTRUCTIONS
        else:
            self.complete_check()

    def next_step(self) -> bool:
        """Skip to the next step's first instruction page.

        Returns False when already on the last step.
        """
        if self._step_index < len(self._steps) - 1:
            self._step_index += 1
            self._instruction_index = 0
            self._phase = StepPhase.INSTRUCTIONS
            return True
        return False

    # ==================================================================
    # Completion
    # ==================================================================

    def complete_check(self) -> RiskAssessmentResult:
        """Score the aggregated answers, hand the record to history, show results.

        Returns before the history write finishes.
        """
        result = self._scorer.assess(self._all_answers)
        record = build_record(AssessmentKind.SELF_CHECK, self._all_answers, result)

        self._result = result
        self._last_record = record
        self._stage = FlowStage.RESULTS

        self._history.append(record)
        logger.info("Self-check completed: %s (%s)", record.id, result.risk_level.value)
        return result

    # ==================================================================
    # Progress
    # ==================================================================

    def overall_progress(self) -> Progress:
        """Virtual-page progress across all steps.

        Each step is ``len(instructions) + 1`` pages, the chat being one page.
        Completed steps count in full; the active step counts up to the
        current instruction page, or in full once its chat has started.
        """
        total = sum(step.page_count for step in self._steps)

        if self._stage is FlowStage.RESULTS:
            current = total
        elif self._stage is FlowStage.LANDING:
            current = 0
        else:
            current = sum(step.page_count for step in self._steps[: self._step_index])
            step = self.current_step
            if step is not None:
                if self._phase is StepPhase.INSTRUCTIONS:
                    current += self._instruction_index + 1
                else:
                    current += step.page_count

        percentage = current / total * 100 if total > 0 else 0
        return Progress(current=current, total=total, percentage=percentage)

    # ==================================================================
    # Accessors
    # ==================================================================

    @property
    def stage(self) -> FlowStage:
        return self._stage

    @property
    def phase(self) -> StepPhase:
        return self._phase

    @property
    def is_active(self) -> bool:
        return self._stage is FlowStage.IN_PROGRESS

    @property
    def step_index(self) -> int:
        return self._step_index

    @property
    def instruction_index(self) -> int:
        return self._instruction_index

    @property
    def total_steps(self) -> int:
        return len(self._steps)

    @property
    def current_step(self) -> SelfCheckStep | None:
        if 0 <= self._step_index < len(self._steps):
            return self._steps[self._step_index]
        return None

    @property
    def current_instruction(self) -> Instruction | None:
        step = self.current_step
        if step is None or not step.instructions:
            return None
        return step.instructions[self._instruction_index]

    @property
    def all_answers(self) -> dict[str, str]:
        """Copy of the answers aggregated so far."""
        return dict(self._all_answers)

    @property
    def result(self) -> RiskAssessmentResult | None:
        return self._result

    @property
    def last_record(self) -> AssessmentRecord | None:
        return self._last_record

    @property
    def conversation(self) -> ConversationSession | None:
        return self._conversation

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _answers_from_conversation(self) -> dict[str, str]:
        if self._conversation is None:
            raise ValueError("No step answers given and no conversation attached")
        if not self._conversation.is_complete:
            raise ValueError("Cannot complete step chat: conversation still in progress")
        return self._conversation.answers()
