"""SelfCheckController tests — phases, virtual-page progress and completion.

The real v1/ steps have 4, 6 and 2 instruction pages; with one chat page
each that is 5 + 7 + 3 = 15 virtual pages.
"""

from unittest.mock import MagicMock

import pytest

from selfexam_rulesets.conversation import ScriptedConversation
from selfexam_rulesets.interfaces import ConversationSession
from selfexam_rulesets.models import AssessmentKind, FlowStage, RiskLevel, StepPhase
from selfexam_rulesets.scoring import SelfCheckScorer
from selfexam_rulesets.self_check import SelfCheckController

from helpers.factories import make_history, step


@pytest.fixture
def flow(catalog):
    return SelfCheckController(
        catalog.steps,
        SelfCheckScorer(catalog.conversation_questions()),
        make_history(),
    )


@pytest.fixture
def small_flow():
    """Two steps with 2 and 1 instruction pages (5 virtual pages)."""
    return SelfCheckController(
        [step("first", 2), step("second", 1)],
        SelfCheckScorer([]),
        make_history(),
    )


def _finish_step(flow, answers=None):
    while flow.next_instruction():
        pass
    flow.enter_chat()
    flow.complete_step_chat(answers or {})


# =====================================================================
# Stages and phases
# =====================================================================


class TestStages:

    def test_initial_state_is_landing(self, flow):
        assert flow.stage is FlowStage.LANDING
        assert not flow.is_active
        assert flow.current_step.id == "visual_examination"

    def test_start(self, flow):
        flow.start()
        assert flow.stage is FlowStage.IN_PROGRESS
        assert flow.phase is StepPhase.INSTRUCTIONS
        assert (flow.step_index, flow.instruction_index) == (0, 0)
        assert flow.current_instruction.id == flow.current_step.instructions[0].id

    def test_next_instruction_stops_at_last_page(self, flow):
        flow.start()
        moves = [flow.next_instruction() for _ in range(4)]
        assert moves == [True, True, True, False]
        assert flow.instruction_index == 3

    def test_previous_instruction_noop_on_first_page(self, flow):
        flow.start()
        flow.previous_instruction()
        assert flow.instruction_index == 0
        flow.next_instruction()
        flow.previous_instruction()
        assert flow.instruction_index == 0

    def test_instruction_paging_ignored_outside_instructions(self, flow):
        """Landing, chat and results never move the instruction page."""
        assert flow.next_instruction() is False
        flow.previous_instruction()
        assert flow.instruction_index == 0

        flow.start()
        flow.next_instruction()
        flow.enter_chat()
        assert flow.next_instruction() is False
        flow.previous_instruction()
        assert flow.instruction_index == 1
        assert flow.phase is StepPhase.CHAT

    def test_instruction_paging_ignored_after_results(self, small_flow):
        small_flow.start()
        _finish_step(small_flow)
        _finish_step(small_flow)
        assert small_flow.stage is FlowStage.RESULTS
        before = small_flow.instruction_index
        assert small_flow.next_instruction() is False
        small_flow.previous_instruction()
        assert small_flow.instruction_index == before

    def test_enter_chat_and_back(self, flow):
        flow.start()
        flow.enter_chat()
        assert flow.phase is StepPhase.CHAT
        flow.back_to_instructions()
        assert flow.phase is StepPhase.INSTRUCTIONS
        assert flow.instruction_index == 3

    def test_complete_step_chat_moves_to_next_step(self, flow):
        flow.start()
        _finish_step(flow, {"visual_q_skin_changes": "no"})
        assert flow.step_index == 1
        assert flow.instruction_index == 0
        assert flow.phase is StepPhase.INSTRUCTIONS
        assert flow.all_answers == {"visual_q_skin_changes": "no"}

    def test_answers_merge_across_steps(self, flow):
        flow.start()
        _finish_step(flow, {"visual_q_skin_changes": "no"})
        _finish_step(flow, {"palpation_q_lump": "yes"})
        assert flow.all_answers == {
            "visual_q_skin_changes": "no",
            "palpation_q_lump": "yes",
        }

    def test_next_step(self, small_flow):
        small_flow.start()
        small_flow.next_instruction()
        assert small_flow.next_step() is True
        assert (small_flow.step_index, small_flow.instruction_index) == (1, 0)
        assert small_flow.next_step() is False
        assert small_flow.step_index == 1

    def test_reset_returns_to_landing(self, flow):
        flow.start()
        _finish_step(flow, {"visual_q_skin_changes": "yes"})
        flow.reset()
        assert flow.stage is FlowStage.LANDING
        assert flow.all_answers == {}
        assert (flow.step_index, flow.instruction_index) == (0, 0)

    def test_misuse_outside_progress_raises(self, flow):
        with pytest.raises(ValueError):
            flow.enter_chat()
        with pytest.raises(ValueError):
            flow.complete_step_chat({})


# =====================================================================
# Progress
# =====================================================================


class TestOverallProgress:

    def test_landing_is_zero(self, flow):
        progress = flow.overall_progress()
        assert (progress.current, progress.total, progress.percentage) == (0, 15, 0)

    def test_first_page(self, flow):
        flow.start()
        assert flow.overall_progress().current == 1

    def test_chat_counts_whole_step(self, flow):
        flow.start()
        flow.enter_chat()
        assert flow.overall_progress().current == 5

    def test_completed_steps_count_in_full(self, flow):
        flow.start()
        _finish_step(flow)
        assert flow.overall_progress().current == 6
        flow.next_instruction()
        assert flow.overall_progress().current == 7

    def test_progress_is_monotonic_through_a_full_run(self, small_flow):
        small_flow.start()
        seen = [small_flow.overall_progress().current]
        for _ in range(small_flow.total_steps):
            while small_flow.next_instruction():
                seen.append(small_flow.overall_progress().current)
            small_flow.enter_chat()
            seen.append(small_flow.overall_progress().current)
            small_flow.complete_step_chat({})
            seen.append(small_flow.overall_progress().current)
        assert seen == [1, 2, 3, 4, 5, 5]
        assert small_flow.stage is FlowStage.RESULTS

    def test_results_is_complete(self, flow):
        flow.start()
        for _ in range(flow.total_steps):
            _finish_step(flow)
        progress = flow.overall_progress()
        assert progress.current == progress.total == 15
        assert progress.percentage == 100


# =====================================================================
# Completion
# =====================================================================


class TestCompletion:

    def test_last_chat_completes_check(self, flow):
        flow.start()
        _finish_step(flow, {"visual_q_skin_changes": "yes"})
        _finish_step(flow, {"palpation_q_lump": "yes"})
        _finish_step(flow, {"nipple_q_discharge": "unsure"})

        assert flow.stage is FlowStage.RESULTS
        result = flow.result
        assert result.score == 7
        assert result.red_flags == [
            "visual_q_skin_changes", "palpation_q_lump", "nipple_q_discharge",
        ]
        assert result.risk_level is RiskLevel.HIGH

    def test_completion_records_history(self, catalog):
        history = make_history()
        flow = SelfCheckController(
            catalog.steps, SelfCheckScorer(catalog.conversation_questions()), history,
        )
        flow.start()
        for _ in range(flow.total_steps):
            _finish_step(flow)
        assert len(history) == 1
        record = history.latest
        assert record.kind is AssessmentKind.SELF_CHECK
        assert record.id.startswith("selfcheck_")
        assert record.result == flow.result

    def test_start_after_results_clears_result(self, small_flow):
        small_flow.start()
        for _ in range(2):
            _finish_step(small_flow)
        small_flow.start()
        assert small_flow.result is None
        assert small_flow.stage is FlowStage.IN_PROGRESS


# =====================================================================
# Conversation wiring
# =====================================================================


class TestConversationWiring:

    def test_enter_chat_initialises_conversation(self):
        conversation = MagicMock(spec=ConversationSession)
        flow = SelfCheckController(
            [step("first", 1)], SelfCheckScorer([]), make_history(), conversation,
        )
        flow.start()
        flow.enter_chat()
        conversation.init.assert_called_once_with("first")

    def test_answers_pulled_from_conversation(self, catalog):
        conversation = ScriptedConversation(catalog)
        flow = SelfCheckController(
            catalog.steps,
            SelfCheckScorer(catalog.conversation_questions()),
            make_history(),
            conversation,
        )
        flow.start()
        flow.enter_chat()
        with pytest.raises(ValueError, match="still in progress"):
            flow.complete_step_chat()

        conversation.submit_reply("visual_q_skin_changes", "no")
        conversation.submit_reply("visual_q_nipple_changes", "no")
        flow.complete_step_chat()
        assert flow.step_index == 1
        assert flow.all_answers == {
            "visual_q_skin_changes": "no",
            "visual_q_nipple_changes": "no",
        }

    def test_no_conversation_and_no_answers_raises(self, small_flow):
        small_flow.start()
        small_flow.enter_chat()
        with pytest.raises(ValueError):
            small_flow.complete_step_chat()
