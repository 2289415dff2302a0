"""Risk scoring tests — weights, red flags, lump bonus and tiering.

Exam catalog facts used below (v1/exam/sections.yaml):
    non-negative weights sum to 25, lump bonus cap is 5 → max_score 30
    red flags: skin_changes, skin_dimpling, peau_orange, nipple_retraction,
               nipple_discharge, redness, lump_detected, armpit_lump
"""

import random

import pytest

from selfexam_rulesets.models import Recommendation, RiskLevel
from selfexam_rulesets.scoring import RiskScorer, SelfCheckScorer, classify

from helpers.factories import question, when


@pytest.fixture(scope="module")
def scorer(catalog):
    return RiskScorer(catalog.all_questions())


@pytest.fixture(scope="module")
def self_check_scorer(catalog):
    return SelfCheckScorer(catalog.conversation_questions())


# =====================================================================
# Tier classification
# =====================================================================


class TestClassify:
    """First match wins: High, then Moderate, then Low."""

    @pytest.mark.parametrize(
        "score, flags, expected",
        [
            (0, 0, RiskLevel.LOW),
            (1, 0, RiskLevel.LOW),
            (2, 0, RiskLevel.MODERATE),
            (4, 0, RiskLevel.MODERATE),
            (0, 1, RiskLevel.MODERATE),
            (5, 0, RiskLevel.HIGH),
            (0, 2, RiskLevel.HIGH),
        ],
    )
    def test_exam_thresholds(self, score, flags, expected):
        assert classify(score, flags) is expected

    def test_flag_threshold_is_configurable(self):
        """The self-check needs three concerns to reach High."""
        assert classify(0, 2, high_flag_threshold=3) is RiskLevel.MODERATE
        assert classify(0, 3, high_flag_threshold=3) is RiskLevel.HIGH

    @pytest.mark.parametrize("high_flag_threshold", [2, 3])
    @pytest.mark.parametrize("flags", range(5))
    @pytest.mark.parametrize("score", range(-2, 9))
    def test_monotonic_in_score_and_flags(self, score, flags, high_flag_threshold):
        """One more point or one more flag never lowers the tier."""
        level = classify(score, flags, high_flag_threshold=high_flag_threshold)
        more_score = classify(score + 1, flags, high_flag_threshold=high_flag_threshold)
        more_flags = classify(score, flags + 1, high_flag_threshold=high_flag_threshold)
        assert more_score.rank >= level.rank
        assert more_flags.rank >= level.rank


# =====================================================================
# Exam scoring against the real catalog
# =====================================================================


class TestRiskScorer:

    def test_empty_answers_are_low(self, scorer):
        result = scorer.assess({})
        assert result.score == 0
        assert result.red_flags == []
        assert result.risk_level is RiskLevel.LOW
        assert result.recommendation is Recommendation.CONTINUE_MONITORING
        assert result.recommendation_key == "results.recommendation.monitoring"
        assert len(result.next_steps_keys) == 4

    def test_max_score(self, scorer):
        """Non-negative weights plus the lump bonus cap, whatever the answers."""
        assert scorer.max_score == 30
        assert scorer.assess({"skin_changes": True}).max_score == 30

    def test_single_red_flag_is_moderate(self, scorer):
        result = scorer.assess({"lump_detected": True})
        assert result.score == 2
        assert result.red_flags == ["lump_detected"]
        assert result.risk_level is RiskLevel.MODERATE
        assert result.recommendation is Recommendation.SCHEDULE_CHECKUP
        assert result.message_key == "results.message.moderate"

    def test_two_red_flags_are_high(self, scorer):
        result = scorer.assess({"redness": True, "armpit_lump": True})
        assert result.risk_level is RiskLevel.HIGH
        assert result.recommendation is Recommendation.URGENT_CONSULTATION

    def test_red_flags_follow_catalog_order(self, scorer):
        """Answer order does not matter; catalog order does."""
        answers = {"redness": True, "lump_detected": True, "skin_changes": True}
        assert scorer.assess(answers).red_flags == ["skin_changes", "redness", "lump_detected"]

    def test_score_without_red_flags(self, scorer):
        """Non-flag weights alone can reach Moderate and High."""
        moderate = scorer.assess({"changes_recent": True, "family_history": True})
        assert (moderate.score, moderate.risk_level) == (3, RiskLevel.MODERATE)
        high = scorer.assess({
            "changes_recent": True,
            "family_history": True,
            "previous_issues": True,
            "asymmetry": True,
        })
        assert high.score == 5
        assert high.red_flags == []
        assert high.risk_level is RiskLevel.HIGH

    def test_low_weight_alone_stays_low(self, scorer):
        result = scorer.assess({"asymmetry": True})
        assert (result.score, result.risk_level) == (1, RiskLevel.LOW)

    def test_false_and_truthy_answers_do_not_count(self, scorer):
        """Only a literal True adds weight."""
        result = scorer.assess({
            "skin_changes": False,
            "redness": "yes",
            "asymmetry": 1,
        })
        assert result.score == 0
        assert result.red_flags == []

    def test_negative_weight_applies_when_true(self, scorer):
        """Cyclic pain lowers the score."""
        base = {"breast_pain": True, "changes_recent": True}
        assert scorer.assess(base).score == 3
        assert scorer.assess({**base, "pain_cyclic": True}).score == 2

    def test_lump_characteristics_bonus(self, scorer):
        result = scorer.assess({"lump_characteristics": ["hard", "fixed", "painless", "soft"]})
        assert result.score == 5
        assert result.risk_level is RiskLevel.HIGH
        assert result.red_flags == []

    def test_lump_characteristics_partial_bonus(self, scorer):
        result = scorer.assess({
            "lump_detected": True,
            "lump_characteristics": ["painless", "mobile"],
        })
        assert result.score == 3

    def test_lump_characteristics_wrong_type_ignored(self, scorer):
        assert scorer.assess({"lump_characteristics": "hard"}).score == 0

    def test_unknown_qids_ignored(self, scorer):
        assert scorer.assess({"not_a_question": True}).score == 0

    def test_deterministic(self, scorer):
        answers = {"skin_dimpling": True, "lump_characteristics": ["hard"]}
        assert scorer.assess(answers) == scorer.assess(answers)

    @pytest.mark.parametrize("seed", range(20))
    def test_score_bounded_and_flags_ordered(self, scorer, catalog, seed):
        """Random answer sets stay within max_score and report flags in catalog order."""
        rng = random.Random(seed)
        questions = catalog.all_questions()
        answers = {}
        for q in questions:
            if q.question_type == "boolean":
                answers[q.qid] = rng.choice([True, False])
        answers["lump_characteristics"] = rng.sample(
            ["hard", "soft", "mobile", "fixed", "painful", "painless"], k=rng.randint(0, 4)
        )
        # pain_cyclic is the only negative weight; drop it so the catalog is non-negative
        answers.pop("pain_cyclic", None)

        result = scorer.assess(answers)
        assert 0 <= result.score <= scorer.max_score

        flag_order = [q.qid for q in questions if q.red_flag]
        assert set(result.red_flags) <= set(flag_order)
        assert result.red_flags == [qid for qid in flag_order if qid in result.red_flags]
        assert result.red_flags == [qid for qid in flag_order if answers.get(qid) is True]

    def test_every_positive_answer_reaches_max_score(self, scorer, catalog):
        answers = {
            q.qid: True
            for q in catalog.all_questions()
            if q.question_type == "boolean" and q.weight >= 0
        }
        answers["lump_characteristics"] = ["hard", "soft", "mobile", "fixed", "painful", "painless"]
        assert scorer.assess(answers).score == scorer.max_score == 30

    def test_small_catalog_walkthrough(self):
        """q1 (weight 3, red flag) answered yes → score 3, Moderate."""
        scorer = RiskScorer([
            question("q1", weight=3, red_flag=True),
            question("q2", weight=1),
            question("q3", visible_when=[when("q1")]),
        ])
        result = scorer.assess({"q1": True})
        assert result.score == 3
        assert result.red_flags == ["q1"]
        assert result.risk_level is RiskLevel.MODERATE


# =====================================================================
# Self-check scoring
# =====================================================================


class TestSelfCheckScorer:

    def test_max_score(self, self_check_scorer):
        assert self_check_scorer.max_score == 21

    def test_all_no_answers(self, self_check_scorer, catalog):
        answers = {q.id: "no" for q in catalog.conversation_questions() if q.option("no")}
        result = self_check_scorer.assess(answers)
        # "no" to cyclic pain is a concern; everything else is reassuring
        assert result.red_flags == ["palpation_q_pain_cyclic"]
        assert result.score == 1
        assert result.risk_level is RiskLevel.MODERATE

    def test_empty_answers(self, self_check_scorer):
        result = self_check_scorer.assess({})
        assert result.score == 0
        assert result.risk_level is RiskLevel.LOW
        assert result.recommendation_key == "selfCheck.result.recommendation.monitoring"
        assert result.next_steps_keys[0] == "results.steps.monthly_exam"

    def test_concern_adds_weight(self, self_check_scorer):
        result = self_check_scorer.assess({"palpation_q_lump": "yes"})
        assert result.score == 3
        assert result.red_flags == ["palpation_q_lump"]
        assert result.risk_level is RiskLevel.MODERATE

    def test_non_concern_option_scores_nothing(self, self_check_scorer):
        result = self_check_scorer.assess({
            "palpation_q_pain_cyclic": "yes",
            "nipple_q_discharge_type": "milky",
        })
        assert result.score == 0
        assert result.red_flags == []

    def test_two_concerns_stay_moderate(self, self_check_scorer):
        """Two concerns with a low score are not enough for High."""
        result = self_check_scorer.assess({
            "palpation_q_lump_location": "central",
            "palpation_q_pain_cyclic": "no",
        })
        assert result.score == 1
        assert result.risk_level is RiskLevel.MODERATE

    def test_three_concerns_are_high(self, self_check_scorer):
        result = self_check_scorer.assess({
            "palpation_q_pain_cyclic": "no",
            "palpation_q_lump_location": "central",
            "palpation_q_lump_feel": "hard",
        })
        assert result.score == 2
        assert result.red_flags == [
            "palpation_q_lump_location",
            "palpation_q_lump_feel",
            "palpation_q_pain_cyclic",
        ]
        assert result.risk_level is RiskLevel.HIGH

    def test_unknown_option_value_ignored(self, self_check_scorer):
        assert self_check_scorer.assess({"palpation_q_lump": "maybe"}).score == 0
        assert self_check_scorer.assess({"palpation_q_lump": True}).score == 0
