"""Scoring constants shared across the SDK.

These values are referenced by the scorers and controllers.  They mirror
conventions encoded in the YAML catalogs under ``v1/``.

The tier thresholds can be overridden via environment variables so that
deployments can adjust them without code changes.
"""

import os

# --- Tier thresholds (first match wins, High before Moderate) ---
HIGH_SCORE_THRESHOLD = float(os.getenv("HIGH_SCORE_THRESHOLD", "5"))
MODERATE_SCORE_THRESHOLD = float(os.getenv("MODERATE_SCORE_THRESHOLD", "2"))

# Red flags needed to reach High regardless of score.  The self-check
# counts concerns instead of red flags and needs one more.
EXAM_HIGH_FLAG_COUNT = 2
SELF_CHECK_HIGH_FLAG_COUNT = 3

# --- Composite lump question ---
# Characteristics of a detected lump are scored by fixed per-trait
# bonuses instead of the question weight.
LUMP_CHARACTERISTICS_QID = "lump_characteristics"
LUMP_TRAIT_BONUS: dict[str, float] = {
    "hard": 2,
    "fixed": 2,
    # Painless lumps are more concerning than painful ones
    "painless": 1,
}
LUMP_MAX_BONUS = sum(LUMP_TRAIT_BONUS.values())

# --- Guidance bundles per tier (opaque i18n keys) ---
EXAM_GUIDANCE: dict[str, dict] = {
    "high": {
        "recommendation_key": "results.recommendation.urgent",
        "message_key": "results.message.high",
        "next_steps_keys": [
            "results.steps.consult_specialist",
            "results.steps.within_48h",
            "results.steps.bring_notes",
            "results.steps.dont_panic",
        ],
    },
    "moderate": {
        "recommendation_key": "results.recommendation.checkup",
        "message_key": "results.message.moderate",
        "next_steps_keys": [
            "results.steps.schedule_appointment",
            "results.steps.within_2weeks",
            "results.steps.continue_monitoring",
            "results.steps.note_changes",
        ],
    },
    "low": {
        "recommendation_key": "results.recommendation.monitoring",
        "message_key": "results.message.low",
        "next_steps_keys": [
            "results.steps.monthly_exam",
            "results.steps.annual_screening",
            "results.steps.know_normal",
            "results.steps.stay_informed",
        ],
    },
}

SELF_CHECK_GUIDANCE: dict[str, dict] = {
    level: {
        **bundle,
        "recommendation_key": bundle["recommendation_key"].replace(
            "results.", "selfCheck.result.", 1
        ),
        "message_key": bundle["message_key"].replace(
            "results.", "selfCheck.result.", 1
        ),
    }
    for level, bundle in EXAM_GUIDANCE.items()
}

# --- Record ids ---
RECORD_ID_PREFIX: dict[str, str] = {
    "exam": "exam",
    "self_check": "selfcheck",
}
