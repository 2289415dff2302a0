"""selfexam_rulesets — Guided breast self-examination SDK.

Public API:
    CatalogStore        — loads the YAML catalogs into typed models with lookup helpers
    ExamController      — skip-aware traversal of the exam questionnaire
    SelfCheckController — landing → instructions → chat → results flow
    HistoryStore        — most-recent-first record list mirrored to a KeyValueStore
    AppContext          — wires catalog, storage and both controllers

Scoring:
    RiskScorer          — weight + red-flag scoring of exam answers
    SelfCheckScorer     — concern-based scoring of self-check chat answers
    classify            — score / red-flag count → RiskLevel

Collaborator interfaces:
    Scorer              — ABC for scoring engines
    KeyValueStore       — ABC for async string persistence
    ConversationSession — ABC for the per-step question asker

Implementations:
    MemoryKeyValueStore  — in-process KeyValueStore
    ScriptedConversation — offline ConversationSession over the catalog scripts
"""

from selfexam_rulesets.catalog import CatalogStore
from selfexam_rulesets.context import AppContext
from selfexam_rulesets.conversation import ChatMessage, ScriptedConversation
from selfexam_rulesets.evaluator import VisibilityEvaluator
from selfexam_rulesets.exam import ExamController
from selfexam_rulesets.history import HistoryStore
from selfexam_rulesets.interfaces import ConversationSession, KeyValueStore, Scorer
from selfexam_rulesets.models.result import (
    AssessmentKind,
    AssessmentRecord,
    Progress,
    Recommendation,
    RiskAssessmentResult,
    RiskLevel,
)
from selfexam_rulesets.scoring import RiskScorer, SelfCheckScorer, classify
from selfexam_rulesets.self_check import SelfCheckController
from selfexam_rulesets.storage import MemoryKeyValueStore

__all__ = [
    # Catalog & controllers
    "AppContext",
    "CatalogStore",
    "ExamController",
    "HistoryStore",
    "SelfCheckController",
    "VisibilityEvaluator",
    # Scoring
    "RiskScorer",
    "SelfCheckScorer",
    "classify",
    # Interfaces
    "ConversationSession",
    "KeyValueStore",
    "Scorer",
    # Implementations
    "ChatMessage",
    "MemoryKeyValueStore",
    "ScriptedConversation",
    # Results
    "AssessmentKind",
    "AssessmentRecord",
    "Progress",
    "Recommendation",
    "RiskAssessmentResult",
    "RiskLevel",
]
