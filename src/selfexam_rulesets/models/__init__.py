"""Public model re-exports for selfexam_rulesets.

Consumers should import from ``selfexam_rulesets.models`` rather than
reaching into sub-modules directly.
"""

# --- Questionnaire ---
from selfexam_rulesets.models.question import (
    Predicate,
    Question,
    QuestionOption,
    Section,
)

# --- Results / records ---
from selfexam_rulesets.models.result import (
    AssessmentKind,
    AssessmentRecord,
    Progress,
    Recommendation,
    RiskAssessmentResult,
    RiskLevel,
)

# --- Self-check ---
from selfexam_rulesets.models.self_check import (
    AssistantMessageNode,
    ClarificationEntry,
    ConditionalNode,
    ConversationNode,
    FlowStage,
    Instruction,
    QuestionNode,
    QuickReplyOption,
    SelfCheckStep,
    StepPhase,
    iter_question_nodes,
)

__all__ = [
    # Questionnaire
    "Predicate",
    "Question",
    "QuestionOption",
    "Section",
    # Results
    "AssessmentKind",
    "AssessmentRecord",
    "Progress",
    "Recommendation",
    "RiskAssessmentResult",
    "RiskLevel",
    # Self-check
    "AssistantMessageNode",
    "ClarificationEntry",
    "ConditionalNode",
    "ConversationNode",
    "FlowStage",
    "Instruction",
    "QuestionNode",
    "QuickReplyOption",
    "SelfCheckStep",
    "StepPhase",
    "iter_question_nodes",
]
