"""Self-check step and conversation script models.

Steps (from ``v1/self_check/steps.yaml``) carry the instruction pages shown
before each step's conversation.  Conversation scripts (from
``v1/self_check/conversations.yaml``) are trees of nodes:

    - assistant_message: text the assistant says
    - question: quick-reply question; options flagged ``is_concern`` score
    - conditional: children shown when a prior answer is in ``show_when``

The discriminated ``ConversationNode`` union uses ``type`` as its
discriminator so YAML dicts deserialise straight into the right class.
"""

from __future__ import annotations

import enum
from typing import Annotated, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field


# --- Steps ---

class Instruction(BaseModel):
    """One instruction page (carousel slide) within a step."""

    model_config = ConfigDict(frozen=True)

    id: str
    text_key: str
    media_type: Literal["image", "gif", "video"] = "image"
    media_placeholder: str
    icon: str
    decor_icon: Optional[str] = None


class SelfCheckStep(BaseModel):
    """A self-check step: instruction pages followed by one chat phase."""

    model_config = ConfigDict(frozen=True)

    id: str
    title_key: str
    description_key: str
    icon: str
    accent_color: str
    instructions: List[Instruction]

    @property
    def page_count(self) -> int:
        """Virtual pages for progress: every instruction plus the chat."""
        return len(self.instructions) + 1


# --- Conversation nodes ---

class QuickReplyOption(BaseModel):
    """A quick-reply chip for a conversation question."""

    model_config = ConfigDict(frozen=True)

    value: str
    label_key: str
    is_concern: bool = False


class AssistantMessageNode(BaseModel):
    """Text the assistant says; no reply expected."""

    model_config = ConfigDict(frozen=True)

    type: Literal["assistant_message"] = "assistant_message"
    id: str
    text_key: str
    delay_ms: Optional[int] = None


class QuestionNode(BaseModel):
    """A question that waits for a quick-reply answer."""

    model_config = ConfigDict(frozen=True)

    type: Literal["question"] = "question"
    id: str
    text_key: str
    weight: float = 0
    options: List[QuickReplyOption]

    def option(self, value: str) -> QuickReplyOption | None:
        """Return the option with ``value``, or None."""
        for opt in self.options:
            if opt.value == value:
                return opt
        return None


class ConditionalNode(BaseModel):
    """Expands ``children`` when the answer to ``depends_on`` is in ``show_when``."""

    model_config = ConfigDict(frozen=True)

    type: Literal["conditional"] = "conditional"
    depends_on: str
    show_when: List[str]
    children: List["ConversationNode"]


ConversationNode = Annotated[
    Union[AssistantMessageNode, QuestionNode, ConditionalNode],
    Field(discriminator="type"),
]

ConditionalNode.model_rebuild()


def iter_question_nodes(nodes: List[ConversationNode]) -> List[QuestionNode]:
    """All question nodes of a script, depth-first, conditionals included."""
    questions: List[QuestionNode] = []
    for node in nodes:
        if isinstance(node, QuestionNode):
            questions.append(node)
        elif isinstance(node, ConditionalNode):
            questions.extend(iter_question_nodes(node.children))
    return questions


# --- Clarifications ---

class ClarificationEntry(BaseModel):
    """Keyword list mapped to a canned clarification response key."""

    model_config = ConfigDict(frozen=True)

    keywords: List[str]
    response_key: str


# --- Flow state ---

class StepPhase(str, enum.Enum):
    """Where the user is inside the current step."""

    INSTRUCTIONS = "instructions"
    CHAT = "chat"


class FlowStage(str, enum.Enum):
    """Top-level self-check stage."""

    LANDING = "landing"
    IN_PROGRESS = "in_progress"
    RESULTS = "results"
