"""Question models for the guided self-examination questionnaire.

Each question type maps to a specific UI component:

    - boolean:      yes/no toggle; a ``True`` answer adds the question weight
    - multi_select: pick any number of options (answer is a list of values)
    - quadrant:     pick one breast quadrant (answer is a single value)

A question may carry ``visible_when`` predicates over previously collected
answers.  All predicates must hold for the question to be shown; a question
without predicates is always visible.
"""

from __future__ import annotations

from typing import Any, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field


class Predicate(BaseModel):
    """A single condition that references a prior answer.

    Operators:
      - eq, ne: equality / inequality
      - lt, le, gt, ge: numeric comparisons
      - between: value is [min, max] inclusive
      - contains, not_contains: substring / element membership
      - contains_any, contains_all: set membership
      - matches: regex match
    """

    model_config = ConfigDict(frozen=True)

    qid: str
    field: Optional[str] = None
    op: Literal[
        "eq", "ne", "contains", "not_contains", "matches",
        "contains_any", "contains_all",
        "lt", "le", "gt", "ge", "between",
    ]
    value: Any


class QuestionOption(BaseModel):
    """A selectable option with a value and an i18n label key."""

    model_config = ConfigDict(frozen=True)

    value: str
    label_key: str


class Question(BaseModel):
    """One questionnaire item.

    ``qid`` is stable across sessions: it is both the answer key and the
    red-flag label.  ``weight`` may be negative for findings that lower
    concern (e.g. cyclic pain).
    """

    model_config = ConfigDict(frozen=True)

    qid: str
    question_type: Literal["boolean", "multi_select", "quadrant"]
    title_key: str
    description_key: str
    weight: float = 0
    red_flag: bool = False
    options: List[QuestionOption] = Field(default_factory=list)
    visible_when: List[Predicate] = Field(default_factory=list)


class Section(BaseModel):
    """An ordered group of questions (visual, palpation, ...)."""

    model_config = ConfigDict(frozen=True)

    id: str
    title_key: str
    description_key: str
    icon: Optional[str] = None
    questions: List[Question]
