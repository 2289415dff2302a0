"""Abstract interfaces for the collaborators the controllers depend on.

These ABCs define the contract that concrete implementations must fulfil.
Controllers receive implementations through their constructors, so tests
can substitute in-memory or failing doubles.

Typical wiring::

    catalog = CatalogStore()
    catalog.load()

    kv: KeyValueStore = SqlKeyValueStore()           # or MemoryKeyValueStore()
    history = HistoryStore(kv, key="@selfexam_exam_history")

    exam = ExamController(catalog.sections, RiskScorer(catalog.all_questions()), history)
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Mapping, TYPE_CHECKING

if TYPE_CHECKING:
    from selfexam_rulesets.models.result import RiskAssessmentResult
    from selfexam_rulesets.models.self_check import QuestionNode


class Scorer(ABC):
    """Interface for a risk scoring engine.

    Implementations must be pure and total: the same answers always give the
    same result, and no answer set makes them raise.
    """

    @property
    @abstractmethod
    def max_score(self) -> float:
        """Catalog-derived maximum score; independent of any answer set."""
        ...

    @abstractmethod
    def assess(self, answers: Mapping[str, Any]) -> "RiskAssessmentResult":
        """Score a (possibly incomplete) answer set."""
        ...


class KeyValueStore(ABC):
    """Asynchronous string key-value persistence.

    Every method may raise; the history store catches and logs failures so
    they never reach the UI.
    """

    @abstractmethod
    async def get(self, key: str) -> str | None:
        """Return the stored string, or None if the key is absent."""
        ...

    @abstractmethod
    async def set(self, key: str, value: str) -> None:
        """Store ``value`` under ``key``, replacing any previous value."""
        ...

    @abstractmethod
    async def delete(self, key: str) -> None:
        """Remove ``key``; deleting an absent key is not an error."""
        ...


class ConversationSession(ABC):
    """Interface for the per-step conversational question asker.

    The self-check controller treats this as a black box: it initialises a
    step, lets the user reply until :attr:`is_complete`, then collects
    :meth:`answers` as a flat ``{question_id: value}`` mapping.
    """

    @abstractmethod
    def init(self, step_id: str) -> None:
        """Start (or restart) the conversation for ``step_id``."""
        ...

    @property
    @abstractmethod
    def active_question(self) -> "QuestionNode | None":
        """The question awaiting a reply, or None."""
        ...

    @property
    @abstractmethod
    def is_complete(self) -> bool:
        """True once every node of the step's script has been processed."""
        ...

    @abstractmethod
    def submit_reply(self, question_id: str, value: str) -> None:
        """Answer the active question with a quick-reply value."""
        ...

    @abstractmethod
    def clarify(self, text: str) -> str:
        """Handle a free-text clarification; returns the response key."""
        ...

    @abstractmethod
    def answers(self) -> dict[str, str]:
        """Accumulated answers for the current step."""
        ...
