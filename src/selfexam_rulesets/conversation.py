"""ScriptedConversation — runs a step's conversation script.

The script is a queue of nodes processed head-first:

  - assistant messages are appended to the transcript immediately
  - a question becomes the active question and processing stops until
    :meth:`submit_reply` answers it
  - a conditional is expanded *when it reaches the head of the queue*, so
    its ``depends_on`` answer is already known; children are spliced in
    front of the rest of the queue, otherwise the node is dropped

Free-text clarifications are answered offline from the step's keyword
table; the first entry with a keyword contained in the lower-cased message
wins, else the generic response key is returned.  Typing delays and bubble
animation are presentation concerns and not modelled here.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Literal, Optional

from pydantic import BaseModel, Field

from selfexam_rulesets.catalog import CatalogStore
from selfexam_rulesets.interfaces import ConversationSession
from selfexam_rulesets.models.self_check import (
    AssistantMessageNode,
    ConditionalNode,
    ConversationNode,
    QuestionNode,
)

logger = logging.getLogger(__name__)


class ChatMessage(BaseModel):
    """One transcript bubble.

    Assistant bubbles carry an i18n ``text_key``; user bubbles carry either
    the chosen quick-reply (``question_id`` + ``answer_value``) or raw
    clarification ``text``.
    """

    id: str
    role: Literal["assistant", "user"]
    text_key: Optional[str] = None
    text: Optional[str] = None
    question_id: Optional[str] = None
    answer_value: Optional[str] = None
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


class ScriptedConversation(ConversationSession):
    """Offline conversation engine over the catalog's scripts.

    Args:
        catalog: a loaded :class:`CatalogStore`
    """

    def __init__(self, catalog: CatalogStore) -> None:
        self._catalog = catalog
        self._step_id: str | None = None
        self._queue: list[ConversationNode] = []
        self._active: QuestionNode | None = None
        self._answers: dict[str, str] = {}
        self._messages: list[ChatMessage] = []
        self._complete = False
        self._clarify_seq = 0

    # ------------------------------------------------------------------
    # ConversationSession contract
    # ------------------------------------------------------------------

    def init(self, step_id: str) -> None:
        script = self._catalog.get_script(step_id)
        if not script:
            logger.warning("No conversation script for step %s", step_id)

        self._step_id = step_id
        self._queue = list(script)
        self._active = None
        self._answers = {}
        self._messages = []
        self._complete = False
        self._clarify_seq = 0
        self._process()

    @property
    def active_question(self) -> QuestionNode | None:
        return self._active

    @property
    def is_complete(self) -> bool:
        return self._complete

    def submit_reply(self, question_id: str, value: str) -> None:
        """Answer the active question.

        Raises ``ValueError`` if ``question_id`` is not the active question
        or ``value`` is not one of its options.
        """
        active = self._active
        if active is None or active.id != question_id:
            raise ValueError(f"Question {question_id} is not awaiting a reply")
        option = active.option(value)
        if option is None:
            raise ValueError(f"Invalid reply for {question_id}: {value!r}")

        self._answers[question_id] = value
        self._messages.append(ChatMessage(
            id=f"reply_{question_id}",
            role="user",
            text_key=option.label_key,
            question_id=question_id,
            answer_value=value,
        ))
        self._active = None
        self._process()

    def clarify(self, text: str) -> str:
        """Answer a free-text question from the step's keyword table."""
        if self._step_id is None:
            raise ValueError("Cannot clarify: no conversation started")

        self._clarify_seq += 1
        self._messages.append(ChatMessage(
            id=f"clarify_user_{self._clarify_seq}",
            role="user",
            text=text,
        ))
        response_key = self.find_clarification(self._step_id, text)
        self._messages.append(ChatMessage(
            id=f"clarify_response_{self._clarify_seq}",
            role="assistant",
            text_key=response_key,
        ))
        return response_key

    def answers(self) -> dict[str, str]:
        return dict(self._answers)

    # ------------------------------------------------------------------
    # Extras
    # ------------------------------------------------------------------

    @property
    def step_id(self) -> str | None:
        return self._step_id

    @property
    def messages(self) -> list[ChatMessage]:
        return list(self._messages)

    def reset(self) -> None:
        """Forget the current step entirely."""
        self._step_id = None
        self._queue = []
        self._active = None
        self._answers = {}
        self._messages = []
        self._complete = False
        self._clarify_seq = 0

    def find_clarification(self, step_id: str, message: str) -> str:
        """Response key for ``message``: first keyword hit, else the generic key."""
        lower = message.lower()
        for entry in self._catalog.get_clarifications(step_id):
            if any(kw.lower() in lower for kw in entry.keywords):
                return entry.response_key
        return self._catalog.generic_clarification_key

    # ------------------------------------------------------------------
    # Queue processing
    # ------------------------------------------------------------------

    def _process(self) -> None:
        """Consume nodes until a question needs a reply or the queue is empty."""
        while self._queue:
            node = self._queue.pop(0)

            if isinstance(node, ConditionalNode):
                answer = self._answers.get(node.depends_on)
                if answer is not None and answer in node.show_when:
                    self._queue[:0] = node.children
                continue

            if isinstance(node, AssistantMessageNode):
                self._messages.append(ChatMessage(
                    id=node.id, role="assistant", text_key=node.text_key,
                ))
                continue

            if isinstance(node, QuestionNode):
                self._messages.append(ChatMessage(
                    id=node.id, role="assistant", text_key=node.text_key,
                ))
                self._active = node
                return

        self._complete = True
