"""AppContext — one place that wires catalog, storage and both controllers.

Replaces module-level singletons: the server (or a script, or a test)
builds one context and passes it around explicitly.

Storage keys are ``{prefix}{name}`` where the prefix and the two names can
be overridden via environment variables::

    SELFEXAM_KEY_PREFIX              (default "@selfexam_")
    SELFEXAM_EXAM_HISTORY_KEY        (default "exam_history")
    SELFEXAM_SELF_CHECK_HISTORY_KEY  (default "self_check_history")
"""

from __future__ import annotations

import asyncio
import logging
import os
from dataclasses import dataclass

from selfexam_rulesets.catalog import CatalogStore
from selfexam_rulesets.conversation import ScriptedConversation
from selfexam_rulesets.exam import ExamController
from selfexam_rulesets.history import HistoryStore
from selfexam_rulesets.interfaces import KeyValueStore
from selfexam_rulesets.models.result import AssessmentKind
from selfexam_rulesets.scoring import RiskScorer, SelfCheckScorer
from selfexam_rulesets.self_check import SelfCheckController

logger = logging.getLogger(__name__)


def history_key(kind: AssessmentKind) -> str:
    """Storage key for the history list of ``kind``."""
    prefix = os.getenv("SELFEXAM_KEY_PREFIX", "@selfexam_")
    if kind is AssessmentKind.EXAM:
        name = os.getenv("SELFEXAM_EXAM_HISTORY_KEY", "exam_history")
    else:
        name = os.getenv("SELFEXAM_SELF_CHECK_HISTORY_KEY", "self_check_history")
    return f"{prefix}{name}"


@dataclass
class AppContext:
    """Everything a single local user's session needs."""

    catalog: CatalogStore
    kv: KeyValueStore
    exam_history: HistoryStore
    self_check_history: HistoryStore
    exam: ExamController
    self_check: SelfCheckController
    conversation: ScriptedConversation

    @classmethod
    def build(cls, catalog: CatalogStore, kv: KeyValueStore) -> "AppContext":
        """Wire scorers, history stores and controllers over a loaded catalog."""
        exam_history = HistoryStore(kv, history_key(AssessmentKind.EXAM))
        self_check_history = HistoryStore(kv, history_key(AssessmentKind.SELF_CHECK))
        conversation = ScriptedConversation(catalog)

        exam = ExamController(
            catalog.sections,
            RiskScorer(catalog.all_questions()),
            exam_history,
        )
        self_check = SelfCheckController(
            catalog.steps,
            SelfCheckScorer(catalog.conversation_questions()),
            self_check_history,
            conversation=conversation,
        )
        return cls(
            catalog=catalog,
            kv=kv,
            exam_history=exam_history,
            self_check_history=self_check_history,
            exam=exam,
            self_check=self_check,
            conversation=conversation,
        )

    def history(self, kind: AssessmentKind) -> HistoryStore:
        """History store for ``kind``."""
        if kind is AssessmentKind.EXAM:
            return self.exam_history
        return self.self_check_history

    async def load_history(self) -> None:
        """Load both history stores; failures degrade to empty history."""
        await asyncio.gather(self.exam_history.load(), self.self_check_history.load())
        logger.info(
            "History ready: %d exam, %d self-check records",
            len(self.exam_history),
            len(self.self_check_history),
        )

    async def flush(self) -> None:
        """Wait for pending history writes on both stores."""
        await self.exam_history.flush()
        await self.self_check_history.flush()
