"""Builders for small hand-made catalogs, records and storage doubles."""

from __future__ import annotations

import asyncio
from typing import Any

from selfexam_rulesets.history import HistoryStore
from selfexam_rulesets.interfaces import KeyValueStore
from selfexam_rulesets.models import (
    AssessmentKind,
    AssessmentRecord,
    Instruction,
    Predicate,
    Question,
    Section,
    SelfCheckStep,
)
from selfexam_rulesets.records import build_record
from selfexam_rulesets.scoring import RiskScorer
from selfexam_rulesets.storage import MemoryKeyValueStore


# --- Catalog builders ---


def when(qid: str, value: Any = True, op: str = "eq") -> Predicate:
    """Shorthand for a visibility predicate."""
    return Predicate(qid=qid, op=op, value=value)


def question(
    qid: str,
    *,
    weight: float = 0,
    red_flag: bool = False,
    question_type: str = "boolean",
    visible_when: list[Predicate] | None = None,
) -> Question:
    return Question(
        qid=qid,
        question_type=question_type,
        title_key=f"test.{qid}.title",
        description_key=f"test.{qid}.description",
        weight=weight,
        red_flag=red_flag,
        visible_when=visible_when or [],
    )


def section(section_id: str, *questions: Question) -> Section:
    return Section(
        id=section_id,
        title_key=f"test.{section_id}.title",
        description_key=f"test.{section_id}.description",
        questions=list(questions),
    )


def step(step_id: str, pages: int) -> SelfCheckStep:
    """A self-check step with ``pages`` instruction pages."""
    return SelfCheckStep(
        id=step_id,
        title_key=f"test.{step_id}.title",
        description_key=f"test.{step_id}.description",
        icon="icon",
        accent_color="#000000",
        instructions=[
            Instruction(
                id=f"{step_id}_{i}",
                text_key=f"test.{step_id}.page{i}",
                media_placeholder="placeholder",
                icon="icon",
            )
            for i in range(pages)
        ],
    )


# --- Records & history ---


def make_record(
    kind: AssessmentKind = AssessmentKind.EXAM,
    answers: dict[str, Any] | None = None,
) -> AssessmentRecord:
    """A scored record over an empty catalog (always Low)."""
    answers = answers or {}
    return build_record(kind, answers, RiskScorer([]).assess(answers))


def make_history(kv: KeyValueStore | None = None, key: str = "test_history") -> HistoryStore:
    return HistoryStore(kv if kv is not None else MemoryKeyValueStore(), key)


# --- Storage doubles ---


class FailingKeyValueStore(KeyValueStore):
    """Every operation raises."""

    async def get(self, key: str) -> str | None:
        raise RuntimeError("storage unavailable")

    async def set(self, key: str, value: str) -> None:
        raise RuntimeError("storage unavailable")

    async def delete(self, key: str) -> None:
        raise RuntimeError("storage unavailable")


class SlowKeyValueStore(MemoryKeyValueStore):
    """Yields to the loop inside ``set`` and records overlapping writes."""

    def __init__(self) -> None:
        super().__init__()
        self.writes: list[str] = []
        self.in_flight = 0
        self.max_in_flight = 0

    async def set(self, key: str, value: str) -> None:
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        await asyncio.sleep(0.01)
        await super().set(key, value)
        self.writes.append(value)
        self.in_flight -= 1
