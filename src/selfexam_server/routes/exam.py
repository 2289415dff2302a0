"""Guided exam endpoints — start, answer, navigate, complete.

The server holds a single exam session (one local user).  Handlers are
``async`` so that completion schedules the history write on the running
event loop.
"""

from typing import Any

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from selfexam_rulesets.context import AppContext
from selfexam_rulesets.exam import ExamController
from selfexam_rulesets.models import Progress, Question, RiskAssessmentResult

from selfexam_server.dependencies import get_context

router = APIRouter(prefix="/exam", tags=["exam"])


# ------------------------------------------------------------------
# Request / response models
# ------------------------------------------------------------------

class AnswerRequest(BaseModel):
    """Body for POST /exam/answers."""
    qid: str
    value: Any


class ExamState(BaseModel):
    """Snapshot of the exam controller."""
    active: bool
    section_index: int
    question_index: int
    section_id: str | None = None
    question: Question | None = None
    answers: dict[str, Any]
    progress: Progress
    result: RiskAssessmentResult | None = None


class MoveResponse(BaseModel):
    """Navigation outcome; ``moved`` is False when nothing is left."""
    moved: bool
    state: ExamState


def _state(exam: ExamController) -> ExamState:
    section_index, question_index = exam.position
    section = exam.current_section
    return ExamState(
        active=exam.is_active,
        section_index=section_index,
        question_index=question_index,
        section_id=section.id if section is not None else None,
        question=exam.current_question,
        answers=exam.answers,
        progress=exam.progress(),
        result=exam.result,
    )


def _require_active(exam: ExamController) -> None:
    if not exam.is_active:
        raise ValueError("Exam not in progress")


# ------------------------------------------------------------------
# Endpoints
# ------------------------------------------------------------------

@router.post("/start")
async def start_exam(ctx: AppContext = Depends(get_context)) -> ExamState:
    """Begin a fresh exam at the first question, discarding any previous one."""
    ctx.exam.start()
    return _state(ctx.exam)


@router.get("")
async def get_exam(ctx: AppContext = Depends(get_context)) -> ExamState:
    """Return the current exam state."""
    return _state(ctx.exam)


@router.post("/answers")
async def record_answer(
    body: AnswerRequest,
    ctx: AppContext = Depends(get_context),
) -> ExamState:
    """Record (or overwrite) an answer.  Unknown qids give 404."""
    _require_active(ctx.exam)
    ctx.catalog.get_question(body.qid)
    ctx.exam.record_answer(body.qid, body.value)
    return _state(ctx.exam)


@router.post("/advance")
async def advance(ctx: AppContext = Depends(get_context)) -> MoveResponse:
    """Move to the next visible question."""
    _require_active(ctx.exam)
    moved = ctx.exam.advance()
    return MoveResponse(moved=moved, state=_state(ctx.exam))


@router.post("/retreat")
async def retreat(ctx: AppContext = Depends(get_context)) -> ExamState:
    """Move to the previous visible question (no-op at the first)."""
    _require_active(ctx.exam)
    ctx.exam.retreat()
    return _state(ctx.exam)


@router.post("/complete")
async def complete(ctx: AppContext = Depends(get_context)) -> RiskAssessmentResult:
    """Score the exam and add it to history."""
    _require_active(ctx.exam)
    return ctx.exam.complete()


@router.post("/reset")
async def reset(ctx: AppContext = Depends(get_context)) -> ExamState:
    """Abandon the exam without scoring."""
    ctx.exam.reset()
    return _state(ctx.exam)


@router.get("/progress")
async def progress(ctx: AppContext = Depends(get_context)) -> Progress:
    """Progress over the currently visible questions."""
    return ctx.exam.progress()
