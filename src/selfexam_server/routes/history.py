"""History endpoints — list and clear completed assessments."""

from fastapi import APIRouter, Depends, Query

from selfexam_rulesets.context import AppContext
from selfexam_rulesets.models import AssessmentKind, AssessmentRecord

from selfexam_server.config import DEFAULT_PAGE_LIMIT, MAX_PAGE_LIMIT
from selfexam_server.dependencies import get_context

router = APIRouter(prefix="/history", tags=["history"])


@router.get("/{kind}")
async def list_history(
    kind: AssessmentKind,
    ctx: AppContext = Depends(get_context),
    limit: int = Query(DEFAULT_PAGE_LIMIT, ge=1, le=MAX_PAGE_LIMIT),
    offset: int = Query(0, ge=0),
) -> list[AssessmentRecord]:
    """Completed assessments of ``kind``, most recent first."""
    return ctx.history(kind).records[offset:offset + limit]


@router.delete("/{kind}", status_code=204)
async def clear_history(
    kind: AssessmentKind,
    ctx: AppContext = Depends(get_context),
) -> None:
    """Delete every stored assessment of ``kind``."""
    await ctx.history(kind).clear()
