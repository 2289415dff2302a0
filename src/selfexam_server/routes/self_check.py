"""Self-check endpoints — instructions, chat, and step navigation.

Replying to the last question of a step's chat finishes that step: its
answers are merged and the flow moves on to the next step's instructions,
or to results after the final step.  Entering a chat whose script asks
nothing finishes the step straight away.
"""

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from selfexam_rulesets.context import AppContext
from selfexam_rulesets.conversation import ChatMessage, ScriptedConversation
from selfexam_rulesets.models import (
    FlowStage,
    Instruction,
    Progress,
    QuestionNode,
    RiskAssessmentResult,
    SelfCheckStep,
    StepPhase,
)
from selfexam_rulesets.self_check import SelfCheckController

from selfexam_server.dependencies import get_context

router = APIRouter(prefix="/self-check", tags=["self-check"])


# ------------------------------------------------------------------
# Request / response models
# ------------------------------------------------------------------

class ReplyRequest(BaseModel):
    """Body for POST /self-check/chat/reply."""
    question_id: str
    value: str


class ClarifyRequest(BaseModel):
    """Body for POST /self-check/chat/clarify."""
    text: str


class ChatState(BaseModel):
    """Transcript and active question of the running conversation."""
    step_id: str | None = None
    active_question: QuestionNode | None = None
    is_complete: bool
    messages: list[ChatMessage]


class SelfCheckState(BaseModel):
    """Snapshot of the self-check controller."""
    stage: FlowStage
    phase: StepPhase
    step_index: int
    instruction_index: int
    total_steps: int
    step: SelfCheckStep | None = None
    instruction: Instruction | None = None
    progress: Progress
    answers: dict[str, str]
    result: RiskAssessmentResult | None = None


class MoveResponse(BaseModel):
    """Navigation outcome; ``moved`` is False at the end of the range."""
    moved: bool
    state: SelfCheckState


class ReplyResponse(BaseModel):
    """Chat as it stood after the reply, plus the resulting flow state."""
    chat: ChatState
    state: SelfCheckState


class ClarifyResponse(BaseModel):
    response_key: str
    chat: ChatState


def _state(flow: SelfCheckController) -> SelfCheckState:
    return SelfCheckState(
        stage=flow.stage,
        phase=flow.phase,
        step_index=flow.step_index,
        instruction_index=flow.instruction_index,
        total_steps=flow.total_steps,
        step=flow.current_step,
        instruction=flow.current_instruction,
        progress=flow.overall_progress(),
        answers=flow.all_answers,
        result=flow.result,
    )


def _chat(conversation: ScriptedConversation) -> ChatState:
    return ChatState(
        step_id=conversation.step_id,
        active_question=conversation.active_question,
        is_complete=conversation.is_complete,
        messages=conversation.messages,
    )


def _require_chat(flow: SelfCheckController) -> None:
    if flow.stage is not FlowStage.IN_PROGRESS or flow.phase is not StepPhase.CHAT:
        raise ValueError("Chat not in progress")


# ------------------------------------------------------------------
# Endpoints
# ------------------------------------------------------------------

@router.post("/start")
async def start(ctx: AppContext = Depends(get_context)) -> SelfCheckState:
    """Begin a new self-check at step 0, instruction page 0."""
    ctx.self_check.start()
    return _state(ctx.self_check)


@router.get("")
async def get_state(ctx: AppContext = Depends(get_context)) -> SelfCheckState:
    """Return the current self-check state."""
    return _state(ctx.self_check)


@router.post("/instructions/next")
async def next_instruction(ctx: AppContext = Depends(get_context)) -> MoveResponse:
    """Next instruction page; ``moved`` is False on the last page."""
    moved = ctx.self_check.next_instruction()
    return MoveResponse(moved=moved, state=_state(ctx.self_check))


@router.post("/instructions/previous")
async def previous_instruction(ctx: AppContext = Depends(get_context)) -> SelfCheckState:
    """Previous instruction page, or back from chat to the last page."""
    if ctx.self_check.phase is StepPhase.CHAT:
        ctx.self_check.back_to_instructions()
    else:
        ctx.self_check.previous_instruction()
    return _state(ctx.self_check)


@router.post("/chat")
async def enter_chat(ctx: AppContext = Depends(get_context)) -> ChatState:
    """Switch the current step to its chat and start the conversation.

    A script without questions is complete as soon as it starts; the step is
    finished here since no reply will arrive to finish it.
    """
    ctx.self_check.enter_chat()
    chat = _chat(ctx.conversation)
    if ctx.conversation.is_complete:
        ctx.self_check.complete_step_chat()
    return chat


@router.get("/chat")
async def get_chat(ctx: AppContext = Depends(get_context)) -> ChatState:
    """Return the current conversation transcript."""
    return _chat(ctx.conversation)


@router.post("/chat/reply")
async def reply(
    body: ReplyRequest,
    ctx: AppContext = Depends(get_context),
) -> ReplyResponse:
    """Answer the active chat question; finishing the script ends the step."""
    _require_chat(ctx.self_check)
    ctx.conversation.submit_reply(body.question_id, body.value)
    chat = _chat(ctx.conversation)
    if ctx.conversation.is_complete:
        ctx.self_check.complete_step_chat()
    return ReplyResponse(chat=chat, state=_state(ctx.self_check))


@router.post("/chat/clarify")
async def clarify(
    body: ClarifyRequest,
    ctx: AppContext = Depends(get_context),
) -> ClarifyResponse:
    """Ask a free-text question; answered from the step's keyword table."""
    _require_chat(ctx.self_check)
    response_key = ctx.conversation.clarify(body.text)
    return ClarifyResponse(response_key=response_key, chat=_chat(ctx.conversation))


@router.post("/steps/next")
async def next_step(ctx: AppContext = Depends(get_context)) -> MoveResponse:
    """Skip to the next step's first instruction page."""
    moved = ctx.self_check.next_step()
    return MoveResponse(moved=moved, state=_state(ctx.self_check))


@router.post("/reset")
async def reset(ctx: AppContext = Depends(get_context)) -> SelfCheckState:
    """Abandon the self-check and return to the landing stage."""
    ctx.self_check.reset()
    ctx.conversation.reset()
    return _state(ctx.self_check)
