"""Chat endpoints: submit a message and answer a pending confirmation."""
import logging

from fastapi import APIRouter, Depends

from hr_assistant.application.session_manager import SessionManager
from hr_assistant.dependencies import get_session_manager
from hr_assistant.schemas import ChatRequest, ChatResponse, ConfirmRequest, ConfirmResponse, SessionResponse

router = APIRouter(prefix="/api", tags=["chat"])
logger = logging.getLogger(__name__)


@router.post("/chat", response_model=ChatResponse, response_model_exclude_none=True)
async def submit_message(body: ChatRequest, sessions: SessionManager = Depends(get_session_manager)):
    logger.info(f"📨 Incoming chat message (session={body.session_id or 'new'})")
    outcome = await sessions.submit(body.message, body.session_id)
    return ChatResponse(
        message=outcome.message,
        session_id=outcome.session.id,
        command_execution=outcome.command_execution,
        needs_confirmation=outcome.needs_confirmation,
    )


@router.put("/chat", response_model=ConfirmResponse)
async def confirm_command(body: ConfirmRequest, sessions: SessionManager = Depends(get_session_manager)):
    logger.info(f"🗳️ Confirmation for {body.command_id}: confirmed={body.confirmed}")
    outcome = await sessions.confirm(body.command_id, body.confirmed)
    return ConfirmResponse(message=outcome.message, session_id=outcome.session.id)


@router.get("/sessions/{session_id}", response_model=SessionResponse)
async def get_session(session_id: str, sessions: SessionManager = Depends(get_session_manager)):
    session = sessions.get_session(session_id)
    return SessionResponse(session=session, pending_command=sessions.pending_for_session(session_id))
