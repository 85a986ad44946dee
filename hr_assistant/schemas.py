"""Pydantic models for request/response bodies.

Explicit schemas give validation and documentation at the HTTP edge; the
wire format is camelCase (sessionId, commandId, needsConfirmation).
"""
from __future__ import annotations
from typing import Any, Dict, List, Optional

from pydantic import Field, StrictBool, field_validator

from hr_assistant.domain.conversation import CamelModel, CommandExecution, ConversationSession, Message


class ChatRequest(CamelModel):
    message: str = Field(min_length=1, max_length=2000)
    session_id: Optional[str] = None

    @field_validator("message")
    @classmethod
    def reject_blank_message(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("message must not be blank")
        return v


class ConfirmRequest(CamelModel):
    command_id: str = Field(min_length=1)
    confirmed: StrictBool


class ChatResponse(CamelModel):
    message: Message
    session_id: str
    command_execution: Optional[CommandExecution] = None
    needs_confirmation: bool = False


class ConfirmResponse(CamelModel):
    message: Message
    session_id: str


class SessionResponse(CamelModel):
    session: ConversationSession
    pending_command: Optional[CommandExecution] = None


class HistoryResponse(CamelModel):
    logs: List[Dict[str, Any]]
    formatted: List[str]
