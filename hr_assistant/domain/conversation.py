"""Domain layer: conversation sessions, messages and command executions."""
from __future__ import annotations
import uuid
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from hr_assistant.domain.commands import CommandIntent, CommandResult
from hr_assistant.domain.errors import ConflictError
from utils.time import utc_now


def new_id() -> str:
    return str(uuid.uuid4())


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class MessageRole(str, Enum):
    USER = "user"
    ASSISTANT = "assistant"


class MessageType(str, Enum):
    TEXT = "text"
    CONFIRMATION = "confirmation"
    SUCCESS = "success"
    ERROR = "error"


class Message(CamelModel):
    id: str = Field(default_factory=new_id)
    role: MessageRole
    content: str
    timestamp: datetime = Field(default_factory=utc_now)
    type: MessageType = MessageType.TEXT


class CommandStatus(str, Enum):
    EXTRACTING_SLOTS = "extracting_slots"
    PENDING_CONFIRMATION = "pending_confirmation"
    EXECUTING = "executing"
    COMPLETED = "completed"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self in (CommandStatus.COMPLETED, CommandStatus.FAILED)


class CommandExecution(CamelModel):
    """One extracted command on its way from confirmation to a terminal state.

    pending_confirmation -> executing -> completed | failed, or
    pending_confirmation -> failed when declined or superseded.
    Transitions happen once; a resolved execution is never reused.
    """

    id: str = Field(default_factory=new_id)
    session_id: str
    intent: CommandIntent
    slots: Dict[str, Union[str, float, int]] = Field(default_factory=dict)
    status: CommandStatus = CommandStatus.PENDING_CONFIRMATION
    result: Optional[CommandResult] = None
    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now)

    def _move(self, expected: CommandStatus, target: CommandStatus) -> None:
        if self.status is not expected:
            raise ConflictError(
                f"Command {self.id} cannot move from {self.status.value} to {target.value}",
                detail={"commandId": self.id, "status": self.status.value},
            )
        self.status = target
        self.updated_at = utc_now()

    def begin_execution(self) -> None:
        self._move(CommandStatus.PENDING_CONFIRMATION, CommandStatus.EXECUTING)

    def finish(self, result: CommandResult) -> None:
        self._move(
            CommandStatus.EXECUTING,
            CommandStatus.COMPLETED if result.success else CommandStatus.FAILED,
        )
        self.result = result

    def abort(self, result: CommandResult) -> None:
        """Resolve a pending command without executing it (declined or superseded)."""
        self._move(CommandStatus.PENDING_CONFIRMATION, CommandStatus.FAILED)
        self.result = result


class ConversationSession(CamelModel):
    id: str = Field(default_factory=new_id)
    user_id: str
    messages: List[Message] = Field(default_factory=list)
    pending_command_id: Optional[str] = None
    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now)

    def append(self, role: MessageRole, content: str,
               type: MessageType = MessageType.TEXT) -> Message:
        message = Message(role=role, content=content, type=type)
        self.messages.append(message)
        self.updated_at = message.timestamp
        return message

    def recent_history(self, window: int) -> List[Dict[str, Any]]:
        """Most recent messages in the {role, content} shape the extractor expects."""
        if window <= 0:
            return []
        return [
            {"role": m.role.value, "content": m.content}
            for m in self.messages[-window:]
        ]
