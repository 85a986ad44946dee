"""Application layer: conversation sessions and the confirmation protocol.

Every session holds at most one pending command. Text goes through the
slot extractor; actionable intents become a CommandExecution waiting for
an explicit yes/no, and only a confirmed command reaches the engine.
"""
import asyncio
import logging
from dataclasses import dataclass
from typing import Dict, Optional

from hr_assistant.application.command_engine import CommandEngine
from hr_assistant.application.phrasing import MessageComposer
from hr_assistant.domain.commands import CommandIntent, CommandResult
from hr_assistant.domain.conversation import (
    CommandExecution,
    CommandStatus,
    ConversationSession,
    Message,
    MessageRole,
    MessageType,
)
from hr_assistant.domain.errors import InternalFault, NotFoundError
from hr_assistant.domain.intent_classifier import SlotExtraction, SlotExtractor

logger = logging.getLogger(__name__)

POLICY_REPLACE = "replace"
POLICY_REJECT = "reject"


@dataclass
class SubmitOutcome:
    message: Message
    session: ConversationSession
    command_execution: Optional[CommandExecution] = None
    needs_confirmation: bool = False


@dataclass
class ConfirmOutcome:
    message: Message
    session: ConversationSession
    command_execution: CommandExecution


class SessionManager:
    """Owns sessions, their messages and their single pending command."""

    def __init__(self, extractor: SlotExtractor, engine: CommandEngine,
                 composer: Optional[MessageComposer] = None,
                 confidence_threshold: float = 0.7,
                 history_window: int = 4,
                 default_user_id: str = "demo_user",
                 pending_policy: str = POLICY_REPLACE):
        if pending_policy not in (POLICY_REPLACE, POLICY_REJECT):
            raise ValueError(f"Unknown pending command policy: {pending_policy}")
        self.extractor = extractor
        self.engine = engine
        self.composer = composer or MessageComposer()
        self.confidence_threshold = confidence_threshold
        self.history_window = history_window
        self.default_user_id = default_user_id
        self.pending_policy = pending_policy

        self._sessions: Dict[str, ConversationSession] = {}
        self._pending: Dict[str, CommandExecution] = {}
        self._locks: Dict[str, asyncio.Lock] = {}

    # Sessions

    def create_session(self, user_id: Optional[str] = None) -> ConversationSession:
        session = ConversationSession(user_id=user_id or self.default_user_id)
        self._sessions[session.id] = session
        logger.info(f"💬 New conversation session {session.id}")
        return session

    def get_session(self, session_id: str) -> ConversationSession:
        session = self._sessions.get(session_id)
        if session is None:
            raise NotFoundError("Session not found", detail={"sessionId": session_id})
        return session

    def get_or_create_session(self, session_id: Optional[str] = None) -> ConversationSession:
        if session_id and session_id in self._sessions:
            return self._sessions[session_id]
        return self.create_session()

    def _lock_for(self, session_id: str) -> asyncio.Lock:
        return self._locks.setdefault(session_id, asyncio.Lock())

    # Commands

    def get_pending_command(self, command_id: str) -> CommandExecution:
        command = self._pending.get(command_id)
        if command is None:
            raise NotFoundError("Command not found", detail={"commandId": command_id})
        return command

    def pending_for_session(self, session_id: str) -> Optional[CommandExecution]:
        session = self._sessions.get(session_id)
        if session is None or session.pending_command_id is None:
            return None
        return self._pending.get(session.pending_command_id)

    def _release_pending(self, session: ConversationSession, command: CommandExecution) -> None:
        self._pending.pop(command.id, None)
        if session.pending_command_id == command.id:
            session.pending_command_id = None

    async def _extract(self, text: str, session: ConversationSession) -> SlotExtraction:
        history = session.recent_history(self.history_window)
        try:
            extraction = await self.extractor.extract(text, history)
        except Exception:
            logger.exception("Slot extractor raised, treating message as unknown")
            return SlotExtraction.unknown()
        if not isinstance(extraction, SlotExtraction):
            return SlotExtraction.from_raw(extraction)
        return extraction

    # Protocol

    async def submit(self, text: str, session_id: Optional[str] = None) -> SubmitOutcome:
        session = self.get_or_create_session(session_id)
        async with self._lock_for(session.id):
            extraction = await self._extract(text, session)
            session.append(MessageRole.USER, text)
            intent = extraction.intent
            slots = {k: v for k, v in extraction.slots.items() if v is not None}
            logger.info(f"[SESSION] {session.id} intent={intent.value} confidence={extraction.confidence:.2f}")

            if intent is CommandIntent.INCOMPLETE:
                reply = session.append(MessageRole.ASSISTANT, self.composer.incomplete(slots))
                return SubmitOutcome(message=reply, session=session)

            if intent is CommandIntent.UNKNOWN or extraction.confidence < self.confidence_threshold:
                reply = session.append(MessageRole.ASSISTANT, self.composer.fallback_help())
                return SubmitOutcome(message=reply, session=session)

            if intent.is_read_only:
                result = await self.engine.execute(intent, slots, session.id, session.user_id)
                content = result.message if result.success else self.composer.failure(result.message)
                reply = session.append(
                    MessageRole.ASSISTANT, content,
                    MessageType.TEXT if result.success else MessageType.ERROR,
                )
                return SubmitOutcome(message=reply, session=session)

            notice = ""
            existing = self.pending_for_session(session.id)
            if existing is not None:
                if self.pending_policy == POLICY_REJECT:
                    logger.info(f"[SESSION] {session.id} rejected new {intent.value}; {existing.id} still pending")
                    reply = session.append(MessageRole.ASSISTANT, self.composer.pending_blocked(existing.intent))
                    return SubmitOutcome(message=reply, session=session,
                                         command_execution=existing, needs_confirmation=True)
                existing.abort(CommandResult.fail("Superseded by a newer request."))
                self._release_pending(session, existing)
                notice = self.composer.superseded() + "\n\n"
                logger.info(f"[SESSION] {session.id} replaced pending command {existing.id}")

            command = CommandExecution(session_id=session.id, intent=intent, slots=slots)
            self._pending[command.id] = command
            session.pending_command_id = command.id

            confirmation = await self.composer.confirmation(intent, slots)
            reply = session.append(MessageRole.ASSISTANT, notice + confirmation, MessageType.CONFIRMATION)
            return SubmitOutcome(message=reply, session=session,
                                 command_execution=command, needs_confirmation=True)

    async def confirm(self, command_id: str, confirmed: bool) -> ConfirmOutcome:
        command = self.get_pending_command(command_id)
        session = self.get_session(command.session_id)
        async with self._lock_for(session.id):
            # Another confirm may have resolved it while we waited for the lock
            if self._pending.get(command_id) is not command or command.status is not CommandStatus.PENDING_CONFIRMATION:
                raise NotFoundError("Command not found", detail={"commandId": command_id})
            self._release_pending(session, command)

            if not confirmed:
                command.abort(CommandResult.fail("Declined by user."))
                logger.info(f"[SESSION] {session.id} declined {command.intent.value} ({command.id})")
                reply = session.append(MessageRole.ASSISTANT, self.composer.cancelled())
                return ConfirmOutcome(message=reply, session=session, command_execution=command)

            command.begin_execution()
            try:
                result = await self.engine.execute(command.intent, command.slots, session.id, session.user_id)
            except InternalFault as e:
                command.finish(CommandResult.fail(e.message))
                session.append(MessageRole.ASSISTANT, self.composer.apology(), MessageType.ERROR)
                raise
            command.finish(result)

            if result.success:
                content = await self.composer.success(command.intent, command.slots, result.data, result.warnings)
                reply = session.append(MessageRole.ASSISTANT, content, MessageType.SUCCESS)
            else:
                reply = session.append(MessageRole.ASSISTANT, self.composer.failure(result.message), MessageType.ERROR)
            return ConfirmOutcome(message=reply, session=session, command_execution=command)
