"""Application layer: command engine dispatching intents to handlers.

The engine is stateless between calls. It validates the slot bag into the
intent's typed record, runs the handler, and appends exactly one audit entry
for every mutating command that reaches a business outcome. An unexpected
fault is audited only when the handler had already written to the store.
"""
import logging
from typing import Any, Dict, Optional

from hr_assistant.application.handlers import (
    ChangeTitleHandler,
    GiveBonusHandler,
    HelpHandler,
    HireEmployeeHandler,
    TerminateEmployeeHandler,
    ViewEmployeeHandler,
    ViewEmployeesHandler,
    ViewGlobalHistoryHandler,
    ViewHistoryHandler,
    ViewTeamsHandler,
)
from hr_assistant.domain.commands import (
    CommandContext,
    CommandHandler,
    CommandIntent,
    CommandResult,
    coerce_intent,
    parse_slots,
)
from hr_assistant.domain.errors import InternalFault, SlotValidationError
from hr_assistant.infrastructure.audit_log import AuditLog
from hr_assistant.infrastructure.repositories import HRDataStore

logger = logging.getLogger(__name__)

UNKNOWN_COMMAND_MESSAGE = "Unknown command. I can help with hiring, bonuses, title changes, and terminations."


class CommandEngine:
    """Validates and executes commands against the data store."""

    def __init__(self, store: HRDataStore, audit_log: AuditLog):
        self.store = store
        self.audit_log = audit_log
        self._handlers: Dict[CommandIntent, CommandHandler] = {}
        for handler in (
            HireEmployeeHandler(store),
            GiveBonusHandler(store),
            ChangeTitleHandler(store),
            TerminateEmployeeHandler(store),
            ViewEmployeesHandler(store),
            ViewEmployeeHandler(store),
            ViewTeamsHandler(store),
            ViewHistoryHandler(audit_log),
            ViewGlobalHistoryHandler(audit_log),
            HelpHandler(),
        ):
            self._handlers[handler.intent] = handler

    def get_handler(self, intent: CommandIntent) -> Optional[CommandHandler]:
        return self._handlers.get(intent)

    async def execute(self, intent: Any, slots: Optional[Dict[str, Any]],
                      session_id: str, user_id: str) -> CommandResult:
        intent = coerce_intent(intent)
        handler = self.get_handler(intent)
        if handler is None:
            return CommandResult.fail(UNKNOWN_COMMAND_MESSAGE)

        try:
            typed_slots = parse_slots(intent, slots)
        except SlotValidationError as e:
            logger.info(f"[ENGINE] {intent.value} rejected: {e.message} fields={e.detail.get('fields')}")
            return CommandResult.fail(e.message)

        audit_slots = typed_slots.model_dump(by_alias=True, exclude_none=True) if typed_slots else {}
        context = CommandContext(session_id=session_id, user_id=user_id)
        logger.info(f"[ENGINE] executing {intent.value} for session {session_id}")

        try:
            result = await handler.handle(typed_slots, context)
        except Exception as e:
            logger.exception(f"Command execution error: {intent.value}")
            # Faults before the store write leave no trace in the audit log
            if intent.is_mutating and context.committed:
                self._record(intent, audit_slots, context, success=False,
                             error_message=f"Internal error: {e.__class__.__name__}")
            raise InternalFault(
                "An error occurred while processing your request. Please try again.",
                detail={"intent": intent.value},
            ) from e

        if intent.is_mutating:
            self._record(intent, audit_slots, context, success=result.success,
                         error_message=None if result.success else result.message,
                         result_data=result.data)
        logger.info(f"[ENGINE] {intent.value} finished success={result.success}")
        return result

    def _record(self, intent: CommandIntent, slots: Dict[str, Any], context: CommandContext,
                success: bool, error_message: Optional[str] = None,
                result_data: Optional[Dict[str, Any]] = None) -> None:
        # A failed audit write must not cost the user their result
        try:
            self.audit_log.log_action(
                context.session_id, context.user_id, intent, slots, success,
                error_message=error_message, result_data=result_data,
            )
        except Exception:
            logger.exception(f"❌ Failed to write audit entry for {intent.value} (session {context.session_id})")
