"""Infrastructure layer: append-only audit trail of executed HR actions."""
import logging
import threading
import uuid
from typing import Any, Dict, List, Optional

from sqlalchemy.orm import sessionmaker

from database.models import ActionLog
from hr_assistant.domain.commands import CommandIntent

logger = logging.getLogger(__name__)


def extract_action_details(action: CommandIntent, slots: Dict[str, Any],
                           result_data: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
    """Project the slots (and result) of an action onto the fields worth keeping."""
    result_data = result_data or {}
    details: Dict[str, Any] = {}

    if action is CommandIntent.HIRE_EMPLOYEE:
        employee = result_data.get("employee") or {}
        details["employeeName"] = slots.get("name")
        details["team"] = slots.get("team")
        details["country"] = slots.get("country")
        details["title"] = slots.get("title") or employee.get("title")
        details["salary"] = slots.get("salary") or employee.get("salary")
        if result_data.get("employeeId"):
            details["employeeId"] = result_data["employeeId"]
    elif action is CommandIntent.GIVE_BONUS:
        details["employeeName"] = slots.get("name")
        details["amount"] = slots.get("amount")
        details["bonusType"] = slots.get("bonusType") or result_data.get("bonusType")
        details["reason"] = slots.get("reason")
    elif action is CommandIntent.CHANGE_TITLE:
        details["employeeName"] = slots.get("name")
        details["fromValue"] = result_data.get("oldTitle")
        details["toValue"] = slots.get("newTitle")
        details["effectiveDate"] = slots.get("effectiveDate") or result_data.get("effectiveDate")
    elif action is CommandIntent.TERMINATE_EMPLOYEE:
        details["employeeName"] = slots.get("name")
        details["terminationDate"] = slots.get("termDate") or result_data.get("terminationDate")
        details["reason"] = slots.get("reason")
        if result_data.get("finalPay") is not None:
            details["finalPay"] = result_data["finalPay"]
    elif slots.get("name"):
        details["employeeName"] = slots["name"]

    return {k: v for k, v in details.items() if v is not None}


class AuditLog:
    """Append-only store of ActionLog rows, readable per session or globally.

    Rows are never updated or deleted; read order is append order.
    """

    def __init__(self, session_factory: sessionmaker):
        self._session_factory = session_factory
        self._lock = threading.Lock()

    def log_action(self, session_id: str, user_id: str, action: CommandIntent,
                   slots: Dict[str, Any], success: bool,
                   error_message: Optional[str] = None,
                   result_data: Optional[Dict[str, Any]] = None) -> ActionLog:
        entry = ActionLog(
            id=uuid.uuid4(),
            session_id=session_id,
            user_id=user_id,
            action=action.value,
            details=extract_action_details(action, slots, result_data),
            success=success,
            error_message=error_message,
        )
        with self._lock:
            with self._session_factory() as db:
                try:
                    db.add(entry)
                    db.commit()
                except Exception:
                    db.rollback()
                    raise
        logger.info(
            f"📝 Audit: action={entry.action} session={session_id} success={success}"
            + (f" error={error_message!r}" if error_message else "")
        )
        return entry

    def get_session_logs(self, session_id: str) -> List[ActionLog]:
        with self._session_factory() as db:
            return db.query(ActionLog).filter(ActionLog.session_id == session_id).order_by(ActionLog.seq).all()

    def get_all_logs(self) -> List[ActionLog]:
        with self._session_factory() as db:
            return db.query(ActionLog).order_by(ActionLog.seq).all()

    def get_action_logs(self, action: Optional[CommandIntent] = None) -> List[ActionLog]:
        if action is None:
            return self.get_all_logs()
        with self._session_factory() as db:
            return db.query(ActionLog).filter(ActionLog.action == action.value).order_by(ActionLog.seq).all()

    @staticmethod
    def format_log_for_display(log: ActionLog) -> str:
        status = "✅" if log.success else "❌"
        details = log.details or {}
        name = details.get("employeeName")
        if log.action == CommandIntent.HIRE_EMPLOYEE.value:
            description = f"Hired {name} to {details.get('team')} team in {details.get('country')}"
        elif log.action == CommandIntent.GIVE_BONUS.value:
            description = f"Gave {name} a ${details.get('amount'):,.0f} bonus" if isinstance(
                details.get("amount"), (int, float)) else f"Gave {name} a bonus"
        elif log.action == CommandIntent.CHANGE_TITLE.value:
            description = f"Changed {name}'s title to {details.get('toValue')}"
        elif log.action == CommandIntent.TERMINATE_EMPLOYEE.value:
            description = f"Terminated {name} effective {details.get('terminationDate')}"
        else:
            description = f"Executed {log.action}" + (f" for {name}" if name else "")
        if not log.success and log.error_message:
            description += f" (failed: {log.error_message})"
        when = log.timestamp.strftime("%Y-%m-%d %H:%M") if log.timestamp else "unknown time"
        return f"{status} {description} ({when})"
