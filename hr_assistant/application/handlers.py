"""Application layer: Command handlers implementing HR business rules.

Mutating handlers never raise for business-rule failures; they return a
failed CommandResult and leave the data store untouched.
"""
import logging
from decimal import ROUND_HALF_UP, Decimal
from typing import List, Optional

from database.models import Employee
from hr_assistant.domain.commands import (
    BonusSlots,
    ChangeTitleSlots,
    CommandContext,
    CommandHandler,
    CommandIntent,
    CommandResult,
    HireSlots,
    TerminateSlots,
    ViewEmployeeSlots,
)
from hr_assistant.application.phrasing import HELP_TEXT
from hr_assistant.domain.errors import NotFoundError
from hr_assistant.infrastructure.audit_log import AuditLog
from hr_assistant.infrastructure.repositories import HRDataStore
from utils.time import today_iso

logger = logging.getLogger(__name__)

DEFAULT_TITLE = "Software Engineer"
DEFAULT_SALARY = 80000
DEFAULT_CURRENCY = "USD"
BONUS_WARNING_RATIO = 0.3
DEFAULT_BONUS_TYPE = "performance"


def _not_found(name: str) -> CommandResult:
    return CommandResult.fail(f'Could not find employee "{name}". Please check the spelling.')


def _money(amount: float) -> str:
    return f"${amount:,.0f}"


class HireEmployeeHandler(CommandHandler):
    intent = CommandIntent.HIRE_EMPLOYEE

    def __init__(self, store: HRDataStore):
        self.store = store

    async def handle(self, slots: HireSlots, context: CommandContext) -> CommandResult:
        # Any status counts: a terminated employee cannot be re-hired under the same name
        if self.store.get_employee_by_name(slots.name):
            return CommandResult.fail(f"{slots.name} is already employed in our system.")

        team = self.store.get_team_by_name(slots.team)
        if not team:
            available = ", ".join(t.name for t in self.store.list_teams())
            return CommandResult.fail(f'Team "{slots.team}" does not exist. Available teams: {available}.')

        if not self.store.is_country_supported(slots.country):
            return CommandResult.fail(
                f"We cannot hire in {slots.country} at this time. "
                "This country may be embargoed or not supported by our EOR partner."
            )

        country = self.store.get_country_by_name(slots.country)
        employee = self.store.add_employee({
            "name": slots.name,
            "team": team.name.lower(),
            "country": country.name,
            "title": slots.title or DEFAULT_TITLE,
            "salary": slots.salary or DEFAULT_SALARY,
            "currency": DEFAULT_CURRENCY,
            "manager": team.manager,
            "start_date": slots.start_date or today_iso(),
            "status": "active",
        })
        context.mark_committed()
        return CommandResult.ok(
            f"Successfully hired {employee.name}!",
            data={"employeeId": employee.id, "employee": employee.to_dict()},
        )


class GiveBonusHandler(CommandHandler):
    intent = CommandIntent.GIVE_BONUS

    def __init__(self, store: HRDataStore):
        self.store = store

    async def handle(self, slots: BonusSlots, context: CommandContext) -> CommandResult:
        employee = self.store.get_employee_by_name(slots.name)
        if not employee:
            return _not_found(slots.name)

        warnings: List[str] = []
        if slots.amount > employee.salary * BONUS_WARNING_RATIO:
            warnings.append(
                f"This bonus ({_money(slots.amount)}) is more than 30% of {employee.name}'s annual salary."
            )

        return CommandResult.ok(
            f"Bonus approved for {employee.name}!",
            data={
                "employeeId": employee.id,
                "bonusAmount": slots.amount,
                "bonusType": slots.bonus_type or DEFAULT_BONUS_TYPE,
            },
            warnings=warnings,
        )


class ChangeTitleHandler(CommandHandler):
    intent = CommandIntent.CHANGE_TITLE

    def __init__(self, store: HRDataStore):
        self.store = store

    async def handle(self, slots: ChangeTitleSlots, context: CommandContext) -> CommandResult:
        employee = self.store.get_employee_by_name(slots.name)
        if not employee:
            return _not_found(slots.name)

        old_title = employee.title
        try:
            self.store.update_employee(employee.id, {"title": slots.new_title})
            context.mark_committed()
        except NotFoundError:
            logger.warning(f"Employee {employee.id} vanished before title update")
            return CommandResult.fail("Failed to update employee title.")

        return CommandResult.ok(
            f"Title updated for {employee.name}!",
            data={
                "employeeId": employee.id,
                "oldTitle": old_title,
                "newTitle": slots.new_title,
                "effectiveDate": slots.effective_date or today_iso(),
            },
        )


class TerminateEmployeeHandler(CommandHandler):
    intent = CommandIntent.TERMINATE_EMPLOYEE

    def __init__(self, store: HRDataStore):
        self.store = store

    async def handle(self, slots: TerminateSlots, context: CommandContext) -> CommandResult:
        employee = self.store.get_employee_by_name(slots.name)
        if not employee:
            return _not_found(slots.name)

        if employee.status == "terminated":
            return CommandResult.fail(f"{employee.name} has already been terminated.")

        try:
            self.store.update_employee(employee.id, {"status": "terminated"})
            context.mark_committed()
        except NotFoundError:
            logger.warning(f"Employee {employee.id} vanished before termination")
            return CommandResult.fail("Failed to process termination.")

        # One month of salary as severance, halves rounded up
        final_pay = int((Decimal(employee.salary) / 12).quantize(Decimal("1"), rounding=ROUND_HALF_UP))
        return CommandResult.ok(
            f"Termination processed for {employee.name}.",
            data={
                "employeeId": employee.id,
                "terminationDate": slots.term_date or today_iso(),
                "reason": slots.reason or "Not specified",
                "finalPay": final_pay,
            },
        )


def _employee_line(employee: Employee) -> str:
    return (f"• {employee.name} ({employee.id}) - {employee.title}, {employee.team}, "
            f"{employee.country} [{employee.status}]")


class ViewEmployeesHandler(CommandHandler):
    intent = CommandIntent.VIEW_EMPLOYEES

    def __init__(self, store: HRDataStore):
        self.store = store

    async def handle(self, slots: Optional[object], context: CommandContext) -> CommandResult:
        employees = self.store.list_employees()
        if not employees:
            return CommandResult.ok("There are no employees on record.", data={"employees": []})
        lines = [f"👥 {len(employees)} employees:"] + [_employee_line(e) for e in employees]
        return CommandResult.ok("\n".join(lines), data={"employees": [e.to_dict() for e in employees]})


class ViewEmployeeHandler(CommandHandler):
    intent = CommandIntent.VIEW_EMPLOYEE

    def __init__(self, store: HRDataStore):
        self.store = store

    async def handle(self, slots: ViewEmployeeSlots, context: CommandContext) -> CommandResult:
        employee = self.store.get_employee_by_name(slots.name)
        if not employee:
            matches = self.store.find_employees_by_partial_name(slots.name)
            if len(matches) == 1:
                employee = matches[0]
            elif matches:
                names = ", ".join(m.name for m in matches)
                return CommandResult.fail(f'Several employees match "{slots.name}": {names}. Which one did you mean?')
            else:
                return _not_found(slots.name)
        card = "\n".join([
            f"👤 {employee.name} ({employee.id})",
            f"Title: {employee.title}",
            f"Team: {employee.team} (manager: {employee.manager})",
            f"Country: {employee.country}",
            f"Salary: {_money(employee.salary)} {employee.currency}",
            f"Start date: {employee.start_date}",
            f"Status: {employee.status}",
        ])
        return CommandResult.ok(card, data={"employee": employee.to_dict()})


class ViewTeamsHandler(CommandHandler):
    intent = CommandIntent.VIEW_TEAMS

    def __init__(self, store: HRDataStore):
        self.store = store

    async def handle(self, slots: Optional[object], context: CommandContext) -> CommandResult:
        teams = self.store.list_teams()
        lines = ["🏢 Teams:"] + [f"• {t.name} ({t.department}) - manager: {t.manager}" for t in teams]
        return CommandResult.ok("\n".join(lines), data={"teams": [t.to_dict() for t in teams]})


class ViewHistoryHandler(CommandHandler):
    intent = CommandIntent.VIEW_HISTORY

    def __init__(self, audit_log: AuditLog):
        self.audit_log = audit_log

    async def handle(self, slots: Optional[object], context: CommandContext) -> CommandResult:
        logs = self.audit_log.get_session_logs(context.session_id)
        if not logs:
            return CommandResult.ok("No actions have been taken in this conversation yet.", data={"logs": []})
        lines = ["📜 Actions in this conversation:"] + [AuditLog.format_log_for_display(l) for l in logs]
        return CommandResult.ok("\n".join(lines), data={"logs": [l.to_dict() for l in logs]})


class ViewGlobalHistoryHandler(CommandHandler):
    intent = CommandIntent.VIEW_GLOBAL_HISTORY

    def __init__(self, audit_log: AuditLog):
        self.audit_log = audit_log

    async def handle(self, slots: Optional[object], context: CommandContext) -> CommandResult:
        logs = self.audit_log.get_all_logs()
        if not logs:
            return CommandResult.ok("No actions have been recorded yet.", data={"logs": []})
        lines = ["🌐 All recorded actions:"] + [AuditLog.format_log_for_display(l) for l in logs]
        return CommandResult.ok("\n".join(lines), data={"logs": [l.to_dict() for l in logs]})


class HelpHandler(CommandHandler):
    intent = CommandIntent.HELP

    async def handle(self, slots: Optional[object], context: CommandContext) -> CommandResult:
        return CommandResult.ok(HELP_TEXT)
