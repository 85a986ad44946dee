"""Application layer: assistant reply templates.

Templates are deterministic so the command lifecycle can be tested without a
model. An optional phraser may rewrite confirmation and success messages;
its output is decoration only and never changes what gets executed.
"""
from typing import Any, Dict, List, Optional, Protocol

from hr_assistant.domain.commands import CommandIntent
from utils.dates import format_date_for_display

COMMANDS_OVERVIEW = """• Hiring: "Hire [name] to the [team] team in [country]"
• Bonuses: "Give [name] a $[amount] bonus"
• Title changes: "Change [name]'s title to [new title]"
• Terminations: "Terminate [name] effective [date]"
• Lookups: "Show employees", "Show teams", "Show [name]", "Show history", "Show global history\""""

HELP_TEXT = f"Here's what I can help you with:\n\n{COMMANDS_OVERVIEW}"

FALLBACK_HELP_TEXT = (
    "I'm not sure how to help with that. I can assist you with:\n\n"
    f"{COMMANDS_OVERVIEW}\n\n"
    "Could you please rephrase your request using one of these formats?"
)

CANCELLED_TEXT = "No problem! The action has been cancelled. Is there anything else I can help you with?"

APOLOGY_TEXT = "Sorry, I encountered an error processing your request. Please try again."

REQUIRED_FIELDS = {
    CommandIntent.HIRE_EMPLOYEE.value: ("name", "team", "country"),
    CommandIntent.GIVE_BONUS.value: ("name", "amount"),
    CommandIntent.CHANGE_TITLE.value: ("name", "newTitle"),
    CommandIntent.TERMINATE_EMPLOYEE.value: ("name",),
    CommandIntent.VIEW_EMPLOYEE.value: ("name",),
}

FIELD_LABELS = {
    "name": "the employee's name",
    "team": "the team",
    "country": "the country",
    "amount": "the bonus amount",
    "newTitle": "the new title",
}


class Phraser(Protocol):
    async def rephrase(self, kind: str, intent: CommandIntent, template: str) -> str: ...  # pragma: no cover


def _money(value: Any) -> str:
    try:
        return f"${float(value):,.0f}"
    except (TypeError, ValueError):
        return str(value)


def _join(items: List[str]) -> str:
    if len(items) <= 1:
        return "".join(items)
    return ", ".join(items[:-1]) + f" and {items[-1]}"


def confirmation_template(intent: CommandIntent, slots: Dict[str, Any]) -> str:
    name = slots.get("name", "this employee")
    if intent is CommandIntent.HIRE_EMPLOYEE:
        title = slots.get("title") or "Software Engineer"
        start = (f"starting {format_date_for_display(slots['startDate'])}"
                 if slots.get("startDate") else "starting today")
        salary = f" at a salary of {_money(slots['salary'])}" if slots.get("salary") else ""
        return (f"I will hire {name} as a {title} in the {slots.get('team')} team located in "
                f"{slots.get('country')}{salary}, {start}. Should I proceed?")
    if intent is CommandIntent.GIVE_BONUS:
        bonus_type = slots.get("bonusType") or "performance"
        reason = f" for {slots['reason']}" if slots.get("reason") else ""
        return f"I will give {name} a {_money(slots.get('amount'))} {bonus_type} bonus{reason}. Should I proceed?"
    if intent is CommandIntent.CHANGE_TITLE:
        effective = (f"effective {format_date_for_display(slots['effectiveDate'])}"
                     if slots.get("effectiveDate") else "effective immediately")
        return f"I will change {name}'s title to {slots.get('newTitle')}, {effective}. Should I proceed?"
    if intent is CommandIntent.TERMINATE_EMPLOYEE:
        when = (f"effective {format_date_for_display(slots['termDate'])}"
                if slots.get("termDate") else "effective immediately")
        return f"I will terminate {name} {when}. This will trigger offboarding procedures. Should I proceed?"
    return "Please confirm this action."


def success_template(intent: CommandIntent, slots: Dict[str, Any], data: Optional[Dict[str, Any]]) -> str:
    data = data or {}
    name = slots.get("name", "the employee")
    if intent is CommandIntent.HIRE_EMPLOYEE:
        return f"✅ Successfully hired {name}! Employee ID {data.get('employeeId')} has been created."
    if intent is CommandIntent.GIVE_BONUS:
        return (f"✅ Bonus approved! {_money(data.get('bonusAmount'))} {data.get('bonusType', 'performance')} "
                f"bonus added to {name}'s next payroll cycle.")
    if intent is CommandIntent.CHANGE_TITLE:
        return f"✅ Title updated! {name} is now {data.get('newTitle')} (previously {data.get('oldTitle')})."
    if intent is CommandIntent.TERMINATE_EMPLOYEE:
        return (f"✅ Termination processed. {name}'s final day is "
                f"{format_date_for_display(data.get('terminationDate', ''))}. "
                f"Final pay: {_money(data.get('finalPay'))}.")
    return "✅ Action completed successfully!"


def incomplete_template(slots: Dict[str, Any]) -> str:
    command = slots.get("command")
    required = REQUIRED_FIELDS.get(command)
    if not required:
        return "I need more information to complete this request."
    missing = [FIELD_LABELS.get(f, f) for f in required if not slots.get(f)]
    if not missing:
        return "I need more information to complete this request."
    return f"I need more information to proceed. Could you please tell me {_join(missing)}?"


class MessageComposer:
    """Builds assistant replies, optionally passing them through a phraser."""

    def __init__(self, phraser: Optional[Phraser] = None):
        self.phraser = phraser

    async def _maybe_rephrase(self, kind: str, intent: CommandIntent, template: str) -> str:
        if self.phraser is None:
            return template
        return await self.phraser.rephrase(kind, intent, template)

    async def confirmation(self, intent: CommandIntent, slots: Dict[str, Any]) -> str:
        return await self._maybe_rephrase("confirmation", intent, confirmation_template(intent, slots))

    async def success(self, intent: CommandIntent, slots: Dict[str, Any],
                      data: Optional[Dict[str, Any]], warnings: Optional[List[str]] = None) -> str:
        text = await self._maybe_rephrase("success", intent, success_template(intent, slots, data))
        if warnings:
            text = f"{text}\n\n⚠️ {' '.join(warnings)}"
        return text

    def failure(self, message: str) -> str:
        return f"❌ {message}"

    def incomplete(self, slots: Dict[str, Any]) -> str:
        return incomplete_template(slots)

    def fallback_help(self) -> str:
        return FALLBACK_HELP_TEXT

    def cancelled(self) -> str:
        return CANCELLED_TEXT

    def apology(self) -> str:
        return APOLOGY_TEXT

    def superseded(self) -> str:
        return "The previous pending action was replaced by this new request."

    def pending_blocked(self, pending_intent: CommandIntent) -> str:
        label = pending_intent.value.replace("_", " ")
        return (f"You still have a pending {label} action awaiting confirmation. "
                "Please confirm or cancel it before starting a new one.")
