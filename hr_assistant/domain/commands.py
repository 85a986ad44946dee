"""Domain layer: Command pattern for handling HR intents.

Each mutating intent gets its own typed slot record. Raw slot bags coming
out of the extractor are validated once, in `parse_slots`, before any
handler sees them.
"""
from __future__ import annotations
from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, List, Optional, Type

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator
from pydantic.alias_generators import to_camel

from hr_assistant.domain.errors import SlotValidationError
from utils.dates import parse_relative_date


class CommandIntent(str, Enum):
    HIRE_EMPLOYEE = "hire_employee"
    GIVE_BONUS = "give_bonus"
    CHANGE_TITLE = "change_title"
    TERMINATE_EMPLOYEE = "terminate_employee"
    VIEW_EMPLOYEES = "view_employees"
    VIEW_EMPLOYEE = "view_employee"
    VIEW_TEAMS = "view_teams"
    VIEW_HISTORY = "view_history"
    VIEW_GLOBAL_HISTORY = "view_global_history"
    HELP = "help"
    INCOMPLETE = "incomplete"
    UNKNOWN = "unknown"

    @property
    def is_mutating(self) -> bool:
        return self in MUTATING_INTENTS

    @property
    def is_read_only(self) -> bool:
        return self in READ_ONLY_INTENTS


MUTATING_INTENTS = frozenset({
    CommandIntent.HIRE_EMPLOYEE,
    CommandIntent.GIVE_BONUS,
    CommandIntent.CHANGE_TITLE,
    CommandIntent.TERMINATE_EMPLOYEE,
})

READ_ONLY_INTENTS = frozenset({
    CommandIntent.VIEW_EMPLOYEES,
    CommandIntent.VIEW_EMPLOYEE,
    CommandIntent.VIEW_TEAMS,
    CommandIntent.VIEW_HISTORY,
    CommandIntent.VIEW_GLOBAL_HISTORY,
    CommandIntent.HELP,
})


def coerce_intent(value: Any) -> CommandIntent:
    """Map any raw intent value onto the enum, defaulting to UNKNOWN."""
    if isinstance(value, CommandIntent):
        return value
    try:
        return CommandIntent(str(value).strip().lower())
    except ValueError:
        return CommandIntent.UNKNOWN


def _parse_money(value: Any) -> Any:
    if value is None or isinstance(value, (int, float)):
        return value
    text = str(value).strip().lower().replace("$", "").replace(",", "").replace("usd", "").strip()
    if not text:
        return None
    multiplier = 1
    if text.endswith("k"):
        multiplier, text = 1000, text[:-1]
    try:
        return float(text) * multiplier
    except ValueError:
        return value


def _parse_optional_date(value: Any) -> Any:
    if value is None or (isinstance(value, str) and not value.strip()):
        return None
    return parse_relative_date(str(value))


class SlotModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        str_strip_whitespace=True,
        extra="ignore",
    )


class HireSlots(SlotModel):
    name: str = Field(min_length=1)
    team: str = Field(min_length=1)
    country: str = Field(min_length=1)
    start_date: Optional[str] = None
    title: Optional[str] = None
    salary: Optional[float] = Field(default=None, gt=0)

    @field_validator("salary", mode="before")
    @classmethod
    def coerce_salary(cls, value):
        return _parse_money(value)

    @field_validator("start_date", mode="before")
    @classmethod
    def normalize_start_date(cls, value):
        return _parse_optional_date(value)


class BonusSlots(SlotModel):
    name: str = Field(min_length=1)
    amount: float = Field(gt=0)
    bonus_type: Optional[str] = None
    reason: Optional[str] = None

    @field_validator("amount", mode="before")
    @classmethod
    def coerce_amount(cls, value):
        return _parse_money(value)


class ChangeTitleSlots(SlotModel):
    name: str = Field(min_length=1)
    new_title: str = Field(min_length=1)
    effective_date: Optional[str] = None

    @field_validator("effective_date", mode="before")
    @classmethod
    def normalize_effective_date(cls, value):
        return _parse_optional_date(value)


class TerminateSlots(SlotModel):
    name: str = Field(min_length=1)
    term_date: Optional[str] = None
    reason: Optional[str] = None

    @field_validator("term_date", mode="before")
    @classmethod
    def normalize_term_date(cls, value):
        return _parse_optional_date(value)


class ViewEmployeeSlots(SlotModel):
    name: str = Field(min_length=1)


SLOT_MODELS: Dict[CommandIntent, Type[SlotModel]] = {
    CommandIntent.HIRE_EMPLOYEE: HireSlots,
    CommandIntent.GIVE_BONUS: BonusSlots,
    CommandIntent.CHANGE_TITLE: ChangeTitleSlots,
    CommandIntent.TERMINATE_EMPLOYEE: TerminateSlots,
    CommandIntent.VIEW_EMPLOYEE: ViewEmployeeSlots,
}

MISSING_SLOT_MESSAGES: Dict[CommandIntent, str] = {
    CommandIntent.HIRE_EMPLOYEE: "Missing required information. I need name, team, and country to hire someone.",
    CommandIntent.GIVE_BONUS: "I need both employee name and a positive bonus amount.",
    CommandIntent.CHANGE_TITLE: "I need both employee name and the new title.",
    CommandIntent.TERMINATE_EMPLOYEE: "I need the name of the employee to terminate.",
    CommandIntent.VIEW_EMPLOYEE: "Which employee would you like to see?",
}


def parse_slots(intent: CommandIntent, raw: Optional[Dict[str, Any]]) -> Optional[SlotModel]:
    """Validate a raw slot bag into the intent's typed record.

    Returns None for intents that take no slots. Raises SlotValidationError
    with a user-facing message when a required slot is missing or invalid.
    """
    model = SLOT_MODELS.get(intent)
    if model is None:
        return None
    cleaned = {k: v for k, v in (raw or {}).items() if v is not None}
    try:
        return model.model_validate(cleaned)
    except ValidationError as exc:
        fields = sorted({str(err["loc"][0]) for err in exc.errors() if err.get("loc")})
        raise SlotValidationError(MISSING_SLOT_MESSAGES[intent], detail={"fields": fields}) from exc


class CommandResult(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    success: bool
    message: str
    data: Optional[Dict[str, Any]] = None
    warnings: List[str] = Field(default_factory=list)

    @classmethod
    def ok(cls, message: str, data: Optional[Dict[str, Any]] = None,
           warnings: Optional[List[str]] = None) -> "CommandResult":
        return cls(success=True, message=message, data=data, warnings=warnings or [])

    @classmethod
    def fail(cls, message: str, data: Optional[Dict[str, Any]] = None) -> "CommandResult":
        return cls(success=False, message=message, data=data)


@dataclass
class CommandContext:
    """Who is asking, passed to every handler.

    Handlers call mark_committed() once their data store write has returned.
    """
    session_id: str
    user_id: str
    committed: bool = False

    def mark_committed(self) -> None:
        self.committed = True


class CommandHandler(ABC):
    """Handler interface for processing commands."""

    intent: CommandIntent

    @abstractmethod
    async def handle(self, slots: Optional[SlotModel], context: CommandContext) -> CommandResult:
        """Handle the command."""
        pass
