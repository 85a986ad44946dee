"""Domain layer: slot extraction using Strategy pattern.

A SlotExtractor turns free text (plus a short window of conversation
history) into an intent, a slot bag and a confidence score. Extractors never
raise: anything malformed collapses to the UNKNOWN extraction.
"""
import logging
import re
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional, Pattern, Tuple, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator
from pydantic.alias_generators import to_camel

from hr_assistant.domain.commands import CommandIntent

logger = logging.getLogger(__name__)

SlotValue = Union[str, float, int, None]


class SlotExtraction(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore")

    intent: CommandIntent
    slots: Dict[str, SlotValue]
    confidence: float = Field(ge=0.0, le=1.0)
    needs_confirmation: bool = False

    @field_validator("intent", mode="before")
    @classmethod
    def normalize_intent(cls, value):
        if isinstance(value, str):
            return value.strip().lower()
        return value

    @field_validator("confidence", mode="before")
    @classmethod
    def reject_non_numeric_confidence(cls, value):
        # bool is an int subclass; "0.9" strings are not numbers either
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            raise ValueError("confidence must be a number")
        return value

    @classmethod
    def unknown(cls) -> "SlotExtraction":
        return cls(intent=CommandIntent.UNKNOWN, slots={}, confidence=0.0, needs_confirmation=False)

    @classmethod
    def from_raw(cls, payload: Any) -> "SlotExtraction":
        """Validate an untrusted extractor payload, falling back to UNKNOWN."""
        if not isinstance(payload, dict):
            logger.warning(f"Slot extractor returned non-object payload: {type(payload).__name__}")
            return cls.unknown()
        try:
            return cls.model_validate(payload)
        except ValidationError as e:
            logger.warning(f"Malformed slot extraction, treating as unknown: {e.error_count()} error(s)")
            return cls.unknown()


class SlotExtractor(ABC):
    """Strategy interface for extracting intent + slots from a message."""

    @abstractmethod
    async def extract(self, message: str,
                      history: Optional[List[Dict[str, str]]] = None) -> SlotExtraction:
        """Extract intent and slots. Must not raise."""
        pass


_NAME = r"(?P<name>[A-Za-z][A-Za-z.'\- ]*?)"


class RegexSlotExtractor(SlotExtractor):
    """Concrete strategy using regex patterns; used when no LLM is configured."""

    def __init__(self, confidence: float = 0.9):
        self.confidence = confidence
        flags = re.IGNORECASE
        self.patterns: List[Tuple[CommandIntent, Pattern]] = [
            (CommandIntent.HIRE_EMPLOYEE, re.compile(
                rf"^(?:please\s+)?hire\s+{_NAME}\s+(?:to|on|into|for|in)\s+(?:the\s+)?(?P<team>[\w\- ]+?)\s+team"
                r"\s+in\s+(?P<country>[A-Za-z .'\-]+?)"
                r"(?:\s+(?:starting|start(?:ing)?\s+on|from|on)\s+(?P<startDate>.+?))?[.!]?$", flags)),
            (CommandIntent.GIVE_BONUS, re.compile(
                rf"^(?:please\s+)?give\s+{_NAME}\s+an?\s+\$?(?P<amount>\d[\d,]*(?:\.\d+)?k?)"
                r"\s+(?:(?P<bonusType>[a-z]+)\s+)?bonus(?:\s+for\s+(?P<reason>.+?))?[.!]?$", flags)),
            (CommandIntent.GIVE_BONUS, re.compile(
                rf"^(?:please\s+)?(?:give|award)\s+(?:an?\s+)?\$?(?P<amount>\d[\d,]*(?:\.\d+)?k?)"
                rf"\s+(?:(?P<bonusType>[a-z]+)\s+)?bonus\s+to\s+{_NAME}[.!]?$", flags)),
            (CommandIntent.CHANGE_TITLE, re.compile(
                rf"^(?:please\s+)?change\s+{_NAME}(?:'s|’s)\s+title\s+to\s+(?P<newTitle>.+?)"
                r"(?:\s+effective\s+(?P<effectiveDate>.+?))?[.!]?$", flags)),
            (CommandIntent.CHANGE_TITLE, re.compile(
                rf"^(?:please\s+)?promote\s+{_NAME}\s+to\s+(?P<newTitle>.+?)"
                r"(?:\s+effective\s+(?P<effectiveDate>.+?))?[.!]?$", flags)),
            (CommandIntent.TERMINATE_EMPLOYEE, re.compile(
                rf"^(?:please\s+)?(?:terminate|fire|offboard)\s+{_NAME}"
                r"(?:\s+(?:effective|on|as of)\s+(?P<termDate>.+?))?"
                r"(?:\s+(?:because|for|due to)\s+(?P<reason>.+?))?[.!]?$", flags)),
            (CommandIntent.VIEW_EMPLOYEES, re.compile(
                r"^(?:show|list|view)\s+(?:me\s+)?(?:all\s+)?(?:the\s+)?employees\??$|^who\s+works\s+here\??$", flags)),
            (CommandIntent.VIEW_TEAMS, re.compile(
                r"^(?:show|list|view)\s+(?:me\s+)?(?:all\s+)?(?:the\s+)?teams\??$", flags)),
            (CommandIntent.VIEW_GLOBAL_HISTORY, re.compile(
                r"^(?:show|view)\s+(?:me\s+)?(?:the\s+)?(?:global|all|full)\s+(?:action\s+)?history\??$", flags)),
            (CommandIntent.VIEW_HISTORY, re.compile(
                r"^(?:show|view)\s+(?:me\s+)?(?:my|the|this\s+session'?s?)?\s*(?:action\s+)?history\??$"
                r"|^what\s+have\s+i\s+done\??$", flags)),
            (CommandIntent.VIEW_EMPLOYEE, re.compile(
                rf"^(?:show|view|look\s+up|tell\s+me\s+about)\s+(?:employee\s+)?{_NAME}\??$", flags)),
            (CommandIntent.HELP, re.compile(r"^(?:help|what\s+can\s+you\s+do)\??$", flags)),
        ]
        # A recognizable verb without every required slot
        self.partial_patterns: List[Tuple[CommandIntent, Pattern]] = [
            (CommandIntent.HIRE_EMPLOYEE, re.compile(
                rf"^(?:please\s+)?hire\s+{_NAME}(?:\s+(?:to|on|into|for|in)\b.*?)?[.!]?$", flags)),
            (CommandIntent.GIVE_BONUS, re.compile(rf"^(?:please\s+)?give\s+(?:a\s+)?bonus\s+to\s+{_NAME}[.!]?$", flags)),
            (CommandIntent.CHANGE_TITLE, re.compile(rf"^(?:please\s+)?change\s+(?:the\s+)?title\s+(?:for|of)\s+{_NAME}[.!]?$", flags)),
        ]

    async def extract(self, message: str,
                      history: Optional[List[Dict[str, str]]] = None) -> SlotExtraction:
        text = (message or "").strip()
        for intent, pattern in self.patterns:
            match = pattern.search(text)
            if match:
                slots = {k: v.strip() for k, v in match.groupdict().items() if v}
                logger.debug(f"[REGEX_EXTRACT] {intent.value} slots={list(slots)}")
                return SlotExtraction(
                    intent=intent,
                    slots=slots,
                    confidence=self.confidence,
                    needs_confirmation=intent.is_mutating,
                )
        for intent, pattern in self.partial_patterns:
            match = pattern.search(text)
            if match:
                return SlotExtraction(
                    intent=CommandIntent.INCOMPLETE,
                    slots={"name": match.group("name").strip(), "command": intent.value},
                    confidence=0.0,
                    needs_confirmation=False,
                )
        return SlotExtraction.unknown()
