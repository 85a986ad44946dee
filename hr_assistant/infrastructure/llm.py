"""Infrastructure layer: Claude-backed slot extraction and reply phrasing.

Both collaborators are optional enrichment. Every failure mode (timeout,
API error, non-JSON text) degrades to a deterministic fallback instead of
surfacing to the user.
"""
import asyncio
import json
import logging
import re
from typing import Any, Dict, List, Optional

import anthropic

from hr_assistant.domain.commands import CommandIntent
from hr_assistant.domain.errors import ExternalServiceError
from hr_assistant.domain.intent_classifier import SlotExtraction, SlotExtractor
from utils.text import sanitize_output
from utils.time import today_iso

logger = logging.getLogger(__name__)

DEFAULT_MODEL = "claude-3-5-sonnet-20241022"

_JSON_OBJECT = re.compile(r"\{.*\}", re.DOTALL)


def build_extraction_prompt(today: str) -> str:
    return f"""You are an HR assistant that extracts structured data from natural language commands.

CRITICAL: Respond with ONLY valid JSON. No explanation, no text, ONLY JSON.

DATE RULES:
- TODAY'S DATE: {today}
- Convert relative dates ("tomorrow", "next Friday", "end of month") to YYYY-MM-DD.
- "immediately", "today", "now" mean today's date.

Supported commands:
1. hire_employee: REQUIRED name, team, country. Optional startDate, title, salary
2. give_bonus: REQUIRED name, amount. Optional bonusType, reason
3. change_title: REQUIRED name, newTitle. Optional effectiveDate
4. terminate_employee: REQUIRED name. Optional termDate (default today), reason
5. view_employees: no fields
6. view_employee: REQUIRED name
7. view_teams: no fields
8. view_history: this session's actions, no fields
9. view_global_history: all actions across sessions, no fields
10. help: no fields

CONTEXT RULES:
- Merge names, teams, countries, amounts and dates from the recent conversation with the current message.

INCOMPLETE COMMANDS:
- If a required field is missing, answer with intent "incomplete", confidence 0.0, needsConfirmation false,
  and include the known fields plus "command" set to the intended command.

RESPONSE FORMAT:
{{"intent": "command_or_incomplete_or_unknown", "slots": {{"field": "value"}}, "confidence": 0.0-1.0, "needsConfirmation": true/false}}

Example:
"hire John Smith to engineering team in Canada"
-> {{"intent": "hire_employee", "slots": {{"name": "John Smith", "team": "engineering", "country": "Canada"}}, "confidence": 0.95, "needsConfirmation": true}}"""


def _response_text(response) -> str:
    parts = [getattr(block, "text", "") for block in response.content if getattr(block, "type", None) == "text"]
    return "".join(parts).strip()


def parse_extraction_text(content: str) -> SlotExtraction:
    """Pull the first JSON object out of model text and validate it."""
    match = _JSON_OBJECT.search(content or "")
    if not match:
        raise ExternalServiceError("No JSON object in extractor response")
    try:
        payload = json.loads(match.group(0))
    except json.JSONDecodeError as e:
        raise ExternalServiceError(f"Invalid JSON from extractor: {e}") from e
    return SlotExtraction.from_raw(payload)


class AnthropicSlotExtractor(SlotExtractor):
    """Claude-backed extractor with a hard timeout and UNKNOWN fallback."""

    def __init__(self, api_key: str, model: str = DEFAULT_MODEL,
                 timeout_seconds: float = 10.0, client: Optional[Any] = None):
        self.model = model
        self.timeout_seconds = timeout_seconds
        self.client = client or anthropic.AsyncAnthropic(api_key=api_key, timeout=timeout_seconds)
        self.call_count = 0

    def _user_prompt(self, message: str, history: Optional[List[Dict[str, str]]]) -> str:
        if not history:
            return message
        transcript = "\n".join(f"{h.get('role', 'user')}: {h.get('content', '')}" for h in history)
        return f"Recent conversation:\n{transcript}\n\nCurrent message: {message}"

    async def _call(self, message: str, history: Optional[List[Dict[str, str]]]) -> SlotExtraction:
        self.call_count += 1
        response = await self.client.messages.create(
            model=self.model,
            max_tokens=300,
            temperature=0.1,
            system=build_extraction_prompt(today_iso()),
            messages=[{"role": "user", "content": self._user_prompt(message, history)}],
        )
        content = _response_text(response)
        logger.debug(f"[LLM_EXTRACT] raw response: {content!r}")
        return parse_extraction_text(content)

    async def extract(self, message: str,
                      history: Optional[List[Dict[str, str]]] = None) -> SlotExtraction:
        try:
            return await asyncio.wait_for(self._call(message, history), timeout=self.timeout_seconds)
        except asyncio.TimeoutError:
            logger.warning(f"⏱️ Slot extraction timed out after {self.timeout_seconds}s, falling back to unknown")
        except ExternalServiceError as e:
            logger.warning(f"⚠️ Slot extraction returned unusable output: {e.message}")
        except anthropic.APIError as e:
            logger.error(f"❌ Slot extraction API error: {e}")
        except Exception:
            logger.exception("❌ Unexpected slot extraction failure")
        return SlotExtraction.unknown()


class AnthropicPhraser:
    """Rewrites template replies in a friendlier voice; template wins on any error."""

    SYSTEM_PROMPTS = {
        "confirmation": (
            "Rewrite this HR action confirmation so it is clear and professional. "
            "Keep every name, amount and date exactly as given and end by asking whether to proceed."
        ),
        "success": (
            "Rewrite this HR action success message so it is positive and specific. "
            "Keep every name, amount and date exactly as given. Start with ✅."
        ),
    }

    def __init__(self, api_key: str, model: str = DEFAULT_MODEL,
                 timeout_seconds: float = 10.0, client: Optional[Any] = None):
        self.model = model
        self.timeout_seconds = timeout_seconds
        self.client = client or anthropic.AsyncAnthropic(api_key=api_key, timeout=timeout_seconds)

    async def rephrase(self, kind: str, intent: CommandIntent, template: str) -> str:
        system = self.SYSTEM_PROMPTS.get(kind)
        if system is None:
            return template
        try:
            response = await asyncio.wait_for(
                self.client.messages.create(
                    model=self.model,
                    max_tokens=200,
                    temperature=0.3,
                    system=system,
                    messages=[{"role": "user", "content": f"Intent: {intent.value}\nMessage: {template}"}],
                ),
                timeout=self.timeout_seconds,
            )
        except Exception as e:
            logger.warning(f"⚠️ Phrasing fell back to template ({kind}): {e!r}")
            return template
        text = sanitize_output(_response_text(response))
        return text or template
