"""
Pytest configuration and shared fixtures for HR Command Assistant tests.

Every test gets its own in-memory database seeded from database/seed_data,
so mutations never leak between tests.
"""
from typing import Dict, List, Optional

import pytest
from fastapi.testclient import TestClient

from database.connection import init_database
from database.seed import seed_database
from hr_assistant.application.command_engine import CommandEngine
from hr_assistant.application.session_manager import SessionManager
from hr_assistant.config import Settings
from hr_assistant.domain.commands import CommandIntent
from hr_assistant.domain.intent_classifier import SlotExtraction, SlotExtractor
from hr_assistant.infrastructure.audit_log import AuditLog
from hr_assistant.infrastructure.repositories import SqlAlchemyHRDataStore
from hr_assistant.services import build_services
from main import create_app

_ENV_VARS = (
    "ANTHROPIC_API_KEY", "CLAUDE_API_KEY", "LLM_MODEL", "LLM_PHRASING_ENABLED",
    "DATABASE_URL", "SEED_DATA_DIR", "CONFIDENCE_THRESHOLD", "HISTORY_WINDOW",
    "PENDING_COMMAND_POLICY", "DEFAULT_USER_ID", "SLOT_EXTRACTOR_TIMEOUT_SECONDS",
)


def make_extraction(intent: CommandIntent, confidence: float = 0.95, **slots) -> SlotExtraction:
    """Build the extraction an NLU service would return for a recognized command."""
    return SlotExtraction(
        intent=intent,
        slots=slots,
        confidence=confidence,
        needs_confirmation=intent.is_mutating,
    )


class StubSlotExtractor(SlotExtractor):
    """Scripted extractor: returns queued extractions in order, then UNKNOWN."""

    def __init__(self):
        self.queue: List[SlotExtraction] = []
        self.calls: List[Dict] = []

    def will_return(self, *extractions: SlotExtraction) -> "StubSlotExtractor":
        self.queue.extend(extractions)
        return self

    async def extract(self, message: str, history: Optional[List[Dict[str, str]]] = None) -> SlotExtraction:
        self.calls.append({"message": message, "history": list(history or [])})
        if self.queue:
            return self.queue.pop(0)
        return SlotExtraction.unknown()


@pytest.fixture
def session_factory():
    """Fresh seeded in-memory database."""
    _, factory = init_database()
    with factory() as db:
        seed_database(db)
    return factory


@pytest.fixture
def store(session_factory):
    return SqlAlchemyHRDataStore(session_factory)


@pytest.fixture
def audit_log(session_factory):
    return AuditLog(session_factory)


@pytest.fixture
def engine(store, audit_log):
    return CommandEngine(store, audit_log)


@pytest.fixture
def stub_extractor():
    return StubSlotExtractor()


@pytest.fixture
def session_manager(stub_extractor, engine):
    return SessionManager(stub_extractor, engine)


@pytest.fixture
def test_settings(monkeypatch):
    """Settings with defaults only, whatever the developer's shell exports."""
    for name in _ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    return Settings()


@pytest.fixture
def services(test_settings, stub_extractor):
    return build_services(test_settings, extractor=stub_extractor)


@pytest.fixture
def test_client(services):
    """Create a test client around an isolated service container."""
    with TestClient(create_app(services)) as client:
        yield client
