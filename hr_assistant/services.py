"""Service construction used across routers.

Everything the routers need is built once by build_services() and hung off
app.state, which keeps construction away from `main.py` and lets tests build
isolated containers side by side.
"""
import logging
from dataclasses import dataclass
from typing import Optional

from sqlalchemy.orm import sessionmaker

from database.connection import init_database
from database.seed import seed_database
from hr_assistant.application.command_engine import CommandEngine
from hr_assistant.application.phrasing import MessageComposer
from hr_assistant.application.session_manager import SessionManager
from hr_assistant.config import Settings, get_settings
from hr_assistant.domain.intent_classifier import RegexSlotExtractor, SlotExtractor
from hr_assistant.infrastructure.audit_log import AuditLog
from hr_assistant.infrastructure.llm import DEFAULT_MODEL, AnthropicPhraser, AnthropicSlotExtractor
from hr_assistant.infrastructure.repositories import HRDataStore, SqlAlchemyHRDataStore

logger = logging.getLogger(__name__)


@dataclass
class ServiceContainer:
    settings: Settings
    session_factory: sessionmaker
    store: HRDataStore
    audit_log: AuditLog
    extractor: SlotExtractor
    engine: CommandEngine
    sessions: SessionManager


def build_extractor(settings: Settings) -> SlotExtractor:
    if settings.anthropic_api_key:
        logger.info("🤖 Using Claude slot extractor")
        return AnthropicSlotExtractor(
            api_key=settings.anthropic_api_key,
            model=settings.llm_model or DEFAULT_MODEL,
            timeout_seconds=settings.slot_extractor_timeout_seconds,
        )
    logger.warning("⚠️  No Anthropic API key configured, using pattern-based slot extractor")
    return RegexSlotExtractor()


def build_composer(settings: Settings) -> MessageComposer:
    if settings.llm_phrasing_enabled and settings.anthropic_api_key:
        return MessageComposer(AnthropicPhraser(
            api_key=settings.anthropic_api_key,
            model=settings.llm_model or DEFAULT_MODEL,
            timeout_seconds=settings.slot_extractor_timeout_seconds,
        ))
    return MessageComposer()


def build_services(settings: Optional[Settings] = None,
                   extractor: Optional[SlotExtractor] = None) -> ServiceContainer:
    """Create a freshly seeded store and every service that sits on top of it."""
    settings = settings or get_settings()
    _, session_factory = init_database(settings.database_url)
    with session_factory() as db:
        seed_database(db, settings.seed_data_dir)

    store = SqlAlchemyHRDataStore(session_factory)
    audit_log = AuditLog(session_factory)
    extractor = extractor or build_extractor(settings)
    engine = CommandEngine(store, audit_log)
    sessions = SessionManager(
        extractor,
        engine,
        composer=build_composer(settings),
        confidence_threshold=settings.confidence_threshold,
        history_window=settings.history_window,
        default_user_id=settings.default_user_id,
        pending_policy=settings.pending_command_policy,
    )
    logger.info("🚀 HR assistant services ready")
    return ServiceContainer(
        settings=settings,
        session_factory=session_factory,
        store=store,
        audit_log=audit_log,
        extractor=extractor,
        engine=engine,
        sessions=sessions,
    )
