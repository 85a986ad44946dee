"""Configuration module centralizing environment access.

A Settings object is read once from the environment and cached; pass
refresh=True after changing environment variables (tests do this).
"""
import os
from typing import Optional

from database.seed import SEED_DATA_DIR


def _flag(name: str, default: str = "false") -> bool:
    return os.getenv(name, default).strip().lower() in ("1", "true", "yes", "on")


class Settings:
    def __init__(self) -> None:
        # Core
        self.environment: str = os.getenv("ENVIRONMENT", "development")
        self.port: int = int(os.getenv("PORT", "8000"))
        self.log_level: str = os.getenv("LOG_LEVEL", "INFO").upper()

        # Database (in-memory unless told otherwise; nothing is written back to seed files)
        self.database_url: str = os.getenv("DATABASE_URL") or "sqlite://"
        self.seed_data_dir: str = os.getenv("SEED_DATA_DIR") or str(SEED_DATA_DIR)

        # LLM / Anthropic
        self.anthropic_api_key: Optional[str] = os.getenv("ANTHROPIC_API_KEY") or os.getenv("CLAUDE_API_KEY")
        self.llm_enabled: bool = bool(self.anthropic_api_key)
        self.llm_model: Optional[str] = os.getenv("LLM_MODEL") or None
        self.slot_extractor_timeout_seconds: float = float(os.getenv("SLOT_EXTRACTOR_TIMEOUT_SECONDS", "10"))
        self.history_window: int = int(os.getenv("HISTORY_WINDOW", "4"))
        self.llm_phrasing_enabled: bool = _flag("LLM_PHRASING_ENABLED")

        # Conversation behaviour
        self.confidence_threshold: float = float(os.getenv("CONFIDENCE_THRESHOLD", "0.7"))
        self.default_user_id: str = os.getenv("DEFAULT_USER_ID", "demo_user")
        self.pending_command_policy: str = os.getenv("PENDING_COMMAND_POLICY", "replace").strip().lower()


_SETTINGS_CACHE: Optional[Settings] = None


def get_settings(refresh: bool = False) -> Settings:
    """Return a (possibly cached) Settings instance."""
    global _SETTINGS_CACHE
    if refresh or _SETTINGS_CACHE is None:
        _SETTINGS_CACHE = Settings()
    return _SETTINGS_CACHE
