"""Centralised settings for the Context Pack scanner.

All runtime configuration is resolved here in one place.  Values can be
overridden via environment variables or a `.env` file in the project root
(loaded automatically when this module is imported).
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path

from dotenv import load_dotenv

# Load .env from the project root (two levels up from this file)
_env_path = Path(__file__).resolve().parent.parent / ".env"
load_dotenv(_env_path, override=False)


@dataclass
class Settings:
    # ------------------------------------------------------------------
    # Workspace / storage
    # ------------------------------------------------------------------
    workspace_dir: Path = field(
        default_factory=lambda: Path(
            os.environ.get("CONTEXTPACK_WORKSPACE", Path.home() / ".contextpack_data")
        )
    )

    @property
    def db_path(self) -> Path:
        """Absolute path to the SQLite database file."""
        return self.workspace_dir / "packs.db"

    @property
    def schema_path(self) -> Path:
        """Absolute path to the schema SQL file bundled with the package."""
        return Path(__file__).resolve().parent / "db" / "schema.sql"

    # ------------------------------------------------------------------
    # Chat / extraction model
    # ------------------------------------------------------------------
    llm_provider: str = field(
        default_factory=lambda: os.environ.get("LLM_PROVIDER", "openai")
    )
    openai_chat_model: str = field(
        default_factory=lambda: os.environ.get("OPENAI_CHAT_MODEL", "gpt-4o-mini")
    )
    ollama_chat_model: str = field(
        default_factory=lambda: os.environ.get("OLLAMA_CHAT_MODEL", "ministral-3:8b")
    )
    ollama_base_url: str = field(
        default_factory=lambda: os.environ.get("OLLAMA_BASE_URL", "http://localhost:11434")
    )
    llm_temperature: float = field(
        default_factory=lambda: float(os.environ.get("LLM_TEMPERATURE", "0.1"))
    )
    llm_max_retries: int = field(
        default_factory=lambda: int(os.environ.get("LLM_MAX_RETRIES", "2"))
    )

    @property
    def openai_api_key(self) -> str:
        """The OpenAI credential, read on every access so it can be rotated."""
        return os.environ.get("OPENAI_API_KEY", "").strip()

    # ------------------------------------------------------------------
    # Scraper
    # ------------------------------------------------------------------
    request_timeout: float = field(
        default_factory=lambda: float(os.environ.get("REQUEST_TIMEOUT", "10.0"))
    )
    scan_max_pages: int = field(
        default_factory=lambda: int(os.environ.get("SCAN_MAX_PAGES", "10"))
    )
    scan_max_concurrent_fetches: int = field(
        default_factory=lambda: int(os.environ.get("SCAN_MAX_CONCURRENT_FETCHES", "5"))
    )
    page_char_limit: int = field(
        default_factory=lambda: int(os.environ.get("PAGE_CHAR_LIMIT", "2000"))
    )
    user_agent: str = field(
        default_factory=lambda: os.environ.get(
            "SCRAPER_USER_AGENT",
            "Mozilla/5.0 (compatible; ContextPackBot/1.0)",
        )
    )

    # ------------------------------------------------------------------
    # Extraction
    # ------------------------------------------------------------------
    extraction_concurrency: int = field(
        default_factory=lambda: int(os.environ.get("EXTRACTION_CONCURRENCY", "4"))
    )
    extraction_pages_per_field: int = field(
        default_factory=lambda: int(os.environ.get("EXTRACTION_PAGES_PER_FIELD", "4"))
    )

    # ------------------------------------------------------------------
    # Logging
    # ------------------------------------------------------------------
    log_level: str = field(
        default_factory=lambda: os.environ.get("LOG_LEVEL", "INFO")
    )

    def ensure_workspace(self) -> None:
        """Create the workspace directory if it does not exist."""
        self.workspace_dir.mkdir(parents=True, exist_ok=True)


# Module-level singleton - import this everywhere:
#   from contextpack.config import settings
settings = Settings()
