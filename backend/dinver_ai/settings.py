from __future__ import annotations

import os
from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict

REPO_ROOT = Path(__file__).resolve().parents[2]
ENV_FILE = REPO_ROOT / ".env"


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=str(ENV_FILE), env_file_encoding="utf-8", extra="ignore"
    )

    # human-readable console logs instead of JSON
    DEBUG: bool = False

    # persistence directory (defaults to ~/.dinver-ai-data)
    DATA_DIR: Path | None = None
    DATABASE_URL: str | None = None
    # create missing tables on startup (local SQLite development)
    DB_CREATE_TABLES: bool = False

    # LLM access (OpenAI-compatible chat completions)
    OPENAI_API_KEY: str | None = None
    OPENAI_API_BASE: str = "https://api.openai.com/v1"
    OPENAI_TIMEOUT_SECONDS: float = 15.0
    OPENAI_CONNECT_TIMEOUT_SECONDS: float = 5.0

    # Intent routing
    AI_ROUTER_MODEL: str = "gpt-4o-mini"
    AI_ROUTER_TIMEOUT_SECONDS: float = 6.0

    # Reply generation
    AI_REPLY_MODEL: str = "gpt-4o-mini"
    AI_REPLY_TEMPERATURE: float = 0.3
    AI_REPLY_MAX_TOKENS: int = 450
    AI_REPLY_TIMEOUT_SECONDS: float = 12.0

    # In-process caches
    AI_CONTEXT_TTL_SECONDS: int = 1200
    AI_CONTEXT_MAX_THREADS: int = 5000
    AI_PERK_CACHE_TTL_SECONDS: int = 600
    AI_TYPE_CACHE_TTL_SECONDS: int = 300

    AI_DEFAULT_RADIUS_KM: float = 10.0

    # Strip phone/email from grounding payloads; the reply points to the profile page instead
    AI_REDACT_CONTACT_FIELDS: bool = True
    AI_PROFILE_URL_TEMPLATE: str = "/restaurants/{slug}"

    # Observability
    SENTRY_DSN: str | None = None
    SENTRY_ENVIRONMENT: str = "development"
    SENTRY_RELEASE: str | None = None
    SENTRY_TRACES_SAMPLE_RATE: float = 0.2

    @property
    def data_dir(self) -> Path:
        # Blank DATA_DIR values count as unset.
        raw_env = os.getenv("DATA_DIR")
        if raw_env is not None and raw_env.strip():
            path = Path(raw_env.strip()).expanduser().resolve()
        elif self.DATA_DIR is not None and str(self.DATA_DIR).strip() not in {"", ".", "./"}:
            path = Path(self.DATA_DIR).expanduser().resolve()
        else:
            path = Path.home() / ".dinver-ai-data"
        path.mkdir(parents=True, exist_ok=True)
        return path

    @property
    def database_url(self) -> str:
        if self.DATABASE_URL:
            return self.DATABASE_URL
        default_path = self.data_dir / "dinver.db"
        return f"sqlite:///{default_path}"

    @property
    def async_database_url(self) -> str:
        url = self.database_url
        if url.startswith("sqlite:///"):
            return url.replace("sqlite:///", "sqlite+aiosqlite:///", 1)
        if url.startswith("postgresql://"):
            return url.replace("postgresql://", "postgresql+asyncpg://", 1)
        return url

    def profile_url(self, slug: str | None) -> str | None:
        if not slug:
            return None
        return self.AI_PROFILE_URL_TEMPLATE.format(slug=slug)


settings = Settings()
