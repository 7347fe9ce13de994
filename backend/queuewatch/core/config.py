"""Application settings and environment configuration loading."""

from __future__ import annotations

from pathlib import Path
from typing import Self

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

PACKAGE_ROOT = Path(__file__).resolve().parents[1]
DEFAULT_ENV_FILE = PACKAGE_ROOT.parent / ".env"
DEFAULT_DB_FILENAME = ".agent-queue.db"
DEFAULT_WORKER_TYPES = (
    "requirements-research",
    "planning",
    "execution",
    "pre-commit-check",
    "commit-build",
    "deploy",
    "e2e-test",
)


class Settings(BaseSettings):
    """Typed runtime configuration sourced from environment variables."""

    model_config = SettingsConfigDict(
        env_file=[DEFAULT_ENV_FILE, ".env"],
        env_file_encoding="utf-8",
        extra="ignore",
    )

    environment: str = "dev"

    # The directory holding the queue store, agent scripts and served markdown.
    project_root: Path = Field(default_factory=Path.cwd)
    # Empty means `sqlite+aiosqlite:///<project_root>/.agent-queue.db`.
    database_url: str = ""

    cors_origins: str = ""
    host: str = "127.0.0.1"
    port: int = Field(default=3000, ge=1, le=65535)
    port_search_attempts: int = Field(default=10, ge=1)

    # Status aggregation windows
    heartbeat_stale_minutes: int = Field(default=30, ge=1)
    live_window_minutes: int = Field(default=60, ge=1)
    announcement_limit: int = Field(default=5, ge=1)
    worker_types: list[str] = Field(default_factory=lambda: list(DEFAULT_WORKER_TYPES))

    # Agent process control
    agent_scripts_dir: Path | None = None

    # Text annotation
    pr_base_url: str = "https://github.com/logyard/logyard2/pull"

    # Live reload
    reload_enabled: bool | None = None
    watch_dirs: list[Path] = Field(default_factory=lambda: [PACKAGE_ROOT])

    # Logging
    log_level: str = "INFO"
    log_format: str = "text"
    log_use_utc: bool = False
    request_log_slow_ms: int = Field(default=1000, ge=0)
    request_log_include_health: bool = False

    @model_validator(mode="after")
    def _defaults(self) -> Self:
        self.project_root = self.project_root.expanduser().resolve()
        if not self.database_url.strip():
            self.database_url = f"sqlite+aiosqlite:///{self.project_root / DEFAULT_DB_FILENAME}"
        if self.agent_scripts_dir is None:
            self.agent_scripts_dir = self.project_root / "scripts"
        # Live reload is a development aid; default it on only in dev.
        if self.reload_enabled is None:
            self.reload_enabled = self.environment == "dev"
        self.pr_base_url = self.pr_base_url.rstrip("/")
        return self


settings = Settings()
