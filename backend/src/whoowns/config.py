"""Configuration management for whoowns.

Uses pydantic-settings to load configuration from environment variables.
"""

from functools import lru_cache
from pathlib import Path
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


def _find_env_file() -> Path | None:
    """Search for .env file in common locations."""
    # Check current working directory and its parents (up to 5 levels)
    check_dir = Path.cwd()
    for _ in range(5):
        if (check_dir / ".env").exists():
            return check_dir / ".env"
        parent = check_dir.parent
        if parent == check_dir:
            break
        check_dir = parent

    # backend/src/whoowns/config.py -> project root
    project_root = Path(__file__).resolve().parent.parent.parent.parent
    if (project_root / ".env").exists():
        return project_root / ".env"

    return None


_env_file = _find_env_file()


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="WHOOWNS_",
        env_file=str(_env_file) if _env_file else ".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # =========================
    # GitHub
    # =========================
    github_api_url: str = "https://api.github.com"
    github_token: str = Field(default="", repr=False)
    user_agent: str = "whoowns/0.1"

    # =========================
    # Resolution
    # =========================
    max_concurrency: int = Field(
        default=16,
        ge=1,
        description="Maximum directory lookups in flight per resolution run",
    )
    resolve_timeout_seconds: float = Field(
        default=30.0,
        gt=0,
        description="Deadline for a single resolution run",
    )

    # =========================
    # Logging
    # =========================
    log_level: str = "INFO"
    log_format: Literal["json", "text"] = "text"

    @property
    def has_github_token(self) -> bool:
        """Check if an API token is configured."""
        return bool(self.github_token)


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
