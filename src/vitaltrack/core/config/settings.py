"""Application settings loaded from environment variables."""

from __future__ import annotations

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """VitalTrack server configuration."""

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8"}

    # Server
    # Default to loopback: the tool surface has no transport-level auth and
    # stores credentials in plaintext.
    vitaltrack_host: str = "127.0.0.1"
    vitaltrack_port: int = 8001
    vitaltrack_log_level: str = "info"
    vitaltrack_allow_insecure_bind: bool = False

    # Storage (single local key-value database)
    db_path: str = "~/.vitaltrack/health.db"

    # Audit trail
    audit_enabled: bool = True


def get_settings() -> Settings:
    """Create and return a Settings instance."""
    return Settings()
