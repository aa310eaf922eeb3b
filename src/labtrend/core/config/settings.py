"""Application settings loaded from environment variables."""

from __future__ import annotations

from typing import Literal

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """LabTrend server configuration."""

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8"}

    # Server
    # Loopback by default; the server has no auth layer.
    labtrend_host: str = "127.0.0.1"
    labtrend_port: int = 8001
    labtrend_log_level: str = "info"
    # Binding to a non-loopback host is refused unless this is set true.
    labtrend_allow_insecure_bind: bool = False

    # Collaborator LLM (extraction, normalization, advice)
    llm_provider: Literal["anthropic", "openai", "mock"] = "anthropic"
    anthropic_api_key: str = ""
    anthropic_model: str = "claude-sonnet-4-5-20250929"
    openai_api_key: str = ""
    openai_model: str = "gpt-4o"
    llm_max_tokens: int = 4096

    # Storage (metric snapshot)
    db_path: str = "~/.labtrend/metrics.db"
    snapshot_key: str = "health_metrics"

    # Encryption of the persisted snapshot; empty stores plaintext JSON
    encryption_key: str = ""


def get_settings() -> Settings:
    """Create and return a Settings instance."""
    return Settings()
