"""Application settings loaded from environment variables."""

from __future__ import annotations

from typing import Literal

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """VitalDash server configuration."""

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8"}

    # Server
    # Loopback by default: the dashboard holds personal health data.
    vitaldash_host: str = "127.0.0.1"
    vitaldash_port: int = 8001
    vitaldash_log_level: str = "info"
    vitaldash_allow_insecure_bind: bool = False

    # AI gateway (OpenAI-compatible chat completions)
    llm_provider: Literal["openai", "anthropic", "mock"] = "openai"
    openai_api_key: str = ""
    openai_model: str = "gpt-4o"
    openai_base_url: str = ""
    anthropic_api_key: str = ""
    anthropic_model: str = "claude-sonnet-4-5-20250929"

    # Backend (rows, objects, sessions)
    db_path: str = "~/.vitaldash/dashboard.db"
    storage_root: str = "~/.vitaldash/storage"
    storage_bucket: str = "medical-reports"
    encryption_key: str = ""
    session_ttl_seconds: int = 3600

    # Serverless functions; empty means the server's own routes, in-process
    functions_url: str = ""

    # Limits
    max_upload_bytes: int = 20 * 1024 * 1024
    max_report_chars: int = 50_000
    telemetry_window: int = 50


def get_settings() -> Settings:
    """Create and return a Settings instance."""
    return Settings()
