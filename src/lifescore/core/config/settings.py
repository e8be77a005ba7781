"""Application settings loaded from environment variables."""

from __future__ import annotations

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Life scorecard server configuration."""

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8"}

    # Server
    # Loopback by default; there is no auth layer in front of the tools.
    scorecard_host: str = "127.0.0.1"
    scorecard_port: int = 8010
    scorecard_log_level: str = "info"
    scorecard_allow_insecure_bind: bool = False

    # Scoring configuration
    # Empty means the rule sets bundled under domains/assessment/rules/.
    rules_dir: str = ""
    default_ruleset: str = "default"


def get_settings() -> Settings:
    """Create and return a Settings instance."""
    return Settings()
