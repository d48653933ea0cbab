# workers/sync_agent/config.py
"""
Configuration for the favorites sync agent.
"""
from __future__ import annotations

import os
from dataclasses import dataclass

from dotenv import find_dotenv, load_dotenv

# must run before the dataclass defaults read os.environ
load_dotenv(find_dotenv(usecwd=True))


@dataclass
class AgentConfig:
    """Configuration for the favorites sync agent."""

    # Agent identification
    agent_id: str = os.getenv("AGENT_ID", f"sync-agent-{os.getpid()}")

    # Remote favorites API
    api_base_url: str = os.getenv("FAVORITES_API_BASE_URL", "")
    api_token: str = os.getenv("FAVORITES_API_TOKEN", "")
    http_timeout_seconds: float = float(os.getenv("FAVORITES_HTTP_TIMEOUT", "15"))

    # Local cache
    db_path: str = os.getenv("FAVORITES_DB_PATH", "fridge_cache.db")

    # Scheduling
    sync_interval_seconds: int = int(os.getenv("SYNC_INTERVAL_SECONDS", "60"))
    base_retry_delay_seconds: float = float(os.getenv("SYNC_BASE_RETRY_DELAY_SECONDS", "5"))
    max_retry_delay_seconds: float = float(os.getenv("SYNC_MAX_RETRY_DELAY_SECONDS", "300"))

    def validate(self, require_remote: bool = True) -> list[str]:
        """Validate configuration and return list of errors."""
        errors = []

        if require_remote and not self.api_base_url:
            errors.append("FAVORITES_API_BASE_URL is required")
        if require_remote and not self.api_token:
            errors.append("FAVORITES_API_TOKEN is required")
        if not self.db_path:
            errors.append("FAVORITES_DB_PATH is required")
        if self.sync_interval_seconds <= 0:
            errors.append("SYNC_INTERVAL_SECONDS must be positive")

        return errors


def get_config() -> AgentConfig:
    """Get agent configuration from environment."""
    return AgentConfig()
