"""Configuration management for the assistant backend."""
from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class Config:
    """Application configuration loaded from environment variables."""

    environment: str = "development"
    log_level: str = "INFO"
    log_file: Optional[str] = None
    agents_package: str = "personal_ai.agents.catalog"
    host: str = "127.0.0.1"
    port: int = 3001
    sse_keepalive_seconds: float = 15.0

    @property
    def base_url(self) -> str:
        """Single URL under which the orchestrator and tool bridge are reachable."""
        return f"http://{self.host}:{self.port}"

    @classmethod
    def from_env(cls) -> Config:
        """Load configuration from environment variables."""
        return cls(
            environment=os.getenv("ENVIRONMENT", "development"),
            log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
            log_file=os.getenv("LOG_FILE") or None,
            agents_package=os.getenv("AGENTS_PACKAGE", "personal_ai.agents.catalog"),
            host=os.getenv("HOST", "127.0.0.1"),
            port=int(os.getenv("PORT", "3001")),
            sse_keepalive_seconds=float(os.getenv("SSE_KEEPALIVE_SECONDS", "15")),
        )


# Global config instance
config = Config.from_env()
