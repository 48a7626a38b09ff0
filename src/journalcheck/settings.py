"""Shared settings loaded from environment / .env file."""

from __future__ import annotations

from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Configuration for the journalcheck REST API and MCP servers.

    Values are read from environment variables and from a ``.env`` file
    in the working directory.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Shared
    log_level: str = "INFO"
    registry_path: Path | None = None  # YAML file or registry directory; built-in if unset

    # REST API
    api_server_host: str = "localhost"
    api_server_port: int = 8000
    port: int | None = None  # platform-injected PORT; takes precedence over api_server_port

    @property
    def effective_port(self) -> int:
        return self.port if self.port is not None else self.api_server_port

    # Sessions
    session_ttl_seconds: int = 1800  # 30 min inactivity
    session_cleanup_interval: int = 60  # seconds between cleanup sweeps
    disable_session_list: bool = False  # hide GET /sessions

    # MCP
    mcp_transport: str = "stdio"  # stdio | http | sse
    mcp_server_host: str = "localhost"
    mcp_server_port: int = 9000
