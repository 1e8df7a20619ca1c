"""
Configuration Settings.
"""

from pydantic_settings import BaseSettings, SettingsConfigDict


class ClientSettings(BaseSettings):
    """Client settings."""

    # App info
    app_name: str = "Chat Session Client"
    app_version: str = "1.0.0"

    # API
    api_base_url: str = "http://localhost:8000"
    api_prefix: str = "/api/v1"
    request_timeout: float = 30.0
    stream_timeout: float = 300.0  # read timeout between stream chunks

    # Local persistence
    storage_path: str = "./data"
    state_file: str = "client_state.json"

    # Sessions
    untitled_session_name: str = "Untitled Chat"

    # Logging configuration
    log_level: str = "INFO"  # DEBUG, INFO, WARNING, ERROR, CRITICAL
    log_file_path: str = "./logs/chat_client.log"
    log_file_enabled: bool = False
    log_console_enabled: bool = True
    log_json_format: bool = True  # JSON format for files, human-readable for console
    log_api_requests: bool = True  # Log every outbound request with its credential source

    model_config = SettingsConfigDict(
        env_prefix="CHAT_CLIENT_",
        env_file=".env",
        case_sensitive=False,
    )

    @property
    def api_url(self) -> str:
        """Base URL every endpoint path is resolved against."""
        return self.api_base_url.rstrip("/") + "/" + self.api_prefix.strip("/")


settings = ClientSettings()
