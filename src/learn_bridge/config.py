"""Application configuration."""

import os

from pydantic_settings import BaseSettings, SettingsConfigDict

_ENVIRONMENT = os.getenv("ENVIRONMENT", "local")


class Settings(BaseSettings):
    """Bridge settings loaded from environment variables."""

    vendor_id: str = "BbAdmin"
    program_id: str = "myWSClient"
    tool_description: str = "This is my web services tool."
    session_lifetime_seconds: int = 60000
    # Emulating a privileged user exposes disabled and hidden records.
    emulate_user: str | None = "administrator"
    services_path: str = "/webapps/ws/services"
    request_timeout_seconds: float = 30.0
    verify_tls: bool = True
    environment: str = _ENVIRONMENT

    model_config = SettingsConfigDict(
        env_prefix="LEARN_BRIDGE_",
        env_file=(f".env.{_ENVIRONMENT}", ".env"),
        extra="ignore",
    )


def normalize_host(raw: str) -> str:
    """Return a base URL for a host given with or without a scheme."""
    cleaned = raw.strip().rstrip("/")
    if not cleaned:
        raise ValueError("Host must not be empty")
    if cleaned.startswith(("http://", "https://")):
        return cleaned
    return f"https://{cleaned}"
