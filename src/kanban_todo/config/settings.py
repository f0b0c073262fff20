"""Application settings loaded from environment variables and `.env`."""

from functools import lru_cache
from pathlib import Path
from typing import Literal

from pydantic import BaseModel, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class MicrosoftSettings(BaseSettings):
    """Microsoft identity platform + Graph configuration.

    Hey future me - only client_id and client_secret come from the environment
    (MS_CLIENT_ID / MS_CLIENT_SECRET). The endpoints are fixed for personal
    Microsoft accounts ("consumers" tenant). The redirect URI must match the
    one registered on the Entra app EXACTLY, including the port.
    """

    model_config = SettingsConfigDict(
        env_prefix="MS_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    client_id: str = Field(default="", description="Entra application (client) ID")
    client_secret: str = Field(default="", description="Entra client secret")
    redirect_uri: str = "https://localhost:8443/auth/callback"
    authorize_url: str = (
        "https://login.microsoftonline.com/consumers/oauth2/v2.0/authorize"
    )
    token_url: str = "https://login.microsoftonline.com/consumers/oauth2/v2.0/token"  # nosec B105
    scope: str = "offline_access User.Read Tasks.ReadWrite"
    graph_lists_url: str = "https://graph.microsoft.com/v1.0/me/todo/lists"

    @property
    def is_configured(self) -> bool:
        """True when both client credentials are present."""
        return bool(self.client_id.strip() and self.client_secret.strip())


class ApiSettings(BaseSettings):
    """HTTP server settings."""

    model_config = SettingsConfigDict(
        env_prefix="API_", env_file=".env", case_sensitive=False, extra="ignore"
    )

    host: str = "0.0.0.0"  # nosec B104
    port: int = 8443
    cert_file: Path = Path("certs/server.crt")
    key_file: Path = Path("certs/server.key")
    # Cookie lifetime AND eviction horizon for sessions whose token went stale.
    session_max_age: int = Field(default=86400, gt=0)
    session_cleanup_interval_seconds: int = Field(default=900, gt=0)


class HttpSettings(BaseSettings):
    """Outbound HTTP client settings (identity provider + Graph)."""

    model_config = SettingsConfigDict(
        env_prefix="HTTP_", env_file=".env", case_sensitive=False, extra="ignore"
    )

    timeout_seconds: float = Field(default=15.0, gt=0)
    max_connections: int = Field(default=50, gt=0)
    max_keepalive: int = Field(default=20, gt=0)


class ObservabilitySettings(BaseSettings):
    """Logging settings."""

    model_config = SettingsConfigDict(
        env_prefix="OBSERVABILITY_",
        env_file=".env",
        case_sensitive=False,
        extra="ignore",
    )

    log_json_format: bool = False


class Settings(BaseSettings):
    """Top-level settings object.

    Nested groups are built from their own env prefixes, so `MS_CLIENT_ID`
    lands in `settings.microsoft.client_id` and `API_PORT` in
    `settings.api.port`.
    """

    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", case_sensitive=False, extra="ignore"
    )

    app_name: str = "kanban-todo"
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "INFO"

    microsoft: MicrosoftSettings = Field(default_factory=MicrosoftSettings)
    api: ApiSettings = Field(default_factory=ApiSettings)
    http: HttpSettings = Field(default_factory=HttpSettings)
    observability: ObservabilitySettings = Field(default_factory=ObservabilitySettings)

    @field_validator("log_level", mode="before")
    @classmethod
    def _upper_log_level(cls, value: object) -> object:
        if isinstance(value, str):
            return value.upper()
        return value

    def require_microsoft_credentials(self) -> None:
        """Fail fast when the OAuth client credentials are missing.

        Raises:
            ConfigurationError: If MS_CLIENT_ID or MS_CLIENT_SECRET is blank
        """
        from kanban_todo.domain.exceptions import ConfigurationError

        if not self.microsoft.is_configured:
            raise ConfigurationError(
                "Please set MS_CLIENT_ID and MS_CLIENT_SECRET environment variables"
            )


class TlsFiles(BaseModel):
    """Resolved certificate/key pair for the HTTPS listener."""

    cert_file: Path
    key_file: Path

    def missing(self) -> list[Path]:
        """Return the paths that do not exist on disk."""
        return [p for p in (self.cert_file, self.key_file) if not p.is_file()]


# Hey future me - cached so every Depends(get_settings) shares one instance.
# Tests that tweak env vars must call get_settings.cache_clear().
@lru_cache
def get_settings() -> Settings:
    """Return the process-wide settings instance."""
    return Settings()
