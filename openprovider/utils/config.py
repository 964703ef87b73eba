"""
Configuration management using Pydantic Settings
Loads and validates OPENPROVIDER_* environment variables and an optional .env file
"""

from typing import Optional
from pydantic import Field, SecretStr, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


DEFAULT_BASE_URL = "https://api.openprovider.eu"


class Settings(BaseSettings):
    """
    Client settings loaded from environment variables.
    Every field can be overridden with OPENPROVIDER_<FIELD>.
    """

    model_config = SettingsConfigDict(
        env_prefix="OPENPROVIDER_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )

    # API Configuration
    base_url: str = Field(
        default=DEFAULT_BASE_URL,
        description="OpenProvider API base URL, without the /v1beta suffix"
    )
    timeout: float = Field(
        default=30.0,
        gt=0,
        description="Per-request timeout in seconds"
    )

    # Authentication
    username: str = Field(
        default="",
        description="OpenProvider username, used by get_client and auto re-login"
    )
    password: SecretStr = Field(
        default=SecretStr(""),
        description="OpenProvider password"
    )
    token: Optional[str] = Field(
        default=None,
        description="Bearer token installed on clients built from these settings"
    )
    auto_relogin: bool = Field(
        default=False,
        description="Log in again and retry once when the token is rejected"
    )

    # Logging Configuration
    log_level: str = Field(
        default="INFO",
        description="Logging level: DEBUG, INFO, WARNING, ERROR, CRITICAL"
    )
    log_file: Optional[str] = Field(
        default=None,
        description="Optional log file path"
    )

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate log level is valid"""
        valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        v_upper = v.upper()
        if v_upper not in valid_levels:
            raise ValueError(f"log_level must be one of {valid_levels}")
        return v_upper

    @field_validator("base_url")
    @classmethod
    def strip_base_url(cls, v: str) -> str:
        v = v.strip().rstrip("/")
        if not v.startswith(("http://", "https://")):
            raise ValueError("base_url must start with http:// or https://")
        return v

    @property
    def api_url(self) -> str:
        """Returns the versioned API root every endpoint hangs off"""
        return f"{self.base_url}/v1beta"

    def has_credentials(self) -> bool:
        """Check if both username and password are configured"""
        return bool(self.username and self.password.get_secret_value())


# Singleton instance
_settings: Optional[Settings] = None


def get_settings() -> Settings:
    """
    Get or create the settings singleton instance.
    Reads the environment (and .env, when present) on first call.

    Returns:
        Settings instance

    Raises:
        pydantic.ValidationError: If environment variables are invalid
    """
    global _settings

    if _settings is None:
        _settings = Settings()

    return _settings


def reset_settings():
    """
    Reset the settings singleton (useful for testing)
    """
    global _settings
    _settings = None
