"""
OpenProvider Client Factory
Creates client instances from settings or a fluent builder
"""

from typing import Optional, Union

from openprovider.api.async_client import AsyncOpenProviderClient
from openprovider.api.client import OpenProviderClient
from openprovider.api.exceptions import ValidationError
from openprovider.utils.config import Settings, get_settings
from openprovider.utils.logger import configure_from_settings, get_logger

logger = get_logger(__name__)


def get_client(
    config: Optional[Settings] = None,
    asynchronous: bool = False
) -> Union[OpenProviderClient, AsyncOpenProviderClient]:
    """
    Factory function to create an OpenProvider client.

    The token from OPENPROVIDER_TOKEN is installed when set, and auto re-login
    is enabled when OPENPROVIDER_AUTO_RELOGIN is true and credentials are set.
    No request is made.

    Args:
        config: Optional Settings instance. Uses default if None.
        asynchronous: Return an AsyncOpenProviderClient instead

    Example:
        client = get_client()
        client.set_token(client.login("bob", "123456789"))
    """
    if config is None:
        config = get_settings()

    configure_from_settings(config)

    logger.info(f"Creating {'async ' if asynchronous else ''}OpenProvider client for {config.base_url}")

    if asynchronous:
        return AsyncOpenProviderClient(config)
    return OpenProviderClient(config)


class ClientBuilder:
    """
    Constructs an API client step by step.

        client = (
            ClientBuilder()
            .token(os.environ.get("OPENPROVIDER_TOKEN"))
            .build()
        )
    """

    def __init__(self, config: Optional[Settings] = None):
        # Token and credentials are never read from the environment here; use get_client() for that
        if config is not None:
            self._options = config.model_dump()
        else:
            self._options = {"token": None, "username": "", "password": "", "auto_relogin": False}

    def base_url(self, url: str) -> "ClientBuilder":
        self._options["base_url"] = url
        return self

    def timeout(self, seconds: float) -> "ClientBuilder":
        self._options["timeout"] = seconds
        return self

    def token(self, token: Optional[str]) -> "ClientBuilder":
        """Make sure the client to be built uses this token."""
        self._options["token"] = token
        return self

    def credentials(self, username: str, password: str) -> "ClientBuilder":
        """Credentials kept in memory for auto re-login."""
        self._options["username"] = username
        self._options["password"] = password
        return self

    def auto_relogin(self, enabled: bool = True) -> "ClientBuilder":
        """Log in again and retry once when a token is rejected. Requires credentials()."""
        self._options["auto_relogin"] = enabled
        return self

    def settings(self) -> Settings:
        settings = Settings(_env_file=None, **self._options)
        if settings.auto_relogin and not settings.has_credentials():
            raise ValidationError("auto_relogin requires credentials(username, password)")
        return settings

    def build(self, **kwargs) -> OpenProviderClient:
        """Build a blocking client. Extra kwargs (e.g. session) go to the constructor."""
        return OpenProviderClient(self.settings(), **kwargs)

    def build_async(self, **kwargs) -> AsyncOpenProviderClient:
        """Build an asyncio client. Extra kwargs (e.g. http_client) go to the constructor."""
        return AsyncOpenProviderClient(self.settings(), **kwargs)
