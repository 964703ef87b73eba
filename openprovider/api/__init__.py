"""
API Layer - OpenProvider client implementations
Blocking and asyncio clients sharing one token/envelope core
"""

# Exceptions
from openprovider.api.exceptions import (
    OpenProviderError,
    ClientError,
    AuthenticationFailedError,
    NotFoundError,
    RecordMismatchError,
    ValidationError,
    TransportError,
    ProtocolError,
    RemoteError
)

# Models
from openprovider.api.models import RecordType, Record, ZoneSummary, ZoneDetail

# Base Client
from openprovider.api.base_client import BaseOpenProviderClient

# Client Implementations
from openprovider.api.client import OpenProviderClient
from openprovider.api.async_client import AsyncOpenProviderClient

# Client Factory
from openprovider.api.client_factory import ClientBuilder, get_client

__all__ = [
    # Base
    "BaseOpenProviderClient",

    # Clients
    "OpenProviderClient",
    "AsyncOpenProviderClient",

    # Factory
    "ClientBuilder",
    "get_client",

    # Models
    "RecordType",
    "Record",
    "ZoneSummary",
    "ZoneDetail",

    # Exceptions
    "OpenProviderError",
    "ClientError",
    "AuthenticationFailedError",
    "NotFoundError",
    "RecordMismatchError",
    "ValidationError",
    "TransportError",
    "ProtocolError",
    "RemoteError"
]
