"""
OpenProvider.nl DNS API client
"""

from openprovider.api import (
    OpenProviderClient,
    AsyncOpenProviderClient,
    ClientBuilder,
    get_client,
    RecordType,
    Record,
    ZoneSummary,
    ZoneDetail,
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

__version__ = "0.1.0"

__all__ = [
    "OpenProviderClient",
    "AsyncOpenProviderClient",
    "ClientBuilder",
    "get_client",
    "RecordType",
    "Record",
    "ZoneSummary",
    "ZoneDetail",
    "OpenProviderError",
    "ClientError",
    "AuthenticationFailedError",
    "NotFoundError",
    "RecordMismatchError",
    "ValidationError",
    "TransportError",
    "ProtocolError",
    "RemoteError",
]
