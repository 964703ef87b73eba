"""
Base OpenProvider Client
Transport-independent core shared by the blocking and the asyncio clients
"""

import re
import threading
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional, Tuple

from pydantic import ValidationError as ModelValidationError
from tenacity import retry_if_exception_type, stop_after_attempt

from openprovider.api.exceptions import (
    AuthenticationFailedError,
    NotFoundError,
    ProtocolError,
    RecordMismatchError,
    RemoteError,
    ValidationError,
)
from openprovider.api.models import Record, ZoneDetail, ZoneSummary
from openprovider.utils.config import Settings, get_settings
from openprovider.utils.logger import get_logger
from openprovider.utils.validators import validate_credentials, validate_zone_name


logger = get_logger(__name__)


CODE_SUCCESS = 0

# Error codes returned in the "code" field of the response envelope
AUTH_FAILED_CODES = frozenset({196})
NOT_FOUND_CODES = frozenset({320, 817})
RECORD_MISMATCH_CODES = frozenset({818})
VALIDATION_CODES = frozenset()

# Fallbacks for codes missing from the tables above, matched against "desc"
RECORD_MISMATCH_PATTERN = re.compile(
    r"original record|record\b.*\b(?:does not|doesn't) (?:exist|match)", re.IGNORECASE
)
NOT_FOUND_PATTERN = re.compile(r"not found|does not exist|doesn't exist", re.IGNORECASE)
VALIDATION_PATTERN = re.compile(r"invalid|validation|not allowed|must be", re.IGNORECASE)

ZONES_PAGE_SIZE = 100


class BaseOpenProviderClient(ABC):
    """
    Owns the registrar configuration and the current session token.

    Subclasses only provide the transport. Every domain operation requires an
    installed token; a rejected token is cleared and surfaced as
    AuthenticationFailedError so the caller can log in again and retry.
    """

    AUTH_FAILED_CODES = AUTH_FAILED_CODES
    NOT_FOUND_CODES = NOT_FOUND_CODES
    RECORD_MISMATCH_CODES = RECORD_MISMATCH_CODES
    VALIDATION_CODES = VALIDATION_CODES

    def __init__(self, config: Optional[Settings] = None, token: Optional[str] = None):
        self.config = config or get_settings()
        self.api_url = self.config.api_url
        self.timeout = self.config.timeout

        self._token_lock = threading.Lock()
        self._token: Optional[str] = token if token is not None else self.config.token

        self._credentials: Optional[Tuple[str, str]] = None
        self.auto_relogin = False
        if self.config.auto_relogin and self.config.has_credentials():
            self.enable_auto_relogin(
                self.config.username,
                self.config.password.get_secret_value()
            )

        logger.debug(
            f"{self.__class__.__name__} initialized - API: {self.api_url}, "
            f"token={'***' if self._token else None}, auto_relogin={self.auto_relogin}"
        )

    # ==================== Token state ====================

    def get_token(self) -> Optional[str]:
        """Get the current token used for authorization, if any."""
        with self._token_lock:
            return self._token

    def has_token(self) -> bool:
        return self.get_token() is not None

    def set_token(self, token: str) -> None:
        """
        Install the token used by all subsequent authenticated operations.

        Use login() to obtain a token from a username and password.
        """
        with self._token_lock:
            self._token = token
        logger.debug("Session token installed")

    def clear_token(self) -> None:
        with self._token_lock:
            self._token = None

    def _current_token(self) -> str:
        token = self.get_token()
        if token is None:
            raise AuthenticationFailedError(
                "No session token installed. Call login() and set_token() first."
            )
        return token

    def _invalidate_token(self, rejected: str) -> None:
        # Only drop the token the failed request used; a newer one may be installed
        with self._token_lock:
            if self._token == rejected:
                self._token = None
                logger.info("OpenProvider rejected the session token; token cleared")

    # ==================== Auto re-login ====================

    def enable_auto_relogin(self, username: str, password: str) -> None:
        """
        Keep credentials in memory and, on AuthenticationFailedError, log in
        once and retry the failed operation once.
        """
        self._credentials = validate_credentials(username, password)
        self.auto_relogin = True

    def disable_auto_relogin(self) -> None:
        self._credentials = None
        self.auto_relogin = False

    def _relogin_credentials(self) -> Optional[Tuple[str, str]]:
        """Credentials for one authenticated call, captured before its first attempt."""
        return self._credentials if self.auto_relogin else None

    @staticmethod
    def _relogin_policy(credentials: Optional[Tuple[str, str]]) -> Dict[str, Any]:
        """Keyword arguments for tenacity's Retrying/AsyncRetrying."""
        attempts = 2 if credentials else 1
        return {
            "stop": stop_after_attempt(attempts),
            "retry": retry_if_exception_type(AuthenticationFailedError),
            "reraise": True,
        }

    # ==================== Request building ====================

    def _url(self, path: str) -> str:
        return f"{self.api_url}{path}"

    def _headers(self, token: Optional[str] = None) -> Dict[str, str]:
        headers = {
            "Content-Type": "application/json",
            "Accept": "application/json",
        }
        if token is not None:
            headers["Authorization"] = f"Bearer {token}"
        return headers

    @staticmethod
    def _login_payload(username: str, password: str) -> Dict[str, Any]:
        username, password = validate_credentials(username, password)
        return {"username": username, "password": password}

    @staticmethod
    def _zone_path(name: str) -> str:
        return f"/dns/zones/{validate_zone_name(name)}"

    @staticmethod
    def _set_record_payload(
        zone_name: str,
        old_record: Optional[Record],
        new_record: Optional[Record]
    ) -> Dict[str, Any]:
        if old_record is None:
            raise ValidationError(
                "The original record is required to update a record; "
                "pass a record previously returned by list_records()."
            )
        if new_record is None:
            raise ValidationError("The new record is required")
        if not isinstance(old_record, Record) or not isinstance(new_record, Record):
            raise ValidationError("Records must be openprovider Record instances")

        return {
            "name": validate_zone_name(zone_name),
            "records": {
                "update": [
                    {
                        "original_record": old_record.to_payload(),
                        "record": new_record.to_payload(),
                    }
                ]
            },
        }

    # ==================== Response handling ====================

    def _unwrap(self, status_code: int, body: Any, raw: str = "") -> Any:
        """
        Check the OpenProvider envelope {"code", "desc", "data"} and return data.

        Args:
            status_code: HTTP status code
            body: Decoded JSON body, or None if the body was not JSON
            raw: Raw body text, used in error messages

        Raises:
            OpenProviderError subclasses based on the error code and HTTP status
        """
        if not isinstance(body, dict):
            if status_code >= 400:
                self._raise_for_error(status_code, None, raw.strip() or f"HTTP {status_code}", {})
            raise ProtocolError(
                "OpenProvider returned a response that is not a JSON object",
                status_code=status_code
            )

        code = body.get("code")
        if isinstance(code, bool) or not isinstance(code, int):
            if status_code >= 400:
                self._raise_for_error(status_code, None, str(body.get("desc", raw)), body)
            raise ProtocolError(
                "Response envelope is missing an integer 'code'",
                status_code=status_code,
                response_data=body
            )

        if code == CODE_SUCCESS and status_code < 400:
            if "data" not in body:
                raise ProtocolError(
                    "Response envelope is missing 'data'",
                    status_code=status_code,
                    code=code,
                    response_data=body
                )
            return body["data"]

        self._raise_for_error(status_code, code, str(body.get("desc", "")), body)

    def _raise_for_error(
        self,
        status_code: int,
        code: Optional[int],
        desc: str,
        body: Dict[str, Any]
    ) -> None:
        kwargs = {"status_code": status_code, "code": code, "response_data": body}
        message = desc or "Unknown error"

        # A known envelope code wins over the HTTP status and the description
        if code in self.AUTH_FAILED_CODES:
            self._raise_auth_failed(message, kwargs)
        if code in self.RECORD_MISMATCH_CODES:
            raise RecordMismatchError(message, **kwargs)
        if code in self.NOT_FOUND_CODES:
            raise NotFoundError(message, **kwargs)
        if code in self.VALIDATION_CODES:
            raise ValidationError(message, **kwargs)

        if status_code in (401, 403):
            self._raise_auth_failed(message, kwargs)
        if status_code == 404:
            raise NotFoundError(message, **kwargs)
        if status_code in (400, 422):
            if RECORD_MISMATCH_PATTERN.search(desc):
                raise RecordMismatchError(message, **kwargs)
            raise ValidationError(message, **kwargs)

        if RECORD_MISMATCH_PATTERN.search(desc):
            raise RecordMismatchError(message, **kwargs)
        if NOT_FOUND_PATTERN.search(desc):
            raise NotFoundError(message, **kwargs)
        if VALIDATION_PATTERN.search(desc):
            raise ValidationError(message, **kwargs)
        raise RemoteError(f"OpenProvider returned an error: {message}", **kwargs)

    @staticmethod
    def _raise_auth_failed(message: str, kwargs: Dict[str, Any]) -> None:
        raise AuthenticationFailedError(
            f"OpenProvider did not accept the current authentication: {message}", **kwargs
        )

    @staticmethod
    def _parse_token(data: Any) -> str:
        token = data.get("token") if isinstance(data, dict) else None
        if not isinstance(token, str) or not token:
            raise ProtocolError("Login response does not contain a token")
        return token

    @staticmethod
    def _parse_zones_page(data: Any) -> Tuple[List[ZoneSummary], Optional[int]]:
        if not isinstance(data, dict) or not isinstance(data.get("results"), list):
            raise ProtocolError("Zone listing does not contain a 'results' array")
        try:
            zones = [ZoneSummary.model_validate(item) for item in data["results"]]
        except ModelValidationError as e:
            raise ProtocolError(f"Unexpected zone in listing: {e}")
        total = data.get("total")
        return zones, total if isinstance(total, int) else None

    @staticmethod
    def _parse_zone(data: Any) -> ZoneDetail:
        try:
            return ZoneDetail.model_validate(data)
        except ModelValidationError as e:
            raise ProtocolError(f"Unexpected zone payload: {e}")

    @staticmethod
    def _relative_records(zone_name: str, zone: ZoneDetail) -> List[Record]:
        """Strip the zone suffix from record names; apex records keep the zone name."""
        if zone.records is None:
            raise ProtocolError(f"Zone {zone_name} was returned without records")

        zone_name = validate_zone_name(zone_name)
        suffix = f".{zone_name}"
        records = []
        for record in zone.records:
            name = record.name
            if name.lower().endswith(suffix):
                name = name[:-len(suffix)]
            records.append(record.replace(name=name) if name != record.name else record)
        return records

    # ==================== Operations ====================

    @abstractmethod
    def login(self, username: str, password: str) -> str:
        """
        Authenticate with the OpenProvider API and receive a fresh token.

        The token is not installed; use set_token() for that.
        """
        pass

    @abstractmethod
    def list_zones(self) -> List[ZoneSummary]:
        """List all DNS zones of the authenticated account."""
        pass

    @abstractmethod
    def get_zone(self, name: str, with_records: bool = False) -> ZoneDetail:
        """Get more information about a specific DNS zone."""
        pass

    @abstractmethod
    def list_records(self, zone_name: str) -> List[Record]:
        """List all records that belong to the given DNS zone."""
        pass

    @abstractmethod
    def set_record(self, zone_name: str, old_record: Record, new_record: Record) -> None:
        """
        Replace old_record with new_record in the zone.

        The API matches on the old record instead of an id, so old_record
        must be an exact snapshot previously returned by list_records().
        """
        pass


__all__ = [
    "BaseOpenProviderClient",
    "CODE_SUCCESS",
    "AUTH_FAILED_CODES",
    "NOT_FOUND_CODES",
    "RECORD_MISMATCH_CODES",
    "VALIDATION_CODES",
    "ZONES_PAGE_SIZE",
]
