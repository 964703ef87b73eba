"""
OpenProvider DNS API Client
Blocking client built on requests.Session
"""

import requests
from typing import Any, Callable, Dict, List, Optional, Tuple
from tenacity import Retrying

from openprovider.api.base_client import BaseOpenProviderClient, ZONES_PAGE_SIZE
from openprovider.api.exceptions import AuthenticationFailedError, TransportError
from openprovider.api.models import Record, ZoneDetail, ZoneSummary
from openprovider.utils.config import Settings
from openprovider.utils.logger import get_logger


logger = get_logger(__name__)


class OpenProviderClient(BaseOpenProviderClient):
    """
    Communicates with the OpenProvider.nl API.

        client = OpenProviderClient()
        token = client.login("bob", "123456789")
        client.set_token(token)
        zones = client.list_zones()

    Every method maps to one request/response round trip. A rejected token
    raises AuthenticationFailedError; call login() and set_token() again and
    retry, or enable auto re-login to have the client do it once per call.
    """

    def __init__(
        self,
        config: Optional[Settings] = None,
        token: Optional[str] = None,
        session: Optional[requests.Session] = None
    ):
        """
        Initialize OpenProvider API client. Performs no I/O.

        Args:
            config: Optional Settings object. If None, loads from get_settings()
            token: Optional session token to install right away
            session: Optional requests.Session; the client closes only sessions it created
        """
        super().__init__(config, token)
        self._owns_session = session is None
        self._session = session or requests.Session()

    def close(self) -> None:
        if self._owns_session:
            self._session.close()

    def __enter__(self) -> "OpenProviderClient":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def _make_request(
        self,
        method: str,
        path: str,
        params: Optional[Dict] = None,
        json_data: Optional[Dict] = None,
        token: Optional[str] = None
    ) -> Any:
        """
        Make an HTTP request to the OpenProvider API and unwrap the envelope.

        Args:
            method: HTTP method (GET, POST, PUT)
            path: Endpoint below /v1beta (e.g. '/dns/zones')
            params: Query parameters
            json_data: JSON body for POST/PUT requests
            token: Bearer token to send, if any

        Returns:
            The 'data' member of the response envelope

        Raises:
            TransportError: On timeouts and connection failures
            OpenProviderError subclasses for error responses
        """
        url = self._url(path)

        logger.debug(f"{method} {url}")
        if params:
            logger.debug(f"Params: {params}")

        try:
            response = self._session.request(
                method=method,
                url=url,
                headers=self._headers(token),
                params=params,
                json=json_data,
                timeout=self.timeout
            )
        except requests.exceptions.Timeout as e:
            raise TransportError(f"Request timed out after {self.timeout} seconds") from e
        except requests.exceptions.ConnectionError as e:
            raise TransportError(f"Connection error: {str(e)}") from e
        except requests.exceptions.RequestException as e:
            raise TransportError(f"Network error: {str(e)}") from e

        try:
            body = response.json()
        except ValueError:
            body = None

        return self._unwrap(response.status_code, body, response.text or "")

    def _authed_request(
        self,
        method: str,
        path: str,
        params: Optional[Dict] = None,
        json_data: Optional[Dict] = None
    ) -> Any:
        token = self._current_token()
        try:
            return self._make_request(method, path, params=params, json_data=json_data, token=token)
        except AuthenticationFailedError:
            self._invalidate_token(token)
            raise

    def _authenticated(self, operation: Callable[..., Any], *args: Any) -> Any:
        """Run an operation, logging in again and retrying once if auto re-login is on."""
        credentials = self._relogin_credentials()
        for attempt in Retrying(**self._relogin_policy(credentials)):
            with attempt:
                if attempt.retry_state.attempt_number > 1:
                    self._relogin(credentials)
                return operation(*args)

    def _relogin(self, credentials: Tuple[str, str]) -> None:
        username, password = credentials
        logger.info("Session token rejected or missing; logging in again")
        self.set_token(self.login(username, password))

    def login(self, username: str, password: str) -> str:
        """
        Authenticate with the OpenProvider API and receive a fresh token.

        The token is returned, not installed:

            token = client.login("bob", "123456789")
            client.set_token(token)

        Raises:
            ValidationError: If username or password is empty
            AuthenticationFailedError: If the credentials are rejected
        """
        payload = self._login_payload(username, password)

        logger.info(f"Logging in to OpenProvider as {payload['username']}")

        data = self._make_request("POST", "/auth/login", json_data=payload)
        return self._parse_token(data)

    def list_zones(self) -> List[ZoneSummary]:
        """
        List all known DNS zones for the authenticated account.

            zones = [z for z in client.list_zones() if not z.is_deleted]
        """
        return self._authenticated(self._list_zones)

    def _list_zones(self) -> List[ZoneSummary]:
        zones: List[ZoneSummary] = []
        offset = 0

        while True:
            data = self._authed_request(
                "GET", "/dns/zones", params={"limit": ZONES_PAGE_SIZE, "offset": offset}
            )
            page, total = self._parse_zones_page(data)
            zones += page
            offset += len(page)

            if not page:
                break
            if total is not None:
                if offset >= total:
                    break
            elif len(page) < ZONES_PAGE_SIZE:
                break

        logger.info(f"Found {len(zones)} zones in account")
        return zones

    def get_zone(self, name: str, with_records: bool = False) -> ZoneDetail:
        """
        Get more information about a specific DNS zone.

            info = client.get_zone("example.com")
            print(f"Zone created on {info.creation_date}")

        Raises:
            NotFoundError: If the zone does not exist or belongs to another account
        """
        path = self._zone_path(name)
        params = {"with_records": "true" if with_records else "false"}

        logger.info(f"Getting details for zone: {name}")

        data = self._authenticated(self._authed_request, "GET", path, params)
        return self._parse_zone(data)

    def list_records(self, zone_name: str) -> List[Record]:
        """
        List all records that belong to the provided DNS zone.

        Names are relative to the zone ('www' for www.example.com).
        """
        zone = self.get_zone(zone_name, with_records=True)
        records = self._relative_records(zone_name, zone)

        logger.info(f"Found {len(records)} records in zone {zone_name}")
        return records

    def set_record(self, zone_name: str, old_record: Record, new_record: Record) -> None:
        """
        Update a DNS record with new attributes.

        OpenProvider replaces by matching, so the old record must be supplied
        exactly as list_records() returned it:

            record = next(r for r in client.list_records("example.com")
                          if r.name == "wiki" and r.type == RecordType.A)
            client.set_record("example.com", record, record.replace(value="93.184.216.34"))

        Raises:
            ValidationError: If old_record is missing or the new record is rejected
            RecordMismatchError: If old_record no longer matches the zone
        """
        payload = self._set_record_payload(zone_name, old_record, new_record)
        path = self._zone_path(zone_name)

        logger.info(
            f"Updating {old_record.type.value} record '{old_record.name}' in zone {zone_name}"
        )

        self._authenticated(self._authed_request, "PUT", path, None, payload)
