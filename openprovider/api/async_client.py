"""
OpenProvider DNS API Client for asyncio
Non-blocking client built on httpx.AsyncClient
"""

import httpx
from typing import Any, Awaitable, Callable, Dict, List, Optional, Tuple
from tenacity import AsyncRetrying

from openprovider.api.base_client import BaseOpenProviderClient, ZONES_PAGE_SIZE
from openprovider.api.exceptions import AuthenticationFailedError, TransportError
from openprovider.api.models import Record, ZoneDetail, ZoneSummary
from openprovider.utils.config import Settings
from openprovider.utils.logger import get_logger


logger = get_logger(__name__)


class AsyncOpenProviderClient(BaseOpenProviderClient):
    """
    Asyncio flavour of OpenProviderClient. Every network operation is a
    coroutine; the token state is shared safely between tasks.

        async with AsyncOpenProviderClient() as client:
            client.set_token(await client.login("bob", "123456789"))
            records = await client.list_records("example.com")
    """

    def __init__(
        self,
        config: Optional[Settings] = None,
        token: Optional[str] = None,
        http_client: Optional[httpx.AsyncClient] = None
    ):
        super().__init__(config, token)
        self._owns_client = http_client is None
        self._http = http_client or httpx.AsyncClient(timeout=self.timeout)

    async def aclose(self) -> None:
        if self._owns_client:
            await self._http.aclose()

    async def __aenter__(self) -> "AsyncOpenProviderClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def _make_request(
        self,
        method: str,
        path: str,
        params: Optional[Dict] = None,
        json_data: Optional[Dict] = None,
        token: Optional[str] = None
    ) -> Any:
        url = self._url(path)

        logger.debug(f"{method} {url}")
        if params:
            logger.debug(f"Params: {params}")

        try:
            response = await self._http.request(
                method,
                url,
                headers=self._headers(token),
                params=params,
                json=json_data,
                timeout=self.timeout
            )
        except httpx.TimeoutException as e:
            raise TransportError(f"Request timed out after {self.timeout} seconds") from e
        except httpx.TransportError as e:
            raise TransportError(f"Connection error: {str(e)}") from e
        except httpx.HTTPError as e:
            raise TransportError(f"Network error: {str(e)}") from e

        try:
            body = response.json()
        except ValueError:
            body = None

        return self._unwrap(response.status_code, body, response.text or "")

    async def _authed_request(
        self,
        method: str,
        path: str,
        params: Optional[Dict] = None,
        json_data: Optional[Dict] = None
    ) -> Any:
        token = self._current_token()
        try:
            return await self._make_request(
                method, path, params=params, json_data=json_data, token=token
            )
        except AuthenticationFailedError:
            self._invalidate_token(token)
            raise

    async def _authenticated(self, operation: Callable[..., Awaitable[Any]], *args: Any) -> Any:
        credentials = self._relogin_credentials()
        async for attempt in AsyncRetrying(**self._relogin_policy(credentials)):
            with attempt:
                if attempt.retry_state.attempt_number > 1:
                    await self._relogin(credentials)
                return await operation(*args)

    async def _relogin(self, credentials: Tuple[str, str]) -> None:
        username, password = credentials
        logger.info("Session token rejected or missing; logging in again")
        self.set_token(await self.login(username, password))

    async def login(self, username: str, password: str) -> str:
        """Authenticate and return a fresh token without installing it."""
        payload = self._login_payload(username, password)

        logger.info(f"Logging in to OpenProvider as {payload['username']}")

        data = await self._make_request("POST", "/auth/login", json_data=payload)
        return self._parse_token(data)

    async def list_zones(self) -> List[ZoneSummary]:
        return await self._authenticated(self._list_zones)

    async def _list_zones(self) -> List[ZoneSummary]:
        zones: List[ZoneSummary] = []
        offset = 0

        while True:
            data = await self._authed_request(
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

    async def get_zone(self, name: str, with_records: bool = False) -> ZoneDetail:
        path = self._zone_path(name)
        params = {"with_records": "true" if with_records else "false"}

        logger.info(f"Getting details for zone: {name}")

        data = await self._authenticated(self._authed_request, "GET", path, params)
        return self._parse_zone(data)

    async def list_records(self, zone_name: str) -> List[Record]:
        zone = await self.get_zone(zone_name, with_records=True)
        records = self._relative_records(zone_name, zone)

        logger.info(f"Found {len(records)} records in zone {zone_name}")
        return records

    async def set_record(self, zone_name: str, old_record: Record, new_record: Record) -> None:
        """Replace old_record with new_record; see OpenProviderClient.set_record."""
        payload = self._set_record_payload(zone_name, old_record, new_record)
        path = self._zone_path(zone_name)

        logger.info(
            f"Updating {old_record.type.value} record '{old_record.name}' in zone {zone_name}"
        )

        await self._authenticated(self._authed_request, "PUT", path, None, payload)
