"""
Shared fixtures: an in-memory OpenProvider API and transports that talk to it.
No network access is needed.
"""

import json
from itertools import count
from typing import Any, Callable, Dict, List, Optional, Tuple
from unittest.mock import MagicMock
from urllib.parse import urlsplit, parse_qsl

import httpx
import pytest
import requests

from openprovider.api.base_client import AUTH_FAILED_CODES, NOT_FOUND_CODES, RECORD_MISMATCH_CODES
from openprovider.utils.config import Settings


BASE_URL = "https://api.openprovider.test"
USERNAME = "bob"
PASSWORD = "123456789"

AUTH_FAILED = next(iter(AUTH_FAILED_CODES))
NOT_FOUND = next(iter(NOT_FOUND_CODES))
RECORD_MISMATCH = next(iter(RECORD_MISMATCH_CODES))

RECORD_KEYS = ("name", "type", "value", "ttl", "prio")


class FakeOpenProvider:
    """Minimal stateful stand-in for the OpenProvider v1beta API."""

    def __init__(self):
        self.users = {USERNAME: PASSWORD}
        self.tokens = set()
        self.requests: List[Dict[str, Any]] = []
        self._token_ids = count(1)
        # Server-side page cap, whatever limit the client asks for
        self.max_page_size: Optional[int] = None
        self.report_total = True
        # Zones that exist but belong to another reseller
        self.foreign_zones = set()
        # Called with each logged request before it is answered
        self.hooks: List[Callable[[Dict[str, Any]], None]] = []
        self.zones: Dict[str, Dict[str, Any]] = {}
        self.add_zone("example.com", [
            {"name": "", "type": "A", "value": "93.184.216.34", "ttl": 3600},
            {"name": "www", "type": "A", "value": "93.184.216.34", "ttl": 3600},
            {"name": "wiki", "type": "CNAME", "value": "www.example.com", "ttl": 900},
            {"name": "", "type": "MX", "value": "mail.example.com", "ttl": 3600, "prio": 10},
        ])

    # ---------------- state helpers ----------------

    def add_zone(self, name: str, records: Optional[List[Dict]] = None, zone_id: int = None):
        self.zones[name] = {
            "id": zone_id or len(self.zones) + 1,
            "name": name,
            "type": "master",
            "active": True,
            "creation_date": "2023-01-01 10:00:00",
            "modification_date": "2023-06-01 10:00:00",
            "is_deleted": False,
            "is_shadow": False,
            "is_spamexperts_enabled": False,
            "provider": "openprovider",
            "reseller_id": 42,
            "ip": "0.0.0.0",
            "records": [dict(r) for r in (records or [])],
        }

    def issue_token(self) -> str:
        token = f"token-{next(self._token_ids)}"
        self.tokens.add(token)
        return token

    def expire(self, token: str) -> None:
        self.tokens.discard(token)

    def records(self, zone: str) -> List[Dict]:
        return self.zones[zone]["records"]

    def calls(self, method: str = None, path: str = None) -> List[Dict]:
        return [
            r for r in self.requests
            if (method is None or r["method"] == method) and (path is None or r["path"] == path)
        ]

    # ---------------- request handling ----------------

    def handle(
        self,
        method: str,
        url: str,
        params: Optional[Dict] = None,
        body: Optional[Dict] = None,
        headers: Optional[Dict] = None
    ) -> Tuple[int, Dict]:
        parts = urlsplit(url)
        query = dict(parse_qsl(parts.query))
        query.update({k: str(v) for k, v in (params or {}).items()})
        path = parts.path[len("/v1beta"):]
        headers = {k.lower(): v for k, v in (headers or {}).items()}

        self.requests.append({
            "method": method,
            "path": path,
            "params": query,
            "body": body,
            "authorization": headers.get("authorization"),
        })
        for hook in self.hooks:
            hook(self.requests[-1])

        if method == "POST" and path == "/auth/login":
            return self._login(body or {})

        auth = headers.get("authorization", "")
        if not auth.startswith("Bearer ") or auth[len("Bearer "):] not in self.tokens:
            return 401, {"code": AUTH_FAILED, "desc": "Authentication/Authorization Failed"}

        if method == "GET" and path == "/dns/zones":
            return self._list_zones(query)
        if path.startswith("/dns/zones/"):
            name = path[len("/dns/zones/"):]
            if name in self.foreign_zones:
                return 403, {"code": NOT_FOUND, "desc": "Zone is not owned by this reseller"}
            if name not in self.zones:
                return 404, {"code": NOT_FOUND, "desc": "Zone not found"}
            if method == "GET":
                return self._get_zone(name, query.get("with_records") == "true")
            if method == "PUT":
                return self._update_zone(name, body or {})
        return 404, {"code": 9999, "desc": "Unknown endpoint"}

    def _login(self, body: Dict) -> Tuple[int, Dict]:
        if self.users.get(body.get("username")) != body.get("password"):
            return 401, {"code": AUTH_FAILED, "desc": "Authentication/Authorization Failed"}
        return 200, {"code": 0, "desc": "", "data": {"token": self.issue_token(), "reseller_id": 42}}

    def _list_zones(self, query: Dict) -> Tuple[int, Dict]:
        limit = int(query.get("limit", 100))
        if self.max_page_size is not None:
            limit = min(limit, self.max_page_size)
        offset = int(query.get("offset", 0))
        summaries = []
        for zone in self.zones.values():
            summary = {k: v for k, v in zone.items() if k != "records"}
            summaries.append(summary)
        data = {"results": summaries[offset:offset + limit]}
        if self.report_total:
            data["total"] = len(summaries)
        return 200, {"code": 0, "desc": "", "data": data}

    def _get_zone(self, name: str, with_records: bool) -> Tuple[int, Dict]:
        zone = {k: v for k, v in self.zones[name].items() if k != "records"}
        if with_records:
            zone["records"] = [
                dict(r, name=f"{r['name']}.{name}" if r["name"] else name,
                     creation_date="2023-01-01 10:00:00")
                for r in self.zones[name]["records"]
            ]
        return 200, {"code": 0, "desc": "", "data": zone}

    def _update_zone(self, name: str, body: Dict) -> Tuple[int, Dict]:
        records = self.zones[name]["records"]
        for update in body.get("records", {}).get("update", []):
            original = self._key(update["original_record"], name)
            new = dict(update["record"])
            if new.get("ttl", 0) < 60:
                return 400, {"code": 399, "desc": "Invalid TTL value"}
            if new.get("type") not in ("A", "AAAA", "CAA", "CNAME", "MX", "SRV", "TXT", "NS"):
                return 400, {"code": 399, "desc": "Record type not allowed for this zone"}
            matches = [i for i, r in enumerate(records) if self._key(r, name) == original]
            if not matches:
                return 400, {"code": RECORD_MISMATCH, "desc": "Original record not found in zone"}
            if new["name"] == name:
                new["name"] = ""
            records[matches[0]] = {k: new[k] for k in RECORD_KEYS if k in new}
        return 200, {"code": 0, "desc": "", "data": {"success": True}}

    @staticmethod
    def _key(record: Dict, zone: str) -> Tuple:
        name = "" if record.get("name") == zone else record.get("name")
        return (name, record.get("type"), record.get("value"), record.get("ttl"), record.get("prio"))


def make_response(status: int, body: Any) -> MagicMock:
    response = MagicMock(spec=requests.Response)
    response.status_code = status
    if isinstance(body, (dict, list)):
        response.json.return_value = body
        response.text = json.dumps(body)
    else:
        response.json.side_effect = ValueError("Expecting value")
        response.text = body or ""
    return response


def session_for(server: FakeOpenProvider) -> MagicMock:
    """A requests.Session stand-in routing every request to the fake server."""

    def request(method, url, headers=None, params=None, json=None, timeout=None):
        status, body = server.handle(method, url, params=params, body=json, headers=headers)
        return make_response(status, body)

    session = MagicMock(spec=requests.Session)
    session.request.side_effect = request
    return session


def transport_for(server: FakeOpenProvider) -> httpx.MockTransport:
    """An httpx transport routing every request to the fake server."""

    def handler(request: httpx.Request) -> httpx.Response:
        body = json.loads(request.content) if request.content else None
        status, payload = server.handle(
            request.method, str(request.url), body=body, headers=dict(request.headers)
        )
        return httpx.Response(status, json=payload)

    return httpx.MockTransport(handler)


@pytest.fixture
def settings():
    return Settings(_env_file=None, base_url=BASE_URL, token=None, auto_relogin=False)


@pytest.fixture
def server():
    return FakeOpenProvider()


@pytest.fixture
def session(server):
    return session_for(server)


@pytest.fixture
def client(settings, session):
    from openprovider.api.client import OpenProviderClient
    return OpenProviderClient(settings, session=session)


@pytest.fixture
def logged_in_client(client, server):
    client.set_token(server.issue_token())
    return client
