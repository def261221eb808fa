# tests/conftest.py
from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

import pytest
from requests.structures import CaseInsensitiveDict


V2_URL = "https://cloud.example.org:5000/v2.0/"
V3_URL = "https://cloud.example.org:5000/v3/"


class FakeResponse:
    def __init__(self, status=200, body=None, headers=None, text=None):
        self.status_code = status
        self.headers = CaseInsensitiveDict(headers or {})
        if text is None:
            text = "" if body is None else json.dumps(body)
            if body is not None and "content-type" not in self.headers:
                self.headers["Content-Type"] = "application/json"
        self.text = text


@dataclass
class Call:
    method: str
    url: str
    headers: Dict[str, str]
    body: Any
    verify: Any = True
    timeout: Any = None


class FakeHttp:
    """
    Stands in for requests.Session: answers (method, url) routes with canned
    responses and records every request.

    A route given several responses replays them in order and then keeps
    returning the last one. Unknown routes answer 404.
    """

    def __init__(self):
        self.routes: Dict[tuple, List[Any]] = {}
        self.calls: List[Call] = []

    def route(self, method, url, status=200, body=None, headers=None, text=None, exc=None):
        item = exc if exc is not None else FakeResponse(status, body, headers, text)
        self.routes.setdefault((method.upper(), url), []).append(item)
        return self

    def request(self, method, url, headers=None, data=None, verify=True, timeout=None):
        self.calls.append(Call(method, url, dict(headers or {}),
                               json.loads(data) if data else None, verify, timeout))
        queue = self.routes.get((method.upper(), url))
        if not queue:
            return FakeResponse(404, text="not found")
        item = queue.pop(0) if len(queue) > 1 else queue[0]
        if isinstance(item, Exception):
            raise item
        return item

    def calls_to(self, url: str, method: Optional[str] = None) -> List[Call]:
        return [c for c in self.calls if c.url == url and (method is None or c.method == method)]


class Capture:
    def __init__(self): self.events = []
    def notify(self, ev): self.events.append(ev)

    def kinds(self):
        return [e.__class__.__name__ for e in self.events]


@pytest.fixture
def fake_http():
    return FakeHttp()


@pytest.fixture
def capture():
    return Capture()


@pytest.fixture
def v2_access():
    return {
        "access": {
            "token": {
                "id": "tok1",
                "expires": "2099-01-01T00:00:00Z",
                "tenant": {"id": "t1", "name": "demo"},
            },
            "serviceCatalog": [
                {
                    "type": "compute",
                    "name": "nova",
                    "endpoints": [
                        {
                            "region": "RegionOne",
                            "publicURL": "http://nova.example/v2/t1",
                            "internalURL": "http://nova.internal/v2/t1",
                            "adminURL": "http://nova.admin/v2/t1",
                        }
                    ],
                },
                {
                    "type": "network",
                    "name": "neutron",
                    "endpoints": [
                        {"region": "RegionOne", "publicURL": "http://neutron.example/"}
                    ],
                },
            ],
            "user": {
                "id": "u1",
                "name": "alice",
                "roles": [{"id": "r1", "name": "member", "tenantId": "t1"}],
            },
        }
    }


@pytest.fixture
def v3_token():
    return {
        "token": {
            "expires_at": "2099-01-01T00:00:00.000000Z",
            "project": {"id": "p1", "name": "alice cloud"},
            "catalog": [
                {
                    "type": "compute",
                    "name": "nova",
                    "endpoints": [
                        {"region": "Spain2", "interface": "internal", "url": "http://nova.spain.internal/v2/p1"},
                        {"region": "Spain2", "interface": "public", "url": "http://nova.spain/v2/p1"},
                        {"region": "Zurich2", "interface": "public", "url": "http://nova.zurich/v2/p1"},
                    ],
                },
                {
                    "type": "network",
                    "name": "neutron",
                    "endpoints": [
                        {"region": "Spain2", "interface": "public", "url": "http://neutron.spain/"},
                        {"region": "Zurich2", "interface": "public", "url": "http://neutron.zurich/"},
                    ],
                },
            ],
            "user": {"id": "u1", "name": "alice", "domain": {"id": "default"}},
            "roles": [{"id": "r1", "name": "owner"}],
        }
    }
