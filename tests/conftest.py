"""
Shared fixtures: an in-process fake REST backend served by aiohttp.
"""

import asyncio
from dataclasses import dataclass, field
from datetime import timedelta
from typing import Any, Dict, List, Mapping, Optional, Tuple

import pytest
from aiohttp import web
from aiohttp.test_utils import TestServer

from dashstore.auth import TokenProvider
from dashstore.events import EventBus
from dashstore.resources import ResourceClient, ResourceStore
from dashstore.tokenstore import Credential, MemoryStorage
from dashstore.transport import HttpTransport, TransportConfig


TOKEN = "secret-token"


@dataclass
class RecordedRequest:
    method: str
    path: str
    headers: Mapping[str, str]
    query: Dict[str, str]
    content_type: str
    body: Any = None
    files: Dict[str, Tuple[str, str, bytes]] = field(default_factory=dict)


class FakeBackend:
    """
    Minimal stand-in for the dashboard API.

    Collections live in ``records``; root-level resources in ``singletons``.
    ``failures`` maps (METHOD, path) to a forced (status, body) response.
    """

    def __init__(self):
        self.token = TOKEN
        self.require_auth = True
        self.list_shape = "data"
        self.slow_delay = 1.0
        self.records: Dict[str, List[Dict[str, Any]]] = {
            "workshops": [
                {"id": 1, "title": "Intro"},
                {"id": 2, "title": "Advanced"},
            ],
            "services": [],
            "blogs": [],
            "subscribers": [],
            "who-am-i": [],
        }
        self.singletons: Dict[str, Optional[Dict[str, Any]]] = {
            "settings": {"site_name": "Programs House", "email": "hello@example.com"},
            "profile": {"id": 7, "name": "Admin", "email": "admin@example.com"},
        }
        self.failures: Dict[Tuple[str, str], Tuple[int, Any]] = {}
        self.login_response: Optional[Dict[str, Any]] = None
        self.requests: List[RecordedRequest] = []
        self._next_id = 100
        self.base_url = ""

    def app(self) -> web.Application:
        app = web.Application()
        app.router.add_route("*", "/api/{tail:.*}", self.handle)
        return app

    def last(self) -> RecordedRequest:
        return self.requests[-1]

    async def _read_body(self, request: web.Request) -> Tuple[Any, Dict[str, Tuple[str, str, bytes]]]:
        if not request.can_read_body:
            return None, {}

        if request.content_type.startswith("multipart/"):
            fields: Dict[str, Any] = {}
            files: Dict[str, Tuple[str, str, bytes]] = {}
            form = await request.post()
            for key, value in form.items():
                if isinstance(value, web.FileField):
                    files[key] = (value.filename, value.content_type, value.file.read())
                    fields[key] = value.filename
                elif key.endswith("[]"):
                    fields.setdefault(key, []).append(value)
                else:
                    fields[key] = value
            return fields, files

        text = await request.text()
        if request.content_type == "application/json":
            return (await request.json()) if text else None, {}
        return text, {}

    def _list_body(self, items: List[Dict[str, Any]]) -> Any:
        if self.list_shape == "bare":
            return items
        if self.list_shape == "data":
            return {
                "data": items,
                "meta": {"current_page": 1, "last_page": 1, "total": len(items)},
            }
        return {self.list_shape: items}

    def _find(self, resource: str, resource_id: str) -> Optional[Dict[str, Any]]:
        for record in self.records.get(resource, []):
            if str(record.get("id", record.get("_id", record.get("uuid")))) == resource_id:
                return record
        return None

    async def handle(self, request: web.Request) -> web.StreamResponse:
        tail = request.match_info["tail"].strip("/")
        parts = tail.split("/") if tail else []
        body, files = await self._read_body(request)
        self.requests.append(RecordedRequest(
            method=request.method,
            path=tail,
            headers=request.headers.copy(),
            query=dict(request.query),
            content_type=request.content_type,
            body=body,
            files=files,
        ))

        forced = self.failures.get((request.method, tail))
        if forced is not None:
            status, payload = forced
            return web.json_response(payload, status=status)

        if tail == "login":
            return self._login(body)

        if self.require_auth and request.headers.get("Authorization") != f"Bearer {self.token}":
            return web.json_response({"message": "Unauthenticated."}, status=401)

        if tail == "slow":
            await asyncio.sleep(self.slow_delay)
            return web.json_response({"data": []})

        if tail == "malformed":
            return web.Response(text="{not json", content_type="application/json")

        resource = parts[0]
        if resource in self.singletons:
            return self._singleton(request.method, resource, body)
        if resource not in self.records:
            return web.json_response({"message": "Unknown resource"}, status=404)

        if len(parts) == 1:
            return self._collection(request.method, resource, body)
        return self._item(request.method, resource, parts[1], body)

    def _login(self, body: Any) -> web.Response:
        if self.login_response is not None:
            return web.json_response(self.login_response)
        if body == {"email": "admin@example.com", "password": "secret"}:
            return web.json_response({
                "access_token": self.token,
                "admin": {"id": 7, "name": "Admin"},
            })
        return web.json_response(
            {"error": "auth.The provided credentials are incorrect."}, status=401
        )

    def _singleton(self, method: str, resource: str, body: Any) -> web.Response:
        if method == "GET":
            return web.json_response({"data": self.singletons[resource]})
        if method in ("PUT", "POST"):
            current = self.singletons[resource] or {}
            changes = {k: v for k, v in (body or {}).items() if k != "_method"}
            self.singletons[resource] = {**current, **changes}
            return web.json_response({"data": self.singletons[resource]})
        if method == "DELETE":
            self.singletons[resource] = None
            return web.Response(status=204)
        return web.json_response({"message": "Method not allowed"}, status=405)

    def _collection(self, method: str, resource: str, body: Any) -> web.Response:
        if method == "GET":
            return web.json_response(self._list_body(self.records[resource]))
        if method == "POST":
            if not (body or {}).get("title") and resource == "workshops":
                return web.json_response(
                    {"message": "The title field is required.",
                     "errors": {"title": ["The title field is required."]}},
                    status=422,
                )
            self._next_id += 1
            record = {"id": self._next_id, **(body or {})}
            self.records[resource].append(record)
            return web.json_response({"data": record}, status=201)
        return web.json_response({"message": "Method not allowed"}, status=405)

    def _item(self, method: str, resource: str, resource_id: str, body: Any) -> web.Response:
        record = self._find(resource, resource_id)

        if method == "POST" and isinstance(body, dict) and body.get("_method") in ("PATCH", "PUT"):
            method = body["_method"]

        if record is None:
            return web.json_response({"message": f"No query results for {resource}"}, status=404)

        if method == "GET":
            return web.json_response({"data": record})
        if method in ("PATCH", "PUT"):
            record.update({k: v for k, v in (body or {}).items() if k != "_method"})
            return web.json_response({"data": record})
        if method == "DELETE":
            self.records[resource].remove(record)
            return web.Response(status=204)
        return web.json_response({"message": "Method not allowed"}, status=405)


@pytest.fixture
async def backend():
    """Running fake backend; ``backend.base_url`` points at its /api root."""
    fake = FakeBackend()
    server = TestServer(fake.app())
    await server.start_server()
    fake.base_url = str(server.make_url("/api"))
    yield fake
    await server.close()


@pytest.fixture
def storage():
    return MemoryStorage()


@pytest.fixture
def event_bus():
    return EventBus()


@pytest.fixture
def provider(storage, event_bus):
    return TokenProvider(storage, event_bus)


@pytest.fixture
async def logged_in(provider):
    """Store a valid credential for the fake backend's token."""
    credential = Credential.issue(TOKEN, timedelta(hours=1), profile={"id": 7})
    await provider.set_credential(credential)
    return credential


@pytest.fixture
async def transport(backend, provider):
    http = HttpTransport(TransportConfig(base_url=backend.base_url), provider)
    yield http
    await http.close()


@pytest.fixture
def workshops_client(transport):
    return ResourceClient(transport, "workshops", label="workshop")


@pytest.fixture
def workshops_store(workshops_client, event_bus):
    return ResourceStore(workshops_client, event_bus)
