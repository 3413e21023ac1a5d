import base64
import json
import uuid
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any

import httpx
import pytest

from consul_client import Config, ConsulClient

Handler = Callable[[httpx.Request], httpx.Response]


def build_client(handler: Handler, **config: Any) -> ConsulClient:
    settings = Config(address="http://mock.local:8500", **config)
    async_client = httpx.AsyncClient(
        transport=httpx.MockTransport(handler),
        base_url=settings.base_url,
        headers=settings.headers,
    )
    return ConsulClient(settings, async_client)


@dataclass
class FakeConsul:
    """In-memory stand-in for the handful of agent endpoints the round-trip tests use."""

    services: dict[str, dict[str, Any]] = field(default_factory=dict)
    kv: dict[str, dict[str, Any]] = field(default_factory=dict)
    sessions: dict[str, dict[str, Any]] = field(default_factory=dict)
    index: int = 0
    requests: list[httpx.Request] = field(default_factory=list)

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        path = request.url.path
        method = request.method

        if path == "/v1/agent/service/register" and method == "PUT":
            payload = json.loads(request.content)
            service_id = payload.get("ID") or payload["Name"]
            self.services[service_id] = payload
            return httpx.Response(200)
        if path.startswith("/v1/agent/service/deregister/") and method == "PUT":
            self.services.pop(path.rsplit("/", 1)[-1], None)
            return httpx.Response(200)
        if path == "/v1/agent/services":
            return httpx.Response(
                200,
                json={
                    service_id: {
                        "ID": service_id,
                        "Service": payload["Name"],
                        "Tags": payload.get("Tags", []),
                        "Port": payload.get("Port", 0),
                        "Address": payload.get("Address", ""),
                    }
                    for service_id, payload in self.services.items()
                },
            )
        if path == "/v1/catalog/services":
            catalog: dict[str, list[str]] = {"consul": []}
            for payload in self.services.values():
                catalog.setdefault(payload["Name"], []).extend(payload.get("Tags", []))
            return httpx.Response(200, json=catalog)

        if path.startswith("/v1/kv/"):
            return self._kv(request, path.removeprefix("/v1/kv/"))

        if path == "/v1/session/create":
            session_id = str(uuid.uuid4())
            self.sessions[session_id] = {"ID": session_id, **json.loads(request.content or b"{}")}
            return httpx.Response(200, json={"ID": session_id})
        if path.startswith("/v1/session/destroy/"):
            self.sessions.pop(path.rsplit("/", 1)[-1], None)
            return httpx.Response(200, json=True)
        if path == "/v1/session/list":
            return httpx.Response(200, json=list(self.sessions.values()))

        return httpx.Response(404, text=f"unexpected request {method} {path}")

    def _kv(self, request: httpx.Request, key: str) -> httpx.Response:
        params = request.url.params
        if request.method == "PUT":
            entry = self.kv.get(key)
            if "cas" in params and int(params["cas"]) != (entry["ModifyIndex"] if entry else 0):
                return httpx.Response(200, json=False)
            session = entry.get("Session") if entry else None
            if "acquire" in params:
                if session and session != params["acquire"]:
                    return httpx.Response(200, json=False)
                session = params["acquire"]
            if "release" in params:
                if session != params["release"]:
                    return httpx.Response(200, json=False)
                session = None
            self.index += 1
            self.kv[key] = {
                "Key": key,
                "Value": base64.b64encode(request.content).decode() if request.content else None,
                "Flags": int(params.get("flags", 0)),
                "Session": session,
                "CreateIndex": entry["CreateIndex"] if entry else self.index,
                "ModifyIndex": self.index,
                "LockIndex": 0,
            }
            return httpx.Response(200, json=True)
        if request.method == "DELETE":
            if "recurse" in params:
                for existing in [k for k in self.kv if k.startswith(key)]:
                    del self.kv[existing]
            else:
                self.kv.pop(key, None)
            return httpx.Response(200, json=True)

        if "recurse" in params or "keys" in params:
            matches = sorted(k for k in self.kv if k.startswith(key))
            if not matches:
                return httpx.Response(404)
            if "keys" in params:
                return httpx.Response(200, json=matches)
            return httpx.Response(200, json=[self.kv[k] for k in matches])
        if key not in self.kv:
            return httpx.Response(404)
        return httpx.Response(200, json=[self.kv[key]])


@pytest.fixture
def fake_consul() -> FakeConsul:
    return FakeConsul()


@pytest.fixture
def make_client() -> Callable[..., ConsulClient]:
    return build_client
