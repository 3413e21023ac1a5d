import inspect

import httpx
import pytest

from consul_client import (
    AgentServiceRegistration,
    ApiError,
    Config,
    ConsulClient,
    DecodeError,
    NotFoundError,
    TransportError,
)
from consul_client.acl import Acl
from consul_client.agent import Agent
from consul_client.catalog import Catalog
from consul_client.connect import Connect
from consul_client.health import Health
from consul_client.http_client import USER_AGENT, create_http_client, path_segment
from consul_client.kv import KV
from consul_client.session import Session


@pytest.mark.anyio
async def test_register_service_then_catalog_lists_it(fake_consul, make_client) -> None:
    client = make_client(fake_consul)
    await client.agent.register_service(
        AgentServiceRegistration(name="web", port=8080, tags=["v1"])
    )

    services = await client.catalog.list_services()
    assert "web" in services
    assert services["web"] == ["v1"]

    local = await client.agent.list_services()
    assert local["web"].service == "web"
    assert local["web"].port == 8080
    await client.aclose()


@pytest.mark.anyio
async def test_kv_put_then_get_round_trips_bytes(fake_consul, make_client) -> None:
    client = make_client(fake_consul)
    assert await client.kv.put("foo", "bar") is True

    pair = await client.kv.get("foo")
    assert pair is not None
    assert pair.key == "foo"
    assert pair.value == b"bar"
    assert await client.kv.get_value("foo") == b"bar"
    await client.aclose()


@pytest.mark.anyio
async def test_kv_get_missing_key_is_not_an_error(fake_consul, make_client) -> None:
    client = make_client(fake_consul)
    assert await client.kv.get("does/not/exist") is None
    assert await client.kv.get_value("does/not/exist") is None
    await client.aclose()


@pytest.mark.anyio
async def test_non_success_status_raises_api_error_with_exact_code(make_client) -> None:
    async def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(500, text="rpc error: No cluster leader")

    client = make_client(handler)
    with pytest.raises(ApiError) as exc:
        await client.catalog.list_nodes()
    assert exc.value.status_code == 500
    assert exc.value.body == "rpc error: No cluster leader"
    assert exc.value.method == "GET"
    assert exc.value.path == "/v1/catalog/nodes"
    assert "No cluster leader" in str(exc.value)
    await client.aclose()


@pytest.mark.anyio
async def test_permission_denied_is_an_api_error(make_client) -> None:
    client = make_client(lambda request: httpx.Response(403, text="Permission denied"))
    with pytest.raises(ApiError) as exc:
        await client.kv.put("locked", "x")
    assert exc.value.status_code == 403
    assert not isinstance(exc.value, NotFoundError)
    await client.aclose()


@pytest.mark.anyio
async def test_unexpected_404_raises_not_found(make_client) -> None:
    client = make_client(lambda request: httpx.Response(404, text="no such thing"))
    with pytest.raises(NotFoundError) as exc:
        await client.catalog.list_services()
    assert exc.value.status_code == 404
    await client.aclose()


@pytest.mark.anyio
async def test_invalid_json_raises_decode_error(make_client) -> None:
    client = make_client(lambda request: httpx.Response(200, text="<html>proxy</html>"))
    with pytest.raises(DecodeError):
        await client.catalog.list_datacenters()
    await client.aclose()


@pytest.mark.anyio
async def test_schema_mismatch_raises_decode_error(make_client) -> None:
    client = make_client(lambda request: httpx.Response(200, json={"dc1": "not-a-list"}))
    with pytest.raises(DecodeError):
        await client.catalog.list_datacenters()
    await client.aclose()


@pytest.mark.anyio
async def test_timeout_surfaces_transport_error(make_client) -> None:
    async def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ReadTimeout("mock timeout", request=request)

    client = make_client(handler)
    with pytest.raises(TransportError) as exc:
        await client.health.list_service_checks("web")
    assert "timed out" in str(exc.value)
    assert isinstance(exc.value.__cause__, httpx.TimeoutException)
    await client.aclose()


@pytest.mark.anyio
async def test_connection_refused_surfaces_transport_error(make_client) -> None:
    async def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    client = make_client(handler)
    with pytest.raises(TransportError) as exc:
        await client.agent.list_services()
    assert "connection refused" in str(exc.value)
    await client.aclose()


@pytest.mark.anyio
async def test_token_header_and_datacenter_are_sent(make_client) -> None:
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json=[])

    client = make_client(handler, token="acl-secret", datacenter="dc2")
    await client.catalog.list_nodes()
    await client.agent.members()

    catalog_request, agent_request = seen
    assert catalog_request.headers["X-Consul-Token"] == "acl-secret"
    assert catalog_request.url.params["dc"] == "dc2"
    assert "dc" not in agent_request.url.params
    await client.aclose()


@pytest.mark.anyio
async def test_context_manager_closes_pool() -> None:
    async with ConsulClient.from_config(Config(address="127.0.0.1:8500")) as consul:
        pool = consul._client
        assert not pool.is_closed
    assert pool.is_closed


@pytest.mark.anyio
async def test_create_http_client_applies_config() -> None:
    config = Config(address="https://consul.local:8501", token="t0ken", timeout=3.0)
    async_client = create_http_client(config)
    assert async_client.base_url.scheme == "https"
    assert async_client.base_url.host == "consul.local"
    assert async_client.base_url.port == 8501
    assert async_client.headers["X-Consul-Token"] == "t0ken"
    assert async_client.headers["User-Agent"] == USER_AGENT
    assert async_client.timeout.read == 3.0
    await async_client.aclose()


@pytest.mark.anyio
async def test_validation_rejects_empty_parameters(make_client) -> None:
    client = make_client(lambda request: httpx.Response(200, json=True))
    with pytest.raises(ValueError):
        await client.kv.get("   ")
    with pytest.raises(ValueError):
        await client.agent.deregister_service("")
    with pytest.raises(ValueError):
        await client.health.list_service_instances("  ")
    await client.aclose()


@pytest.mark.parametrize(
    ("value", "expected"),
    [(".", "%2E"), ("..", "%2E%2E"), ("a/b", "a%2Fb"), ("...", "..."), (" id ", "%20id%20")],
)
def test_path_segment_escapes_separators_and_dot_segments(value: str, expected: str) -> None:
    assert path_segment(value, "id") == expected


@pytest.mark.anyio
async def test_identifiers_cannot_climb_out_of_their_endpoint(make_client) -> None:
    async def handler(request: httpx.Request) -> httpx.Response:
        assert request.url.raw_path == b"/v1/agent/service/deregister/%2E%2E"
        return httpx.Response(200)

    client = make_client(handler)
    await client.agent.deregister_service("..")
    await client.aclose()


@pytest.mark.anyio
async def test_optional_read_with_empty_body_is_none(make_client) -> None:
    client = make_client(lambda request: httpx.Response(200, content=b""))
    assert await client.kv.get("missing") is None
    assert await client.session.info("00000000-0000-0000-0000-000000000000") is None
    await client.aclose()


@pytest.mark.anyio
async def test_explicit_datacenter_reaches_unscoped_endpoints(make_client) -> None:
    async def handler(request: httpx.Request) -> httpx.Response:
        assert request.url.params["dc"] == "dc2"
        return httpx.Response(200, json={"Provider": "consul", "Config": {}})

    client = make_client(handler, datacenter="dc1")
    config = await client.connect.get_ca_config(datacenter="dc2")
    assert config.provider == "consul"
    await client.aclose()


@pytest.mark.parametrize("sub_client", [Agent, Catalog, Health, KV, Session, Connect, Acl])
def test_public_operations_are_documented(sub_client: type) -> None:
    undocumented = [
        name
        for name, member in vars(sub_client).items()
        if not name.startswith("_") and inspect.iscoroutinefunction(member) and not inspect.getdoc(member)
    ]
    assert undocumented == []
