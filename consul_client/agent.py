"""
Local agent endpoints (``/v1/agent``).

These talk to the agent the client is connected to. Services and checks
registered here are synced into the catalog by the agent's anti-entropy.
"""

import logging
from dataclasses import dataclass
from typing import Any

from pydantic import Field

from consul_client.http_client import ConsulHttp, path_segment, require_non_empty
from consul_client.models import (
    CheckStatus,
    ConsulModel,
    ConsulRequest,
    HealthCheck,
    NodeService,
    ServiceWeights,
    TaggedAddress,
)

logger = logging.getLogger(__name__)

# /agent/health/service/* encodes the aggregated status in the HTTP code.
_HEALTH_STATUSES = (200, 429, 503)


class AgentService(NodeService):
    """A service registered with the local agent."""

    datacenter: str = ""
    content_hash: str = ""


class AgentServiceHealth(ConsulModel):
    aggregated_status: CheckStatus | str
    service: AgentService
    checks: list[HealthCheck] = []


class AgentMember(ConsulModel):
    name: str
    addr: str = ""
    port: int = 0
    tags: dict[str, str] | None = None
    status: int = 0


class AgentCheckRegistration(ConsulRequest):
    """
    Definition of a check, registered on its own or embedded in a service.

    Exactly one of ``args``, ``http``, ``tcp``, ``grpc``, ``ttl`` or
    ``docker_container_id`` selects the kind of check.
    """

    id: str | None = Field(default=None, alias="ID")
    name: str | None = None
    notes: str | None = None
    service_id: str | None = Field(default=None, alias="ServiceID")
    status: CheckStatus | None = None
    args: list[str] | None = None
    docker_container_id: str | None = Field(default=None, alias="DockerContainerID")
    shell: str | None = None
    http: str | None = Field(default=None, alias="HTTP")
    method: str | None = None
    header: dict[str, list[str]] | None = None
    body: str | None = None
    disable_redirects: bool | None = None
    tcp: str | None = Field(default=None, alias="TCP")
    grpc: str | None = Field(default=None, alias="GRPC")
    grpc_use_tls: bool | None = Field(default=None, alias="GRPCUseTLS")
    tls_skip_verify: bool | None = Field(default=None, alias="TLSSkipVerify")
    interval: str | None = None
    timeout: str | None = None
    ttl: str | None = Field(default=None, alias="TTL")
    deregister_critical_service_after: str | None = None

    @classmethod
    def http_check(
        cls,
        url: str,
        interval: str,
        *,
        timeout: str | None = None,
        deregister_after: str | None = None,
        **fields: Any,
    ) -> "AgentCheckRegistration":
        """Consul performs an HTTP GET against ``url`` every ``interval``."""
        return cls(
            http=url,
            interval=interval,
            timeout=timeout,
            deregister_critical_service_after=deregister_after,
            **fields,
        )

    @classmethod
    def tcp_check(
        cls,
        host: str,
        port: int,
        interval: str,
        *,
        timeout: str | None = None,
        deregister_after: str | None = None,
        **fields: Any,
    ) -> "AgentCheckRegistration":
        """Consul opens a TCP connection to ``host:port`` every ``interval``."""
        return cls(
            tcp=f"{host}:{port}",
            interval=interval,
            timeout=timeout,
            deregister_critical_service_after=deregister_after,
            **fields,
        )

    @classmethod
    def ttl_check(cls, ttl: str, **fields: Any) -> "AgentCheckRegistration":
        """The check turns critical unless the application reports within ``ttl``."""
        return cls(ttl=ttl, **fields)


class AgentServiceRegistration(ConsulRequest):
    name: str
    id: str | None = Field(default=None, alias="ID")
    kind: str | None = None
    tags: list[str] | None = None
    address: str | None = None
    tagged_addresses: dict[str, TaggedAddress] | None = None
    meta: dict[str, str] | None = None
    port: int | None = None
    enable_tag_override: bool | None = None
    weights: ServiceWeights | None = None
    check: AgentCheckRegistration | None = None
    checks: list[AgentCheckRegistration] | None = None
    proxy: dict[str, Any] | None = None
    connect: dict[str, Any] | None = None


@dataclass(slots=True)
class Agent:
    """Operations against the local agent."""

    _http: ConsulHttp

    async def list_services(self) -> dict[str, AgentService]:
        """Return every service registered with the local agent, keyed by ID."""
        return await self._http.call("GET", "/agent/services", dict[str, AgentService])

    async def get_service(self, service_id: str) -> AgentService | None:
        """Return the full definition of one local service instance."""
        segment = path_segment(service_id, "service_id")
        return await self._http.call_optional("GET", f"/agent/service/{segment}", AgentService)

    async def register_service(
        self,
        registration: AgentServiceRegistration,
        *,
        replace_existing_checks: bool = False,
    ) -> None:
        """Add a service, with optional health checks, to the local agent."""
        require_non_empty(registration.name, "name")
        params = {"replace-existing-checks": "true"} if replace_existing_checks else None
        logger.debug(
            "Registering service",
            extra={"service_name": registration.name, "service_id": registration.id},
        )
        await self._http.send(
            "PUT",
            "/agent/service/register",
            params=params,
            json_body=registration.to_payload(),
        )

    async def deregister_service(self, service_id: str) -> None:
        """Remove a service, and the checks that belong to it, from the local agent."""
        segment = path_segment(service_id, "service_id")
        logger.debug("Deregistering service", extra={"service_id": service_id})
        await self._http.send("PUT", f"/agent/service/deregister/{segment}")

    async def enable_service_maintenance(self, service_id: str, reason: str | None = None) -> None:
        """Put a service into maintenance mode; it is reported as critical."""
        segment = path_segment(service_id, "service_id")
        await self._http.send(
            "PUT",
            f"/agent/service/maintenance/{segment}",
            params={"enable": "true", "reason": reason},
        )

    async def disable_service_maintenance(self, service_id: str) -> None:
        """Take a service out of maintenance mode."""
        segment = path_segment(service_id, "service_id")
        await self._http.send(
            "PUT",
            f"/agent/service/maintenance/{segment}",
            params={"enable": "false"},
        )

    async def get_service_health_by_name(self, name: str) -> list[AgentServiceHealth]:
        """
        Return the aggregated health of every local instance of ``name``.

        Warning (429) and critical (503) replies carry the same body as a
        passing one and are returned, not raised. An unknown name yields [].
        """
        segment = path_segment(name, "name")
        response = await self._http.request(
            "GET",
            f"/agent/health/service/name/{segment}",
            expected=(*_HEALTH_STATUSES, 404),
        )
        if response.status_code == 404:
            return []
        return self._http.decode(response, list[AgentServiceHealth])

    async def get_service_health_by_id(self, service_id: str) -> AgentServiceHealth | None:
        """Return the aggregated health of one local instance, or None when it is unknown."""
        segment = path_segment(service_id, "service_id")
        response = await self._http.request(
            "GET",
            f"/agent/health/service/id/{segment}",
            expected=(*_HEALTH_STATUSES, 404),
        )
        if response.status_code == 404:
            return None
        return self._http.decode(response, AgentServiceHealth)

    async def list_checks(self) -> dict[str, HealthCheck]:
        """Return every check registered with the local agent, keyed by check ID."""
        return await self._http.call("GET", "/agent/checks", dict[str, HealthCheck])

    async def register_check(self, registration: AgentCheckRegistration) -> None:
        """Add a check to the local agent."""
        if not (registration.name and registration.name.strip()):
            raise ValueError("name must be a non-empty string.")
        logger.debug(
            "Registering check",
            extra={"check_name": registration.name, "check_id": registration.id},
        )
        await self._http.send("PUT", "/agent/check/register", json_body=registration.to_payload())

    async def deregister_check(self, check_id: str) -> None:
        """Remove a check from the local agent."""
        segment = path_segment(check_id, "check_id")
        logger.debug("Deregistering check", extra={"check_id": check_id})
        await self._http.send("PUT", f"/agent/check/deregister/{segment}")

    async def pass_check(self, check_id: str, note: str | None = None) -> None:
        """Mark a TTL check as passing and reset its TTL clock."""
        await self._ttl_update("pass", check_id, note)

    async def warn_check(self, check_id: str, note: str | None = None) -> None:
        """Mark a TTL check as warning."""
        await self._ttl_update("warn", check_id, note)

    async def fail_check(self, check_id: str, note: str | None = None) -> None:
        """Mark a TTL check as critical."""
        await self._ttl_update("fail", check_id, note)

    async def update_check(
        self,
        check_id: str,
        status: CheckStatus | str,
        output: str | None = None,
    ) -> None:
        """Report the status (and optional output) of a TTL check."""
        segment = path_segment(check_id, "check_id")
        status_value = CheckStatus(status).value
        payload: dict[str, Any] = {"Status": status_value}
        if output is not None:
            payload["Output"] = output
        await self._http.send("PUT", f"/agent/check/update/{segment}", json_body=payload)

    async def members(self, *, wan: bool = False) -> list[AgentMember]:
        """Return the gossip pool members the agent sees (LAN, or WAN on servers)."""
        params = {"wan": "1"} if wan else None
        return await self._http.call("GET", "/agent/members", list[AgentMember], params=params)

    async def self_info(self) -> dict[str, Any]:
        """Return the agent's configuration and member information."""
        return await self._http.call("GET", "/agent/self", dict[str, Any])

    async def _ttl_update(self, action: str, check_id: str, note: str | None) -> None:
        segment = path_segment(check_id, "check_id")
        logger.debug("TTL %s", action, extra={"check_id": check_id})
        await self._http.send(
            "PUT",
            f"/agent/check/{action}/{segment}",
            params={"note": note},
        )
