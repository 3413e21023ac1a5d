"""Health endpoints (``/v1/health``)."""

from dataclasses import dataclass
from enum import Enum

from consul_client.http_client import ConsulHttp, path_segment
from consul_client.models import ConsulModel, HealthCheck, Node, NodeService


class HealthState(str, Enum):
    """Check states accepted by ``/health/state``."""

    ANY = "any"
    PASSING = "passing"
    WARNING = "warning"
    CRITICAL = "critical"


class ServiceEntry(ConsulModel):
    """One instance of a service with its node and checks."""

    node: Node
    service: NodeService
    checks: list[HealthCheck] = []

    @property
    def address(self) -> str:
        """Service address, falling back to the node address when unset."""
        return self.service.address or self.node.address


@dataclass(slots=True)
class Health:
    """Health queries; ``datacenter`` overrides ``Config.datacenter`` per call."""

    _http: ConsulHttp

    async def list_node_checks(self, node: str, *, datacenter: str | None = None) -> list[HealthCheck]:
        """Return the checks registered on ``node``."""
        segment = path_segment(node, "node")
        return await self._http.call(
            "GET",
            f"/health/node/{segment}",
            list[HealthCheck],
            scoped=True,
            datacenter=datacenter,
        )

    async def list_service_checks(self, service: str, *, datacenter: str | None = None) -> list[HealthCheck]:
        """Return the checks attached to every instance of ``service``."""
        segment = path_segment(service, "service")
        return await self._http.call(
            "GET",
            f"/health/checks/{segment}",
            list[HealthCheck],
            scoped=True,
            datacenter=datacenter,
        )

    async def list_service_instances(
        self,
        service: str,
        *,
        passing: bool = False,
        tag: str | None = None,
        datacenter: str | None = None,
    ) -> list[ServiceEntry]:
        """
        Return the instances of ``service`` with their node and health checks.

        With ``passing`` set, Consul filters out instances that have any
        check not in the passing state.
        """
        segment = path_segment(service, "service")
        params = {"passing": "true" if passing else None, "tag": tag}
        return await self._http.call(
            "GET",
            f"/health/service/{segment}",
            list[ServiceEntry],
            params=params,
            scoped=True,
            datacenter=datacenter,
        )

    async def list_passing_instances(
        self,
        service: str,
        tag: str | None = None,
        *,
        datacenter: str | None = None,
    ) -> list[ServiceEntry]:
        """Return only the instances of ``service`` whose checks all pass."""
        return await self.list_service_instances(service, passing=True, tag=tag, datacenter=datacenter)

    async def list_checks_in_state(
        self,
        state: HealthState | str = HealthState.ANY,
        *,
        datacenter: str | None = None,
    ) -> list[HealthCheck]:
        """Return every check currently in ``state``; ``any`` returns all checks."""
        state_value = HealthState(state).value
        return await self._http.call(
            "GET",
            f"/health/state/{state_value}",
            list[HealthCheck],
            scoped=True,
            datacenter=datacenter,
        )
