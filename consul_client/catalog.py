"""Catalog endpoints (``/v1/catalog``): the cluster-wide registry of nodes and services."""

import logging
from dataclasses import dataclass
from typing import Any

from pydantic import Field

from consul_client.http_client import ConsulHttp, path_segment, require_non_empty
from consul_client.models import (
    ConsulModel,
    ConsulRequest,
    Node,
    NodeService,
    ServiceConnect,
    ServiceProxy,
    ServiceWeights,
    TaggedAddress,
)

logger = logging.getLogger(__name__)


class CatalogService(ConsulModel):
    """A node providing a service, flattened the way the catalog reports it."""

    id: str = Field(default="", alias="ID")
    node: str
    address: str = ""
    datacenter: str = ""
    tagged_addresses: dict[str, str] | None = None
    node_meta: dict[str, str] | None = None
    service_kind: str = ""
    service_id: str = Field(alias="ServiceID")
    service_name: str
    service_address: str = ""
    service_port: int = 0
    service_tags: list[str] | None = None
    service_meta: dict[str, str] | None = None
    service_tagged_addresses: dict[str, TaggedAddress] | None = None
    service_weights: ServiceWeights | None = None
    service_enable_tag_override: bool = False
    service_proxy: ServiceProxy | None = None
    service_connect: ServiceConnect | None = None
    create_index: int = 0
    modify_index: int = 0


class CatalogNode(ConsulModel):
    """A node together with the services registered on it."""

    node: Node
    services: dict[str, NodeService] | None = None


class CatalogNodeServiceList(ConsulModel):
    """A node and its services as a list, the shape of ``/catalog/node-services``."""

    node: Node
    services: list[NodeService] = []


class CatalogServiceDefinition(ConsulRequest):
    service: str
    id: str | None = Field(default=None, alias="ID")
    tags: list[str] | None = None
    address: str | None = None
    meta: dict[str, str] | None = None
    port: int | None = None


class CatalogRegistration(ConsulRequest):
    node: str
    address: str
    id: str | None = Field(default=None, alias="ID")
    datacenter: str | None = None
    tagged_addresses: dict[str, str] | None = None
    node_meta: dict[str, str] | None = None
    service: CatalogServiceDefinition | None = None
    check: dict[str, Any] | None = None
    skip_node_update: bool | None = None


class CatalogDeregistration(ConsulRequest):
    """Removes a node, or one service or check of it when an ID is given."""

    node: str
    datacenter: str | None = None
    service_id: str | None = Field(default=None, alias="ServiceID")
    check_id: str | None = Field(default=None, alias="CheckID")


@dataclass(slots=True)
class Catalog:
    """Catalog operations; ``datacenter`` overrides ``Config.datacenter`` per call."""

    _http: ConsulHttp

    async def list_datacenters(self) -> list[str]:
        """
        Return all known datacenters, sorted by estimated round trip time
        from the agent's servers.
        """
        return await self._http.call("GET", "/catalog/datacenters", list[str])

    async def list_nodes(self, *, datacenter: str | None = None) -> list[Node]:
        """Return every node registered in the catalog."""
        return await self._http.call(
            "GET",
            "/catalog/nodes",
            list[Node],
            scoped=True,
            datacenter=datacenter,
        )

    async def list_services(self, *, datacenter: str | None = None) -> dict[str, list[str]]:
        """Return registered service names mapped to their tags."""
        return await self._http.call(
            "GET",
            "/catalog/services",
            dict[str, list[str]],
            scoped=True,
            datacenter=datacenter,
        )

    async def list_nodes_for_service(
        self,
        service: str,
        tag: str | None = None,
        *,
        datacenter: str | None = None,
    ) -> list[CatalogService]:
        """Return the nodes providing ``service``, optionally only those tagged ``tag``."""
        segment = path_segment(service, "service")
        return await self._http.call(
            "GET",
            f"/catalog/service/{segment}",
            list[CatalogService],
            params={"tag": tag},
            scoped=True,
            datacenter=datacenter,
        )

    async def list_nodes_for_connect_service(
        self,
        service: str,
        *,
        datacenter: str | None = None,
    ) -> list[CatalogService]:
        """Return Connect-capable instances (proxies and native integrations) of ``service``."""
        segment = path_segment(service, "service")
        return await self._http.call(
            "GET",
            f"/catalog/connect/{segment}",
            list[CatalogService],
            scoped=True,
            datacenter=datacenter,
        )

    async def get_node_services(self, node: str, *, datacenter: str | None = None) -> CatalogNode | None:
        """Return ``node`` and its services keyed by ID, or None when the node is unknown."""
        segment = path_segment(node, "node")
        return await self._http.call_optional(
            "GET",
            f"/catalog/node/{segment}",
            CatalogNode | None,
            scoped=True,
            datacenter=datacenter,
        )

    async def list_node_services(
        self,
        node: str,
        *,
        datacenter: str | None = None,
    ) -> CatalogNodeServiceList | None:
        """Return ``node`` and its services as a list, or None when the node is unknown."""
        segment = path_segment(node, "node")
        return await self._http.call_optional(
            "GET",
            f"/catalog/node-services/{segment}",
            CatalogNodeServiceList | None,
            scoped=True,
            datacenter=datacenter,
        )

    async def register(self, registration: CatalogRegistration) -> bool:
        """Register or update a node, service or check directly in the catalog."""
        require_non_empty(registration.node, "node")
        logger.debug("Catalog register", extra={"node": registration.node})
        return await self._http.call(
            "PUT",
            "/catalog/register",
            bool,
            json_body=registration.to_payload(),
            scoped=True,
        )

    async def deregister(self, deregistration: CatalogDeregistration) -> bool:
        """Remove a node, or one of its services or checks, from the catalog."""
        require_non_empty(deregistration.node, "node")
        logger.debug("Catalog deregister", extra={"node": deregistration.node})
        return await self._http.call(
            "PUT",
            "/catalog/deregister",
            bool,
            json_body=deregistration.to_payload(),
            scoped=True,
        )
