"""
Data records shared across Consul API areas.

Field names are snake_case in Python and aliased to Consul's own JSON names,
so bodies are sent and received verbatim.
"""

from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_pascal


class ConsulModel(BaseModel):
    """Decoded response record. Unknown fields are ignored."""

    model_config = ConfigDict(
        alias_generator=to_pascal,
        populate_by_name=True,
        extra="ignore",
        frozen=True,
    )


class ConsulRequest(BaseModel):
    """Request payload; unset optional fields are left out of the body."""

    model_config = ConfigDict(
        alias_generator=to_pascal,
        populate_by_name=True,
        extra="forbid",
    )

    def to_payload(self) -> dict[str, Any]:
        """Serialise with Consul field names, leaving unset fields out."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class TaggedAddress(ConsulModel):
    address: str = ""
    port: int = 0


class ServiceWeights(ConsulModel):
    """Relative weight of a service instance in DNS SRV answers."""

    passing: int = 1
    warning: int = 1


class Node(ConsulModel):
    id: str = Field(default="", alias="ID")
    node: str
    address: str = ""
    datacenter: str = ""
    tagged_addresses: dict[str, str] | None = None
    meta: dict[str, str] | None = None
    create_index: int = 0
    modify_index: int = 0


class HealthCheck(ConsulModel):
    """A health check as reported by the catalog and health endpoints."""

    node: str = ""
    check_id: str = Field(default="", alias="CheckID")
    name: str = ""
    status: str = ""
    notes: str = ""
    output: str = ""
    service_id: str = Field(default="", alias="ServiceID")
    service_name: str = ""
    service_tags: list[str] | None = None
    type: str = ""
    create_index: int = 0
    modify_index: int = 0


class ServiceProxy(ConsulModel):
    """Connect proxy settings attached to a service registration."""

    destination_service_name: str = ""
    destination_service_id: str = Field(default="", alias="DestinationServiceID")
    local_service_address: str = ""
    local_service_port: int = 0
    config: dict[str, Any] | None = None
    upstreams: list[dict[str, Any]] | None = None


class ServiceConnect(ConsulModel):
    native: bool = False
    sidecar_service: dict[str, Any] | None = None


class CheckStatus(str, Enum):
    """Status values Consul assigns to a health check."""

    PASSING = "passing"
    WARNING = "warning"
    CRITICAL = "critical"


class NodeService(ConsulModel):
    """A service instance as stored on a node."""

    kind: str = ""
    id: str = Field(alias="ID")
    service: str
    tags: list[str] | None = None
    meta: dict[str, str] | None = None
    port: int = 0
    address: str = ""
    tagged_addresses: dict[str, TaggedAddress] | None = None
    weights: ServiceWeights | None = None
    enable_tag_override: bool = False
    proxy: ServiceProxy | None = None
    connect: ServiceConnect | None = None
    create_index: int = 0
    modify_index: int = 0
