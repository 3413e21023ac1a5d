"""Connect certificate authority endpoints (``/v1/connect/ca``)."""

from dataclasses import dataclass
from typing import Any

from pydantic import Field

from consul_client.http_client import ConsulHttp, require_non_empty
from consul_client.models import ConsulModel


class CARoot(ConsulModel):
    id: str = Field(alias="ID")
    name: str = ""
    root_cert: str = ""
    intermediate_certs: list[str] | None = None
    active: bool = False
    create_index: int = 0
    modify_index: int = 0


class CARootList(ConsulModel):
    active_root_id: str = Field(default="", alias="ActiveRootID")
    trust_domain: str = ""
    roots: list[CARoot] = []

    @property
    def active_root(self) -> CARoot | None:
        """The root whose ID matches ``active_root_id``, if Consul listed it."""
        return next((root for root in self.roots if root.id == self.active_root_id), None)


class CAConfig(ConsulModel):
    provider: str
    config: dict[str, Any] = {}
    create_index: int = 0
    modify_index: int = 0


@dataclass(slots=True)
class Connect:
    _http: ConsulHttp

    async def list_ca_roots(self, *, datacenter: str | None = None) -> CARootList:
        """Return the CA root certificates currently trusted in the cluster."""
        return await self._http.call("GET", "/connect/ca/roots", CARootList, datacenter=datacenter)

    async def get_ca_config(self, *, datacenter: str | None = None) -> CAConfig:
        """Return the active CA provider and its configuration."""
        return await self._http.call(
            "GET",
            "/connect/ca/configuration",
            CAConfig,
            datacenter=datacenter,
        )

    async def update_ca_config(
        self,
        provider: str,
        config: dict[str, Any] | None = None,
        *,
        datacenter: str | None = None,
    ) -> None:
        """Switch or reconfigure the CA provider; Consul rotates roots as needed."""
        payload = {
            "Provider": require_non_empty(provider, "provider"),
            "Config": config or {},
        }
        await self._http.send(
            "PUT",
            "/connect/ca/configuration",
            json_body=payload,
            datacenter=datacenter,
        )
