"""
Consul client wrapper exposing one sub-client per API area.

Every sub-client shares the same ``ConsulHttp`` helper, so all calls reuse
one connection pool and one set of defaults (base URL, token, timeout).
"""

import logging
from dataclasses import dataclass, field

import httpx

from consul_client.acl import Acl
from consul_client.agent import Agent
from consul_client.catalog import Catalog
from consul_client.connect import Connect
from consul_client.health import Health
from consul_client.http_client import ConsulHttp, create_http_client
from consul_client.kv import KV
from consul_client.session import Session
from consul_client.settings import Config

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class ConsulClient:
    """Typed wrapper around a shared AsyncClient talking to one Consul agent."""

    config: Config
    _client: httpx.AsyncClient
    agent: Agent = field(init=False)
    catalog: Catalog = field(init=False)
    health: Health = field(init=False)
    kv: KV = field(init=False)
    session: Session = field(init=False)
    connect: Connect = field(init=False)
    acl: Acl = field(init=False)

    def __post_init__(self) -> None:
        http = ConsulHttp(self._client, self.config)
        self.agent = Agent(http)
        self.catalog = Catalog(http)
        self.health = Health(http)
        self.kv = KV(http)
        self.session = Session(http)
        self.connect = Connect(http)
        self.acl = Acl(http)

    @classmethod
    def from_config(cls, config: Config) -> "ConsulClient":
        """Factory that builds the client and its HTTP pool from Config."""
        logger.debug(
            "Creating Consul client",
            extra={"base_url": config.base_url, "datacenter": config.datacenter},
        )
        return cls(config, create_http_client(config))

    @classmethod
    def from_env(cls) -> "ConsulClient":
        """Shortcut for ``from_config(Config.from_env())``."""
        return cls.from_config(Config.from_env())

    async def aclose(self) -> None:
        """Close the underlying HTTP resources."""
        await self._client.aclose()

    async def __aenter__(self) -> "ConsulClient":
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()
