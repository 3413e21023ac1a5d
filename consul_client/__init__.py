"""
Asynchronous client for the Consul HTTP API.

Build a :class:`Config` (directly or with ``Config.from_env()``), then open a
:class:`ConsulClient` and call ``client.<area>.<operation>(...)``::

    async with ConsulClient.from_config(Config.from_env()) as consul:
        services = await consul.catalog.list_services()
"""

from consul_client.acl import AclLoginRequest, AclPolicyRequest, AclTokenRequest
from consul_client.agent import AgentCheckRegistration, AgentServiceRegistration
from consul_client.catalog import CatalogDeregistration, CatalogRegistration
from consul_client.client import ConsulClient
from consul_client.errors import (
    ApiError,
    ConfigError,
    ConsulError,
    DecodeError,
    NotFoundError,
    TransportError,
)
from consul_client.health import HealthState
from consul_client.kv import KVPair
from consul_client.models import CheckStatus
from consul_client.session import SessionBehavior, SessionCreate
from consul_client.settings import Config

__all__ = [
    "AclLoginRequest",
    "AclPolicyRequest",
    "AclTokenRequest",
    "AgentCheckRegistration",
    "AgentServiceRegistration",
    "ApiError",
    "CatalogDeregistration",
    "CatalogRegistration",
    "CheckStatus",
    "Config",
    "ConfigError",
    "ConsulClient",
    "ConsulError",
    "DecodeError",
    "HealthState",
    "KVPair",
    "NotFoundError",
    "SessionBehavior",
    "SessionCreate",
    "TransportError",
]
