"""
ACL endpoints (``/v1/acl``): bootstrap, replication status, auth method
login, tokens and policies.

Most of these require a management token in ``Config.token``.
"""

import logging
from dataclasses import dataclass

from pydantic import Field

from consul_client.http_client import ConsulHttp, path_segment, require_non_empty
from consul_client.models import ConsulModel, ConsulRequest

logger = logging.getLogger(__name__)


class AclLink(ConsulModel):
    """Reference to a policy or role by ID or name."""

    id: str | None = Field(default=None, alias="ID")
    name: str | None = None


class AclServiceIdentity(ConsulModel):
    service_name: str
    datacenters: list[str] | None = None


class AclNodeIdentity(ConsulModel):
    node_name: str
    datacenter: str


class AclToken(ConsulModel):
    accessor_id: str = Field(alias="AccessorID")
    secret_id: str = Field(default="", alias="SecretID")
    description: str = ""
    policies: list[AclLink] | None = None
    roles: list[AclLink] | None = None
    service_identities: list[AclServiceIdentity] | None = None
    node_identities: list[AclNodeIdentity] | None = None
    local: bool = False
    create_time: str = ""
    expiration_time: str | None = None
    hash: str = ""
    create_index: int = 0
    modify_index: int = 0


class AclTokenRequest(ConsulRequest):
    accessor_id: str | None = Field(default=None, alias="AccessorID")
    secret_id: str | None = Field(default=None, alias="SecretID")
    description: str | None = None
    policies: list[AclLink] | None = None
    roles: list[AclLink] | None = None
    service_identities: list[AclServiceIdentity] | None = None
    node_identities: list[AclNodeIdentity] | None = None
    local: bool | None = None
    expiration_time: str | None = None
    expiration_ttl: str | None = Field(default=None, alias="ExpirationTTL")


class AclPolicy(ConsulModel):
    id: str = Field(alias="ID")
    name: str
    description: str = ""
    rules: str = ""
    datacenters: list[str] | None = None
    hash: str = ""
    create_index: int = 0
    modify_index: int = 0


class AclPolicyRequest(ConsulRequest):
    name: str
    description: str | None = None
    rules: str | None = None
    datacenters: list[str] | None = None


class AclLoginRequest(ConsulRequest):
    """Exchange of an auth method bearer token for a Consul token."""

    auth_method: str
    bearer_token: str
    meta: dict[str, str] | None = None


class AclReplication(ConsulModel):
    enabled: bool
    running: bool = False
    source_datacenter: str = ""
    replication_type: str = ""
    replicated_index: int = 0
    replicated_role_index: int = 0
    replicated_token_index: int = 0
    last_success: str = ""
    last_error: str = ""
    last_error_message: str = ""


@dataclass(slots=True)
class Acl:
    _http: ConsulHttp

    async def bootstrap(self) -> AclToken:
        """Create the initial management token. Works once per cluster."""
        logger.info("Bootstrapping ACL system")
        return await self._http.call("PUT", "/acl/bootstrap", AclToken)

    async def replication(self) -> AclReplication:
        """Return the status of ACL replication in the datacenter."""
        return await self._http.call("GET", "/acl/replication", AclReplication, scoped=True)

    async def login(self, request: AclLoginRequest) -> AclToken:
        """Trade an auth method bearer token for a newly created Consul token."""
        require_non_empty(request.auth_method, "auth_method")
        require_non_empty(request.bearer_token, "bearer_token")
        logger.debug("Logging in through auth method", extra={"auth_method": request.auth_method})
        return await self._http.call("POST", "/acl/login", AclToken, json_body=request.to_payload())

    async def logout(self, token: str | None = None) -> None:
        """
        Destroy a token created by :meth:`login`.

        Without ``token`` the token in ``Config.token`` is logged out.
        """
        params = {"token": require_non_empty(token, "token")} if token is not None else None
        await self._http.send("POST", "/acl/logout", params=params)

    async def create_token(self, request: AclTokenRequest) -> AclToken:
        """Create a token; Consul generates the IDs unless they are given."""
        return await self._http.call("PUT", "/acl/token", AclToken, json_body=request.to_payload())

    async def read_token(self, accessor_id: str) -> AclToken | None:
        """Return a token by accessor ID, or None when it does not exist."""
        segment = path_segment(accessor_id, "accessor_id")
        return await self._http.call_optional("GET", f"/acl/token/{segment}", AclToken)

    async def read_self_token(self) -> AclToken:
        """Return the token the client is configured with."""
        return await self._http.call("GET", "/acl/token/self", AclToken)

    async def update_token(self, accessor_id: str, request: AclTokenRequest) -> AclToken:
        """Replace the links and description of an existing token."""
        segment = path_segment(accessor_id, "accessor_id")
        return await self._http.call(
            "PUT",
            f"/acl/token/{segment}",
            AclToken,
            json_body=request.to_payload(),
        )

    async def clone_token(self, accessor_id: str, description: str | None = None) -> AclToken:
        """Copy a token's links under new accessor and secret IDs."""
        segment = path_segment(accessor_id, "accessor_id")
        payload = {"Description": description} if description is not None else {}
        return await self._http.call(
            "PUT",
            f"/acl/token/{segment}/clone",
            AclToken,
            json_body=payload,
        )

    async def delete_token(self, accessor_id: str) -> bool:
        """Delete a token by accessor ID."""
        segment = path_segment(accessor_id, "accessor_id")
        logger.debug("Deleting ACL token", extra={"accessor_id": accessor_id})
        return await self._http.call("DELETE", f"/acl/token/{segment}", bool)

    async def list_tokens(self) -> list[AclToken]:
        """List tokens; secret IDs are redacted unless the caller may read them."""
        return await self._http.call("GET", "/acl/tokens", list[AclToken])

    async def create_policy(self, request: AclPolicyRequest) -> AclPolicy:
        """Create a policy from ``request``."""
        require_non_empty(request.name, "name")
        return await self._http.call("PUT", "/acl/policy", AclPolicy, json_body=request.to_payload())

    async def read_policy(self, policy_id: str) -> AclPolicy | None:
        """Return a policy by ID, or None when it does not exist."""
        segment = path_segment(policy_id, "policy_id")
        return await self._http.call_optional("GET", f"/acl/policy/{segment}", AclPolicy)

    async def read_policy_by_name(self, name: str) -> AclPolicy | None:
        """Return a policy by name, or None when it does not exist."""
        segment = path_segment(name, "name")
        return await self._http.call_optional("GET", f"/acl/policy/name/{segment}", AclPolicy)

    async def update_policy(self, policy_id: str, request: AclPolicyRequest) -> AclPolicy:
        """Replace the name, rules and scope of an existing policy."""
        segment = path_segment(policy_id, "policy_id")
        return await self._http.call(
            "PUT",
            f"/acl/policy/{segment}",
            AclPolicy,
            json_body=request.to_payload(),
        )

    async def delete_policy(self, policy_id: str) -> bool:
        """Delete a policy by ID."""
        segment = path_segment(policy_id, "policy_id")
        logger.debug("Deleting ACL policy", extra={"policy_id": policy_id})
        return await self._http.call("DELETE", f"/acl/policy/{segment}", bool)

    async def list_policies(self) -> list[AclPolicy]:
        """List policies; Consul omits the rules text in this listing."""
        return await self._http.call("GET", "/acl/policies", list[AclPolicy])
