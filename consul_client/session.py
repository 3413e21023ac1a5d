"""Session endpoints (``/v1/session``)."""

import logging
from dataclasses import dataclass
from enum import Enum

from pydantic import Field

from consul_client.http_client import ConsulHttp, path_segment
from consul_client.models import ConsulModel, ConsulRequest

logger = logging.getLogger(__name__)


class SessionBehavior(str, Enum):
    """What happens to held locks when a session is invalidated."""

    RELEASE = "release"
    DELETE = "delete"


class SessionCreate(ConsulRequest):
    name: str | None = None
    node: str | None = None
    lock_delay: str | None = None
    behavior: SessionBehavior | None = None
    ttl: str | None = Field(default=None, alias="TTL")
    checks: list[str] | None = None
    node_checks: list[str] | None = None
    service_checks: list[dict[str, str]] | None = None


class SessionEntry(ConsulModel):
    id: str = Field(alias="ID")
    name: str = ""
    node: str = ""
    lock_delay: int = 0
    behavior: SessionBehavior | str = SessionBehavior.RELEASE
    ttl: str = Field(default="", alias="TTL")
    checks: list[str] | None = None
    node_checks: list[str] | None = None
    service_checks: list[dict[str, str]] | None = None
    create_index: int = 0
    modify_index: int = 0


class _SessionId(ConsulModel):
    id: str = Field(alias="ID")


@dataclass(slots=True)
class Session:
    """Session operations; ``datacenter`` overrides ``Config.datacenter`` per call."""

    _http: ConsulHttp

    async def create(self, request: SessionCreate | None = None, *, datacenter: str | None = None) -> str:
        """Create a session and return its ID."""
        payload = (request or SessionCreate()).to_payload()
        created = await self._http.call(
            "PUT",
            "/session/create",
            _SessionId,
            json_body=payload,
            scoped=True,
            datacenter=datacenter,
        )
        logger.debug("Session created", extra={"session_id": created.id})
        return created.id

    async def destroy(self, session_id: str, *, datacenter: str | None = None) -> bool:
        """Destroy a session; destroying an unknown session still returns True."""
        segment = path_segment(session_id, "session_id")
        logger.debug("Destroying session", extra={"session_id": session_id})
        return await self._http.call(
            "PUT",
            f"/session/destroy/{segment}",
            bool,
            scoped=True,
            datacenter=datacenter,
        )

    async def info(self, session_id: str, *, datacenter: str | None = None) -> SessionEntry | None:
        """Return one session, or None when it does not exist."""
        segment = path_segment(session_id, "session_id")
        entries = await self._http.call_optional(
            "GET",
            f"/session/info/{segment}",
            list[SessionEntry] | None,
            scoped=True,
            datacenter=datacenter,
        )
        return entries[0] if entries else None

    async def list_sessions(self, *, datacenter: str | None = None) -> list[SessionEntry]:
        """Return the active sessions of the datacenter."""
        return await self._http.call(
            "GET",
            "/session/list",
            list[SessionEntry],
            scoped=True,
            datacenter=datacenter,
        )

    async def list_for_node(self, node: str, *, datacenter: str | None = None) -> list[SessionEntry]:
        """Return the sessions that belong to ``node``."""
        segment = path_segment(node, "node")
        return await self._http.call(
            "GET",
            f"/session/node/{segment}",
            list[SessionEntry],
            scoped=True,
            datacenter=datacenter,
        )

    async def renew(self, session_id: str, *, datacenter: str | None = None) -> SessionEntry | None:
        """
        Extend a TTL session by its TTL.

        Returns None when the session has already been invalidated.
        """
        segment = path_segment(session_id, "session_id")
        entries = await self._http.call_optional(
            "PUT",
            f"/session/renew/{segment}",
            list[SessionEntry],
            scoped=True,
            datacenter=datacenter,
        )
        return entries[0] if entries else None
