"""Key/value store endpoints (``/v1/kv``)."""

import base64
import logging
from dataclasses import dataclass
from typing import Any

from pydantic import field_validator

from consul_client.http_client import ConsulHttp, escape_segment, require_non_empty
from consul_client.models import ConsulModel

logger = logging.getLogger(__name__)


class KVPair(ConsulModel):
    """A stored entry. ``value`` holds the raw bytes (Consul sends them base64-encoded)."""

    key: str
    value: bytes | None = None
    flags: int = 0
    session: str | None = None
    lock_index: int = 0
    create_index: int = 0
    modify_index: int = 0

    @field_validator("value", mode="before")
    @classmethod
    def _decode_value(cls, value: Any) -> Any:
        if isinstance(value, str):
            return base64.b64decode(value, validate=True)
        return value


def _key_path(key: str, *, allow_empty: bool = False) -> str:
    if not allow_empty:
        require_non_empty(key, "key")
    cleaned = key.lstrip("/")
    if not cleaned and not allow_empty:
        raise ValueError("key must name an entry, not the root.")
    return "/kv/" + "/".join(escape_segment(segment) for segment in cleaned.split("/"))


def _as_bytes(value: bytes | str) -> bytes:
    if isinstance(value, str):
        return value.encode("utf-8")
    return bytes(value)


@dataclass(slots=True)
class KV:
    """
    Key/value store operations.

    Every method accepts ``datacenter`` to address another datacenter than
    the one in ``Config`` for that call only.
    """

    _http: ConsulHttp

    async def get(self, key: str, *, datacenter: str | None = None) -> KVPair | None:
        """Return the entry stored at ``key``, or None when it does not exist."""
        path = _key_path(key)
        logger.debug("Reading key", extra={"key": key})
        pairs = await self._http.call_optional(
            "GET",
            path,
            list[KVPair],
            scoped=True,
            datacenter=datacenter,
        )
        if not pairs:
            return None
        return pairs[0]

    async def get_value(self, key: str, *, datacenter: str | None = None) -> bytes | None:
        """Return only the raw value of ``key``; a key stored without a value gives b""."""
        pair = await self.get(key, datacenter=datacenter)
        if pair is None:
            return None
        return pair.value or b""

    async def list_entries(self, prefix: str = "", *, datacenter: str | None = None) -> list[KVPair]:
        """Return every entry whose key starts with ``prefix``."""
        path = _key_path(prefix, allow_empty=True)
        pairs = await self._http.call_optional(
            "GET",
            path,
            list[KVPair],
            params={"recurse": "true"},
            scoped=True,
            datacenter=datacenter,
        )
        return pairs or []

    async def keys(
        self,
        prefix: str = "",
        separator: str | None = None,
        *,
        datacenter: str | None = None,
    ) -> list[str]:
        """
        Return the keys under ``prefix`` without their values.

        With a ``separator`` Consul stops at the first occurrence after the
        prefix, which lists one "directory" level.
        """
        path = _key_path(prefix, allow_empty=True)
        keys = await self._http.call_optional(
            "GET",
            path,
            list[str],
            params={"keys": "true", "separator": separator},
            scoped=True,
            datacenter=datacenter,
        )
        return keys or []

    async def put(
        self,
        key: str,
        value: bytes | str,
        *,
        flags: int | None = None,
        cas: int | None = None,
        acquire: str | None = None,
        release: str | None = None,
        datacenter: str | None = None,
    ) -> bool:
        """
        Create or update ``key``.

        Returns False when a ``cas`` index or lock operation did not apply.
        """
        path = _key_path(key)
        logger.debug("Writing key", extra={"key": key, "cas": cas})
        params = {
            "flags": flags,
            "cas": cas,
            "acquire": acquire,
            "release": release,
        }
        return await self._http.call(
            "PUT",
            path,
            bool,
            params=params,
            content=_as_bytes(value),
            scoped=True,
            datacenter=datacenter,
        )

    async def acquire(
        self,
        key: str,
        session_id: str,
        value: bytes | str = b"",
        *,
        datacenter: str | None = None,
    ) -> bool:
        """Take the lock on ``key`` for ``session_id``; False if another session holds it."""
        session = require_non_empty(session_id, "session_id")
        return await self.put(key, value, acquire=session, datacenter=datacenter)

    async def release(
        self,
        key: str,
        session_id: str,
        value: bytes | str = b"",
        *,
        datacenter: str | None = None,
    ) -> bool:
        """Give up the lock ``session_id`` holds on ``key``."""
        session = require_non_empty(session_id, "session_id")
        return await self.put(key, value, release=session, datacenter=datacenter)

    async def delete(
        self,
        key: str,
        *,
        recurse: bool = False,
        cas: int | None = None,
        datacenter: str | None = None,
    ) -> bool:
        """Delete ``key``, or every key under it with ``recurse``."""
        path = _key_path(key)
        logger.debug("Deleting key", extra={"key": key, "recurse": recurse})
        params = {"recurse": "true" if recurse else None, "cas": cas}
        return await self._http.call(
            "DELETE",
            path,
            bool,
            params=params,
            scoped=True,
            datacenter=datacenter,
        )
