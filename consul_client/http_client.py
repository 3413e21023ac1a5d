"""HTTP plumbing shared by every Consul API area."""

import json
import logging
from collections.abc import Collection, Mapping
from dataclasses import dataclass
from functools import lru_cache
from typing import Any, TypeVar
from urllib.parse import quote

import httpx
from pydantic import TypeAdapter, ValidationError

from consul_client.errors import ApiError, DecodeError, NotFoundError, TransportError
from consul_client.settings import Config

logger = logging.getLogger(__name__)

T = TypeVar("T")

USER_AGENT = "consul-client"
_SNIPPET_LIMIT = 512


def create_http_client(config: Config) -> httpx.AsyncClient:
    """Build an AsyncClient configured for the Consul agent described by ``config``."""
    return httpx.AsyncClient(
        base_url=config.base_url,
        timeout=config.timeout,
        headers={"User-Agent": USER_AGENT, **config.headers},
        verify=config.verify,
    )


def require_non_empty(value: str, field_name: str) -> str:
    """Reject blank request arguments; the value itself is returned unchanged."""
    if not value.strip():
        raise ValueError(f"{field_name} must be a non-empty string.")
    return value


def escape_segment(segment: str) -> str:
    """
    Percent-encode one path segment.

    Dot-only segments are encoded as well, otherwise httpx would resolve
    them and the request would reach a different endpoint.
    """
    if segment in (".", ".."):
        return segment.replace(".", "%2E")
    return quote(segment, safe="")


def path_segment(value: str, field_name: str) -> str:
    """Validate a single URL path segment (service name, node, id) and escape it."""
    return escape_segment(require_non_empty(value, field_name))


@lru_cache(maxsize=None)
def _adapter(result_type: Any) -> TypeAdapter:
    return TypeAdapter(result_type)


@dataclass(slots=True)
class ConsulHttp:
    """Sends one request to the agent and turns the reply into a value or an error."""

    _client: httpx.AsyncClient
    config: Config

    async def request(
        self,
        method: str,
        path: str,
        *,
        params: Mapping[str, Any] | None = None,
        json_body: Any = None,
        content: bytes | None = None,
        scoped: bool = False,
        datacenter: str | None = None,
        expected: Collection[int] = (),
    ) -> httpx.Response:
        """
        Send ``method /v1{path}`` and return the response.

        ``scoped`` endpoints receive the configured datacenter as ``dc``; an
        explicit ``datacenter`` overrides it for this call.
        Statuses listed in ``expected`` are handed back to the caller instead
        of being raised as :class:`ApiError`.
        """
        url = f"/v1{path}"
        query = {key: value for key, value in (params or {}).items() if value is not None}
        dc = datacenter or (self.config.datacenter if scoped else None)
        if dc and "dc" not in query:
            query["dc"] = dc

        def _transport_error(message: str, *, exc: Exception) -> TransportError:
            logger.error(
                message,
                extra={"method": method, "path": url},
                exc_info=exc,
            )
            return TransportError(message)

        logger.debug("Consul request", extra={"method": method, "path": url})
        try:
            response = await self._client.request(
                method,
                url,
                params=query or None,
                json=json_body,
                content=content,
            )
        except httpx.TimeoutException as exc:
            raise _transport_error(
                f"Consul request timed out ({method} {url}).",
                exc=exc,
            ) from exc
        except httpx.RequestError as exc:
            raise _transport_error(
                f"Consul request failed ({method} {url}): {exc!s}",
                exc=exc,
            ) from exc

        if response.is_success or response.status_code in expected:
            return response

        body = response.text
        snippet = body.strip()
        if len(snippet) > _SNIPPET_LIMIT:
            snippet = f"{snippet[:_SNIPPET_LIMIT]}..."
        logger.warning(
            "Consul responded with error",
            extra={
                "method": method,
                "path": url,
                "status_code": response.status_code,
                "content": snippet,
            },
        )
        error_cls = NotFoundError if response.status_code == 404 else ApiError
        raise error_cls(
            f"Consul API error ({response.status_code}) during {method} {url}: {snippet or 'no body provided.'}",
            status_code=response.status_code,
            body=body,
            method=method,
            path=url,
        )

    def decode(self, response: httpx.Response, result_type: type[T]) -> T:
        """Validate the JSON body of ``response`` against ``result_type``."""
        request = response.request
        try:
            data = response.json()
        except (json.JSONDecodeError, UnicodeDecodeError) as exc:
            logger.error(
                "Consul returned invalid JSON",
                extra={"method": request.method, "path": request.url.path},
            )
            raise DecodeError(
                f"Consul returned invalid JSON during {request.method} {request.url.path}."
            ) from exc

        try:
            return _adapter(result_type).validate_python(data)
        except ValidationError as exc:
            logger.error(
                "Consul response did not match the expected schema",
                extra={
                    "method": request.method,
                    "path": request.url.path,
                    "errors": exc.error_count(),
                },
            )
            raise DecodeError(
                f"Consul response for {request.method} {request.url.path} did not match the expected schema: {exc}"
            ) from exc

    async def call(self, method: str, path: str, result_type: type[T], **kwargs: Any) -> T:
        """Send a request and decode its body as ``result_type``."""
        response = await self.request(method, path, **kwargs)
        return self.decode(response, result_type)

    async def call_optional(self, method: str, path: str, result_type: type[T], **kwargs: Any) -> T | None:
        """Like :meth:`call`, but a 404 or an empty body yields ``None``."""
        response = await self.request(method, path, expected=(404,), **kwargs)
        if response.status_code == 404 or not response.content:
            return None
        return self.decode(response, result_type)

    async def send(self, method: str, path: str, **kwargs: Any) -> None:
        """Send a request whose reply carries no body worth decoding."""
        await self.request(method, path, **kwargs)
