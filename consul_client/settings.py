"""Environment-driven configuration for the Consul client."""

import math
import os
from dataclasses import dataclass

import httpx
from dotenv import load_dotenv

from consul_client.errors import ConfigError

DEFAULT_ADDRESS = "127.0.0.1:8500"
DEFAULT_TIMEOUT = 10.0

_TRUTHY = {"1", "true", "yes", "on"}
_FALSY = {"0", "false", "no", "off"}


def _parse_bool(name: str, raw: str, default: bool) -> bool:
    value = raw.strip().lower()
    if not value:
        return default
    if value in _TRUTHY:
        return True
    if value in _FALSY:
        return False
    raise ConfigError(f"{name} must be a boolean value (true/false).")


def _with_scheme(address: str, scheme: str) -> str:
    """Consul accepts bare ``host:port`` addresses; give them a scheme."""
    if "://" in address:
        return address
    return f"{scheme}://{address}"


@dataclass(frozen=True, slots=True)
class Config:
    """Connection settings shared by every request the client makes."""

    address: str = f"http://{DEFAULT_ADDRESS}"
    token: str | None = None
    datacenter: str | None = None
    timeout: float = DEFAULT_TIMEOUT
    verify: bool = True

    def __post_init__(self) -> None:
        address = self.address.strip()
        if not address:
            raise ConfigError("Consul address must be a non-empty string.")
        try:
            url = httpx.URL(_with_scheme(address, "http"))
        except httpx.InvalidURL as exc:
            raise ConfigError(f"Consul address {address!r} is not a valid URL.") from exc
        if url.scheme not in ("http", "https") or not url.host:
            raise ConfigError(f"Consul address {address!r} must be an http(s) URL with a host.")
        object.__setattr__(self, "address", _with_scheme(address, "http").rstrip("/"))

        if isinstance(self.timeout, bool) or not isinstance(self.timeout, (int, float)):
            raise ConfigError("Consul timeout must be a number of seconds.")
        if not math.isfinite(self.timeout) or self.timeout <= 0:
            raise ConfigError("Consul timeout must be a finite number greater than zero.")

    @property
    def base_url(self) -> str:
        """Scheme, host and port without a trailing slash."""
        return self.address

    @property
    def headers(self) -> dict[str, str]:
        """Default headers, carrying the ACL token when one is configured."""
        if self.token:
            return {"X-Consul-Token": self.token}
        return {}

    @classmethod
    def from_env(cls) -> "Config":
        """
        Load configuration from environment variables.

        Variable names follow the Consul CLI conventions (``CONSUL_HTTP_ADDR``,
        ``CONSUL_HTTP_TOKEN``, ``CONSUL_HTTP_SSL``...). Python-dotenv is used so
        developers can rely on a local .env file without exporting variables
        globally.
        """
        load_dotenv()

        use_ssl = _parse_bool("CONSUL_HTTP_SSL", os.getenv("CONSUL_HTTP_SSL", ""), False)
        verify = _parse_bool("CONSUL_HTTP_SSL_VERIFY", os.getenv("CONSUL_HTTP_SSL_VERIFY", ""), True)

        address = os.getenv("CONSUL_HTTP_ADDR", "").strip()
        if not address:
            host = os.getenv("CONSUL_HOST", "").strip() or "127.0.0.1"
            port_raw = os.getenv("CONSUL_PORT", "").strip() or "8500"
            try:
                port = int(port_raw)
            except ValueError as exc:
                raise ConfigError("CONSUL_PORT must be an integer.") from exc
            if not 0 < port < 65536:
                raise ConfigError("CONSUL_PORT must be between 1 and 65535.")
            scheme = os.getenv("CONSUL_SCHEME", "").strip().lower()
            if scheme and scheme not in ("http", "https"):
                raise ConfigError("CONSUL_SCHEME must be 'http' or 'https'.")
            address = f"{scheme or ('https' if use_ssl else 'http')}://{host}:{port}"
        else:
            address = _with_scheme(address, "https" if use_ssl else "http")

        timeout_raw = os.getenv("CONSUL_HTTP_TIMEOUT", "").strip() or str(DEFAULT_TIMEOUT)
        try:
            timeout = float(timeout_raw)
        except ValueError as exc:
            raise ConfigError("CONSUL_HTTP_TIMEOUT must be a numeric value.") from exc

        return cls(
            address=address,
            token=os.getenv("CONSUL_HTTP_TOKEN", "").strip() or None,
            datacenter=os.getenv("CONSUL_DATACENTER", "").strip() or None,
            timeout=timeout,
            verify=verify,
        )
