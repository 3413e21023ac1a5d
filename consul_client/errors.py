"""Exception hierarchy raised by the Consul client."""


class ConfigError(ValueError):
    """Raised when client configuration is malformed."""


class ConsulError(RuntimeError):
    """Base class for failures when communicating with a Consul agent."""


class TransportError(ConsulError):
    """The request never produced an HTTP response (refused, reset, timed out)."""


class DecodeError(ConsulError):
    """The response body did not match the expected schema."""


class ApiError(ConsulError):
    """Consul answered with a non-success HTTP status."""

    def __init__(self, message: str, *, status_code: int, body: str, method: str, path: str) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.body = body
        self.method = method
        self.path = path


class NotFoundError(ApiError):
    """Consul answered 404 for an endpoint where that is not a normal outcome."""
