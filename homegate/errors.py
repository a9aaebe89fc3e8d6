from typing import List, Tuple


class HomegateError(Exception):
    """Base class for every failure surfaced by the client."""

    layer = "unknown"

    @property
    def caller_fault(self) -> bool:
        return False


class AuthConfigurationError(HomegateError):
    """The shared secret or the basic-auth credentials are missing or malformed."""

    layer = "configuration"


class ClockError(HomegateError):
    layer = "environment"


class InvalidQueryError(HomegateError, ValueError):
    """A search query failed local validation before anything was sent."""

    layer = "query"

    def __init__(self, violations: List[Tuple[str, str]]):
        self.violations = list(violations)
        self.field = self.violations[0][0] if self.violations else None
        details = "; ".join(f"{field}: {msg}" for field, msg in self.violations)
        super().__init__(f"Invalid search query ({details})")

    @property
    def caller_fault(self) -> bool:
        return True


class TransportError(HomegateError):
    layer = "network"


class HttpError(HomegateError):
    layer = "remote"

    def __init__(self, status: int, body: bytes):
        self.status = status
        self.body = body
        preview = body[:200].decode("utf-8", errors="replace")
        super().__init__(f"Backend answered with HTTP {status}: {preview}")


class SchemaError(HomegateError):
    """The backend answered 2xx but the payload does not match the result model."""

    layer = "remote-schema"

    def __init__(self, path: str, message: str):
        self.path = path
        super().__init__(f"{path}: {message}")
