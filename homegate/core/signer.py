"""Authentication headers for the homegate backend.

The backend accepts a request only when it carries the basic-auth credentials
of the Android app and an ``X-App-Id`` derived from a secret baked into that
app. The derivation is versioned: the server is the sole judge of whether a
value is right, so each scheme is pinned by a recorded fixture in the tests
and can be swapped without touching the query or result models.
"""
import base64
import hashlib
import hmac
import math
from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Callable, Dict

from homegate import config
from homegate.errors import AuthConfigurationError, ClockError
from homegate.utils.logger import logger

Clock = Callable[[], datetime]


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class RequestContext:
    timestamp: datetime | None = None
    method: str = "POST"
    path: str = "/search/listings"
    body: bytes = b""


def _unix_seconds(timestamp: datetime) -> int:
    # naive datetimes are taken as UTC
    if timestamp.tzinfo is None:
        timestamp = timestamp.replace(tzinfo=timezone.utc)
    return math.floor(timestamp.timestamp())


class SigningScheme(ABC):
    version: str

    def __init__(self, user_agent: str = config.USER_AGENT, app_version: str = config.APP_VERSION):
        self.user_agent = user_agent
        self.app_version = app_version

    @abstractmethod
    def app_id(self, secret: bytes, context: RequestContext) -> str:
        """Return the X-App-Id value for a context whose timestamp is set."""


class TruncatedHmacScheme(SigningScheme):
    """Scheme of the Android client 12.6.0.

    HMAC-SHA256 over user agent + app version + minute window, reduced the way
    HOTP does it: the low nibble of the last digest byte selects four bytes,
    read as a signed big-endian int and rendered in decimal. Unlike HOTP the
    sign bit is not masked, so negative ids are valid.
    """

    version = "hotp-sha256-v1"

    def message(self, timestamp: datetime) -> str:
        window = math.ceil(_unix_seconds(timestamp) / 60)
        return f"{self.user_agent}{self.app_version}{window}"

    def app_id(self, secret: bytes, context: RequestContext) -> str:
        digest = hmac.new(secret, self.message(context.timestamp).encode("utf-8"), hashlib.sha256).digest()
        offset = digest[-1] & 0x0F
        return str(int.from_bytes(digest[offset:offset + 4], "big", signed=True))


class Base64HmacScheme(SigningScheme):
    """Request-bound variant: base64 of the full HMAC-SHA256 over millis, method, path and body hash."""

    version = "hmac-sha256-b64-v1"

    def message(self, context: RequestContext) -> str:
        millis = _unix_seconds(context.timestamp) * 1000 + context.timestamp.microsecond // 1000
        body_hash = hashlib.sha256(context.body).hexdigest()
        return f"{millis}\n{context.method.upper()}\n{context.path}\n{body_hash}"

    def app_id(self, secret: bytes, context: RequestContext) -> str:
        digest = hmac.new(secret, self.message(context).encode("utf-8"), hashlib.sha256).digest()
        return base64.b64encode(digest).decode("ascii")


SCHEMES: Dict[str, Callable[..., SigningScheme]] = {
    TruncatedHmacScheme.version: TruncatedHmacScheme,
    Base64HmacScheme.version: Base64HmacScheme,
}


def scheme_for(version: str, user_agent: str = config.USER_AGENT,
               app_version: str = config.APP_VERSION) -> SigningScheme:
    factory = SCHEMES.get(version)
    if factory is None:
        raise AuthConfigurationError(
            f"Unknown signing scheme {version!r}, known: {', '.join(sorted(SCHEMES))}")
    return factory(user_agent, app_version)


def _check_secret(secret) -> bytes:
    if isinstance(secret, str):
        secret = secret.encode("utf-8")
    if not isinstance(secret, (bytes, bytearray)):
        raise AuthConfigurationError(f"App secret must be bytes, got {type(secret).__name__}")
    if not secret:
        raise AuthConfigurationError("App secret is empty")
    return bytes(secret)


class Signer:
    """Builds the authentication headers for one request.

    Holds only immutable configuration, so one instance can be shared between
    threads. The clock is read once per ``sign`` call.
    """

    def __init__(self,
                 secret: bytes = config.APP_SECRET,
                 username: str = config.API_USERNAME,
                 password: str = config.API_PASSWORD,
                 scheme: SigningScheme | None = None,
                 clock: Clock = utc_now):
        self.secret = _check_secret(secret)
        if not username or not password:
            raise AuthConfigurationError("API username and password must both be set")
        self._basic = base64.b64encode(f"{username}:{password}".encode("utf-8")).decode("ascii")
        self.scheme = scheme or TruncatedHmacScheme()
        self.clock = clock

    @classmethod
    def from_config(cls, cfg: "config.HomegateConfig", clock: Clock = utc_now) -> "Signer":
        scheme = scheme_for(cfg.signing_scheme, cfg.user_agent, cfg.app_version)
        return cls(secret=cfg.secret, username=cfg.username, password=cfg.password,
                   scheme=scheme, clock=clock)

    def now(self) -> datetime:
        try:
            timestamp = self.clock()
        except (OSError, OverflowError, ValueError) as e:
            raise ClockError(f"System clock unavailable: {e}") from e
        if not isinstance(timestamp, datetime):
            raise ClockError(f"Clock returned {type(timestamp).__name__}, expected datetime")
        return timestamp

    def sign(self, context: RequestContext | None = None) -> Dict[str, str]:
        context = context or RequestContext()
        if context.timestamp is None:
            context = RequestContext(self.now(), context.method, context.path, context.body)
        app_id = self.scheme.app_id(self.secret, context)
        logger.debug(f"Signed {context.method} {context.path} with {self.scheme.version}")
        return {
            "Authorization": f"Basic {self._basic}",
            "X-App-Id": app_id,
            "X-App-Version": self.scheme.app_version,
            "User-Agent": self.scheme.user_agent,
        }
