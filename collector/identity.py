"""
Identity Assignment — durable client id and rolling session id from cookies.

Durable id:  "<random 64-bit>_<yyyyMMdd HH:mm:ss>", minted once, kept while
             the cookie is present.
Session id:  "<epoch millis>[_<suffix>]", re-minted once the embedded
             timestamp is older than the idle window.

Nothing in here raises: a cookie that cannot be understood is replaced.
"""

import logging
import uuid
from dataclasses import dataclass
from datetime import datetime
from typing import Mapping, Optional, Tuple

from .config import parse_bool

log = logging.getLogger("collector.identity")

DATE_TIME_FORMAT = "%Y%m%d %H:%M:%S"
SECONDS_PER_YEAR = 60 * 60 * 24 * 365
SECONDS_HALF_HOUR = 60 * 30
INT64_MIN = -(2 ** 63)
INT64_MAX = 2 ** 63 - 1

DEFAULT_COOKIE_ID = "uuid_tt_dd"
DEFAULT_SESSION_ID = "dc_session_id"
DEFAULT_PATH = "/"
DEFAULT_DOMAIN = ""


@dataclass(frozen=True)
class CookieDirective:
    """A Set-Cookie instruction for the response."""

    name: str
    value: str
    max_age: Optional[int] = None
    path: Optional[str] = None
    domain: Optional[str] = None
    secure: Optional[bool] = None
    version: Optional[int] = None

    def set_cookie_kwargs(self) -> dict:
        """Keyword arguments for starlette's Response.set_cookie()."""
        kwargs = {"key": self.name, "value": self.value}
        if self.max_age is not None:
            kwargs["max_age"] = self.max_age
        if self.path is not None:
            kwargs["path"] = self.path
        # An empty domain means host-only: no Domain attribute at all
        if self.domain:
            kwargs["domain"] = self.domain
        if self.secure is not None:
            kwargs["secure"] = self.secure
        return kwargs


@dataclass(frozen=True)
class IdentityCookieConfig:
    """Cookie names/attributes per identity dimension."""

    cookie_id: str = DEFAULT_COOKIE_ID
    session_id: str = DEFAULT_SESSION_ID
    path: str = DEFAULT_PATH
    domain: str = DEFAULT_DOMAIN
    write_cookie: bool = True
    session_idle_seconds: int = SECONDS_HALF_HOUR

    @classmethod
    def from_context(cls, context: Mapping[str, str]) -> "IdentityCookieConfig":
        return cls(
            cookie_id=context.get("cookie.id") or DEFAULT_COOKIE_ID,
            session_id=context.get("session.id") or DEFAULT_SESSION_ID,
            path=context.get("cookie.path") or DEFAULT_PATH,
            domain=context.get("cookie.domain") or DEFAULT_DOMAIN,
            write_cookie=parse_bool(context.get("write.cookie"), True),
        )


def date_stamp(now: datetime) -> str:
    return now.strftime(DATE_TIME_FORMAT)


def epoch_millis(now: datetime) -> int:
    return int(now.timestamp() * 1000)


def find_cookie(cookies: Optional[Mapping[str, str]], name: str) -> Optional[str]:
    """Case-insensitive cookie lookup."""
    if not cookies:
        return None
    wanted = name.lower()
    for key, value in cookies.items():
        if key.lower() == wanted:
            return value
    return None


def _random_high_entropy() -> str:
    # Most significant 64 bits of a random UUID, as a signed long
    bits = uuid.uuid4().int >> 64
    if bits >= 1 << 63:
        bits -= 1 << 64
    return str(bits)


class IdentityAssigner:
    """Resolves the durable and session identifiers of one request."""

    def __init__(self, config: Optional[IdentityCookieConfig] = None):
        self.config = config or IdentityCookieConfig()

    def resolve_durable_id(
        self, cookies: Optional[Mapping[str, str]], now: datetime
    ) -> Tuple[str, Optional[CookieDirective]]:
        cid = find_cookie(cookies, self.config.cookie_id)
        if cid:
            return cid, None

        cid = f"{_random_high_entropy()}_{date_stamp(now)}"
        log.debug(f"Minted durable id {self.config.cookie_id}={cid}")
        return cid, self._directive(self.config.cookie_id, cid, SECONDS_PER_YEAR)

    def resolve_session_id(
        self, cookies: Optional[Mapping[str, str]], now: datetime
    ) -> Tuple[str, Optional[CookieDirective]]:
        now_ms = epoch_millis(now)
        sid = find_cookie(cookies, self.config.session_id)
        if not sid:
            return self._new_session(now_ms)

        try:
            started_ms = int(sid.split("_", 1)[0])
            if not INT64_MIN <= started_ms <= INT64_MAX:
                raise ValueError(f"{started_ms} does not fit in 64 bits")
        except ValueError:
            log.warning(f"Unparsable session cookie {self.config.session_id}={sid!r}, re-minting")
            return self._new_session(now_ms)

        if now_ms - started_ms > self.config.session_idle_seconds * 1000:
            log.debug(f"Session {sid} expired")
            return self._new_session(now_ms)
        return sid, None

    def _new_session(self, now_ms: int) -> Tuple[str, Optional[CookieDirective]]:
        sid = str(now_ms)
        return sid, self._directive(self.config.session_id, sid, SECONDS_HALF_HOUR)

    def _directive(self, name: str, value: str, max_age: int) -> Optional[CookieDirective]:
        if not self.config.write_cookie:
            return None
        return CookieDirective(
            name=name,
            value=value,
            max_age=max_age,
            path=self.config.path,
            domain=self.config.domain,
        )
