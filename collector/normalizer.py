"""
Event Normalizer — raw request body → validated events.

Ties the JSON handler, identity assignment and header validation together.
Metadata attached to every event:

    Date-Time, User-Agent, Referer, X-Forwarded-For,
    <durable id name>, <session id name>

Metadata wins over identically named headers sent by the client.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, List, Mapping, Optional, Tuple

from .event import Event
from .exceptions import CollectorError
from .handlers import JSONHandler, SourceHandler, get_handler
from .identity import (
    CookieDirective,
    IdentityAssigner,
    IdentityCookieConfig,
    date_stamp,
)
from .validator import HeaderValidator, ValidationRule

log = logging.getLogger("collector.normalizer")

HANDLER = "handler"
USER_AGENT = "User-Agent"
REFERER = "Referer"
X_FORWARDED_FOR = "X-Forwarded-For"
DATE_TIME = "Date-Time"
LOOPBACK_IP = "127.0.0.1"
MISSING_VALUE = "-"


@dataclass
class NormalizedBatch:
    """Outcome of normalizing one request."""

    events: List[Event] = field(default_factory=list)
    cookies: List[CookieDirective] = field(default_factory=list)
    received: int = 0
    rejected: int = 0

    @property
    def accepted(self) -> int:
        return len(self.events)


def _header(headers: Optional[Mapping[str, str]], name: str) -> Optional[str]:
    if not headers:
        return None
    value = headers.get(name)
    if value is not None:
        return value
    wanted = name.lower()
    for key, candidate in headers.items():
        if key.lower() == wanted:
            return candidate
    return None


def client_ip(forwarded_for: Optional[str]) -> str:
    """First hop of X-Forwarded-For, loopback when unknown."""
    if not forwarded_for:
        return LOOPBACK_IP
    try:
        first = forwarded_for.split(",")[0].strip()
    except AttributeError:
        log.warning(f"Cannot parse {X_FORWARDED_FOR} value {forwarded_for!r}")
        return LOOPBACK_IP
    return first or LOOPBACK_IP


class EventNormalizer:
    """Decode a batch, stamp identity metadata, drop invalid events."""

    def __init__(
        self,
        identity: Optional[IdentityAssigner] = None,
        validator: Optional[HeaderValidator] = None,
        handler: Optional[SourceHandler] = None,
    ):
        self.identity = identity or IdentityAssigner()
        self.validator = validator or HeaderValidator()
        self.handler = handler or JSONHandler()

    @classmethod
    def from_context(cls, context: Mapping[str, str]) -> "EventNormalizer":
        name = context.get(HANDLER) or "json"
        handler = get_handler(name)
        if handler is None:
            raise CollectorError(f"Unknown request handler: {name}")
        return cls(
            handler=handler,
            identity=IdentityAssigner(IdentityCookieConfig.from_context(context)),
            validator=HeaderValidator(ValidationRule.from_context(context)),
        )

    def request_metadata(
        self,
        request_headers: Optional[Mapping[str, str]],
        cookies: Optional[Mapping[str, str]],
        now: datetime,
    ) -> Tuple[Dict[str, str], List[CookieDirective]]:
        config = self.identity.config
        directives: List[CookieDirective] = []

        cid, cid_cookie = self.identity.resolve_durable_id(cookies, now)
        sid, sid_cookie = self.identity.resolve_session_id(cookies, now)
        for directive in (cid_cookie, sid_cookie):
            if directive is not None:
                directives.append(directive)

        metadata = {
            DATE_TIME: date_stamp(now),
            USER_AGENT: _header(request_headers, USER_AGENT) or MISSING_VALUE,
            REFERER: _header(request_headers, REFERER) or MISSING_VALUE,
            X_FORWARDED_FOR: client_ip(_header(request_headers, X_FORWARDED_FOR)),
            config.cookie_id: cid,
            config.session_id: sid,
        }
        return metadata, directives

    def normalize(
        self,
        body: bytes,
        charset: Optional[str] = None,
        request_headers: Optional[Mapping[str, str]] = None,
        cookies: Optional[Mapping[str, str]] = None,
        now: Optional[datetime] = None,
    ) -> NormalizedBatch:
        # Parse first: a bad request must not mint identities
        records = self.handler.decode(body, charset)

        now = now or datetime.now().astimezone()
        metadata, directives = self.request_metadata(request_headers, cookies, now)

        batch = NormalizedBatch(cookies=directives, received=len(records))
        for event in self.handler.to_events(records, metadata):
            if self.validator.validate(event):
                batch.events.append(event)
            else:
                batch.rejected += 1

        if batch.rejected:
            log.info(f"Dropped {batch.rejected} of {batch.received} events failing validation")
        return batch
