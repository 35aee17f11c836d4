"""
Collector Server — FastAPI HTTP source.

Accepts JSON event batches on POST /, stamps identity metadata, validates,
and hands surviving events to the configured channel. Identity cookies are
returned as Set-Cookie headers.
"""

import asyncio
import logging
import time
from typing import Optional

from fastapi import FastAPI, HTTPException, Request
from fastapi.responses import JSONResponse

from . import config as cfg
from .channel import MemoryChannel, SerializingChannel
from .exceptions import BadRequestError, ChannelError
from .normalizer import EventNormalizer

log = logging.getLogger("collector.server")

app = FastAPI(
    title="Clickstream Collector",
    version="1.0.0",
    docs_url=None,
    redoc_url=None,
)

# ── Shared state ──────────────────────────────────────────

_normalizer: Optional[EventNormalizer] = None
_channel = None
_start_time: float = time.time()
_stats = {
    "requests": 0,
    "bad_requests": 0,
    "events_received": 0,
    "events_accepted": 0,
    "events_rejected": 0,
    "channel_errors": 0,
}


def configure(normalizer: Optional[EventNormalizer] = None, channel=None) -> None:
    """Install the normalizer/channel used by the endpoints."""
    global _normalizer, _channel
    if normalizer is not None:
        _normalizer = normalizer
    if channel is not None:
        _channel = channel


def get_normalizer() -> EventNormalizer:
    global _normalizer
    if _normalizer is None:
        _normalizer = EventNormalizer.from_context(cfg.source_context())
    return _normalizer


def get_channel():
    global _channel
    if _channel is None:
        if cfg.CHANNEL == "memory":
            _channel = MemoryChannel()
        else:
            _channel = SerializingChannel.open(cfg.SINK_PATH, cfg.serializer_context())
    return _channel


def request_charset(content_type: Optional[str]) -> Optional[str]:
    """charset parameter of a Content-Type header, if any."""
    if not content_type:
        return None
    for param in content_type.split(";")[1:]:
        key, _, value = param.partition("=")
        if key.strip().lower() == "charset":
            return value.strip().strip('"') or None
    return None


# ── Lifecycle ─────────────────────────────────────────────

@app.on_event("startup")
async def startup():
    global _start_time
    _start_time = time.time()
    get_normalizer()
    channel = get_channel()
    log.info(f"Collector started — port {cfg.COLLECTOR_PORT}, channel: {channel.kind}")


@app.on_event("shutdown")
async def shutdown():
    global _channel
    if _channel is not None:
        _channel.close()
        _channel = None
    log.info("Collector shutdown")


# ── Ingestion endpoint ────────────────────────────────────

@app.post("/")
async def receive_events(request: Request):
    _stats["requests"] += 1
    body = await request.body()
    charset = request_charset(request.headers.get("content-type"))

    try:
        batch = get_normalizer().normalize(
            body,
            charset=charset,
            request_headers=request.headers,
            cookies=request.cookies,
        )
    except BadRequestError as exc:
        _stats["bad_requests"] += 1
        log.warning(f"Bad request: {exc}")
        raise HTTPException(400, str(exc))

    try:
        # file sinks block; keep them off the event loop
        await asyncio.to_thread(get_channel().put_all, batch.events)
    except ChannelError as exc:
        _stats["channel_errors"] += 1
        log.error(f"Channel error: {exc}")
        raise HTTPException(503, str(exc))

    _stats["events_received"] += batch.received
    _stats["events_accepted"] += batch.accepted
    _stats["events_rejected"] += batch.rejected

    response = JSONResponse({
        "status": "ok",
        "received": batch.received,
        "accepted": batch.accepted,
        "rejected": batch.rejected,
    })
    for directive in batch.cookies:
        response.set_cookie(**directive.set_cookie_kwargs())
    return response


# ── Health / Status ───────────────────────────────────────

@app.get("/health")
async def health():
    return {
        "status": "healthy",
        "channel": _channel.kind if _channel is not None else None,
        "uptime_s": int(time.time() - _start_time),
    }


@app.get("/status")
async def status():
    return {
        "uptime_s": int(time.time() - _start_time),
        "stats": _stats,
    }
