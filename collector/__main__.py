"""
Collector CLI — HTTP event source with cookie-based identity.

Usage:
    python3 -m collector start      Start the collector server (foreground)
    python3 -m collector config     Show the resolved configuration
    python3 -m collector test       Send a sample batch to a running server
    python3 -m collector encode     Encode a JSON batch from stdin to stdout
"""

import asyncio
import json
import logging
import sys

from . import config as cfg

log = logging.getLogger("collector")

SAMPLE_BATCH = [
    {"headers": {"page": "home", "action": "view"}, "body": "sample event 1"},
    {"headers": {"page": "cart", "action": "click"}, "body": "sample event 2"},
]


async def cmd_start():
    """Start the collector server."""
    import uvicorn
    from .logging_config import setup_logging

    setup_logging("collector")

    print("Clickstream Collector v1.0.0")
    print(f"  Host: {cfg.COLLECTOR_HOST}:{cfg.COLLECTOR_PORT}")
    print(f"  Channel: {cfg.CHANNEL}")
    if cfg.CHANNEL != "memory":
        print(f"  Sink: {cfg.SINK_PATH} ({cfg.SERIALIZER_FORMAT})")
    print("  Endpoint: POST /")
    print()

    config = uvicorn.Config(
        "collector.server:app",
        host=cfg.COLLECTOR_HOST,
        port=cfg.COLLECTOR_PORT,
        log_level="info",
    )
    server = uvicorn.Server(config)
    await server.serve()


def cmd_config():
    """Print the resolved source and serializer options."""
    from .handlers import list_handlers

    print("Source")
    print("=" * 55)
    for key, value in cfg.source_context().items():
        print(f"  {key:18s} {value!r}")
    print()
    print("Serializer")
    print("=" * 55)
    for key, value in cfg.serializer_context().items():
        print(f"  {key:18s} {value!r}")
    print()
    print(f"Handlers: {', '.join(sorted(list_handlers()))}")
    print(f"Channel: {cfg.CHANNEL}  Sink: {cfg.SINK_PATH}")
    print(f"Endpoint: POST http://{cfg.COLLECTOR_HOST}:{cfg.COLLECTOR_PORT}/")


async def cmd_test():
    """Send a sample batch to the running server."""
    import httpx

    base_url = f"http://{cfg.COLLECTOR_HOST}:{cfg.COLLECTOR_PORT}"

    async with httpx.AsyncClient(timeout=10) as client:
        try:
            resp = await client.get(f"{base_url}/health")
            data = resp.json()
            print(f"Server: {data.get('status', 'unknown')} (uptime: {data.get('uptime_s', 0)}s)")
        except httpx.HTTPError as e:
            print(f"Server not reachable at {base_url}: {e}")
            print("Start the server first: python3 -m collector start")
            return

        resp = await client.post(
            f"{base_url}/",
            content=json.dumps(SAMPLE_BATCH).encode("utf-8"),
            headers={"Content-Type": "application/json; charset=UTF-8"},
        )
        print(f"  POST / -> {resp.status_code} {resp.text}")
        for name, value in resp.cookies.items():
            print(f"  cookie {name}={value}")


def cmd_encode():
    """Normalize a JSON batch from stdin and write encoded events to stdout."""
    from .exceptions import BadRequestError
    from .normalizer import EventNormalizer
    from serialization import EventEncoder

    context = dict(cfg.source_context())
    context["write.cookie"] = "false"
    normalizer = EventNormalizer.from_context(context)

    try:
        batch = normalizer.normalize(sys.stdin.buffer.read())
    except BadRequestError as exc:
        log.error(f"Cannot encode input: {exc}")
        print(f"Bad input: {exc}", file=sys.stderr)
        sys.exit(2)

    encoder = EventEncoder.build(cfg.serializer_context(), sys.stdout.buffer)
    encoder.after_create()
    for event in batch.events:
        encoder.write(event)
    encoder.before_close()
    print(
        f"encoded {batch.accepted} of {batch.received} events ({batch.rejected} rejected)",
        file=sys.stderr,
    )


def main():
    if len(sys.argv) < 2:
        print("Usage: python3 -m collector <command>")
        print()
        print("Commands:")
        print("  start    Start collector server (foreground)")
        print("  config   Show resolved configuration")
        print("  test     Send a sample batch to a running server")
        print("  encode   Encode a JSON batch from stdin to stdout")
        sys.exit(1)

    cmd = sys.argv[1]
    commands = {
        "start": cmd_start,
        "config": cmd_config,
        "test": cmd_test,
        "encode": cmd_encode,
    }

    handler = commands.get(cmd)
    if not handler:
        print(f"Unknown command: {cmd}")
        sys.exit(1)

    import inspect
    if inspect.iscoroutinefunction(handler):
        asyncio.run(handler())
    else:
        handler()


if __name__ == "__main__":
    main()
