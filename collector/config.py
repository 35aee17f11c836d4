"""
Collector Configuration — Environment-based settings.

The core classes never read the environment themselves: they are built from
the context mappings returned by source_context() and serializer_context(),
which use the same option names as the collector's agent configuration.
"""

import os
from pathlib import Path
from typing import Dict

# ── Server ────────────────────────────────────────────────
COLLECTOR_HOST = os.environ.get("COLLECTOR_HOST", "127.0.0.1")
COLLECTOR_PORT = int(os.environ.get("COLLECTOR_PORT", "5140"))
HANDLER = os.environ.get("COLLECTOR_HANDLER", "json")

# ── Identity cookies ──────────────────────────────────────
COOKIE_DOMAIN = os.environ.get("COLLECTOR_COOKIE_DOMAIN", "")
COOKIE_PATH = os.environ.get("COLLECTOR_COOKIE_PATH", "/")
COOKIE_ID = os.environ.get("COLLECTOR_COOKIE_ID", "uuid_tt_dd")
SESSION_ID = os.environ.get("COLLECTOR_SESSION_ID", "dc_session_id")
WRITE_COOKIE = os.environ.get("COLLECTOR_WRITE_COOKIE", "true")

# ── Validation ────────────────────────────────────────────
VALIDATE_HEADERS = os.environ.get("COLLECTOR_VALIDATE_HEADERS", "")

# ── Channel / sink ────────────────────────────────────────
CHANNEL = os.environ.get("COLLECTOR_CHANNEL", "file").strip().lower()
SINK_PATH = Path(
    os.environ.get(
        "COLLECTOR_SINK_PATH",
        str(Path.home() / ".collector" / "events.log"),
    )
)

# ── Serializer ────────────────────────────────────────────
SERIALIZER_FORMAT = os.environ.get("COLLECTOR_SERIALIZER_FORMAT", "NATIVE")
SERIALIZER_COLUMNS = os.environ.get("COLLECTOR_SERIALIZER_COLUMNS", "")
SERIALIZER_DELIMITER = os.environ.get("COLLECTOR_SERIALIZER_DELIMITER", "\t")
SERIALIZER_JSON_BODY = os.environ.get("COLLECTOR_SERIALIZER_JSON_BODY", "false")
SERIALIZER_APPEND_NEWLINE = os.environ.get("COLLECTOR_SERIALIZER_APPEND_NEWLINE", "true")

# ── Logs ──────────────────────────────────────────────────
LOG_DIR = Path(
    os.environ.get("COLLECTOR_LOG_DIR", str(Path.home() / ".collector" / "logs"))
)

_TRUE_VALUES = ("true", "1", "yes", "on")


def parse_bool(value, default: bool = False) -> bool:
    """Interpret a context value as a boolean."""
    if value is None:
        return default
    if isinstance(value, bool):
        return value
    text = str(value).strip().lower()
    if not text:
        return default
    return text in _TRUE_VALUES


def source_context() -> Dict[str, str]:
    """Options for the HTTP source (handler, identity cookies, validation)."""
    return {
        "handler": HANDLER,
        "cookie.domain": COOKIE_DOMAIN,
        "cookie.path": COOKIE_PATH,
        "cookie.id": COOKIE_ID,
        "session.id": SESSION_ID,
        "write.cookie": WRITE_COOKIE,
        "validate.headers": VALIDATE_HEADERS,
    }


def serializer_context() -> Dict[str, str]:
    """Options for the event serializer bound to the sink."""
    context = {
        "format": SERIALIZER_FORMAT,
        "delimiter": SERIALIZER_DELIMITER,
        "jsonBody": SERIALIZER_JSON_BODY,
        "appendNewline": SERIALIZER_APPEND_NEWLINE,
    }
    if SERIALIZER_COLUMNS.strip():
        context["columns"] = SERIALIZER_COLUMNS
    return context
