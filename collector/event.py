"""
Event — the unit handed from the HTTP source to the channel.

Headers keep insertion order; that order is what NATIVE and CSV output
reproduce when no column list is configured.

UTF-16 and UTF-32 follow the network convention: text without a byte order
mark is big-endian, and UTF-16 bodies are written big-endian behind a BOM.
"""

import codecs
from dataclasses import dataclass, field
from typing import Dict, Optional

SUPPORTED_CHARSETS = ("utf-8", "utf-16", "utf-32")
DEFAULT_CHARSET = "utf-8"

_BOMS = {
    "utf-16": (codecs.BOM_UTF16_BE, codecs.BOM_UTF16_LE),
    "utf-32": (codecs.BOM_UTF32_BE, codecs.BOM_UTF32_LE),
}


def decode_text(data: bytes, charset: str) -> str:
    """Decode request bytes; a missing BOM means big-endian."""
    boms = _BOMS.get(charset)
    if boms is None:
        return data.decode(charset)
    if data.startswith(boms):
        return data.decode(charset)
    return data.decode(f"{charset}-be")


def encode_text(text: str, charset: str) -> bytes:
    if charset == "utf-16":
        return codecs.BOM_UTF16_BE + text.encode("utf-16-be") if text else b""
    if charset == "utf-32":
        return text.encode("utf-32-be")
    return text.encode(charset)


@dataclass
class Event:
    """A header map plus an opaque body."""

    headers: Dict[str, Optional[str]] = field(default_factory=dict)
    body: bytes = b""
    charset: str = DEFAULT_CHARSET

    @classmethod
    def with_body(
        cls,
        body: str,
        headers: Optional[Dict[str, Optional[str]]] = None,
        charset: str = DEFAULT_CHARSET,
    ) -> "Event":
        return cls(headers=dict(headers or {}), body=encode_text(body, charset), charset=charset)
