"""Event serialization — NATIVE and CSV line encodings for collected events."""

from .config import SerializerConfig
from .encoder import EventEncoder, InvalidFormatError, render_headers
from .projector import ColumnProjector

__all__ = [
    "ColumnProjector",
    "EventEncoder",
    "InvalidFormatError",
    "SerializerConfig",
    "render_headers",
]
