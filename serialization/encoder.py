"""
Event Encoder — writes the headers and body of each event to a byte sink.

NATIVE   {k1=v1, k2=v2} <raw body bytes>\\n
CSV      "v1","v2","<body>"   (body column only when jsonBody is off)

The "columns" option limits and orders the headers written; "jsonBody"
lets missing columns be filled from a JSON-object body. One encoder owns one
sink and is not safe for concurrent writers.
"""

import csv
import logging
from typing import BinaryIO, Dict, Mapping, Optional

from collector.event import Event

from .config import FORMAT_CSV, FORMAT_NATIVE, SerializerConfig
from .projector import ColumnProjector, body_text

log = logging.getLogger("serialization.encoder")


class InvalidFormatError(OSError):
    """The configured output format is neither NATIVE nor CSV."""


def render_headers(headers: Mapping[str, Optional[str]]) -> str:
    """Textual form of a header map: {k1=v1, k2=v2}."""
    pairs = ", ".join(
        f"{key}={'null' if value is None else value}" for key, value in headers.items()
    )
    return "{" + pairs + "}"


class _SinkWriter:
    """Text facade over the byte sink for csv.writer; never closes the sink."""

    def __init__(self, out: BinaryIO, encoding: str = "utf-8"):
        self._out = out
        self._encoding = encoding

    def write(self, text: str) -> int:
        self._out.write(text.encode(self._encoding))
        return len(text)


class EventEncoder:
    """Serializer bound to a single output sink."""

    def __init__(self, out: BinaryIO, config: Optional[SerializerConfig] = None):
        log.debug("Starting up EventEncoder")
        self.out = out
        self.config = config or SerializerConfig()
        self.projector = ColumnProjector(self.config.column_list, self.config.json_body)
        self._csv_writer = None
        if self.config.columns:
            log.debug(f"Serializing events with columns: {self.config.columns}")
        log.debug(f"JSON body flag is {self.config.json_body}")

    @classmethod
    def build(cls, context: Mapping[str, str], out: BinaryIO) -> "EventEncoder":
        return cls(out, SerializerConfig.from_context(context))

    # ── Lifecycle ─────────────────────────────────────────────

    def supports_reopen(self) -> bool:
        return True

    def after_create(self) -> None:
        pass

    def after_reopen(self) -> None:
        pass

    def before_close(self) -> None:
        self.flush()

    def flush(self) -> None:
        self.out.flush()

    # ── Writing ───────────────────────────────────────────────

    def write(self, event: Event) -> None:
        headers = self.projector.project(event)
        fmt = self.config.format
        if fmt == FORMAT_NATIVE:
            self._write_native(headers, event)
        elif fmt == FORMAT_CSV:
            self._write_csv(headers, event)
        else:
            raise InvalidFormatError(f"Invalid format {fmt}")

    def _write_native(self, headers: Dict[str, Optional[str]], event: Event) -> None:
        self.out.write((render_headers(headers) + " ").encode("utf-8"))
        self.out.write(event.body)
        if self.config.append_newline:
            self.out.write(b"\n")

    def _write_csv(self, headers: Dict[str, Optional[str]], event: Event) -> None:
        if self._csv_writer is None:
            log.debug("Creating new csv writer")
            self._csv_writer = csv.writer(
                _SinkWriter(self.out),
                delimiter=self.config.delimiter,
                quotechar='"',
                quoting=csv.QUOTE_ALL,
                doublequote=True,
                lineterminator="\n",
            )

        values = ["" if value is None else value for value in headers.values()]
        if not self.config.json_body:
            values.append(body_text(event))

        self._csv_writer.writerow(values)
        self.out.flush()
