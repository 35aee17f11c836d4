"""
JSON Handler — Accepts an array of {"headers": {...}, "body": "..."} objects.

    [{"headers": {"a": "b", "c": "d"}, "body": "random_body"},
     {"headers": {"e": "f"}, "body": "random_body2"}]

becomes two events whose bodies are "random_body" / "random_body2" encoded
in the request charset (UTF-8 unless the Content-Type says UTF-16/UTF-32).
Any parse failure is a client error.
"""

import json
import logging
from typing import Any, Dict, List, Mapping, Optional

from ..event import DEFAULT_CHARSET, SUPPORTED_CHARSETS, Event, decode_text, encode_text
from ..exceptions import BadRequestError, UnsupportedEncodingError
from .base import JSONRecord, SourceHandler

log = logging.getLogger("collector.handlers.json")


class _NumberText(str):
    """A JSON number kept as the literal text the client sent."""


def _header_value(key: str, value: Any) -> str:
    if isinstance(value, str):
        return str(value)
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float):
        return json.dumps(value)
    raise BadRequestError(f"Header {key!r} must be a string, got {type(value).__name__}.")


def _parse_headers(index: int, raw: Any) -> Dict[str, str]:
    if not isinstance(raw, dict):
        raise BadRequestError(f"Element {index}: headers must be an object.")
    headers: Dict[str, str] = {}
    for key, value in raw.items():
        if value is None:
            continue
        headers[key] = _header_value(key, value)
    return headers


class JSONHandler(SourceHandler):

    @property
    def name(self) -> str:
        return "json"

    def resolve_charset(self, charset: Optional[str]) -> str:
        if not charset:
            log.debug("Charset is not set, default charset of UTF-8 will be used.")
            return DEFAULT_CHARSET
        normalized = charset.strip().strip('"').lower()
        if normalized not in SUPPORTED_CHARSETS:
            log.error(
                f"Unsupported character set in request {charset}. "
                "JSON handler supports UTF-8, UTF-16 and UTF-32 only."
            )
            raise UnsupportedEncodingError("JSON handler supports UTF-8, UTF-16 and UTF-32 only.")
        return normalized

    def decode(self, body: bytes, charset: Optional[str]) -> List[JSONRecord]:
        codec = self.resolve_charset(charset)
        try:
            payload = json.loads(
                decode_text(body, codec), parse_int=_NumberText, parse_float=_NumberText
            )
        except UnicodeDecodeError as exc:
            raise BadRequestError(f"Request body is not valid {codec}.") from exc
        except json.JSONDecodeError as exc:
            raise BadRequestError("Request has invalid JSON Syntax.") from exc
        except RecursionError as exc:
            raise BadRequestError("Request JSON is nested too deeply.") from exc

        if not isinstance(payload, list):
            raise BadRequestError("Request body must be a JSON array of events.")

        records: List[JSONRecord] = []
        for index, item in enumerate(payload):
            if not isinstance(item, dict):
                raise BadRequestError(f"Element {index} must be an object.")
            text = item.get("body", "")
            if text is None:
                text = ""
            if not isinstance(text, str) or isinstance(text, _NumberText):
                raise BadRequestError(f"Element {index}: body must be a string.")
            raw_headers = item.get("headers")
            headers = _parse_headers(index, raw_headers) if raw_headers is not None else None
            records.append(JSONRecord(headers=headers, body=text, charset=codec))
        return records

    def to_events(
        self, records: List[JSONRecord], metadata: Mapping[str, str]
    ) -> List[Event]:
        events: List[Event] = []
        for record in records:
            if record.headers is None:
                log.debug("Discarding element without headers")
                continue
            headers = dict(record.headers)
            headers.update(metadata)
            events.append(
                Event(
                    headers=headers,
                    body=encode_text(record.body, record.charset),
                    charset=record.charset,
                )
            )
        return events
