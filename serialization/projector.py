"""
Column Projection — pick and order the headers that get serialized.

With a column list, each column is looked up in the event headers and, when
jsonBody is on, in the JSON object carried by the body. Missing columns are
kept with a None value so CSV rows stay aligned.
"""

import json
import logging
from typing import Any, Dict, List, Optional

from collector.event import Event

log = logging.getLogger("serialization.projector")


def body_text(event: Event) -> str:
    """Body as UTF-8 text; undecodable bodies count as empty."""
    if not event.body:
        return ""
    try:
        return event.body.decode("utf-8")
    except UnicodeDecodeError:
        log.error("Failed to decode the event body as UTF-8")
        return ""


def stringify(value: Any) -> Optional[str]:
    if value is None:
        return None
    if isinstance(value, str):
        return value
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (dict, list)):
        return json.dumps(value, ensure_ascii=False, separators=(",", ":"))
    return str(value)


def parse_json_body(event: Event) -> Dict[str, Optional[str]]:
    """Fields of a JSON-object body. Raises ValueError for anything else."""
    try:
        payload = json.loads(body_text(event))
    except RecursionError:
        raise ValueError("body JSON is nested too deeply") from None
    if not isinstance(payload, dict):
        raise ValueError(f"body is a JSON {type(payload).__name__}, not an object")
    return {key: stringify(value) for key, value in payload.items()}


def _describe(mapping: Optional[Dict[str, Optional[str]]]) -> str:
    if not mapping:
        return ""
    return "".join(f"{key}={value}\r\n" for key, value in mapping.items())


class ColumnProjector:
    """Produces the header map handed to the encoder."""

    def __init__(self, columns: Optional[List[str]] = None, json_body: bool = False):
        self.columns = columns or None
        self.json_body = json_body

    def project(self, event: Event) -> Dict[str, Optional[str]]:
        if self.columns is None:
            return self._pass_through(event)

        headers: Dict[str, Optional[str]] = {}
        body_fields: Optional[Dict[str, Optional[str]]] = None
        body_failed = False
        for key in self.columns:
            value = event.headers.get(key)
            if value is None and self.json_body and not body_failed:
                try:
                    if body_fields is None:
                        body_fields = parse_json_body(event)
                    value = body_fields.get(key)
                except ValueError as exc:
                    body_failed = True
                    log.error(
                        f"Event parse error for key {key}: {exc}. "
                        f"OriginalHeaders: {_describe(event.headers)} Body: {body_text(event)}"
                    )
            headers[key] = value
        return headers

    def _pass_through(self, event: Event) -> Dict[str, Optional[str]]:
        headers = dict(event.headers)
        if self.json_body:
            try:
                fields = parse_json_body(event)
            except ValueError as exc:
                log.error(f"Failed to get JSON from body: {exc}")
                return headers
            for key, value in fields.items():
                headers.setdefault(key, value)
        return headers
