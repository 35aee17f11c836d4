"""
SourceHandler ABC — Template for request-body handlers.

Each handler must:
1. Resolve the character set the request body is written in
2. Parse the raw body into records (raising BadRequestError on bad input)
3. Turn records plus per-request metadata into Events
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Dict, List, Mapping, Optional

from ..event import Event


@dataclass
class JSONRecord:
    """One element of the inbound array, before metadata is merged."""

    headers: Optional[Dict[str, str]]   # None when the element had no "headers" key
    body: str = ""
    charset: str = "utf-8"


class SourceHandler(ABC):
    """Abstract base for request-body handlers."""

    @property
    @abstractmethod
    def name(self) -> str:
        """Handler name used in configuration (e.g., 'json')."""
        ...

    @abstractmethod
    def resolve_charset(self, charset: Optional[str]) -> str:
        """Codec name for the request body."""
        ...

    @abstractmethod
    def decode(self, body: bytes, charset: Optional[str]) -> List[JSONRecord]:
        """Parse the raw request body."""
        ...

    @abstractmethod
    def to_events(
        self, records: List[JSONRecord], metadata: Mapping[str, str]
    ) -> List[Event]:
        """Build events, merging request metadata into their headers."""
        ...
