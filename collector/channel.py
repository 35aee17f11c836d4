"""
Channels — where validated events go after a request is normalized.

MemoryChannel       keeps events in a bounded deque (tests, dry runs)
SerializingChannel  encodes events onto a file sink with EventEncoder
"""

import logging
import threading
from collections import deque
from pathlib import Path
from typing import BinaryIO, Deque, Iterable, List, Mapping, Optional

from serialization import EventEncoder

from .event import Event
from .exceptions import ChannelError

log = logging.getLogger("collector.channel")


class MemoryChannel:
    """In-process channel holding the most recent events."""

    kind = "memory"

    def __init__(self, capacity: int = 10_000):
        self.capacity = capacity
        self._events: Deque[Event] = deque()
        self._lock = threading.Lock()

    def put_all(self, events: Iterable[Event]) -> int:
        batch = list(events)
        with self._lock:
            if len(self._events) + len(batch) > self.capacity:
                raise ChannelError(
                    f"Channel full: {len(self._events)}/{self.capacity}, "
                    f"cannot take {len(batch)} more"
                )
            self._events.extend(batch)
        return len(batch)

    def take_all(self) -> List[Event]:
        with self._lock:
            events = list(self._events)
            self._events.clear()
        return events

    def __len__(self) -> int:
        return len(self._events)

    def close(self) -> None:
        pass


class SerializingChannel:
    """Single-writer channel that encodes every event onto one sink."""

    kind = "file"

    def __init__(self, out: BinaryIO, context: Optional[Mapping[str, str]] = None):
        self._out = out
        self._encoder = EventEncoder.build(context or {}, out)
        self._encoder.after_create()
        self._lock = threading.Lock()

    @classmethod
    def open(cls, path: Path, context: Optional[Mapping[str, str]] = None) -> "SerializingChannel":
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        log.info(f"Writing events to {path}")
        return cls(path.open("ab"), context)

    def put_all(self, events: Iterable[Event]) -> int:
        count = 0
        with self._lock:
            try:
                for event in events:
                    self._encoder.write(event)
                    count += 1
                self._encoder.flush()
            except OSError as exc:
                raise ChannelError(f"Failed to write event {count}: {exc}") from exc
        return count

    def close(self) -> None:
        with self._lock:
            self._encoder.before_close()
            self._out.close()
