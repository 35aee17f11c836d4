"""Clickstream collector — HTTP JSON event source with cookie-based identity."""

from .event import Event
from .normalizer import EventNormalizer, NormalizedBatch

__all__ = ["Event", "EventNormalizer", "NormalizedBatch"]
