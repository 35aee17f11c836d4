"""Handler registry — maps handler names to handler classes."""

from typing import Dict, Optional

from .base import JSONRecord, SourceHandler
from .json_handler import JSONHandler

_REGISTRY: Dict[str, type] = {
    "json": JSONHandler,
}


def get_handler(name: str = "json") -> Optional[SourceHandler]:
    """Instantiate a registered handler by name."""
    cls = _REGISTRY.get(name.strip().lower())
    return cls() if cls else None


def list_handlers() -> Dict[str, str]:
    return {name: cls.__name__ for name, cls in _REGISTRY.items()}


__all__ = ["JSONHandler", "JSONRecord", "SourceHandler", "get_handler", "list_handlers"]
