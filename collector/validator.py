"""
Header Validation — drop events whose critical headers are missing or junk.

The rule is deliberately loose: a value passes as soon as it contains one
word character anywhere ("a-b!" passes, "!!" and "" do not).
"""

import logging
import re
from dataclasses import dataclass, field
from typing import Mapping, Optional, Pattern, Tuple

from .event import Event

log = logging.getLogger("collector.validator")

WORD_PATTERN = re.compile(r"\w+", re.ASCII)


def split_names(value: Optional[str]) -> Tuple[str, ...]:
    """Split a comma- or whitespace-separated list of header names."""
    if not value:
        return ()
    return tuple(name for name in re.split(r"[,\s]+", value) if name)


@dataclass(frozen=True)
class ValidationRule:
    """Which headers to check and the pattern their values must contain."""

    headers: Tuple[str, ...] = ()
    pattern: Pattern = field(default=WORD_PATTERN)

    @classmethod
    def from_context(cls, context: Mapping[str, str]) -> "ValidationRule":
        return cls(headers=split_names(context.get("validate.headers")))


class HeaderValidator:
    """Checks the configured headers of an event against a ValidationRule."""

    def __init__(self, rule: Optional[ValidationRule] = None):
        self.rule = rule or ValidationRule()

    def validate(self, event: Event) -> bool:
        for name in self.rule.headers:
            if not name.strip():
                log.info("Rejecting event: blank header name in validation set")
                return False
            value = event.headers.get(name)
            if value is None:
                log.info(f"Rejecting event: missing header {name}")
                return False
            if not self.rule.pattern.search(value):
                log.info(f"Rejecting event: header {name}={value!r} is invalid")
                return False
        return True
