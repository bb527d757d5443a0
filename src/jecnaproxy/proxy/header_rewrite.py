"""Result type for fallible single-header rewrites."""

from __future__ import annotations

import enum
from dataclasses import dataclass


class Outcome(enum.Enum):
    REWRITTEN = "rewritten"
    PASSTHROUGH = "passthrough"


@dataclass(frozen=True)
class HeaderRewrite:
    """The value to emit for one header, and whether it was rewritten."""

    value: str
    outcome: Outcome

    @property
    def rewritten(self) -> bool:
        return self.outcome is Outcome.REWRITTEN

    @classmethod
    def ok(cls, value: str) -> HeaderRewrite:
        return cls(value, Outcome.REWRITTEN)

    @classmethod
    def passthrough(cls, original: str) -> HeaderRewrite:
        return cls(original, Outcome.PASSTHROUGH)


def is_valid_header_value(value: str) -> bool:
    """True if ``value`` can be emitted as a header without breaking framing."""
    return not any(ch in value for ch in ("\r", "\n", "\x00"))
