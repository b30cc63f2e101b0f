"""Normalised view of recognised text shared by the extraction rules."""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Callable, Optional, Sequence, Tuple, TypeVar

T = TypeVar("T")

_LINE_BREAKS = re.compile(r"\n+")


@dataclass(frozen=True)
class ReceiptText:
    """The trimmed full text and its non-empty, stripped lines.

    Some rules look at the whole text (labels may span line breaks),
    others only at individual lines.
    """

    text: str
    lines: Tuple[str, ...]

    @classmethod
    def from_raw(cls, raw: Optional[str]) -> "ReceiptText":
        text = (raw or "").strip()
        lines = tuple(line.strip() for line in _LINE_BREAKS.split(text) if line.strip())
        return cls(text=text, lines=lines)


Strategy = Callable[[ReceiptText], Optional[T]]


def first_result(strategies: Sequence[Strategy], receipt: ReceiptText) -> Optional[T]:
    """Return the value of the first strategy that finds one."""
    for strategy in strategies:
        value = strategy(receipt)
        if value is not None:
            return value
    return None
