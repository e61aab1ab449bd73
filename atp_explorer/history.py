"""
Invocation history.

Append-only, bounded log of past dispatches and their outcomes. The store is
the sole owner of its entries; consumers get tuples of immutable records.
"""

import json
import logging
from collections import deque
from dataclasses import dataclass, field
from datetime import datetime, timezone
from types import MappingProxyType
from typing import Any, Mapping, Tuple, Union

from atp_explorer.errors import HistoryIndexError

logger = logging.getLogger(__name__)

DEFAULT_CAPACITY = 100
SUMMARY_MAX_LEN = 80


@dataclass(frozen=True)
class Success:
    """
    Successful dispatch.

    Attributes:
        payload: Decoded response payload.
        summary: One-line description of the payload for history listings.
    """

    payload: Any
    summary: str

    ok = True


@dataclass(frozen=True)
class Failure:
    """
    Failed dispatch.

    Attributes:
        message: Error message reported by the protocol client.
    """

    message: str

    ok = False


Outcome = Union[Success, Failure]


def summarize(payload: Any) -> str:
    """
    Build a one-line summary of a response payload.

    Objects are summarized by their top-level keys, lists by length, and
    scalars by their compact JSON form, truncated to SUMMARY_MAX_LEN.
    """
    if isinstance(payload, dict):
        if not payload:
            text = "{}"
        else:
            text = "{" + ", ".join(str(k) for k in payload) + "}"
    elif isinstance(payload, list):
        text = f"[{len(payload)} items]"
    else:
        text = json.dumps(payload, default=str)

    if len(text) > SUMMARY_MAX_LEN:
        text = text[: SUMMARY_MAX_LEN - 3] + "..."
    return text


@dataclass(frozen=True)
class Invocation:
    """
    One recorded dispatch attempt.

    Attributes:
        command: Command identifier.
        params: Parameter values used (read-only view).
        outcome: Success or Failure.
        timestamp: UTC creation time.
    """

    command: str
    params: Mapping[str, str]
    outcome: Outcome
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def __post_init__(self) -> None:
        # Freeze a private copy of the values so callers cannot mutate the record
        object.__setattr__(self, "params", MappingProxyType(dict(self.params)))

    @property
    def succeeded(self) -> bool:
        return self.outcome.ok

    def describe(self) -> str:
        """Single-line listing used by the history view."""
        status = "OK  " if self.succeeded else "FAIL"
        params = " ".join(f"{k}={v}" for k, v in self.params.items())
        when = self.timestamp.strftime("%H:%M:%S")
        line = f"{when} [{status}] {self.command}"
        return f"{line} {params}" if params else line


class HistoryStore:
    """
    Bounded FIFO log of Invocation records.

    Oldest entries are evicted once capacity is exceeded; the size never
    exceeds the configured capacity.
    """

    def __init__(self, capacity: int = DEFAULT_CAPACITY):
        """
        Initialize store.

        Args:
            capacity: Maximum retained entries (>= 1).
        """
        if capacity < 1:
            raise ValueError(f"History capacity must be at least 1, got {capacity}")
        self._capacity = capacity
        self._entries: deque = deque(maxlen=capacity)

    @property
    def capacity(self) -> int:
        return self._capacity

    def __len__(self) -> int:
        return len(self._entries)

    def record(self, invocation: Invocation) -> None:
        """Append an invocation, evicting the oldest entry when full."""
        if len(self._entries) == self._capacity:
            evicted = self._entries[0]
            logger.debug(f"History full, evicting {evicted.command} @ {evicted.timestamp.isoformat()}")
        self._entries.append(invocation)
        logger.debug(
            f"Recorded {invocation.command} ok={invocation.succeeded} ({len(self._entries)}/{self._capacity})"
        )

    def list(self) -> Tuple[Invocation, ...]:
        """Entries most-recent-first."""
        return tuple(reversed(self._entries))

    def get(self, index: int) -> Invocation:
        """
        Entry by display index (0 = most recent).

        Raises:
            HistoryIndexError: If index is outside the retained entries.
        """
        size = len(self._entries)
        if index < 0 or index >= size:
            raise HistoryIndexError(index, size)
        return self._entries[size - 1 - index]
