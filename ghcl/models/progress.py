"""
Progress and retry state models for ghcl.

These objects live for a single clone operation: the flag for one attempt,
the retry state for the whole retried clone.
"""

from __future__ import annotations

import threading
from dataclasses import dataclass


class ProgressFlag:
    """
    One-way boolean shared between transport callbacks and retry logic.

    Transport callbacks may fire on the worker thread that drives the clone,
    so the flag is backed by a ``threading.Event``. Once set it stays set for
    the lifetime of the attempt; a new attempt gets a new flag.
    """

    def __init__(self) -> None:
        self._event = threading.Event()

    def mark(self) -> None:
        self._event.set()

    @property
    def progressed(self) -> bool:
        return self._event.is_set()

    def __bool__(self) -> bool:
        return self.progressed

    def __repr__(self) -> str:
        return f"ProgressFlag(progressed={self.progressed})"


@dataclass
class RetryState:
    """Accumulated backoff for one logical clone operation (seconds)."""

    total_wait: float = 0.0
    timeout: float = 2.0

    def advance(self, backoff_factor: float = 2.0) -> float:
        """Record a completed sleep of ``timeout`` and grow the next one."""

        waited = self.timeout
        self.total_wait += waited
        self.timeout = waited * backoff_factor
        return waited


__all__ = [
    "ProgressFlag",
    "RetryState",
]
