"""
Context Store
=============

Rolling user-activity context consumed by the agents.

This module provides the ContextStore protocol and InMemoryContextStore.
Durable persistence is not part of this service; the store keeps only
the bounded, most-recent-first window the agents need.
"""

import logging
import time
from collections import deque
from typing import Deque, Optional, Protocol

from clippy_agent.capture.frame import FrameBatch
from clippy_agent.models.context import Context, Event


logger = logging.getLogger(__name__)


class ContextStore(Protocol):
    """Protocol for context backends."""

    def get_context(self, recent_frames: Optional[FrameBatch] = None) -> Context:
        ...

    def update_idle_time(self, idle_time_ms: int) -> None:
        ...

    def add_event(self, event: Event) -> None:
        ...

    def record_activity(self, now: float) -> None:
        ...

    def set_current_app(self, name: Optional[str]) -> None:
        ...


class InMemoryContextStore:
    """
    Bounded in-memory context.

    Attributes:
        max_events: Size of the recent-event window
    """

    def __init__(self, max_events: int = 10, now: Optional[float] = None) -> None:
        if max_events < 1:
            raise ValueError("max_events must be >= 1")

        self.max_events = max_events
        self._events: Deque[Event] = deque(maxlen=max_events)
        self._idle_time_ms: int = 0
        self._last_activity_at: float = time.time() if now is None else now
        self._current_app: Optional[str] = None
        self._total_events: int = 0

    def get_context(self, recent_frames: Optional[FrameBatch] = None) -> Context:
        """Snapshot of the current context (events most recent first)."""
        return Context(
            idle_time_ms=self._idle_time_ms,
            last_activity_at=self._last_activity_at,
            current_app=self._current_app,
            recent_events=tuple(self._events),
            recent_frames=recent_frames if recent_frames is not None else FrameBatch.empty(),
        )

    def update_idle_time(self, idle_time_ms: int) -> None:
        self._idle_time_ms = max(0, int(idle_time_ms))

    def add_event(self, event: Event) -> None:
        self._events.appendleft(event)
        self._total_events += 1

    def record_activity(self, now: float) -> None:
        """User did something: reset the idle clock."""
        self._last_activity_at = now
        self._idle_time_ms = 0

    def set_current_app(self, name: Optional[str]) -> None:
        self._current_app = name

    @property
    def last_activity_at(self) -> float:
        return self._last_activity_at

    @property
    def idle_time_ms(self) -> int:
        return self._idle_time_ms

    def get_metrics(self) -> dict:
        return {
            "idle_time_ms": self._idle_time_ms,
            "recent_events": len(self._events),
            "total_events": self._total_events,
            "current_app": self._current_app,
        }
