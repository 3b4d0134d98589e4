"""
Suggestion Sinks
================

Where admitted suggestions and assistant state changes go.

This module provides the SuggestionSink protocol and two implementations:
    - LoggingSuggestionSink: writes to the log (headless runs)
    - BroadcastSuggestionSink: keeps the current state for the HTTP API
      and fans events out to WebSocket subscriber queues

Event Format (subscriber queues):
    {"type": "state", "state": "thinking"}
    {"type": "suggestion", "suggestion": {...Suggestion.to_dict()...}}
    {"type": "withdrawn"}
"""

import asyncio
import logging
from enum import Enum
from typing import Any, Dict, List, Optional, Protocol

from clippy_agent.models.suggestion import Suggestion


logger = logging.getLogger(__name__)


class AssistantState(str, Enum):
    """Assistant presence shown by the UI."""

    SLEEPING = "sleeping"
    THINKING = "thinking"
    SUGGESTING = "suggesting"


class SuggestionSink(Protocol):
    """Protocol for suggestion delivery targets."""

    async def present(self, suggestion: Suggestion) -> None:
        ...

    async def set_state(self, state: AssistantState) -> None:
        ...

    async def withdraw(self) -> None:
        """The shown suggestion is no longer relevant (dismissed or stale)."""
        ...


class LoggingSuggestionSink:
    """Logs suggestions and state changes."""

    def __init__(self) -> None:
        self.state = AssistantState.SLEEPING
        self.presented: int = 0

    async def present(self, suggestion: Suggestion) -> None:
        self.presented += 1
        logger.info(f"SUGGESTION [{suggestion.agent_kind.value}] {suggestion.title}")
        logger.debug(suggestion.body)

    async def set_state(self, state: AssistantState) -> None:
        if state is not self.state:
            logger.debug(f"Assistant state: {self.state.value} -> {state.value}")
        self.state = state

    async def withdraw(self) -> None:
        pass


class BroadcastSuggestionSink:
    """
    Holds the latest state and suggestion and pushes events to subscribers.

    Subscriber queues are bounded; when a slow client's queue is full the
    oldest event is dropped.

    Attributes:
        state: Current assistant state
        current: Suggestion currently shown, if any
    """

    def __init__(self, queue_size: int = 32) -> None:
        self.queue_size = queue_size
        self.state = AssistantState.SLEEPING
        self.current: Optional[Suggestion] = None
        self._subscribers: List[asyncio.Queue] = []
        self._dropped: int = 0

    def subscribe(self) -> asyncio.Queue:
        """Register a subscriber; the current state is queued immediately."""
        queue: asyncio.Queue = asyncio.Queue(maxsize=self.queue_size)
        self._subscribers.append(queue)
        self._offer(queue, self._state_event())
        if self.current is not None:
            self._offer(queue, self._suggestion_event(self.current))
        return queue

    def unsubscribe(self, queue: asyncio.Queue) -> None:
        if queue in self._subscribers:
            self._subscribers.remove(queue)

    async def present(self, suggestion: Suggestion) -> None:
        self.current = suggestion
        self._broadcast(self._suggestion_event(suggestion))

    async def set_state(self, state: AssistantState) -> None:
        if state is self.state:
            return
        self.state = state
        self._broadcast(self._state_event())

    async def withdraw(self) -> None:
        if self.current is not None:
            self.current = None
            self._broadcast({"type": "withdrawn"})

    def snapshot(self) -> Dict[str, Any]:
        """Current state and suggestion as JSON-compatible data."""
        return {
            "state": self.state.value,
            "suggestion": self.current.to_dict() if self.current else None,
        }

    @property
    def subscriber_count(self) -> int:
        return len(self._subscribers)

    def _state_event(self) -> Dict[str, Any]:
        return {"type": "state", "state": self.state.value}

    @staticmethod
    def _suggestion_event(suggestion: Suggestion) -> Dict[str, Any]:
        return {"type": "suggestion", "suggestion": suggestion.to_dict()}

    def _broadcast(self, event: Dict[str, Any]) -> None:
        for queue in list(self._subscribers):
            self._offer(queue, event)

    def _offer(self, queue: asyncio.Queue, event: Dict[str, Any]) -> None:
        if queue.full():
            try:
                queue.get_nowait()
                self._dropped += 1
            except asyncio.QueueEmpty:
                pass
        queue.put_nowait(event)

    def get_metrics(self) -> dict:
        return {
            "state": self.state.value,
            "subscribers": len(self._subscribers),
            "dropped_events": self._dropped,
        }
