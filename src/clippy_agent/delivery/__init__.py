"""
Delivery Module
===============

Suggestion sinks and assistant state for the UI collaborator, plus the
WebSocket client the UI side uses to follow them.
"""

from clippy_agent.delivery.sink import (
    AssistantState,
    BroadcastSuggestionSink,
    LoggingSuggestionSink,
    SuggestionSink,
)
from clippy_agent.delivery.watcher import SuggestionEvent, SuggestionWatcher, parse_event


__all__ = [
    "AssistantState",
    "SuggestionSink",
    "LoggingSuggestionSink",
    "BroadcastSuggestionSink",
    "SuggestionEvent",
    "SuggestionWatcher",
    "parse_event",
]
