"""
Context Module
==============

Rolling activity context (idle time, recent events, current app).
"""

from clippy_agent.context.store import ContextStore, InMemoryContextStore


__all__ = [
    "ContextStore",
    "InMemoryContextStore",
]
