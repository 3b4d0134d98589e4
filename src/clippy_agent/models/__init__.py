"""
Data Models
===========

Typed models for the Clippy Agent pipeline.

Models:
    Activity:
        - ActivityLabel: Coarse activity classes (append-only enum)
        - Classification: Label + confidence for one batch

    Suggestion:
        - AgentKind: Kinds of specialized agents
        - Suggestion: Value type surfaced to the user
        - AGENT_CONFIDENCE: Per-kind confidence constants

    Context:
        - Context: Rolling state shared by agents
        - Event: Logged classification record

    Output:
        - AgentResponse: Router/agent output contract
        - CycleOutcome: Result of one orchestrated cycle
        - RouteOutcome, GateDecision: Outcome codes
"""

from clippy_agent.models.activity import ActivityLabel, Classification
from clippy_agent.models.suggestion import (
    AGENT_CONFIDENCE,
    AgentKind,
    Suggestion,
    suggestion_signature,
)
from clippy_agent.models.context import Context, Event
from clippy_agent.models.outcomes import GateDecision, RouteOutcome
from clippy_agent.models.output import AgentResponse, CycleOutcome

__all__ = [
    # Activity
    "ActivityLabel",
    "Classification",
    # Suggestion
    "AGENT_CONFIDENCE",
    "AgentKind",
    "Suggestion",
    "suggestion_signature",
    # Context
    "Context",
    "Event",
    # Output
    "AgentResponse",
    "CycleOutcome",
    "GateDecision",
    "RouteOutcome",
]
