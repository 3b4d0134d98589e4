"""
Suggestion Models
=================

Value types for suggestions produced by the specialized agents.

A Suggestion has no identity beyond its content: two suggestions with the
same (agent_kind, title, body) are duplicates no matter when they were
produced. The SuggestionGate keys its history on suggestion_signature().
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict


class AgentKind(str, Enum):
    """
    Kinds of specialized agents.

    SECURITY has a prompt but no registered agent.
    """

    DEBUG = "debug"
    LEARNING = "learning"
    WRITING = "writing"
    RESEARCH = "research"
    SECURITY = "security"


# Fixed per-kind trust tier. Not derived from the model response.
AGENT_CONFIDENCE: Dict[AgentKind, float] = {
    AgentKind.DEBUG: 0.8,
    AgentKind.LEARNING: 0.7,
    AgentKind.WRITING: 0.75,
    AgentKind.RESEARCH: 0.7,
}


@dataclass(frozen=True, slots=True)
class Suggestion:
    """
    A suggestion an agent wants to surface to the user.

    Attributes:
        agent_kind: Agent that produced it
        title: Short heading shown on the card
        body: Markdown body
        confidence: Per-kind constant from AGENT_CONFIDENCE
        produced_at: UNIX timestamp (seconds) of the latest analyzed frame
    """

    agent_kind: AgentKind
    title: str
    body: str
    confidence: float
    produced_at: float

    @property
    def signature(self) -> str:
        """Content-derived deduplication key."""
        return suggestion_signature(self)

    def to_dict(self) -> Dict[str, Any]:
        """Export as a JSON-compatible dict for delivery."""
        return {
            "type": self.agent_kind.value,
            "title": self.title,
            "content": self.body,
            "confidence": self.confidence,
            "timestamp": self.produced_at,
        }

    def __repr__(self) -> str:
        return (
            f"Suggestion({self.agent_kind.value}, title={self.title!r}, "
            f"body_len={len(self.body)})"
        )


def suggestion_signature(suggestion: Suggestion) -> str:
    """Build the `kind::title::body` signature with trimmed title and body."""
    title = suggestion.title.strip() if suggestion.title else ""
    body = suggestion.body.strip() if suggestion.body else ""
    return f"{suggestion.agent_kind.value}::{title}::{body}"
