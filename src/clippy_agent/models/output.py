"""
Agent Output Models
===================

This module defines the output contract of one pipeline cycle.

Output Contract:
    {
        "should_assist": true,
        "suggestion": {
            "agent_kind": "debug",
            "title": "🔍 I noticed an error",
            "body": "The stack trace shows ...",
            "confidence": 0.8,
            "produced_at": 1770500938.284
        },
        "reasoning": "A traceback is visible in the terminal",
        "classification": "error",
        "classification_confidence": 0.9
    }

Design Rules:
    - `classification` is always present, even when should_assist is false
    - `suggestion` is present only when should_assist is true
"""

from dataclasses import dataclass
from typing import Optional

from pydantic import BaseModel, Field

from clippy_agent.models.activity import ActivityLabel
from clippy_agent.models.outcomes import GateDecision
from clippy_agent.models.suggestion import Suggestion


class AgentResponse(BaseModel):
    """
    Response produced by an agent and returned by the router.

    Attributes:
        should_assist: Whether a suggestion should be considered for delivery
        suggestion: The suggestion, when should_assist is true
        reasoning: Model-provided reasoning, if any
        classification: Activity label resolved for the batch
        classification_confidence: Confidence of that label
    """

    should_assist: bool = Field(
        default=False,
        description="Whether the agent wants to surface a suggestion",
    )

    suggestion: Optional[Suggestion] = Field(
        default=None,
        description="Suggestion to surface (only when should_assist)",
    )

    reasoning: Optional[str] = Field(
        default=None,
        description="Why the agent decided to help or not",
    )

    classification: ActivityLabel = Field(
        default=ActivityLabel.NORMAL,
        description="Activity label resolved for this batch",
    )

    classification_confidence: float = Field(
        default=0.0,
        ge=0.0,
        le=1.0,
        description="Confidence of the resolved label",
    )

    @classmethod
    def no_assist(
        cls,
        classification: ActivityLabel = ActivityLabel.NORMAL,
        confidence: float = 0.0,
        reasoning: Optional[str] = None,
    ) -> "AgentResponse":
        """Silent response carrying only the observed label."""
        return cls(
            should_assist=False,
            classification=classification,
            classification_confidence=confidence,
            reasoning=reasoning,
        )


@dataclass(frozen=True, slots=True)
class CycleOutcome:
    """
    What happened in one orchestrated cycle.

    Attributes:
        response: Router output for the batch
        gate_decision: Gate verdict, None when there was nothing to gate
        delivered: Whether the suggestion reached the sink
    """

    response: AgentResponse
    gate_decision: Optional[GateDecision] = None
    delivered: bool = False
