"""
Outcome Codes
=============

Fixed sets of machine-readable outcome codes for the router and the
suggestion gate.

Rules:
    - One code per decision
    - No free-text explanations
"""

from enum import Enum


class RouteOutcome(str, Enum):
    """
    Terminal state of one routing cycle.

    Attributes:
        NORMAL_ACTIVITY: Classified as normal, nothing dispatched
        UNHANDLED_LABEL: Label recognized but no agent is registered for it
        RESPONDED: An agent ran and returned a response
        EMPTY_BATCH: Router was invoked without frames
        FAILED: An exception was caught at the router boundary
    """

    NORMAL_ACTIVITY = "NORMAL_ACTIVITY"
    UNHANDLED_LABEL = "UNHANDLED_LABEL"
    RESPONDED = "RESPONDED"
    EMPTY_BATCH = "EMPTY_BATCH"
    FAILED = "FAILED"


class GateDecision(str, Enum):
    """
    Result of consulting the SuggestionGate.

    Attributes:
        ADMIT: Deliver the suggestion
        SUPPRESS_REPEAT: Identical to the last one and still in cooldown
        SUPPRESS_DISMISSED: User dismissed it recently
    """

    ADMIT = "ADMIT"
    SUPPRESS_REPEAT = "SUPPRESS_REPEAT"
    SUPPRESS_DISMISSED = "SUPPRESS_DISMISSED"
