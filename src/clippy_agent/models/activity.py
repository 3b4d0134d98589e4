"""
Activity Models
===============

Coarse activity labels produced by the classification step.

Core Concepts:
    - ActivityLabel: Fixed, append-only set of activity classes
    - Classification: One label + confidence, produced once per batch

Label Set:
    error     -> visible error messages, exceptions, stack traces
    idle      -> minimal change, user reading or waiting
    normal    -> active work that fits no other class (the no-op label)
    writing   -> documents, emails, markdown or other prose
    research  -> browsing, reading articles, looking things up
    code      -> editing code in an IDE (recognized, no handler yet)

Versioning:
    The enum is append-only. Labels are persisted as their string value
    and read back through ActivityLabel.coerce(), so a value written by a
    newer or older label set that is not known here becomes NORMAL.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any


class ActivityLabel(str, Enum):
    """
    Coarse user-activity classes.

    NORMAL is the "nothing to do" label: the router never dispatches it.
    """

    ERROR = "error"
    IDLE = "idle"
    NORMAL = "normal"
    WRITING = "writing"
    RESEARCH = "research"
    CODE = "code"

    @classmethod
    def coerce(cls, value: Any) -> "ActivityLabel":
        """
        Map an arbitrary value onto the enum.

        Strings are matched case-insensitively after trimming. Anything
        that is not a known label resolves to NORMAL.
        """
        if isinstance(value, cls):
            return value
        if isinstance(value, str):
            try:
                return cls(value.strip().lower())
            except ValueError:
                return cls.NORMAL
        return cls.NORMAL


@dataclass(frozen=True, slots=True)
class Classification:
    """
    Result of classifying one frame batch.

    Attributes:
        label: Activity label (always a member of ActivityLabel)
        confidence: Model-reported confidence in [0, 1]
    """

    label: ActivityLabel
    confidence: float

    def __post_init__(self) -> None:
        """Validate invariants."""
        if not isinstance(self.label, ActivityLabel):
            raise TypeError("label must be an ActivityLabel")
        if not 0.0 <= self.confidence <= 1.0:
            raise ValueError("confidence must be in [0, 1]")

    @classmethod
    def fallback(cls) -> "Classification":
        """The fail-closed result: normal activity, zero confidence."""
        return cls(label=ActivityLabel.NORMAL, confidence=0.0)

    def __repr__(self) -> str:
        return f"Classification({self.label.value}, conf={self.confidence:.2f})"
