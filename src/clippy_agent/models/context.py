"""
Context Models
==============

Rolling context shared by all agents during one cycle, plus the logged
Event record.

Ownership:
    - Context is read by agents and rebuilt by the orchestrator each cycle
    - Event is append-only; the context store owns its storage
"""

import time
from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Tuple

from pydantic import BaseModel, Field

from clippy_agent.capture.frame import FrameBatch
from clippy_agent.models.activity import ActivityLabel


class Event(BaseModel):
    """
    One logged classification.

    The label is stored as its string value so records written under a
    different label set can still be loaded; use `label` to read it back.

    Attributes:
        classification: Activity label value
        timestamp: UNIX timestamp (seconds)
        confidence: Classification confidence
        metadata: Free-form details (agent, gate decision, ...)
    """

    classification: str = Field(..., description="Activity label value")
    timestamp: float = Field(..., ge=0.0, description="UNIX timestamp in seconds")
    confidence: float = Field(..., ge=0.0, le=1.0, description="Classification confidence")
    metadata: Dict[str, Any] = Field(default_factory=dict)

    model_config = {"frozen": True}

    @property
    def label(self) -> ActivityLabel:
        """Label as an enum member (unknown values read as NORMAL)."""
        return ActivityLabel.coerce(self.classification)


@dataclass(frozen=True)
class Context:
    """
    Rolling state visible to agents.

    Attributes:
        idle_time_ms: Milliseconds since the last user activity signal
        last_activity_at: UNIX timestamp of the last user activity
        current_app: Foreground application name, if known
        recent_events: Most-recent-first, bounded
        recent_frames: The batch being analyzed this cycle
    """

    idle_time_ms: int = 0
    last_activity_at: float = 0.0
    current_app: Optional[str] = None
    recent_events: Tuple[Event, ...] = ()
    recent_frames: FrameBatch = field(default_factory=FrameBatch.empty)

    def summary(self) -> str:
        """Plain-text summary passed to agent prompts."""
        lines = [
            "Recent Activity:",
            f"- Idle time: {self.idle_time_ms // 1000}s",
            f"- Current app: {self.current_app or 'unknown'}",
            f"- Recent events: {len(self.recent_events)} events in history",
        ]
        batch = self.recent_frames
        if len(batch) > 0:
            lines.append(f"- Recent frames captured: {len(batch)}")
            lines.append(f"- First frame: {_clock(batch.oldest.captured_at)}")
            lines.append(f"- Last frame: {_clock(batch.latest.captured_at)}")
        return "\n".join(lines)


def _clock(timestamp: float) -> str:
    return time.strftime("%H:%M:%S", time.localtime(timestamp))
