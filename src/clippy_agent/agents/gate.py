"""
Suggestion Gate
===============

Deduplication and dismissal suppression between the router and the user.

State:
    last_signature / last_sent_at: most recently admitted suggestion
    active_signature: suggestion currently shown (target of dismiss())
    suppressed: signature -> dismissed_at

admit() order:
    1. compute signature
    2. drop suppression entries older than the TTL
    3. suppressed within TTL          -> SUPPRESS_DISMISSED
    4. same as last, within cooldown  -> SUPPRESS_REPEAT
    5. otherwise                      -> ADMIT (updates last/active)

Only dismiss() inserts into `suppressed`. Times are UNIX seconds;
durations are configured in milliseconds.
"""

import logging
from collections import Counter
from typing import Dict, Optional

from clippy_agent.models.outcomes import GateDecision
from clippy_agent.models.suggestion import Suggestion


logger = logging.getLogger(__name__)


class SuggestionGate:
    """
    Decides whether a suggestion reaches the user.

    Attributes:
        cooldown_ms: Minimum gap before an identical suggestion is re-admitted
        dismiss_suppression_ms: How long a dismissed suggestion stays blocked
    """

    def __init__(
        self,
        cooldown_ms: int = 60_000,
        dismiss_suppression_ms: int = 300_000,
    ) -> None:
        if cooldown_ms <= 0:
            raise ValueError("cooldown_ms must be positive")
        if dismiss_suppression_ms <= 0:
            raise ValueError("dismiss_suppression_ms must be positive")

        self.cooldown_ms = cooldown_ms
        self.dismiss_suppression_ms = dismiss_suppression_ms
        self._cooldown = cooldown_ms / 1000.0
        self._suppression_ttl = dismiss_suppression_ms / 1000.0

        self._last_signature: Optional[str] = None
        self._last_sent_at: float = 0.0
        self._active_signature: Optional[str] = None
        self._suppressed: Dict[str, float] = {}

        self._decisions: Counter = Counter()

    @property
    def active_signature(self) -> Optional[str]:
        return self._active_signature

    @property
    def suppressed_count(self) -> int:
        return len(self._suppressed)

    def admit(self, suggestion: Suggestion, now: float) -> GateDecision:
        """
        Consult the gate for one suggestion.

        Args:
            suggestion: Candidate suggestion
            now: Current time (UNIX seconds)

        Returns:
            GateDecision
        """
        signature = suggestion.signature
        self._prune(now)

        dismissed_at = self._suppressed.get(signature)
        if dismissed_at is not None and now - dismissed_at < self._suppression_ttl:
            decision = GateDecision.SUPPRESS_DISMISSED
        elif (
            signature == self._last_signature
            and now - self._last_sent_at < self._cooldown
        ):
            decision = GateDecision.SUPPRESS_REPEAT
        else:
            decision = GateDecision.ADMIT
            self._last_signature = signature
            self._last_sent_at = now
            self._active_signature = signature

        self._decisions[decision.value] += 1
        if decision is not GateDecision.ADMIT:
            logger.info(f"Suggestion suppressed ({decision.value}): {suggestion!r}")
        return decision

    def dismiss(self, now: float) -> bool:
        """
        Suppress the currently shown suggestion.

        Returns:
            True if there was an active suggestion to suppress.
        """
        if self._active_signature is None:
            return False

        self._suppressed[self._active_signature] = now
        self._active_signature = None
        logger.info(
            f"Suggestion dismissed, suppressed for {self.dismiss_suppression_ms / 1000:.0f}s"
        )
        return True

    def clear_active(self) -> None:
        """Forget the shown suggestion without suppressing it."""
        self._active_signature = None

    def _prune(self, now: float) -> None:
        expired = [
            sig for sig, dismissed_at in self._suppressed.items()
            if now - dismissed_at > self._suppression_ttl
        ]
        for sig in expired:
            del self._suppressed[sig]

    def get_metrics(self) -> dict:
        """Get gate metrics for observability."""
        return {
            "decisions": dict(self._decisions),
            "suppressed_count": len(self._suppressed),
            "has_active": self._active_signature is not None,
            "cooldown_ms": self.cooldown_ms,
            "dismiss_suppression_ms": self.dismiss_suppression_ms,
        }
