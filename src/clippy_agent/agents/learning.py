"""
Learning agent: handles batches classified as `idle`.

The user is only offered an explanation after staying idle for at least
`idle_threshold_ms`; below that the model is not called at all.
"""

import logging

from clippy_agent.agents.base import BaseAgent
from clippy_agent.llm.client import AnalysisClient
from clippy_agent.models.context import Context
from clippy_agent.models.suggestion import AgentKind


logger = logging.getLogger(__name__)


class LearningAgent(BaseAgent):
    """
    ELI5-style explanations of content the user has been reading.

    Attributes:
        idle_threshold_ms: Minimum idle time before calling the model
    """

    kind = AgentKind.LEARNING
    title = "📚 Need help understanding this?"

    def __init__(self, client: AnalysisClient, idle_threshold_ms: int = 180_000) -> None:
        super().__init__(client)
        if idle_threshold_ms <= 0:
            raise ValueError("idle_threshold_ms must be positive")
        self.idle_threshold_ms = idle_threshold_ms

    def should_call_model(self, context: Context) -> bool:
        if context.idle_time_ms < self.idle_threshold_ms:
            logger.debug(
                f"Idle {context.idle_time_ms}ms < threshold {self.idle_threshold_ms}ms, "
                f"skipping learning analysis"
            )
            return False
        return True
