"""
Agent Contract
==============

Common contract and shared flow for the specialized agents.

    Agent.analyze(batch, context) -> AgentResponse

BaseAgent implements the flow every agent shares:
    1. Empty batch -> no assistance, no model call
    2. Precondition hook (e.g. idle threshold) -> may skip the model call
    3. Remote analysis with the agent's prompt
    4. Finalize hook (e.g. research enrichment) on the suggestion body
    5. Wrap into a Suggestion with the kind's fixed title and confidence
"""

import logging
from typing import Protocol

from clippy_agent.capture.frame import FrameBatch
from clippy_agent.llm.client import AnalysisClient
from clippy_agent.models.context import Context
from clippy_agent.models.output import AgentResponse
from clippy_agent.models.suggestion import AGENT_CONFIDENCE, AgentKind, Suggestion


logger = logging.getLogger(__name__)


class Agent(Protocol):
    """Protocol for specialized agents."""

    kind: AgentKind

    async def analyze(self, batch: FrameBatch, context: Context) -> AgentResponse:
        ...


class BaseAgent:
    """
    Shared analysis flow for model-backed agents.

    Subclasses set `kind` and `title` and may override `should_call_model`
    and `finalize_body`.
    """

    kind: AgentKind
    title: str

    def __init__(self, client: AnalysisClient) -> None:
        self.client = client
        self._invocations: int = 0
        self._suggestions: int = 0

    def should_call_model(self, context: Context) -> bool:
        return True

    async def finalize_body(self, body: str) -> str:
        return body

    async def analyze(self, batch: FrameBatch, context: Context) -> AgentResponse:
        """
        Decide whether to surface a suggestion for this batch.

        Args:
            batch: Frames, oldest first
            context: Rolling context for this cycle

        Returns:
            AgentResponse; should_assist is True only with a suggestion
        """
        self._invocations += 1

        if batch.is_empty:
            logger.warning(f"{self.kind.value} agent got an empty batch")
            return AgentResponse.no_assist(reasoning="empty batch")

        if not self.should_call_model(context):
            return AgentResponse.no_assist(reasoning="precondition not met")

        result = await self.client.analyze(batch, context.summary(), self.kind)
        if not result.should_assist or not result.suggestion_text:
            logger.info(f"{self.kind.value} agent: no assistance needed")
            return AgentResponse.no_assist(reasoning=result.reasoning)

        body = await self.finalize_body(result.suggestion_text)
        suggestion = self._build_suggestion(body, batch)
        self._suggestions += 1

        logger.info(f"{self.kind.value} agent produced {suggestion!r}")
        return AgentResponse(
            should_assist=True,
            suggestion=suggestion,
            reasoning=result.reasoning,
        )

    def _build_suggestion(self, body: str, batch: FrameBatch) -> Suggestion:
        return Suggestion(
            agent_kind=self.kind,
            title=self.title,
            body=body,
            confidence=AGENT_CONFIDENCE[self.kind],
            produced_at=batch.latest.captured_at,
        )

    def get_metrics(self) -> dict:
        return {
            "kind": self.kind.value,
            "invocations": self._invocations,
            "suggestions": self._suggestions,
        }

    def __repr__(self) -> str:
        return f"{type(self).__name__}(kind={self.kind.value})"

