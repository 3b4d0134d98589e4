"""
Agent Router
============

LangGraph state machine that turns one frame batch into one AgentResponse.

Graph Structure:
    START → classify ─┬─(agent registered)──→ analyze ───→ END
                      └─(normal / no agent)─→ no_assist ─→ END

    classify:  ClassificationClient call, then registry lookup
    analyze:   agent.analyze(batch, context)
    no_assist: silent response carrying the resolved label

Design Rules:
    - route() never raises in production mode; any failure inside the
      graph becomes a no-assist response
    - The response always carries the resolved classification label
    - At most one route() in flight (asyncio.Lock)
    - Strict mode raises on an empty batch instead of returning no-assist
"""

import asyncio
import logging
from collections import Counter
from typing import Any, Dict, Optional, Protocol, TypedDict

from langgraph.graph import END, StateGraph

from clippy_agent.agents.base import Agent
from clippy_agent.agents.registry import AgentRegistry
from clippy_agent.capture.frame import FrameBatch
from clippy_agent.models.activity import ActivityLabel, Classification
from clippy_agent.models.context import Context
from clippy_agent.models.outcomes import RouteOutcome
from clippy_agent.models.output import AgentResponse


logger = logging.getLogger(__name__)


class EmptyBatchError(Exception):
    """Raised in strict mode when route() receives an empty batch."""
    pass


class Classifier(Protocol):
    async def classify(self, batch: FrameBatch) -> Classification:
        ...


class RouterState(TypedDict, total=False):
    """
    State passed through the router graph.

    Attributes:
        batch: Frames being routed
        context: Rolling context for this cycle
        classification: Set by the classify node
        agent: Resolved agent, None on a registry miss
        response: Final response
        outcome: How the cycle ended
    """

    batch: FrameBatch
    context: Context
    classification: Optional[Classification]
    agent: Optional[Agent]
    response: Optional[AgentResponse]
    outcome: Optional[RouteOutcome]


class AgentRouter:
    """
    Classify → dispatch → respond, once per batch.

    Attributes:
        classifier: Produces the activity label
        registry: Label -> agent table
        strict: Raise on invariant violations instead of degrading
    """

    def __init__(
        self,
        classifier: Classifier,
        registry: AgentRegistry,
        strict: bool = False,
    ) -> None:
        self.classifier = classifier
        self.registry = registry
        self.strict = strict

        self._lock = asyncio.Lock()
        self._graph = self._build_graph()

        self._routes: int = 0
        self._failures: int = 0
        self._outcomes: Counter = Counter()
        self._last_outcome: Optional[RouteOutcome] = None

        logger.info(f"AgentRouter initialized (strict={strict}, agents={len(registry)})")

    def _build_graph(self):
        """Build the LangGraph workflow."""
        workflow = StateGraph(RouterState)

        workflow.add_node("classify", self._classify_node)
        workflow.add_node("analyze", self._analyze_node)
        workflow.add_node("no_assist", self._no_assist_node)

        workflow.set_entry_point("classify")
        workflow.add_conditional_edges(
            "classify",
            self._select_branch,
            {"analyze": "analyze", "no_assist": "no_assist"},
        )
        workflow.add_edge("analyze", END)
        workflow.add_edge("no_assist", END)

        return workflow.compile()

    # =========================================================================
    # Nodes
    # =========================================================================

    async def _classify_node(self, state: RouterState) -> Dict[str, Any]:
        batch = state["batch"]
        classification = await self.classifier.classify(batch)

        logger.info(
            f"Batch #{batch.sequence} ({len(batch)} frames): "
            f"{classification.label.value} ({classification.confidence:.0%})"
        )

        agent = None
        if classification.label is not ActivityLabel.NORMAL:
            agent = self.registry.resolve(classification.label)

        return {"classification": classification, "agent": agent}

    @staticmethod
    def _select_branch(state: RouterState) -> str:
        return "analyze" if state.get("agent") is not None else "no_assist"

    async def _analyze_node(self, state: RouterState) -> Dict[str, Any]:
        agent = state["agent"]
        classification = state["classification"]

        logger.info(f"Routing {classification.label.value} to {agent!r}")
        response = await agent.analyze(state["batch"], state["context"])

        response = response.model_copy(
            update={
                "classification": classification.label,
                "classification_confidence": classification.confidence,
            }
        )
        return {"response": response, "outcome": RouteOutcome.RESPONDED}

    async def _no_assist_node(self, state: RouterState) -> Dict[str, Any]:
        classification = state["classification"]
        if classification.label is ActivityLabel.NORMAL:
            outcome = RouteOutcome.NORMAL_ACTIVITY
        else:
            outcome = RouteOutcome.UNHANDLED_LABEL
            logger.debug(f"No agent registered for '{classification.label.value}'")

        return {
            "response": AgentResponse.no_assist(
                classification=classification.label,
                confidence=classification.confidence,
            ),
            "outcome": outcome,
        }

    # =========================================================================
    # Entry point
    # =========================================================================

    async def route(self, batch: FrameBatch, context: Context) -> AgentResponse:
        """
        Route one batch through classification and, if needed, an agent.

        Args:
            batch: Complete frame batch, oldest first
            context: Rolling context (recent_frames should be `batch`)

        Returns:
            AgentResponse carrying the resolved classification

        Raises:
            EmptyBatchError: Only in strict mode, on an empty batch
        """
        if batch.is_empty:
            if self.strict:
                raise EmptyBatchError("route() called with an empty batch")
            logger.warning("route() called with an empty batch, skipping")
            self._record(RouteOutcome.EMPTY_BATCH)
            return AgentResponse.no_assist()

        async with self._lock:
            self._routes += 1
            last_state: Dict[str, Any] = {}
            try:
                async for state in self._graph.astream(
                    {"batch": batch, "context": context},
                    stream_mode="values",
                ):
                    last_state = state

                response = last_state.get("response")
                if response is None:
                    raise RuntimeError("router graph finished without a response")

                self._record(last_state.get("outcome") or RouteOutcome.RESPONDED)
                return response

            except Exception as e:
                self._failures += 1
                self._record(RouteOutcome.FAILED)
                classification = last_state.get("classification") or Classification.fallback()
                logger.error(
                    f"Routing failed for batch #{batch.sequence} "
                    f"(label={classification.label.value}): {e}"
                )
                return AgentResponse.no_assist(
                    classification=classification.label,
                    confidence=classification.confidence,
                    reasoning="routing failed",
                )

    def _record(self, outcome: RouteOutcome) -> None:
        self._outcomes[outcome.value] += 1
        self._last_outcome = outcome

    @property
    def last_outcome(self) -> Optional[RouteOutcome]:
        return self._last_outcome

    @property
    def in_flight(self) -> bool:
        return self._lock.locked()

    def get_metrics(self) -> Dict[str, Any]:
        """Get router metrics for observability."""
        return {
            "routes": self._routes,
            "failures": self._failures,
            "outcomes": dict(self._outcomes),
            "in_flight": self._lock.locked(),
        }
