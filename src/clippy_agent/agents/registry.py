"""
Agent Registry
==============

Table from ActivityLabel to the agent that handles it.

Built once at construction. `code` is a recognized label without a
handler, and `normal` can never have one.
"""

import logging
from typing import Dict, Mapping, Optional

from clippy_agent.agents.base import Agent
from clippy_agent.agents.debug import DebugAgent
from clippy_agent.agents.learning import LearningAgent
from clippy_agent.agents.research import MAX_RESOURCES, ResearchAgent
from clippy_agent.agents.writing import WritingAgent
from clippy_agent.llm.client import AnalysisClient
from clippy_agent.models.activity import ActivityLabel
from clippy_agent.search.client import SearchClient


logger = logging.getLogger(__name__)


class AgentRegistry:
    """
    Immutable label -> agent table.

    Example:
        registry = AgentRegistry.default(analysis_client)
        agent = registry.resolve(ActivityLabel.ERROR)   # DebugAgent
        registry.resolve(ActivityLabel.CODE)            # None
    """

    def __init__(self, agents: Mapping[ActivityLabel, Agent]) -> None:
        if ActivityLabel.NORMAL in agents:
            raise ValueError("the normal label cannot have a handler")
        self._table: Dict[ActivityLabel, Agent] = dict(agents)

        logger.info(
            "AgentRegistry: "
            + ", ".join(f"{label.value}->{agent.kind.value}" for label, agent in self._table.items())
        )

    @classmethod
    def default(
        cls,
        client: AnalysisClient,
        idle_threshold_ms: int = 180_000,
        search_client: Optional[SearchClient] = None,
        max_resources: int = MAX_RESOURCES,
    ) -> "AgentRegistry":
        """Standard table: error, idle, writing and research."""
        return cls(
            {
                ActivityLabel.ERROR: DebugAgent(client),
                ActivityLabel.IDLE: LearningAgent(client, idle_threshold_ms=idle_threshold_ms),
                ActivityLabel.WRITING: WritingAgent(client),
                ActivityLabel.RESEARCH: ResearchAgent(
                    client,
                    search_client=search_client,
                    max_resources=max_resources,
                ),
            }
        )

    def resolve(self, label: ActivityLabel) -> Optional[Agent]:
        """Agent for a label, or None on a registry miss."""
        return self._table.get(label)

    def __contains__(self, label: ActivityLabel) -> bool:
        return label in self._table

    def __len__(self) -> int:
        return len(self._table)

    def agents(self) -> Dict[ActivityLabel, Agent]:
        return dict(self._table)
