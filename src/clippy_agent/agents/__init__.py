"""
Agents Module
=============

Classification routing, specialized agents and suggestion gating.

This module implements the decision side of the pipeline:
    - router.py: LangGraph classify → dispatch state machine
    - registry.py: ActivityLabel -> Agent table
    - debug.py / learning.py / writing.py / research.py: Agents
    - gate.py: Deduplication and dismissal suppression

Key Design Decisions:
    - LangGraph is used for CONTROL FLOW; the model is called by agents
    - The router never raises in production mode
    - Confidence is a fixed per-agent constant
"""

from clippy_agent.agents.base import Agent, BaseAgent
from clippy_agent.agents.debug import DebugAgent
from clippy_agent.agents.gate import SuggestionGate
from clippy_agent.agents.learning import LearningAgent
from clippy_agent.agents.registry import AgentRegistry
from clippy_agent.agents.research import EnrichmentResult, ResearchAgent
from clippy_agent.agents.router import AgentRouter, EmptyBatchError
from clippy_agent.agents.writing import WritingAgent


__all__ = [
    "Agent",
    "BaseAgent",
    "DebugAgent",
    "LearningAgent",
    "WritingAgent",
    "ResearchAgent",
    "EnrichmentResult",
    "AgentRegistry",
    "AgentRouter",
    "EmptyBatchError",
    "SuggestionGate",
]
