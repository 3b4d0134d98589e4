"""
Clippy Agent
============

Screen-aware desktop assistant agent.

The service periodically captures the screen, classifies the user's
activity with a remote vision-language model, routes the result to a
specialized agent and decides whether the resulting suggestion should
reach the user given recent suggestion history.

Components:
    - capture: Screen frame source and sliding-window batcher
    - llm: Model backends, fail-closed clients and response parsing
    - agents: LangGraph router, agent registry, agents and suggestion gate
    - search: Related-resource lookup for the research agent
    - context: Rolling activity context
    - delivery: Suggestion sinks and WebSocket watcher

Example:
    from clippy_agent.config import settings
    from clippy_agent.models import AgentResponse

    # The service is started via the FastAPI application
    # See main.py for entry point
"""

__version__ = "0.1.0"
__author__ = "Clippy Agent Project"

__all__ = [
    "__version__",
]
