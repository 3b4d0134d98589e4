"""Writing coach agent: handles batches classified as `writing`."""

from clippy_agent.agents.base import BaseAgent
from clippy_agent.models.suggestion import AgentKind


class WritingAgent(BaseAgent):
    """Grammar, style and clarity feedback on visible prose."""

    kind = AgentKind.WRITING
    title = "✍️ Writing Assistant"
