"""Debug agent: handles batches classified as `error`."""

from clippy_agent.agents.base import BaseAgent
from clippy_agent.models.suggestion import AgentKind


class DebugAgent(BaseAgent):
    """Explains visible errors and proposes next steps."""

    kind = AgentKind.DEBUG
    title = "🔍 I noticed an error"
