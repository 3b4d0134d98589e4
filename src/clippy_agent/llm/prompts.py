"""
Prompt templates for the remote vision-language model.

The classification prompt asks for a single label; the analysis prompts
(one per agent kind) ask for {shouldAssist, suggestion, reasoning}.
"""

from clippy_agent.models.activity import ActivityLabel
from clippy_agent.models.suggestion import AgentKind


_LABEL_GUIDE = """\
- "error": visible error messages, exceptions, stack traces
- "idle": minimal change, user likely reading or waiting
- "normal": active work but doesn't fit other categories
- "writing": writing documents, emails, markdown, or any text content
- "research": browsing web, reading articles, looking up information
- "code": writing or editing code in an IDE or code editor"""

_ANALYSIS_FORMAT = """\
Respond in JSON:
{
  "shouldAssist": true/false,
  "suggestion": "your %s in markdown",
  "reasoning": "why you decided to help or not"
}"""


def classification_prompt(frame_count: int) -> str:
    labels = "|".join(label.value for label in ActivityLabel)
    return (
        f"You are given {frame_count} sequential screenshots captured roughly one "
        f"second apart (oldest first). Classify the user's overall activity as:\n"
        f"{_LABEL_GUIDE}\n\n"
        f'Respond in JSON: {{"classification":"{labels}","confidence":0.0-1.0}}'
    )


ANALYSIS_PROMPTS = {
    AgentKind.DEBUG: (
        "You are a helpful debugging assistant. Analyze this sequence of "
        "screenshots for errors or issues.\n\n"
        "If you see error messages, exceptions, or problems:\n"
        "1. Identify the error type and cause\n"
        "2. Suggest specific solutions\n"
        "3. Provide actionable next steps\n\n"
        + _ANALYSIS_FORMAT % "helpful suggestion"
    ),
    AgentKind.LEARNING: (
        "You are a patient learning assistant. The user has been viewing this "
        "content for a while.\n\n"
        "If the content seems complex or the user might benefit from explanation:\n"
        "1. Identify what they're reading/learning\n"
        "2. Provide a clear, simple explanation (ELI5 style)\n"
        "3. Offer additional resources if helpful\n\n"
        + _ANALYSIS_FORMAT % "explanation"
    ),
    AgentKind.WRITING: (
        "You are a writing coach assistant. Analyze the user's writing in these "
        "screenshots.\n\n"
        "If you can provide helpful writing feedback:\n"
        "1. Identify grammar, style, or clarity improvements\n"
        "2. Suggest better phrasing or structure\n"
        "3. Keep suggestions concise and actionable\n\n"
        + _ANALYSIS_FORMAT % "writing feedback"
    ),
    AgentKind.RESEARCH: (
        "You are a research assistant. The user is browsing or reading content.\n\n"
        "If you can help with their research:\n"
        "1. Summarize key points from what they're viewing\n"
        "2. Suggest related resources or search terms\n"
        "3. Offer to find more information on the topic\n\n"
        + _ANALYSIS_FORMAT % "research assistance"
    ),
    # No agent is registered for this kind yet.
    AgentKind.SECURITY: (
        "You are a code security assistant. Analyze the code in these screenshots "
        "for security issues.\n\n"
        "If you spot potential security vulnerabilities:\n"
        "1. Identify the security risk (SQL injection, XSS, etc.)\n"
        "2. Explain the potential impact\n"
        "3. Suggest secure alternatives\n\n"
        + _ANALYSIS_FORMAT % "security feedback"
    ),
}


def analysis_prompt(kind: AgentKind, context_summary: str) -> str:
    """Build the full analysis prompt for one agent kind."""
    return (
        f"{ANALYSIS_PROMPTS[kind]}\n\n"
        "Screenshots are chronological (oldest first) and captured about one "
        "second apart.\n\n"
        f"Context: {context_summary}"
    )
