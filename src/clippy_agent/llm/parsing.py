"""
Model Response Parsing
======================

Three-stage parser for near-JSON text returned by vision-language models.

Stages (tried in order, each usable on its own):
    1. parse_strict:        json.loads on the trimmed text
    2. parse_fence_stripped: remove ``` / ```json fences, then parse; if
                            that fails, parse the outermost {...} span so
                            trailing prose is ignored
    3. extract_fields:      regex-extract individual fields when the
                            object as a whole cannot be parsed

Typed readers (read_classification, read_analysis) sit on top of the
pipeline and normalize field types. They never raise.
"""

import json
import logging
import re
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Dict, Optional, Sequence, Tuple

from clippy_agent.models.activity import ActivityLabel, Classification


logger = logging.getLogger(__name__)


class ParseStage(str, Enum):
    """Which stage produced the parsed payload."""

    STRICT = "strict"
    FENCE_STRIPPED = "fence_stripped"
    FIELD_REGEX = "field_regex"
    FAILED = "failed"


@dataclass(frozen=True)
class ParseResult:
    """Parsed payload and the stage that produced it."""

    data: Dict[str, Any]
    stage: ParseStage

    @property
    def ok(self) -> bool:
        return self.stage is not ParseStage.FAILED


_OPENING_FENCE = re.compile(r"^```[a-zA-Z]*\s*\n?")
_CLOSING_FENCE = re.compile(r"\n?```\s*$")
_OBJECT_SPAN = re.compile(r"\{.*\}", re.S)

_FIELD_PATTERNS: Dict[str, re.Pattern] = {
    "classification": re.compile(r'"classification"\s*:\s*"([A-Za-z_]+)"'),
    "confidence": re.compile(r'"confidence"\s*:\s*"?(-?\d+(?:\.\d+)?)'),
    "shouldAssist": re.compile(r'"shouldAssist"\s*:\s*(true|false)', re.I),
    "suggestion": re.compile(r'"suggestion"\s*:\s*"([\s\S]*?)"\s*,\s*"reasoning"'),
    "reasoning": re.compile(r'"reasoning"\s*:\s*"([\s\S]*?)"(?=\s*(?:,|\}|$))'),
}


# =============================================================================
# Stages
# =============================================================================

def parse_strict(text: str) -> Optional[Dict[str, Any]]:
    """Stage 1: the whole text is a JSON object."""
    if not text or not text.strip():
        return None
    try:
        data = json.loads(text.strip())
    except (json.JSONDecodeError, ValueError):
        return None
    return data if isinstance(data, dict) else None


def strip_code_fences(text: str) -> str:
    """Remove a surrounding markdown code fence, if any."""
    cleaned = text.strip()
    cleaned = _OPENING_FENCE.sub("", cleaned)
    cleaned = _CLOSING_FENCE.sub("", cleaned)
    return cleaned.strip()


def parse_fence_stripped(text: str) -> Optional[Dict[str, Any]]:
    """Stage 2: JSON wrapped in code fences and/or surrounded by prose."""
    if not text:
        return None
    cleaned = strip_code_fences(text)
    data = parse_strict(cleaned)
    if data is not None:
        return data

    match = _OBJECT_SPAN.search(cleaned)
    if match:
        return parse_strict(match.group(0))
    return None


def extract_fields(text: str, fields: Sequence[str]) -> Optional[Dict[str, Any]]:
    """
    Stage 3: pull individual fields out of text that is not valid JSON.

    Values are returned as raw strings; callers normalize types.

    Returns:
        Dict of the fields that were found, or None if none were.
    """
    if not text:
        return None
    found: Dict[str, Any] = {}
    for name in fields:
        pattern = _FIELD_PATTERNS.get(name)
        if pattern is None:
            continue
        match = pattern.search(text)
        if match:
            found[name] = match.group(1)
    return found or None


def parse_model_json(text: str, fields: Sequence[str]) -> ParseResult:
    """
    Run the three stages in order and return the first success.

    Args:
        text: Raw model output
        fields: Field names for the regex stage

    Returns:
        ParseResult; stage FAILED with empty data if every stage failed.
    """
    stages: Tuple[Tuple[ParseStage, Callable[[str], Optional[Dict[str, Any]]]], ...] = (
        (ParseStage.STRICT, parse_strict),
        (ParseStage.FENCE_STRIPPED, parse_fence_stripped),
        (ParseStage.FIELD_REGEX, lambda t: extract_fields(t, fields)),
    )
    for stage, parser in stages:
        data = parser(text)
        if data is not None:
            if stage is not ParseStage.STRICT:
                logger.debug(f"Model output recovered at stage '{stage.value}'")
            return ParseResult(data=data, stage=stage)

    preview = (text or "")[:200]
    logger.warning(f"All parse stages failed for model output: {preview!r}")
    return ParseResult(data={}, stage=ParseStage.FAILED)


# =============================================================================
# Typed readers
# =============================================================================

@dataclass(frozen=True)
class AnalysisResult:
    """
    Parsed output of one agent analysis call.

    Attributes:
        should_assist: Whether the model wants to help
        suggestion_text: Markdown body, if any
        reasoning: Model reasoning, if any
    """

    should_assist: bool = False
    suggestion_text: Optional[str] = None
    reasoning: Optional[str] = None


def _to_confidence(value: Any, default: float) -> float:
    if isinstance(value, bool):
        return default
    try:
        confidence = float(value)
    except (TypeError, ValueError):
        return default
    if confidence != confidence:  # NaN
        return default
    return min(1.0, max(0.0, confidence))


def _to_bool(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        return value.strip().lower() == "true"
    return False


def _to_text(value: Any) -> Optional[str]:
    if value is None:
        return None
    if not isinstance(value, str):
        value = json.dumps(value) if isinstance(value, (dict, list)) else str(value)
    return value


def _unescape(value: str) -> str:
    """Undo JSON string escaping on a regex-extracted value."""
    return (
        value.replace("```markdown", "")
        .replace("\\n", "\n")
        .replace('\\"', '"')
        .replace("\\\\", "\\")
    )


def read_classification(text: str) -> Tuple[Classification, ParseStage]:
    """
    Parse a classification reply.

    A label outside ActivityLabel resolves to NORMAL with zero confidence.
    A known label with missing or invalid confidence gets 0.5.
    """
    result = parse_model_json(text, ("classification", "confidence"))
    raw_label = result.data.get("classification")
    if not isinstance(raw_label, str):
        return Classification.fallback(), result.stage

    label = ActivityLabel.coerce(raw_label)
    if label is ActivityLabel.NORMAL and raw_label.strip().lower() != ActivityLabel.NORMAL.value:
        logger.warning(f"Model returned unknown label {raw_label!r}, treating as normal")
        return Classification.fallback(), result.stage

    confidence = _to_confidence(result.data.get("confidence"), default=0.5)
    return Classification(label=label, confidence=confidence), result.stage


def read_analysis(text: str) -> Tuple[AnalysisResult, ParseStage]:
    """Parse an analysis reply into an AnalysisResult."""
    result = parse_model_json(text, ("shouldAssist", "suggestion", "reasoning"))
    if not result.ok:
        return AnalysisResult(), result.stage

    suggestion = _to_text(result.data.get("suggestion"))
    reasoning = _to_text(result.data.get("reasoning"))
    if result.stage is ParseStage.FIELD_REGEX:
        suggestion = _unescape(suggestion).replace("```", "") if suggestion else suggestion
        reasoning = _unescape(reasoning) if reasoning else reasoning

    return (
        AnalysisResult(
            should_assist=_to_bool(result.data.get("shouldAssist")),
            suggestion_text=suggestion.strip() if suggestion else None,
            reasoning=reasoning,
        ),
        result.stage,
    )
