"""
LLM Module
==========

Remote vision-language model access for classification and analysis.

Components:
    - VisionModelBackend: Transport protocol (OpenRouter, Anthropic, Mock)
    - ClassificationClient: Batch -> Classification (fails closed)
    - AnalysisClient: Batch + context -> AnalysisResult
    - parsing: Three-stage JSON repair pipeline
"""

from clippy_agent.llm.backends import (
    AnthropicBackend,
    MockVisionBackend,
    ModelBackendError,
    OpenRouterBackend,
    VisionModelBackend,
)
from clippy_agent.llm.client import AnalysisClient, ClassificationClient
from clippy_agent.llm.parsing import (
    AnalysisResult,
    ParseStage,
    parse_model_json,
    read_analysis,
    read_classification,
)


__all__ = [
    "VisionModelBackend",
    "OpenRouterBackend",
    "AnthropicBackend",
    "MockVisionBackend",
    "ModelBackendError",
    "ClassificationClient",
    "AnalysisClient",
    "AnalysisResult",
    "ParseStage",
    "parse_model_json",
    "read_analysis",
    "read_classification",
]
