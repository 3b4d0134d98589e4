"""
Model Clients
=============

Fail-closed adapters between frame batches and the remote model.

    ClassificationClient.classify(batch) -> Classification
    AnalysisClient.analyze(batch, context_summary, kind) -> AnalysisResult

Design Rules:
    - Never raise: transport error, timeout, malformed reply and empty
      batch all map to the safe default
    - Never return a label outside ActivityLabel
    - Every remote call has an explicit timeout
"""

import asyncio
import logging
from collections import Counter
from typing import Dict

from clippy_agent.capture.frame import FrameBatch
from clippy_agent.llm.backends import VisionModelBackend
from clippy_agent.llm.parsing import (
    AnalysisResult,
    ParseStage,
    read_analysis,
    read_classification,
)
from clippy_agent.llm.prompts import analysis_prompt, classification_prompt
from clippy_agent.models.activity import Classification
from clippy_agent.models.suggestion import AgentKind


logger = logging.getLogger(__name__)


class ClassificationClient:
    """
    Turns a frame batch into an activity classification.

    Attributes:
        backend: Transport used for the remote call
        timeout_seconds: Per-call timeout
        max_tokens: Token limit for the reply
    """

    def __init__(
        self,
        backend: VisionModelBackend,
        timeout_seconds: float = 30.0,
        max_tokens: int = 100,
        temperature: float = 0.3,
    ) -> None:
        self.backend = backend
        self.timeout_seconds = timeout_seconds
        self.max_tokens = max_tokens
        self.temperature = temperature

        self._calls: int = 0
        self._failures: int = 0
        self._parse_stages: Counter = Counter()

    async def classify(self, batch: FrameBatch) -> Classification:
        """
        Classify the user's activity over the batch.

        Args:
            batch: Frames, oldest first

        Returns:
            Classification; (normal, 0.0) on any failure.
        """
        if batch.is_empty:
            logger.warning("classify() called with an empty batch")
            return Classification.fallback()

        self._calls += 1
        try:
            reply = await asyncio.wait_for(
                self.backend.complete(
                    batch.frames,
                    classification_prompt(len(batch)),
                    max_tokens=self.max_tokens,
                    temperature=self.temperature,
                ),
                timeout=self.timeout_seconds,
            )
        except asyncio.TimeoutError:
            self._failures += 1
            logger.warning(
                f"Classification timed out after {self.timeout_seconds}s "
                f"(batch #{batch.sequence})"
            )
            return Classification.fallback()
        except Exception as e:
            self._failures += 1
            logger.error(f"Classification call failed (batch #{batch.sequence}): {e}")
            return Classification.fallback()

        try:
            classification, stage = read_classification(reply or "")
        except Exception as e:
            self._failures += 1
            logger.error(f"Classification parse failed: {e}")
            return Classification.fallback()

        self._parse_stages[stage.value] += 1
        if stage is ParseStage.FAILED:
            self._failures += 1

        logger.debug(
            f"Batch #{batch.sequence} classified: {classification} "
            f"(parse={stage.value}, backend={self.backend.name})"
        )
        return classification

    def get_metrics(self) -> Dict[str, object]:
        """Get client metrics for observability."""
        return {
            "backend": self.backend.name,
            "calls": self._calls,
            "failures": self._failures,
            "parse_stage_counts": dict(self._parse_stages),
        }


class AnalysisClient:
    """
    Runs one agent's analysis prompt over a batch.

    Unparseable or failed replies come back as should_assist=False.
    """

    def __init__(
        self,
        backend: VisionModelBackend,
        timeout_seconds: float = 30.0,
        max_tokens: int = 1000,
        temperature: float = 0.7,
    ) -> None:
        self.backend = backend
        self.timeout_seconds = timeout_seconds
        self.max_tokens = max_tokens
        self.temperature = temperature

        self._calls: int = 0
        self._failures: int = 0

    async def analyze(
        self,
        batch: FrameBatch,
        context_summary: str,
        kind: AgentKind,
    ) -> AnalysisResult:
        """
        Ask the model whether and how to help.

        Args:
            batch: Frames, oldest first
            context_summary: Plain-text context appended to the prompt
            kind: Which agent prompt to use

        Returns:
            AnalysisResult (should_assist=False on any failure)
        """
        if batch.is_empty:
            return AnalysisResult()

        self._calls += 1
        try:
            reply = await asyncio.wait_for(
                self.backend.complete(
                    batch.frames,
                    analysis_prompt(kind, context_summary),
                    max_tokens=self.max_tokens,
                    temperature=self.temperature,
                ),
                timeout=self.timeout_seconds,
            )
        except asyncio.TimeoutError:
            self._failures += 1
            logger.warning(f"{kind.value} analysis timed out after {self.timeout_seconds}s")
            return AnalysisResult()
        except Exception as e:
            self._failures += 1
            logger.error(f"{kind.value} analysis call failed: {e}")
            return AnalysisResult()

        result, stage = read_analysis(reply or "")
        if stage is ParseStage.FAILED:
            self._failures += 1
        return result

    def get_metrics(self) -> Dict[str, object]:
        return {
            "backend": self.backend.name,
            "calls": self._calls,
            "failures": self._failures,
        }
