"""
Vision Model Backends
=====================

Transport adapters for the remote vision-language model.

This module provides the VisionModelBackend protocol and its
implementations:
    - OpenRouterBackend: OpenAI-compatible chat completions via OpenRouter
    - AnthropicBackend: Anthropic Messages API
    - MockVisionBackend: Deterministic canned replies (no network)

Design Rules:
    - A backend only moves bytes: frames + prompt in, raw text out
    - Parsing and fail-closed policy live in the clients, not here
    - Transport failures raise ModelBackendError
"""

import base64
import json
import logging
from typing import Any, Dict, List, Optional, Protocol, Sequence

from anthropic import AsyncAnthropic
from openai import AsyncOpenAI

from clippy_agent.capture.frame import Frame


logger = logging.getLogger(__name__)


class ModelBackendError(Exception):
    """Raised when a backend cannot be built or a remote call fails."""
    pass


class VisionModelBackend(Protocol):
    """
    Protocol for vision-language model transports.

    Attributes:
        name: Short backend name used in logs and metrics
    """

    name: str

    async def complete(
        self,
        frames: Sequence[Frame],
        prompt: str,
        *,
        max_tokens: int,
        temperature: float,
    ) -> str:
        """
        Send frames (oldest first) followed by the prompt, return reply text.

        Raises:
            ModelBackendError: On transport or API failure
        """
        ...


def _b64(frame: Frame) -> str:
    return base64.b64encode(frame.image_bytes).decode("ascii")


# =============================================================================
# OpenRouter
# =============================================================================

class OpenRouterBackend:
    """
    OpenRouter chat completions through the OpenAI SDK.

    Images are sent as PNG data URIs with low detail to keep token use
    predictable.
    """

    name = "openrouter"

    def __init__(
        self,
        api_key: str,
        model: str,
        base_url: str = "https://openrouter.ai/api/v1",
        timeout_seconds: float = 30.0,
    ) -> None:
        if not api_key:
            raise ModelBackendError("OpenRouter backend requires an API key")

        self.model = model
        self._client = AsyncOpenAI(
            api_key=api_key,
            base_url=base_url,
            timeout=timeout_seconds,
        )
        logger.info(f"OpenRouterBackend initialized: model={model}")

    def _build_content(self, frames: Sequence[Frame], prompt: str) -> List[Dict[str, Any]]:
        content: List[Dict[str, Any]] = [
            {
                "type": "image_url",
                "image_url": {
                    "url": f"data:image/png;base64,{_b64(frame)}",
                    "detail": "low",
                },
            }
            for frame in frames
        ]
        content.append({"type": "text", "text": prompt})
        return content

    async def complete(
        self,
        frames: Sequence[Frame],
        prompt: str,
        *,
        max_tokens: int,
        temperature: float,
    ) -> str:
        try:
            response = await self._client.chat.completions.create(
                model=self.model,
                messages=[{"role": "user", "content": self._build_content(frames, prompt)}],
                max_tokens=max_tokens,
                temperature=temperature,
            )
        except Exception as e:
            raise ModelBackendError(f"OpenRouter request failed: {e}") from e

        if not response.choices:
            return ""
        return response.choices[0].message.content or ""


# =============================================================================
# Anthropic
# =============================================================================

class AnthropicBackend:
    """Anthropic Messages API with base64 image blocks."""

    name = "anthropic"

    def __init__(self, api_key: str, model: str, timeout_seconds: float = 30.0) -> None:
        if not api_key:
            raise ModelBackendError("Anthropic backend requires an API key")

        self.model = model
        self._client = AsyncAnthropic(api_key=api_key, timeout=timeout_seconds)
        logger.info(f"AnthropicBackend initialized: model={model}")

    def _build_content(self, frames: Sequence[Frame], prompt: str) -> List[Dict[str, Any]]:
        content: List[Dict[str, Any]] = [
            {
                "type": "image",
                "source": {
                    "type": "base64",
                    "media_type": "image/png",
                    "data": _b64(frame),
                },
            }
            for frame in frames
        ]
        content.append({"type": "text", "text": prompt})
        return content

    async def complete(
        self,
        frames: Sequence[Frame],
        prompt: str,
        *,
        max_tokens: int,
        temperature: float,
    ) -> str:
        try:
            response = await self._client.messages.create(
                model=self.model,
                max_tokens=max_tokens,
                temperature=temperature,
                messages=[{"role": "user", "content": self._build_content(frames, prompt)}],
            )
        except Exception as e:
            raise ModelBackendError(f"Anthropic request failed: {e}") from e

        texts = [
            block.text
            for block in response.content
            if getattr(block, "type", None) == "text" and isinstance(block.text, str)
        ]
        return "\n".join(t for t in texts if t).strip()


# =============================================================================
# Mock
# =============================================================================

class MockVisionBackend:
    """
    Deterministic backend for local runs without API keys.

    Classification prompts get the configured label; analysis prompts get
    the configured assist decision. No network, no randomness.

    Attributes:
        label: Label returned for classification prompts
        confidence: Confidence returned with it
        should_assist: Decision returned for analysis prompts
        suggestion: Suggestion body returned when assisting
        call_count: Number of complete() calls
    """

    name = "mock"

    def __init__(
        self,
        label: str = "normal",
        confidence: float = 0.9,
        should_assist: bool = False,
        suggestion: Optional[str] = None,
    ) -> None:
        self.label = label
        self.confidence = confidence
        self.should_assist = should_assist
        self.suggestion = suggestion
        self.call_count: int = 0

        logger.info(f"MockVisionBackend initialized: label={label}")

    async def complete(
        self,
        frames: Sequence[Frame],
        prompt: str,
        *,
        max_tokens: int,
        temperature: float,
    ) -> str:
        self.call_count += 1
        if '"classification"' in prompt:
            return json.dumps({"classification": self.label, "confidence": self.confidence})
        return json.dumps(
            {
                "shouldAssist": self.should_assist,
                "suggestion": self.suggestion if self.should_assist else None,
                "reasoning": "mock backend",
            }
        )
