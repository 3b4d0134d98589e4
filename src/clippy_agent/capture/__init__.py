"""
Capture Module
==============

Screen capture and frame batching components.

This module provides the ingestion layer for Clippy Agent:
    - Frame / FrameBatch: Immutable frame and batch models
    - FrameBatcher: Fixed-size batcher (cleared on every dispatch)
    - FrameSource / ScreenFrameSource: Frame producers

Example:
    from clippy_agent.capture import BatchReady, FrameBatcher, ScreenFrameSource

    source = ScreenFrameSource(scale=0.75)
    batcher = FrameBatcher(capacity=15)

    result = batcher.push(await source.capture())
    if isinstance(result, BatchReady):
        process(result.batch)
"""

from clippy_agent.capture.frame import Frame, FrameBatch
from clippy_agent.capture.batcher import (
    Accumulating,
    BatchReady,
    FrameBatcher,
    PushResult,
)
from clippy_agent.capture.screen import FrameSource, ScreenFrameSource


__all__ = [
    "Frame",
    "FrameBatch",
    "FrameBatcher",
    "BatchReady",
    "Accumulating",
    "PushResult",
    "FrameSource",
    "ScreenFrameSource",
]
