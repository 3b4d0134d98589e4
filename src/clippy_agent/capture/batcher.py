"""
Frame Batcher
=============

Fixed-size accumulator between capture and classification.

This module provides the FrameBatcher class, which turns a stream of
captured frames into complete batches for the router.

Design Rules:
    - Fixed capacity N; a batch is dispatched as soon as it holds N frames
    - The buffer is cleared on dispatch, so it never overflows
    - Never blocks the producer
    - Does NOT process or modify frames
"""

import logging
from collections import deque
from dataclasses import dataclass
from typing import Deque, Optional, Union

from clippy_agent.capture.frame import Frame, FrameBatch


logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class BatchReady:
    """A complete batch is ready for routing."""

    batch: FrameBatch


@dataclass(frozen=True, slots=True)
class Accumulating:
    """The current cycle is still filling up."""

    size: int
    capacity: int


PushResult = Union[BatchReady, Accumulating]


class FrameBatcher:
    """
    Fixed-size batcher for captured frames.

    Attributes:
        capacity: Frames per batch (N)
        batches_emitted: Number of BatchReady results returned
        frames_skipped: Failed captures (None frames) ignored

    Example:
        batcher = FrameBatcher(capacity=15)

        result = batcher.push(frame)
        if isinstance(result, BatchReady):
            await router.route(result.batch, context)
    """

    def __init__(self, capacity: int = 15) -> None:
        """
        Initialize frame batcher.

        Args:
            capacity: Frames per batch. Must be >= 1.
        """
        if capacity < 1:
            raise ValueError("capacity must be >= 1")

        self._capacity = capacity
        self._buffer: Deque[Frame] = deque()
        self._batches_emitted: int = 0
        self._frames_skipped: int = 0
        self._total_pushed: int = 0

    @property
    def capacity(self) -> int:
        return self._capacity

    @property
    def size(self) -> int:
        """Frames accumulated in the current cycle."""
        return len(self._buffer)

    @property
    def batches_emitted(self) -> int:
        return self._batches_emitted

    @property
    def frames_skipped(self) -> int:
        return self._frames_skipped

    def push(self, frame: Optional[Frame]) -> PushResult:
        """
        Add a frame to the current cycle.

        Args:
            frame: Captured frame, or None when the capture failed

        Returns:
            BatchReady with exactly `capacity` frames (oldest first) when
            the cycle completes, Accumulating otherwise.
        """
        if frame is None:
            self._frames_skipped += 1
            logger.debug("Capture returned no frame, tick skipped")
            return Accumulating(size=len(self._buffer), capacity=self._capacity)

        self._total_pushed += 1
        self._buffer.append(frame)

        if len(self._buffer) < self._capacity:
            return Accumulating(size=len(self._buffer), capacity=self._capacity)

        self._batches_emitted += 1
        batch = FrameBatch(frames=tuple(self._buffer), sequence=self._batches_emitted)
        self._buffer.clear()

        logger.debug(f"Batch #{batch.sequence} ready ({len(batch)} frames)")
        return BatchReady(batch=batch)

    def reset(self) -> int:
        """
        Drop the frames of the current cycle.

        Returns:
            Number of frames discarded.
        """
        cleared = len(self._buffer)
        self._buffer.clear()
        return cleared

    def metrics(self) -> dict:
        """
        Get batcher metrics for observability.

        Returns:
            Dict with size, capacity, batches_emitted, frames_skipped,
            total_pushed
        """
        return {
            "size": len(self._buffer),
            "capacity": self._capacity,
            "batches_emitted": self._batches_emitted,
            "frames_skipped": self._frames_skipped,
            "total_pushed": self._total_pushed,
        }
