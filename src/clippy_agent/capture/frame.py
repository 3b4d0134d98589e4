"""
Frame Data Model
================

Internal frame and batch representation for the capture pipeline.

Design Rules:
    - Frames are immutable once captured
    - A batch is ordered oldest-first and never mutated after dispatch
    - Image bytes are passed through unchanged (PNG from the capture layer)
"""

from dataclasses import dataclass
from typing import Iterator, Tuple


@dataclass(frozen=True, slots=True)
class Frame:
    """
    One captured screenshot.

    Attributes:
        image_bytes: Encoded image data (PNG)
        captured_at: UNIX timestamp (seconds) of the capture
        width: Image width in pixels
        height: Image height in pixels
    """

    image_bytes: bytes
    captured_at: float
    width: int
    height: int

    def __repr__(self) -> str:
        """Compact repr that doesn't dump the image."""
        return (
            f"Frame(captured_at={self.captured_at:.3f}, "
            f"{self.width}x{self.height}, {len(self.image_bytes)} bytes)"
        )


@dataclass(frozen=True, slots=True)
class FrameBatch:
    """
    Ordered group of frames dispatched together for one classification.

    Attributes:
        frames: Frames, oldest first
        sequence: Batch counter assigned by the batcher (0 for ad-hoc batches)
    """

    frames: Tuple[Frame, ...] = ()
    sequence: int = 0

    @classmethod
    def empty(cls) -> "FrameBatch":
        return cls()

    def __len__(self) -> int:
        return len(self.frames)

    def __iter__(self) -> Iterator[Frame]:
        return iter(self.frames)

    @property
    def is_empty(self) -> bool:
        return not self.frames

    @property
    def oldest(self) -> Frame:
        """First frame of the batch. Raises IndexError on an empty batch."""
        return self.frames[0]

    @property
    def latest(self) -> Frame:
        """Last frame of the batch. Raises IndexError on an empty batch."""
        return self.frames[-1]

    def __repr__(self) -> str:
        return f"FrameBatch(sequence={self.sequence}, size={len(self.frames)})"
