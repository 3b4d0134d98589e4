"""
Screen Frame Source
===================

Frame sources for the capture loop.

This module provides the FrameSource protocol and ScreenFrameSource, which
grabs the desktop with mss and encodes a downscaled PNG with Pillow.

Design Rules:
    - capture() never raises; a failed capture returns None
    - Grabbing and encoding run in a worker thread
    - Frames are downscaled before encoding to keep model calls cheap
"""

import asyncio
import io
import logging
import time
from typing import Optional, Protocol

import mss
from PIL import Image

from clippy_agent.capture.frame import Frame


logger = logging.getLogger(__name__)


class FrameSource(Protocol):
    """
    Protocol for frame producers.

    Implementations return None to signal a transient capture failure.
    """

    async def capture(self) -> Optional[Frame]:
        ...


class ScreenFrameSource:
    """
    Desktop capture via mss.

    Attributes:
        monitor_index: mss monitor index (0 = virtual screen, 1 = primary)
        scale: Downscale factor in (0, 1]
        capture_count: Successful captures
        error_count: Failed captures
    """

    def __init__(self, monitor_index: int = 1, scale: float = 0.75) -> None:
        """
        Initialize screen frame source.

        Args:
            monitor_index: Which monitor to grab
            scale: Fraction of the native resolution to keep
        """
        if not 0 < scale <= 1:
            raise ValueError("scale must be in (0, 1]")

        self.monitor_index = monitor_index
        self.scale = scale
        self.capture_count: int = 0
        self.error_count: int = 0

        logger.info(
            f"ScreenFrameSource initialized: monitor={monitor_index}, scale={scale}"
        )

    async def capture(self) -> Optional[Frame]:
        """Grab the screen. Returns None on any failure."""
        try:
            frame = await asyncio.to_thread(self._grab)
        except Exception as e:
            self.error_count += 1
            logger.error(f"Screen capture failed: {e}")
            return None

        self.capture_count += 1
        return frame

    def _grab(self) -> Frame:
        captured_at = time.time()
        with mss.mss() as sct:
            monitors = sct.monitors
            index = min(max(self.monitor_index, 0), len(monitors) - 1)
            shot = sct.grab(monitors[index])

        image = Image.frombytes("RGB", shot.size, shot.rgb)
        if self.scale < 1.0:
            width = max(1, int(image.width * self.scale))
            height = max(1, int(image.height * self.scale))
            image = image.resize((width, height))

        buffer = io.BytesIO()
        image.save(buffer, format="PNG")

        return Frame(
            image_bytes=buffer.getvalue(),
            captured_at=captured_at,
            width=image.width,
            height=image.height,
        )

    def get_metrics(self) -> dict:
        return {
            "capture_count": self.capture_count,
            "error_count": self.error_count,
        }
