"""
Suggestion Watcher
==================

WebSocket client for the service's /ws/suggestions endpoint.

This is the UI-side counterpart of BroadcastSuggestionSink: it connects,
decodes state/suggestion events and hands them to a callback. A desktop
overlay or a terminal watcher can be built on top of it.

Design Rules:
    - Reconnects automatically with a fixed backoff
    - Malformed messages are counted and skipped
    - Exposes metrics for health monitoring
"""

import asyncio
import json
import logging
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Dict, Optional

import websockets
from websockets.exceptions import ConnectionClosed, ConnectionClosedOK


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SuggestionEvent:
    """
    One decoded event from the service.

    Attributes:
        type: "state", "suggestion" or "withdrawn"
        state: Assistant state (state events)
        suggestion: Suggestion payload (suggestion events)
    """

    type: str
    state: Optional[str] = None
    suggestion: Optional[Dict[str, Any]] = None


def parse_event(raw: str) -> Optional[SuggestionEvent]:
    """Decode one WebSocket message; None if it is not a known event."""
    try:
        data = json.loads(raw)
    except (json.JSONDecodeError, TypeError):
        return None
    if not isinstance(data, dict):
        return None

    event_type = data.get("type")
    if event_type == "state" and isinstance(data.get("state"), str):
        return SuggestionEvent(type="state", state=data["state"])
    if event_type == "suggestion" and isinstance(data.get("suggestion"), dict):
        return SuggestionEvent(type="suggestion", suggestion=data["suggestion"])
    if event_type == "withdrawn":
        return SuggestionEvent(type="withdrawn")
    return None


class SuggestionWatcher:
    """
    Reconnecting client for suggestion events.

    Example:
        async def show(event):
            print(event)

        watcher = SuggestionWatcher("ws://127.0.0.1:8765/ws/suggestions", show)
        task = asyncio.create_task(watcher.run())
        ...
        await watcher.stop()
        await task
    """

    def __init__(
        self,
        url: str,
        on_event: Callable[[SuggestionEvent], Awaitable[None]],
        reconnect_backoff_ms: int = 1000,
        max_reconnect_attempts: int = 0,
    ) -> None:
        """
        Initialize suggestion watcher.

        Args:
            url: WebSocket URL of the service
            on_event: Async callback for each decoded event
            reconnect_backoff_ms: Backoff between reconnect attempts
            max_reconnect_attempts: Max attempts (0 = unlimited)
        """
        self.url = url
        self.on_event = on_event
        self.reconnect_backoff_ms = reconnect_backoff_ms
        self.max_reconnect_attempts = max_reconnect_attempts

        self._websocket = None
        self._connected: bool = False
        self._running: bool = False
        self._stop_event: asyncio.Event = asyncio.Event()

        self.events_received: int = 0
        self.parse_errors: int = 0
        self.reconnect_count: int = 0

    @property
    def connected(self) -> bool:
        return self._connected

    async def run(self) -> None:
        """Consume events until stop() is called."""
        self._running = True
        self._stop_event.clear()
        logger.info(f"SuggestionWatcher connecting to {self.url}")

        while self._running:
            try:
                await self._connect_and_consume()
            except Exception as e:
                if not self._running:
                    break

                logger.error(f"Connection error: {e}")
                self._connected = False

                if (
                    self.max_reconnect_attempts > 0
                    and self.reconnect_count >= self.max_reconnect_attempts
                ):
                    logger.error(
                        f"Max reconnect attempts ({self.max_reconnect_attempts}) exceeded"
                    )
                    break

                self.reconnect_count += 1
                backoff_sec = self.reconnect_backoff_ms / 1000.0
                logger.info(
                    f"Reconnecting in {backoff_sec:.1f}s (attempt {self.reconnect_count})"
                )
                try:
                    await asyncio.wait_for(self._stop_event.wait(), timeout=backoff_sec)
                    break
                except asyncio.TimeoutError:
                    pass

        logger.info("SuggestionWatcher stopped")

    async def stop(self) -> None:
        self._running = False
        self._stop_event.set()
        if self._websocket is not None:
            try:
                await self._websocket.close()
            except Exception as e:
                logger.debug(f"Error while closing websocket: {e}")
        self._connected = False

    async def _connect_and_consume(self) -> None:
        async with websockets.connect(
            self.url,
            ping_interval=20,
            ping_timeout=10,
            close_timeout=5,
        ) as ws:
            self._websocket = ws
            self._connected = True
            logger.info(f"Connected to {self.url}")

            try:
                async for message in ws:
                    if not self._running:
                        break
                    event = parse_event(message)
                    if event is None:
                        self.parse_errors += 1
                        logger.warning(f"Unrecognized message: {str(message)[:120]!r}")
                        continue
                    self.events_received += 1
                    await self.on_event(event)
            except ConnectionClosedOK:
                logger.info("Connection closed normally")
            except ConnectionClosed as e:
                logger.warning(f"Connection closed: {e}")
                raise
            finally:
                self._connected = False
                self._websocket = None

    def get_metrics(self) -> dict:
        return {
            "connected": self._connected,
            "events_received": self.events_received,
            "parse_errors": self.parse_errors,
            "reconnect_count": self.reconnect_count,
        }
