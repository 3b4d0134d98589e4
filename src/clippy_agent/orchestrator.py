"""
Assistant Orchestrator
======================

Owns the capture loop and wires one cycle end to end:

    FrameSource → FrameBatcher → AgentRouter → SuggestionGate → sink / event log

Concurrency:
    - tick() captures one frame; when a batch completes, the cycle runs as
      a background task so the next tick's capture is not delayed
    - At most one cycle in flight; a batch completed while a cycle is
      still running is skipped and counted
    - Gate and context state are only touched from the event loop

Error Handling:
    - Capture failures are absorbed by the frame source (None frame)
    - Router failures become no-assist responses
    - Sink and frame-dump failures are logged and never stop the loop
"""

import asyncio
import logging
import time
from pathlib import Path
from typing import Callable, Optional

from clippy_agent.agents.gate import SuggestionGate
from clippy_agent.agents.router import AgentRouter
from clippy_agent.capture.batcher import BatchReady, FrameBatcher
from clippy_agent.capture.frame import FrameBatch
from clippy_agent.capture.screen import FrameSource
from clippy_agent.context.store import ContextStore
from clippy_agent.delivery.sink import AssistantState, SuggestionSink
from clippy_agent.models.context import Event
from clippy_agent.models.outcomes import GateDecision
from clippy_agent.models.output import AgentResponse, CycleOutcome


logger = logging.getLogger(__name__)


class AssistantOrchestrator:
    """
    Periodic capture loop plus per-batch decision cycle.

    Attributes:
        frame_interval_ms: Delay between captures in run()
        save_latest_frame_dir: If set, the latest frame of each batch is
            written there as latest.png
    """

    def __init__(
        self,
        source: FrameSource,
        batcher: FrameBatcher,
        router: AgentRouter,
        gate: SuggestionGate,
        context_store: ContextStore,
        sink: SuggestionSink,
        frame_interval_ms: int = 1000,
        save_latest_frame_dir: Optional[str] = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        if frame_interval_ms <= 0:
            raise ValueError("frame_interval_ms must be positive")

        self.source = source
        self.batcher = batcher
        self.router = router
        self.gate = gate
        self.context_store = context_store
        self.sink = sink
        self.frame_interval_ms = frame_interval_ms
        self.save_latest_frame_dir = save_latest_frame_dir
        self._clock = clock

        self._running: bool = False
        self._cycle_task: Optional[asyncio.Task] = None
        self._last_outcome: Optional[CycleOutcome] = None

        self._ticks: int = 0
        self._cycles: int = 0
        self._cycle_errors: int = 0
        self._batches_skipped: int = 0
        self._delivered: int = 0
        self._sink_errors: int = 0

    # =========================================================================
    # Loop
    # =========================================================================

    async def tick(self) -> Optional[asyncio.Task]:
        """
        Capture one frame and start a cycle if a batch completed.

        Returns:
            The background cycle task, when one was started.
        """
        self._ticks += 1
        frame = await self.source.capture()

        now = self._clock()
        last_activity_at = self.context_store.get_context().last_activity_at
        self.context_store.update_idle_time(int((now - last_activity_at) * 1000))

        result = self.batcher.push(frame)
        if not isinstance(result, BatchReady):
            return None

        if self._cycle_task is not None and not self._cycle_task.done():
            self._batches_skipped += 1
            logger.warning(
                f"Batch #{result.batch.sequence} skipped: previous cycle still running "
                f"(skipped={self._batches_skipped})"
            )
            return None

        self._cycle_task = asyncio.create_task(
            self._run_cycle(result.batch),
            name=f"cycle_{result.batch.sequence}",
        )
        return self._cycle_task

    async def _run_cycle(self, batch: FrameBatch) -> None:
        try:
            await self.process_batch(batch)
        except asyncio.CancelledError:
            raise
        except Exception as e:
            self._cycle_errors += 1
            logger.error(f"Cycle error (batch #{batch.sequence}): {e}")
            await self._set_state(AssistantState.SLEEPING)

    async def run(self) -> None:
        """Tick every frame_interval_ms until stop() is called."""
        self._running = True
        interval = self.frame_interval_ms / 1000.0
        logger.info(
            f"Capture loop started: interval={self.frame_interval_ms}ms, "
            f"batch_size={self.batcher.capacity}"
        )

        while self._running:
            started = time.monotonic()
            try:
                await self.tick()
            except asyncio.CancelledError:
                logger.info("Capture loop cancelled")
                break
            except Exception as e:
                logger.error(f"Tick error: {e}")

            elapsed = time.monotonic() - started
            await asyncio.sleep(max(0.0, interval - elapsed))

        logger.info("Capture loop stopped")

    async def stop(self) -> None:
        """Stop the loop and cancel an in-flight cycle."""
        self._running = False
        if self._cycle_task is not None and not self._cycle_task.done():
            self._cycle_task.cancel()
            try:
                await self._cycle_task
            except asyncio.CancelledError:
                pass

    @property
    def running(self) -> bool:
        return self._running

    # =========================================================================
    # Cycle
    # =========================================================================

    async def process_batch(self, batch: FrameBatch) -> CycleOutcome:
        """
        Route one batch and deliver its suggestion if the gate admits it.

        Args:
            batch: Complete frame batch, oldest first

        Returns:
            CycleOutcome describing what happened
        """
        self._cycles += 1
        await self._set_state(AssistantState.THINKING)

        context = self.context_store.get_context(recent_frames=batch)
        self._save_latest_frame(batch)

        response = await self.router.route(batch, context)

        gate_decision: Optional[GateDecision] = None
        delivered = False
        suggestion = response.suggestion if response.should_assist else None

        if suggestion is not None:
            # Gate time is the analyzed frame's capture time.
            gate_decision = self.gate.admit(suggestion, batch.latest.captured_at)
            if gate_decision is GateDecision.ADMIT:
                delivered = await self._present(response)
                await self._set_state(
                    AssistantState.SUGGESTING if delivered else AssistantState.SLEEPING
                )
            else:
                await self._set_state(AssistantState.SLEEPING)
        else:
            self.gate.clear_active()
            await self._withdraw()
            await self._set_state(AssistantState.SLEEPING)

        self._log_event(batch, response, gate_decision)

        outcome = CycleOutcome(
            response=response,
            gate_decision=gate_decision,
            delivered=delivered,
        )
        self._last_outcome = outcome
        return outcome

    def _log_event(
        self,
        batch: FrameBatch,
        response: AgentResponse,
        gate_decision: Optional[GateDecision],
    ) -> None:
        metadata = {
            "batch": batch.sequence,
            "frames": len(batch),
            "should_assist": response.should_assist,
            "agent": response.suggestion.agent_kind.value if response.suggestion else None,
            "gate": gate_decision.value if gate_decision else None,
        }
        timestamp = batch.latest.captured_at if not batch.is_empty else self._clock()
        self.context_store.add_event(
            Event(
                classification=response.classification.value,
                timestamp=timestamp,
                confidence=response.classification_confidence,
                metadata=metadata,
            )
        )

    # =========================================================================
    # User signals
    # =========================================================================

    async def dismiss(self) -> bool:
        """
        User dismissed the shown suggestion.

        Returns:
            True if an active suggestion was suppressed.
        """
        suppressed = self.gate.dismiss(self._clock())
        await self._withdraw()
        await self._set_state(AssistantState.SLEEPING)
        return suppressed

    def record_user_activity(self) -> None:
        """User input observed: reset the idle clock."""
        self.context_store.record_activity(self._clock())

    # =========================================================================
    # Side effects
    # =========================================================================

    async def _present(self, response: AgentResponse) -> bool:
        try:
            await self.sink.present(response.suggestion)
        except Exception as e:
            self._sink_errors += 1
            logger.error(f"Failed to present suggestion: {e}")
            return False
        self._delivered += 1
        return True

    async def _set_state(self, state: AssistantState) -> None:
        try:
            await self.sink.set_state(state)
        except Exception as e:
            self._sink_errors += 1
            logger.error(f"Failed to set assistant state '{state.value}': {e}")

    async def _withdraw(self) -> None:
        try:
            await self.sink.withdraw()
        except Exception as e:
            self._sink_errors += 1
            logger.error(f"Failed to withdraw suggestion: {e}")

    def _save_latest_frame(self, batch: FrameBatch) -> None:
        if not self.save_latest_frame_dir or batch.is_empty:
            return
        try:
            directory = Path(self.save_latest_frame_dir)
            directory.mkdir(parents=True, exist_ok=True)
            (directory / "latest.png").write_bytes(batch.latest.image_bytes)
        except OSError as e:
            logger.warning(f"Could not save latest frame: {e}")

    # =========================================================================
    # Observability
    # =========================================================================

    @property
    def last_outcome(self) -> Optional[CycleOutcome]:
        return self._last_outcome

    @property
    def cycle_in_flight(self) -> bool:
        return self._cycle_task is not None and not self._cycle_task.done()

    def get_metrics(self) -> dict:
        """Get orchestrator metrics for observability."""
        return {
            "running": self._running,
            "ticks": self._ticks,
            "cycles": self._cycles,
            "cycle_errors": self._cycle_errors,
            "batches_skipped": self._batches_skipped,
            "suggestions_delivered": self._delivered,
            "sink_errors": self._sink_errors,
            "cycle_in_flight": self.cycle_in_flight,
        }
