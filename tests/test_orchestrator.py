"""
Orchestrator Tests
==================

End-to-end tests of capture → batch → classify → route → gate → deliver,
driven by scripted backends and a fake clock.
"""

import asyncio

import pytest

from clippy_agent.agents import AgentRegistry, AgentRouter, SuggestionGate
from clippy_agent.capture.batcher import FrameBatcher
from clippy_agent.context.store import InMemoryContextStore
from clippy_agent.llm import AnalysisClient, ClassificationClient
from clippy_agent.models import ActivityLabel, AgentKind, Classification, GateDecision
from clippy_agent.orchestrator import AssistantOrchestrator


def build(
    classification_backend,
    analysis_backend,
    sink,
    clock,
    source=None,
    capacity=15,
    classifier=None,
    save_latest_frame_dir=None,
):
    registry = AgentRegistry.default(AnalysisClient(analysis_backend))
    router = AgentRouter(classifier or ClassificationClient(classification_backend), registry)
    return AssistantOrchestrator(
        source=source,
        batcher=FrameBatcher(capacity=capacity),
        router=router,
        gate=SuggestionGate(cooldown_ms=60_000, dismiss_suppression_ms=300_000),
        context_store=InMemoryContextStore(now=clock()),
        sink=sink,
        save_latest_frame_dir=save_latest_frame_dir,
        clock=clock,
    )


class BlockingClassifier:
    """Classifier that waits until released."""

    def __init__(self):
        self.release = asyncio.Event()
        self.calls = 0

    async def classify(self, batch):
        self.calls += 1
        await self.release.wait()
        return Classification(ActivityLabel.NORMAL, 0.9)


class TestProcessBatch:
    """One decision cycle on a ready batch."""

    @pytest.mark.asyncio
    async def test_error_batch_delivers_debug_suggestion(
        self, full_batch, fake_backend_factory, replies, recording_sink, clock
    ):
        orchestrator = build(
            fake_backend_factory([replies.classification("error", 0.9)]),
            fake_backend_factory([replies.analysis(True, "Add the missing import", "ImportError shown")]),
            recording_sink,
            clock,
        )

        outcome = await orchestrator.process_batch(full_batch)

        assert outcome.response.should_assist is True
        assert outcome.response.classification is ActivityLabel.ERROR
        assert outcome.gate_decision is GateDecision.ADMIT
        assert outcome.delivered is True

        assert len(recording_sink.presented) == 1
        presented = recording_sink.presented[0]
        assert presented.agent_kind is AgentKind.DEBUG
        assert presented.body == "Add the missing import"
        assert recording_sink.states == ["thinking", "suggesting"]

    @pytest.mark.asyncio
    async def test_normal_batch_never_calls_agent(
        self, full_batch, fake_backend_factory, replies, recording_sink, clock
    ):
        analysis_backend = fake_backend_factory()
        orchestrator = build(
            fake_backend_factory([replies.classification("normal", 0.95)]),
            analysis_backend,
            recording_sink,
            clock,
        )

        outcome = await orchestrator.process_batch(full_batch)

        assert outcome.response.should_assist is False
        assert outcome.gate_decision is None
        assert analysis_backend.call_count == 0
        assert recording_sink.presented == []
        assert recording_sink.withdrawals == 1
        assert recording_sink.states == ["thinking", "sleeping"]

    @pytest.mark.asyncio
    async def test_repeat_is_suppressed(
        self, batch_factory, fake_backend_factory, replies, recording_sink, clock
    ):
        orchestrator = build(
            fake_backend_factory([replies.classification("error", 0.9)]),
            fake_backend_factory([replies.analysis(True, "Same advice")]),
            recording_sink,
            clock,
        )

        first = await orchestrator.process_batch(batch_factory(start=clock(), sequence=1))
        second = await orchestrator.process_batch(batch_factory(start=clock() + 15, sequence=2))

        assert first.gate_decision is GateDecision.ADMIT
        assert second.gate_decision is GateDecision.SUPPRESS_REPEAT
        assert second.delivered is False
        assert len(recording_sink.presented) == 1

    @pytest.mark.asyncio
    async def test_events_are_logged_most_recent_first(
        self, batch_factory, fake_backend_factory, replies, recording_sink, clock
    ):
        orchestrator = build(
            fake_backend_factory(
                [replies.classification("writing", 0.8), replies.classification("idle", 0.6)]
            ),
            fake_backend_factory([replies.analysis(False)]),
            recording_sink,
            clock,
        )

        await orchestrator.process_batch(batch_factory(sequence=1))
        await orchestrator.process_batch(batch_factory(sequence=2))

        events = orchestrator.context_store.get_context().recent_events
        assert [event.classification for event in events] == ["idle", "writing"]
        assert events[0].metadata["batch"] == 2
        assert events[0].metadata["frames"] == 15
        assert events[1].confidence == 0.8

    @pytest.mark.asyncio
    async def test_sink_failure_does_not_crash(
        self, full_batch, fake_backend_factory, replies, failing_sink, clock
    ):
        orchestrator = build(
            fake_backend_factory([replies.classification("error", 0.9)]),
            fake_backend_factory([replies.analysis(True, "Try again")]),
            failing_sink,
            clock,
        )

        outcome = await orchestrator.process_batch(full_batch)

        assert outcome.gate_decision is GateDecision.ADMIT
        assert outcome.delivered is False
        assert orchestrator.get_metrics()["sink_errors"] == 1

    @pytest.mark.asyncio
    async def test_saves_latest_frame(
        self, full_batch, fake_backend_factory, replies, recording_sink, clock, tmp_path
    ):
        orchestrator = build(
            fake_backend_factory([replies.classification("normal", 0.9)]),
            fake_backend_factory(),
            recording_sink,
            clock,
            save_latest_frame_dir=str(tmp_path),
        )

        await orchestrator.process_batch(full_batch)

        assert (tmp_path / "latest.png").read_bytes() == full_batch.latest.image_bytes


class TestDismiss:
    """User dismissal flows back into the gate."""

    @pytest.mark.asyncio
    async def test_dismissed_suggestion_is_suppressed(
        self, batch_factory, fake_backend_factory, replies, recording_sink, clock
    ):
        orchestrator = build(
            fake_backend_factory([replies.classification("error", 0.9)]),
            fake_backend_factory([replies.analysis(True, "Check the stack trace")]),
            recording_sink,
            clock,
        )

        await orchestrator.process_batch(batch_factory(start=clock(), sequence=1))
        assert await orchestrator.dismiss() is True

        # Past the repeat cooldown, still inside the dismissal window.
        clock.advance(120)
        outcome = await orchestrator.process_batch(batch_factory(start=clock(), sequence=2))

        assert outcome.gate_decision is GateDecision.SUPPRESS_DISMISSED
        assert len(recording_sink.presented) == 1
        assert recording_sink.withdrawals == 1

    @pytest.mark.asyncio
    async def test_dismiss_with_nothing_shown(self, fake_backend_factory, recording_sink, clock):
        orchestrator = build(fake_backend_factory(), fake_backend_factory(), recording_sink, clock)

        assert await orchestrator.dismiss() is False
        assert recording_sink.states == ["sleeping"]


class TestTick:
    """Capture loop mechanics."""

    @pytest.mark.asyncio
    async def test_batch_completes_after_capacity_ticks(
        self, fake_backend_factory, replies, recording_sink, clock, frame_source_factory
    ):
        classification_backend = fake_backend_factory([replies.classification("error", 0.9)])
        orchestrator = build(
            classification_backend,
            fake_backend_factory([replies.analysis(True, "Rename the variable")]),
            recording_sink,
            clock,
            source=frame_source_factory(clock),
        )

        task = None
        for _ in range(15):
            clock.advance(1)
            task = await orchestrator.tick()

        assert task is not None
        await task

        assert classification_backend.frame_counts == [15]
        assert orchestrator.last_outcome.response.classification is ActivityLabel.ERROR
        assert orchestrator.last_outcome.delivered is True
        assert len(recording_sink.presented) == 1

    @pytest.mark.asyncio
    async def test_failed_captures_are_skipped(
        self, fake_backend_factory, replies, recording_sink, clock, frame_source_factory
    ):
        classification_backend = fake_backend_factory([replies.classification("normal", 0.9)])
        orchestrator = build(
            classification_backend,
            fake_backend_factory(),
            recording_sink,
            clock,
            source=frame_source_factory(clock, fail_every=2),
            capacity=3,
        )

        tasks = []
        for _ in range(6):
            clock.advance(1)
            task = await orchestrator.tick()
            if task is not None:
                tasks.append(task)

        assert len(tasks) == 1
        await tasks[0]
        assert classification_backend.frame_counts == [3]

    @pytest.mark.asyncio
    async def test_batch_skipped_while_cycle_in_flight(
        self, fake_backend_factory, recording_sink, clock, frame_source_factory
    ):
        classifier = BlockingClassifier()
        orchestrator = build(
            None,
            fake_backend_factory(),
            recording_sink,
            clock,
            source=frame_source_factory(clock),
            capacity=2,
            classifier=classifier,
        )

        first = None
        for _ in range(2):
            clock.advance(1)
            first = await orchestrator.tick()
        assert first is not None
        await asyncio.sleep(0)
        assert orchestrator.cycle_in_flight

        for _ in range(2):
            clock.advance(1)
            assert await orchestrator.tick() is None

        classifier.release.set()
        await first

        assert classifier.calls == 1
        assert orchestrator.get_metrics()["batches_skipped"] == 1

    @pytest.mark.asyncio
    async def test_idle_time_tracks_last_activity(
        self, fake_backend_factory, recording_sink, clock, frame_source_factory
    ):
        orchestrator = build(
            fake_backend_factory(),
            fake_backend_factory(),
            recording_sink,
            clock,
            source=frame_source_factory(clock),
        )

        clock.advance(30)
        await orchestrator.tick()
        assert orchestrator.context_store.idle_time_ms == 30_000

        orchestrator.record_user_activity()
        clock.advance(2)
        await orchestrator.tick()
        assert orchestrator.context_store.idle_time_ms == 2_000
