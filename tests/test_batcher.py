"""
Frame Batcher Tests
===================

Tests for the sliding-window frame batcher and frame models.
"""

import pytest

from clippy_agent.capture import Accumulating, BatchReady, FrameBatch, FrameBatcher


class TestFrameBatcher:
    """Tests for FrameBatcher.push()."""

    def test_one_batch_per_n_pushes(self, frame_factory):
        """Exactly one BatchReady per N pushes, each of length N, oldest first."""
        batcher = FrameBatcher(capacity=15)
        ready = []

        for i in range(45):
            result = batcher.push(frame_factory(1000.0 + i))
            if isinstance(result, BatchReady):
                ready.append(result.batch)
            else:
                assert isinstance(result, Accumulating)

        assert len(ready) == 3
        for index, batch in enumerate(ready):
            assert len(batch) == 15
            times = [f.captured_at for f in batch]
            assert times == sorted(times)
            assert times[0] == 1000.0 + index * 15

    def test_accumulating_reports_progress(self, frame_factory):
        batcher = FrameBatcher(capacity=3)

        first = batcher.push(frame_factory(1.0))
        second = batcher.push(frame_factory(2.0))

        assert first == Accumulating(size=1, capacity=3)
        assert second == Accumulating(size=2, capacity=3)

    def test_buffer_cleared_after_dispatch(self, frame_factory):
        batcher = FrameBatcher(capacity=2)
        batcher.push(frame_factory(1.0))
        batcher.push(frame_factory(2.0))

        assert batcher.size == 0
        assert batcher.push(frame_factory(3.0)) == Accumulating(size=1, capacity=2)

    def test_none_frame_is_skipped(self, frame_factory):
        """A failed capture wastes the tick but does not advance the batch."""
        batcher = FrameBatcher(capacity=2)
        batcher.push(frame_factory(1.0))

        result = batcher.push(None)

        assert result == Accumulating(size=1, capacity=2)
        assert batcher.frames_skipped == 1

    def test_batch_sequence_increments(self, frame_factory):
        batcher = FrameBatcher(capacity=1)

        first = batcher.push(frame_factory(1.0))
        second = batcher.push(frame_factory(2.0))

        assert first.batch.sequence == 1
        assert second.batch.sequence == 2

    def test_capacity_one_emits_every_frame(self, frame_factory):
        batcher = FrameBatcher(capacity=1)
        results = [batcher.push(frame_factory(float(i))) for i in range(5)]
        assert all(isinstance(r, BatchReady) for r in results)

    def test_invalid_capacity_rejected(self):
        with pytest.raises(ValueError):
            FrameBatcher(capacity=0)

    def test_reset_discards_partial_cycle(self, frame_factory):
        batcher = FrameBatcher(capacity=5)
        batcher.push(frame_factory(1.0))
        batcher.push(frame_factory(2.0))

        assert batcher.reset() == 2
        assert batcher.size == 0

    def test_metrics(self, frame_factory):
        batcher = FrameBatcher(capacity=2)
        batcher.push(frame_factory(1.0))
        batcher.push(None)
        batcher.push(frame_factory(2.0))
        batcher.push(frame_factory(3.0))

        metrics = batcher.metrics()
        assert metrics["capacity"] == 2
        assert metrics["size"] == 1
        assert metrics["batches_emitted"] == 1
        assert metrics["frames_skipped"] == 1
        assert metrics["total_pushed"] == 3
        assert set(metrics) == {"size", "capacity", "batches_emitted", "frames_skipped", "total_pushed"}

    def test_size_never_exceeds_capacity(self, frame_factory):
        batcher = FrameBatcher(capacity=4)

        sizes = []
        for i in range(23):
            batcher.push(frame_factory(float(i)))
            sizes.append(batcher.size)

        assert max(sizes) < 4
        assert batcher.batches_emitted == 5
        assert batcher.size == 3


class TestFrameBatch:
    """Tests for FrameBatch helpers."""

    def test_empty_batch(self):
        batch = FrameBatch.empty()
        assert batch.is_empty
        assert len(batch) == 0
        with pytest.raises(IndexError):
            _ = batch.latest

    def test_oldest_and_latest(self, batch_factory):
        batch = batch_factory(3, start=10.0)
        assert batch.oldest.captured_at == 10.0
        assert batch.latest.captured_at == 12.0

    def test_frame_repr_hides_image(self, frame_factory):
        frame = frame_factory(1.5)
        assert "PNG" not in repr(frame)
        assert "4x3" in repr(frame)
