"""
Test Configuration
==================

Pytest fixtures and test doubles for Clippy Agent.

Fakes stand in for the remote model, the search service, the screen and
the UI so the pipeline can be driven deterministically.
"""

import json
from typing import Callable, List, Optional, Sequence, Union

import pytest

from clippy_agent.capture.frame import Frame, FrameBatch
from clippy_agent.models.activity import Classification
from clippy_agent.models.suggestion import Suggestion
from clippy_agent.search.client import SearchResult


# =============================================================================
# Test doubles
# =============================================================================

class FakeBackend:
    """
    Scripted VisionModelBackend.

    `replies` are consumed in order; the last one repeats. An Exception
    instance in the script is raised instead of returned.
    """

    name = "fake"

    def __init__(self, replies: Sequence[Union[str, Exception]] = ("{}",)) -> None:
        self.replies = list(replies)
        self.prompts: List[str] = []
        self.frame_counts: List[int] = []

    @property
    def call_count(self) -> int:
        return len(self.prompts)

    async def complete(self, frames, prompt, *, max_tokens, temperature) -> str:
        self.prompts.append(prompt)
        self.frame_counts.append(len(frames))
        index = min(len(self.prompts) - 1, len(self.replies) - 1)
        reply = self.replies[index]
        if isinstance(reply, Exception):
            raise reply
        return reply


class FakeClassifier:
    """Classifier returning a fixed result, or raising."""

    def __init__(self, result: Union[Classification, Exception]) -> None:
        self.result = result
        self.calls = 0

    async def classify(self, batch: FrameBatch) -> Classification:
        self.calls += 1
        if isinstance(self.result, Exception):
            raise self.result
        return self.result


class FakeSearchClient:
    """Search client returning canned results, or raising."""

    def __init__(self, results: Union[List[SearchResult], Exception]) -> None:
        self.results = results
        self.queries: List[str] = []

    async def search(self, query: str, limit: int = 3) -> List[SearchResult]:
        self.queries.append(query)
        if isinstance(self.results, Exception):
            raise self.results
        return self.results[:limit]


class FakeFrameSource:
    """Frame source that timestamps frames with a FakeClock."""

    def __init__(self, clock: "FakeClock", fail_every: int = 0) -> None:
        self.clock = clock
        self.fail_every = fail_every
        self.calls = 0

    async def capture(self) -> Optional[Frame]:
        self.calls += 1
        if self.fail_every and self.calls % self.fail_every == 0:
            return None
        return make_frame(self.clock())


class RecordingSink:
    """SuggestionSink that records everything; can be told to fail."""

    def __init__(self, fail_present: bool = False) -> None:
        self.fail_present = fail_present
        self.presented: List[Suggestion] = []
        self.states: List[str] = []
        self.withdrawals = 0

    async def present(self, suggestion: Suggestion) -> None:
        if self.fail_present:
            raise RuntimeError("overlay window closed")
        self.presented.append(suggestion)

    async def set_state(self, state) -> None:
        self.states.append(state.value)

    async def withdraw(self) -> None:
        self.withdrawals += 1


class FakeClock:
    """Manually advanced clock (UNIX seconds)."""

    def __init__(self, start: float = 1_700_000_000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


# =============================================================================
# Builders
# =============================================================================

def make_frame(captured_at: float) -> Frame:
    return Frame(
        image_bytes=b"\x89PNG" + str(captured_at).encode(),
        captured_at=captured_at,
        width=4,
        height=3,
    )


def make_batch(size: int = 15, start: float = 1_700_000_000.0, sequence: int = 1) -> FrameBatch:
    frames = tuple(make_frame(start + i) for i in range(size))
    return FrameBatch(frames=frames, sequence=sequence)


def classification_reply(label: str, confidence: float) -> str:
    return json.dumps({"classification": label, "confidence": confidence})


def analysis_reply(should_assist: bool, suggestion: Optional[str] = None, reasoning: str = "") -> str:
    return json.dumps(
        {"shouldAssist": should_assist, "suggestion": suggestion, "reasoning": reasoning}
    )


# =============================================================================
# Fixtures
# =============================================================================

@pytest.fixture
def frame_factory() -> Callable[[float], Frame]:
    """Build a Frame captured at a given time."""
    return make_frame


@pytest.fixture
def batch_factory() -> Callable[..., FrameBatch]:
    """Build a FrameBatch of N one-second-apart frames."""
    return make_batch


@pytest.fixture
def full_batch() -> FrameBatch:
    """A complete 15-frame batch."""
    return make_batch(15)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def fake_backend_factory() -> Callable[..., FakeBackend]:
    return FakeBackend


@pytest.fixture
def fake_classifier_factory() -> Callable[..., FakeClassifier]:
    return FakeClassifier


@pytest.fixture
def fake_search_factory() -> Callable[..., FakeSearchClient]:
    return FakeSearchClient


@pytest.fixture
def recording_sink() -> RecordingSink:
    return RecordingSink()


@pytest.fixture
def failing_sink() -> RecordingSink:
    return RecordingSink(fail_present=True)


@pytest.fixture
def frame_source_factory() -> Callable[..., FakeFrameSource]:
    return FakeFrameSource


@pytest.fixture
def replies():
    """Reply builders for scripted backends."""

    class Replies:
        classification = staticmethod(classification_reply)
        analysis = staticmethod(analysis_reply)

    return Replies


@pytest.fixture
def sample_suggestion() -> Suggestion:
    """A debug suggestion produced at t=0."""
    from clippy_agent.models.suggestion import AgentKind

    return Suggestion(
        agent_kind=AgentKind.DEBUG,
        title="🔍 I noticed an error",
        body="`KeyError: 'user_id'` is raised in `handlers.py`. Check the request payload.",
        confidence=0.8,
        produced_at=0.0,
    )
