"""Shared fakes and fixtures for the quiz tests."""

from typing import Any, Callable, List, Optional

import pytest

from musicquiz.core.generator import QuestionGenerator
from musicquiz.core.models import PlaybackState, PublishedState, Sample
from musicquiz.core.scores import ScoreTracker
from musicquiz.core.session import QuizSessionController
from musicquiz.playback.bridge import PlaybackBridge
from musicquiz.playback.surface import ControlSurfaceContext
from musicquiz.storage.catalog import InMemorySampleCatalog
from musicquiz.storage.score_store import InMemoryScoreStore


# ---------------------------------------------------------------------------
# Fake scheduler
# ---------------------------------------------------------------------------


class FakeHandle:
    def __init__(self, delay: float, callback: Callable[..., Any], args: tuple):
        self.delay = delay
        self.callback = callback
        self.args = args
        self.cancelled = False
        self.fired = False

    def cancel(self) -> None:
        self.cancelled = True


class FakeScheduler:
    """Records call_later requests; tests fire them by hand."""

    def __init__(self):
        self.handles: List[FakeHandle] = []

    def call_later(self, delay, callback, *args):
        handle = FakeHandle(delay, callback, args)
        self.handles.append(handle)
        return handle

    @property
    def pending(self) -> List[FakeHandle]:
        return [h for h in self.handles if not h.cancelled and not h.fired]

    def fire_all(self) -> int:
        """Run every pending callback (including ones scheduled meanwhile)."""
        count = 0
        while self.pending:
            handle = self.pending[0]
            handle.fired = True
            handle.callback(*handle.args)
            count += 1
        return count


# ---------------------------------------------------------------------------
# Fake playback engine and control surface
# ---------------------------------------------------------------------------


class FakeEngine:
    """Playback engine that records calls; tests push state changes."""

    def __init__(self, fail_on_load: Optional[Exception] = None):
        self.calls: List[tuple] = []
        self.state = PlaybackState.IDLE
        self.position_ms = 0
        self.play_when_ready = False
        self.released = False
        self.fail_on_load = fail_on_load
        self._on_state = None
        self._on_error = None

    def subscribe(self, on_state_change, on_error=None):
        self._on_state = on_state_change
        self._on_error = on_error

    def load(self, uri):
        self.calls.append(("load", uri))
        if self.fail_on_load is not None:
            raise self.fail_on_load

    def play(self):
        self.calls.append(("play",))
        self.play_when_ready = True

    def pause(self):
        self.calls.append(("pause",))
        self.play_when_ready = False

    def seek(self, position_ms):
        self.calls.append(("seek", position_ms))
        self.position_ms = position_ms

    def stop(self):
        if self.released:
            raise RuntimeError("stop() on released engine")
        self.calls.append(("stop",))

    def release(self):
        if self.released:
            raise RuntimeError("release() on released engine")
        self.calls.append(("release",))
        self.released = True

    # Test helpers

    def emit(self, state: PlaybackState) -> None:
        self.state = state
        self._on_state(state)

    def fail(self, error) -> None:
        self._on_error(error)

    def names(self) -> List[str]:
        return [call[0] for call in self.calls]


class FakeSurface:
    """Control surface that records every publish."""

    def __init__(self):
        self.published: List[PublishedState] = []
        self.active = False
        self.callback = None
        self.clear_count = 0
        self.active_changes: List[bool] = []

    def publish(self, state, actions, position_ms, notification_id=0):
        self.published.append(PublishedState(state, frozenset(actions), position_ms, notification_id))

    def on_action(self, callback):
        self.callback = callback

    def set_active(self, active):
        self.active = active
        self.active_changes.append(active)

    def clear(self):
        self.clear_count += 1

    @property
    def last(self) -> Optional[PublishedState]:
        return self.published[-1] if self.published else None

    def press(self, action) -> None:
        self.callback(action)


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


def make_samples(ids) -> List[Sample]:
    return [
        Sample(
            sample_id=i,
            composer_name=f"Composer {i}",
            audio_uri=f"samples/{i}.mp3",
            artwork_ref=f"art/{i}.png",
        )
        for i in ids
    ]


@pytest.fixture
def catalog():
    """Catalog with samples 1-5."""
    return InMemorySampleCatalog(make_samples(range(1, 6)), default_artwork="art/question_mark.png")


@pytest.fixture
def store():
    return InMemoryScoreStore()


@pytest.fixture
def tracker(store):
    return ScoreTracker(store)


@pytest.fixture
def scheduler():
    return FakeScheduler()


@pytest.fixture
def surface():
    return FakeSurface()


@pytest.fixture
def surface_context(surface):
    return ControlSurfaceContext(surface)


@pytest.fixture
def engines():
    """Every engine handed out by engine_factory, in order."""
    return []


@pytest.fixture
def engine_factory(engines):
    def factory():
        engine = FakeEngine()
        engines.append(engine)
        return engine
    return factory


@pytest.fixture
def bridge(engine_factory, surface_context):
    return PlaybackBridge(engine_factory, surface_context)


@pytest.fixture
def make_controller(catalog, tracker, scheduler, bridge):
    """Build a controller over the shared fixtures; overrides by keyword."""
    def make(**overrides):
        kwargs = dict(
            catalog=catalog,
            tracker=tracker,
            generator=QuestionGenerator(rng=1234),
            bridge=bridge,
            scheduler=scheduler,
        )
        kwargs.update(overrides)
        return QuizSessionController(**kwargs)
    return make


@pytest.fixture
def controller(make_controller):
    return make_controller()


@pytest.fixture
def fake_engine_cls():
    """The FakeEngine class, for tests that build engines themselves."""
    return FakeEngine
