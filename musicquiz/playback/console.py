"""
Console stand-ins for the playback engine and control surface.

Used by the terminal runner: the engine keeps a playback clock on the
asyncio loop instead of rendering audio, and the surface writes what a
lock-screen panel would show to the log.
"""

import asyncio
import logging
from pathlib import Path
from typing import FrozenSet, List, Optional
from urllib.parse import urlparse

from musicquiz.core.models import PlaybackState, PublishedState, SurfaceAction
from musicquiz.playback.protocols import ActionListener, ErrorListener, StateListener
from musicquiz.utils.errors import PlaybackError


class SimulatedPlaybackEngine:
    """
    Playback engine that simulates buffering and a playback clock.

    All callbacks are scheduled on the given event loop, so listeners run
    on the loop thread just like a real engine's dispatcher would.
    """

    def __init__(
        self,
        loop: asyncio.AbstractEventLoop,
        duration_ms: int = 30000,
        buffer_delay: float = 0.2,
        check_files: bool = True,
    ):
        """
        Initialize the engine.

        Args:
            loop: Event loop callbacks are dispatched on
            duration_ms: Simulated length of every sample
            buffer_delay: Seconds spent BUFFERING before READY
            check_files: Report a PlaybackError for missing local files
        """
        self._loop = loop
        self.duration_ms = duration_ms
        self.buffer_delay = buffer_delay
        self.check_files = check_files

        self._state = PlaybackState.IDLE
        self._play_when_ready = False
        self._position_ms = 0
        self._anchor: Optional[float] = None
        self._uri: Optional[str] = None
        self._pending: List[asyncio.Handle] = []
        self._end_handle: Optional[asyncio.TimerHandle] = None
        self._on_state: Optional[StateListener] = None
        self._on_error: Optional[ErrorListener] = None
        self._released = False
        self.logger = logging.getLogger("playback.engine")

    @property
    def state(self) -> PlaybackState:
        return self._state

    @property
    def play_when_ready(self) -> bool:
        return self._play_when_ready

    @property
    def position_ms(self) -> int:
        if self._anchor is None:
            return self._position_ms
        elapsed = int((self._loop.time() - self._anchor) * 1000)
        return min(self.duration_ms, self._position_ms + elapsed)

    @property
    def is_released(self) -> bool:
        return self._released

    def subscribe(
        self,
        on_state_change: StateListener,
        on_error: Optional[ErrorListener] = None,
    ) -> None:
        self._on_state = on_state_change
        self._on_error = on_error

    def load(self, uri: str) -> None:
        if self._released:
            raise PlaybackError("Engine already released", uri=uri)

        self._cancel_pending()
        self._uri = uri
        self._position_ms = 0
        self._anchor = None

        if self.check_files and not _local_file_exists(uri):
            error = PlaybackError(f"Cannot open sample: {uri}", uri=uri)
            self._pending.append(self._loop.call_soon(self._fail, error))
            return

        self._change_state(PlaybackState.BUFFERING)
        self._pending.append(
            self._loop.call_later(self.buffer_delay, self._buffered)
        )

    def play(self) -> None:
        self._play_when_ready = True
        self._sync_clock()

    def pause(self) -> None:
        self._play_when_ready = False
        self._sync_clock()

    def seek(self, position_ms: int) -> None:
        self._position_ms = max(0, min(position_ms, self.duration_ms))
        if self._state is PlaybackState.ENDED:
            self._change_state(PlaybackState.READY)
        self._anchor = None
        self._sync_clock()

    def stop(self) -> None:
        self._position_ms = self.position_ms
        self._anchor = None
        self._cancel_pending()
        self._play_when_ready = False
        if self._state is not PlaybackState.IDLE:
            self._state = PlaybackState.IDLE

    def release(self) -> None:
        if self._released:
            return
        self.stop()
        self._on_state = None
        self._on_error = None
        self._released = True

    def _buffered(self) -> None:
        self._change_state(PlaybackState.READY)
        self._sync_clock()

    def _sync_clock(self) -> None:
        """Start or freeze the clock to match play_when_ready and state."""
        if self._end_handle is not None:
            self._end_handle.cancel()
            self._end_handle = None

        playing = self._play_when_ready and self._state is PlaybackState.READY
        if not playing:
            if self._anchor is not None:
                self._position_ms = self.position_ms
                self._anchor = None
            return

        if self._anchor is None:
            self._anchor = self._loop.time()
        remaining = (self.duration_ms - self.position_ms) / 1000
        self._end_handle = self._loop.call_later(max(0.0, remaining), self._ended)

    def _ended(self) -> None:
        self._end_handle = None
        self._position_ms = self.duration_ms
        self._anchor = None
        self._change_state(PlaybackState.ENDED)

    def _fail(self, error: PlaybackError) -> None:
        self._change_state(PlaybackState.IDLE)
        if self._on_error is not None:
            self._on_error(error)

    def _change_state(self, state: PlaybackState) -> None:
        self._state = state
        if self._on_state is not None:
            self._on_state(state)

    def _cancel_pending(self) -> None:
        for handle in self._pending:
            handle.cancel()
        self._pending.clear()
        if self._end_handle is not None:
            self._end_handle.cancel()
            self._end_handle = None


def _local_file_exists(uri: str) -> bool:
    parsed = urlparse(uri)
    if parsed.scheme in ("", "file"):
        return Path(parsed.path if parsed.scheme else uri).exists()
    # Remote URIs are not checked
    return True


class LoggingControlSurface:
    """
    Control surface that logs what it would display.

    ``press()`` stands in for the user tapping a button on the panel.
    """

    def __init__(self):
        self._callback: Optional[ActionListener] = None
        self.active = False
        self.published: Optional[PublishedState] = None
        self.logger = logging.getLogger("playback.surface.console")

    def publish(
        self,
        state: PlaybackState,
        actions: FrozenSet[SurfaceAction],
        position_ms: int,
        notification_id: int = 0,
    ) -> None:
        self.published = PublishedState(state, frozenset(actions), position_ms, notification_id)
        names = ", ".join(sorted(a.value for a in actions))
        self.logger.info(
            f"[notification {notification_id}] {state.value} at "
            f"{position_ms / 1000:.1f}s ({names})"
        )

    def on_action(self, callback: Optional[ActionListener]) -> None:
        self._callback = callback

    def set_active(self, active: bool) -> None:
        self.active = active
        self.logger.debug(f"Surface {'activated' if active else 'deactivated'}")

    def clear(self) -> None:
        self.published = None

    def press(self, action: SurfaceAction) -> bool:
        """Send an action as if pressed on the panel; False if nobody listens."""
        if not self.active or self._callback is None:
            return False
        self._callback(action)
        return True
