"""
Protocols for the playback engine and the external control surface.

The quiz drives both through these contracts only; decoding, buffering
and notification chrome stay behind them. Engine callbacks are
dispatched synchronously on the event-loop thread.
"""

from typing import Callable, FrozenSet, Optional, Protocol, runtime_checkable

from musicquiz.core.models import PlaybackState, SurfaceAction
from musicquiz.utils.errors import PlaybackError

StateListener = Callable[[PlaybackState], None]
ErrorListener = Callable[[PlaybackError], None]
ActionListener = Callable[[SurfaceAction], None]


@runtime_checkable
class PlaybackEngine(Protocol):
    """
    Protocol for an audio playback engine.

    Engines report IDLE, BUFFERING, READY and ENDED through the state
    listener; whether a READY engine is actually playing is given by
    ``play_when_ready``.
    """

    @property
    def state(self) -> PlaybackState:
        """Last state the engine reported."""
        ...

    @property
    def position_ms(self) -> int:
        """Current playback position in milliseconds."""
        ...

    @property
    def play_when_ready(self) -> bool:
        """Whether the engine plays as soon as it is READY."""
        ...

    def load(self, uri: str) -> None:
        ...

    def play(self) -> None:
        ...

    def pause(self) -> None:
        ...

    def seek(self, position_ms: int) -> None:
        ...

    def stop(self) -> None:
        ...

    def release(self) -> None:
        ...

    def subscribe(
        self,
        on_state_change: StateListener,
        on_error: Optional[ErrorListener] = None,
    ) -> None:
        """Register the listeners for state changes and playback failures."""
        ...


@runtime_checkable
class ControlSurface(Protocol):
    """
    Protocol for an external transport control panel.

    A lock-screen or notification-style surface that mirrors the quiz's
    transport state and sends play/pause/restart commands back.
    """

    def publish(
        self,
        state: PlaybackState,
        actions: FrozenSet[SurfaceAction],
        position_ms: int,
        notification_id: int = 0,
    ) -> None:
        ...

    def on_action(self, callback: Optional[ActionListener]) -> None:
        """Install the single action callback, replacing any previous one."""
        ...

    def set_active(self, active: bool) -> None:
        ...

    def clear(self) -> None:
        """Withdraw whatever state is currently published."""
        ...


EngineFactory = Callable[[], PlaybackEngine]
