"""
Bridge between the playback engine and the external control surface.

Drives one engine per round and mirrors its transport state onto the
control surface; commands coming back from the surface are applied to
the engine.
"""

import logging
from typing import Callable, FrozenSet, Optional

from musicquiz.core.models import PlaybackState, PublishedState, SurfaceAction
from musicquiz.playback.protocols import (
    ControlSurface,
    EngineFactory,
    ErrorListener,
    PlaybackEngine,
)
from musicquiz.playback.surface import ControlSurfaceContext
from musicquiz.utils.errors import PlaybackError, SessionStateError

TRANSPORT_ACTIONS: FrozenSet[SurfaceAction] = frozenset({
    SurfaceAction.PLAY,
    SurfaceAction.PAUSE,
    SurfaceAction.PLAY_PAUSE,
    SurfaceAction.SKIP_TO_PREVIOUS,
})


class PlaybackBridge:
    """
    Keeps the control surface in sync with the engine of the current round.

    Design:
    - A fresh engine from ``engine_factory`` per round; callbacks from
      engines of earlier rounds are dropped.
    - READY is resolved to PLAYING or PAUSED from the autoplay intention
      and only then published.
    - Engine failures are logged and forwarded to ``on_error``; they never
      propagate into the session state machine.
    - ``release_round()`` and ``teardown()`` are idempotent.
    """

    def __init__(
        self,
        engine_factory: EngineFactory,
        surface_context: ControlSurfaceContext,
        on_error: Optional[ErrorListener] = None,
    ):
        """
        Initialize the bridge.

        Args:
            engine_factory: Creates the playback engine for a round
            surface_context: Owner of the process-wide control surface
            on_error: Optional listener for non-fatal playback failures
        """
        self._engine_factory = engine_factory
        self._context = surface_context
        self._on_error = on_error
        self._state_listener: Optional[Callable[[PlaybackState], None]] = None

        self._engine: Optional[PlaybackEngine] = None
        self._surface: Optional[ControlSurface] = None
        self._autoplay = False
        self._state = PlaybackState.IDLE
        self._published: Optional[PublishedState] = None
        self._notification_id = 0
        self._torn_down = False
        self._loaded_uri: Optional[str] = None
        self.logger = logging.getLogger("playback.bridge")

    @property
    def state(self) -> PlaybackState:
        return self._state

    @property
    def engine(self) -> Optional[PlaybackEngine]:
        return self._engine

    @property
    def published(self) -> Optional[PublishedState]:
        """Last state pushed to the control surface, None once cleared."""
        return self._published

    @property
    def loaded_uri(self) -> Optional[str]:
        return self._loaded_uri

    @property
    def autoplay(self) -> bool:
        return self._autoplay

    @property
    def is_torn_down(self) -> bool:
        return self._torn_down

    def set_state_listener(
        self, listener: Optional[Callable[[PlaybackState], None]]
    ) -> None:
        """Install the listener notified on every mirrored state change."""
        self._state_listener = listener

    def set_error_listener(self, listener: Optional[ErrorListener]) -> None:
        self._on_error = listener

    def start_round(self, uri: str, notification_id: int = 0) -> None:
        """
        Load the round's sample and start playing it.

        Args:
            uri: Audio URI of the correct sample
            notification_id: Identifier published with the surface state

        Raises:
            SessionStateError: If the bridge has been torn down
        """
        if self._torn_down:
            raise SessionStateError("start playback", "torn_down")

        self._attach_surface()
        self.release_round()

        engine = self._engine_factory()
        engine.subscribe(
            lambda state, source=engine: self._on_engine_state(source, state),
            lambda error, source=engine: self._on_engine_error(source, error),
        )
        self._engine = engine
        self._notification_id = notification_id
        self._loaded_uri = uri
        self._autoplay = True
        self._set_state(PlaybackState.IDLE)

        self.logger.info(f"Loading sample: {uri}")
        try:
            engine.load(uri)
            engine.play()
        except PlaybackError as e:
            self._report(e)
        except Exception as e:
            self._report(PlaybackError(f"Engine failed to start: {e}", uri=uri, original_error=e))

    def handle_action(self, action: SurfaceAction) -> None:
        """
        Apply a command from the control surface to the current engine.

        PLAY_PAUSE toggles on the autoplay intention. Engine failures are
        reported to ``on_error`` and never reach the surface callback.
        """
        engine = self._engine
        if engine is None:
            self.logger.debug(f"Ignoring {action.value}: no sample loaded")
            return

        if action is SurfaceAction.PLAY_PAUSE:
            action = SurfaceAction.PAUSE if self._autoplay else SurfaceAction.PLAY

        try:
            if action is SurfaceAction.PLAY:
                self._autoplay = True
                engine.play()
            elif action is SurfaceAction.PAUSE:
                self._autoplay = False
                engine.pause()
            elif action is SurfaceAction.SKIP_TO_PREVIOUS:
                # Restart the current round's sample; rounds are not navigated
                engine.seek(0)
                return
        except PlaybackError as e:
            self._report(e)
            return
        except Exception as e:
            self._report(PlaybackError(
                f"Engine failed on {action.value}: {e}",
                uri=self._loaded_uri,
                original_error=e,
            ))
            return

        self._on_engine_state(engine, engine.state)

    def release_round(self) -> None:
        """Stop and release the current round's engine, if any."""
        engine = self._engine
        if engine is None:
            return

        self._engine = None
        engine.stop()
        engine.release()
        self._published = None
        if self._surface is not None:
            self._surface.clear()
        self._set_state(PlaybackState.IDLE)
        self.logger.debug(f"Released engine for {self._loaded_uri}")
        self._loaded_uri = None

    def teardown(self) -> None:
        """Release the engine and give up the control surface."""
        if self._torn_down:
            return

        self.release_round()
        self._context.release(self)
        self._surface = None
        self._published = None
        self._torn_down = True
        self.logger.info("Playback torn down")

    def on_surface_revoked(self) -> None:
        """Another session took the control surface over."""
        self._surface = None
        self._published = None
        self.logger.info("Control surface taken over by another session")

    def _attach_surface(self) -> None:
        if self._surface is not None:
            return
        surface = self._context.acquire(self)
        surface.on_action(self.handle_action)
        surface.set_active(True)
        self._surface = surface

    def _on_engine_state(self, engine: PlaybackEngine, state: PlaybackState) -> None:
        if engine is not self._engine:
            self.logger.debug(f"Dropping {state.value} from a released engine")
            return

        if state is PlaybackState.IDLE:
            self.logger.info("The state is now idle.")
            self._set_state(state)
        elif state is PlaybackState.BUFFERING:
            self.logger.info("The state is now buffering.")
            self._set_state(state)
        elif state is PlaybackState.ENDED:
            # The surface keeps showing the last published transport state
            self.logger.info("State changed to ended.")
            self._set_state(state)
        elif state is PlaybackState.READY:
            resolved = PlaybackState.PLAYING if self._autoplay else PlaybackState.PAUSED
            self.logger.info(
                f"State changed to ready with autoplay={self._autoplay}, "
                f"publishing {resolved.value}"
            )
            self._set_state(resolved)
            self._publish(engine)
        else:
            self.logger.warning(f"Unexpected engine state: {state.value}")

    def _on_engine_error(self, engine: PlaybackEngine, error: PlaybackError) -> None:
        if engine is not self._engine:
            return
        self._report(error)

    def _publish(self, engine: PlaybackEngine) -> None:
        if self._surface is None:
            return
        published = PublishedState(
            state=self._state,
            actions=TRANSPORT_ACTIONS,
            position_ms=engine.position_ms,
            notification_id=self._notification_id,
        )
        self._surface.publish(
            published.state,
            published.actions,
            published.position_ms,
            notification_id=published.notification_id,
        )
        self._published = published

    def _set_state(self, state: PlaybackState) -> None:
        self._state = state
        if self._state_listener is not None:
            self._state_listener(state)

    def _report(self, error: PlaybackError) -> None:
        self.logger.warning(f"Playback problem (round continues): {error}")
        if self._on_error is not None:
            self._on_error(error)
