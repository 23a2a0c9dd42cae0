"""
Ownership of the process-wide external control surface.

There is one control surface per process. Instead of reaching for a
global, sessions receive a ControlSurfaceContext and go through it to
acquire and release the surface.
"""

import logging
from typing import Optional, Protocol

from musicquiz.playback.protocols import ControlSurface


class SurfaceHolder(Protocol):
    """Anything that can hold the control surface (a PlaybackBridge)."""

    def on_surface_revoked(self) -> None:
        """Called when another holder takes the surface over."""
        ...


class ControlSurfaceContext:
    """
    Single checkpoint for control-surface ownership.

    At most one holder has the surface at a time. A second acquire hands
    the surface over: the previous holder is told to forget it, so the
    surface is replaced rather than duplicated.

    Usage:
        context = ControlSurfaceContext(surface)
        surface = context.acquire(bridge)
        ...
        context.release(bridge)   # no-op if bridge no longer holds it
    """

    def __init__(self, surface: ControlSurface):
        self._surface = surface
        self._holder: Optional[SurfaceHolder] = None
        self.logger = logging.getLogger("playback.surface")

    @property
    def surface(self) -> ControlSurface:
        return self._surface

    @property
    def holder(self) -> Optional[SurfaceHolder]:
        return self._holder

    def is_held_by(self, holder: SurfaceHolder) -> bool:
        return self._holder is holder

    def acquire(self, holder: SurfaceHolder) -> ControlSurface:
        """
        Hand the surface to *holder*, taking it from any previous holder.

        Re-acquiring by the current holder returns the same surface.
        """
        if self._holder is holder:
            return self._surface

        previous = self._holder
        if previous is not None:
            self.logger.info("Control surface handed over to a new session")
            self._holder = None
            self._surface.on_action(None)
            self._surface.clear()
            previous.on_surface_revoked()

        self._holder = holder
        self.logger.debug("Control surface acquired")
        return self._surface

    def release(self, holder: SurfaceHolder) -> None:
        """
        Deactivate and clear the surface if *holder* still owns it.

        Releasing a surface that is not held, or held by someone else,
        does nothing.
        """
        if self._holder is not holder:
            return

        self._holder = None
        self._surface.on_action(None)
        self._surface.set_active(False)
        self._surface.clear()
        self.logger.debug("Control surface released")
