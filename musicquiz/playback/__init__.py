"""
Playback engine bridging and external control-surface ownership.

Architecture:
    QuizSessionController -> PlaybackBridge -> PlaybackEngine (one per round)
                                   |
                          ControlSurfaceContext -> ControlSurface
"""

from musicquiz.playback.protocols import ControlSurface, PlaybackEngine
from musicquiz.playback.surface import ControlSurfaceContext
from musicquiz.playback.bridge import PlaybackBridge, TRANSPORT_ACTIONS
from musicquiz.playback.console import LoggingControlSurface, SimulatedPlaybackEngine

__all__ = [
    "ControlSurface",
    "PlaybackEngine",
    "ControlSurfaceContext",
    "PlaybackBridge",
    "TRANSPORT_ACTIONS",
    "LoggingControlSurface",
    "SimulatedPlaybackEngine",
]
