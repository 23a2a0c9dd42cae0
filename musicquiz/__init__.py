"""
Music Quiz

Plays an audio excerpt and asks the player to name its composer among
up to four candidates, keeping score across rounds and mirroring the
playback transport onto an external control surface.
"""

__version__ = "1.0.0"
__author__ = "Music Quiz Team"
