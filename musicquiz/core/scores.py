"""
Score tracking rules on top of a ScoreStore.
"""

import logging

from musicquiz.core.models import ScoreState, validate_score
from musicquiz.storage.score_store import ScoreStore


class ScoreTracker:
    """
    Applies the current/high score rules.

    The high score only ever moves up: raising the current score above
    it lifts it along, and attempts to lower it are ignored.
    """

    def __init__(self, store: ScoreStore):
        self._store = store
        self.logger = logging.getLogger("quiz.scores")

    def get_current(self) -> int:
        return self._store.get_current_score()

    def set_current(self, value: int) -> None:
        """
        Store the current score, lifting the high score if it is exceeded.

        Raises:
            ValueError: If value is not a non-negative integer
        """
        validate_score(value)
        self._store.set_current_score(value)
        if value > self.get_high():
            self.set_high(value)

    def get_high(self) -> int:
        return self._store.get_high_score()

    def set_high(self, value: int) -> None:
        """
        Store a new high score; values below the stored one are ignored.

        Raises:
            ValueError: If value is not a non-negative integer
        """
        validate_score(value)
        previous = self.get_high()
        if value < previous:
            self.logger.debug(f"Ignoring high score {value} below {previous}")
            return
        if value > previous:
            self.logger.info(f"New high score: {value}")
        self._store.set_high_score(value)

    def record_correct_answer(self) -> ScoreState:
        """Add one point for a correct answer and return the new scores."""
        self.set_current(self.get_current() + 1)
        return self.snapshot()

    def reset_current(self) -> None:
        """Start a new game at zero; the high score is kept."""
        self._store.set_current_score(0)

    def snapshot(self) -> ScoreState:
        return ScoreState(current=self.get_current(), high=self.get_high())
