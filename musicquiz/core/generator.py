"""
Question generation for the music quiz.

Draws the candidates of a round from the remaining pool and picks the
correct answer among them.
"""

import logging
from typing import Any, Dict, Iterable, Optional, Union

import numpy as np

from musicquiz.core.models import (
    END_OF_GAME,
    MAX_CANDIDATES,
    MIN_CANDIDATES,
    Question,
    QuestionOrEnd,
)

RandomSource = Union[np.random.Generator, int, None]


class QuestionGenerator:
    """
    Turns a pool of remaining sample IDs into a Question.

    Selection, presentation order and the correct answer are all drawn
    from one ``numpy.random.Generator``. Pass a seed or a generator to
    make runs reproducible.

    Usage:
        generator = QuestionGenerator(rng=42)
        question = generator.generate_question({1, 2, 3, 4, 5})
        if question is END_OF_GAME:
            ...
    """

    def __init__(
        self,
        rng: RandomSource = None,
        max_candidates: int = MAX_CANDIDATES,
        min_candidates: int = MIN_CANDIDATES,
    ):
        """
        Initialize question generator.

        Args:
            rng: numpy Generator, integer seed, or None for OS entropy
            max_candidates: Upper bound on candidates per question (2-4)
            min_candidates: Pool size below which the game ends (>= 2)

        Raises:
            ValueError: If the candidate bounds are outside 2-4
        """
        if not (MIN_CANDIDATES <= min_candidates <= max_candidates <= MAX_CANDIDATES):
            raise ValueError(
                f"Candidate bounds must satisfy {MIN_CANDIDATES} <= min <= max "
                f"<= {MAX_CANDIDATES}, got min={min_candidates}, max={max_candidates}"
            )
        if isinstance(rng, np.random.Generator):
            self._rng = rng
        else:
            self._rng = np.random.default_rng(rng)
        self.max_candidates = max_candidates
        self.min_candidates = min_candidates
        self.logger = logging.getLogger("quiz.generator")

    def generate_question(self, pool: Iterable[int]) -> QuestionOrEnd:
        """
        Generate the next question from the remaining pool.

        Args:
            pool: Sample IDs not yet asked in this game

        Returns:
            Question with up to ``max_candidates`` candidates, or
            END_OF_GAME when fewer than ``min_candidates`` remain
        """
        # Sorted so that a given seed yields the same draw for the same pool
        ids = sorted(set(pool))
        if len(ids) < self.min_candidates:
            self.logger.debug(f"Pool has {len(ids)} sample(s) left, ending game")
            return END_OF_GAME

        count = min(self.max_candidates, len(ids))
        picked = self._rng.choice(len(ids), size=count, replace=False)
        candidates = tuple(int(ids[i]) for i in self._rng.permutation(picked))
        correct_id = candidates[int(self._rng.integers(count))]

        self.logger.debug(
            f"Generated question: candidates={candidates} from pool of {len(ids)}"
        )
        return Question(candidates=candidates, correct_id=correct_id)


def create_question_generator(
    config: Optional[Dict[str, Any]] = None,
    rng: RandomSource = None,
) -> QuestionGenerator:
    """
    Factory function to create QuestionGenerator from the 'quiz' section.

    Args:
        config: Optional 'quiz' configuration dict
        rng: Overrides ``config['seed']`` when given

    Returns:
        QuestionGenerator: Configured generator
    """
    if config is None:
        config = {}

    return QuestionGenerator(
        rng=rng if rng is not None else config.get('seed'),
        max_candidates=config.get('max_candidates', MAX_CANDIDATES),
        min_candidates=config.get('min_candidates', MIN_CANDIDATES),
    )
