"""
Core data models for the music quiz.

Immutable value objects for samples, questions and scores, plus the
mutable Session record owned by the session controller.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, FrozenSet, Optional, Set, Tuple, Union

# Candidate slots are a fixed array of four, indexed 0-3.
SLOT_COUNT = 4
MIN_CANDIDATES = 2
MAX_CANDIDATES = SLOT_COUNT


class PlaybackState(Enum):
    """Transport state mirrored from the playback engine."""
    IDLE = "idle"
    BUFFERING = "buffering"
    READY = "ready"
    PLAYING = "playing"
    PAUSED = "paused"
    ENDED = "ended"


class SurfaceAction(Enum):
    """Transport commands the external control surface can issue."""
    PLAY = "play"
    PAUSE = "pause"
    PLAY_PAUSE = "play_pause"  # single toggle button on the panel
    SKIP_TO_PREVIOUS = "skip_to_previous"


class SessionPhase(Enum):
    """Phases of the quiz session state machine."""
    NEW_GAME = "new_game"
    QUESTION_ACTIVE = "question_active"
    ANSWER_REVEALED = "answer_revealed"
    ROUND_TRANSITION = "round_transition"
    GAME_OVER = "game_over"


class SlotMark(Enum):
    """Reveal marking of a candidate slot once the round is answered."""
    NONE = "none"
    CORRECT = "correct"
    INCORRECT = "incorrect"


class EndOfGame(Enum):
    """Returned by the question generator when no question can be asked."""
    END_OF_GAME = "end_of_game"


END_OF_GAME = EndOfGame.END_OF_GAME


@dataclass(frozen=True)
class Sample:
    """
    Catalog entry for one audio excerpt.

    ``artwork_ref`` is opaque to the quiz: whatever image handle the
    catalog hands out (a path, a URL, a decoded image).
    """

    sample_id: int
    composer_name: str
    audio_uri: str
    artwork_ref: Any = None
    title: str = ""

    def __post_init__(self) -> None:
        """Validate fields."""
        if isinstance(self.sample_id, bool) or not isinstance(self.sample_id, int):
            raise ValueError(f"Sample id must be an integer, got {self.sample_id!r}")
        if not self.audio_uri:
            raise ValueError(f"Sample {self.sample_id} has no audio URI")

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Sample":
        """Build a Sample from a catalog record."""
        return cls(
            sample_id=data["id"],
            composer_name=data.get("composer", ""),
            audio_uri=data["uri"],
            artwork_ref=data.get("artwork"),
            title=data.get("title", ""),
        )

    def to_dict(self) -> Dict[str, Any]:
        """Convert to a catalog record."""
        return {
            "id": self.sample_id,
            "composer": self.composer_name,
            "title": self.title,
            "uri": self.audio_uri,
            "artwork": self.artwork_ref,
        }


@dataclass(frozen=True)
class Question:
    """Candidates in presentation order plus the ID of the right answer."""

    candidates: Tuple[int, ...]
    correct_id: int

    def __post_init__(self) -> None:
        """Validate fields."""
        validate_candidates(self.candidates)
        if self.correct_id not in self.candidates:
            raise ValueError(
                f"Correct answer {self.correct_id} is not among candidates "
                f"{self.candidates}"
            )

    @property
    def correct_slot(self) -> int:
        return self.candidates.index(self.correct_id)


@dataclass(frozen=True)
class ScoreState:
    """Snapshot of the current and high score."""

    current: int = 0
    high: int = 0

    def __post_init__(self) -> None:
        """Validate fields."""
        validate_score(self.current)
        validate_score(self.high)


@dataclass(frozen=True)
class CandidateSlot:
    """One of the four answer slots presented to the user."""

    index: int
    sample_id: Optional[int] = None
    label: str = ""
    visible: bool = False
    enabled: bool = False
    mark: SlotMark = SlotMark.NONE


@dataclass(frozen=True)
class RoundHandoff:
    """Pool carried forward explicitly from one round to the next."""

    remaining_ids: FrozenSet[int]

    @classmethod
    def from_pool(cls, pool: Set[int]) -> "RoundHandoff":
        return cls(remaining_ids=frozenset(pool))


@dataclass(frozen=True)
class AnswerOutcome:
    """Result of the single scored selection of a round."""

    slot_index: int
    selected_id: int
    correct_id: int
    is_correct: bool
    score: ScoreState


@dataclass(frozen=True)
class GameSummary:
    """Delivered once when the game reaches GAME_OVER."""

    final_score: int
    high_score: int
    rounds_played: int

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            "final_score": self.final_score,
            "high_score": self.high_score,
            "rounds_played": self.rounds_played,
        }


@dataclass(frozen=True)
class PublishedState:
    """Transport state last pushed to the external control surface."""

    state: PlaybackState
    actions: FrozenSet[SurfaceAction]
    position_ms: int
    notification_id: int = 0


@dataclass
class Session:
    """
    Mutable state of the active game, owned by QuizSessionController.

    ``round_index`` counts samples already asked (catalog size minus pool
    size) and doubles as the control-surface notification id.
    """

    pool: Set[int]
    total_samples: int
    score: ScoreState
    phase: SessionPhase = SessionPhase.NEW_GAME
    active_question: Optional[Question] = None
    playback_state: PlaybackState = PlaybackState.IDLE
    slots: Tuple[CandidateSlot, ...] = field(
        default_factory=lambda: tuple(CandidateSlot(index=i) for i in range(SLOT_COUNT))
    )
    artwork_ref: Any = None
    last_outcome: Optional[AnswerOutcome] = None

    @property
    def round_index(self) -> int:
        return self.total_samples - len(self.pool)

    @property
    def accepts_input(self) -> bool:
        return self.phase is SessionPhase.QUESTION_ACTIVE


QuestionOrEnd = Union[Question, EndOfGame]


def validate_candidates(candidates: Tuple[int, ...]) -> None:
    """Validate candidate count and distinctness."""
    if not (MIN_CANDIDATES <= len(candidates) <= MAX_CANDIDATES):
        raise ValueError(
            f"A question needs {MIN_CANDIDATES}-{MAX_CANDIDATES} candidates, "
            f"got {len(candidates)}"
        )
    if len(set(candidates)) != len(candidates):
        raise ValueError(f"Candidates must be distinct, got {candidates}")


def validate_score(value: int) -> None:
    """Validate a score is a non-negative integer."""
    if isinstance(value, bool) or not isinstance(value, int) or value < 0:
        raise ValueError(f"Score must be a non-negative integer, got {value!r}")
