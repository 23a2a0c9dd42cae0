"""
Core module containing the quiz data models, question generation,
score rules and the session state machine.

Models import eagerly; the controller and its collaborators load lazily.
"""

from musicquiz.core.models import (
    END_OF_GAME,
    AnswerOutcome,
    CandidateSlot,
    EndOfGame,
    GameSummary,
    PlaybackState,
    PublishedState,
    Question,
    RoundHandoff,
    Sample,
    ScoreState,
    Session,
    SessionPhase,
    SlotMark,
    SurfaceAction,
)

__all__ = [
    # Models (always available)
    "END_OF_GAME",
    "AnswerOutcome",
    "CandidateSlot",
    "EndOfGame",
    "GameSummary",
    "PlaybackState",
    "PublishedState",
    "Question",
    "RoundHandoff",
    "Sample",
    "ScoreState",
    "Session",
    "SessionPhase",
    "SlotMark",
    "SurfaceAction",
    # Lazy loaded
    "QuestionGenerator",
    "create_question_generator",
    "ScoreTracker",
    "QuizSessionController",
    "create_quiz_session",
]


def __getattr__(name: str):
    """Lazy load the modules that pull in numpy and the playback layer."""
    if name in ("QuestionGenerator", "create_question_generator"):
        from musicquiz.core.generator import QuestionGenerator, create_question_generator
        return QuestionGenerator if name == "QuestionGenerator" else create_question_generator
    elif name == "ScoreTracker":
        from musicquiz.core.scores import ScoreTracker
        return ScoreTracker
    elif name in ("QuizSessionController", "create_quiz_session"):
        from musicquiz.core.session import QuizSessionController, create_quiz_session
        return QuizSessionController if name == "QuizSessionController" else create_quiz_session
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
