"""
Quiz session controller.

Owns the pool of remaining samples and runs the round state machine:

    NEW_GAME -> QUESTION_ACTIVE -> ANSWER_REVEALED -> ROUND_TRANSITION
                      ^                                   |
                      +-----------------------------------+--> GAME_OVER

All transitions happen on one event-loop thread. The reveal-to-transition
delay is a task scheduled on that loop and cancelled on teardown.
"""

import uuid
from typing import Any, Callable, Dict, Optional, Protocol, Tuple

from musicquiz.core.generator import QuestionGenerator, create_question_generator
from musicquiz.core.models import (
    END_OF_GAME,
    SLOT_COUNT,
    AnswerOutcome,
    CandidateSlot,
    GameSummary,
    PlaybackState,
    Question,
    RoundHandoff,
    Sample,
    Session,
    SessionPhase,
    SlotMark,
)
from musicquiz.core.scores import ScoreTracker
from musicquiz.playback.bridge import PlaybackBridge
from musicquiz.playback.protocols import EngineFactory
from musicquiz.playback.surface import ControlSurfaceContext
from musicquiz.storage.catalog import SampleCatalog, create_sample_catalog
from musicquiz.storage.score_store import ScoreStore, create_score_store
from musicquiz.utils.errors import PlaybackError, QuizError, SampleNotFoundError, SessionStateError
from musicquiz.utils.logging import create_logger_with_context

REVEAL_DELAY_SECONDS = 2.0


class Cancellable(Protocol):
    def cancel(self) -> None:
        ...


class Scheduler(Protocol):
    """
    Schedules a delayed callback on the event loop.

    ``asyncio.AbstractEventLoop`` satisfies this protocol directly.
    """

    def call_later(self, delay: float, callback: Callable[..., Any], *args: Any) -> Cancellable:
        ...


class QuizSessionController:
    """
    Orchestrates the rounds of one quiz game.

    Design:
    - Dependency Injection: catalog, tracker, generator, bridge and
      scheduler are all injected (testable)
    - Phase-checked input: selections outside QUESTION_ACTIVE are ignored,
      so a round is scored at most once even if events were already queued
    - The pool only shrinks, by exactly the round's correct sample

    Usage:
        controller = QuizSessionController(catalog, tracker, generator, bridge, loop)
        controller.start()                 # new game
        controller.select_candidate(2)     # user picks slot 2
        ...
        controller.teardown()              # user leaves
    """

    def __init__(
        self,
        catalog: SampleCatalog,
        tracker: ScoreTracker,
        generator: QuestionGenerator,
        bridge: PlaybackBridge,
        scheduler: Scheduler,
        reveal_delay: float = REVEAL_DELAY_SECONDS,
        on_round_started: Optional[Callable[[Session], None]] = None,
        on_answer: Optional[Callable[[AnswerOutcome], None]] = None,
        on_game_over: Optional[Callable[[GameSummary], None]] = None,
        on_error: Optional[Callable[[QuizError], None]] = None,
    ):
        """
        Initialize session controller.

        Args:
            catalog: Sample metadata lookup
            tracker: Score rules over the score store
            generator: Question generator
            bridge: Playback bridge for the correct sample of each round
            scheduler: Event loop used for the reveal delay
            reveal_delay: Seconds between answering and the next round
            on_round_started: Called when a question becomes active
            on_answer: Called once per round with the scored outcome
            on_game_over: Called once with the final summary
            on_error: Called with user-visible errors (sample not found,
                playback failures)
        """
        self.catalog = catalog
        self.tracker = tracker
        self.generator = generator
        self.bridge = bridge
        self.scheduler = scheduler
        self.reveal_delay = reveal_delay
        self.on_round_started = on_round_started
        self.on_answer = on_answer
        self.on_game_over = on_game_over
        self.on_error = on_error

        self._session: Optional[Session] = None
        self._transition: Optional[Cancellable] = None
        self._closed = False
        self.session_id = uuid.uuid4().hex[:8]
        self.logger = create_logger_with_context(
            "quiz.session", {"session_id": self.session_id, "round": 0}
        )

        self.bridge.set_state_listener(self._on_playback_state)
        self.bridge.set_error_listener(self._on_playback_error)

    @property
    def session(self) -> Optional[Session]:
        return self._session

    @property
    def phase(self) -> Optional[SessionPhase]:
        return self._session.phase if self._session else None

    @property
    def is_closed(self) -> bool:
        return self._closed

    @property
    def has_pending_transition(self) -> bool:
        return self._transition is not None

    def start(self, handoff: Optional[RoundHandoff] = None) -> Session:
        """
        Start a new game, or continue one from a carried-forward pool.

        Without *handoff* the pool is the whole catalog and the current
        score is reset. With it, the pool is the handed-over set and both
        scores are reloaded from the store.

        Returns:
            The Session, in QUESTION_ACTIVE or (for an exhausted pool)
            GAME_OVER

        Raises:
            SampleNotFoundError: If the correct sample is missing from the
                catalog; nothing is mutated and playback is not started
            SessionStateError: If this controller was already started
        """
        if self._session is not None or self._closed:
            raise SessionStateError("start", self.phase.value if self.phase else "closed")

        is_new_game = handoff is None
        all_ids = self.catalog.get_all_sample_ids()
        pool = set(all_ids) if is_new_game else set(handoff.remaining_ids)
        total = max(len(all_ids), len(pool))

        question = self.generator.generate_question(pool)
        sample = None
        if question is not END_OF_GAME:
            sample = self._lookup_answer(question)

        if is_new_game:
            self.tracker.reset_current()
            self.logger.info(f"New game with {len(pool)} samples")
        else:
            self.logger.info(f"Continuing game with {len(pool)} samples left")

        session = Session(pool=pool, total_samples=total, score=self.tracker.snapshot())
        self._session = session

        if question is END_OF_GAME:
            self._finish_game()
        else:
            self._begin_round(question, sample)
        return session

    def select_candidate(self, slot_index: int) -> Optional[AnswerOutcome]:
        """
        Score the user's pick and reveal the answer.

        Only the first selection of a round counts; anything arriving
        after the answer is revealed is ignored.

        Args:
            slot_index: Index (0-3) of the selected candidate slot

        Returns:
            AnswerOutcome for the scored selection, None if ignored

        Raises:
            ValueError: If the slot is out of range or not showing a candidate
        """
        session = self._session
        if self._closed or session is None or not session.accepts_input:
            self.logger.debug(
                f"Ignoring selection of slot {slot_index} in phase "
                f"{self.phase.value if self.phase else 'none'}"
            )
            return None

        question = session.active_question
        if not (0 <= slot_index < len(question.candidates)):
            raise ValueError(
                f"Slot {slot_index} is not a candidate (have {len(question.candidates)})"
            )

        # Entering ANSWER_REVEALED closes input; the transition is queued
        # before any store write
        session.phase = SessionPhase.ANSWER_REVEALED
        self._transition = self.scheduler.call_later(self.reveal_delay, self._on_reveal_elapsed)
        selected_id = question.candidates[slot_index]
        is_correct = selected_id == question.correct_id

        if is_correct:
            try:
                session.score = self.tracker.record_correct_answer()
            except QuizError as e:
                self.logger.error(f"Failed to record score: {e}")
                session.score = self.tracker.snapshot()
                self._report(e)

        session.slots = self._reveal_slots(session.slots, question)
        session.artwork_ref = self.catalog.get_composer_art_by_sample_id(question.correct_id)

        outcome = AnswerOutcome(
            slot_index=slot_index,
            selected_id=selected_id,
            correct_id=question.correct_id,
            is_correct=is_correct,
            score=session.score,
        )
        session.last_outcome = outcome
        self.logger.info(
            f"Answered {'correctly' if is_correct else 'incorrectly'}: "
            f"picked {selected_id}, answer {question.correct_id}, "
            f"score {session.score.current} (high {session.score.high})"
        )

        if self.on_answer is not None:
            self.on_answer(outcome)
        return outcome

    def handoff(self) -> RoundHandoff:
        """Explicit pool payload for continuing the game in a new controller."""
        if self._session is None:
            raise SessionStateError("hand off", "not_started")
        return RoundHandoff.from_pool(self._session.pool)

    def teardown(self) -> None:
        """
        End the session: cancel the pending transition, release playback.

        Safe to call repeatedly and after GAME_OVER.
        """
        if self._transition is not None:
            self._transition.cancel()
            self._transition = None
            self.logger.debug("Cancelled pending round transition")

        self.bridge.teardown()
        if not self._closed:
            self._closed = True
            self.logger.info("Session closed")

    def _on_reveal_elapsed(self) -> None:
        self._transition = None
        session = self._session
        if self._closed or session is None or session.phase is not SessionPhase.ANSWER_REVEALED:
            return

        session.phase = SessionPhase.ROUND_TRANSITION
        answered = session.active_question.correct_id
        session.pool.discard(answered)
        session.active_question = None
        self.bridge.release_round()
        self.logger.debug(f"Removed {answered} from pool, {len(session.pool)} left")

        question = self.generator.generate_question(session.pool)
        if question is END_OF_GAME:
            self._finish_game()
            return

        try:
            sample = self._lookup_answer(question)
        except SampleNotFoundError as e:
            self._report(e)
            self.teardown()
            return
        self._begin_round(question, sample)

    def _lookup_answer(self, question: Question) -> Sample:
        sample = self.catalog.get_sample_by_id(question.correct_id)
        if sample is None:
            self.logger.error(f"Sample not found: {question.correct_id}")
            raise SampleNotFoundError(question.correct_id)
        return sample

    def _begin_round(self, question: Question, sample: Sample) -> None:
        session = self._session
        session.active_question = question
        session.slots = self._build_slots(question)
        session.artwork_ref = None
        session.last_outcome = None
        session.phase = SessionPhase.QUESTION_ACTIVE

        self.logger.extra["round"] = session.round_index
        self.logger.info(f"Round started with {len(question.candidates)} candidates")
        self.bridge.start_round(sample.audio_uri, notification_id=session.round_index)

        if self.on_round_started is not None:
            self.on_round_started(session)

    def _finish_game(self) -> None:
        session = self._session
        session.phase = SessionPhase.GAME_OVER
        session.active_question = None
        session.slots = tuple(CandidateSlot(index=i) for i in range(SLOT_COUNT))

        # Persist the final high score before letting go of the session
        try:
            self.tracker.set_high(max(self.tracker.get_high(), self.tracker.get_current()))
        except QuizError as e:
            self.logger.error(f"Failed to persist high score: {e}")
            self._report(e)
        session.score = self.tracker.snapshot()

        summary = GameSummary(
            final_score=session.score.current,
            high_score=session.score.high,
            rounds_played=session.round_index,
        )
        self.logger.info(
            f"Game over: score {summary.final_score}, high {summary.high_score}, "
            f"{summary.rounds_played} rounds"
        )
        self.teardown()
        if self.on_game_over is not None:
            self.on_game_over(summary)

    def _build_slots(self, question: Question) -> Tuple[CandidateSlot, ...]:
        slots = []
        for index in range(SLOT_COUNT):
            if index >= len(question.candidates):
                slots.append(CandidateSlot(index=index))
                continue
            sample_id = question.candidates[index]
            sample = self.catalog.get_sample_by_id(sample_id)
            slots.append(CandidateSlot(
                index=index,
                sample_id=sample_id,
                label=sample.composer_name if sample is not None else "",
                visible=True,
                enabled=True,
            ))
        return tuple(slots)

    @staticmethod
    def _reveal_slots(
        slots: Tuple[CandidateSlot, ...], question: Question
    ) -> Tuple[CandidateSlot, ...]:
        revealed = []
        for slot in slots:
            if not slot.visible:
                revealed.append(slot)
                continue
            mark = SlotMark.CORRECT if slot.sample_id == question.correct_id else SlotMark.INCORRECT
            revealed.append(CandidateSlot(
                index=slot.index,
                sample_id=slot.sample_id,
                label=slot.label,
                visible=True,
                enabled=False,
                mark=mark,
            ))
        return tuple(revealed)

    def _on_playback_state(self, state: PlaybackState) -> None:
        if self._session is not None:
            self._session.playback_state = state

    def _on_playback_error(self, error: PlaybackError) -> None:
        self._report(error)

    def _report(self, error: QuizError) -> None:
        if self.on_error is not None:
            self.on_error(error)


def create_quiz_session(
    config: Dict[str, Any],
    scheduler: Scheduler,
    surface_context: ControlSurfaceContext,
    engine_factory: EngineFactory,
    catalog: Optional[SampleCatalog] = None,
    store: Optional[ScoreStore] = None,
    **listeners: Any,
) -> QuizSessionController:
    """
    Factory function to create a fully configured session controller.

    Args:
        config: Configuration dict (see utils.config.get_default_config)
        scheduler: Event loop driving the reveal delay
        surface_context: Owner of the process-wide control surface
        engine_factory: Creates one playback engine per round
        catalog: Overrides the catalog built from config['catalog']
        store: Overrides the score store built from config['scores'];
            pass the same store to every session so scores carry over
        **listeners: on_round_started / on_answer / on_game_over / on_error

    Returns:
        QuizSessionController: Configured, not yet started
    """
    quiz_config = config.get('quiz', {})

    if catalog is None:
        catalog = create_sample_catalog(config.get('catalog', {}))
    if store is None:
        store = create_score_store(config.get('scores', {}))

    bridge = PlaybackBridge(engine_factory, surface_context)
    return QuizSessionController(
        catalog=catalog,
        tracker=ScoreTracker(store),
        generator=create_question_generator(quiz_config),
        bridge=bridge,
        scheduler=scheduler,
        reveal_delay=quiz_config.get('reveal_delay_ms', 2000) / 1000,
        **listeners,
    )
