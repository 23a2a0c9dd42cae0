"""
Music Quiz - Console Entry Point

Example usage:
    python main.py
    python main.py --config config/config.yaml --seed 7
    python main.py --catalog my_samples.yaml --verbose
"""

import argparse
import asyncio
import sys
from pathlib import Path
from typing import Any, Dict, Optional

from musicquiz.core.models import AnswerOutcome, GameSummary, Session, SurfaceAction
from musicquiz.core.session import QuizSessionController, create_quiz_session
from musicquiz.playback.console import LoggingControlSurface, SimulatedPlaybackEngine
from musicquiz.playback.surface import ControlSurfaceContext
from musicquiz.storage.catalog import create_sample_catalog
from musicquiz.storage.score_store import create_score_store
from musicquiz.utils.config import load_config
from musicquiz.utils.errors import PlaybackError, QuizError, SampleNotFoundError
from musicquiz.utils.logging import setup_logging_from_config

SLOT_KEYS = "1234"
SURFACE_COMMANDS = {
    "p": SurfaceAction.PLAY_PAUSE,
    "s": SurfaceAction.SKIP_TO_PREVIOUS,
}


class ConsoleQuiz:
    """Plays one game in the terminal on the running asyncio loop."""

    def __init__(self, config: Dict[str, Any], check_files: bool = True):
        self.config = config
        self.check_files = check_files
        self.surface = LoggingControlSurface()
        self.surface_context = ControlSurfaceContext(self.surface)
        self.summary: Optional[GameSummary] = None
        self._turn: Optional[asyncio.Event] = None

    async def run(self) -> Optional[GameSummary]:
        loop = asyncio.get_running_loop()
        self._turn = asyncio.Event()
        catalog = create_sample_catalog(self.config.get("catalog", {}))
        store = create_score_store(self.config.get("scores", {}))

        controller = create_quiz_session(
            self.config,
            scheduler=loop,
            surface_context=self.surface_context,
            engine_factory=lambda: SimulatedPlaybackEngine(loop, check_files=self.check_files),
            catalog=catalog,
            store=store,
            on_round_started=self._show_question,
            on_answer=self._show_answer,
            on_game_over=self._show_summary,
            on_error=self._show_error,
        )

        try:
            controller.start()
            while self.summary is None and not controller.is_closed:
                await self._turn.wait()
                if self.summary is not None or controller.is_closed:
                    break
                line = await loop.run_in_executor(None, _read_line)
                if line is None or line == "q":
                    print("\nLeaving the quiz.")
                    break
                self._handle(controller, line)
        finally:
            controller.teardown()
        return self.summary

    def _handle(self, controller: QuizSessionController, line: str) -> None:
        if line in SURFACE_COMMANDS:
            self.surface.press(SURFACE_COMMANDS[line])
        elif len(line) == 1 and line in SLOT_KEYS:
            try:
                outcome = controller.select_candidate(SLOT_KEYS.index(line))
            except ValueError:
                print("That slot is empty.")
                return
            if outcome is not None:
                self._turn.clear()
        else:
            print("Pick 1-4, or p (play/pause), s (restart), q (quit).")

    def _show_question(self, session: Session) -> None:
        print("\n" + "=" * 60)
        print(f"ROUND {session.round_index + 1}    score {session.score.current}"
              f"    high {session.score.high}")
        print("=" * 60)
        print("Who composed this piece?")
        for slot in session.slots:
            if slot.visible:
                print(f"  {slot.index + 1}. {slot.label}")
        self._turn.set()

    def _show_answer(self, outcome: AnswerOutcome) -> None:
        print("Correct!" if outcome.is_correct else "Wrong.")

    def _show_summary(self, summary: GameSummary) -> None:
        self.summary = summary
        print("\n" + "=" * 60)
        print("GAME OVER")
        print("=" * 60)
        print(f"Final score: {summary.final_score}")
        print(f"High score:  {summary.high_score}")
        print(f"Rounds:      {summary.rounds_played}")
        self._turn.set()

    def _show_error(self, error: QuizError) -> None:
        if isinstance(error, PlaybackError):
            print(f"(audio unavailable: {error.message})")
        else:
            print(f"Error: {error.message}")
            self._turn.set()


def _read_line() -> Optional[str]:
    try:
        return input("> ").strip().lower()
    except (EOFError, KeyboardInterrupt):
        return None


def main():
    """Main entry point for the console quiz."""
    parser = argparse.ArgumentParser(
        description="Guess the composer of classical music samples"
    )
    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help="Path to configuration file"
    )
    parser.add_argument(
        "--catalog",
        type=Path,
        default=None,
        help="Path to sample catalog (overrides config)"
    )
    parser.add_argument(
        "--seed",
        type=int,
        default=None,
        help="Random seed for reproducible games"
    )
    parser.add_argument(
        "--no-file-check",
        action="store_true",
        help="Do not report missing sample files as playback errors"
    )
    parser.add_argument(
        "--verbose",
        "-v",
        action="store_true",
        help="Enable verbose output"
    )

    args = parser.parse_args()

    try:
        config = load_config(str(args.config) if args.config else None)
    except QuizError as e:
        print(f"Error: {e}")
        sys.exit(1)

    if args.catalog is not None:
        config.setdefault("catalog", {})["path"] = str(args.catalog)
    if args.seed is not None:
        config.setdefault("quiz", {})["seed"] = args.seed

    setup_logging_from_config(config.get("logging", {}), verbose=args.verbose)

    quiz = ConsoleQuiz(config, check_files=not args.no_file_check)
    try:
        asyncio.run(quiz.run())
    except SampleNotFoundError as e:
        print(f"Error: {e.message}")
        sys.exit(1)
    except QuizError as e:
        print(f"Error: {e}")
        sys.exit(1)
    except KeyboardInterrupt:
        print("\n\nInterrupted by user.")
        sys.exit(0)


if __name__ == "__main__":
    main()
