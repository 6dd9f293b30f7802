"""
Console front end for the Under or Higher game.

A thin presentation collaborator: it renders snapshots as text, turns
keystrokes into transitions, and waits out the reveal pause before polling
the state machine. All game rules live in the core.
"""

import argparse
import logging
import logging.handlers
import sys
import time
from typing import Callable, Optional, TextIO

from underless.config import GameConfig
from underless.game.events import GameEvent, GameOver, MatchResolved, NewRound
from underless.game.round_state import RoundPhase, RoundSnapshot
from underless.game.round_state_machine import RoundStateMachine

logger = logging.getLogger(__name__)


def format_listeners(count: int) -> str:
    """
    Format a listener count with Argentine thousands separators.

    e.g. 1234567 -> "1.234.567"
    """
    return f"{count:,}".replace(",", ".")


def render(snapshot: RoundSnapshot) -> str:
    """Text rendition of a round; the right count stays hidden until reveal."""
    if snapshot.left is None or snapshot.right is None:
        return "No artists available."

    right_count = format_listeners(snapshot.right.popularity) if snapshot.revealed else "?"
    return (
        f"Score: {snapshot.score}\n"
        f"  [L] {snapshot.left.name:<24} {format_listeners(snapshot.left.popularity):>12} monthly listeners\n"
        f"  [R] {snapshot.right.name:<24} {right_count:>12} monthly listeners"
    )


class ConsoleListener:
    """Prints game events."""

    def __init__(self, out: TextIO):
        self.out = out

    def __call__(self, event: GameEvent) -> None:
        if isinstance(event, MatchResolved):
            verdict = "Correct!" if event.correct else "Wrong!"
            print(f"{verdict} Score: {event.new_score}", file=self.out)
        elif isinstance(event, GameOver):
            print(f"Game over. Final score: {event.final_score}", file=self.out)
        elif isinstance(event, NewRound):
            print(f"\n{event.left.name} vs {event.right.name}", file=self.out)


def setup_logging(config: GameConfig) -> None:
    """Configure root logging from config."""
    logging.basicConfig(
        level=getattr(logging, config.log_level.upper(), logging.INFO),
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S'
    )
    if config.log_file:
        # WatchedFileHandler tolerates external log rotation
        handler = logging.handlers.WatchedFileHandler(config.log_file, mode='a')
        handler.setFormatter(logging.Formatter('%(asctime)s [%(levelname)s] %(name)s: %(message)s'))
        logging.getLogger().addHandler(handler)


def run(
    machine: RoundStateMachine,
    read: Callable[[str], str] = input,
    out: TextIO = sys.stdout,
    sleep: Callable[[float], None] = time.sleep,
    clock: Callable[[], float] = time.monotonic,
) -> int:
    """
    Interactive loop.

    Args:
        machine: Session to drive
        read: Prompt-and-read function
        out: Output stream
        sleep: Sleep function used to wait out the reveal pause
        clock: Clock matching the machine's

    Returns:
        Score of the last round shown
    """
    machine.add_listener(ConsoleListener(out))
    snapshot = machine.start()

    while True:
        if snapshot.phase is RoundPhase.IDLE:
            print(render(snapshot), file=out)
            return snapshot.score

        if snapshot.phase is RoundPhase.REVEALED:
            print(render(snapshot), file=out)
            due = machine.next_due()
            if due is None:
                return snapshot.score
            sleep(max(0.0, due - clock()))
            snapshot = machine.poll()
            continue

        if snapshot.phase is RoundPhase.GAME_OVER:
            answer = read("Play again? [y/N] ").strip().lower()
            if answer != "y":
                return snapshot.score
            snapshot = machine.play_again()
            continue

        print(render(snapshot), file=out)
        answer = read("Who has more listeners? [l/r, q to quit] ").strip().lower()
        if answer == "q":
            return snapshot.score
        side = {"l": "left", "r": "right"}.get(answer, answer)
        snapshot = machine.submit_guess(side)


def main(args: Optional[list] = None) -> None:
    """Main entry point."""
    parser = argparse.ArgumentParser(description="Under or Higher: guess who has more monthly listeners")
    parser.add_argument(
        "--catalog",
        type=str,
        help="Path to a JSON artist catalog (default: UNDERLESS_CATALOG_PATH or bundled sample)",
    )
    parser.add_argument(
        "--state",
        type=str,
        help="Path to the JSON state file (default: UNDERLESS_STATE_PATH)",
    )
    parser.add_argument(
        "--seed",
        type=int,
        help="Random seed for a reproducible run",
    )
    parser.add_argument(
        "--log-level",
        type=str,
        help="Logging level (default: UNDERLESS_LOG_LEVEL or INFO)",
    )
    parsed = parser.parse_args(args)

    config = GameConfig.load_config()
    if parsed.catalog:
        config.catalog_path = parsed.catalog
    if parsed.state:
        config.state_path = parsed.state
    if parsed.seed is not None:
        config.seed = parsed.seed
    if parsed.log_level:
        config.log_level = parsed.log_level.upper()
    config.validate()

    setup_logging(config)
    logger.info(f"[APP] Starting Under or Higher (catalog={config.catalog_path}, state={config.state_path})")

    machine = RoundStateMachine.from_config(config)
    try:
        score = run(machine)
    except (KeyboardInterrupt, EOFError):
        print("", file=sys.stdout)
        score = machine.snapshot().score
    logger.info(f"[APP] Exiting with score={score}")


if __name__ == "__main__":
    main()
