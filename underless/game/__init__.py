"""
Game package: round state, presentation events and deferred steps.

The state machine itself lives in underless.game.round_state_machine.
"""

from underless.game.events import GameEvent, GameOver, MatchResolved, NewRound
from underless.game.round_state import RoundPhase, RoundSnapshot, RoundState, Side
from underless.game.step_queue import ScheduledStep, StepQueue

__all__ = [
    "GameEvent",
    "GameOver",
    "MatchResolved",
    "NewRound",
    "RoundPhase",
    "RoundSnapshot",
    "RoundState",
    "ScheduledStep",
    "Side",
    "StepQueue",
]
