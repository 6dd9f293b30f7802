"""
Presentation events emitted by the round state machine.

These are the discrete triggers a presentation layer maps to animations
and sounds. Mapping them to visuals or audio is not the core's concern.
"""

from dataclasses import dataclass
from typing import Callable, Union

from underless.catalog.artist import Artist
from underless.game.round_state import Side


@dataclass(frozen=True)
class MatchResolved:
    """A guess was scored (live or replayed after a resume)."""
    side: Side
    correct: bool
    new_score: int


@dataclass(frozen=True)
class GameOver:
    """A wrong guess ended the run."""
    final_score: int


@dataclass(frozen=True)
class NewRound:
    """A fresh, unrevealed pair is on screen."""
    left: Artist
    right: Artist


GameEvent = Union[MatchResolved, GameOver, NewRound]
GameEventListener = Callable[[GameEvent], None]
