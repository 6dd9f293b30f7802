"""
Round state for the Under or Higher game.

RoundState is the mutable record a session owns and every transition
updates. RoundSnapshot is the immutable copy handed to the presentation
layer after each transition.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional, Tuple, Union

from underless.catalog.artist import Artist

# used_names is trimmed back to the memory limit once it grows past twice that
HISTORY_MEMORY_LIMIT: int = 20


class Side(Enum):
    """Card the player picked as having more listeners."""
    LEFT = "left"
    RIGHT = "right"

    @classmethod
    def parse(cls, value: Union["Side", str, None]) -> Optional["Side"]:
        """
        Coerce a Side or its string value; None for anything else.
        """
        if isinstance(value, cls):
            return value
        if isinstance(value, str):
            try:
                return cls(value.strip().lower())
            except ValueError:
                return None
        return None


class RoundPhase(Enum):
    """Where a session is in the round lifecycle."""
    IDLE = "idle"
    AWAITING_GUESS = "awaiting_guess"
    REVEALED = "revealed"
    GAME_OVER = "game_over"


def left_wins(left: Artist, right: Artist) -> bool:
    """Left has at least as many listeners as right (ties favor left)."""
    return left.popularity >= right.popularity


def is_correct(side: Side, left: Artist, right: Artist) -> bool:
    """Whether picking `side` is right for this pair."""
    if side is Side.LEFT:
        return left_wins(left, right)
    return not left_wins(left, right)


@dataclass
class RoundState:
    """
    Mutable per-session round state.

    Attributes:
        score: Current streak
        left: Artist on the left card (listeners shown)
        right: Artist on the right card (listeners hidden until reveal)
        used_names: Recently shown artist names, oldest first
        game_over: True once a wrong guess ended the run
        revealed: True between a guess and the next unrevealed round
        pending_choice: Guess submitted but not yet resolved
        active: True once a pair has been dealt or resumed
    """
    score: int = 0
    left: Optional[Artist] = None
    right: Optional[Artist] = None
    used_names: List[str] = field(default_factory=list)
    game_over: bool = False
    revealed: bool = False
    pending_choice: Optional[Side] = None
    active: bool = False
    memory_limit: int = HISTORY_MEMORY_LIMIT

    def remember(self, name: str) -> None:
        """
        Append a shown artist to the history.

        Once the history grows past twice the memory limit it is truncated
        to the most recent `memory_limit` names.
        """
        self.used_names.append(name)
        if len(self.used_names) > self.memory_limit * 2:
            self.used_names = self.used_names[-self.memory_limit:]

    def has_pair(self) -> bool:
        return self.left is not None and self.right is not None

    @property
    def phase(self) -> RoundPhase:
        if self.game_over:
            return RoundPhase.GAME_OVER
        if not self.active or not self.has_pair():
            return RoundPhase.IDLE
        if self.revealed:
            return RoundPhase.REVEALED
        return RoundPhase.AWAITING_GUESS

    def snapshot(self) -> "RoundSnapshot":
        return RoundSnapshot(
            phase=self.phase,
            score=self.score,
            left=self.left,
            right=self.right,
            used_names=tuple(self.used_names),
            game_over=self.game_over,
            revealed=self.revealed,
            pending_choice=self.pending_choice,
        )


@dataclass(frozen=True)
class RoundSnapshot:
    """
    Immutable view of a RoundState for rendering.

    `right.popularity` is present even while unrevealed; hiding it until
    `revealed` is the presentation layer's job.
    """
    phase: RoundPhase
    score: int
    left: Optional[Artist]
    right: Optional[Artist]
    used_names: Tuple[str, ...]
    game_over: bool
    revealed: bool
    pending_choice: Optional[Side]
