"""
Selection package: difficulty pacing and matchup selection.
"""

from underless.selection.difficulty import Difficulty, DifficultyModel
from underless.selection.match_selector import (
    MatchSelector,
    closeness_ratio,
    difficulty_window,
    fisher_yates,
)

__all__ = [
    "Difficulty",
    "DifficultyModel",
    "MatchSelector",
    "closeness_ratio",
    "difficulty_window",
    "fisher_yates",
]
