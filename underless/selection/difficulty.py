"""
Difficulty pacing for the Under or Higher game.

Maps the current streak to a difficulty tier with one random "spice roll"
per call, so the curve trends upward without escalating strictly.
"""

import logging
import random
from enum import Enum
from typing import Optional

logger = logging.getLogger(__name__)

# Score thresholds
MEDIUM_PHASE_SCORE: int = 3
HARD_PHASE_SCORE: int = 7
EXPERT_PHASE_SCORE: int = 12

# Roll bands
EARLY_EASY_BAND: float = 0.70
MID_EASY_BELOW: float = 0.20
MID_HARD_ABOVE: float = 0.80
LATE_HARD_BAND: float = 0.75


class Difficulty(Enum):
    """Matchup difficulty, from widest popularity gap to narrowest."""
    EASY = "easy"
    MEDIUM = "medium"
    HARD = "hard"
    EXPERT = "expert"


class DifficultyModel:
    """
    Score-driven difficulty with injected randomness.

    Score bands:
    - below 3: 70% easy, 30% medium
    - 3 to 6: 20% easy, 60% medium, 20% hard
    - 7 to 11: 75% hard, 25% expert
    - 12 and up: expert
    """

    def __init__(self, rng: Optional[random.Random] = None):
        """
        Initialize difficulty model.

        Args:
            rng: Random source exposing random() in [0, 1). Defaults to a fresh random.Random.
        """
        self._rng = rng or random.Random()

    def next_difficulty(self, score: int) -> Difficulty:
        """
        Pick the difficulty for the next matchup.

        Exactly one roll is drawn per call, whatever the score.

        Args:
            score: Current streak

        Returns:
            Difficulty tier
        """
        roll = self._rng.random()

        if score < MEDIUM_PHASE_SCORE:
            difficulty = Difficulty.EASY if roll < EARLY_EASY_BAND else Difficulty.MEDIUM
        elif score < HARD_PHASE_SCORE:
            if roll < MID_EASY_BELOW:
                difficulty = Difficulty.EASY
            elif roll > MID_HARD_ABOVE:
                difficulty = Difficulty.HARD
            else:
                difficulty = Difficulty.MEDIUM
        elif score < EXPERT_PHASE_SCORE:
            difficulty = Difficulty.HARD if roll < LATE_HARD_BAND else Difficulty.EXPERT
        else:
            difficulty = Difficulty.EXPERT

        logger.debug(f"[SELECT] Difficulty for score={score}: {difficulty.value} (roll={roll:.3f})")
        return difficulty
