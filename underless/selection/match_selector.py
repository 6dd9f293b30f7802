"""
Matchup selection for the Under or Higher game.

Picks the artist to put against the current left card. Selection is two
stages:
- Rank every eligible candidate by closeness ratio to the left artist
  (max/min of the two listener counts; 1.0 means indistinguishable)
- Slice the ranking by difficulty and pick uniformly inside the slice

Difficulty is therefore not "more famous artists" but "a gap that is harder
to judge". When the exclusion history leaves nothing to match against,
selection relaxes the history window step by step rather than failing.
"""

import logging
import math
import random
from typing import Iterable, List, Optional, Sequence, Tuple, TypeVar

from underless.catalog.artist import Artist
from underless.catalog.artist_catalog import ArtistCatalog
from underless.errors import NoCandidateAvailable
from underless.selection.difficulty import Difficulty, DifficultyModel

logger = logging.getLogger(__name__)

# History windows used by the initial/fallback selection
MEMORY_LIMIT: int = 20
RELAXED_MEMORY: int = 5
MIN_FRESH_CANDIDATES: int = 3

T = TypeVar("T")


def closeness_ratio(a: int, b: int) -> float:
    """
    Ratio of the larger popularity to the smaller one.

    Always >= 1 and symmetric in its arguments. Two zeros are treated as
    indistinguishable (1.0); zero against a positive count is infinitely
    easy to tell apart.

    Args:
        a: First popularity
        b: Second popularity

    Returns:
        Closeness ratio
    """
    high, low = max(a, b), min(a, b)
    if low == 0:
        return 1.0 if high == 0 else math.inf
    return high / low


def difficulty_window(count: int, difficulty: Difficulty) -> Tuple[int, int]:
    """
    Slice bounds into a closeness-sorted list of `count` candidates.

    easy: least similar half; medium: the 25%-75% band;
    hard: most similar half; expert: most similar 30%.

    Returns:
        (start, stop) indices
    """
    if difficulty is Difficulty.EASY:
        return count - math.ceil(count * 0.5), count
    if difficulty is Difficulty.MEDIUM:
        return math.floor(count * 0.25), math.ceil(count * 0.75)
    if difficulty is Difficulty.HARD:
        return 0, math.ceil(count * 0.5)
    if difficulty is Difficulty.EXPERT:
        return 0, math.ceil(count * 0.3)
    return 0, count


def fisher_yates(items: Sequence[T], rng) -> List[T]:
    """
    Unbiased shuffle into a new list.

    Args:
        items: Items to shuffle (not modified)
        rng: Random source exposing random() in [0, 1)

    Returns:
        Shuffled copy
    """
    shuffled = list(items)
    for i in range(len(shuffled) - 1, 0, -1):
        j = int(rng.random() * (i + 1))
        shuffled[i], shuffled[j] = shuffled[j], shuffled[i]
    return shuffled


class MatchSelector:
    """
    Chooses opponents and fresh cards from an ArtistCatalog.

    The random source is shared with the difficulty model when the model is
    built here, so a single seeded source makes a whole run reproducible.
    """

    def __init__(
        self,
        catalog: ArtistCatalog,
        difficulty_model: Optional[DifficultyModel] = None,
        rng: Optional[random.Random] = None,
        memory_limit: int = MEMORY_LIMIT,
        relaxed_memory: int = RELAXED_MEMORY,
        min_fresh_candidates: int = MIN_FRESH_CANDIDATES,
    ):
        """
        Initialize match selector.

        Args:
            catalog: Artist catalog to draw from
            difficulty_model: Difficulty model (optional, built from rng if omitted)
            rng: Random source exposing random() in [0, 1)
            memory_limit: How many recent names the initial selection avoids
            relaxed_memory: Smaller window used when too few fresh artists remain
            min_fresh_candidates: Below this many fresh artists the window relaxes
        """
        self.catalog = catalog
        self._rng = rng or random.Random()
        self.difficulty_model = difficulty_model or DifficultyModel(self._rng)
        self.memory_limit = memory_limit
        self.relaxed_memory = relaxed_memory
        self.min_fresh_candidates = min_fresh_candidates

    def _pick(self, candidates: Sequence[T]) -> T:
        return fisher_yates(candidates, self._rng)[0]

    def select_opponent(
        self,
        left: Artist,
        excluded: Iterable[str],
        score: int = 0,
        difficulty: Optional[Difficulty] = None,
    ) -> Optional[Artist]:
        """
        Pick a right-hand artist whose gap to `left` fits the difficulty.

        Args:
            left: Current left artist
            excluded: Names that must not be picked
            score: Current streak (drives the difficulty roll)
            difficulty: Fixed difficulty; skips the roll when given

        Returns:
            Selected Artist, or None if every candidate is excluded
        """
        available = self.catalog.available(excluded, exclude=left)
        if not available:
            logger.debug(f"[SELECT] No opponent available for {left.name!r}")
            return None

        if difficulty is None:
            difficulty = self.difficulty_model.next_difficulty(score)

        ranked = sorted(
            ((closeness_ratio(a.popularity, left.popularity), a) for a in available),
            key=lambda pair: pair[0],
        )

        start, stop = difficulty_window(len(ranked), difficulty)
        window = ranked[start:stop] or ranked

        ratio, opponent = self._pick(window)
        logger.debug(
            f"[SELECT] Opponent for {left.name!r}: {opponent.name!r} "
            f"(difficulty={difficulty.value}, ratio={ratio:.2f}, window={len(window)}/{len(ranked)})"
        )
        return opponent

    def select_initial(
        self,
        used_names: Sequence[str],
        displayed: Iterable[Optional[Artist]] = (),
        avoid: Optional[Artist] = None,
    ) -> Optional[Artist]:
        """
        Pick a card with only recent history excluded.

        Relaxation chain:
        1. Avoid the last `memory_limit` used names
        2. Fewer than `min_fresh_candidates` left: avoid only the last `relaxed_memory`
        3. Still nothing: avoid only the artists currently displayed

        Args:
            used_names: Recently shown names, oldest first
            displayed: Artists currently on screen (used by the last fallback)
            avoid: Artist that is never returned (the left card when drawing an opponent)

        Returns:
            Selected Artist, or None if the catalog cannot supply one
        """
        recent = list(used_names)[-self.memory_limit:] if self.memory_limit else []
        available = self.catalog.available(recent, exclude=avoid)

        if len(available) < self.min_fresh_candidates:
            very_recent = list(used_names)[-self.relaxed_memory:] if self.relaxed_memory else []
            available = self.catalog.available(very_recent, exclude=avoid)
            logger.debug(f"[SELECT] Relaxed history window to {self.relaxed_memory}: {len(available)} candidates")

        if not available:
            on_screen = [a.name for a in displayed if a is not None]
            available = self.catalog.available(on_screen, exclude=avoid)
            logger.debug(f"[SELECT] History exhausted, avoiding only on-screen artists: {len(available)} candidates")

        if not available:
            return None

        return self._pick(available)

    def next_opponent(
        self,
        left: Artist,
        used_names: Sequence[str],
        score: int = 0,
        displayed: Iterable[Optional[Artist]] = (),
    ) -> Artist:
        """
        Opponent for `left`, falling back to initial selection.

        Args:
            left: Current left artist
            used_names: Recently shown names, oldest first
            score: Current streak
            displayed: Artists currently on screen

        Returns:
            Selected Artist (never `left`)

        Raises:
            NoCandidateAvailable: If neither matching nor any fallback finds an artist
        """
        opponent = self.select_opponent(left, set(used_names), score=score)
        if opponent is not None:
            return opponent

        opponent = self.select_initial(used_names, displayed=displayed, avoid=left)
        if opponent is not None:
            logger.info(f"[SELECT] Matching exhausted, fallback picked {opponent.name!r}")
            return opponent

        raise NoCandidateAvailable(f"No opponent available for {left.name!r}")
