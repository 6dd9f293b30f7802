"""
Round State Machine for the Under or Higher game.

Owns one session's RoundState and drives it through the round lifecycle:

    IDLE -> AWAITING_GUESS -> REVEALED -> AWAITING_GUESS (correct, after the reveal pause)
                                       -> GAME_OVER (wrong) -> play_again -> AWAITING_GUESS

Every guess is persisted together with a pending-choice marker before its
outcome is computed. A session resumed from storage with a pending choice
resolves that guess against the stored pair before showing anything new,
so reloading mid-reveal can neither peek at the answer nor score twice.

The reveal pause is a scheduled step on a StepQueue rather than a timer
callback: callers poll the machine and due steps run inside poll(). Nothing
blocks and no threads are involved.
"""

import logging
import random
import time
from typing import Callable, Iterable, List, Optional, Union

from underless.catalog.artist import Artist
from underless.catalog.artist_catalog import ArtistCatalog
from underless.config import GameConfig
from underless.errors import CatalogUnavailable, NoCandidateAvailable
from underless.game.events import GameEvent, GameEventListener, GameOver, MatchResolved, NewRound
from underless.game.round_state import RoundPhase, RoundSnapshot, RoundState, Side, is_correct
from underless.game.step_queue import StepQueue
from underless.persistence.key_value_store import JsonFileKeyValueStore, KeyValueStore
from underless.persistence.state_gateway import PersistenceGateway
from underless.selection.match_selector import MatchSelector

logger = logging.getLogger(__name__)

PROMOTE_STEP = "promote"


class RoundStateMachine:
    """
    Under or Higher session.

    All transitions return a RoundSnapshot of the state they leave behind.
    Discrete events (MatchResolved, GameOver, NewRound) go to registered
    listeners.
    """

    def __init__(
        self,
        catalog: ArtistCatalog,
        selector: MatchSelector,
        gateway: PersistenceGateway,
        config: Optional[GameConfig] = None,
        clock: Optional[Callable[[], float]] = None,
    ):
        """
        Initialize round state machine.

        Args:
            catalog: Artist catalog for this session
            selector: Match selector drawing from the same catalog
            gateway: Persistence gateway for this session's state
            config: Game configuration (defaults if omitted)
            clock: Callable returning the current time in seconds (default time.monotonic)
        """
        self.catalog = catalog
        self.selector = selector
        self.gateway = gateway
        self.config = config or GameConfig()
        self._clock = clock or time.monotonic
        self._state = self._blank_state()
        self._steps = StepQueue()
        self._listeners: List[GameEventListener] = []

    @classmethod
    def from_config(
        cls,
        config: GameConfig,
        store: Optional[KeyValueStore] = None,
        rng: Optional[random.Random] = None,
        clock: Optional[Callable[[], float]] = None,
    ) -> "RoundStateMachine":
        """
        Build a session from configuration.

        A catalog that cannot be loaded becomes an empty catalog: the session
        then stays IDLE instead of failing.

        Args:
            config: Game configuration
            store: Key-value store (default: JSON file at config.state_path)
            rng: Random source (default: random.Random(config.seed))
            clock: Clock callable

        Returns:
            RoundStateMachine
        """
        try:
            catalog = ArtistCatalog.from_json(config.catalog_path)
        except CatalogUnavailable as e:
            logger.error(f"[ROUND] Catalog unavailable, starting with an empty catalog: {e}")
            catalog = ArtistCatalog([])

        selector = MatchSelector(
            catalog,
            rng=rng or random.Random(config.seed),
            memory_limit=config.memory_limit,
            relaxed_memory=config.relaxed_memory,
            min_fresh_candidates=config.min_fresh_candidates,
        )
        gateway = PersistenceGateway(store or JsonFileKeyValueStore(config.state_path), key=config.state_key)
        return cls(catalog, selector, gateway, config=config, clock=clock)

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def snapshot(self) -> RoundSnapshot:
        """Immutable copy of the current round."""
        return self._state.snapshot()

    @property
    def phase(self) -> RoundPhase:
        return self._state.phase

    def next_due(self) -> Optional[float]:
        """Clock time of the next scheduled step, or None."""
        return self._steps.next_due()

    # ------------------------------------------------------------------
    # Listeners
    # ------------------------------------------------------------------

    def add_listener(self, callback: GameEventListener) -> None:
        """
        Register a callback for game events.

        Args:
            callback: Called with each MatchResolved, GameOver or NewRound event
        """
        self._listeners.append(callback)

    def remove_listener(self, callback: GameEventListener) -> None:
        if callback in self._listeners:
            self._listeners.remove(callback)

    def _emit(self, event: GameEvent) -> None:
        for callback in list(self._listeners):
            try:
                callback(event)
            except Exception as e:
                # Presentation failures must not break the round
                logger.error(f"[ROUND] Listener failed on {type(event).__name__}: {e}", exc_info=True)

    # ------------------------------------------------------------------
    # Transitions
    # ------------------------------------------------------------------

    def start(self) -> RoundSnapshot:
        """
        Start or resume the game.

        Resumes a stored round when one exists (replaying its pending choice
        if any); otherwise deals a fresh pair. Cancels any scheduled step.

        Returns:
            RoundSnapshot after the transition
        """
        self._steps.clear()

        if self.catalog.is_empty():
            logger.warning("[ROUND] Catalog is empty, staying idle")
            self._state = self._blank_state()
            return self.snapshot()

        stored = self.gateway.load()
        if stored is None or not stored.has_pair():
            logger.info("[ROUND] No stored round, dealing a fresh pair")
            self._deal_fresh(previous=self._state)
            return self.snapshot()

        pending = stored.pending_choice
        stored.memory_limit = self.config.memory_limit
        if len(stored.used_names) > stored.memory_limit * 2:
            stored.used_names = stored.used_names[-stored.memory_limit:]
        stored.active = True
        stored.revealed = False
        stored.game_over = False
        stored.pending_choice = None
        self._state = stored

        logger.info(
            f"[ROUND] Resumed round: score={stored.score}, "
            f"{stored.left.name!r} vs {stored.right.name!r}"
        )

        if pending is not None:
            logger.info(f"[ROUND] Replaying pending choice after resume: {pending.value}")
            self._state.revealed = True
            self._state.pending_choice = pending
            self._resolve(pending, replay=True)
        else:
            self._emit(NewRound(left=stored.left, right=stored.right))

        return self.snapshot()

    def submit_guess(self, side: Union[Side, str]) -> RoundSnapshot:
        """
        Register the player's guess.

        Ignored unless a round is awaiting a guess (idle, mid-reveal and
        game-over sessions drop it). The choice is persisted before the
        outcome is computed.

        Args:
            side: Side.LEFT/Side.RIGHT or "left"/"right"

        Returns:
            RoundSnapshot after the transition
        """
        parsed = Side.parse(side)
        if parsed is None:
            logger.debug(f"[ROUND] Ignoring guess with unknown side: {side!r}")
            return self.snapshot()

        if self._state.phase is not RoundPhase.AWAITING_GUESS:
            logger.debug(f"[ROUND] Ignoring guess {parsed.value} in phase {self._state.phase.value}")
            return self.snapshot()

        self._state.revealed = True
        self._state.pending_choice = parsed
        self._persist(pending_choice=parsed)

        self._resolve(parsed, replay=False)
        return self.snapshot()

    def poll(self, now: Optional[float] = None) -> RoundSnapshot:
        """
        Run scheduled steps that are due.

        Args:
            now: Clock time to evaluate against (default: the machine's clock)

        Returns:
            RoundSnapshot after any steps ran
        """
        if now is None:
            now = self._clock()
        for step in self._steps.pop_due(now):
            logger.debug(f"[ROUND] Running step: {step.name}")
            step.action()
        return self.snapshot()

    def play_again(self) -> RoundSnapshot:
        """
        Throw away the current run and deal a brand-new pair.

        Valid from any phase. Score and history reset; scheduled steps are
        cancelled.

        Returns:
            RoundSnapshot after the transition
        """
        self._steps.clear()
        previous = self._state
        self._forget()
        logger.info(f"[ROUND] Play again (previous score={previous.score})")
        self._deal_fresh(previous=previous)
        return self.snapshot()

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _blank_state(self) -> RoundState:
        return RoundState(memory_limit=self.config.memory_limit)

    def _persist(self, pending_choice: Optional[Side] = None) -> None:
        try:
            self.gateway.save(self._state, pending_choice=pending_choice)
        except OSError as e:
            logger.error(f"[ROUND] Failed to persist round, continuing in memory: {e}")

    def _forget(self) -> None:
        try:
            self.gateway.clear()
        except OSError as e:
            logger.error(f"[ROUND] Failed to clear stored round: {e}")

    def _deal_fresh(self, previous: Optional[RoundState] = None) -> None:
        """Deal a new pair with score and history reset."""
        displayed: Iterable[Optional[Artist]] = ()
        if previous is not None:
            displayed = (previous.left, previous.right)

        state = self._blank_state()
        try:
            left = self.selector.select_initial(state.used_names, displayed=displayed)
            if left is None:
                raise NoCandidateAvailable("No artist available for the left card")
            state.remember(left.name)
            right = self.selector.next_opponent(left, state.used_names, score=0, displayed=displayed)
        except NoCandidateAvailable as e:
            logger.error(f"[ROUND] Cannot deal a pair, staying idle: {e}")
            self._state = self._blank_state()
            return

        state.remember(right.name)
        state.left = left
        state.right = right
        state.active = True
        self._state = state
        self._persist()

        logger.info(f"[ROUND] New game: {left.name!r} vs {right.name!r}")
        self._emit(NewRound(left=left, right=right))

    def _resolve(self, side: Side, replay: bool) -> None:
        """Score a guess against the current pair."""
        state = self._state
        correct = is_correct(side, state.left, state.right)

        if correct:
            state.score += 1
            # Resolved in memory; the stored record keeps its marker until promotion
            state.pending_choice = None
            logger.info(
                f"[ROUND] Correct: picked {side.value} "
                f"({state.left.popularity} vs {state.right.popularity}), score={state.score}"
            )
            self._emit(MatchResolved(side=side, correct=True, new_score=state.score))

            if replay:
                self._promote()
            else:
                self._steps.schedule(PROMOTE_STEP, self._clock() + self.config.reveal_delay_sec, self._promote)
            return

        state.game_over = True
        state.pending_choice = None
        self._forget()
        logger.info(
            f"[ROUND] Wrong: picked {side.value} "
            f"({state.left.popularity} vs {state.right.popularity}), final score={state.score}"
        )
        self._emit(MatchResolved(side=side, correct=False, new_score=state.score))
        self._emit(GameOver(final_score=state.score))

    def _promote(self) -> None:
        """Move the right card to the left and draw a new opponent."""
        state = self._state
        if state.game_over or not state.revealed or not state.has_pair():
            logger.debug("[ROUND] Promotion skipped, round no longer revealed")
            return

        new_left = state.right
        state.left = new_left
        state.remember(new_left.name)

        try:
            new_right = self.selector.next_opponent(
                new_left, state.used_names, score=state.score, displayed=(new_left,)
            )
        except NoCandidateAvailable as e:
            logger.error(f"[ROUND] No opponent for promoted artist, dealing a fresh game: {e}")
            self._forget()
            self._deal_fresh(previous=state)
            return

        state.right = new_right
        state.remember(new_right.name)
        state.revealed = False
        state.pending_choice = None
        self._persist()

        logger.info(f"[ROUND] Next round: {new_left.name!r} vs {new_right.name!r} (score={state.score})")
        self._emit(NewRound(left=new_left, right=new_right))
