"""
Round state persistence for the Under or Higher game.

Serializes the resumable part of a RoundState (score, pair, history and the
pending-choice marker) to one key of a KeyValueStore. Flags that only
matter while the page is live (revealed, game_over) are not stored: a
finished run is cleared, and a stored pending choice is what marks a round
as revealed.
"""

import json
import logging
from typing import Any, Dict, Optional

from underless.catalog.artist import Artist
from underless.errors import PersistenceCorrupt
from underless.game.round_state import RoundState, Side
from underless.persistence.key_value_store import KeyValueStore

logger = logging.getLogger(__name__)

DEFAULT_STATE_KEY = "underless_uoh_state"


def encode_state(state: RoundState, pending_choice: Optional[Side] = None) -> Dict[str, Any]:
    """
    Build the stored record for a round.

    Args:
        state: Round to encode
        pending_choice: Guess to record as unresolved (None clears the marker)

    Returns:
        JSON-compatible dict
    """
    return {
        "score": state.score,
        "usedArtists": list(state.used_names),
        "currentLeft": state.left.to_record() if state.left else None,
        "currentRight": state.right.to_record() if state.right else None,
        "pendingChoice": pending_choice.value if pending_choice else None,
    }


def decode_state(data: Any) -> RoundState:
    """
    Rebuild a RoundState from a stored record.

    Args:
        data: Parsed JSON record

    Returns:
        RoundState (not yet active)

    Raises:
        PersistenceCorrupt: If the record is malformed
    """
    if not isinstance(data, dict):
        raise PersistenceCorrupt(f"State must be an object, got {type(data).__name__}")

    score = data.get("score", 0)
    if isinstance(score, bool) or not isinstance(score, int) or score < 0:
        raise PersistenceCorrupt(f"Invalid score: {score!r}")

    used = data.get("usedArtists", [])
    if not isinstance(used, list) or not all(isinstance(n, str) for n in used):
        raise PersistenceCorrupt(f"Invalid usedArtists: {used!r}")

    try:
        left = Artist.from_record(data.get("currentLeft"))
        right = Artist.from_record(data.get("currentRight"))
    except ValueError as e:
        raise PersistenceCorrupt(f"Invalid stored artist: {e}") from e

    if left.name == right.name:
        raise PersistenceCorrupt(f"Stored pair repeats {left.name!r}")

    pending_raw = data.get("pendingChoice")
    pending = Side.parse(pending_raw)
    if pending_raw is not None and pending is None:
        raise PersistenceCorrupt(f"Invalid pendingChoice: {pending_raw!r}")

    return RoundState(
        score=score,
        left=left,
        right=right,
        used_names=list(used),
        pending_choice=pending,
    )


class PersistenceGateway:
    """
    save/load/clear for one session's RoundState.

    Corrupt records are reported as absence so the caller falls back to a
    fresh round.
    """

    def __init__(self, store: KeyValueStore, key: str = DEFAULT_STATE_KEY):
        """
        Initialize gateway.

        Args:
            store: Backing key-value store
            key: Storage key for this game's state
        """
        self.store = store
        self.key = key

    def save(self, state: RoundState, pending_choice: Optional[Side] = None) -> None:
        """
        Persist the round, optionally marking a guess as pending.

        Store write errors propagate.
        """
        self.store.set(self.key, json.dumps(encode_state(state, pending_choice)))
        logger.debug(
            f"[PERSIST] Saved state: score={state.score}, "
            f"pending={pending_choice.value if pending_choice else None}, history={len(state.used_names)}"
        )

    def load(self) -> Optional[RoundState]:
        """
        Load the stored round.

        Returns:
            RoundState, or None if nothing usable is stored
        """
        try:
            raw = self.store.get(self.key)
        except OSError as e:
            logger.warning(f"[PERSIST] Failed to read stored state, treating as absent: {e}")
            return None

        if raw is None:
            logger.debug("[PERSIST] No stored state")
            return None

        try:
            try:
                data = json.loads(raw)
            except ValueError as e:
                raise PersistenceCorrupt(f"Stored state is not JSON: {e}") from e
            state = decode_state(data)
        except PersistenceCorrupt as e:
            logger.warning(f"[PERSIST] Ignoring corrupt stored state: {e}")
            return None

        logger.debug(
            f"[PERSIST] Loaded state: score={state.score}, "
            f"pending={state.pending_choice.value if state.pending_choice else None}"
        )
        return state

    def clear(self) -> None:
        """Remove any stored round."""
        self.store.delete(self.key)
        logger.debug("[PERSIST] Cleared stored state")
