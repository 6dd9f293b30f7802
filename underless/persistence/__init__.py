"""
State persistence package for the Under or Higher game.

Provides key-value backends and the round-state gateway on top of them.
"""

from underless.persistence.key_value_store import (
    JsonFileKeyValueStore,
    KeyValueStore,
    MemoryKeyValueStore,
)
from underless.persistence.state_gateway import DEFAULT_STATE_KEY, PersistenceGateway

__all__ = [
    "DEFAULT_STATE_KEY",
    "JsonFileKeyValueStore",
    "KeyValueStore",
    "MemoryKeyValueStore",
    "PersistenceGateway",
]
