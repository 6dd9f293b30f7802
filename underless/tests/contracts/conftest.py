"""
Shared pytest fixtures for game contract tests.

Contract tests use test doubles (scripted randomness, fake clock, in-memory
storage) to avoid real dependencies. No environment variables, real files
or wall-clock waits are used unless a test asks for tmp_path.
"""

import random

import pytest

from underless.config import GameConfig
from underless.game.round_state_machine import RoundStateMachine
from underless.persistence.state_gateway import PersistenceGateway
from underless.selection.match_selector import MatchSelector
from underless.tests.contracts.test_doubles import (
    REVEAL_DELAY_SEC,
    FakeClock,
    RecordingKeyValueStore,
    RecordingListener,
    make_catalog,
)


@pytest.fixture
def catalog():
    """Thirty artists with distinct popularity (no ties)."""
    return make_catalog(30)


@pytest.fixture
def seeded_rng():
    return random.Random(1234)


@pytest.fixture
def store():
    return RecordingKeyValueStore()


@pytest.fixture
def gateway(store):
    return PersistenceGateway(store)


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def config():
    return GameConfig(reveal_delay_sec=REVEAL_DELAY_SEC)


@pytest.fixture
def recorder():
    return RecordingListener()


@pytest.fixture
def build_machine(gateway, clock, config, recorder):
    """Factory for a state machine over a given catalog sharing the fixture store and clock."""

    def _build(catalog, rng=None, listener=True):
        selector = MatchSelector(catalog, rng=rng or random.Random(1234))
        machine = RoundStateMachine(catalog, selector, gateway, config=config, clock=clock)
        if listener:
            machine.add_listener(recorder)
        return machine

    return _build


@pytest.fixture
def machine(build_machine, catalog):
    return build_machine(catalog)
