"""
Contract tests for RoundStateMachine

Covers the round lifecycle: dealing, guessing, the reveal pause, game over,
play again, and resuming a stored round (including a pending guess).
"""

import random

import pytest

from underless.game.events import GameOver, MatchResolved, NewRound
from underless.game.round_state import RoundPhase, RoundState, Side
from underless.game.round_state_machine import RoundStateMachine
from underless.persistence.key_value_store import MemoryKeyValueStore
from underless.persistence.state_gateway import DEFAULT_STATE_KEY, PersistenceGateway
from underless.selection.match_selector import MatchSelector
from underless.tests.contracts.test_doubles import (
    REVEAL_DELAY_SEC,
    BrokenKeyValueStore,
    ReadFailingStore,
    catalog_of,
    correct_side,
    make_artist,
    wrong_side,
)


def play_correct(machine, clock):
    """Guess right and wait out the reveal pause."""
    machine.submit_guess(correct_side(machine.snapshot()))
    clock.advance(REVEAL_DELAY_SEC)
    return machine.poll()


class TestStart:
    """Fresh start."""

    def test_fresh_start_deals_distinct_pair(self, machine, recorder, gateway):
        snapshot = machine.start()

        assert snapshot.phase is RoundPhase.AWAITING_GUESS
        assert snapshot.score == 0
        assert snapshot.left.name != snapshot.right.name
        assert snapshot.used_names == (snapshot.left.name, snapshot.right.name)
        assert recorder.events == [NewRound(left=snapshot.left, right=snapshot.right)]

        stored = gateway.load()
        assert stored.left == snapshot.left
        assert stored.pending_choice is None

    def test_empty_catalog_stays_idle(self, build_machine, recorder):
        machine = build_machine(catalog_of([]))
        snapshot = machine.start()
        assert snapshot.phase is RoundPhase.IDLE
        assert snapshot.left is None
        assert machine.submit_guess(Side.LEFT).phase is RoundPhase.IDLE
        assert recorder.events == []

    def test_single_artist_catalog_stays_idle(self, build_machine):
        machine = build_machine(catalog_of([make_artist("Solo", 10)]))
        assert machine.start().phase is RoundPhase.IDLE
        assert machine.play_again().phase is RoundPhase.IDLE

    def test_seeded_runs_are_reproducible(self, build_machine, catalog, store):
        first = build_machine(catalog, rng=random.Random(77)).start()
        store.delete(DEFAULT_STATE_KEY)
        second = build_machine(catalog, rng=random.Random(77)).start()
        assert (first.left, first.right) == (second.left, second.right)


class TestGuessing:
    """Live guesses."""

    def test_guess_persisted_as_pending_before_outcome(self, machine, store):
        start = machine.start()
        side = correct_side(start)
        writes_before = len(store.writes())

        machine.submit_guess(side)

        pending_write = store.writes()[writes_before]
        assert pending_write["pendingChoice"] == side.value
        assert pending_write["score"] == 0
        assert pending_write["currentLeft"]["name"] == start.left.name

    def test_correct_guess_reveals_then_promotes(self, machine, recorder, clock, gateway):
        start = machine.start()
        recorder.clear()

        revealed = machine.submit_guess(correct_side(start))
        assert revealed.phase is RoundPhase.REVEALED
        assert revealed.score == 1
        assert recorder.events == [MatchResolved(side=correct_side(start), correct=True, new_score=1)]

        clock.advance(REVEAL_DELAY_SEC - 0.5)
        assert machine.poll().phase is RoundPhase.REVEALED

        clock.advance(0.5)
        promoted = machine.poll()
        assert promoted.phase is RoundPhase.AWAITING_GUESS
        assert promoted.left == start.right
        assert promoted.right.name != promoted.left.name
        assert promoted.score == 1
        assert recorder.of_type(NewRound) == [NewRound(left=promoted.left, right=promoted.right)]

        stored = gateway.load()
        assert stored.score == 1
        assert stored.pending_choice is None
        assert stored.left == promoted.left

    def test_promotion_due_after_reveal_delay(self, machine, clock):
        start = machine.start()
        machine.submit_guess(correct_side(start))
        assert machine.next_due() == pytest.approx(clock() + REVEAL_DELAY_SEC)

    def test_correct_guess_clears_pending_choice_in_memory(self, machine, gateway):
        start = machine.start()
        side = correct_side(start)

        snapshot = machine.submit_guess(side)
        assert snapshot.phase is RoundPhase.REVEALED
        assert snapshot.pending_choice is None

        stored = gateway.load()
        assert stored.pending_choice is side
        assert stored.score == 0

    def test_guess_ignored_while_revealed(self, machine, recorder):
        start = machine.start()
        machine.submit_guess(correct_side(start))
        recorder.clear()

        snapshot = machine.submit_guess(Side.LEFT)
        assert snapshot.score == 1
        assert snapshot.phase is RoundPhase.REVEALED
        assert recorder.events == []

    def test_unknown_side_ignored(self, machine):
        machine.start()
        snapshot = machine.submit_guess("up")
        assert snapshot.phase is RoundPhase.AWAITING_GUESS
        assert snapshot.score == 0

    def test_string_sides_accepted(self, machine):
        start = machine.start()
        snapshot = machine.submit_guess(correct_side(start).value.upper())
        assert snapshot.score == 1

    @pytest.mark.parametrize("rounds", [1, 5, 10])
    def test_n_correct_guesses_score_n(self, machine, clock, rounds):
        machine.start()
        for _ in range(rounds):
            snapshot = play_correct(machine, clock)
        assert snapshot.score == rounds
        assert snapshot.phase is RoundPhase.AWAITING_GUESS

    def test_wrong_guess_ends_game_and_clears_storage(self, machine, recorder, clock, store):
        machine.start()
        play_correct(machine, clock)
        play_correct(machine, clock)
        recorder.clear()

        snapshot = machine.submit_guess(wrong_side(machine.snapshot()))

        assert snapshot.phase is RoundPhase.GAME_OVER
        assert snapshot.score == 2
        assert store.get(DEFAULT_STATE_KEY) is None
        assert recorder.of_type(GameOver) == [GameOver(final_score=2)]
        assert recorder.of_type(MatchResolved)[0].correct is False
        assert machine.next_due() is None

    def test_guess_ignored_after_game_over(self, machine):
        start = machine.start()
        machine.submit_guess(wrong_side(start))
        snapshot = machine.submit_guess(correct_side(start))
        assert snapshot.phase is RoundPhase.GAME_OVER
        assert snapshot.score == 0

    def test_ties_favor_left(self, build_machine, gateway):
        left, right = make_artist("Twin A", 500), make_artist("Twin B", 500)
        catalog = catalog_of([left, right, make_artist("Other", 900)])
        gateway.save(RoundState(left=left, right=right, used_names=["Twin A", "Twin B"]))

        machine = build_machine(catalog)
        machine.start()
        assert machine.submit_guess(Side.LEFT).score == 1


class TestHistoryAndPairs:
    """Invariants over long runs."""

    def test_fifty_rounds_keep_history_bounded_and_pairs_distinct(self, machine, clock):
        snapshot = machine.start()
        lengths = [len(snapshot.used_names)]

        for _ in range(50):
            snapshot = play_correct(machine, clock)
            assert snapshot.left.name != snapshot.right.name
            lengths.append(len(snapshot.used_names))

        assert snapshot.score == 50
        assert max(lengths) == 40
        assert min(lengths[21:]) < 40

    def test_two_artist_catalog_keeps_alternating(self, build_machine, clock):
        a, b = make_artist("A", 100), make_artist("B", 200)
        machine = build_machine(catalog_of([a, b]))
        machine.start()

        for round_number in range(1, 6):
            snapshot = play_correct(machine, clock)
            assert snapshot.score == round_number
            assert {snapshot.left.name, snapshot.right.name} == {"A", "B"}


class TestPlayAgain:
    """Restarting a run."""

    def test_play_again_after_game_over(self, machine, store):
        start = machine.start()
        machine.submit_guess(wrong_side(start))

        snapshot = machine.play_again()
        assert snapshot.phase is RoundPhase.AWAITING_GUESS
        assert snapshot.score == 0
        assert snapshot.left.name != snapshot.right.name
        assert len(snapshot.used_names) == 2
        assert store.get(DEFAULT_STATE_KEY) is not None

    def test_play_again_cancels_pending_promotion(self, machine, clock):
        start = machine.start()
        machine.submit_guess(correct_side(start))

        fresh = machine.play_again()
        assert machine.next_due() is None

        clock.advance(REVEAL_DELAY_SEC * 2)
        after = machine.poll()
        assert (after.left, after.right, after.score) == (fresh.left, fresh.right, 0)

    def test_start_cancels_pending_promotion(self, machine, clock):
        start = machine.start()
        machine.submit_guess(correct_side(start))

        machine.start()
        assert machine.next_due() is None


class TestResume:
    """Resuming a stored round."""

    @pytest.fixture
    def pair(self):
        return make_artist("Big", 100), make_artist("Small", 50)

    @pytest.fixture
    def resume_catalog(self, pair):
        return catalog_of(list(pair) + [make_artist(f"extra{i}", 60 + i * 10) for i in range(6)])

    def test_resume_without_pending_restores_round(self, build_machine, resume_catalog, pair, gateway, recorder):
        big, small = pair
        gateway.save(RoundState(score=4, left=big, right=small, used_names=["Big", "Small"]))

        snapshot = build_machine(resume_catalog).start()
        assert snapshot.phase is RoundPhase.AWAITING_GUESS
        assert snapshot.score == 4
        assert (snapshot.left, snapshot.right) == (big, small)
        assert recorder.events == [NewRound(left=big, right=small)]

    def test_pending_correct_choice_replays_once(self, build_machine, resume_catalog, pair, gateway, recorder):
        big, small = pair
        gateway.save(RoundState(score=0, left=big, right=small, used_names=["Big", "Small"]), pending_choice=Side.LEFT)

        machine = build_machine(resume_catalog)
        snapshot = machine.start()

        assert snapshot.score == 1
        assert snapshot.phase is RoundPhase.AWAITING_GUESS
        assert snapshot.left == small
        assert recorder.events[0] == MatchResolved(side=Side.LEFT, correct=True, new_score=1)
        assert isinstance(recorder.events[1], NewRound)
        assert gateway.load().pending_choice is None

        recorder.clear()
        again = machine.start()
        assert again.score == 1
        assert recorder.of_type(MatchResolved) == []

        fresh_machine = build_machine(resume_catalog, listener=False)
        assert fresh_machine.start().score == 1

    def test_pending_wrong_choice_ends_game(self, build_machine, resume_catalog, pair, gateway, store, recorder):
        big, small = pair
        gateway.save(RoundState(score=4, left=big, right=small, used_names=["Big", "Small"]), pending_choice=Side.RIGHT)

        snapshot = build_machine(resume_catalog).start()
        assert snapshot.phase is RoundPhase.GAME_OVER
        assert snapshot.score == 4
        assert store.get(DEFAULT_STATE_KEY) is None
        assert recorder.of_type(GameOver) == [GameOver(final_score=4)]

    def test_reload_mid_reveal_matches_live_outcome(self, machine, build_machine, catalog):
        start = machine.start()
        live = machine.submit_guess(correct_side(start))

        reloaded = build_machine(catalog, listener=False).start()
        assert reloaded.score == live.score == 1
        assert reloaded.left == start.right

    def test_reload_after_wrong_guess_starts_fresh(self, machine, build_machine, catalog):
        start = machine.start()
        machine.submit_guess(wrong_side(start))

        reloaded = build_machine(catalog, listener=False).start()
        assert reloaded.score == 0
        assert reloaded.phase is RoundPhase.AWAITING_GUESS

    def test_corrupt_state_starts_fresh(self, build_machine, catalog, store):
        MemoryKeyValueStore.set(store, DEFAULT_STATE_KEY, "{broken")
        snapshot = build_machine(catalog).start()
        assert snapshot.score == 0
        assert snapshot.phase is RoundPhase.AWAITING_GUESS

    def test_overlong_stored_history_is_trimmed(self, build_machine, resume_catalog, pair, gateway):
        big, small = pair
        history = [f"old{i}" for i in range(60)] + ["Big", "Small"]
        gateway.save(RoundState(score=1, left=big, right=small, used_names=history))

        snapshot = build_machine(resume_catalog).start()
        assert len(snapshot.used_names) == 20
        assert snapshot.used_names[-2:] == ("Big", "Small")


class TestDegradedCollaborators:
    """Failures outside the core do not break transitions."""

    def test_listener_failure_does_not_break_round(self, machine, clock):
        def explode(event):
            raise RuntimeError("render failed")

        machine.add_listener(explode)
        machine.start()
        assert play_correct(machine, clock).score == 1

    def test_removed_listener_stops_receiving(self, machine, recorder):
        machine.remove_listener(recorder)
        machine.start()
        assert recorder.events == []

    def test_unreadable_storage_deals_fresh_round(self, catalog, config, clock):
        gateway = PersistenceGateway(ReadFailingStore())
        selector = MatchSelector(catalog, rng=random.Random(3))
        machine = RoundStateMachine(catalog, selector, gateway, config=config, clock=clock)

        snapshot = machine.start()
        assert snapshot.phase is RoundPhase.AWAITING_GUESS
        assert snapshot.score == 0
        assert snapshot.left.name != snapshot.right.name

    def test_storage_failure_keeps_playing_in_memory(self, catalog, config, clock):
        gateway = PersistenceGateway(BrokenKeyValueStore())
        selector = MatchSelector(catalog, rng=random.Random(3))
        machine = RoundStateMachine(catalog, selector, gateway, config=config, clock=clock)

        machine.start()
        assert play_correct(machine, clock).score == 1
        assert machine.submit_guess(wrong_side(machine.snapshot())).phase is RoundPhase.GAME_OVER
        assert machine.play_again().phase is RoundPhase.AWAITING_GUESS


class TestFromConfig:
    """Construction from configuration."""

    def test_missing_catalog_gives_idle_session(self, config, tmp_path):
        config.catalog_path = str(tmp_path / "missing.json")
        machine = RoundStateMachine.from_config(config, store=MemoryKeyValueStore())
        assert machine.start().phase is RoundPhase.IDLE

    def test_bundled_catalog_with_file_store(self, config, tmp_path):
        config.state_path = str(tmp_path / "state.json")
        config.seed = 5
        machine = RoundStateMachine.from_config(config)
        snapshot = machine.start()

        assert snapshot.phase is RoundPhase.AWAITING_GUESS
        assert (tmp_path / "state.json").exists()

    def test_history_window_follows_config(self, config):
        config.memory_limit = 10
        config.relaxed_memory = 2
        machine = RoundStateMachine.from_config(config, store=MemoryKeyValueStore(), rng=random.Random(1))
        assert machine.selector.memory_limit == 10
        assert machine.selector.relaxed_memory == 2
