"""
Tests for the match state machine: the two-way join, timeouts and the match winner.
"""
import random
import threading

import pytest

from conftest import FixedRandom, make_participant
from app.engine.bout_engine import BoutEngine, Match, MatchStatus
from app.engine.errors import InvalidChoice, NotInMatch, PhaseAlreadyResolved, NoActiveMatch
from app.engine.resolver import Side
from app.engine.tables import PHASE_ORDER, PHASE_TABLES


def play_phase(engine, match, east_choice, west_choice, now_ms=None):
    engine.submit_choice(match, Side.EAST, east_choice, now_ms=now_ms)
    return engine.submit_choice(match, Side.WEST, west_choice, now_ms=now_ms)


class TestCreateMatch:
    def test_fresh_match(self, east, west):
        engine = BoutEngine(clock=lambda: 5000)
        match = engine.create_match(east, west)

        assert match.status == MatchStatus.ACTIVE
        assert match.current_phase == "salt"
        assert match.phase_results == {}
        assert match.stats[Side.EAST].total == 0
        assert match.phase_started_at == 5000
        assert match.winner is None

    def test_side_lookup(self, east, west):
        match = BoutEngine().create_match(east, west)
        assert match.side_of("east@test.com") is Side.EAST
        assert match.side_of(west) is Side.WEST
        assert match.side_of("west") is Side.WEST
        with pytest.raises(NotInMatch):
            match.side_of("stranger@test.com")


class TestSubmitChoice:
    def test_first_choice_waits(self, east, west):
        engine = BoutEngine()
        match = engine.create_match(east, west)

        result = engine.submit_choice(match, "east@test.com", "lots")

        assert result.resolved is False
        assert result.outcome is None
        assert match.choices[Side.EAST] == "lots"
        assert match.current_phase == "salt"

    def test_submission_order_does_not_matter(self, east, west):
        engine = BoutEngine()
        match = engine.create_match(east, west)

        engine.submit_choice(match, Side.WEST, "lots")
        result = engine.submit_choice(match, Side.EAST, "little")

        assert result.resolved is True
        assert result.outcome.east_choice == "little"
        assert result.outcome.west_choice == "lots"

    def test_resolution_clears_choices_and_advances(self, east, west):
        engine = BoutEngine()
        match = engine.create_match(east, west, now_ms=0)

        play_phase(engine, match, "little", "lots", now_ms=1500)

        assert list(match.phase_results) == ["salt"]
        assert match.choices == {Side.EAST: None, Side.WEST: None}
        assert match.current_phase == "display"
        assert match.phase_started_at == 1500
        assert match.stats[Side.EAST].focus == 2
        assert match.stats[Side.WEST].spirit == 2

    def test_stranger_rejected(self, east, west):
        engine = BoutEngine()
        match = engine.create_match(east, west)
        with pytest.raises(NotInMatch):
            engine.submit_choice(match, "stranger@test.com", "lots")

    def test_invalid_choice(self, east, west):
        engine = BoutEngine()
        match = engine.create_match(east, west)
        with pytest.raises(InvalidChoice):
            engine.submit_choice(match, Side.EAST, "henka")
        assert match.choices[Side.EAST] is None

    def test_same_side_twice(self, east, west):
        engine = BoutEngine()
        match = engine.create_match(east, west)
        engine.submit_choice(match, Side.EAST, "lots")
        with pytest.raises(PhaseAlreadyResolved):
            engine.submit_choice(match, Side.EAST, "little")

    def test_future_phase_rejected(self, east, west):
        engine = BoutEngine()
        match = engine.create_match(east, west)
        with pytest.raises(InvalidChoice):
            engine.submit_choice(match, Side.EAST, "hard", phase="tachiai")

    def test_completed_match(self, east, west):
        engine = BoutEngine(rng=random.Random(3))
        match = engine.create_match(east, west)
        engine.resolve_cpu_match(match)
        with pytest.raises(NoActiveMatch):
            engine.submit_choice(match, Side.EAST, "yorikiri")

    def test_cpu_opponent_answers_immediately(self, east):
        cpu = make_participant("cpu_0@cpu.local", "Hoshoryu", is_cpu=True, technique=7, weight=3)
        engine = BoutEngine(rng=random.Random(7))
        match = engine.create_match(east, cpu)

        result = engine.submit_choice(match, Side.EAST, "lots")

        assert result.resolved is True
        assert result.outcome.west_choice in PHASE_TABLES["salt"].choices
        assert match.current_phase == "display"


class TestMatchWinner:
    def test_two_phase_wins_take_the_bout(self, east, west):
        # tachiai east, technique west, finish east
        engine = BoutEngine(rng=FixedRandom([0.1, 0.9, 0.0]))
        match = engine.create_match(east, west)

        play_phase(engine, match, "lots", "lots")
        play_phase(engine, match, "aura", "aura")
        play_phase(engine, match, "hard", "hard")
        play_phase(engine, match, "grip", "grip")
        result = play_phase(engine, match, "yorikiri", "oshidashi")

        assert result.resolved is True
        assert match.status == MatchStatus.COMPLETED
        assert match.phase_wins(Side.EAST) == 2
        assert match.phase_wins(Side.WEST) == 1
        assert match.winner is Side.EAST
        assert match.winning_move == "yorikiri"
        assert match.winner_participant is east
        assert match.loser_participant is west

    def test_phase_count_beats_the_finish(self, east, west):
        # East wins tachiai and technique, west wins the finish
        engine = BoutEngine(rng=FixedRandom([0.1, 0.1, 0.99]))
        match = engine.create_match(east, west)

        play_phase(engine, match, "lots", "lots")
        play_phase(engine, match, "aura", "aura")
        play_phase(engine, match, "hard", "hard")
        play_phase(engine, match, "grip", "grip")
        play_phase(engine, match, "uwatenage", "hatakikomi")

        assert match.phase_results["finish"].winner is Side.WEST
        assert match.winner is Side.EAST
        assert match.winning_move == "uwatenage"

    def test_tie_break_on_stat_total(self, east, west):
        engine = BoutEngine()
        match = Match(east=east, west=west)
        match.stats[Side.WEST].apply({"spirit": 1})
        assert engine.determine_winner(match) is Side.WEST

    def test_tie_break_coin_flip(self, east, west):
        match = Match(east=east, west=west)
        assert BoutEngine(rng=FixedRandom([0.2])).determine_winner(match) is Side.EAST
        assert BoutEngine(rng=FixedRandom([0.7])).determine_winner(match) is Side.WEST

    def test_cpu_match_runs_all_phases(self):
        engine = BoutEngine(rng=random.Random(42))
        a = make_participant("cpu_0@cpu.local", "Onosato", is_cpu=True, weight=7, technique=3)
        b = make_participant("cpu_1@cpu.local", "Ura", is_cpu=True, speed=7, height=3)
        match = engine.create_match(a, b)

        engine.resolve_cpu_match(match)

        assert match.is_cpu_match
        assert match.is_completed
        assert list(match.phase_results) == list(PHASE_ORDER)
        assert match.winner in (Side.EAST, Side.WEST)
        assert match.winning_move in PHASE_TABLES["finish"].choices


class TestTimeout:
    def test_not_expired_before_budget(self, east, west):
        engine = BoutEngine()
        match = engine.create_match(east, west, now_ms=0)
        result = engine.check_timeout(match, now_ms=29999)
        assert result.expired is False
        assert match.phase_results == {}

    def test_missing_side_gets_random_choice(self, east, west):
        engine = BoutEngine()
        match = engine.create_match(east, west, now_ms=0)
        engine.submit_choice(match, Side.EAST, "lots", now_ms=100)

        result = engine.check_timeout(match, now_ms=30000)

        assert result.expired is True
        outcome = match.phase_results["salt"]
        assert outcome.east_choice == "lots"
        assert outcome.west_choice in PHASE_TABLES["salt"].choices
        assert outcome.timed_out == (Side.WEST,)
        assert match.current_phase == "display"

    def test_both_sides_missing(self, east, west):
        engine = BoutEngine()
        match = engine.create_match(east, west, now_ms=0)
        engine.check_timeout(match, now_ms=30000)
        assert set(match.phase_results["salt"].timed_out) == {Side.EAST, Side.WEST}

    def test_display_timeout_then_late_submission(self, east, west):
        engine = BoutEngine()
        match = engine.create_match(east, west, now_ms=0)
        play_phase(engine, match, "little", "lots", now_ms=1000)
        engine.submit_choice(match, Side.EAST, "mawashi", now_ms=2000)

        result = engine.check_timeout(match, now_ms=31000)

        assert result.expired is True
        assert match.current_phase == "tachiai"
        assert match.phase_results["display"].timed_out == (Side.WEST,)
        with pytest.raises(PhaseAlreadyResolved):
            engine.submit_choice(match, Side.WEST, "aura", phase="display")

    def test_idempotent(self, east, west):
        engine = BoutEngine()
        match = engine.create_match(east, west, now_ms=0)

        first = engine.check_timeout(match, now_ms=30000)
        second = engine.check_timeout(match, now_ms=30000)

        assert first.expired is True
        assert second.expired is False
        assert list(match.phase_results) == ["salt"]

    def test_new_phase_gets_fresh_timer(self, east, west):
        engine = BoutEngine()
        match = engine.create_match(east, west, now_ms=0)
        engine.check_timeout(match, now_ms=30000)

        assert match.phase_started_at == 30000
        assert match.phase_timed_out is False
        assert match.timed_out == {Side.EAST: False, Side.WEST: False}
        assert engine.check_timeout(match, now_ms=59999).expired is False
        assert engine.check_timeout(match, now_ms=60000).expired is True

    def test_completed_match_never_times_out(self, east, west):
        engine = BoutEngine(rng=random.Random(1))
        match = engine.create_match(east, west, now_ms=0)
        engine.resolve_cpu_match(match)
        assert engine.check_timeout(match, now_ms=10 ** 9).expired is False


class TestHooks:
    def test_hooks_fire(self, east, west):
        engine = BoutEngine(rng=random.Random(5))
        phases = []
        finished = []

        @engine.on_phase_resolved
        def record_phase(match, outcome):
            phases.append(outcome.phase)

        engine.on_match_completed(finished.append)

        match = engine.create_match(east, west)
        engine.resolve_cpu_match(match)

        assert phases == list(PHASE_ORDER)
        assert finished == [match]


class TestConcurrency:
    def test_racing_submissions_resolve_once(self, east, west):
        engine = BoutEngine()
        match = engine.create_match(east, west)
        outcomes = []
        barrier = threading.Barrier(2)

        def submit(side, choice):
            barrier.wait()
            result = engine.submit_choice(match, side, choice)
            if result.resolved:
                outcomes.append(result.outcome)

        threads = [
            threading.Thread(target=submit, args=(Side.EAST, "lots")),
            threading.Thread(target=submit, args=(Side.WEST, "little")),
        ]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert len(outcomes) == 1
        assert list(match.phase_results) == ["salt"]


class TestSnapshot:
    def test_round_trip(self, east, west):
        engine = BoutEngine(rng=random.Random(9))
        match = engine.create_match(east, west, now_ms=0)
        play_phase(engine, match, "little", "lots", now_ms=10)
        play_phase(engine, match, "mawashi", "aura", now_ms=20)
        play_phase(engine, match, "hard", "henka", now_ms=30)
        engine.submit_choice(match, Side.EAST, "grip", now_ms=40)

        people = {"east@test.com": east, "west@test.com": west}
        restored = Match.from_dict(match.to_dict(), people.get)

        assert restored.id == match.id
        assert restored.current_phase == "technique"
        assert restored.choices[Side.EAST] == "grip"
        assert restored.stats == match.stats
        assert restored.phase_results == match.phase_results
        assert restored.east is east

        # The restored match carries on where it left off
        result = engine.submit_choice(restored, Side.WEST, "push", now_ms=50)
        assert result.resolved is True
        assert restored.current_phase == "finish"
