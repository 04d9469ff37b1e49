"""
Tests for CPU opponent decisions.
"""
import random

import pytest

from conftest import FixedRandom, make_participant
from app.engine import ai
from app.engine.bout_engine import Match
from app.engine.resolver import Side
from app.engine.stats import BattleStats
from app.engine.tables import PHASE_ORDER, PHASE_TABLES, STAT_FIELDS


class TestSaltAndDisplay:
    def test_salt_leans_to_lots(self):
        assert ai.choose_salt(FixedRandom([0.5])) == "lots"
        assert ai.choose_salt(FixedRandom([0.3])) == "little"

    def test_display_aura_when_spirit_leads(self):
        stats = BattleStats(spirit=2)
        assert ai.choose_display(stats, FixedRandom([0.9])) == "aura"

    def test_display_coin_flip_otherwise(self):
        stats = BattleStats(focus=2)
        assert ai.choose_display(stats, FixedRandom([0.9])) == "mawashi"
        assert ai.choose_display(stats, FixedRandom([0.1])) == "aura"


class TestTachiai:
    def test_confident_goes_hard(self):
        assert ai.choose_tachiai(BattleStats(spirit=4), BattleStats(focus=1), FixedRandom([0.9])) == "hard"

    def test_behind_goes_soft(self):
        assert ai.choose_tachiai(BattleStats(), BattleStats(spirit=2, focus=2), FixedRandom([0.0])) == "soft"

    def test_margin_must_be_exceeded(self):
        # Lead of exactly 2 falls through to the weighted pick
        assert ai.choose_tachiai(BattleStats(spirit=2), BattleStats(), FixedRandom([0.9])) == "henka"

    @pytest.mark.parametrize("roll,expected", [(0.0, "hard"), (0.39, "hard"), (0.4, "soft"), (0.69, "soft"), (0.7, "henka")])
    def test_weighted_pick(self, roll, expected):
        assert ai.choose_tachiai(BattleStats(), BattleStats(), FixedRandom([roll])) == expected


class TestTechnique:
    def test_technical_wrestler_grips(self):
        p = make_participant("a@test.com", technique=7)
        assert ai.choose_technique(p, BattleStats(), FixedRandom([0.5])) == "grip"
        assert ai.choose_technique(p, BattleStats(), FixedRandom([0.1])) == "pull"

    def test_heavy_wrestler_pushes(self):
        p = make_participant("a@test.com", weight=7)
        assert ai.choose_technique(p, BattleStats(), FixedRandom([0.5])) == "push"
        assert ai.choose_technique(p, BattleStats(), FixedRandom([0.1])) == "grip"

    def test_fast_wrestler_thrusts(self):
        p = make_participant("a@test.com", speed=7)
        assert ai.choose_technique(p, BattleStats(), FixedRandom([0.5])) == "tsuppari"

    def test_balanced_wrestler_follows_momentum(self):
        p = make_participant("a@test.com")
        assert ai.choose_technique(p, BattleStats(momentum=3), FixedRandom([0.5])) == "push"
        assert ai.choose_technique(p, BattleStats(), FixedRandom([0.5])) == "pull"


class TestFinish:
    def test_signature_when_valid(self):
        p = make_participant("a@test.com", signature_move="oshidashi")
        assert ai.choose_finish(p, BattleStats(throw_power=10)) == "oshidashi"

    def test_power_stats_when_signature_not_a_finish(self):
        p = make_participant("a@test.com", signature_move="kotenage")
        assert ai.choose_finish(p, BattleStats(throw_power=2)) == "yorikiri"
        assert ai.choose_finish(p, BattleStats(throw_power=2, balance=2)) == "uwatenage"
        assert ai.choose_finish(p, BattleStats(push_power=2, strike_power=3)) == "oshidashi"
        assert ai.choose_finish(p, BattleStats(push_power=2, balance=2)) == "hatakikomi"


class TestChooseForPhase:
    def test_always_valid(self):
        rng = random.Random(99)
        east = make_participant("e@test.com", signature_move="kotenage")
        west = make_participant("w@test.com", weight=8, signature_move="sukuinage")
        for _ in range(200):
            match = Match(east=east, west=west)
            for side in Side:
                match.stats[side].apply({stat: rng.randint(-3, 8) for stat in STAT_FIELDS})
            for phase in PHASE_ORDER:
                for side in Side:
                    choice = ai.choose_for_phase(phase, match, side, rng)
                    assert PHASE_TABLES[phase].is_valid(choice)
