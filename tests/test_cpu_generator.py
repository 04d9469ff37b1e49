"""
Tests for CPU field generation.
"""
import random

import pytest

from app.generators.cpu_generator import CpuGenerator, ROSTER
from app.engine.tables import SIGNATURE_MOVES


class TestGenerateBuild:
    @pytest.mark.parametrize("style", ["power", "technical", "speed", None])
    def test_fixed_total(self, style):
        assert sum(CpuGenerator.generate_build(style).values()) == 20

    def test_style_shifts(self):
        assert CpuGenerator.generate_build("power")["weight"] == 7
        assert CpuGenerator.generate_build("technical")["technique"] == 7
        assert CpuGenerator.generate_build("speed")["speed"] == 7


class TestCreateCpu:
    def test_roster_wrestler(self):
        cpu = CpuGenerator.create_cpu_participant(0, set(), random.Random(1))
        assert cpu.is_cpu
        assert cpu.wrestler_id == ROSTER[0]["id"]
        assert cpu.display_name == ROSTER[0]["name"]
        assert cpu.signature_move == ROSTER[0]["signature_move"]
        assert cpu.email.startswith("cpu_0_")
        assert cpu.email.endswith("@cpu.local")

    def test_skips_used_wrestlers(self):
        cpu = CpuGenerator.create_cpu_participant(0, {1, 2}, random.Random(1))
        assert cpu.wrestler_id == 3

    def test_field_has_unique_wrestlers(self):
        field = CpuGenerator.generate_field(7, {1}, random.Random(1))
        ids = [c.wrestler_id for c in field]
        assert len(field) == 7
        assert 1 not in ids
        assert len(set(ids)) == 7

    def test_invented_rikishi_when_roster_runs_out(self):
        field = CpuGenerator.generate_field(len(ROSTER) + 2, set(), random.Random(1))
        invented = field[len(ROSTER):]

        assert len({c.email for c in field}) == len(field)
        for cpu in invented:
            assert cpu.wrestler_id is None
            assert cpu.display_name
            assert cpu.signature_move in SIGNATURE_MOVES
            assert cpu.height + cpu.weight + cpu.speed + cpu.technique == 20
