"""
Tests for wrestler build validation.
"""
from app.validators.build_validator import BuildValidator


def build(height=5, weight=5, speed=5, technique=5):
    return {"height": height, "weight": weight, "speed": speed, "technique": technique}


class TestFreeMode:
    def test_base_build_is_valid(self):
        result = BuildValidator.validate(build(), "yorikiri")
        assert result["valid"]
        assert result["total"] == 20
        assert result["points_remaining"] == 10

    def test_spend_full_budget(self):
        result = BuildValidator.validate(build(height=10, weight=10), "oshidashi")
        assert result["valid"]
        assert result["points_remaining"] == 0

    def test_over_budget(self):
        result = BuildValidator.validate(build(height=10, weight=10, speed=6), "oshidashi")
        assert not result["valid"]
        assert any("only 10 available" in e for e in result["errors"])

    def test_lowering_a_stat_frees_points(self):
        result = BuildValidator.validate(build(height=1, weight=10, speed=10, technique=9), "yorikiri")
        assert result["valid"]

    def test_out_of_range(self):
        result = BuildValidator.validate(build(height=0), "yorikiri")
        assert not result["valid"]
        assert "height must be between 1 and 10, got 0" in result["errors"]

    def test_missing_stat(self):
        stats = build()
        del stats["speed"]
        result = BuildValidator.validate(stats, "yorikiri")
        assert "Missing stat: speed" in result["errors"]


class TestFixedMode:
    def test_exact_total(self):
        assert BuildValidator.validate(build(weight=7, technique=3), "yorikiri", mode="fixed")["valid"]

    def test_wrong_total(self):
        result = BuildValidator.validate(build(weight=6), "yorikiri", mode="fixed")
        assert not result["valid"]
        assert result["points_remaining"] == -1


class TestSignatureMove:
    def test_any_signature_move_accepted(self):
        assert BuildValidator.validate(build(), "kotenage")["valid"]

    def test_unknown_move(self):
        result = BuildValidator.validate(build(), "dropkick")
        assert "Unknown signature move: dropkick" in result["errors"]

    def test_unknown_mode(self):
        assert not BuildValidator.validate(build(), "yorikiri", mode="random")["valid"]
