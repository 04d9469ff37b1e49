"""
Per-side battle stat accumulator.
Zeroed at match start, mutated only by phase resolution.
"""
from dataclasses import dataclass, fields

from app.engine.tables import STAT_FIELDS


@dataclass
class BattleStats:
    spirit: int = 0
    focus: int = 0
    intimidation: int = 0
    crowd_support: int = 0
    momentum: int = 0
    positioning: int = 0
    throw_power: int = 0
    strike_power: int = 0
    push_power: int = 0
    balance: int = 0

    def apply(self, deltas: dict) -> dict:
        """Add each delta to its stat and return what was applied"""
        applied = {}
        for stat, value in deltas.items():
            if stat not in STAT_FIELDS:
                raise KeyError(f"Unknown battle stat: {stat}")
            setattr(self, stat, getattr(self, stat) + value)
            applied[stat] = applied.get(stat, 0) + value
        return applied

    def get(self, stat: str) -> int:
        return getattr(self, stat)

    @property
    def total(self) -> int:
        return sum(getattr(self, f.name) for f in fields(self))

    @property
    def confidence(self) -> int:
        """Spirit plus focus, used when sizing up the opponent at the tachiai"""
        return self.spirit + self.focus

    def to_dict(self) -> dict:
        return {f.name: getattr(self, f.name) for f in fields(self)}

    @classmethod
    def from_dict(cls, d: dict) -> "BattleStats":
        return cls(**{name: int(d.get(name, 0)) for name in STAT_FIELDS})


def merge_deltas(*parts: dict) -> dict:
    """Sum several stat-delta dicts into one"""
    merged = {}
    for part in parts:
        for stat, value in part.items():
            merged[stat] = merged.get(stat, 0) + value
    return merged
