"""
Phase Resolver - turns a pair of submitted choices into a phase outcome.

Non-competitive phases (salt, display) only apply stat effects.
Tachiai and technique roll once against the matchup table.
The finish normalizes two clamped success chances and rolls once.
"""
import enum
import logging
import random
from dataclasses import dataclass, field
from typing import Optional

from app.engine.errors import InvalidChoice
from app.engine.stats import merge_deltas
from app.engine.tables import (
    PHASE_TABLES, ANNOUNCEMENTS, NARRATIVES,
    FINISH_BASE_RATE, FINISH_STAT_MULTIPLIERS, FINISH_MOVE_STATS, FINISH_MOVE_STAT_MULTIPLIER,
    SIGNATURE_MOVE_BONUS, SIGNATURE_MOVES, BUILD_MULTIPLIERS,
    FINISH_MIN_CHANCE, FINISH_MAX_CHANCE,
)

logger = logging.getLogger(__name__)


class Side(enum.Enum):
    EAST = "east"
    WEST = "west"

    @property
    def opponent(self) -> "Side":
        return Side.WEST if self is Side.EAST else Side.EAST


@dataclass(frozen=True)
class PhaseOutcome:
    """Result of one resolved phase. Never mutated once recorded."""
    phase: str
    east_choice: str
    west_choice: str
    winner: Optional[Side] = None
    east_announcement: str = ""
    west_announcement: str = ""
    narrative: str = ""
    east_deltas: dict = field(default_factory=dict)
    west_deltas: dict = field(default_factory=dict)
    probabilities: Optional[tuple] = None  # (east, west) win chance
    roll: Optional[float] = None
    timed_out: tuple = ()  # sides whose choice was auto-assigned

    def choice_for(self, side: Side) -> str:
        return self.east_choice if side is Side.EAST else self.west_choice

    def deltas_for(self, side: Side) -> dict:
        return self.east_deltas if side is Side.EAST else self.west_deltas

    def to_dict(self) -> dict:
        return {
            "phase": self.phase,
            "east_choice": self.east_choice,
            "west_choice": self.west_choice,
            "winner": self.winner.value if self.winner else None,
            "east_announcement": self.east_announcement,
            "west_announcement": self.west_announcement,
            "narrative": self.narrative,
            "east_deltas": dict(self.east_deltas),
            "west_deltas": dict(self.west_deltas),
            "probabilities": list(self.probabilities) if self.probabilities else None,
            "roll": self.roll,
            "timed_out": [s.value for s in self.timed_out],
        }

    @classmethod
    def from_dict(cls, d: dict) -> "PhaseOutcome":
        probs = d.get("probabilities")
        return cls(
            phase=d["phase"],
            east_choice=d["east_choice"],
            west_choice=d["west_choice"],
            winner=Side(d["winner"]) if d.get("winner") else None,
            east_announcement=d.get("east_announcement", ""),
            west_announcement=d.get("west_announcement", ""),
            narrative=d.get("narrative", ""),
            east_deltas=dict(d.get("east_deltas", {})),
            west_deltas=dict(d.get("west_deltas", {})),
            probabilities=tuple(probs) if probs else None,
            roll=d.get("roll"),
            timed_out=tuple(Side(s) for s in d.get("timed_out", [])),
        )


def display_name(participant) -> str:
    name = getattr(participant, "display_name", None) if participant is not None else None
    return name or "The wrestler"


def announcement(phase: str, choice: str, participant) -> str:
    """Canned line for a choice; no randomness in text selection"""
    template = ANNOUNCEMENTS.get(phase, {}).get(choice, "{name} makes their move!")
    return template.format(name=display_name(participant))


class PhaseResolver:
    """
    Resolves phases against the balance tables.
    The random source is injected so bouts can be replayed in tests.
    """

    def __init__(self, rng: Optional[random.Random] = None):
        self.rng = rng or random.Random()

    def validate_choice(self, phase: str, choice: str):
        definition = PHASE_TABLES.get(phase)
        if definition is None or not definition.is_valid(choice):
            raise InvalidChoice(phase, choice)

    def matchup_probabilities(self, phase: str, east_choice: str, west_choice: str) -> tuple:
        return PHASE_TABLES[phase].matchup(east_choice, west_choice)

    def finish_chance(self, match, side: Side, finish_choice: str) -> float:
        """
        Independent success chance for one side's finishing move:
        base + weighted battle stats + signature bonuses + build bonus, clamped.
        """
        stats = match.stats[side]
        participant = match.participant(side)

        chance = FINISH_BASE_RATE
        for stat, multiplier in FINISH_STAT_MULTIPLIERS.items():
            chance += stats.get(stat) * multiplier

        for stat in FINISH_MOVE_STATS.get(finish_choice, ()):
            chance += stats.get(stat) * FINISH_MOVE_STAT_MULTIPLIER

        signature_id = getattr(participant, "signature_move", None)
        if signature_id and signature_id == finish_choice:
            chance += SIGNATURE_MOVE_BONUS

        # Affinity: signature pairs with the technique chosen earlier in the bout
        signature = SIGNATURE_MOVES.get(signature_id) if signature_id else None
        if signature and signature.best_with == match.technique_choice(side):
            chance += signature.affinity_bonus

        for attr, multiplier in BUILD_MULTIPLIERS.items():
            chance += (getattr(participant, attr, None) or 5) * multiplier

        return min(FINISH_MAX_CHANCE, max(FINISH_MIN_CHANCE, chance))

    def finish_probabilities(self, match, east_choice: str, west_choice: str) -> tuple:
        east = self.finish_chance(match, Side.EAST, east_choice)
        west = self.finish_chance(match, Side.WEST, west_choice)
        p_east = east / (east + west)
        return p_east, 1.0 - p_east

    def resolve_phase(self, phase: str, east_choice: str, west_choice: str, match) -> PhaseOutcome:
        self.validate_choice(phase, east_choice)
        self.validate_choice(phase, west_choice)
        definition = PHASE_TABLES[phase]

        east_deltas = dict(definition.effects.get(east_choice, {}))
        west_deltas = dict(definition.effects.get(west_choice, {}))

        winner = None
        probabilities = None
        roll = None

        if definition.has_winner:
            if phase == "finish":
                probabilities = self.finish_probabilities(match, east_choice, west_choice)
            else:
                probabilities = self.matchup_probabilities(phase, east_choice, west_choice)
            roll = self.rng.random()
            winner = Side.EAST if roll < probabilities[0] else Side.WEST

            if definition.win_bonus:
                if winner is Side.EAST:
                    east_deltas = merge_deltas(east_deltas, definition.win_bonus)
                else:
                    west_deltas = merge_deltas(west_deltas, definition.win_bonus)

        east_applied = match.stats[Side.EAST].apply(east_deltas)
        west_applied = match.stats[Side.WEST].apply(west_deltas)

        if winner is None:
            narrative = NARRATIVES[phase]
        else:
            narrative = NARRATIVES[phase].format(winner=display_name(match.participant(winner)))

        logger.debug(
            "Resolved %s: %s vs %s -> %s (p=%s, roll=%s)",
            phase, east_choice, west_choice, winner.value if winner else None, probabilities, roll,
        )

        return PhaseOutcome(
            phase=phase,
            east_choice=east_choice,
            west_choice=west_choice,
            winner=winner,
            east_announcement=announcement(phase, east_choice, match.participant(Side.EAST)),
            west_announcement=announcement(phase, west_choice, match.participant(Side.WEST)),
            narrative=narrative,
            east_deltas=east_applied,
            west_deltas=west_applied,
            probabilities=tuple(probabilities) if probabilities else None,
            roll=roll,
        )


def resolve_phase(phase: str, east_choice: str, west_choice: str, match, rng: Optional[random.Random] = None) -> PhaseOutcome:
    """Resolve one phase with a throwaway resolver"""
    return PhaseResolver(rng).resolve_phase(phase, east_choice, west_choice, match)
