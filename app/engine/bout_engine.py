"""
Bout Engine - the five-phase match state machine.

A match is either active (with a pointer into PHASE_ORDER) or completed.
Each phase is a two-way join: east and west submit in any order and the
phase resolves once both choices are present, or when the move timer runs
out and the missing sides get a random valid choice.
"""
import enum
import logging
import random
import threading
import time
import uuid
from dataclasses import dataclass, field, replace
from typing import Any, Callable, Optional

from app.engine import ai
from app.engine.errors import InvalidChoice, NotInMatch, PhaseAlreadyResolved, NoActiveMatch
from app.engine.resolver import PhaseResolver, PhaseOutcome, Side, display_name
from app.engine.stats import BattleStats
from app.engine.tables import PHASE_ORDER, PHASE_TABLES, WINNER_PHASES, MOVE_SELECTION_TIMEOUT_MS

logger = logging.getLogger(__name__)


def now_millis() -> int:
    return int(time.time() * 1000)


def participant_key(participant) -> Optional[str]:
    return getattr(participant, "email", None)


class MatchStatus(enum.Enum):
    ACTIVE = "active"
    COMPLETED = "completed"


@dataclass
class Match:
    """State of one bout. Owns its stats and phase results."""
    east: Any
    west: Any
    id: str = field(default_factory=lambda: str(uuid.uuid4()))
    status: MatchStatus = MatchStatus.ACTIVE
    current_phase: str = PHASE_ORDER[0]
    choices: dict = field(default_factory=lambda: {Side.EAST: None, Side.WEST: None})
    stats: dict = field(default_factory=lambda: {Side.EAST: BattleStats(), Side.WEST: BattleStats()})
    phase_results: dict = field(default_factory=dict)  # phase -> PhaseOutcome, in resolution order
    winner: Optional[Side] = None
    winning_move: Optional[str] = None
    phase_started_at: int = 0
    timed_out: dict = field(default_factory=lambda: {Side.EAST: False, Side.WEST: False})
    phase_timed_out: bool = False
    created_at: int = 0

    @property
    def is_active(self) -> bool:
        return self.status == MatchStatus.ACTIVE

    @property
    def is_completed(self) -> bool:
        return self.status == MatchStatus.COMPLETED

    @property
    def is_cpu_match(self) -> bool:
        return self.is_cpu(Side.EAST) and self.is_cpu(Side.WEST)

    def participant(self, side: Side):
        return self.east if side is Side.EAST else self.west

    def is_cpu(self, side: Side) -> bool:
        return bool(getattr(self.participant(side), "is_cpu", False))

    def side_of(self, who) -> Side:
        """
        Resolve a side from a Side, "east"/"west", a participant object
        or a participant key. Raises NotInMatch otherwise.
        """
        if isinstance(who, Side):
            return who
        if isinstance(who, str):
            if who in ("east", "west"):
                return Side(who)
            for side in Side:
                if participant_key(self.participant(side)) == who:
                    return side
        else:
            for side in Side:
                if self.participant(side) is who:
                    return side
        raise NotInMatch(str(getattr(who, "email", who)), self.id)

    def technique_choice(self, side: Side) -> Optional[str]:
        outcome = self.phase_results.get("technique")
        return outcome.choice_for(side) if outcome else None

    def phase_wins(self, side: Side) -> int:
        return sum(
            1 for phase in WINNER_PHASES
            if phase in self.phase_results and self.phase_results[phase].winner is side
        )

    @property
    def winner_participant(self):
        return self.participant(self.winner) if self.winner else None

    @property
    def loser_participant(self):
        return self.participant(self.winner.opponent) if self.winner else None

    def to_dict(self) -> dict:
        """Opaque snapshot used to resume an interrupted bout"""
        return {
            "id": self.id,
            "status": self.status.value,
            "east": participant_key(self.east),
            "west": participant_key(self.west),
            "current_phase": self.current_phase,
            "choices": {side.value: self.choices[side] for side in Side},
            "stats": {side.value: self.stats[side].to_dict() for side in Side},
            "phase_results": {phase: outcome.to_dict() for phase, outcome in self.phase_results.items()},
            "winner": self.winner.value if self.winner else None,
            "winning_move": self.winning_move,
            "phase_started_at": self.phase_started_at,
            "timed_out": {side.value: self.timed_out[side] for side in Side},
            "phase_timed_out": self.phase_timed_out,
            "created_at": self.created_at,
        }

    @classmethod
    def from_dict(cls, d: dict, lookup: Callable[[str], Any]) -> "Match":
        """Rebuild a match; lookup maps participant keys back to records"""
        return cls(
            east=lookup(d["east"]),
            west=lookup(d["west"]),
            id=d["id"],
            status=MatchStatus(d["status"]),
            current_phase=d["current_phase"],
            choices={side: d["choices"].get(side.value) for side in Side},
            stats={side: BattleStats.from_dict(d["stats"][side.value]) for side in Side},
            phase_results={phase: PhaseOutcome.from_dict(o) for phase, o in d["phase_results"].items()},
            winner=Side(d["winner"]) if d.get("winner") else None,
            winning_move=d.get("winning_move"),
            phase_started_at=d.get("phase_started_at", 0),
            timed_out={side: bool(d.get("timed_out", {}).get(side.value)) for side in Side},
            phase_timed_out=d.get("phase_timed_out", False),
            created_at=d.get("created_at", 0),
        )


@dataclass
class SubmitResult:
    resolved: bool
    match: Match
    outcome: Optional[PhaseOutcome] = None


@dataclass
class TimeoutResult:
    expired: bool
    match: Match
    outcome: Optional[PhaseOutcome] = None


class BoutEngine:
    """
    Drives matches through the phase order.

    Submissions and timeout checks share one lock so a phase is resolved
    exactly once even when a late choice races the timer.
    """

    def __init__(self, rng: Optional[random.Random] = None, clock: Optional[Callable[[], int]] = None):
        self.rng = rng or random.Random()
        self.resolver = PhaseResolver(self.rng)
        self.clock = clock or now_millis
        self._lock = threading.RLock()
        self.phase_resolved_hooks: list = []
        self.match_completed_hooks: list = []

    @property
    def lock(self) -> threading.RLock:
        """Held by callers that load, mutate and persist a match as one step"""
        return self._lock

    # ---------------- hooks -----------------
    def on_phase_resolved(self, fn):
        """Register fn(match, outcome); usable as a decorator"""
        self.phase_resolved_hooks.append(fn)
        return fn

    def on_match_completed(self, fn):
        """Register fn(match); usable as a decorator"""
        self.match_completed_hooks.append(fn)
        return fn

    # ---------------- lifecycle -----------------
    def create_match(self, east, west, now_ms: Optional[int] = None) -> Match:
        now_ms = self.clock() if now_ms is None else now_ms
        match = Match(east=east, west=west, phase_started_at=now_ms, created_at=now_ms)
        logger.info("Match %s: %s vs %s", match.id, display_name(east), display_name(west))
        return match

    def submit_choice(self, match: Match, side, choice: str, phase: Optional[str] = None,
                      now_ms: Optional[int] = None) -> SubmitResult:
        """
        Store one side's choice for the current phase.
        A CPU opponent answers immediately; the phase resolves when both are in.
        """
        with self._lock:
            side = match.side_of(side)

            if phase is not None and phase in match.phase_results:
                raise PhaseAlreadyResolved(phase)
            if not match.is_active:
                raise NoActiveMatch(f"Match {match.id} is already completed")

            current = match.current_phase
            if phase is not None and phase != current:
                raise InvalidChoice(phase, choice)
            if match.choices[side] is not None:
                raise PhaseAlreadyResolved(current, f"{side.value} already chose")
            self.resolver.validate_choice(current, choice)

            match.choices[side] = choice
            logger.debug("%s chose %s for %s", side.value, choice, current)

            opponent = side.opponent
            if match.is_cpu(opponent) and match.choices[opponent] is None:
                match.choices[opponent] = ai.choose_for_phase(current, match, opponent, self.rng)
                logger.debug("CPU %s chose %s for %s", opponent.value, match.choices[opponent], current)

            if match.choices[Side.EAST] is None or match.choices[Side.WEST] is None:
                return SubmitResult(resolved=False, match=match)

            outcome = self._resolve_current_phase(match, now_ms)
            return SubmitResult(resolved=True, match=match, outcome=outcome)

    def check_timeout(self, match: Match, now_ms: Optional[int] = None,
                      budget_ms: int = MOVE_SELECTION_TIMEOUT_MS) -> TimeoutResult:
        """
        Auto-resolve the current phase once the move timer has run out.
        Missing sides get a uniformly random valid choice.
        """
        now_ms = self.clock() if now_ms is None else now_ms
        with self._lock:
            if not match.is_active or match.phase_timed_out:
                return TimeoutResult(expired=False, match=match)
            if now_ms - match.phase_started_at < budget_ms:
                return TimeoutResult(expired=False, match=match)
            if match.choices[Side.EAST] is not None and match.choices[Side.WEST] is not None:
                return TimeoutResult(expired=False, match=match)

            match.phase_timed_out = True
            phase = match.current_phase
            choices = PHASE_TABLES[phase].choices
            auto_sides = []
            for side in Side:
                if match.choices[side] is None:
                    match.choices[side] = self.rng.choice(choices)
                    match.timed_out[side] = True
                    auto_sides.append(side)
                    logger.info(
                        "TIMEOUT: %s (%s) auto-chose %s for %s",
                        side.value, display_name(match.participant(side)), match.choices[side], phase,
                    )

            outcome = self._resolve_current_phase(match, now_ms, timed_out=tuple(auto_sides))
            return TimeoutResult(expired=True, match=match, outcome=outcome)

    def resolve_cpu_match(self, match: Match) -> Match:
        """Play every remaining phase with AI choices for both sides"""
        with self._lock:
            while match.is_active:
                phase = match.current_phase
                for side in Side:
                    if match.choices[side] is None:
                        match.choices[side] = ai.choose_for_phase(phase, match, side, self.rng)
                self._resolve_current_phase(match, None)
        return match

    def determine_winner(self, match: Match) -> Side:
        """
        Most phase wins takes the bout; ties go to the larger accumulated
        stat total, then to a coin flip.
        """
        east_wins = match.phase_wins(Side.EAST)
        west_wins = match.phase_wins(Side.WEST)
        if east_wins != west_wins:
            return Side.EAST if east_wins > west_wins else Side.WEST

        east_total = match.stats[Side.EAST].total
        west_total = match.stats[Side.WEST].total
        if east_total != west_total:
            return Side.EAST if east_total > west_total else Side.WEST

        return Side.EAST if self.rng.random() < 0.5 else Side.WEST

    # ---------------- internals -----------------
    def _resolve_current_phase(self, match: Match, now_ms: Optional[int], timed_out: tuple = ()) -> PhaseOutcome:
        phase = match.current_phase
        outcome = self.resolver.resolve_phase(
            phase, match.choices[Side.EAST], match.choices[Side.WEST], match
        )
        if timed_out:
            outcome = replace(outcome, timed_out=timed_out)

        match.phase_results[phase] = outcome
        match.choices = {Side.EAST: None, Side.WEST: None}

        index = PHASE_ORDER.index(phase)
        if index < len(PHASE_ORDER) - 1:
            match.current_phase = PHASE_ORDER[index + 1]
            match.phase_started_at = self.clock() if now_ms is None else now_ms
            match.timed_out = {Side.EAST: False, Side.WEST: False}
            match.phase_timed_out = False
        else:
            match.status = MatchStatus.COMPLETED
            match.winner = self.determine_winner(match)
            match.winning_move = match.phase_results["finish"].choice_for(match.winner)
            logger.info(
                "Match %s won by %s (%s) with %s",
                match.id, match.winner.value, display_name(match.winner_participant), match.winning_move,
            )

        for hook in self.phase_resolved_hooks:
            hook(match, outcome)
        if match.is_completed:
            for hook in self.match_completed_hooks:
                hook(match)

        return outcome

