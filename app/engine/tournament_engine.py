"""
Tournament Engine - registration, pairing, win/loss records and the Emperor's Cup
"""
import json
import logging
import random
from dataclasses import dataclass
from typing import Optional
from sqlalchemy.orm import Session

from app.config import settings
from app.models.participant import Participant
from app.models.tournament import Tournament, TournamentStatus
from app.models.bout import BoutRecord
from app.engine.bout_engine import BoutEngine, Match, SubmitResult, TimeoutResult
from app.engine.errors import BoutInProgress, InvalidBuild, NoActiveMatch
from app.engine.resolver import Side
from app.generators.cpu_generator import CpuGenerator
from app.validators.build_validator import BuildValidator

logger = logging.getLogger(__name__)


@dataclass
class Standing:
    """Participant row in the banzuke (leaderboard)"""
    position: int
    participant: Participant
    wins: int
    losses: int
    tournament_wins: int
    is_champion: bool


@dataclass
class BoutResult:
    """Result of a completed bout after the records were updated"""
    record: BoutRecord
    match: Match
    winner: Participant
    loser: Participant
    champion: Optional[Participant] = None


def get_or_create_tournament(session: Session) -> Tournament:
    """Latest tournament, or a fresh one built from the configured rules"""
    tournament = session.query(Tournament).order_by(Tournament.id.desc()).first()
    if tournament is None:
        tournament = Tournament(
            status=TournamentStatus.REGISTRATION,
            wins_needed=settings.WINS_NEEDED_FOR_CUP,
            tournament_size=settings.TOURNAMENT_SIZE,
        )
        session.add(tournament)
        session.commit()
    return tournament


class TournamentEngine:
    """
    Manages one basho: who fights next, what each bout does to the records,
    and when somebody lifts the cup.

    The active match lives in the tournament row as a JSON snapshot, so a new
    engine built for the next request (or after a restart) picks it up again.
    """

    def __init__(
        self,
        session: Session,
        tournament: Tournament,
        bout_engine: Optional[BoutEngine] = None,
        rng: Optional[random.Random] = None,
        move_timeout_ms: Optional[int] = None,
    ):
        self.session = session
        self.tournament = tournament
        self.bout_engine = bout_engine or BoutEngine(rng=rng)
        self.rng = rng or self.bout_engine.rng
        self.move_timeout_ms = move_timeout_ms if move_timeout_ms is not None else settings.MOVE_TIMEOUT_MS
        self.last_result: Optional[BoutResult] = None
        self._current_match: Optional[Match] = None
        self._snapshot: Optional[str] = None
        self._loaded = False

    # ---------------- participants -----------------
    def participants(self) -> list[Participant]:
        return self.session.query(Participant).order_by(Participant.id).all()

    def get_participant(self, email: str) -> Optional[Participant]:
        return self.session.query(Participant).filter_by(email=email).first()

    def register_participant(
        self,
        email: str,
        player_name: str,
        stats: dict,
        signature_move: str = "yorikiri",
        display_name: Optional[str] = None,
        wrestler_id: Optional[int] = None,
        mode: Optional[str] = None,
    ) -> Participant:
        """Validate the build and create a human participant"""
        if not email or not player_name:
            raise InvalidBuild(["Missing required fields: email and player_name"])
        if self.get_participant(email) is not None:
            raise InvalidBuild([f"Email already registered: {email}"])

        validation = BuildValidator.validate(stats, signature_move, mode or settings.BUILD_MODE)
        if not validation["valid"]:
            raise InvalidBuild(validation["errors"])

        participant = Participant(
            email=email,
            player_name=player_name,
            display_name=display_name or player_name,
            wrestler_id=wrestler_id,
            height=stats["height"],
            weight=stats["weight"],
            speed=stats["speed"],
            technique=stats["technique"],
            signature_move=signature_move,
            is_cpu=False,
            wins=0,
            losses=0,
            tournament_wins=0,
        )
        self.session.add(participant)
        self.session.commit()
        logger.info("Registered: %s (%s)", email, participant.display_name)
        return participant

    # ---------------- tournament lifecycle -----------------
    def start_tournament(self) -> Optional[Match]:
        """
        Fresh basho: human records zeroed, old CPUs replaced by a new field
        drawn from the roster, first bout paired.
        """
        with self.bout_engine.lock:
            self.refresh()
            humans = self._clear_records()

            cpu_needed = max(0, self.tournament.tournament_size - len(humans))
            used_ids = {h.wrestler_id for h in humans if h.wrestler_id is not None}
            for cpu in CpuGenerator.generate_field(cpu_needed, used_ids, self.rng):
                self.session.add(cpu)

            self.tournament.status = TournamentStatus.IN_PROGRESS
            self.session.commit()
            logger.info("Tournament: %d humans + %d CPU", len(humans), cpu_needed)

            return self.create_next_match()

    def reset(self) -> None:
        """Back to registration: CPUs removed, humans zeroed, active match dropped"""
        with self.bout_engine.lock:
            self.refresh()
            self._clear_records()
            self.tournament.status = TournamentStatus.REGISTRATION
            self.session.commit()
            logger.info("Tournament '%s' reset", self.tournament.name)

    def _clear_records(self) -> list[Participant]:
        self.tournament.champion_id = None
        self._set_current_match(None)
        self.session.query(BoutRecord).filter_by(tournament_id=self.tournament.id).delete()

        humans = []
        for participant in self.participants():
            if participant.is_cpu:
                self.session.delete(participant)
            else:
                participant.wins = 0
                participant.losses = 0
                humans.append(participant)
        self.session.flush()
        return humans

    # ---------------- pairing -----------------
    def create_next_match(self) -> Optional[Match]:
        """
        Pair the next bout. Human vs human beats human vs CPU beats CPU vs CPU.
        CPU-only bouts are fought and recorded on the spot.
        Returns None once a champion is crowned or fewer than two can fight.
        """
        with self.bout_engine.lock:
            self.refresh()
            if self.tournament.status != TournamentStatus.IN_PROGRESS:
                return None

            current = self.current_match
            busy = set()
            if current is not None and current.is_active:
                busy = {current.east.id, current.west.id}

            available = [
                p for p in self.participants()
                if p.id not in busy and p.wins < self.tournament.wins_needed
            ]
            if len(available) < 2:
                return None

            humans = [p for p in available if not p.is_cpu]
            cpus = [p for p in available if p.is_cpu]

            if len(humans) >= 2:
                east, west = self.rng.sample(humans, 2)
            elif len(humans) == 1:
                east = humans[0]
                west = self.rng.choice(cpus)
            else:
                east, west = self.rng.sample(cpus, 2)

            if current is not None and current.is_active:
                logger.warning("Abandoning unfinished match %s", current.id)

            match = self.bout_engine.create_match(east, west)
            if match.is_cpu_match:
                self.bout_engine.resolve_cpu_match(match)
                self.record_result(match)

            self._set_current_match(match)
            self.session.commit()
            return match

    def pair_if_idle(self) -> Optional[Match]:
        """Pair the next bout unless one is still being fought"""
        with self.bout_engine.lock:
            self.refresh()
            if self.active_match is not None:
                raise BoutInProgress(self.active_match.id)
            return self.create_next_match()

    # ---------------- results -----------------
    def record_result(self, match: Match) -> BoutResult:
        """Winner +1 win, loser +1 loss, bout stored; may crown the champion"""
        if not match.is_completed:
            raise NoActiveMatch(f"Match {match.id} has not finished")

        winner = match.winner_participant
        loser = match.loser_participant

        existing = self.session.get(BoutRecord, match.id)
        if existing is not None:
            return BoutResult(record=existing, match=match, winner=winner, loser=loser)

        winner.wins += 1
        loser.losses += 1

        bout_number = self.session.query(BoutRecord).filter_by(tournament_id=self.tournament.id).count() + 1
        record = BoutRecord(
            id=match.id,
            tournament_id=self.tournament.id,
            bout_number=bout_number,
            east_id=match.east.id,
            west_id=match.west.id,
            winner_id=winner.id,
            winning_move=match.winning_move,
            east_phase_wins=match.phase_wins(Side.EAST),
            west_phase_wins=match.phase_wins(Side.WEST),
            is_cpu_bout=match.is_cpu_match,
            phase_results=json.dumps({phase: o.to_dict() for phase, o in match.phase_results.items()}),
            final_stats=json.dumps({side.value: match.stats[side].to_dict() for side in Side}),
        )
        self.session.add(record)

        champion = None
        if winner.wins >= self.tournament.wins_needed and self.tournament.status == TournamentStatus.IN_PROGRESS:
            champion = winner
            winner.tournament_wins += 1
            self.tournament.champion_id = winner.id
            self.tournament.status = TournamentStatus.COMPLETED
            logger.info("CHAMPION: %s takes the Emperor's Cup with %d wins", winner.display_name, winner.wins)

        self.session.commit()
        logger.info(
            "Bout #%d: %s def. %s by %s",
            bout_number, winner.display_name, loser.display_name, match.winning_move,
        )

        self.last_result = BoutResult(record=record, match=match, winner=winner, loser=loser, champion=champion)
        return self.last_result

    # ---------------- active match routing -----------------
    def submit_for_participant(self, email: str, choice: str, phase: Optional[str] = None,
                               now_ms: Optional[int] = None) -> SubmitResult:
        """Route a participant's choice to the current match"""
        with self.bout_engine.lock:
            self.refresh()
            match = self.current_match
            if match is None:
                raise NoActiveMatch()
            result = self.bout_engine.submit_choice(match, email, choice, phase=phase, now_ms=now_ms)
            self._after_progress(match)
            return result

    def check_timeout(self, now_ms: Optional[int] = None) -> TimeoutResult:
        """
        Heartbeat: auto-resolve the current phase if its timer ran out.
        A finished bout is reported as not expired so clients can show the result.
        """
        with self.bout_engine.lock:
            self.refresh()
            match = self.current_match
            if match is None:
                raise NoActiveMatch()
            if not match.is_active:
                return TimeoutResult(expired=False, match=match)
            result = self.bout_engine.check_timeout(match, now_ms=now_ms, budget_ms=self.move_timeout_ms)
            if result.expired:
                self._after_progress(match)
            return result

    def autoplay_active_match(self) -> Match:
        """Let the AI fight the rest of the current bout for both sides"""
        with self.bout_engine.lock:
            self.refresh()
            match = self.active_match
            if match is None:
                raise NoActiveMatch()
            self.bout_engine.resolve_cpu_match(match)
            self._after_progress(match)
            return match

    def _after_progress(self, match: Match):
        if match.is_completed:
            self.record_result(match)
        self._set_current_match(match)
        self.session.commit()

    # ---------------- queries -----------------
    def standings(self) -> list[Standing]:
        """Sorted by wins (desc), then losses (asc)"""
        ordered = sorted(self.participants(), key=lambda p: (-p.wins, p.losses, p.display_name))
        return [
            Standing(
                position=pos,
                participant=p,
                wins=p.wins,
                losses=p.losses,
                tournament_wins=p.tournament_wins,
                is_champion=p.id == self.tournament.champion_id,
            )
            for pos, p in enumerate(ordered, 1)
        ]

    def bout_history(self) -> list[BoutRecord]:
        return (
            self.session.query(BoutRecord)
            .filter_by(tournament_id=self.tournament.id)
            .order_by(BoutRecord.bout_number)
            .all()
        )

    # ---------------- snapshot -----------------
    def refresh(self) -> None:
        """
        Re-read the tournament and participants from the database.
        Another session may have moved the bout on since this engine loaded it;
        the in-memory match is only rebuilt when the stored snapshot changed.
        Call with the bout engine lock held.
        """
        self.session.expire_all()
        if self._loaded and self.tournament.active_match_state != self._snapshot:
            self._loaded = False

    @property
    def current_match(self) -> Optional[Match]:
        """Most recent match (active or just finished), restored from the snapshot"""
        if not self._loaded:
            self._snapshot = self.tournament.active_match_state
            self._current_match = self._load_match()
            self._loaded = True
        return self._current_match

    @property
    def active_match(self) -> Optional[Match]:
        match = self.current_match
        return match if match is not None and match.is_active else None

    def _load_match(self) -> Optional[Match]:
        if not self._snapshot:
            return None
        return Match.from_dict(json.loads(self._snapshot), self.get_participant)

    def _set_current_match(self, match: Optional[Match]):
        self._current_match = match
        self._snapshot = json.dumps(match.to_dict()) if match else None
        self._loaded = True
        self.tournament.current_match_id = match.id if match else None
        self.tournament.active_match_state = self._snapshot
