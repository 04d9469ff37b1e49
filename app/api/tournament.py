"""
Tournament API endpoints - registration, basho lifecycle and the banzuke
"""
import logging
from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session
from typing import Dict, Optional

from app.config import settings
from app.database import get_db
from app.engine.bout_engine import BoutEngine, Match
from app.engine.errors import (
    BoutError, BoutInProgress, InvalidChoice, InvalidBuild, NotInMatch, PhaseAlreadyResolved, NoActiveMatch
)
from app.engine.resolver import PhaseOutcome, Side
from app.engine.tables import PHASE_ORDER, PHASE_TABLES, SIGNATURE_MOVES
from app.engine.tournament_engine import TournamentEngine, get_or_create_tournament
from app.api.schemas import (
    RegisterRequest, ParticipantResponse, ParticipantBrief, StandingResponse,
    TournamentResponse, StandingsResponse, PhaseOutcomeResponse, MatchResponse,
    PhaseInfoResponse, PhaseChoiceInfo, SignatureMoveResponse, PhasesResponse,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/tournament", tags=["Tournament"])

# One bout engine per tournament so every request shares its lock and RNG.
# The match itself is persisted on the tournament row.
bout_engines: Dict[int, BoutEngine] = {}

ERROR_STATUS = {
    InvalidChoice: 400,
    InvalidBuild: 400,
    NotInMatch: 403,
    PhaseAlreadyResolved: 409,
    NoActiveMatch: 404,
    BoutInProgress: 409,
}


def bout_error_to_http(error: BoutError) -> HTTPException:
    status_code = ERROR_STATUS.get(type(error), 400)
    return HTTPException(status_code=status_code, detail=str(error))


def get_tournament_engine(db: Session) -> TournamentEngine:
    tournament = get_or_create_tournament(db)
    if tournament.id not in bout_engines:
        bout_engines[tournament.id] = BoutEngine()
    return TournamentEngine(db, tournament, bout_engine=bout_engines[tournament.id])


def outcome_to_response(outcome: Optional[PhaseOutcome]) -> Optional[PhaseOutcomeResponse]:
    if outcome is None:
        return None
    return PhaseOutcomeResponse(**outcome.to_dict())


def match_to_response(match: Match) -> MatchResponse:
    return MatchResponse(
        id=match.id,
        status=match.status.value,
        current_phase=match.current_phase,
        east=ParticipantBrief.model_validate(match.east),
        west=ParticipantBrief.model_validate(match.west),
        choices_made={side.value: match.choices[side] is not None for side in Side},
        stats={side.value: match.stats[side].to_dict() for side in Side},
        phase_results=[outcome_to_response(o) for o in match.phase_results.values()],
        phase_wins={side.value: match.phase_wins(side) for side in Side},
        winner=match.winner.value if match.winner else None,
        winning_move=match.winning_move,
        phase_started_at=match.phase_started_at,
        timed_out={side.value: match.timed_out[side] for side in Side},
        is_cpu_match=match.is_cpu_match,
    )


def tournament_to_response(engine: TournamentEngine) -> TournamentResponse:
    tournament = engine.tournament
    match = engine.current_match
    return TournamentResponse(
        id=tournament.id,
        name=tournament.name,
        status=tournament.status.value,
        wins_needed=tournament.wins_needed,
        tournament_size=tournament.tournament_size,
        champion=ParticipantBrief.model_validate(tournament.champion) if tournament.champion else None,
        current_match=match_to_response(match) if match else None,
        bouts_fought=len(engine.bout_history()),
    )


@router.post("/register", response_model=ParticipantResponse)
def register(request: RegisterRequest, db: Session = Depends(get_db)):
    """Register a human participant with a validated wrestler build"""
    engine = get_tournament_engine(db)
    try:
        participant = engine.register_participant(
            email=request.email,
            player_name=request.player_name,
            stats=request.stats.model_dump(),
            signature_move=request.signature_move,
            display_name=request.display_name,
            wrestler_id=request.wrestler_id,
        )
    except BoutError as e:
        raise bout_error_to_http(e)
    return participant


@router.post("/start", response_model=TournamentResponse)
def start_tournament(db: Session = Depends(get_db)):
    """
    Start a fresh basho.
    Human records are zeroed, the field is filled with CPU rikishi
    and the first bout is paired.
    """
    engine = get_tournament_engine(db)
    engine.start_tournament()
    return tournament_to_response(engine)


@router.post("/next", response_model=TournamentResponse)
def next_match(db: Session = Depends(get_db)):
    """Pair the next bout (CPU-only bouts are fought immediately)"""
    engine = get_tournament_engine(db)
    try:
        engine.pair_if_idle()
    except BoutError as e:
        raise bout_error_to_http(e)
    return tournament_to_response(engine)


@router.post("/reset", response_model=TournamentResponse)
def reset_tournament(db: Session = Depends(get_db)):
    """Back to registration, CPU rikishi removed"""
    engine = get_tournament_engine(db)
    engine.reset()
    return tournament_to_response(engine)


@router.get("/standings", response_model=StandingsResponse)
def get_standings(db: Session = Depends(get_db)):
    """Leaderboard sorted by wins, then fewest losses"""
    engine = get_tournament_engine(db)
    standings = [
        StandingResponse(
            position=s.position,
            participant=ParticipantBrief.model_validate(s.participant),
            wins=s.wins,
            losses=s.losses,
            tournament_wins=s.tournament_wins,
            is_champion=s.is_champion,
        )
        for s in engine.standings()
    ]
    return StandingsResponse(tournament=tournament_to_response(engine), standings=standings)


@router.get("/phases", response_model=PhasesResponse)
def get_phases():
    """Phase definitions, choices and signature moves for building the UI"""
    phases = []
    for name in PHASE_ORDER:
        definition = PHASE_TABLES[name]
        phases.append(PhaseInfoResponse(
            name=definition.name,
            title=definition.title,
            description=definition.description,
            has_winner=definition.has_winner,
            choices=[PhaseChoiceInfo(id=c, label=definition.labels[c]) for c in definition.choices],
        ))
    moves = [
        SignatureMoveResponse(
            id=m.id,
            name=m.name,
            japanese=m.japanese,
            description=m.description,
            best_with=m.best_with,
            affinity_bonus=m.affinity_bonus,
        )
        for m in SIGNATURE_MOVES.values()
    ]
    return PhasesResponse(phases=phases, signature_moves=moves, move_timeout_ms=settings.MOVE_TIMEOUT_MS)
