"""
Bout API endpoints - the current match, move submission and the move timer
"""
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.database import get_db
from app.engine.errors import BoutError, NoActiveMatch
from app.engine.tournament_engine import TournamentEngine
from app.api.schemas import MatchResponse, ChoiceRequest, ChoiceResponse, HeartbeatResponse, ParticipantBrief
from app.api.tournament import get_tournament_engine, bout_error_to_http, match_to_response, outcome_to_response

router = APIRouter(prefix="/bout", tags=["Bout"])


def _champion_brief(engine: TournamentEngine):
    champion = engine.tournament.champion
    if champion is None:
        return None
    return ParticipantBrief.model_validate(champion)


@router.get("/current", response_model=MatchResponse)
def get_current_bout(db: Session = Depends(get_db)):
    """Current bout, or the one that just finished"""
    engine = get_tournament_engine(db)
    match = engine.current_match
    if match is None:
        raise bout_error_to_http(NoActiveMatch())
    return match_to_response(match)


@router.post("/choice", response_model=ChoiceResponse)
def submit_choice(request: ChoiceRequest, db: Session = Depends(get_db)):
    """
    Submit a move for the current phase.
    Against a CPU the phase resolves immediately; otherwise the response
    says we are waiting for the opponent.
    """
    engine = get_tournament_engine(db)
    try:
        result = engine.submit_for_participant(request.email, request.choice, phase=request.phase)
    except BoutError as e:
        raise bout_error_to_http(e)

    return ChoiceResponse(
        resolved=result.resolved,
        waiting=not result.resolved,
        outcome=outcome_to_response(result.outcome),
        match=match_to_response(result.match),
        champion=_champion_brief(engine),
    )


@router.post("/heartbeat", response_model=HeartbeatResponse)
def heartbeat(db: Session = Depends(get_db)):
    """Polled by clients; resolves the phase with random moves once the timer runs out"""
    engine = get_tournament_engine(db)
    try:
        result = engine.check_timeout()
    except BoutError as e:
        raise bout_error_to_http(e)

    return HeartbeatResponse(
        expired=result.expired,
        outcome=outcome_to_response(result.outcome),
        match=match_to_response(result.match),
        champion=_champion_brief(engine),
    )
