from app.models.participant import Participant
from app.models.tournament import Tournament, TournamentStatus
from app.models.bout import BoutRecord

__all__ = [
    "Participant",
    "Tournament",
    "TournamentStatus",
    "BoutRecord",
]
