from app.engine.bout_engine import BoutEngine, Match, MatchStatus
from app.engine.resolver import PhaseResolver, PhaseOutcome, Side
from app.engine.tournament_engine import TournamentEngine

__all__ = ["BoutEngine", "Match", "MatchStatus", "PhaseResolver", "PhaseOutcome", "Side", "TournamentEngine"]
