"""
Pydantic schemas for API request/response models
"""
from pydantic import BaseModel, Field
from typing import Optional
from enum import Enum


# Enums
class TournamentStatusEnum(str, Enum):
    REGISTRATION = "registration"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"


class MatchStatusEnum(str, Enum):
    ACTIVE = "active"
    COMPLETED = "completed"


# Participant Schemas
class BuildStats(BaseModel):
    height: int
    weight: int
    speed: int
    technique: int


class RegisterRequest(BaseModel):
    email: str
    player_name: str
    display_name: Optional[str] = None  # Shikona, defaults to player_name
    wrestler_id: Optional[int] = None
    stats: BuildStats
    signature_move: str = "yorikiri"


class ParticipantResponse(BaseModel):
    id: int
    email: str
    player_name: str
    display_name: str
    wrestler_id: Optional[int] = None
    height: int
    weight: int
    speed: int
    technique: int
    signature_move: str
    is_cpu: bool
    wins: int
    losses: int
    tournament_wins: int

    class Config:
        from_attributes = True


class ParticipantBrief(BaseModel):
    """Participant as shown on the dohyo"""
    id: int
    email: str
    display_name: str
    signature_move: str
    is_cpu: bool
    wins: int
    losses: int

    class Config:
        from_attributes = True


class StandingResponse(BaseModel):
    position: int
    participant: ParticipantBrief
    wins: int
    losses: int
    tournament_wins: int
    is_champion: bool


# Bout Schemas
class PhaseOutcomeResponse(BaseModel):
    phase: str
    east_choice: str
    west_choice: str
    winner: Optional[str] = None
    east_announcement: str
    west_announcement: str
    narrative: str
    east_deltas: dict[str, int] = Field(default_factory=dict)
    west_deltas: dict[str, int] = Field(default_factory=dict)
    probabilities: Optional[list[float]] = None
    roll: Optional[float] = None
    timed_out: list[str] = Field(default_factory=list)


class MatchResponse(BaseModel):
    """Bout state; pending choices are reported as made/not made, never revealed"""
    id: str
    status: MatchStatusEnum
    current_phase: str
    east: ParticipantBrief
    west: ParticipantBrief
    choices_made: dict[str, bool]
    stats: dict[str, dict[str, int]]
    phase_results: list[PhaseOutcomeResponse]
    phase_wins: dict[str, int]
    winner: Optional[str] = None
    winning_move: Optional[str] = None
    phase_started_at: int
    timed_out: dict[str, bool]
    is_cpu_match: bool


class ChoiceRequest(BaseModel):
    email: str
    choice: str
    phase: Optional[str] = None  # Phase the client believes is current


class ChoiceResponse(BaseModel):
    resolved: bool
    waiting: bool
    outcome: Optional[PhaseOutcomeResponse] = None
    match: MatchResponse
    champion: Optional[ParticipantBrief] = None


class HeartbeatResponse(BaseModel):
    expired: bool
    outcome: Optional[PhaseOutcomeResponse] = None
    match: MatchResponse
    champion: Optional[ParticipantBrief] = None


# Tournament Schemas
class TournamentResponse(BaseModel):
    id: int
    name: str
    status: TournamentStatusEnum
    wins_needed: int
    tournament_size: int
    champion: Optional[ParticipantBrief] = None
    current_match: Optional[MatchResponse] = None
    bouts_fought: int = 0


class StandingsResponse(BaseModel):
    tournament: TournamentResponse
    standings: list[StandingResponse]


class PhaseChoiceInfo(BaseModel):
    id: str
    label: str


class PhaseInfoResponse(BaseModel):
    name: str
    title: str
    description: str
    has_winner: bool
    choices: list[PhaseChoiceInfo]


class SignatureMoveResponse(BaseModel):
    id: str
    name: str
    japanese: str
    description: str
    best_with: str
    affinity_bonus: float


class PhasesResponse(BaseModel):
    phases: list[PhaseInfoResponse]
    signature_moves: list[SignatureMoveResponse]
    move_timeout_ms: int
