"""
Tournament (basho) model for persistent game state
"""
from typing import Optional, List
from sqlalchemy import String, Integer, ForeignKey, Enum, DateTime, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship
from datetime import datetime
import enum
from app.database import Base


class TournamentStatus(enum.Enum):
    REGISTRATION = "registration"  # Players signing up
    IN_PROGRESS = "in_progress"  # Bouts being fought
    COMPLETED = "completed"  # Champion crowned


class Tournament(Base):
    __tablename__ = "tournaments"

    id: Mapped[int] = mapped_column(primary_key=True)
    name: Mapped[str] = mapped_column(String(100), default="Hatsu Basho")
    status: Mapped[TournamentStatus] = mapped_column(Enum(TournamentStatus), default=TournamentStatus.REGISTRATION)

    # Rules
    wins_needed: Mapped[int] = mapped_column(Integer, default=3)
    tournament_size: Mapped[int] = mapped_column(Integer, default=8)

    # Champion
    champion_id: Mapped[Optional[int]] = mapped_column(ForeignKey("participants.id"), nullable=True)
    champion: Mapped[Optional["Participant"]] = relationship("Participant", foreign_keys=[champion_id])

    # Active bout, stored as an opaque JSON snapshot so it survives a restart
    current_match_id: Mapped[Optional[str]] = mapped_column(String(36), nullable=True)
    active_match_state: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    bouts: Mapped[List["BoutRecord"]] = relationship("BoutRecord", back_populates="tournament", order_by="BoutRecord.bout_number")

    def __repr__(self):
        return f"<Tournament '{self.name}' - {self.status.value}>"
