from typing import Optional
from sqlalchemy import String, Integer, ForeignKey, DateTime, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship
from datetime import datetime
import json
from app.database import Base


class BoutRecord(Base):
    """A completed bout, kept for the leaderboard and bout history"""
    __tablename__ = "bouts"

    id: Mapped[str] = mapped_column(String(36), primary_key=True)  # Engine match id
    tournament_id: Mapped[int] = mapped_column(ForeignKey("tournaments.id"))
    tournament: Mapped["Tournament"] = relationship("Tournament", back_populates="bouts")
    bout_number: Mapped[int] = mapped_column(Integer)

    # Sides
    east_id: Mapped[int] = mapped_column(ForeignKey("participants.id"))
    west_id: Mapped[int] = mapped_column(ForeignKey("participants.id"))
    east: Mapped["Participant"] = relationship("Participant", foreign_keys=[east_id])
    west: Mapped["Participant"] = relationship("Participant", foreign_keys=[west_id])

    # Result
    winner_id: Mapped[Optional[int]] = mapped_column(ForeignKey("participants.id"), nullable=True)
    winning_move: Mapped[Optional[str]] = mapped_column(String(30), nullable=True)
    east_phase_wins: Mapped[int] = mapped_column(Integer, default=0)
    west_phase_wins: Mapped[int] = mapped_column(Integer, default=0)
    is_cpu_bout: Mapped[bool] = mapped_column(default=False)

    # JSON blobs: phase -> outcome dict, side -> stat dict
    phase_results: Mapped[str] = mapped_column(Text, default="{}")
    final_stats: Mapped[str] = mapped_column(Text, default="{}")

    completed_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)

    @property
    def phase_results_dict(self) -> dict:
        return json.loads(self.phase_results or "{}")

    @property
    def final_stats_dict(self) -> dict:
        return json.loads(self.final_stats or "{}")

    def __repr__(self):
        return f"<Bout #{self.bout_number}: {self.east_id} vs {self.west_id}>"
