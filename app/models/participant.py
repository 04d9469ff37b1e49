from typing import Optional
from sqlalchemy import String, Integer, DateTime
from sqlalchemy.orm import Mapped, mapped_column
from datetime import datetime
from app.database import Base


class Participant(Base):
    """
    A registered player (or CPU) and the wrestler build they fight with.
    Records are only mutated by tournament bookkeeping.
    """
    __tablename__ = "participants"

    id: Mapped[int] = mapped_column(primary_key=True)
    email: Mapped[str] = mapped_column(String(255), unique=True, index=True)
    player_name: Mapped[str] = mapped_column(String(100))
    display_name: Mapped[str] = mapped_column(String(100))  # Shikona shown in announcements
    wrestler_id: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)  # Roster entry

    # Build (1-10 each)
    height: Mapped[int] = mapped_column(Integer, default=5)
    weight: Mapped[int] = mapped_column(Integer, default=5)
    speed: Mapped[int] = mapped_column(Integer, default=5)
    technique: Mapped[int] = mapped_column(Integer, default=5)
    signature_move: Mapped[str] = mapped_column(String(30), default="yorikiri")

    is_cpu: Mapped[bool] = mapped_column(default=False)

    # Record
    wins: Mapped[int] = mapped_column(Integer, default=0)
    losses: Mapped[int] = mapped_column(Integer, default=0)
    tournament_wins: Mapped[int] = mapped_column(Integer, default=0)  # Emperor's Cups

    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)

    @property
    def build(self) -> dict:
        return {
            "height": self.height,
            "weight": self.weight,
            "speed": self.speed,
            "technique": self.technique,
        }

    def __repr__(self):
        return f"<Participant '{self.display_name}' ({self.wins}W-{self.losses}L)>"
