"""Team and player models (roster data used for tagging)."""
from datetime import datetime
from uuid import UUID

from sqlalchemy import ForeignKey, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from models.base import Base, UTCDateTime, UUIDv7Mixin, utcnow


class Team(Base, UUIDv7Mixin):
    """A team that photos can be tagged with."""

    __tablename__ = "teams"

    name: Mapped[str] = mapped_column(String(255), unique=True)
    created_at: Mapped[datetime] = mapped_column(UTCDateTime(), default=utcnow)

    players: Mapped[list["Player"]] = relationship(back_populates="team")


class Player(Base, UUIDv7Mixin):
    """A player that photos can be tagged with."""

    __tablename__ = "players"

    name: Mapped[str] = mapped_column(String(255))
    jersey_number: Mapped[int | None] = mapped_column(nullable=True)
    position: Mapped[str | None] = mapped_column(String(100), nullable=True)
    team_id: Mapped[UUID | None] = mapped_column(
        ForeignKey("teams.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )
    created_at: Mapped[datetime] = mapped_column(UTCDateTime(), default=utcnow)

    team: Mapped[Team | None] = relationship(back_populates="players")
