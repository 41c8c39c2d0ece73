"""Photo tag models linking photos to players and teams."""
from datetime import datetime
from typing import TYPE_CHECKING
from uuid import UUID

from sqlalchemy import ForeignKey, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from models.base import Base, UTCDateTime, UUIDv7Mixin, utcnow
from models.roster import Player, Team

if TYPE_CHECKING:
    from models.photo import Photo


class PhotoTag(Base, UUIDv7Mixin):
    """A player tagged in a photo."""

    __tablename__ = "photo_tags"

    photo_id: Mapped[UUID] = mapped_column(
        ForeignKey("photos.id", ondelete="CASCADE"),
        index=True,
    )
    player_id: Mapped[UUID] = mapped_column(
        ForeignKey("players.id", ondelete="CASCADE"),
        index=True,
    )
    created_at: Mapped[datetime] = mapped_column(UTCDateTime(), default=utcnow)

    photo: Mapped["Photo"] = relationship(back_populates="tags")
    player: Mapped[Player] = relationship()

    __table_args__ = (
        UniqueConstraint("photo_id", "player_id", name="uq_photo_tags_photo_player"),
    )


class PhotoTeamTag(Base, UUIDv7Mixin):
    """A team tagged in a photo."""

    __tablename__ = "photo_team_tags"

    photo_id: Mapped[UUID] = mapped_column(
        ForeignKey("photos.id", ondelete="CASCADE"),
        index=True,
    )
    team_id: Mapped[UUID] = mapped_column(
        ForeignKey("teams.id", ondelete="CASCADE"),
        index=True,
    )
    created_at: Mapped[datetime] = mapped_column(UTCDateTime(), default=utcnow)

    photo: Mapped["Photo"] = relationship(back_populates="team_tags")
    team: Mapped[Team] = relationship()

    __table_args__ = (
        UniqueConstraint("photo_id", "team_id", name="uq_photo_team_tags_photo_team"),
    )
