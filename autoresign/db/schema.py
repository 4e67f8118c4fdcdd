"""Database tables / schema"""

from datetime import datetime, timezone
from typing import Optional
from uuid import UUID

from sqlalchemy import JSON, DateTime, ForeignKey
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class Base(DeclarativeBase):
    type_annotation_map = {datetime: DateTime(timezone=True)}


class DBGame(Base):
    __tablename__ = "games"
    id: Mapped[UUID] = mapped_column(primary_key=True)
    # {"white": [player ids], "black": [player ids]}
    players: Mapped[dict[str, list[str]]] = mapped_column(JSON)
    result: Mapped[Optional[str]] = mapped_column(index=True)
    last_move_date: Mapped[Optional[datetime]]
    auto_resign_notification_date: Mapped[Optional[datetime]] = mapped_column(
        index=True
    )
    resolved_date: Mapped[Optional[datetime]]
    created_at: Mapped[datetime] = mapped_column(default=utc_now)
    updated_at: Mapped[datetime] = mapped_column(default=utc_now, onupdate=utc_now)

    history: Mapped[list["DBMove"]] = relationship(
        back_populates="game",
        order_by="DBMove.ply",
        cascade="all, delete-orphan",
        lazy="selectin",
    )


class DBMove(Base):
    __tablename__ = "game_moves"
    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    game_id: Mapped[UUID] = mapped_column(ForeignKey("games.id"), index=True)
    ply: Mapped[int]
    fen: Mapped[str]
    played_at: Mapped[datetime]
    player_id: Mapped[Optional[str]]  # None for system-applied moves

    game: Mapped[DBGame] = relationship(back_populates="history")


class DBPlayer(Base):
    __tablename__ = "players"
    id: Mapped[str] = mapped_column(primary_key=True)
    email: Mapped[str]
    name: Mapped[Optional[str]]
    score: Mapped[float] = mapped_column(default=0.0)
    preferred_locale: Mapped[Optional[str]]
    unsubscribe_date: Mapped[Optional[datetime]]
