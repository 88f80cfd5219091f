"""
LeaderboardEntry: one row per registered username.
Schema only.
"""

from __future__ import annotations

from sqlalchemy import BigInteger, Index, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from seedfarm.core.database.base import Base, IdMixin, TimestampMixin


class LeaderboardEntry(Base, IdMixin, TimestampMixin):
    """
    Best-effort mirror of a player's progress, keyed by username.

    ``total_seeds`` is the floored seed balance at the last sync.
    """

    __tablename__ = "leaderboard_entries"
    __table_args__ = (Index("ix_leaderboard_total_seeds", "total_seeds"),)

    username: Mapped[str] = mapped_column(String(32), nullable=False, unique=True)
    character_id: Mapped[str] = mapped_column(String(50), nullable=False)
    total_seeds: Mapped[int] = mapped_column(BigInteger, nullable=False, default=0)
    streak_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    def __repr__(self) -> str:
        return (
            f"<LeaderboardEntry(username={self.username!r}, "
            f"total_seeds={self.total_seeds}, streak_count={self.streak_count})>"
        )
