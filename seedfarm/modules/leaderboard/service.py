"""
Leaderboard Service

Purpose
-------
Best-effort remote mirror of player progress: upsert by username, top-N
reads ordered by seeds, and username registration.

Domain
------
- Sync a player's floored seed total and streak under their username
- Read the top N entries (total_seeds descending, username ascending on ties)
- A player's rank
- Register a username: format check, then check-then-insert uniqueness

Failure Policy
--------------
Every database or connectivity failure is raised as SyncFailure. Callers of
``sync_progress`` log and swallow it; local state is never affected.
Registration races between two players picking the same name at once are
not prevented beyond the unique constraint.
"""

from __future__ import annotations

import math
from datetime import datetime, timezone
from typing import TYPE_CHECKING, Any, Dict, List, Optional, Type

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from seedfarm.core.config.config import Config
from seedfarm.core.config.config_manager import ConfigManager
from seedfarm.core.exceptions import SyncFailure
from seedfarm.core.infra.database_service import DatabaseService
from seedfarm.core.logging.logger import get_logger
from seedfarm.core.validation.input_validator import InputValidator
from seedfarm.modules.leaderboard.model import LeaderboardEntry
from seedfarm.modules.shared.base_service import BaseService
from seedfarm.modules.shared.exceptions import RejectionReason, ValidationRejected

if TYPE_CHECKING:
    from logging import Logger

    from seedfarm.domain.models import PlayerState

_SYNC_ERRORS = (SQLAlchemyError, OSError, RuntimeError)


class LeaderboardService(BaseService):
    """
    Leaderboard reads and writes over DatabaseService.

    Public Methods
    --------------
    - sync_progress() -> Upsert a player's entry
    - get_leaderboard() -> Top N entries
    - get_player_rank() -> 1-based rank of a username
    - is_username_taken() -> Existence check
    - register_username() -> Validate and claim a username
    """

    def __init__(
        self,
        config_manager: Type[ConfigManager] = ConfigManager,
        logger: Optional[Logger] = None,
        database: Type[DatabaseService] = DatabaseService,
    ) -> None:
        super().__init__(config_manager, logger or get_logger(__name__))
        self.db = database

    # ========================================================================
    # PUBLIC API - Write Operations
    # ========================================================================

    async def sync_progress(
        self,
        username: str,
        character_id: str,
        state: PlayerState,
        now: Optional[datetime] = None,
    ) -> None:
        """
        Upsert ``{username, character_id, floor(seeds_total), streak_count}``.

        Raises:
            SyncFailure: If the database is unreachable or rejects the write
        """
        total_seeds = math.floor(state.seeds_total)
        updated_at = now or datetime.now(timezone.utc)

        try:
            async with self.db.get_transaction() as session:
                entry = await session.scalar(
                    select(LeaderboardEntry).where(LeaderboardEntry.username == username)
                )
                if entry is None:
                    session.add(
                        LeaderboardEntry(
                            username=username,
                            character_id=character_id,
                            total_seeds=total_seeds,
                            streak_count=state.streak_count,
                            updated_at=updated_at,
                        )
                    )
                else:
                    entry.character_id = character_id
                    entry.total_seeds = total_seeds
                    entry.streak_count = state.streak_count
                    entry.updated_at = updated_at
        except _SYNC_ERRORS as e:
            raise SyncFailure("sync_progress", e) from e

        self.log.debug(
            "Leaderboard entry synced",
            extra={"username": username, "total_seeds": total_seeds},
        )

    async def register_username(
        self,
        raw_username: Any,
        character_id: str,
        state: Optional[PlayerState] = None,
    ) -> str:
        """
        Validate and claim a username.

        Args:
            raw_username: User input; stripped before validation
            character_id: Character shown next to the name
            state: Current progress recorded with the new entry

        Returns:
            The accepted username

        Raises:
            ValidationRejected: INVALID_USERNAME or USERNAME_TAKEN
            SyncFailure: If the database is unreachable
        """
        username = InputValidator.validate_username(raw_username)

        if await self.is_username_taken(username):
            raise ValidationRejected(
                RejectionReason.USERNAME_TAKEN,
                f"Username '{username}' is already taken",
                username=username,
            )

        try:
            async with self.db.get_transaction() as session:
                session.add(
                    LeaderboardEntry(
                        username=username,
                        character_id=character_id,
                        total_seeds=math.floor(state.seeds_total) if state else 0,
                        streak_count=state.streak_count if state else 0,
                    )
                )
        except IntegrityError as e:
            # Lost the check-then-insert race
            raise ValidationRejected(
                RejectionReason.USERNAME_TAKEN,
                f"Username '{username}' is already taken",
                username=username,
            ) from e
        except _SYNC_ERRORS as e:
            raise SyncFailure("register_username", e) from e

        self.log_operation("register_username", username=username, character_id=character_id)
        return username

    # ========================================================================
    # PUBLIC API - Read Operations
    # ========================================================================

    async def is_username_taken(self, username: str) -> bool:
        """
        Raises:
            SyncFailure: If the database is unreachable
        """
        try:
            async with self.db.get_session() as session:
                found = await session.scalar(
                    select(LeaderboardEntry.id).where(LeaderboardEntry.username == username)
                )
        except _SYNC_ERRORS as e:
            raise SyncFailure("is_username_taken", e) from e
        return found is not None

    async def get_leaderboard(self, limit: Optional[int] = None) -> List[Dict[str, Any]]:
        """
        Top entries ordered by total_seeds descending.

        Args:
            limit: Number of rows; defaults to Config.LEADERBOARD_TOP_N

        Returns:
            Dicts with rank, username, character_id, total_seeds, streak_count

        Raises:
            SyncFailure: If the database is unreachable

        Example:
            >>> for row in await service.get_leaderboard(limit=10):
            ...     print(f"{row['rank']}. {row['username']}: {row['total_seeds']}")
        """
        limit = limit or Config.LEADERBOARD_TOP_N
        stmt = (
            select(LeaderboardEntry)
            .order_by(LeaderboardEntry.total_seeds.desc(), LeaderboardEntry.username)
            .limit(limit)
        )

        try:
            async with self.db.get_session() as session:
                entries = (await session.scalars(stmt)).all()
        except _SYNC_ERRORS as e:
            raise SyncFailure("get_leaderboard", e) from e

        return [
            {
                "rank": rank,
                "username": entry.username,
                "character_id": entry.character_id,
                "total_seeds": entry.total_seeds,
                "streak_count": entry.streak_count,
            }
            for rank, entry in enumerate(entries, start=1)
        ]

    async def get_player_rank(self, username: str) -> Optional[int]:
        """
        1-based rank of ``username`` under the leaderboard ordering, or None
        if the name is not registered.

        Raises:
            SyncFailure: If the database is unreachable
        """
        try:
            async with self.db.get_session() as session:
                entry = await session.scalar(
                    select(LeaderboardEntry).where(LeaderboardEntry.username == username)
                )
                if entry is None:
                    return None
                ahead = await session.scalar(
                    select(func.count(LeaderboardEntry.id)).where(
                        (LeaderboardEntry.total_seeds > entry.total_seeds)
                        | (
                            (LeaderboardEntry.total_seeds == entry.total_seeds)
                            & (LeaderboardEntry.username < entry.username)
                        )
                    )
                )
        except _SYNC_ERRORS as e:
            raise SyncFailure("get_player_rank", e) from e
        return int(ahead or 0) + 1
