"""
Player records kept in a SQL database
"""

from typing import Optional

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError

from .abc.player_store import PlayerStore
from .config import config
from .db import LobbyDatabase, stat_db_errors
from .db.models import users
from .decorators import with_logger
from .exceptions import PlayerNotFound
from .players import PlayerID, UserRecord
from .rating import RatingChange, result_change, reversal_change
from .timing import datetime_now


def _to_record(row) -> UserRecord:
    return UserRecord(
        identity=row.identity,
        display_name=row.display_name,
        rating=row.rating,
        games_played=row.games_played,
        wins=row.wins,
        losses=row.losses,
        external_handle=row.external_handle,
        registered_at=row.registered_at,
    )


@with_logger
class SqlPlayerStore(PlayerStore):
    """
    `PlayerStore` on top of the `users` table. Counters are changed with
    `UPDATE ... SET col = col + :n` so every write is atomic on its own.
    """

    def __init__(self, database: LobbyDatabase):
        self._db = database

    async def get_user(self, identity: PlayerID) -> Optional[UserRecord]:
        async with self._db.acquire() as conn:
            with stat_db_errors():
                result = await conn.execute(
                    select(users).where(users.c.identity == identity)
                )
            row = result.fetchone()

        if row is None:
            return None
        return _to_record(row)

    async def get_all_users(self) -> list[UserRecord]:
        async with self._db.acquire() as conn:
            with stat_db_errors():
                result = await conn.execute(
                    select(users).order_by(users.c.registered_at.desc())
                )
            return [_to_record(row) for row in result.fetchall()]

    async def register(self, identity: PlayerID, display_name: str) -> UserRecord:
        async with self._db.acquire() as conn:
            with stat_db_errors():
                result = await conn.execute(
                    users.update()
                    .where(users.c.identity == identity)
                    .values(display_name=display_name, updated_at=datetime_now())
                )
        if result.rowcount == 0:
            await self._insert(identity, display_name)

        return await self.get_user(identity)

    async def ensure_registered(
        self,
        identity: PlayerID,
        display_name: str
    ) -> UserRecord:
        record = await self.get_user(identity)
        if record is not None:
            return record

        await self._insert(identity, display_name)
        return await self.get_user(identity)

    async def _insert(self, identity: PlayerID, display_name: str) -> None:
        now = datetime_now()
        try:
            async with self._db.acquire() as conn:
                with stat_db_errors():
                    await conn.execute(users.insert().values(
                        identity=identity,
                        display_name=display_name,
                        rating=config.START_RATING,
                        games_played=0,
                        wins=0,
                        losses=0,
                        registered_at=now,
                        updated_at=now,
                    ))
        except IntegrityError:
            # Someone else registered the same player in the meantime
            self._logger.debug("Player %s already registered", identity)
        else:
            self._logger.info("Registered player %s (%s)", display_name, identity)

    async def _change(self, identity: PlayerID, change: RatingChange) -> bool:
        async with self._db.acquire() as conn:
            with stat_db_errors():
                result = await conn.execute(
                    users.update()
                    .where(users.c.identity == identity)
                    .values(
                        rating=users.c.rating + change.rating,
                        games_played=users.c.games_played + change.games,
                        wins=users.c.wins + change.wins,
                        losses=users.c.losses + change.losses,
                        updated_at=datetime_now(),
                    )
                )
        return result.rowcount > 0

    async def apply_result(self, identity: PlayerID, delta: int, won: bool) -> None:
        if not await self._change(identity, result_change(delta, won)):
            raise PlayerNotFound(f"Player {identity} is not registered")

    async def reverse_result(
        self,
        identity: PlayerID,
        delta: int,
        had_won: bool
    ) -> None:
        if not await self._change(identity, reversal_change(delta, had_won)):
            raise PlayerNotFound(f"Player {identity} is not registered")

    async def link_handle(self, identity: PlayerID, handle: str) -> bool:
        async with self._db.acquire() as conn:
            with stat_db_errors():
                result = await conn.execute(
                    users.update()
                    .where(users.c.identity == identity)
                    .values(external_handle=handle, updated_at=datetime_now())
                )
        return result.rowcount > 0

    async def adjust_rating(self, identity: PlayerID, change: int) -> bool:
        return await self._change(identity, RatingChange(change, 0, 0, 0))

    async def adjust_counters(
        self,
        identity: PlayerID,
        games: int = 0,
        wins: int = 0,
        losses: int = 0
    ) -> bool:
        return await self._change(identity, RatingChange(0, games, wins, losses))
