from typing import Optional

from lobby.abc.player_store import PlayerStore
from lobby.config import config
from lobby.players import PlayerID, UserRecord
from lobby.rating import RatingChange, result_change, reversal_change
from lobby.timing import datetime_now


class StoreError(Exception):
    pass


class InMemoryPlayerStore(PlayerStore):
    """
    Player store keeping its records in a dict.

    Identities in `failing` raise `StoreError` on every result write, which
    is how tests simulate a database going away halfway through.
    """

    def __init__(self):
        self.records: dict[PlayerID, UserRecord] = {}
        self.failing: set[PlayerID] = set()

    def add(self, identity: PlayerID, rating: int = 1500, **kwargs) -> UserRecord:
        kwargs.setdefault("display_name", identity)
        record = UserRecord(identity=identity, rating=rating, **kwargs)
        self.records[identity] = record
        return record

    async def get_user(self, identity: PlayerID) -> Optional[UserRecord]:
        return self.records.get(identity)

    async def get_all_users(self) -> list[UserRecord]:
        return list(self.records.values())

    async def register(self, identity: PlayerID, display_name: str) -> UserRecord:
        record = self.records.get(identity)
        if record is None:
            return await self.ensure_registered(identity, display_name)
        record = record._replace(display_name=display_name)
        self.records[identity] = record
        return record

    async def ensure_registered(
        self,
        identity: PlayerID,
        display_name: str
    ) -> UserRecord:
        if identity not in self.records:
            self.records[identity] = UserRecord(
                identity=identity,
                display_name=display_name,
                rating=config.START_RATING,
                registered_at=datetime_now(),
            )
        return self.records[identity]

    def _change(self, identity: PlayerID, change: RatingChange) -> bool:
        record = self.records.get(identity)
        if record is None:
            return False
        self.records[identity] = record._replace(
            rating=record.rating + change.rating,
            games_played=record.games_played + change.games,
            wins=record.wins + change.wins,
            losses=record.losses + change.losses,
        )
        return True

    async def apply_result(self, identity: PlayerID, delta: int, won: bool) -> None:
        if identity in self.failing:
            raise StoreError(f"Lost connection while updating {identity}")
        self._change(identity, result_change(delta, won))

    async def reverse_result(
        self,
        identity: PlayerID,
        delta: int,
        had_won: bool
    ) -> None:
        if identity in self.failing:
            raise StoreError(f"Lost connection while updating {identity}")
        self._change(identity, reversal_change(delta, had_won))

    async def link_handle(self, identity: PlayerID, handle: str) -> bool:
        record = self.records.get(identity)
        if record is None:
            return False
        self.records[identity] = record._replace(external_handle=handle)
        return True

    async def adjust_rating(self, identity: PlayerID, change: int) -> bool:
        return self._change(identity, RatingChange(change, 0, 0, 0))

    async def adjust_counters(
        self,
        identity: PlayerID,
        games: int = 0,
        wins: int = 0,
        losses: int = 0
    ) -> bool:
        return self._change(identity, RatingChange(0, games, wins, losses))
