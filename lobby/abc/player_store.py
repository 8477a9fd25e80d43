from abc import ABC, abstractmethod
from typing import Optional

from lobby.players import PlayerID, UserRecord


class PlayerStore(ABC):
    """
    Durable player records.

    Every write is a single atomic increment for one player, so concurrent
    writes for different games never lose updates.
    """

    @abstractmethod
    async def get_user(self, identity: PlayerID) -> Optional[UserRecord]:
        pass  # pragma: no cover

    @abstractmethod
    async def get_all_users(self) -> list[UserRecord]:
        pass  # pragma: no cover

    @abstractmethod
    async def register(self, identity: PlayerID, display_name: str) -> UserRecord:
        """
        Create the record, or refresh the display name of an existing one.
        """
        pass  # pragma: no cover

    @abstractmethod
    async def ensure_registered(
        self,
        identity: PlayerID,
        display_name: str
    ) -> UserRecord:
        """
        Return the record, creating it with the start rating if missing.
        """
        pass  # pragma: no cover

    @abstractmethod
    async def apply_result(self, identity: PlayerID, delta: int, won: bool) -> None:
        """
        Count a game for the player. `delta` is the unsigned number of rating
        points exchanged: winners gain it, losers lose it.
        """
        pass  # pragma: no cover

    @abstractmethod
    async def reverse_result(
        self,
        identity: PlayerID,
        delta: int,
        had_won: bool
    ) -> None:
        """
        Exact inverse of `apply_result` called with the same arguments.
        """
        pass  # pragma: no cover

    @abstractmethod
    async def link_handle(self, identity: PlayerID, handle: str) -> bool:
        pass  # pragma: no cover

    @abstractmethod
    async def adjust_rating(self, identity: PlayerID, change: int) -> bool:
        pass  # pragma: no cover

    @abstractmethod
    async def adjust_counters(
        self,
        identity: PlayerID,
        games: int = 0,
        wins: int = 0,
        losses: int = 0
    ) -> bool:
        pass  # pragma: no cover

    async def get_rating(self, identity: PlayerID) -> Optional[int]:
        record = await self.get_user(identity)
        if record is None:
            return None
        return record.rating
