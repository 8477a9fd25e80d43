"""
Player registration, profiles and admin corrections of player records
"""

from typing import NamedTuple, Optional

from .abc.authority import Authority
from .abc.player_store import PlayerStore
from .config import config
from .core import Service
from .decorators import with_logger
from .exceptions import InvalidHandle, LobbyError, NotAuthorized, PlayerNotFound
from .players import Participant, PlayerID, UserRecord


class Leaderboard(NamedTuple):
    by_rating: list[UserRecord]
    by_win_rate: list[UserRecord]


def parse_handle(text: str) -> str:
    """
    Validate an external game handle of the form `Name#TAG`. Surrounding
    double quotes are removed so names with spaces can be given.

    # Examples
    >>> parse_handle('"Hide on bush#KR1"')
    'Hide on bush#KR1'
    """
    text = text.strip()
    if text.startswith('"'):
        end = text.find('"', 1)
        text = text[1:end] if end != -1 else text[1:]

    if "#" not in text:
        raise InvalidHandle(
            "Invalid format! The handle must include the # tag, "
            "e.g. Faker#KR1"
        )

    parts = text.split("#")
    if len(parts) != 2 or not parts[0].strip() or not parts[1].strip():
        raise InvalidHandle(
            "Invalid handle format, expected something like Name#TAG"
        )
    return text


@with_logger
class PlayerService(Service):
    def __init__(self, player_store: PlayerStore, authority: Authority):
        self._store = player_store
        self._authority = authority

    async def _check_authority(self, requester: PlayerID, scope: str) -> None:
        if not await self._authority.is_authority(requester, scope):
            raise NotAuthorized(
                "You need admin permissions to use this command!"
            )

    async def ensure_registered(
        self,
        identity: PlayerID,
        display_name: str
    ) -> UserRecord:
        return await self._store.ensure_registered(identity, display_name)

    async def get_participant(
        self,
        identity: PlayerID,
        display_name: str
    ) -> Participant:
        """
        The participant for a player joining a lobby, registering them on the
        fly if needed.
        """
        record = await self.ensure_registered(identity, display_name)
        return Participant.from_record(record)

    async def register(
        self,
        identity: PlayerID,
        display_name: str,
        requester: Optional[PlayerID] = None,
        scope: str = "",
    ) -> UserRecord:
        """
        Register a player. Registering somebody else needs admin permissions.
        """
        if requester is not None and requester != identity:
            await self._check_authority(requester, scope)
            self._logger.info("%s registered %s", requester, identity)

        return await self._store.register(identity, display_name)

    async def link_handle(
        self,
        identity: PlayerID,
        display_name: str,
        text: str
    ) -> str:
        handle = parse_handle(text)
        await self.ensure_registered(identity, display_name)

        if not await self._store.link_handle(identity, handle):
            raise LobbyError("Failed to link account: user not registered")

        self._logger.info("Linked %s to %s", identity, handle)
        return handle

    async def profile(self, identity: PlayerID) -> UserRecord:
        record = await self._store.get_user(identity)
        if record is None:
            raise PlayerNotFound("This user is not registered.")
        return record

    async def leaderboard(self, limit: Optional[int] = None) -> Leaderboard:
        """
        Top players by rating, and top players by win rate among those who
        played at least once. Win rate ties go to the player with more games.
        """
        if limit is None:
            limit = config.LEADERBOARD_SIZE

        records = await self._store.get_all_users()

        by_rating = sorted(records, key=lambda r: r.rating, reverse=True)
        by_win_rate = sorted(
            (r for r in records if r.games_played > 0),
            key=lambda r: (r.wins / r.games_played, r.games_played),
            reverse=True
        )
        return Leaderboard(by_rating[:limit], by_win_rate[:limit])

    async def adjust_rating(
        self,
        identity: PlayerID,
        change: int,
        requester: PlayerID,
        scope: str = "",
    ) -> UserRecord:
        await self._check_authority(requester, scope)
        if not await self._store.adjust_rating(identity, change):
            raise PlayerNotFound("This user is not registered!")

        self._logger.info(
            "[ADMIN] %s adjusted rating of %s by %+d", requester, identity, change
        )
        return await self.profile(identity)

    async def remove_win(
        self,
        identity: PlayerID,
        requester: PlayerID,
        scope: str = "",
    ) -> UserRecord:
        await self._check_authority(requester, scope)
        record = await self.profile(identity)
        if record.wins <= 0:
            raise LobbyError("User has no wins to remove")
        if record.games_played <= 0:
            raise LobbyError("User has no games played")

        await self._store.adjust_counters(identity, games=-1, wins=-1)
        self._logger.info("[ADMIN] %s removed a win from %s", requester, identity)
        return await self.profile(identity)

    async def remove_loss(
        self,
        identity: PlayerID,
        requester: PlayerID,
        scope: str = "",
    ) -> UserRecord:
        await self._check_authority(requester, scope)
        record = await self.profile(identity)
        if record.losses <= 0:
            raise LobbyError("User has no losses to remove")
        if record.games_played <= 0:
            raise LobbyError("User has no games played")

        await self._store.adjust_counters(identity, games=-1, losses=-1)
        self._logger.info("[ADMIN] %s removed a loss from %s", requester, identity)
        return await self.profile(identity)
