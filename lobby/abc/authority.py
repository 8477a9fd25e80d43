from abc import ABC, abstractmethod

from lobby.players import PlayerID


class Authority(ABC):
    """
    Decides who may confirm games, select winners and undo results.
    """

    @abstractmethod
    async def is_authority(self, identity: PlayerID, scope: str) -> bool:
        pass  # pragma: no cover


class StaticAuthority(Authority):
    """
    A fixed set of admin identities, valid in every scope.
    """

    def __init__(self, admins=()):
        self.admins = set(admins)

    async def is_authority(self, identity: PlayerID, scope: str) -> bool:
        return identity in self.admins
