"""
Custom game lobbies with rating balanced teams.

# Overview
Players gather in a lobby that lives in some scope, usually a chat channel,
and is identified by a handle, usually the message showing it. Two kinds of
lobbies exist:

- Manual lobbies, where players pick their own team. An admin confirms the
    teams once both sides are full or the creator started early. Results of
    manual lobbies only count games and wins, ratings are left alone.
- Balanced lobbies, where players join a shared pool and the teams are built
    from their Elo ratings when the lobby is started. Admins may reshuffle the
    teams while the game is on. Results move the ratings of every participant.

The last result of every scope can be undone after an admin confirmed the
undo prompt.

# Technical Overview
All state except the player records lives in memory. The collaborators that
connect a lobby instance to the outside world are injected:

- `player_store`: durable player records, see `lobby.abc.PlayerStore` and the
    SQL implementation `lobby.sql_player_store.SqlPlayerStore`.
- `authority`: decides who is an admin, see `lobby.abc.Authority`.
- `renderer`: shows lobbies and results, see `lobby.abc.Renderer` and
    `lobby.message_renderer.MessageRenderer`.

Events are fed in through the `LobbyService` and the `PlayerService`.
"""

import asyncio
import logging
import time
from typing import Optional

from .abc import Authority, PlayerStore, Renderer
from .asyncio_extensions import map_suppress, synchronizedmethod
from .config import config
from .core import Service, create_services
from .history_ledger import HistoryLedger
from .lobby_service import LobbyService
from .player_service import PlayerService
from .rating_service import RatingService
from .session_registry import SessionRegistry

__all__ = (
    "HistoryLedger",
    "LobbyInstance",
    "LobbyService",
    "PlayerService",
    "RatingService",
    "SessionRegistry",
)

logger = logging.getLogger("lobby")


class LobbyInstance(object):
    """
    A set of services sharing the same lobbies, undo history and player
    records.
    """

    def __init__(
        self,
        name: str,
        player_store: PlayerStore,
        authority: Authority,
        renderer: Renderer,
        # For testing
        _override_services: Optional[dict[str, Service]] = None
    ):
        self.name = name
        self._logger = logging.getLogger(self.name)
        self.started = False

        self.services = _override_services or create_services({
            "player_store": player_store,
            "authority": authority,
            "renderer": renderer,
        })

    @property
    def lobby_service(self) -> LobbyService:
        return self.services["lobby_service"]

    @property
    def player_service(self) -> PlayerService:
        return self.services["player_service"]

    @synchronizedmethod
    async def start_services(self) -> None:
        if self.started:
            return

        num_services = len(self.services)
        self._logger.debug("Initializing %s services", num_services)

        async def initialize(service):
            start = time.perf_counter()
            await service.initialize()
            service._logger.debug(
                "%s initialized in %0.2f seconds",
                service.__class__.__name__,
                time.perf_counter() - start
            )

        await asyncio.gather(*[
            initialize(service) for service in self.services.values()
        ])

        self._logger.debug("Initialized %s services", num_services)

        self.started = True

    async def shutdown(self) -> None:
        self._logger.info("Initiating full shutdown")

        await map_suppress(
            lambda service: service.shutdown(),
            self.services.values(),
            logger=self._logger,
            msg="when shutting down service "
        )
        self.started = False
