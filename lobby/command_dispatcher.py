"""
Translates incoming command messages into calls on the lobby services
"""

import asyncio
from typing import Any, Awaitable, Callable, Optional

from . import metrics
from .config import TRACE
from .decorators import with_logger
from .exceptions import LobbyError, PartialPersistenceFailure, SessionNotFound
from .lobby_service import LobbyService
from .player_service import PlayerService
from .players import UserRecord
from .session_registry import SessionRegistry
from .sessions import SessionKind, Side

Message = dict[str, Any]


def format_user(record: UserRecord) -> dict:
    return {
        "identity": record.identity,
        "name": record.display_name,
        "handle": record.external_handle,
        "rating": record.rating,
        "games": record.games_played,
        "wins": record.wins,
        "losses": record.losses,
        "win_rate": record.win_rate,
    }


@with_logger
class CommandDispatcher:
    """
    Handles messages of the form `{"command": "join", "identity": ..., ...}`.

    Every message names the acting player with `identity`. Lobby commands
    either name the lobby with `handle` or fall back to the oldest lobby in
    `scope`. Errors are answered with a notice instead of being raised.
    """

    def __init__(
        self,
        lobby_service: LobbyService,
        player_service: PlayerService,
        session_registry: SessionRegistry,
        send: Callable[[Message], Awaitable[None]],
    ):
        self.lobby_service = lobby_service
        self.player_service = player_service
        self.registry = session_registry
        self.send = send
        self._undo_tasks: set[asyncio.Task] = set()

    async def on_message_received(self, message: Message) -> None:
        """
        Dispatches incoming messages
        """
        self._logger.log(TRACE, "<<: %s", message)
        await self._run(self._dispatch, message)

    async def _dispatch(self, message: Message) -> None:
        cmd = message["command"]
        handler = getattr(self, f"command_{cmd}", None)
        if handler is None:
            raise KeyError(cmd)
        await handler(message)

    async def _run(
        self,
        func: Callable[[Message], Awaitable[None]],
        message: Message
    ) -> None:
        try:
            await func(message)
        except PartialPersistenceFailure as e:
            await self.send({
                "command": "notice",
                "style": "warning",
                "text": e.message,
                "failed": e.failed_identities,
            })
        except LobbyError as e:
            self._logger.info("LobbyError: %s", e.message)
            await self.send({
                "command": "notice",
                "style": "error",
                "text": e.message
            })
        except (KeyError, ValueError, TypeError):
            self._logger.warning("Garbage command: %s", message, exc_info=True)
            metrics.garbage_commands.inc()
            await self.send({
                "command": "notice",
                "style": "error",
                "text": f"Invalid command: {message.get('command')}"
            })

    def _handle(self, message: Message, kind: Optional[SessionKind] = None) -> str:
        handle = message.get("handle")
        if handle is not None:
            return str(handle)

        session = self.registry.find_in_scope(message["scope"], kind)
        if session is None:
            raise SessionNotFound("No active lobby found in this channel!")
        return session.handle

    @staticmethod
    def _side(message: Message) -> Optional[Side]:
        side = message.get("side")
        if side is None:
            return None
        return Side(int(side))

    # Lobby commands

    async def command_open_lobby(self, message: Message):
        kind = SessionKind(message.get("kind", SessionKind.MANUAL.value))
        if kind is SessionKind.BALANCED:
            open_lobby = self.lobby_service.open_balanced_lobby
        else:
            open_lobby = self.lobby_service.open_manual_lobby

        await open_lobby(
            str(message["handle"]),
            message["scope"],
            message["identity"]
        )

    async def command_join(self, message: Message):
        await self.lobby_service.enroll(
            self._handle(message),
            message["identity"],
            self._side(message),
            display_name=message.get("name"),
        )

    async def command_leave(self, message: Message):
        await self.lobby_service.leave(
            self._handle(message),
            message["identity"],
            self._side(message)
        )

    async def command_start(self, message: Message):
        await self.lobby_service.force_start(
            self._handle(message), message["identity"]
        )

    async def command_start_balanced(self, message: Message):
        await self.lobby_service.start_balanced(
            self._handle(message, SessionKind.BALANCED), message["identity"]
        )

    async def command_confirm(self, message: Message):
        await self.lobby_service.confirm(
            self._handle(message), message["identity"]
        )

    async def command_reject(self, message: Message):
        await self.lobby_service.reject(
            self._handle(message), message["identity"]
        )

    async def command_reshuffle(self, message: Message):
        await self.lobby_service.reshuffle(
            self._handle(message, SessionKind.BALANCED), message["identity"]
        )

    async def command_winner(self, message: Message):
        side = self._side(message)
        if side is None:
            raise ValueError("Missing side")

        await self.lobby_service.select_winner(
            self._handle(message), side, message["identity"]
        )

    # Undo

    async def command_undo(self, message: Message):
        """
        The undo waits for its confirmation in the background so that the
        confirmation itself can be received in the meantime.
        """
        task = asyncio.create_task(self._run(self._request_undo, message))
        self._undo_tasks.add(task)
        task.add_done_callback(self._undo_tasks.discard)

    async def _request_undo(self, message: Message):
        await self.lobby_service.request_undo(
            message["scope"], message["identity"]
        )

    async def command_undo_confirm(self, message: Message):
        await self.lobby_service.confirm_undo(
            message["scope"], message["identity"]
        )

    async def command_undo_reject(self, message: Message):
        await self.lobby_service.reject_undo(
            message["scope"], message["identity"]
        )

    # Player records

    async def command_register(self, message: Message):
        target = message.get("target", message["identity"])
        record = await self.player_service.register(
            target,
            message.get("target_name") or message.get("name") or target,
            requester=message["identity"],
            scope=message.get("scope", ""),
        )
        await self.send({"command": "registered", "player": format_user(record)})

    async def command_link(self, message: Message):
        handle = await self.player_service.link_handle(
            message["identity"],
            message.get("name") or message["identity"],
            message["text"],
        )
        await self.send({
            "command": "linked",
            "identity": message["identity"],
            "handle": handle
        })

    async def command_profile(self, message: Message):
        record = await self.player_service.profile(
            message.get("target", message["identity"])
        )
        await self.send({"command": "profile", "player": format_user(record)})

    async def command_leaderboard(self, message: Message):
        leaderboard = await self.player_service.leaderboard(message.get("limit"))
        await self.send({
            "command": "leaderboard",
            "by_rating": [format_user(r) for r in leaderboard.by_rating],
            "by_win_rate": [format_user(r) for r in leaderboard.by_win_rate],
        })

    async def command_adjust_rating(self, message: Message):
        record = await self.player_service.adjust_rating(
            message["target"],
            int(message["change"]),
            message["identity"],
            message.get("scope", ""),
        )
        await self.send({"command": "profile", "player": format_user(record)})

    async def command_remove_win(self, message: Message):
        record = await self.player_service.remove_win(
            message["target"], message["identity"], message.get("scope", "")
        )
        await self.send({"command": "profile", "player": format_user(record)})

    async def command_remove_loss(self, message: Message):
        record = await self.player_service.remove_loss(
            message["target"], message["identity"], message.get("scope", "")
        )
        await self.send({"command": "profile", "player": format_user(record)})

    async def shutdown(self) -> None:
        for task in list(self._undo_tasks):
            task.cancel()
