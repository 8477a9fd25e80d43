"""
Renderer that turns lobby events into plain dict messages
"""

from typing import Any, Awaitable, Callable

from .abc.renderer import Renderer
from .decorators import with_logger
from .metrics import UndoOutcome
from .roster import Roster
from .sessions import CompletedResult, Session, SessionKind, SessionState

Message = dict[str, Any]


def format_participant(participant) -> dict:
    return {
        "identity": participant.identity,
        "name": participant.display_name,
        "handle": participant.external_handle,
        "rating": participant.rating,
    }


def format_roster(roster: Roster, with_average: bool = False) -> dict:
    msg = {
        "name": roster.name,
        "count": len(roster),
        "capacity": roster.capacity,
        "players": [format_participant(p) for p in roster],
    }
    if with_average:
        msg["average_rating"] = round(roster.average_rating()) if len(roster) else 0
    return msg


@with_logger
class MessageRenderer(Renderer):
    """
    Builds one message per event and hands it to `send`, which is typically
    the write method of a client connection or a broadcast.
    """

    def __init__(self, send: Callable[[Message], Awaitable[None]]):
        self._send = send

    async def send(self, message: Message) -> None:
        self._logger.debug("<<: %s", message)
        await self._send(message)

    async def render_lobby(self, session: Session) -> None:
        msg = {
            "command": "lobby_update",
            "handle": session.handle,
            "scope": session.scope,
            "kind": session.kind.value,
            "state": session.state.name.lower(),
        }
        if session.kind is SessionKind.BALANCED and session.state is SessionState.OPEN:
            pool = format_roster(session.pool, with_average=True)
            # Highest rated players are listed first while waiting
            pool["players"].sort(key=lambda p: p["rating"] or 0, reverse=True)
            msg["pool"] = pool
        else:
            rated = session.kind is SessionKind.BALANCED
            msg["teams"] = [
                format_roster(session.side_a, with_average=rated),
                format_roster(session.side_b, with_average=rated),
            ]
        await self.send(msg)

    async def render_confirmation_prompt(self, session: Session) -> None:
        await self.send({
            "command": "lobby_confirmation",
            "handle": session.handle,
            "scope": session.scope,
            "teams": [
                format_roster(session.side_a),
                format_roster(session.side_b),
            ],
        })

    async def render_result(self, result: CompletedResult) -> None:
        await self.send({
            "command": "lobby_result",
            "handle": result.handle,
            "scope": result.scope,
            "winner": result.winner.label,
            "rated": result.rating_eligible,
            "delta": result.delta,
            "teams": [
                [format_participant(p) for p in result.side_a],
                [format_participant(p) for p in result.side_b],
            ],
        })

    async def render_undo_prompt(self, result: CompletedResult) -> None:
        await self.send({
            "command": "undo_confirmation",
            "scope": result.scope,
            "winner": result.winner.label,
            "delta": result.delta,
            "completed_at": int(result.completed_at.timestamp()),
            "teams": [
                [format_participant(p) for p in result.side_a],
                [format_participant(p) for p in result.side_b],
            ],
        })

    async def render_undo_outcome(self, result: CompletedResult, outcome: str) -> None:
        msg = {
            "command": "undo_outcome",
            "scope": result.scope,
            "outcome": outcome,
        }
        if outcome == UndoOutcome.CONFIRMED:
            msg["reverted_delta"] = result.delta
        await self.send(msg)
