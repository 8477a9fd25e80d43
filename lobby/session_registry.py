"""
Lookup of live lobbies by their external handle
"""

import asyncio
import weakref
from typing import Iterator, Optional

from .core import Service
from .decorators import with_logger
from .exceptions import SessionExists, SessionNotFound
from .metrics import live_sessions
from .players import PlayerID
from .sessions import SESSION_TYPES, Session, SessionKind


@with_logger
class SessionRegistry(Service):
    """
    Owns every lobby that has not been completed yet.

    A handle is whatever the outside world uses to refer to a lobby, for
    instance the id of the chat message showing it. At most one live session
    exists per handle.

    Events for the same handle must be processed one after the other. Callers
    do that by holding `lock(handle)` for the duration of an event.
    """

    def __init__(self):
        self._sessions: dict[str, Session] = {}
        self._locks: weakref.WeakValueDictionary[str, asyncio.Lock] = (
            weakref.WeakValueDictionary()
        )

    def __len__(self) -> int:
        return len(self._sessions)

    def __iter__(self) -> Iterator[Session]:
        return iter(list(self._sessions.values()))

    def __contains__(self, handle: str) -> bool:
        return handle in self._sessions

    def lock(self, handle: str) -> asyncio.Lock:
        lock = self._locks.get(handle)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[handle] = lock
        return lock

    def create(
        self,
        handle: str,
        scope: str,
        kind: SessionKind,
        creator: PlayerID
    ) -> Session:
        if handle in self._sessions:
            raise SessionExists(f"A lobby with handle {handle} already exists")

        session = SESSION_TYPES[kind](handle, scope, creator)
        self._sessions[handle] = session
        live_sessions.set(len(self._sessions))
        self._logger.info("Opened %s lobby %s in %s", kind.value, handle, scope)
        return session

    def find(self, handle: str) -> Optional[Session]:
        return self._sessions.get(handle)

    def get(self, handle: str) -> Session:
        session = self._sessions.get(handle)
        if session is None:
            raise SessionNotFound("No active lobby found!")
        return session

    def find_in_scope(
        self,
        scope: str,
        kind: Optional[SessionKind] = None
    ) -> Optional[Session]:
        """
        The oldest live lobby in `scope`, optionally of one kind only.
        """
        for session in self._sessions.values():
            if session.scope == scope and (kind is None or session.kind is kind):
                return session
        return None

    def destroy(self, handle: str) -> Optional[Session]:
        session = self._sessions.pop(handle, None)
        live_sessions.set(len(self._sessions))
        if session is not None:
            self._logger.debug("Removed lobby %s", handle)
        return session

    async def shutdown(self) -> None:
        if self._sessions:
            self._logger.warning(
                "Dropping %d unfinished lobbies", len(self._sessions)
            )
        self._sessions.clear()
        live_sessions.set(0)
