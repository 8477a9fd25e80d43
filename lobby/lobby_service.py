"""
Entry point for every lobby event coming from the outside world
"""

import asyncio
from typing import Optional

from .abc.authority import Authority
from .abc.renderer import Renderer
from .config import config
from .core import Service
from .decorators import with_logger
from .exceptions import (
    DuplicateEnrollment,
    InvalidTransition,
    NotAuthorized,
    NothingToUndo
)
from .formation import Partition
from .history_ledger import HistoryLedger
from .metrics import (
    UndoOutcome,
    lobbies_completed,
    lobbies_opened,
    partition_imbalance,
    reshuffles,
    undo_requests
)
from .player_service import PlayerService
from .players import PlayerID
from .rating_service import RatingService
from .session_registry import SessionRegistry
from .sessions import (
    BalancedSession,
    CompletedResult,
    Session,
    SessionKind,
    SessionState,
    Side
)


@with_logger
class LobbyService(Service):
    """
    Coordinates sessions, ratings and the undo history.

    Every operation on a lobby runs under the lock of its handle, so events
    for one lobby are handled strictly one after the other while different
    lobbies progress independently.
    """

    def __init__(
        self,
        session_registry: SessionRegistry,
        history_ledger: HistoryLedger,
        rating_service: RatingService,
        player_service: PlayerService,
        authority: Authority,
        renderer: Renderer,
    ):
        self.registry = session_registry
        self.ledger = history_ledger
        self.rating_service = rating_service
        self.player_service = player_service
        self.authority = authority
        self.renderer = renderer
        # Undo prompts waiting for an answer, by scope
        self._pending_undos: dict[str, asyncio.Future] = {}

    async def _is_authority(self, identity: PlayerID, scope: str) -> bool:
        return await self.authority.is_authority(identity, scope)

    async def _check_authority(self, identity: PlayerID, scope: str) -> None:
        if not await self._is_authority(identity, scope):
            raise NotAuthorized("You need admin permissions to use this command!")

    # Opening

    async def open_manual_lobby(
        self,
        handle: str,
        scope: str,
        creator: PlayerID
    ) -> Session:
        return await self._open(handle, scope, SessionKind.MANUAL, creator)

    async def open_balanced_lobby(
        self,
        handle: str,
        scope: str,
        creator: PlayerID
    ) -> Session:
        return await self._open(handle, scope, SessionKind.BALANCED, creator)

    async def _open(
        self,
        handle: str,
        scope: str,
        kind: SessionKind,
        creator: PlayerID
    ) -> Session:
        async with self.registry.lock(handle):
            session = self.registry.create(handle, scope, kind, creator)
            lobbies_opened.labels(kind.value).inc()
            await self.renderer.render_lobby(session)
            return session

    # Enrollment

    async def enroll(
        self,
        handle: str,
        identity: PlayerID,
        side: Optional[Side] = None,
        display_name: Optional[str] = None,
    ) -> Session:
        """
        Add a player to a lobby, registering them first if they are unknown.
        Joining a side one is already on is silently ignored.
        """
        async with self.registry.lock(handle):
            session = self.registry.get(handle)
            session.check_enrollment_open()

            participant = await self.player_service.get_participant(
                identity, display_name or identity
            )
            if not session.rating_eligible:
                # Unrated lobbies do not show ratings
                participant.rating = None

            previous_state = session.state
            try:
                session.enroll(participant, side)
            except DuplicateEnrollment:
                self._logger.debug("%s is already enrolled in %s", identity, handle)
                return session

            await self.renderer.render_lobby(session)
            if (
                session.state is SessionState.AWAITING_CONFIRMATION
                and previous_state is not SessionState.AWAITING_CONFIRMATION
            ):
                await self.renderer.render_confirmation_prompt(session)
            return session

    async def leave(
        self,
        handle: str,
        identity: PlayerID,
        side: Optional[Side] = None
    ) -> Session:
        async with self.registry.lock(handle):
            session = self.registry.get(handle)
            if session.leave(identity, side) is not None:
                await self.renderer.render_lobby(session)
            return session

    # Starting

    async def force_start(self, handle: str, requester: PlayerID) -> Session:
        """
        Start a lobby before it is full. Manual lobbies then wait for an admin
        to confirm, balanced lobbies are split into teams right away.
        """
        async with self.registry.lock(handle):
            session = self.registry.get(handle)
            is_authority = await self._is_authority(requester, session.scope)

            partition = session.force_start(requester, is_authority)
            if isinstance(partition, Partition):
                partition_imbalance.labels("greedy").observe(partition.imbalance)

            await self.renderer.render_lobby(session)
            if session.state is SessionState.AWAITING_CONFIRMATION:
                await self.renderer.render_confirmation_prompt(session)
            return session

    async def start_balanced(self, handle: str, requester: PlayerID) -> Session:
        session = self.registry.get(handle)
        if not isinstance(session, BalancedSession):
            raise InvalidTransition("This is not a balanced lobby!")
        return await self.force_start(handle, requester)

    async def confirm(self, handle: str, approver: PlayerID) -> Session:
        async with self.registry.lock(handle):
            session = self.registry.get(handle)
            session.confirm(await self._is_authority(approver, session.scope))
            self._logger.info("%s confirmed %s", approver, handle)

            await self.renderer.render_lobby(session)
            return session

    async def reject(self, handle: str, approver: PlayerID) -> Session:
        async with self.registry.lock(handle):
            session = self.registry.get(handle)
            session.reject(await self._is_authority(approver, session.scope))
            self._logger.info("%s sent %s back to enrollment", approver, handle)

            await self.renderer.render_lobby(session)
            return session

    async def reshuffle(self, handle: str, approver: PlayerID) -> Session:
        async with self.registry.lock(handle):
            session = self.registry.get(handle)
            partition = session.reshuffle(
                await self._is_authority(approver, session.scope)
            )
            reshuffles.inc()
            partition_imbalance.labels("reshuffle").observe(partition.imbalance)

            await self.renderer.render_lobby(session)
            return session

    # Results

    async def select_winner(
        self,
        handle: str,
        side: Side,
        approver: PlayerID
    ) -> Optional[CompletedResult]:
        """
        Complete the lobby with `side` as the winner and write the result to
        every participant. Returns None when the lobby was already resolved.

        The session is completed and the result made undoable before any
        player record is written. A `PartialPersistenceFailure` is raised
        after the result was shown if some records could not be updated.
        """
        async with self.registry.lock(handle):
            session = self.registry.find(handle)
            if session is None or session.resolved:
                self._logger.debug("Ignoring winner selection for %s", handle)
                return None

            is_authority = await self._is_authority(approver, session.scope)
            if not session.accepts_winner(is_authority):
                return None

            delta = await self.rating_service.compute_delta(session, side)
            result = session.complete(side, delta)
            self.registry.destroy(handle)
            self.ledger.record(result)
            lobbies_completed.labels(session.kind.value).inc()

            try:
                await self.rating_service.apply_result(result)
            finally:
                await self.renderer.render_result(result)
            return result

    # Undo

    async def request_undo(
        self,
        scope: str,
        requester: PlayerID
    ) -> Optional[CompletedResult]:
        """
        Ask for confirmation to revert the last result of `scope`, then wait
        for `confirm_undo` or `reject_undo`. Returns the reverted result, or
        None if the undo was rejected or not answered in time.
        """
        await self._check_authority(requester, scope)

        entry = self.ledger.peek(scope)
        if entry is None:
            raise NothingToUndo("No game results found in this channel to undo!")
        if scope in self._pending_undos:
            raise InvalidTransition("An undo is already waiting for confirmation!")

        answer = asyncio.get_running_loop().create_future()
        self._pending_undos[scope] = answer
        try:
            await self.renderer.render_undo_prompt(entry)
            confirmed = await asyncio.wait_for(
                answer, timeout=config.UNDO_CONFIRMATION_TIMEOUT
            )
        except asyncio.TimeoutError:
            self._logger.info("Undo in %s timed out", scope)
            return await self._undo_outcome(entry, UndoOutcome.TIMED_OUT)
        finally:
            del self._pending_undos[scope]

        if not confirmed:
            self._logger.info("Undo in %s rejected", scope)
            return await self._undo_outcome(entry, UndoOutcome.REJECTED)

        if self.ledger.peek(scope) is not entry:
            await self._undo_outcome(entry, UndoOutcome.SUPERSEDED)
            raise InvalidTransition(
                "A newer result was recorded in the meantime, nothing was undone"
            )

        result = self.ledger.pop(scope)
        try:
            await self.rating_service.reverse_result(result)
        finally:
            await self._undo_outcome(result, UndoOutcome.CONFIRMED)
        return result

    async def _undo_outcome(self, result: CompletedResult, outcome: str) -> None:
        undo_requests.labels(outcome).inc()
        await self.renderer.render_undo_outcome(result, outcome)

    async def confirm_undo(self, scope: str, approver: PlayerID) -> None:
        await self._answer_undo(scope, approver, True)

    async def reject_undo(self, scope: str, approver: PlayerID) -> None:
        await self._answer_undo(scope, approver, False)

    async def _answer_undo(
        self,
        scope: str,
        approver: PlayerID,
        confirmed: bool
    ) -> None:
        await self._check_authority(approver, scope)

        answer = self._pending_undos.get(scope)
        if answer is None or answer.done():
            raise InvalidTransition("There is no undo waiting for confirmation!")
        answer.set_result(confirmed)

    async def shutdown(self) -> None:
        for answer in self._pending_undos.values():
            if not answer.done():
                answer.cancel()
