"""
Applies and reverts the rating changes of finished lobbies
"""

from typing import Iterable

from .abc.player_store import PlayerStore
from .config import config
from .core import Service
from .decorators import with_logger
from .exceptions import PartialPersistenceFailure
from .metrics import rating_deltas, rating_persistence_failures
from .players import Participant, PlayerID
from .rating import average_rating, rating_delta
from .sessions import CompletedResult, Session, Side


@with_logger
class RatingService(Service):
    """
    Service responsible for computing rating deltas and writing them to the
    player store.

    Every participant is written independently. A failure for one player is
    logged and reported at the end, after all other players have been
    written, and nothing is rolled back. Undoing the result later repairs each
    player on its own.
    """

    def __init__(self, player_store: PlayerStore):
        self._store = player_store

    async def refresh_ratings(self, participants: Iterable[Participant]) -> None:
        """
        Replace the rating snapshots with the values currently in the store.
        """
        for participant in participants:
            rating = await self._store.get_rating(participant.identity)
            if rating is None:
                self._logger.warning(
                    "No rating on record for %s, using %d",
                    participant,
                    config.START_RATING
                )
                rating = config.START_RATING
            participant.rating = rating

    async def compute_delta(self, session: Session, winner: Side) -> int:
        """
        Rating points the winners of `session` receive. Zero for lobbies that
        are not rated.
        """
        if not session.rating_eligible:
            return 0

        await self.refresh_ratings(session.participants)
        winners = session.side(winner)
        losers = session.side(winner.other)

        winner_avg = average_rating(p.rating for p in winners)
        loser_avg = average_rating(p.rating for p in losers)
        delta = rating_delta(winner_avg, loser_avg, config.K_FACTOR)

        self._logger.debug(
            "Rating delta for %s: %.1f vs %.1f -> %d",
            session.handle,
            winner_avg,
            loser_avg,
            delta
        )
        return delta

    async def apply_result(self, result: CompletedResult) -> None:
        self._logger.info(
            "Applying result of %s: %s won, delta %d",
            result.handle,
            result.winner.label,
            result.delta
        )
        if result.rating_eligible:
            rating_deltas.observe(result.delta)

        failed = []
        for participant, won in self._outcomes(result):
            try:
                await self._store.apply_result(
                    participant.identity, result.delta, won
                )
            except Exception:
                self._logger.exception(
                    "Failed to apply result of %s to %s",
                    result.handle,
                    participant
                )
                failed.append(participant.identity)

        self._check_failures(failed, result, "apply")

    async def reverse_result(self, result: CompletedResult) -> None:
        """
        Replay the recorded delta backwards. The delta is never recomputed.
        """
        self._logger.info(
            "Reverting result of %s: %s won, delta %d",
            result.handle,
            result.winner.label,
            result.delta
        )

        failed = []
        for participant, won in self._outcomes(result):
            try:
                await self._store.reverse_result(
                    participant.identity, result.delta, won
                )
            except Exception:
                self._logger.exception(
                    "Failed to revert result of %s for %s",
                    result.handle,
                    participant
                )
                failed.append(participant.identity)

        self._check_failures(failed, result, "reverse")

    @staticmethod
    def _outcomes(result: CompletedResult):
        for participant in result.winners:
            yield participant, True
        for participant in result.losers:
            yield participant, False

    def _check_failures(
        self,
        failed: list[PlayerID],
        result: CompletedResult,
        operation: str
    ) -> None:
        if not failed:
            return

        rating_persistence_failures.labels(operation).inc(len(failed))
        self._logger.warning(
            "Could not %s result of %s for %d of %d players: %s",
            operation,
            result.handle,
            len(failed),
            len(result.participant_ids),
            failed
        )
        raise PartialPersistenceFailure(
            f"Stats could not be updated for {len(failed)} player(s)",
            failed,
            result
        )
