from typing import Optional

from lobby.config import config
from lobby.exceptions import InsufficientParticipants
from lobby.formation import Partition, greedy_partition, reshuffle_partition
from lobby.players import Participant, PlayerID
from lobby.roster import Roster

from .session import Session
from .typedefs import SessionKind, SessionState, Side


class BalancedSession(Session):
    """
    Players join a shared pool and the teams are built from their ratings
    once the lobby is started. Results change ratings.
    """
    kind = SessionKind.BALANCED
    rating_eligible = True

    def __init__(self, handle: str, scope: str, creator: PlayerID):
        super().__init__(handle, scope, creator)
        self.pool = Roster(config.BALANCED_POOL_SIZE, "Players")

    @property
    def participants(self) -> list[Participant]:
        if self.state is SessionState.OPEN:
            return self.pool.participants
        return super().participants

    def enroll(self, participant: Participant, side: Optional[Side] = None) -> None:
        self.check_enrollment_open()

        self.pool.add(participant)
        self._logger.debug("%s joined the pool", participant)

    def leave(
        self,
        identity: PlayerID,
        side: Optional[Side] = None
    ) -> Optional[Participant]:
        self.check_enrollment_open()

        removed = self.pool.remove(identity)
        if removed:
            self._logger.debug("%s left the pool", removed)
        return removed

    def force_start(self, requester: PlayerID, is_authority: bool) -> Partition:
        """
        Split the pool with the greedy algorithm and go straight to active.
        """
        self.check_state(SessionState.OPEN)
        self.check_control(requester, is_authority)
        if len(self.pool) < config.BALANCED_MIN_PLAYERS:
            raise InsufficientParticipants(
                f"Need at least {config.BALANCED_MIN_PLAYERS} players to "
                "start a balanced game!"
            )

        # The pool is frozen from here on
        self.state = SessionState.ACTIVE
        partition = greedy_partition(self.pool)
        self._assign(partition)
        self._logger.info(
            "Started with %dv%d, averages %.0f vs %.0f",
            len(partition.side_a),
            len(partition.side_b),
            *partition.averages
        )
        return partition

    def reshuffle(self, is_authority: bool, rng=None) -> Partition:
        self.check_authority(is_authority)
        self.check_state(SessionState.ACTIVE)

        partition = reshuffle_partition(
            self.side_a.participants,
            self.side_b.participants,
            rng=rng
        )
        self._assign(partition)
        self._logger.debug(
            "Reshuffled, averages %.0f vs %.0f", *partition.averages
        )
        return partition

    def _assign(self, partition: Partition) -> None:
        self.side_a.clear()
        self.side_b.clear()
        for participant in partition.side_a:
            self.side_a.add(participant)
        for participant in partition.side_b:
            self.side_b.add(participant)

    def to_dict(self) -> dict:
        return {
            **super().to_dict(),
            "pool": self.pool.to_dict(),
        }
