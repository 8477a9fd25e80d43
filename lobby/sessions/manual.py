from typing import Optional

from lobby.config import config
from lobby.exceptions import (
    CapacityExceeded,
    DuplicateEnrollment,
    InsufficientParticipants,
    InvalidTransition
)
from lobby.players import Participant, PlayerID
from lobby.roster import Roster

from .session import Session
from .typedefs import SessionKind, SessionState, Side


class ManualSession(Session):
    """
    Players pick their own side. Unranked: results only change the game
    counters, never the ratings.

    When both sides are full the lobby waits for an admin to confirm.
    """
    kind = SessionKind.MANUAL
    rating_eligible = False

    def __init__(self, handle: str, scope: str, creator: PlayerID):
        super().__init__(handle, scope, creator)
        self.side_a = Roster(config.MANUAL_TEAM_SIZE, Side.A.label)
        self.side_b = Roster(config.MANUAL_TEAM_SIZE, Side.B.label)

    def enroll(self, participant: Participant, side: Optional[Side] = None) -> None:
        """
        Put the participant on `side`, moving them off the other side if
        needed. A move onto a full side leaves them where they were.
        """
        if side is None:
            raise InvalidTransition("Pick a team to join!")
        self.check_enrollment_open()

        target = self.side(side)
        if participant.identity in target:
            raise DuplicateEnrollment(
                f"{participant.display_name} is already in {target.name}"
            )
        if target.is_full():
            raise CapacityExceeded(f"{target.name} is full!")

        self.side(side.other).remove(participant.identity)
        target.add(participant)
        self._logger.debug("%s joined %s", participant, target.name)

        if self.side_a.is_full() and self.side_b.is_full():
            self.state = SessionState.AWAITING_CONFIRMATION
            self._logger.debug("Both teams are full, awaiting confirmation")

    def leave(
        self,
        identity: PlayerID,
        side: Optional[Side] = None
    ) -> Optional[Participant]:
        self.check_enrollment_open()

        if side is not None:
            removed = self.side(side).remove(identity)
        else:
            removed = self.side_a.remove(identity) or self.side_b.remove(identity)

        if removed:
            self._logger.debug("%s left", removed)
        return removed

    def force_start(self, requester: PlayerID, is_authority: bool) -> None:
        self.check_state(SessionState.OPEN)
        self.check_control(requester, is_authority)
        if not self.participants:
            raise InsufficientParticipants("Cannot start a game with no players!")

        self.state = SessionState.AWAITING_CONFIRMATION
        self._logger.debug("Force started by %s", requester)

    def confirm(self, is_authority: bool) -> None:
        self.check_authority(is_authority)
        self.check_state(SessionState.AWAITING_CONFIRMATION)

        self.state = SessionState.ACTIVE

    def reject(self, is_authority: bool) -> None:
        self.check_authority(is_authority)
        self.check_state(SessionState.AWAITING_CONFIRMATION)

        self.state = SessionState.OPEN
