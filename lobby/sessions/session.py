import logging
from typing import Optional

from lobby.exceptions import InvalidTransition, NotAuthorized
from lobby.players import Participant, PlayerID
from lobby.roster import Roster
from lobby.timing import datetime_now

from .typedefs import CompletedResult, SessionKind, SessionState, Side


class Session:
    """
    State machine for one lobby, from open enrollment until a winner has been
    selected.

    Methods validate everything before changing any state, so a raised
    `LobbyError` always leaves the session untouched. Whether the caller is an
    authority is decided by the caller and passed in.
    """
    kind: SessionKind
    rating_eligible = False

    def __init__(self, handle: str, scope: str, creator: PlayerID):
        self.handle = handle
        self.scope = scope
        self.creator = creator
        self.state = SessionState.OPEN
        self.resolved = False
        self.created_at = datetime_now()
        self.side_a = Roster(name=Side.A.label)
        self.side_b = Roster(name=Side.B.label)
        self._logger = logging.getLogger(
            f"{self.__class__.__qualname__}.{handle}"
        )
        self._logger.debug("%s created", self)

    def __str__(self) -> str:
        return f"{self.__class__.__name__}({self.handle}, {self.state.name})"

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__name__}(handle={self.handle!r}, "
            f"scope={self.scope!r}, state={self.state.name}, "
            f"side_a={self.side_a!r}, side_b={self.side_b!r})"
        )

    @property
    def participants(self) -> list[Participant]:
        return [*self.side_a, *self.side_b]

    def side(self, side: Side) -> Roster:
        return self.side_a if side is Side.A else self.side_b

    def side_of(self, identity: PlayerID) -> Optional[Side]:
        if identity in self.side_a:
            return Side.A
        if identity in self.side_b:
            return Side.B
        return None

    # Checks

    def check_state(self, *states: SessionState) -> None:
        if self.state not in states:
            raise InvalidTransition(
                f"Not possible while the lobby is {self.state.name.lower()}"
            )

    def check_enrollment_open(self) -> None:
        if self.state is not SessionState.OPEN:
            raise InvalidTransition(
                "This lobby does not accept players anymore!"
            )

    def check_control(self, requester: PlayerID, is_authority: bool) -> None:
        """Creator or authority"""
        if not is_authority and requester != self.creator:
            raise NotAuthorized(
                f"Only the lobby creator ({self.creator}) or admins can do that!"
            )

    def check_authority(self, is_authority: bool) -> None:
        if not is_authority:
            raise NotAuthorized("Only admins can do that!")

    # Events, overridden per kind

    def enroll(self, participant: Participant, side: Optional[Side] = None) -> None:
        raise NotImplementedError()  # pragma: no cover

    def leave(
        self,
        identity: PlayerID,
        side: Optional[Side] = None
    ) -> Optional[Participant]:
        raise NotImplementedError()  # pragma: no cover

    def force_start(self, requester: PlayerID, is_authority: bool) -> None:
        raise NotImplementedError()  # pragma: no cover

    def confirm(self, is_authority: bool) -> None:
        raise InvalidTransition("This lobby does not need a confirmation")

    def reject(self, is_authority: bool) -> None:
        raise InvalidTransition("This lobby does not need a confirmation")

    def reshuffle(self, is_authority: bool, rng=None) -> None:
        raise InvalidTransition("Only balanced games can be reshuffled")

    def accepts_winner(self, is_authority: bool) -> bool:
        """
        Validate a winner selection. Returns False when a winner was already
        selected, in which case the event should be ignored.
        """
        if self.resolved:
            return False
        self.check_authority(is_authority)
        self.check_state(SessionState.ACTIVE)
        return True

    def complete(self, winner: Side, delta: int) -> CompletedResult:
        """
        Record the winner and freeze the session.
        """
        self.check_state(SessionState.ACTIVE)
        if self.resolved:
            raise InvalidTransition("A winner was already selected")

        self.resolved = True
        self.state = SessionState.COMPLETED
        self._logger.info("%s won with a rating delta of %d", winner.label, delta)

        return CompletedResult(
            handle=self.handle,
            scope=self.scope,
            kind=self.kind,
            side_a=tuple(p.copy() for p in self.side_a),
            side_b=tuple(p.copy() for p in self.side_b),
            winner=winner,
            delta=delta,
            completed_at=datetime_now(),
            rating_eligible=self.rating_eligible,
        )

    def to_dict(self) -> dict:
        return {
            "handle": self.handle,
            "scope": self.scope,
            "kind": self.kind.value,
            "state": self.state.name,
            "creator": self.creator,
            "side_a": self.side_a.to_dict(),
            "side_b": self.side_b.to_dict(),
        }
