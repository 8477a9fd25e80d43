from datetime import datetime
from enum import Enum, unique
from typing import NamedTuple

from lobby.players import Participant, PlayerID


@unique
class SessionKind(Enum):
    MANUAL = "manual"
    BALANCED = "balanced"


@unique
class SessionState(Enum):
    OPEN = 0
    AWAITING_CONFIRMATION = 1
    ACTIVE = 2
    COMPLETED = 3


@unique
class Side(Enum):
    A = 1
    B = 2

    @property
    def other(self) -> "Side":
        return Side.B if self is Side.A else Side.A

    @property
    def label(self) -> str:
        return f"Team {self.value}"


class CompletedResult(NamedTuple):
    """
    Everything needed to show and to revert the outcome of a finished lobby.
    """
    handle: str
    scope: str
    kind: SessionKind
    side_a: tuple[Participant, ...]
    side_b: tuple[Participant, ...]
    winner: Side
    delta: int
    completed_at: datetime
    rating_eligible: bool

    @property
    def winners(self) -> tuple[Participant, ...]:
        return self.side_a if self.winner is Side.A else self.side_b

    @property
    def losers(self) -> tuple[Participant, ...]:
        return self.side_b if self.winner is Side.A else self.side_a

    @property
    def participant_ids(self) -> list[PlayerID]:
        return [p.identity for p in (*self.side_a, *self.side_b)]

    def to_dict(self) -> dict:
        return {
            "handle": self.handle,
            "scope": self.scope,
            "kind": self.kind.value,
            "side_a": [p.to_dict() for p in self.side_a],
            "side_b": [p.to_dict() for p in self.side_b],
            "winner": self.winner.value,
            "delta": self.delta,
            "completed_at": self.completed_at.isoformat(),
            "rating_eligible": self.rating_eligible,
        }
