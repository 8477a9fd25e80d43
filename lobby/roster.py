from typing import Iterator, Optional

from .config import config
from .exceptions import CapacityExceeded, DuplicateEnrollment
from .players import Participant, PlayerID


class Roster():
    """
    The participants on one side of a lobby, or the shared pool of a balanced
    lobby before it is split. Iteration follows join order.
    """

    def __init__(self, capacity: Optional[int] = None, name: str = "Roster"):
        self.capacity = capacity
        self.name = name
        self._members: dict[PlayerID, Participant] = {}

    def __contains__(self, identity: PlayerID) -> bool:
        return identity in self._members

    def __iter__(self) -> Iterator[Participant]:
        return iter(self._members.values())

    def __len__(self) -> int:
        return len(self._members)

    def __repr__(self) -> str:
        return f"Roster({self.name}, {list(self._members)}, capacity={self.capacity})"

    @property
    def participants(self) -> list[Participant]:
        return list(self._members.values())

    def is_full(self) -> bool:
        return self.capacity is not None and len(self) >= self.capacity

    def get(self, identity: PlayerID) -> Optional[Participant]:
        return self._members.get(identity)

    def add(self, participant: Participant) -> None:
        if participant.identity in self._members:
            raise DuplicateEnrollment(
                f"{participant.display_name} is already in {self.name}"
            )
        if self.is_full():
            raise CapacityExceeded(
                f"{self.name} is full ({len(self)}/{self.capacity})!"
            )

        self._members[participant.identity] = participant

    def remove(self, identity: PlayerID) -> Optional[Participant]:
        return self._members.pop(identity, None)

    def clear(self) -> None:
        self._members.clear()

    def ratings(self) -> list[int]:
        return [
            p.rating if p.rating is not None else config.START_RATING
            for p in self._members.values()
        ]

    def total_rating(self) -> int:
        return sum(self.ratings())

    def average_rating(self) -> float:
        """
        Average rating of the members, or the start rating when empty.
        """
        if not self._members:
            return config.START_RATING
        return self.total_rating() / len(self)

    def to_dict(self) -> dict:
        return {
            "name": self.name,
            "capacity": self.capacity,
            "participants": [p.to_dict() for p in self],
        }
