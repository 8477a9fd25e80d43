"""
Player type definitions
"""

from datetime import datetime
from typing import NamedTuple, Optional

PlayerID = str


class UserRecord(NamedTuple):
    """
    A snapshot of a player's persistent record as returned by a player store.
    """
    identity: PlayerID
    display_name: str
    rating: int
    games_played: int = 0
    wins: int = 0
    losses: int = 0
    external_handle: Optional[str] = None
    registered_at: Optional[datetime] = None

    @property
    def win_rate(self) -> float:
        """Percentage of games won, rounded to one decimal."""
        if self.games_played <= 0:
            return 0.0
        return round(self.wins / self.games_played * 100, 1)


class Participant:
    """
    A player taking part in one lobby.

    `rating` is a snapshot. Balanced lobbies take it when the player joins
    and refresh it when the result is applied, manual lobbies only fill it in
    when they need it.
    """

    def __init__(
        self,
        identity: PlayerID,
        display_name: str,
        external_handle: Optional[str] = None,
        rating: Optional[int] = None,
    ) -> None:
        self.identity = identity
        self.display_name = display_name
        self.external_handle = external_handle
        self.rating = rating

    @classmethod
    def from_record(cls, record: UserRecord) -> "Participant":
        return cls(
            record.identity,
            record.display_name,
            external_handle=record.external_handle,
            rating=record.rating,
        )

    def copy(self) -> "Participant":
        return Participant(
            self.identity,
            self.display_name,
            external_handle=self.external_handle,
            rating=self.rating,
        )

    def to_dict(self) -> dict:
        return {
            "identity": self.identity,
            "display_name": self.display_name,
            "external_handle": self.external_handle,
            "rating": self.rating,
        }

    def __str__(self) -> str:
        return f"Participant({self.display_name}, {self.identity}, {self.rating})"

    def __repr__(self) -> str:
        return (
            f"Participant(identity={self.identity!r}, "
            f"display_name={self.display_name!r}, "
            f"external_handle={self.external_handle!r}, rating={self.rating})"
        )

    def __hash__(self) -> int:
        return hash(self.identity)

    def __eq__(self, other: object) -> bool:
        return isinstance(other, type(self)) and self.identity == other.identity
