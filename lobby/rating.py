"""
Elo style rating math for two sided games.

Both sides are represented by the average rating of their members. The
winning side gains exactly as many points as the losing side loses.
"""

import math
from typing import Iterable, NamedTuple

from .config import config


class RatingChange(NamedTuple):
    """
    How a single result changes a player record.
    """
    rating: int
    games: int
    wins: int
    losses: int

    def inverse(self) -> "RatingChange":
        return RatingChange(-self.rating, -self.games, -self.wins, -self.losses)


def expected_score(rating_a: float, rating_b: float) -> float:
    """
    Probability that a side rated `rating_a` beats a side rated `rating_b`.

    # Examples
    >>> expected_score(1500, 1500)
    0.5
    """
    return 1 / (1 + 10 ** ((rating_b - rating_a) / 400))


def rating_delta(
    winner_avg: float,
    loser_avg: float,
    k_factor: float = 32
) -> int:
    """
    Points transferred from the losing side to the winning side.

    Halves are rounded up.

    # Examples
    >>> rating_delta(1500, 1500, 32)
    16
    """
    delta = math.floor(k_factor * (1 - expected_score(winner_avg, loser_avg)) + 0.5)
    return max(0, delta)


def average_rating(ratings: Iterable[float]) -> float:
    ratings = list(ratings)
    if not ratings:
        return config.START_RATING
    return sum(ratings) / len(ratings)


def result_change(delta: int, won: bool) -> RatingChange:
    """
    The change applied to one participant of a finished game.
    """
    if won:
        return RatingChange(delta, 1, 1, 0)
    return RatingChange(-delta, 1, 0, 1)


def reversal_change(delta: int, had_won: bool) -> RatingChange:
    """
    The exact inverse of `result_change` for the same arguments.
    """
    return result_change(delta, had_won).inverse()
