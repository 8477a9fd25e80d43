"""
Algorithms for splitting a pool of participants into two sides.
"""

import logging
import random
from typing import Iterable, NamedTuple, Optional, Sequence

from .config import config
from .decorators import timed
from .players import Participant

logger = logging.getLogger(__name__)


class Partition(NamedTuple):
    side_a: list[Participant]
    side_b: list[Participant]

    @property
    def sums(self) -> tuple[int, int]:
        return (
            sum(rating_of(p) for p in self.side_a),
            sum(rating_of(p) for p in self.side_b),
        )

    @property
    def averages(self) -> tuple[float, float]:
        return (_average(self.side_a), _average(self.side_b))

    @property
    def imbalance(self) -> float:
        """Absolute difference between the side averages."""
        avg_a, avg_b = self.averages
        return abs(avg_a - avg_b)


def rating_of(participant: Participant) -> int:
    if participant.rating is None:
        return config.START_RATING
    return participant.rating


def _average(participants: Sequence[Participant]) -> float:
    if not participants:
        return 0
    return sum(rating_of(p) for p in participants) / len(participants)


def greedy_partition(pool: Iterable[Participant]) -> Partition:
    """
    Walk the pool from the highest to the lowest rating and put each player on
    the side with the lower rating sum so far. Ties go to side A.

    The result is deterministic and the difference between the side sums is
    never larger than the highest rating in the pool, but it is not
    necessarily the best possible split.

    # Examples
    >>> pool = [Participant(str(r), str(r), rating=r) for r in (1200, 1400, 1600, 1800)]
    >>> partition = greedy_partition(pool)
    >>> [p.rating for p in partition.side_a], [p.rating for p in partition.side_b]
    ([1800, 1200], [1600, 1400])
    """
    side_a: list[Participant] = []
    side_b: list[Participant] = []
    sum_a = sum_b = 0

    for participant in sorted(pool, key=rating_of, reverse=True):
        rating = rating_of(participant)
        if sum_a <= sum_b:
            side_a.append(participant)
            sum_a += rating
        else:
            side_b.append(participant)
            sum_b += rating

    logger.debug("Greedy split sums: %d vs %d", sum_a, sum_b)
    return Partition(side_a, side_b)


def _changed_sides(
    candidate: Partition,
    previous_a: set,
    previous_b: set
) -> int:
    return (
        sum(1 for p in candidate.side_a if p.identity not in previous_a) +
        sum(1 for p in candidate.side_b if p.identity not in previous_b)
    )


@timed(logger=logger, limit=0.1)
def reshuffle_partition(
    side_a: Sequence[Participant],
    side_b: Sequence[Participant],
    iterations: Optional[int] = None,
    tie_threshold: Optional[float] = None,
    rng: Optional[random.Random] = None,
) -> Partition:
    """
    Look for a new split of the same players that keeps the sides about as
    balanced but moves players around.

    Tries `iterations` random shuffles, each cut into the current side sizes.
    The candidate with the smallest difference of side averages wins. When two
    candidates are within `tie_threshold` of each other, the one moving more
    players relative to the current split wins.
    """
    if iterations is None:
        iterations = config.RESHUFFLE_ITERATIONS
    if tie_threshold is None:
        tie_threshold = config.RESHUFFLE_TIE_THRESHOLD
    if rng is None:
        rng = random.Random()

    size_a, size_b = len(side_a), len(side_b)
    previous_a = {p.identity for p in side_a}
    previous_b = {p.identity for p in side_b}
    pool = [*side_a, *side_b]

    best: Optional[Partition] = None
    best_imbalance = 0.0
    best_changes = 0

    for _ in range(max(1, iterations)):
        shuffled = list(pool)
        rng.shuffle(shuffled)
        candidate = Partition(
            shuffled[:size_a],
            shuffled[size_a:size_a + size_b]
        )
        imbalance = candidate.imbalance
        changes = _changed_sides(candidate, previous_a, previous_b)

        if (
            best is None
            or imbalance < best_imbalance - tie_threshold
            or (
                abs(imbalance - best_imbalance) <= tie_threshold
                and changes > best_changes
            )
        ):
            best, best_imbalance, best_changes = candidate, imbalance, changes

    logger.debug(
        "Reshuffled %d players, imbalance %.1f with %d moved",
        len(pool),
        best_imbalance,
        best_changes
    )
    return best
