"""
Prometheus metric definitions
"""

from prometheus_client import Counter, Gauge, Histogram, Info


class UndoOutcome:
    CONFIRMED = "confirmed"
    REJECTED = "rejected"
    TIMED_OUT = "timed out"
    SUPERSEDED = "superseded"


info = Info("build", "Information collected on lobby start")

# =======
# Lobbies
# =======
lobbies_opened = Counter(
    "lobby_sessions_opened_total",
    "Number of lobbies opened",
    ["kind"]
)

lobbies_completed = Counter(
    "lobby_sessions_completed_total",
    "Number of lobbies that had a winner selected",
    ["kind"]
)

live_sessions = Gauge(
    "lobby_sessions_live",
    "Number of lobbies that are not completed yet"
)

reshuffles = Counter(
    "lobby_balanced_reshuffles_total",
    "Number of times teams of a balanced game were reshuffled"
)

partition_imbalance = Histogram(
    "lobby_partition_average_rating_difference",
    "Difference between the average ratings of the two sides after a split",
    ["algorithm"],
    buckets=[0, 5, 10, 25, 50, 75, 100, 150, 200, 300, 500],
)

# ======
# Rating
# ======
rating_deltas = Histogram(
    "lobby_rating_delta",
    "Rating points exchanged per rated game",
    buckets=[0, 4, 8, 12, 16, 20, 24, 28, 32],
)

rating_persistence_failures = Counter(
    "lobby_rating_persistence_failures_total",
    "Player records that could not be updated",
    ["operation"]
)

db_exceptions = Counter(
    "lobby_db_exceptions_total",
    "Number of exceptions raised by the database driver",
    ["class", "code"]
)

undo_requests = Counter(
    "lobby_undo_requests_total",
    "Undo requests by outcome",
    ["outcome"]
)

garbage_commands = Counter(
    "lobby_garbage_commands_total",
    "Commands that could not be understood"
)
