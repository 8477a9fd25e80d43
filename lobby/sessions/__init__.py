"""
Lobby sessions and the state machine shared by all kinds of lobbies
"""

from .balanced import BalancedSession
from .manual import ManualSession
from .session import Session
from .typedefs import CompletedResult, SessionKind, SessionState, Side

# Which class implements which kind of lobby
SESSION_TYPES: dict[SessionKind, type[Session]] = {
    SessionKind.MANUAL: ManualSession,
    SessionKind.BALANCED: BalancedSession,
}

__all__ = (
    "SESSION_TYPES",
    "BalancedSession",
    "CompletedResult",
    "ManualSession",
    "Session",
    "SessionKind",
    "SessionState",
    "Side",
)
