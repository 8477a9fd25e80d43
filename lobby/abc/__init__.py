"""
Interfaces for the collaborators a lobby instance depends on
"""

from .authority import Authority
from .player_store import PlayerStore
from .renderer import Renderer

__all__ = (
    "Authority",
    "PlayerStore",
    "Renderer",
)
