from abc import ABC, abstractmethod

from lobby.sessions import CompletedResult, Session


class Renderer(ABC):
    """
    The user facing side of a lobby: shows lobby cards, prompts and results.

    Calls are awaited so that prompts are never shown twice, but the lobby
    state never depends on what the renderer does.
    """

    @abstractmethod
    async def render_lobby(self, session: Session) -> None:
        pass  # pragma: no cover

    @abstractmethod
    async def render_confirmation_prompt(self, session: Session) -> None:
        pass  # pragma: no cover

    @abstractmethod
    async def render_result(self, result: CompletedResult) -> None:
        pass  # pragma: no cover

    @abstractmethod
    async def render_undo_prompt(self, result: CompletedResult) -> None:
        pass  # pragma: no cover

    @abstractmethod
    async def render_undo_outcome(
        self,
        result: CompletedResult,
        outcome: str
    ) -> None:
        """
        `outcome` is one of the `lobby.metrics.UndoOutcome` values.
        """
        pass  # pragma: no cover
