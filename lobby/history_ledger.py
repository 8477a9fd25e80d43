"""
Completed results that can still be undone
"""

from typing import Optional

from .core import Service
from .decorators import with_logger
from .exceptions import NothingToUndo
from .sessions import CompletedResult


@with_logger
class HistoryLedger(Service):
    """
    Keeps the most recent completed result of every scope.

    Only one step of undo is supported: recording a result makes the previous
    one of the same scope unreachable.
    """

    def __init__(self):
        self._entries: dict[str, CompletedResult] = {}

    def __contains__(self, scope: str) -> bool:
        return scope in self._entries

    def __len__(self) -> int:
        return len(self._entries)

    def record(self, result: CompletedResult) -> None:
        replaced = self._entries.get(result.scope)
        if replaced is not None:
            self._logger.debug(
                "Result of %s in %s is no longer undoable",
                replaced.handle,
                result.scope
            )
        self._entries[result.scope] = result

    def peek(self, scope: str) -> Optional[CompletedResult]:
        return self._entries.get(scope)

    def pop(self, scope: str) -> CompletedResult:
        try:
            return self._entries.pop(scope)
        except KeyError:
            raise NothingToUndo(
                "No game results found in this channel to undo!"
            ) from None
