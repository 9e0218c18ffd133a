"""
History Manager

Bounded undo/redo over immutable snapshots.

- ``push_state`` records a new present and discards the redo branch
- ``undo`` / ``redo`` move one step and return the new present
- Each stack keeps at most ``max_size`` snapshots; the oldest past entry
  and the farthest future entry are dropped first

CRITICAL: Snapshot equality is structural (``==``), never identity.
Producers hand in freshly built collections, and pushing a state equal
to the present must not create a history entry.
"""

import copy
from typing import Generic, Optional, TypeVar

import structlog

from statement_ledger.config import get_settings

logger = structlog.get_logger(__name__)

T = TypeVar("T")


class HistoryManager(Generic[T]):
    """Undo/redo stacks around a present snapshot."""

    def __init__(self, initial: T, max_size: Optional[int] = None):
        self._max_size = max_size or get_settings().history_max_size
        self._past: tuple[T, ...] = ()
        self._present: T = copy.deepcopy(initial)
        self._future: tuple[T, ...] = ()

    @property
    def past(self) -> tuple[T, ...]:
        return self._past

    @property
    def present(self) -> T:
        return self._present

    @property
    def future(self) -> tuple[T, ...]:
        return self._future

    @property
    def max_size(self) -> int:
        return self._max_size

    @property
    def can_undo(self) -> bool:
        return bool(self._past)

    @property
    def can_redo(self) -> bool:
        return bool(self._future)

    def push_state(self, state: T) -> bool:
        """
        Record ``state`` as the new present.

        Returns:
            False when ``state`` equals the present (nothing recorded)
        """
        if state == self._present:
            return False

        self._past = (self._past + (self._present,))[-self._max_size:]
        self._present = copy.deepcopy(state)
        self._future = ()
        return True

    def undo(self) -> Optional[T]:
        if not self._past:
            return None

        previous = self._past[-1]
        self._future = ((self._present,) + self._future)[:self._max_size]
        self._past = self._past[:-1]
        self._present = previous
        logger.debug("history_undo", past=len(self._past), future=len(self._future))
        return previous

    def redo(self) -> Optional[T]:
        if not self._future:
            return None

        following = self._future[0]
        self._past = (self._past + (self._present,))[-self._max_size:]
        self._future = self._future[1:]
        self._present = following
        logger.debug("history_redo", past=len(self._past), future=len(self._future))
        return following

    def clear_history(self) -> None:
        """Drop both stacks, keep the present."""
        self._past = ()
        self._future = ()
