from __future__ import annotations

from typing import Callable, List

from .errors import EmptyCleanupStack

CleanupAction = Callable[[], None]


class CleanupStack:
    """LIFO undo log of zero-argument cleanup actions.

    Actions are pushed in provisioning order and popped in reverse, so a
    resource is always removed before the resources it depends on.
    """

    def __init__(self) -> None:
        self._actions: List[CleanupAction] = []

    def push(self, action: CleanupAction) -> None:
        self._actions.append(action)

    def pop(self) -> CleanupAction:
        if not self._actions:
            raise EmptyCleanupStack("cleanup stack is empty")
        return self._actions.pop()

    def __len__(self) -> int:
        return len(self._actions)


__all__ = ["CleanupAction", "CleanupStack"]
