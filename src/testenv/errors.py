from __future__ import annotations

from typing import List, Optional, TYPE_CHECKING

if TYPE_CHECKING:  # pragma: no cover
    from .testenv import TestEnv


class TestEnvError(Exception):
    """Base class for sandbox provisioning and teardown failures."""

    __test__ = False


class KubeError(TestEnvError):
    """Raised when the control plane rejects a create, get or delete call."""

    def __init__(self, message: str, *, command: Optional[List[str]] = None, stderr: str = "") -> None:
        super().__init__(message)
        self.command = command
        self.stderr = stderr


class NotFoundError(KubeError):
    """Raised when the requested object does not exist (yet)."""


class AlreadyExistsError(KubeError):
    """Raised when creating an object whose name is already taken."""


class WaitTimeoutError(TestEnvError):
    """Raised when a poll loop exhausts its timeout without being satisfied."""


class WatcherError(TestEnvError):
    """Raised when the background cluster watcher gave up."""


class SetupError(TestEnvError):
    """Raised by ``new_test_env`` when provisioning fails partway through.

    ``testenv`` is the partially provisioned sandbox; callers are expected to
    call ``testenv.teardown()`` to release whatever was already created.
    """

    def __init__(self, testenv: "TestEnv", cause: BaseException) -> None:
        super().__init__(f"testenv {testenv.name} setup failed: {cause}")
        self.testenv = testenv


class EmptyCleanupStack(IndexError):
    """Raised when popping from a cleanup stack with no actions left."""


__all__ = [
    "AlreadyExistsError",
    "EmptyCleanupStack",
    "KubeError",
    "NotFoundError",
    "SetupError",
    "TestEnvError",
    "WaitTimeoutError",
    "WatcherError",
]
