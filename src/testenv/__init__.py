"""Namespace-isolated sandboxes for operator e2e suites."""

from .config import TestEnvConfig
from .deployment import Deployment
from .errors import KubeError, NotFoundError, SetupError, TestEnvError, WaitTimeoutError, WatcherError
from .testenv import TestEnv, TestEnvState, new_default_test_env, new_test_env

__all__ = [
    "Deployment",
    "KubeError",
    "NotFoundError",
    "SetupError",
    "TestEnv",
    "TestEnvConfig",
    "TestEnvError",
    "TestEnvState",
    "WaitTimeoutError",
    "WatcherError",
    "new_default_test_env",
    "new_test_env",
]
