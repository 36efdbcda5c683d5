"""Namespace-isolated sandbox for running e2e suites against a deployed operator.

A ``TestEnv`` provisions, in dependency order, a namespace, a service account,
a role, a role binding and the operator deployment. Every successful create
pushes its matching delete onto a cleanup stack; ``teardown()`` drains that
stack in reverse, logging failures and carrying on so a single stuck object
never keeps the rest of the sandbox alive.
"""

from __future__ import annotations

import enum
import logging
from typing import Any, Callable, Dict, MutableMapping, Optional, Tuple

from src.common.names import SandboxNames, derived_names, validate_base_name, validate_label

from . import resources
from .cleanup import CleanupStack
from .config import TestEnvConfig
from .deployment import Deployment
from .errors import EmptyCleanupStack, NotFoundError, SetupError, TestEnvError
from .kube import KubeClient, describe
from .wait import poll_immediate
from .watcher import ClusterWatcher

logger = logging.getLogger(__name__)

NAMESPACE_ACTIVE = "Active"
NAMESPACE_TERMINATING = "Terminating"
WATCHER_STOP_TIMEOUT = 5.0


class TestEnvState(enum.Enum):
    __test__ = False

    UNINITIALIZED = "uninitialized"
    PROVISIONING = "provisioning"
    READY = "ready"
    FAILED = "failed"
    TORN_DOWN = "torn_down"


class _SandboxLogAdapter(logging.LoggerAdapter):
    def process(self, msg: Any, kwargs: MutableMapping[str, Any]) -> Tuple[Any, MutableMapping[str, Any]]:
        return f"[testenv {self.extra['testenv']}] {msg}", kwargs


def namespace_phase(namespace: Dict[str, Any]) -> Optional[str]:
    status = namespace.get("status") or {}
    return status.get("phase")


def namespace_ready(kube_client: Any, name: str) -> bool:
    try:
        namespace = kube_client.get("namespace", name)
    except NotFoundError:
        # Creation may not be visible yet
        return False
    return namespace_phase(namespace) == NAMESPACE_ACTIVE


def namespace_gone(kube_client: Any, name: str) -> bool:
    try:
        namespace = kube_client.get("namespace", name)
    except NotFoundError:
        return True
    # Only an explicit Terminating phase keeps us waiting.
    return namespace_phase(namespace) != NAMESPACE_TERMINATING


def deployment_ready(deployment: Dict[str, Any], desired: int) -> bool:
    status = deployment.get("status") or {}
    updated = int(status.get("updatedReplicas") or 0)
    total = int(status.get("replicas") or 0)
    ready = int(status.get("readyReplicas") or 0)
    if updated < total:
        return False
    if ready < desired:
        return False
    return True


class TestEnv:
    """A namespace-isolated virtual cluster environment to run tests against."""

    __test__ = False

    def __init__(
        self,
        name: str,
        config: Optional[TestEnvConfig] = None,
        *,
        kube_client: Any = None,
    ) -> None:
        validate_base_name(name)
        self._name = name
        self._names: SandboxNames = derived_names(name)
        self._config = config or TestEnvConfig()
        self._state = TestEnvState.UNINITIALIZED
        self._cleanup = CleanupStack()
        self.log = _SandboxLogAdapter(logger, {"testenv": name})

        self._kube_client = kube_client if kube_client is not None else KubeClient(self._config.kubectl_cmd)
        self.log.info("Using kube-apiserver %s", self._kube_client.server())
        self.log.info("Using metrics address %s", self._config.metrics_address)

        self._watcher: Optional[ClusterWatcher] = None
        if self._config.watch_interval > 0:
            self._watcher = ClusterWatcher(
                self._kube_client,
                interval=self._config.watch_interval,
                failure_threshold=self._config.watch_failure_threshold,
                name=name,
            )
            self._watcher.start()

    @property
    def name(self) -> str:
        return self._name

    @property
    def names(self) -> SandboxNames:
        return self._names

    @property
    def namespace(self) -> str:
        return self._names.namespace

    @property
    def config(self) -> TestEnvConfig:
        return self._config

    @property
    def kube_client(self) -> Any:
        return self._kube_client

    @property
    def state(self) -> TestEnvState:
        return self._state

    @property
    def initialized(self) -> bool:
        return self._state is TestEnvState.READY

    @property
    def metrics_address(self) -> str:
        return self._config.metrics_address

    @property
    def watcher(self) -> Optional[ClusterWatcher]:
        return self._watcher

    def __enter__(self) -> "TestEnv":
        try:
            self.setup()
        except BaseException:
            self.teardown()
            raise
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.teardown()

    def setup(self) -> None:
        if self._state is not TestEnvState.UNINITIALIZED:
            raise TestEnvError(f"testenv {self._name} setup already attempted (state: {self._state.value})")
        self.log.info("testenv initializing.")
        self._state = TestEnvState.PROVISIONING

        steps: Tuple[Callable[[], None], ...] = (
            self._create_namespace,
            self._create_service_account,
            self._create_role,
            self._create_role_binding,
            self._create_operator,
        )
        try:
            for step in steps:
                self._check_watcher()
                step()
        except BaseException:
            self._state = TestEnvState.FAILED
            raise

        self._state = TestEnvState.READY
        self.log.info(
            "testenv initialized. namespace=%s operatorImage=%s splunkImage=%s sparkImage=%s",
            self.namespace,
            self._config.operator_image,
            self._config.splunk_image,
            self._config.spark_image,
        )

    def teardown(self) -> None:
        if self._config.skip_teardown:
            self.log.info("testenv teardown is skipped!")
            self._finish()
            return

        self._state = TestEnvState.TORN_DOWN
        failures = 0
        while True:
            try:
                action = self._cleanup.pop()
            except EmptyCleanupStack:
                break
            try:
                action()
            except Exception:
                failures += 1
                self.log.exception("Cleanup action failed. Attempt to continue.")

        self._finish()
        if failures:
            self.log.warning("testenv deleted with %d cleanup failure(s).", failures)
        else:
            self.log.info("testenv deleted.")

    def create_resource(
        self,
        obj: Dict[str, Any],
        *,
        wait_gone: Optional[Callable[[], bool]] = None,
    ) -> None:
        """Create ``obj`` and register its deletion on the cleanup stack.

        ``wait_gone`` is polled after the delete call for objects that take a
        while to disappear. An object already deleted by the time the
        action runs counts as cleaned up. Nothing is registered when the
        create fails.
        """

        what = describe(obj)
        try:
            self._kube_client.create(obj)
        except Exception:
            self.log.exception("Unable to create %s", what)
            raise

        def cleanup() -> None:
            try:
                self._kube_client.delete(obj)
            except NotFoundError:
                self.log.info("%s already deleted", what)
                return
            except Exception:
                self.log.exception("Unable to delete %s", what)
                raise
            if wait_gone is None:
                return
            try:
                self._poll(wait_gone)
            except Exception:
                self.log.exception("Unable to delete %s", what)
                raise

        self._cleanup.push(cleanup)

    def wait_for_deployment(self, name: str, desired: int) -> None:
        def condition() -> bool:
            deployment = self._kube_client.get("deployment", name, self.namespace)
            return deployment_ready(deployment, desired)

        self._poll(condition)

    def new_deployment(self, name: str) -> Deployment:
        full_name = f"{self._name}-{name}"
        # Also used as the pod label value, capped at 63 characters
        validate_label(full_name)
        return Deployment(full_name, self)

    def pending_cleanups(self) -> int:
        return len(self._cleanup)

    def _finish(self) -> None:
        self._state = TestEnvState.TORN_DOWN
        if self._watcher is not None:
            self._watcher.stop(timeout=WATCHER_STOP_TIMEOUT)

    def _check_watcher(self) -> None:
        if self._watcher is not None:
            self._watcher.check()

    def _poll(self, condition: Callable[[], bool]) -> None:
        def guarded() -> bool:
            self._check_watcher()
            return condition()

        poll_immediate(self._config.poll_interval, self._config.timeout, guarded)

    def _create_namespace(self) -> None:
        name = self.namespace
        self.create_resource(
            resources.namespace_manifest(name),
            wait_gone=lambda: namespace_gone(self._kube_client, name),
        )
        try:
            self._poll(lambda: namespace_ready(self._kube_client, name))
        except Exception:
            self.log.exception("Unable to get namespace %s", name)
            raise

    def _create_service_account(self) -> None:
        self.create_resource(resources.service_account_manifest(self._names.service_account, self.namespace))

    def _create_role(self) -> None:
        self.create_resource(resources.role_manifest(self._names.role, self.namespace))

    def _create_role_binding(self) -> None:
        self.create_resource(
            resources.role_binding_manifest(
                self._names.role_binding,
                self._names.service_account,
                self.namespace,
                self._names.role,
            )
        )

    def _create_operator(self) -> None:
        operator = resources.operator_deployment_manifest(
            self._names.operator,
            self.namespace,
            self._names.service_account,
            self._config.operator_image,
            self._config.splunk_image,
            self._config.spark_image,
        )
        self.create_resource(operator)
        try:
            self.wait_for_deployment(self._names.operator, resources.desired_replicas(operator))
        except Exception:
            self.log.exception("Operator deployment %s never became ready", self._names.operator)
            raise


def new_test_env(name: str, config: Optional[TestEnvConfig] = None, *, kube_client: Any = None) -> TestEnv:
    """Build a sandbox and provision it.

    On provisioning failure a ``SetupError`` is raised; its ``testenv``
    attribute still needs ``teardown()`` to release what was created.
    """

    testenv = TestEnv(name, config, kube_client=kube_client)
    try:
        testenv.setup()
    except Exception as exc:
        raise SetupError(testenv, exc) from exc
    return testenv


def new_default_test_env(name: str, *, kube_client: Any = None) -> TestEnv:
    return new_test_env(name, TestEnvConfig.from_env(), kube_client=kube_client)


__all__ = [
    "NAMESPACE_ACTIVE",
    "NAMESPACE_TERMINATING",
    "TestEnv",
    "TestEnvState",
    "deployment_ready",
    "namespace_gone",
    "namespace_phase",
    "namespace_ready",
    "new_default_test_env",
    "new_test_env",
]
