from __future__ import annotations

from typing import Any, Dict, Optional, TYPE_CHECKING

from . import resources

if TYPE_CHECKING:  # pragma: no cover
    from .testenv import TestEnv


class Deployment:
    """Named workload handle scoped to a sandbox's namespace."""

    def __init__(self, name: str, testenv: "TestEnv") -> None:
        self.name = name
        self.testenv = testenv
        self._replicas: Optional[int] = None

    @property
    def namespace(self) -> str:
        return self.testenv.namespace

    def manifest(self, replicas: int = 1, image: Optional[str] = None) -> Dict[str, Any]:
        return resources.workload_deployment_manifest(
            self.name,
            self.namespace,
            image or self.testenv.config.splunk_image,
            replicas=replicas,
        )

    def create(self, replicas: int = 1, image: Optional[str] = None) -> Dict[str, Any]:
        obj = self.manifest(replicas, image)
        self.testenv.create_resource(obj)
        self._replicas = replicas
        return obj

    def get(self) -> Dict[str, Any]:
        return self.testenv.kube_client.get("deployment", self.name, self.namespace)

    def wait_ready(self, replicas: Optional[int] = None) -> None:
        desired = replicas if replicas is not None else (self._replicas or 1)
        self.testenv.wait_for_deployment(self.name, desired)

    def delete(self) -> None:
        self.testenv.kube_client.delete(self.manifest(self._replicas or 1))


__all__ = ["Deployment"]
