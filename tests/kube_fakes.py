"""In-memory stand-in for the kubectl client used by the sandbox tests."""

from __future__ import annotations

import copy
import threading
from typing import Any, Dict, List, Optional, Tuple

from src.testenv.errors import AlreadyExistsError, KubeError, NotFoundError

_CLUSTER_SCOPED = {"namespace"}


def _key(kind: str, name: str, namespace: Optional[str]) -> Tuple[str, Optional[str], str]:
    kind = kind.lower()
    if kind in _CLUSTER_SCOPED:
        namespace = None
    return kind, namespace, name


class FakeKubeClient:
    def __init__(self) -> None:
        self.objects: Dict[Tuple[str, Optional[str], str], Dict[str, Any]] = {}
        self.calls: List[Tuple[str, str, str]] = []
        self.create_failures: Dict[str, Exception] = {}
        self.delete_failures: Dict[str, Exception] = {}
        self.namespace_phase = "Active"
        self.deployment_status: Dict[str, int] = {"replicas": 1, "updatedReplicas": 1, "readyReplicas": 1}
        # Deleted namespaces stay behind in the Terminating phase
        self.terminate_namespaces = False
        # Number of namespace reads that miss a freshly created namespace
        self.namespace_hidden_gets = 0
        # Statuses handed out one per Deployment read; the last one sticks
        self.deployment_status_sequence: List[Dict[str, int]] = []
        self.healthy = True
        self.health_probes = 0
        self._lock = threading.Lock()

    def create(self, obj: Dict[str, Any]) -> None:
        kind = obj["kind"]
        metadata = obj["metadata"]
        self.calls.append(("create", kind, metadata["name"]))
        if kind in self.create_failures:
            raise self.create_failures[kind]
        key = _key(kind, metadata["name"], metadata.get("namespace"))
        if key in self.objects:
            raise AlreadyExistsError(f"{kind} {metadata['name']} already exists")
        stored = copy.deepcopy(obj)
        if kind == "Namespace":
            stored["status"] = {"phase": self.namespace_phase}
        elif kind == "Deployment":
            stored["status"] = dict(self.deployment_status)
        self.objects[key] = stored

    def get(self, kind: str, name: str, namespace: Optional[str] = None) -> Dict[str, Any]:
        self.calls.append(("get", kind, name))
        key = _key(kind, name, namespace)
        if key[0] == "namespace" and self.namespace_hidden_gets > 0:
            self.namespace_hidden_gets -= 1
            raise NotFoundError(f'{kind} "{name}" not found')
        if key not in self.objects:
            raise NotFoundError(f'{kind} "{name}" not found')
        if key[0] == "deployment" and self.deployment_status_sequence:
            self.objects[key]["status"] = dict(self.deployment_status_sequence.pop(0))
        return copy.deepcopy(self.objects[key])

    def delete(self, obj: Dict[str, Any]) -> None:
        kind = obj["kind"]
        metadata = obj["metadata"]
        self.calls.append(("delete", kind, metadata["name"]))
        if kind in self.delete_failures:
            raise self.delete_failures[kind]
        key = _key(kind, metadata["name"], metadata.get("namespace"))
        if key not in self.objects:
            raise NotFoundError(f'{kind} "{metadata["name"]}" not found')
        if kind == "Namespace" and self.terminate_namespaces:
            self.objects[key]["status"] = {"phase": "Terminating"}
            return
        del self.objects[key]
        if kind == "Namespace":
            for other in [k for k in self.objects if k[1] == metadata["name"]]:
                del self.objects[other]

    def server(self) -> str:
        return "https://fake-apiserver:6443"

    def healthz(self) -> None:
        with self._lock:
            self.health_probes += 1
        if not self.healthy:
            raise KubeError("connection refused")

    def calls_of(self, verb: str) -> List[Tuple[str, str]]:
        return [(kind, name) for call, kind, name in self.calls if call == verb]
