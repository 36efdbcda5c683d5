"""Thin kubectl-backed client for the create/get/delete calls the sandbox needs."""

from __future__ import annotations

import json
import re
import subprocess
from typing import Any, Dict, List, Optional

import yaml

from .errors import AlreadyExistsError, KubeError, NotFoundError

# kubectl reports missing/taken objects as `(NotFound)` or `<kind> "<name>" not found`
_NOT_FOUND_PATTERN = re.compile(r'\(NotFound\)|"[^"]+" not found')
_ALREADY_EXISTS_PATTERN = re.compile(r'\(AlreadyExists\)|"[^"]+" already exists')


def describe(obj: Dict[str, Any]) -> str:
    metadata = obj.get("metadata") or {}
    kind = obj.get("kind", "object")
    name = metadata.get("name", "<unnamed>")
    namespace = metadata.get("namespace")
    if namespace:
        return f"{kind} {namespace}/{name}"
    return f"{kind} {name}"


class KubeClient:
    def __init__(self, kubectl_cmd: str = "kubectl", *, context: Optional[str] = None) -> None:
        self.kubectl_cmd = kubectl_cmd
        self.context = context

    def create(self, obj: Dict[str, Any]) -> None:
        self._run(["create", "-f", "-"], input_data=yaml.safe_dump(obj, sort_keys=False))

    def get(self, kind: str, name: str, namespace: Optional[str] = None) -> Dict[str, Any]:
        args = ["get", kind, name, "-o", "json"]
        if namespace:
            args.extend(["-n", namespace])
        stdout = self._run(args)
        try:
            data = json.loads(stdout)
        except json.JSONDecodeError as exc:
            raise KubeError(f"kubectl returned invalid JSON for {kind} {name}: {exc}") from exc
        if not isinstance(data, dict):
            raise KubeError(f"kubectl returned a non-object for {kind} {name}")
        return data

    def delete(self, obj: Dict[str, Any]) -> None:
        self._run(
            ["delete", "-f", "-", "--wait=false"],
            input_data=yaml.safe_dump(obj, sort_keys=False),
        )

    def server(self) -> str:
        return self._run(
            ["config", "view", "--minify", "-o", "jsonpath={.clusters[0].cluster.server}"]
        ).strip()

    def healthz(self) -> None:
        self._run(["get", "--raw", "/readyz"])

    def _run(self, args: List[str], *, input_data: Optional[str] = None) -> str:
        if self.context:
            args = ["--context", self.context] + args
        try:
            proc = subprocess.run(
                [self.kubectl_cmd] + args,
                input=input_data.encode("utf-8") if input_data is not None else None,
                capture_output=True,
                check=False,
            )
        except FileNotFoundError as exc:
            raise KubeError(f"kubectl executable not found: {self.kubectl_cmd}") from exc
        stdout = (proc.stdout or b"").decode("utf-8", errors="ignore")
        if proc.returncode == 0:
            return stdout
        stderr = (proc.stderr or b"").decode("utf-8", errors="ignore").strip()
        raise classify_error([self.kubectl_cmd] + args, stderr or stdout.strip())


def classify_error(command: List[str], stderr: str) -> KubeError:
    detail = stderr or "kubectl exited with a non-zero status"
    message = f"{' '.join(command[:3])} failed: {detail}"
    if _NOT_FOUND_PATTERN.search(stderr):
        return NotFoundError(message, command=command, stderr=stderr)
    if _ALREADY_EXISTS_PATTERN.search(stderr):
        return AlreadyExistsError(message, command=command, stderr=stderr)
    return KubeError(message, command=command, stderr=stderr)


__all__ = ["KubeClient", "classify_error", "describe"]
