from __future__ import annotations

import dataclasses
import os
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

from .wait import DEFAULT_TIMEOUT, POLL_INTERVAL

DEFAULT_OPERATOR_IMAGE = "splunk/splunk-operator"
DEFAULT_SPLUNK_IMAGE = "splunk/splunk:latest"
DEFAULT_SPARK_IMAGE = "splunk/spark"

DEFAULT_METRICS_HOST = "0.0.0.0"
DEFAULT_METRICS_PORT = 8383

_TRUE_VALUES = {"1", "true", "yes", "on"}
_XDIST_WORKER_PATTERN = re.compile(r"^gw(\d+)$")


@dataclass(frozen=True)
class TestEnvConfig:
    """Construct-time settings of a sandbox; never mutated afterwards."""

    __test__ = False

    operator_image: str = DEFAULT_OPERATOR_IMAGE
    splunk_image: str = DEFAULT_SPLUNK_IMAGE
    spark_image: str = DEFAULT_SPARK_IMAGE
    skip_teardown: bool = False
    kubectl_cmd: str = "kubectl"
    poll_interval: float = POLL_INTERVAL
    timeout: float = DEFAULT_TIMEOUT
    watch_interval: float = 5.0
    watch_failure_threshold: int = 3
    metrics_host: str = DEFAULT_METRICS_HOST
    metrics_port: int = DEFAULT_METRICS_PORT
    parallel_node: int = 0

    @property
    def metrics_address(self) -> str:
        # Offset by the worker index so parallel sandboxes never share a port
        return f"{self.metrics_host}:{self.metrics_port + self.parallel_node}"

    def with_overrides(self, **overrides: Any) -> "TestEnvConfig":
        changes = {key: value for key, value in overrides.items() if value is not None}
        return dataclasses.replace(self, **changes)

    def to_dict(self) -> Dict[str, Any]:
        data = dataclasses.asdict(self)
        data["metrics_address"] = self.metrics_address
        return data

    @classmethod
    def from_env(cls, environ: Optional[Dict[str, str]] = None) -> "TestEnvConfig":
        env = os.environ if environ is None else environ
        defaults = cls()
        skip = env.get("TESTENV_SKIP_TEARDOWN")
        return cls(
            operator_image=env.get("TESTENV_OPERATOR_IMAGE") or defaults.operator_image,
            splunk_image=env.get("TESTENV_SPLUNK_IMAGE") or defaults.splunk_image,
            spark_image=env.get("TESTENV_SPARK_IMAGE") or defaults.spark_image,
            skip_teardown=skip.strip().lower() in _TRUE_VALUES if skip else defaults.skip_teardown,
            kubectl_cmd=env.get("TESTENV_KUBECTL") or defaults.kubectl_cmd,
            parallel_node=parallel_node_from_env(env),
        )

    @classmethod
    def from_file(cls, path: Path, base: Optional["TestEnvConfig"] = None) -> "TestEnvConfig":
        loaded = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
        if not isinstance(loaded, dict):
            raise ValueError(f"{path} must contain a YAML mapping")
        known = {field.name for field in dataclasses.fields(cls)}
        unknown = sorted(set(loaded) - known)
        if unknown:
            raise ValueError(f"Unknown testenv config key(s) in {path}: {', '.join(unknown)}")
        return dataclasses.replace(base or cls(), **loaded)


def parallel_node_from_env(environ: Dict[str, str]) -> int:
    worker = environ.get("PYTEST_XDIST_WORKER", "")
    match = _XDIST_WORKER_PATTERN.match(worker)
    if match:
        return int(match.group(1))
    return 0


__all__ = [
    "DEFAULT_OPERATOR_IMAGE",
    "DEFAULT_SPARK_IMAGE",
    "DEFAULT_SPLUNK_IMAGE",
    "TestEnvConfig",
    "parallel_node_from_env",
]
