"""Manifest builders for the objects a sandbox provisions.

Every function here is pure: it maps names and image references to a fully
populated manifest dict and performs no cluster calls.
"""

from __future__ import annotations

from typing import Any, Dict, List

OPERATOR_CONTAINER_NAME = "splunk-operator"
ENTERPRISE_API_GROUP = "enterprise.splunk.com"

_ALL_VERBS = ["create", "delete", "get", "list", "patch", "update", "watch"]


def namespace_manifest(name: str) -> Dict[str, Any]:
    return {
        "apiVersion": "v1",
        "kind": "Namespace",
        "metadata": {"name": name},
    }


def service_account_manifest(name: str, namespace: str) -> Dict[str, Any]:
    return {
        "apiVersion": "v1",
        "kind": "ServiceAccount",
        "metadata": {"name": name, "namespace": namespace},
    }


def _operator_rules() -> List[Dict[str, Any]]:
    return [
        {
            "apiGroups": [""],
            "resources": [
                "services",
                "endpoints",
                "persistentvolumeclaims",
                "configmaps",
                "secrets",
                "pods",
                "pods/exec",
            ],
            "verbs": list(_ALL_VERBS),
        },
        {
            "apiGroups": [""],
            "resources": ["events"],
            "verbs": ["create", "get", "list", "patch", "watch"],
        },
        {
            "apiGroups": ["apps"],
            "resources": ["deployments", "daemonsets", "replicasets", "statefulsets"],
            "verbs": list(_ALL_VERBS),
        },
        {
            "apiGroups": ["apps"],
            "resources": ["deployments/finalizers"],
            "resourceNames": [OPERATOR_CONTAINER_NAME],
            "verbs": ["update"],
        },
        {
            "apiGroups": ["monitoring.coreos.com"],
            "resources": ["servicemonitors"],
            "verbs": ["create", "get"],
        },
        {
            "apiGroups": [ENTERPRISE_API_GROUP],
            "resources": ["*"],
            "verbs": ["*"],
        },
    ]


def role_manifest(name: str, namespace: str) -> Dict[str, Any]:
    return {
        "apiVersion": "rbac.authorization.k8s.io/v1",
        "kind": "Role",
        "metadata": {"name": name, "namespace": namespace},
        "rules": _operator_rules(),
    }


def role_binding_manifest(name: str, service_account: str, namespace: str, role: str) -> Dict[str, Any]:
    return {
        "apiVersion": "rbac.authorization.k8s.io/v1",
        "kind": "RoleBinding",
        "metadata": {"name": name, "namespace": namespace},
        "subjects": [
            {
                "kind": "ServiceAccount",
                "name": service_account,
                "namespace": namespace,
            }
        ],
        "roleRef": {
            "apiGroup": "rbac.authorization.k8s.io",
            "kind": "Role",
            "name": role,
        },
    }


def operator_deployment_manifest(
    name: str,
    namespace: str,
    service_account: str,
    operator_image: str,
    splunk_image: str,
    spark_image: str,
    replicas: int = 1,
) -> Dict[str, Any]:
    labels = {"name": name}
    return {
        "apiVersion": "apps/v1",
        "kind": "Deployment",
        "metadata": {"name": name, "namespace": namespace, "labels": dict(labels)},
        "spec": {
            "replicas": replicas,
            "selector": {"matchLabels": dict(labels)},
            "template": {
                "metadata": {"labels": dict(labels)},
                "spec": {
                    "serviceAccountName": service_account,
                    "containers": [
                        {
                            "name": OPERATOR_CONTAINER_NAME,
                            "image": operator_image,
                            "imagePullPolicy": "IfNotPresent",
                            "command": [OPERATOR_CONTAINER_NAME],
                            "env": [
                                {
                                    "name": "WATCH_NAMESPACE",
                                    "valueFrom": {"fieldRef": {"fieldPath": "metadata.namespace"}},
                                },
                                {
                                    "name": "POD_NAME",
                                    "valueFrom": {"fieldRef": {"fieldPath": "metadata.name"}},
                                },
                                {"name": "OPERATOR_NAME", "value": OPERATOR_CONTAINER_NAME},
                                {"name": "RELATED_IMAGE_SPLUNK_ENTERPRISE", "value": splunk_image},
                                {"name": "RELATED_IMAGE_SPLUNK_SPARK", "value": spark_image},
                            ],
                        }
                    ],
                },
            },
        },
    }


def workload_deployment_manifest(name: str, namespace: str, image: str, replicas: int = 1) -> Dict[str, Any]:
    labels = {"app": name}
    return {
        "apiVersion": "apps/v1",
        "kind": "Deployment",
        "metadata": {"name": name, "namespace": namespace, "labels": dict(labels)},
        "spec": {
            "replicas": replicas,
            "selector": {"matchLabels": dict(labels)},
            "template": {
                "metadata": {"labels": dict(labels)},
                "spec": {
                    "containers": [
                        {
                            "name": "workload",
                            "image": image,
                            "imagePullPolicy": "IfNotPresent",
                        }
                    ],
                },
            },
        },
    }


def desired_replicas(deployment: Dict[str, Any]) -> int:
    # Kubernetes defaults spec.replicas to 1 when unset
    spec = deployment.get("spec") or {}
    replicas = spec.get("replicas")
    if replicas is None:
        return 1
    return int(replicas)


__all__ = [
    "desired_replicas",
    "namespace_manifest",
    "operator_deployment_manifest",
    "role_binding_manifest",
    "role_manifest",
    "service_account_manifest",
    "workload_deployment_manifest",
]
