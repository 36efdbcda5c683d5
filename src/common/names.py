"""Shared helpers for generating and deriving sandbox resource names."""

from __future__ import annotations

import random
import re
import string
from dataclasses import dataclass


_DNS_LABEL_PATTERN = re.compile(r"^[a-z0-9]([-a-z0-9]*[a-z0-9])?$")
_MAX_LABEL_LENGTH = 63
NAMESPACE_PREFIX = "ns-"


@dataclass(frozen=True)
class SandboxNames:
    namespace: str
    service_account: str
    role: str
    role_binding: str
    operator: str


def random_dns_name(length: int) -> str:
    """Return a random DNS-1123 label; the first character is always a letter."""

    if length < 1:
        raise ValueError("length must be positive")
    first = random.choice(string.ascii_lowercase)
    rest = "".join(random.choices(string.ascii_lowercase + string.digits, k=length - 1))
    return first + rest


def validate_label(name: str) -> None:
    if not isinstance(name, str) or not _DNS_LABEL_PATTERN.match(name):
        raise ValueError(f"{name!r} is not a valid DNS-1123 label")
    if len(name) > _MAX_LABEL_LENGTH:
        raise ValueError(f"{name!r} is longer than {_MAX_LABEL_LENGTH} characters")


def validate_base_name(name: str) -> None:
    validate_label(name)
    if len(NAMESPACE_PREFIX) + len(name) > _MAX_LABEL_LENGTH:
        raise ValueError(
            f"{name!r} is too long: namespace {NAMESPACE_PREFIX}{name} exceeds {_MAX_LABEL_LENGTH} characters"
        )


def derived_names(name: str) -> SandboxNames:
    return SandboxNames(
        namespace=NAMESPACE_PREFIX + name,
        service_account="sa-" + name,
        role="role-" + name,
        role_binding="rolebinding-" + name,
        operator="op-" + name,
    )


__all__ = [
    "NAMESPACE_PREFIX",
    "SandboxNames",
    "derived_names",
    "random_dns_name",
    "validate_base_name",
    "validate_label",
]
