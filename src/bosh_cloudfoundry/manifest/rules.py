"""Classification and validation of Cloud Foundry deployment properties.

Immutable properties are fixed when a deployment is created. Mutable ones may
be rewritten by ``change`` and trigger a redeploy.
"""

from __future__ import annotations

import ipaddress
import re
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Dict, Iterable, Mapping, Optional

from bosh_cloudfoundry.core.exceptions import ValidationError


class Mutability(str, Enum):
    IMMUTABLE = "immutable"
    MUTABLE = "mutable"
    UNKNOWN = "unknown"


class DeploymentSize(str, Enum):
    SMALL = "small"
    MEDIUM = "medium"
    LARGE = "large"
    XLARGE = "xlarge"


@dataclass(frozen=True)
class SizeProfile:
    """Resource defaults applied when a deployment is created."""

    persistent_disk: int
    instance_count: int


SIZE_PROFILES: Dict[DeploymentSize, SizeProfile] = {
    DeploymentSize.SMALL: SizeProfile(persistent_disk=2048, instance_count=1),
    DeploymentSize.MEDIUM: SizeProfile(persistent_disk=4096, instance_count=2),
    DeploymentSize.LARGE: SizeProfile(persistent_disk=8192, instance_count=4),
    DeploymentSize.XLARGE: SizeProfile(persistent_disk=16384, instance_count=8),
}

_NAME_RE = re.compile(r"^[A-Za-z0-9][A-Za-z0-9_-]*$")
_DNS_LABEL_RE = re.compile(r"^(?!-)[A-Za-z0-9-]{1,63}(?<!-)$")
_SECURITY_GROUP_RE = re.compile(r"^[A-Za-z0-9_.-]+$")


def _validate_name(value: Any) -> None:
    if not isinstance(value, str) or not value:
        raise ValueError("must be a non-empty string")
    if not _NAME_RE.match(value):
        raise ValueError(f"contains invalid characters: {value}")


def _validate_dns(value: Any) -> None:
    if not isinstance(value, str) or not value:
        raise ValueError("must be a non-empty string")
    if len(value) > 253:
        raise ValueError(f"must be at most 253 characters, got: {len(value)}")
    for label in value.rstrip(".").split("."):
        if not _DNS_LABEL_RE.match(label):
            raise ValueError(f"is not a valid hostname: {value}")


def _validate_ip_addresses(value: Any) -> None:
    if not isinstance(value, (list, tuple)) or not value:
        raise ValueError("must be a non-empty list of IPv4 addresses")
    for ip in value:
        # ip_address() also accepts ints and IPv6; require dotted-quad text
        if not isinstance(ip, str) or ip.count(".") != 3:
            raise ValueError(f"is not an IPv4 address: {ip}")
        try:
            ipaddress.IPv4Address(ip)
        except ipaddress.AddressValueError:
            raise ValueError(f"is not an IPv4 address: {ip}")


def _validate_size(value: Any) -> None:
    try:
        DeploymentSize(value)
    except ValueError:
        choices = ", ".join(s.value for s in DeploymentSize)
        raise ValueError(f"must be one of {choices}, got: {value}")


def _validate_password(value: Any) -> None:
    if not isinstance(value, str) or not value:
        raise ValueError("must be a non-empty string")


def _validate_persistent_disk(value: Any) -> None:
    if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
        raise ValueError(f"must be a positive integer (MB), got: {value}")


def _validate_security_group(value: Any) -> None:
    if not isinstance(value, str) or not value:
        raise ValueError("must be a non-empty string")
    if not _SECURITY_GROUP_RE.match(value):
        raise ValueError(f"contains invalid characters: {value}")


def _parse_int(raw: str) -> Any:
    try:
        return int(raw)
    except ValueError:
        return raw


def _parse_list(raw: str) -> Any:
    return [part.strip() for part in raw.split(",") if part.strip()]


@dataclass(frozen=True)
class AttributeRule:
    mutability: Mutability
    required: bool
    validator: Callable[[Any], None]
    parser: Callable[[str], Any] = str


class AttributeRules:
    """Static table of property rules; holds no mutable state."""

    RULES: Dict[str, AttributeRule] = {
        # immutable attributes
        "name": AttributeRule(Mutability.IMMUTABLE, True, _validate_name),
        "deployment_size": AttributeRule(Mutability.IMMUTABLE, False, _validate_size),
        "dns": AttributeRule(Mutability.IMMUTABLE, True, _validate_dns),
        "common_password": AttributeRule(Mutability.IMMUTABLE, False, _validate_password),
        # mutable attributes
        "ip_addresses": AttributeRule(Mutability.MUTABLE, True, _validate_ip_addresses, _parse_list),
        "persistent_disk": AttributeRule(Mutability.MUTABLE, False, _validate_persistent_disk, _parse_int),
        "security_group": AttributeRule(Mutability.MUTABLE, False, _validate_security_group),
    }

    # Option names that differ from the property they populate
    OPTION_ALIASES = {"size": "deployment_size"}

    @classmethod
    def _canonical(cls, key: str) -> str:
        if key.startswith("cf."):
            key = key[len("cf."):]
        return cls.OPTION_ALIASES.get(key, key)

    @classmethod
    def rule(cls, key: str) -> Optional[AttributeRule]:
        return cls.RULES.get(cls._canonical(key))

    @classmethod
    def classify(cls, key: str) -> Mutability:
        rule = cls.rule(key)
        return rule.mutability if rule else Mutability.UNKNOWN

    @classmethod
    def is_immutable(cls, key: str) -> bool:
        return cls.classify(key) is Mutability.IMMUTABLE

    @classmethod
    def required(cls) -> Iterable[str]:
        return [key for key, rule in cls.RULES.items() if rule.required]

    @classmethod
    def validate(cls, key: str, value: Any) -> None:
        """Raise ValidationError naming ``key`` if ``value`` is not acceptable."""
        rule = cls.rule(key)
        if rule is None:
            raise ValidationError(f"Unknown property: {key}", field=key)
        try:
            rule.validator(value)
        except ValueError as e:
            raise ValidationError(f"Invalid {key}: {e}", field=key)

    @classmethod
    def parse(cls, key: str, raw: str) -> Any:
        """Convert the string half of a key=value argument to the property's type."""
        rule = cls.rule(key)
        if rule is None:
            raise ValidationError(f"Unknown property: {key}", field=key)
        return rule.parser(raw)

    @classmethod
    def check_properties(cls, properties: Mapping[str, Any]) -> None:
        """Reject any property that has no declared rule."""
        for key in properties:
            if cls.rule(key) is None:
                raise ValidationError(f"Undeclared property in manifest: {key}", field=key)


def size_profile(size: str) -> SizeProfile:
    try:
        return SIZE_PROFILES[DeploymentSize(size)]
    except ValueError:
        choices = ", ".join(s.value for s in DeploymentSize)
        raise ValidationError(f"Invalid size: must be one of {choices}, got: {size}", field="size")
