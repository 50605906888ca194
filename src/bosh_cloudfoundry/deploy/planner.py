"""Turn command options into manifest changes.

Create mode builds a fresh manifest from options. Update mode applies
``key=value`` assignments to mutable properties of an existing manifest.
Nothing here talks to the director; all errors are raised locally.
"""

from __future__ import annotations

import secrets
from typing import Any, Dict, Iterable, List, Optional, Tuple

import structlog

from bosh_cloudfoundry.core.exceptions import ImmutableAttributeError, ValidationError
from bosh_cloudfoundry.deploy.models import DeploymentIntent, DeploymentOptions, DeploymentPlan
from bosh_cloudfoundry.manifest.document import ManifestDocument, Release
from bosh_cloudfoundry.manifest.rules import AttributeRules, Mutability, size_profile

logger = structlog.get_logger()

REQUIRED_ON_CREATE = ("name", "ip_addresses", "dns")
# Fixed order keeps the reported error deterministic when several fields are bad
VALIDATION_ORDER = ("name", "dns", "ip_addresses", "size", "common_password")
DEFAULT_SECURITY_GROUP = "cf"


class DeploymentPlanner:
    """Validates options against AttributeRules and produces a DeploymentPlan."""

    def __init__(
        self,
        release_name: str,
        release_version: int,
        default_name: str = "demo",
        default_size: str = "medium",
    ):
        self.release_name = release_name
        self.release_version = release_version
        self.default_name = default_name
        self.default_size = default_size

    def plan(
        self,
        options: Optional[DeploymentOptions] = None,
        existing: Optional[ManifestDocument] = None,
        assignments: Iterable[str] = (),
    ) -> DeploymentPlan:
        if existing is None:
            return self.plan_create(options or DeploymentOptions())
        return self.plan_update(existing, assignments)

    def plan_create(self, options: DeploymentOptions) -> DeploymentPlan:
        """Build the manifest for a new deployment.

        Raises:
            ValidationError: Naming the first missing or invalid field
        """
        values: Dict[str, Any] = {
            "name": options.name or self.default_name,
            "ip_addresses": options.ip_addresses,
            "dns": options.dns,
            "size": options.size or self.default_size,
            "common_password": options.common_password,
        }

        for field in REQUIRED_ON_CREATE:
            if not values[field]:
                raise ValidationError(f"Missing required option: {field}", field=field)

        for field in VALIDATION_ORDER:
            if values[field] is not None:
                AttributeRules.validate(field, values[field])

        if values["common_password"] is None:
            values["common_password"] = secrets.token_hex(8)
            logger.info("Generated common password", deployment=values["name"])

        profile = size_profile(values["size"])
        document = ManifestDocument(
            releases=[Release(name=self.release_name, version=self.release_version)],
            properties={},
        )
        document.set_mutable("name", values["name"])
        document.set_mutable("deployment_size", values["size"])
        document.set_mutable("dns", values["dns"])
        document.set_mutable("common_password", values["common_password"])
        document.set_mutable("ip_addresses", list(values["ip_addresses"]))
        document.set_mutable("persistent_disk", profile.persistent_disk)
        document.set_mutable("security_group", DEFAULT_SECURITY_GROUP)

        logger.info(
            "Planned new deployment",
            deployment=values["name"],
            size=values["size"],
            persistent_disk=profile.persistent_disk,
        )
        return DeploymentPlan(
            document=document,
            intent=DeploymentIntent.DEPLOY,
            changes=document.cf_properties(),
        )

    @staticmethod
    def parse_assignments(assignments: Iterable[str]) -> List[Tuple[str, Any]]:
        """Split and type ``key=value`` arguments; later duplicates win.

        Raises:
            ValidationError: If an argument is malformed or names an unknown property
            ImmutableAttributeError: If an argument names an immutable property
        """
        parsed: Dict[str, Any] = {}
        for assignment in assignments:
            if "=" not in assignment:
                raise ValidationError(f"Expected key=value, got: {assignment}")
            key, raw = assignment.split("=", 1)
            key = key.strip()
            mutability = AttributeRules.classify(key)
            if mutability is Mutability.UNKNOWN:
                raise ValidationError(f"Unknown property: {key}", field=key)
            if mutability is Mutability.IMMUTABLE:
                raise ImmutableAttributeError(
                    f"Property '{key}' is immutable and cannot be changed once the deployment exists",
                    field=key,
                )
            value = AttributeRules.parse(key, raw.strip())
            AttributeRules.validate(key, value)
            parsed.pop(key, None)
            parsed[key] = value
        return list(parsed.items())

    def plan_update(self, existing: ManifestDocument, assignments: Iterable[str]) -> DeploymentPlan:
        """Apply mutable property changes to a copy of ``existing``."""
        AttributeRules.check_properties(existing.cf_properties())
        changes = self.parse_assignments(assignments)

        document = existing.copy_document()
        applied: Dict[str, Any] = {}
        for key, value in changes:
            if document.get(key) != value:
                applied[key] = value
            document.set_mutable(key, value)

        if not applied:
            logger.info("No property changes to apply", deployment=existing.name)
            return DeploymentPlan(document=existing, intent=DeploymentIntent.NOOP)

        logger.info("Planned property changes", deployment=existing.name, changed=sorted(applied))
        return DeploymentPlan(document=document, intent=DeploymentIntent.DEPLOY, changes=applied)
