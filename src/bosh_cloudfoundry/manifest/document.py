"""In-memory representation of a Cloud Foundry deployment manifest."""

from __future__ import annotations

from typing import Any, Dict, List, Optional

import yaml
from pydantic import BaseModel, ConfigDict, Field
from pydantic import ValidationError as PydanticValidationError

from bosh_cloudfoundry.core.exceptions import ImmutableAttributeError, ParseError
from bosh_cloudfoundry.manifest.rules import AttributeRules

DEFAULT_NAMESPACE = "cf"


class Release(BaseModel):
    model_config = ConfigDict(extra="allow")

    name: str
    version: int


class ManifestDocument(BaseModel):
    """Deployment manifest: the release entry plus the ``properties`` tree.

    Property keys are namespaced (``cf.dns``); a bare key is looked up in the
    ``cf`` namespace.

    Sections the plugin does not manage (jobs, networks, ...) are carried
    through untouched.
    """

    model_config = ConfigDict(extra="allow")

    releases: List[Release] = Field(..., description="Releases deployed by this manifest")
    properties: Dict[str, Any] = Field(default_factory=dict, description="Property tree")

    @classmethod
    def load(cls, data: bytes) -> "ManifestDocument":
        """Parse manifest bytes.

        Raises:
            ParseError: If the bytes are not YAML or lack the expected layout
        """
        try:
            raw = yaml.safe_load(data)
        except yaml.YAMLError as e:
            raise ParseError(f"Manifest is not valid YAML: {e}")

        if not isinstance(raw, dict):
            raise ParseError("Manifest root must be a mapping")
        if "releases" not in raw:
            raise ParseError("Manifest has no releases section")
        properties = raw.get("properties") or {}
        if not isinstance(properties, dict):
            raise ParseError("Manifest properties must be a mapping")
        namespace = properties.get(DEFAULT_NAMESPACE)
        if namespace is not None and not isinstance(namespace, dict):
            raise ParseError(f"Manifest properties.{DEFAULT_NAMESPACE} must be a mapping")

        try:
            return cls.model_validate({**raw, "properties": properties})
        except PydanticValidationError as e:
            raise ParseError(f"Manifest layout is invalid: {e}")

    def serialize(self) -> bytes:
        """Deterministic YAML encoding."""
        return yaml.safe_dump(
            self.model_dump(mode="python"),
            sort_keys=True,
            default_flow_style=False,
        ).encode("utf-8")

    @staticmethod
    def _path(key: str) -> List[str]:
        parts = key.split(".")
        if len(parts) == 1:
            return [DEFAULT_NAMESPACE, key]
        return parts

    def get(self, key: str) -> Optional[Any]:
        node: Any = self.properties
        for part in self._path(key):
            if not isinstance(node, dict) or part not in node:
                return None
            node = node[part]
        return node

    def set_mutable(self, key: str, value: Any) -> None:
        """Set a property, refusing to overwrite a locked one.

        Raises:
            ImmutableAttributeError: If ``key`` is immutable and already set
        """
        if AttributeRules.is_immutable(key) and self.get(key) is not None:
            raise ImmutableAttributeError(
                f"Property '{key}' is immutable and cannot be changed once the deployment exists",
                field=key,
            )
        *parents, leaf = self._path(key)
        node = self.properties
        for part in parents:
            node = node.setdefault(part, {})
        node[leaf] = value

    @property
    def release(self) -> Release:
        """The managed release entry."""
        if len(self.releases) != 1:
            raise ParseError(f"Manifest must contain exactly one release, found {len(self.releases)}")
        return self.releases[0]

    @property
    def name(self) -> Optional[str]:
        return self.get("name")

    def cf_properties(self) -> Dict[str, Any]:
        return dict(self.properties.get(DEFAULT_NAMESPACE) or {})

    def copy_document(self) -> "ManifestDocument":
        return self.model_copy(deep=True)
