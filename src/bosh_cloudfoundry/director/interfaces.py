"""Collaborator interfaces used by the deployment manager."""

from pathlib import Path
from typing import Any, Dict, Protocol, Union


class Director(Protocol):
    def get_status(self) -> Dict[str, Any]:
        """Return at least ``uuid`` and ``cpi``."""
        ...

    def has_release(self, name: str, version: int) -> bool:
        ...

    def has_stemcell(self, name: str) -> bool:
        ...

    def list_properties(self, deployment_name: str) -> Dict[str, Any]:
        ...

    def deploy(self, manifest: bytes) -> Any:
        ...


class ReleaseUploader(Protocol):
    def upload(self, path: Union[str, Path]) -> Any:
        ...


class StemcellUploader(Protocol):
    def upload(self, url: str) -> Any:
        ...
