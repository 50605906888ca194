"""Deployment manifest document, property rules and on-disk store."""

from .document import ManifestDocument, Release
from .rules import AttributeRules, DeploymentSize, Mutability, SizeProfile, size_profile
from .store import ManifestStore

__all__ = [
    "ManifestDocument",
    "Release",
    "AttributeRules",
    "DeploymentSize",
    "Mutability",
    "SizeProfile",
    "size_profile",
    "ManifestStore",
]
