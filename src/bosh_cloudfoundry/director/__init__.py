"""BOSH director collaborators."""

from .client import DirectorClient, ReleaseCommand, StemcellCommand
from .interfaces import Director, ReleaseUploader, StemcellUploader

__all__ = [
    "DirectorClient",
    "ReleaseCommand",
    "StemcellCommand",
    "Director",
    "ReleaseUploader",
    "StemcellUploader",
]
