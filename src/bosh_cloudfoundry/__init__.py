"""BOSH Cloud Foundry plugin - manage a Cloud Foundry deployment on a BOSH director."""

__version__ = "0.1.0"

from bosh_cloudfoundry.core.config import Settings
from bosh_cloudfoundry.manifest.document import ManifestDocument

__all__ = ["Settings", "ManifestDocument", "__version__"]
