"""Load and save deployment manifests on disk."""

from __future__ import annotations

import os
import tempfile
from pathlib import Path

import structlog

from bosh_cloudfoundry.core.exceptions import NotFoundError
from bosh_cloudfoundry.manifest.document import ManifestDocument

logger = structlog.get_logger()


class ManifestStore:
    """Reads and atomically replaces manifest files."""

    def exists(self, path: Path) -> bool:
        return Path(path).is_file()

    def read(self, path: Path) -> ManifestDocument:
        """Load the manifest at ``path``.

        Raises:
            NotFoundError: If no manifest exists at ``path``
            ParseError: If the file is malformed
        """
        path = Path(path)
        if not self.exists(path):
            raise NotFoundError(f"Deployment manifest not found: {path}")
        logger.debug("Reading manifest", path=str(path))
        return ManifestDocument.load(path.read_bytes())

    def write(self, path: Path, document: ManifestDocument) -> None:
        """Replace the manifest at ``path`` with ``document``.

        The bytes go to a temp file in the same directory which is then
        renamed over the target, so readers see either the old or the new
        manifest and never a partial one.
        """
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        data = document.serialize()

        fd, tmp_name = tempfile.mkstemp(prefix=f".{path.name}.", suffix=".tmp", dir=path.parent)
        try:
            with os.fdopen(fd, "wb") as f:
                f.write(data)
                f.flush()
                os.fsync(f.fileno())
            os.replace(tmp_name, path)
        except BaseException:
            if os.path.exists(tmp_name):
                os.remove(tmp_name)
            raise
        logger.info("Manifest written", path=str(path), bytes=len(data))
