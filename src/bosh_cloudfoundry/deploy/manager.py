"""Sequence director calls for prepare, create and change operations.

Every operation walks the same stages::

    PREPARING -> RELEASE_READY -> STEMCELL_READY -> SUBMITTED -> DONE

and ends in FAILED if any stage raises. Options are planned (and therefore
validated) before the director is contacted.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Callable, Dict, Optional

import structlog

from bosh_cloudfoundry.core.config import Settings
from bosh_cloudfoundry.core.exceptions import (
    AuthenticationError,
    CloudFoundryError,
    DeployError,
    DirectorError,
    UploadError,
    ValidationError,
)
from bosh_cloudfoundry.deploy.dns import validate_dns_mapping
from bosh_cloudfoundry.deploy.models import (
    DeploymentOptions,
    DeploymentPlan,
    DeploymentRecord,
    DeploymentStage,
)
from bosh_cloudfoundry.deploy.planner import DeploymentPlanner
from bosh_cloudfoundry.director.interfaces import Director, ReleaseUploader, StemcellUploader
from bosh_cloudfoundry.manifest.store import ManifestStore
from bosh_cloudfoundry.utils.logging import bind_deployment_context

logger = structlog.get_logger()


class DeploymentOrchestrationFacade:
    """Runs deployment operations against a director."""

    def __init__(
        self,
        settings: Settings,
        director: Director,
        release_cmd: ReleaseUploader,
        stemcell_cmd: StemcellUploader,
        store: Optional[ManifestStore] = None,
        planner: Optional[DeploymentPlanner] = None,
        dns_validator: Callable[..., bool] = validate_dns_mapping,
    ):
        self.settings = settings
        self.director = director
        self.release_cmd = release_cmd
        self.stemcell_cmd = stemcell_cmd
        self.store = store or ManifestStore()
        self.planner = planner or DeploymentPlanner(
            release_name=settings.release_name,
            release_version=settings.release_version,
            default_name=settings.default_name,
            default_size=settings.default_size,
        )
        self.dns_validator = dns_validator

    def auth_required(self) -> None:
        if not self.settings.has_credentials:
            raise AuthenticationError(
                "Director target and credentials are required "
                "(set BOSH_CF_DIRECTOR_URL, BOSH_CF_DIRECTOR_USERNAME and BOSH_CF_DIRECTOR_PASSWORD)"
            )

    def deployment_path(self, name: Optional[str] = None) -> Path:
        return self.settings.deployment_path(name)

    def prepare(self) -> DeploymentRecord:
        """Make sure the director has the release and stemcell. Idempotent."""
        self.auth_required()
        record = DeploymentRecord()
        try:
            self._prepare(record, self.settings.release_name, self.settings.release_version)
        except CloudFoundryError as e:
            self._fail(record, e)
            raise
        record.update_stage(DeploymentStage.DONE)
        return record

    def create(
        self,
        options: DeploymentOptions,
        confirm: Optional[Callable[[DeploymentPlan], bool]] = None,
    ) -> DeploymentRecord:
        """Create a new deployment from ``options``.

        Raises:
            ValidationError: Before any director call, if options are incomplete
                or the deployment already exists
        """
        plan = self.planner.plan_create(options)
        name = plan.document.name
        path = self.deployment_path(name)
        if self.store.exists(path):
            raise ValidationError(
                f"Deployment '{name}' already exists at {path}; use change to modify it",
                field="name",
            )

        if confirm is not None and not confirm(plan):
            return self._cancelled(plan)

        self.auth_required()
        bind_deployment_context(deployment_name=name)
        self.dns_validator(plan.document.get("dns"), plan.document.get("ip_addresses"))
        return self._execute(plan, path)

    def change_properties(
        self,
        *assignments: str,
        name: Optional[str] = None,
        confirm: Optional[Callable[[DeploymentPlan], bool]] = None,
    ) -> DeploymentRecord:
        """Update mutable properties of an existing deployment and redeploy.

        Raises:
            NotFoundError: If the deployment manifest does not exist
            ValidationError: If an assignment is malformed, unknown or invalid
            ImmutableAttributeError: If an assignment targets a locked property
        """
        path = self.deployment_path(name)
        existing = self.store.read(path)
        plan = self.planner.plan_update(existing, assignments)
        if confirm is not None and not plan.is_noop and not confirm(plan):
            return self._cancelled(plan)

        self.auth_required()
        bind_deployment_context(deployment_name=existing.name)
        return self._execute(plan, path)

    def show_properties(self, name: Optional[str] = None, remote: bool = False) -> Dict[str, Any]:
        """Current ``cf`` properties, from the local manifest or from the director."""
        document = self.store.read(self.deployment_path(name))
        if not remote:
            return document.cf_properties()
        self.auth_required()
        status = self.director.get_status()
        logger.debug("Director status", uuid=status.get("uuid"), cpi=status.get("cpi"))
        return self.director.list_properties(document.name)

    def _execute(self, plan: DeploymentPlan, path: Path) -> DeploymentRecord:
        record = DeploymentRecord(deployment=plan.document.name)
        try:
            release = plan.document.release
            self._prepare(record, release.name, release.version)

            if plan.is_noop:
                logger.info("Nothing to deploy", deployment=record.deployment)
                record.update_stage(DeploymentStage.DONE, {"intent": plan.intent.value})
                return record

            record.update_stage(DeploymentStage.SUBMITTED, {"intent": plan.intent.value})
            self.store.write(path, plan.document)
            self._deploy(plan.document.serialize())
            record.deployed = True
        except CloudFoundryError as e:
            self._fail(record, e)
            raise

        record.update_stage(DeploymentStage.DONE)
        logger.info("Deployment finished", deployment=record.deployment, changed=sorted(plan.changes))
        return record

    def _prepare(self, record: DeploymentRecord, release_name: str, release_version: int) -> None:
        status = self.director.get_status()
        cpi = status.get("cpi")
        if not cpi:
            raise DirectorError("Director did not report its CPI; cannot choose a stemcell")
        bind_deployment_context(cpi=cpi)
        logger.info("Director status", uuid=status.get("uuid"), cpi=cpi)

        if self.director.has_release(release_name, release_version):
            logger.info("Release already uploaded", release=release_name, version=release_version)
        else:
            location = self.settings.release_location(release_version)
            logger.info("Uploading release", release=release_name, version=release_version, location=location)
            self._upload(self.release_cmd, location, "release")
            record.uploads.append(f"{release_name}/{release_version}")
        record.update_stage(DeploymentStage.RELEASE_READY)

        stemcell_name = f"bosh-{cpi}"
        if self.director.has_stemcell(stemcell_name):
            logger.info("Stemcell already uploaded", stemcell=stemcell_name)
        else:
            url = self.settings.stemcell_url(cpi)
            self._upload(self.stemcell_cmd, url, "stemcell")
            record.uploads.append(url)
        record.update_stage(DeploymentStage.STEMCELL_READY)

    @staticmethod
    def _upload(uploader: Any, location: str, kind: str) -> None:
        try:
            uploader.upload(location)
        except CloudFoundryError:
            raise
        except Exception as e:
            raise UploadError(f"Failed to upload {kind} {location}: {e}") from e

    def _deploy(self, manifest: bytes) -> None:
        try:
            self.director.deploy(manifest)
        except CloudFoundryError:
            raise
        except Exception as e:
            raise DeployError(f"Deploy failed: {e}") from e

    @staticmethod
    def _cancelled(plan: DeploymentPlan) -> DeploymentRecord:
        logger.info("Deployment cancelled", deployment=plan.document.name)
        record = DeploymentRecord(deployment=plan.document.name)
        record.update_stage(DeploymentStage.DONE, {"cancelled": "true"})
        return record

    @staticmethod
    def _fail(record: DeploymentRecord, error: CloudFoundryError) -> None:
        record.update_stage(DeploymentStage.FAILED, {"error": str(error)})
        logger.error("Deployment operation failed", stage=record.history[-2].value, error=str(error))
