"""Models for Cloud Foundry deployment operations."""

from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field

from bosh_cloudfoundry.manifest.document import ManifestDocument


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class DeploymentStage(str, Enum):
    PREPARING = "preparing"
    RELEASE_READY = "release_ready"
    STEMCELL_READY = "stemcell_ready"
    SUBMITTED = "submitted"
    DONE = "done"
    FAILED = "failed"


class DeploymentIntent(str, Enum):
    DEPLOY = "deploy"
    NOOP = "no-op"


class DeploymentOptions(BaseModel):
    """Per-invocation options; never persisted."""

    name: Optional[str] = None
    ip_addresses: Optional[List[str]] = None
    dns: Optional[str] = None
    common_password: Optional[str] = None
    size: Optional[str] = None


class DeploymentPlan(BaseModel):
    document: ManifestDocument
    intent: DeploymentIntent
    changes: Dict[str, Any] = Field(default_factory=dict)

    @property
    def is_noop(self) -> bool:
        return self.intent is DeploymentIntent.NOOP


class DeploymentRecord(BaseModel):
    """Progress of one prepare/create/change operation."""

    deployment: Optional[str] = None
    stage: DeploymentStage = DeploymentStage.PREPARING
    history: List[DeploymentStage] = Field(default_factory=lambda: [DeploymentStage.PREPARING])
    uploads: List[str] = Field(default_factory=list)
    deployed: bool = False
    createdAt: datetime = Field(default_factory=_utcnow)
    updatedAt: datetime = Field(default_factory=_utcnow)
    details: Dict[str, str] = Field(default_factory=dict)

    def update_stage(self, stage: DeploymentStage, details: Optional[Dict[str, str]] = None):
        self.stage = stage
        self.history.append(stage)
        self.updatedAt = _utcnow()
        if details:
            self.details.update(details)
