"""Deployment planning and orchestration."""

from .models import (
    DeploymentIntent,
    DeploymentOptions,
    DeploymentPlan,
    DeploymentRecord,
    DeploymentStage,
)
from .planner import DeploymentPlanner
from .manager import DeploymentOrchestrationFacade

__all__ = [
    "DeploymentIntent",
    "DeploymentOptions",
    "DeploymentPlan",
    "DeploymentRecord",
    "DeploymentStage",
    "DeploymentPlanner",
    "DeploymentOrchestrationFacade",
]
