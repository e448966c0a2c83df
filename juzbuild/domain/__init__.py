"""Domain layer definitions."""

from .provisioning import (
    CreatedResource,
    DeletionOutcome,
    ProvisioningOutcome,
    StepResult,
    TemplateFile,
    TenantSiteRecord,
)

__all__ = [
    "CreatedResource",
    "DeletionOutcome",
    "ProvisioningOutcome",
    "StepResult",
    "TemplateFile",
    "TenantSiteRecord",
]
