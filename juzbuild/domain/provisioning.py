"""Domain entities for website provisioning."""
from __future__ import annotations

from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from typing import Any


@dataclass(slots=True)
class StepResult:
    """Outcome of a single workflow step."""

    success: bool
    data: dict[str, Any] | None = None
    error: str | None = None
    step: str | None = None

    @classmethod
    def ok(cls, data: dict[str, Any] | None = None) -> "StepResult":
        return cls(success=True, data=data or {})

    @classmethod
    def fail(cls, error: str) -> "StepResult":
        return cls(success=False, error=error)


@dataclass(slots=True)
class CreatedResource:
    """External side effect left behind by a completed step."""

    kind: str
    identifier: str
    detail: str | None = None


@dataclass(slots=True)
class ProvisioningOutcome:
    success: bool
    data: dict[str, Any] | None = None
    error: str | None = None
    step: str | None = None
    resources: list[CreatedResource] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {"success": self.success}
        if self.success:
            payload["data"] = self.data or {}
            return payload
        payload["error"] = self.error
        if self.step:
            payload["step"] = self.step
        payload["resources"] = [asdict(resource) for resource in self.resources]
        return payload


@dataclass(slots=True)
class TenantSiteRecord:
    """Control-plane row describing one provisioned site."""

    user_id: str
    user_email: str
    website_name: str
    company_name: str
    template_path: str
    repo_url: str
    domain: str
    db_name: str
    theme: str
    layout_style: str
    status: str = "active"
    vercel_project_id: str | None = None
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    updated_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def to_document(self) -> dict[str, Any]:
        document = {
            "userId": self.user_id,
            "userEmail": self.user_email,
            "websiteName": self.website_name,
            "companyName": self.company_name,
            "templatePath": self.template_path,
            "repoUrl": self.repo_url,
            "domain": self.domain,
            "dbName": self.db_name,
            "status": self.status,
            "theme": self.theme,
            "layoutStyle": self.layout_style,
            "createdAt": self.created_at,
            "updatedAt": self.updated_at,
        }
        if self.vercel_project_id:
            document["vercelProjectId"] = self.vercel_project_id
        return document


@dataclass(frozen=True, slots=True)
class TemplateFile:
    path: str
    content: str


@dataclass(slots=True)
class DeletionOutcome:
    success: bool
    deleted: dict[str, bool] = field(default_factory=dict)
    errors: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {"success": self.success, "deletedResources": dict(self.deleted)}
        if self.errors:
            payload["errors"] = list(self.errors)
        return payload
