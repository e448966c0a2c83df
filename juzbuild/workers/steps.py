"""The individual steps of the website provisioning workflow.

Each step reads what it needs from the shared :class:`ProvisioningContext`,
performs its external effect and returns a :class:`StepResult`. Expected
provider errors become failed results; anything else propagates to the
orchestrator.
"""
from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Protocol

import httpx

from juzbuild.core.config import Delays, ProvisioningCapabilities
from juzbuild.core.content import page_documents, sample_properties, settings_document
from juzbuild.core.naming import derive_db_name, project_name, site_domain, strip_scheme
from juzbuild.core.schema import ProvisioningRequest
from juzbuild.domain import CreatedResource, StepResult, TemplateFile, TenantSiteRecord
from juzbuild.generators.site_template import (
    collect_template_files,
    deploy_trigger_note,
    deployment_note,
    readme_content,
    render_site_files,
    write_site_template,
)
from juzbuild.infrastructure.databases import DatabaseError, DatabaseGateway, DatabaseSession
from juzbuild.infrastructure.github import GitHubClient, GitHubError
from juzbuild.infrastructure.mailer import EmailDeliveryError, EmailService
from juzbuild.infrastructure.namecheap import NamecheapClient
from juzbuild.infrastructure.vercel import VercelClient, VercelError

logger = logging.getLogger(__name__)

TENANT_COLLECTIONS = ("settings", "properties", "pages", "users", "inquiries")


@dataclass(slots=True)
class ProvisioningContext:
    """State handed from one step to the next during a single run."""

    request: ProvisioningRequest
    capabilities: ProvisioningCapabilities
    results: dict[str, dict[str, Any]] = field(default_factory=dict)
    resources: list[CreatedResource] = field(default_factory=list)
    db_name: str | None = None
    template_path: Path | None = None
    repo_owner: str | None = None
    repo_name: str | None = None
    repo_url: str | None = None
    repository_created: bool = False
    vercel_project_id: str | None = None
    deployment_host: str | None = None

    @property
    def domain(self) -> str:
        return site_domain(self.request.domain_name, self.capabilities.parent_domain)


class ProvisioningStep(Protocol):
    name: str
    label: str

    async def run(self, context: ProvisioningContext) -> StepResult: ...


# ----------------------------------------------------------------------
# 1. tenant database
# ----------------------------------------------------------------------
class TenantDatabaseStep:
    name = "Database Creation"
    label = "Database creation"

    def __init__(self, gateway: DatabaseGateway) -> None:
        self._gateway = gateway

    @staticmethod
    def _seed(session: DatabaseSession, request: ProvisioningRequest) -> None:
        session.insert_one("settings", settings_document(request))
        session.insert_many("properties", sample_properties(request, with_timestamps=True))
        pages = page_documents(request)
        if pages:
            session.insert_many("pages", pages)
        else:
            session.create_collection("pages")
        session.create_collection("users")
        session.create_collection("inquiries")

    async def run(self, context: ProvisioningContext) -> StepResult:
        request = context.request
        db_name = derive_db_name(request.site_name, context.capabilities.tenant_db_prefix)
        try:
            session = await asyncio.to_thread(self._gateway.open, db_name)
        except DatabaseError as exc:
            return StepResult.fail(str(exc))

        context.resources.append(CreatedResource("database", db_name))
        try:
            await asyncio.to_thread(self._seed, session, request)
        except DatabaseError as exc:
            logger.warning("Seeding %s failed: %s", db_name, exc)
            return StepResult.fail(str(exc))
        finally:
            await asyncio.to_thread(session.close)

        context.db_name = db_name
        logger.info("Created tenant database %s", db_name)
        return StepResult.ok(
            {
                "databaseName": db_name,
                "connectionString": self._gateway.connection_string(db_name),
                "collections": list(TENANT_COLLECTIONS),
            }
        )


# ----------------------------------------------------------------------
# 2. site template
# ----------------------------------------------------------------------
class TemplateStep:
    name = "Template Generation"
    label = "Template generation"

    async def run(self, context: ProvisioningContext) -> StepResult:
        root = context.capabilities.templates_root
        try:
            path = await asyncio.to_thread(write_site_template, context.request, root)
        except (OSError, ValueError) as exc:
            return StepResult.fail(str(exc))

        context.template_path = path
        context.resources.append(CreatedResource("template_directory", str(path)))
        return StepResult.ok(
            {
                "templatePath": str(path),
                "files": [template_file.path for template_file in render_site_files(context.request)],
            }
        )


# ----------------------------------------------------------------------
# 3. source repository
# ----------------------------------------------------------------------
class RepositoryStep:
    name = "GitHub Repository"
    label = "GitHub repository creation"

    def __init__(self, github: GitHubClient | None, delays: Delays | None = None) -> None:
        self._github = github
        self._delays = delays or Delays()

    async def _put(self, owner: str, repo: str, template_file: TemplateFile, message: str) -> bool:
        try:
            await self._github.put_file(owner, repo, template_file.path, template_file.content, message=message)
        except (GitHubError, httpx.HTTPError) as exc:
            logger.warning("Failed to push %s to %s/%s: %s", template_file.path, owner, repo, exc)
            return False
        return True

    async def _upload_all(self, owner: str, repo: str, files: list[TemplateFile]) -> tuple[int, list[str]]:
        uploaded = 0
        failed: list[str] = []
        batch_size = max(self._delays.batch_size, 1)
        for start in range(0, len(files), batch_size):
            for template_file in files[start : start + batch_size]:
                if await self._put(owner, repo, template_file, f"Add {template_file.path}"):
                    uploaded += 1
                else:
                    failed.append(template_file.path)
                await self._delays.sleep(self._delays.file_delay)
            if start + batch_size < len(files):
                await self._delays.sleep(self._delays.batch_delay)
        return uploaded, failed

    async def run(self, context: ProvisioningContext) -> StepResult:
        request = context.request
        credentials = context.capabilities.github
        repo = request.site_name

        if credentials is None or self._github is None:
            owner = credentials.username if credentials else "juzbuild"
            repo_url = f"https://github.com/{owner}/{repo}"
            context.repo_owner, context.repo_name, context.repo_url = owner, repo, repo_url
            logger.info("GitHub integration not configured, skipping repository creation for %s", repo)
            return StepResult.ok(
                {
                    "repoUrl": repo_url,
                    "repoName": repo,
                    "owner": owner,
                    "note": "GitHub integration not configured - skipped",
                }
            )

        try:
            created = await self._github.create_repository(
                repo,
                description=f"Real estate website for {request.company_name} - Created with Juzbuild",
                private=False,
            )
        except (GitHubError, httpx.HTTPError) as exc:
            return StepResult.fail(str(exc))

        owner = (created.get("owner") or {}).get("login") or credentials.username
        repo_url = created.get("html_url") or f"https://github.com/{owner}/{repo}"
        context.repo_owner, context.repo_name, context.repo_url = owner, repo, repo_url
        context.repository_created = True
        context.resources.append(CreatedResource("repository", f"{owner}/{repo}", repo_url))
        logger.info("Created GitHub repository %s", repo_url)

        files = [TemplateFile("README.md", readme_content(request))]
        if context.template_path is not None:
            try:
                files.extend(await asyncio.to_thread(collect_template_files, context.template_path))
            except (OSError, UnicodeDecodeError) as exc:
                logger.warning("Could not read template directory %s: %s", context.template_path, exc)

        uploaded, failed = await self._upload_all(owner, repo, files)
        trigger = TemplateFile("DEPLOYMENT.md", deployment_note(repo))
        if not await self._put(owner, repo, trigger, "Trigger Vercel deployment"):
            failed.append(trigger.path)

        return StepResult.ok(
            {
                "repoUrl": repo_url,
                "repoName": repo,
                "owner": owner,
                "cloneUrl": created.get("clone_url") or f"{repo_url}.git",
                "filesUploaded": uploaded,
                "failedFiles": failed,
            }
        )


# ----------------------------------------------------------------------
# 4. deployment
# ----------------------------------------------------------------------
class DeploymentStep:
    name = "Vercel Deployment"
    label = "Vercel deployment"

    def __init__(
        self,
        vercel: VercelClient | None,
        github: GitHubClient | None = None,
        delays: Delays | None = None,
    ) -> None:
        self._vercel = vercel
        self._github = github
        self._delays = delays or Delays()

    async def _push_trigger(self, context: ProvisioningContext) -> None:
        if self._github is None or not context.repository_created:
            return
        note = TemplateFile("VERCEL_DEPLOY.md", deploy_trigger_note(context.request.site_name))
        try:
            await self._github.put_file(
                context.repo_owner or "",
                context.repo_name or "",
                note.path,
                note.content,
                message="Trigger Vercel deployment",
            )
        except (GitHubError, httpx.HTTPError) as exc:
            logger.warning("Deployment trigger push failed for %s: %s", context.repo_name, exc)

    async def run(self, context: ProvisioningContext) -> StepResult:
        name = project_name(context.request.site_name)

        if context.capabilities.vercel is None or self._vercel is None:
            deployment_url = f"https://{name}.vercel.app"
            context.deployment_host = strip_scheme(deployment_url)
            logger.info("Vercel integration not configured, skipping deployment for %s", name)
            return StepResult.ok(
                {
                    "deploymentUrl": deployment_url,
                    "vercelUrl": context.deployment_host,
                    "status": "skipped",
                    "note": "Vercel integration not configured - manual deployment required",
                }
            )

        owner = context.repo_owner or "juzbuild"
        repo = context.repo_name or context.request.site_name
        try:
            created = await self._vercel.create_project_and_deploy(name, owner, repo)
        except (VercelError, httpx.HTTPError) as exc:
            return StepResult.fail(str(exc))

        project = created.get("project") or {}
        deployment_url = created["deploymentUrl"]
        context.vercel_project_id = project.get("id")
        context.resources.append(
            CreatedResource("vercel_project", project.get("id") or project.get("name") or name, deployment_url)
        )

        await self._delays.sleep(self._delays.propagation_delay)
        await self._push_trigger(context)

        context.deployment_host = strip_scheme(deployment_url)
        return StepResult.ok(
            {
                "projectId": project.get("id"),
                "projectName": project.get("name") or name,
                "deploymentUrl": deployment_url,
                "vercelUrl": context.deployment_host,
                "status": "created",
                "note": "Deployment will be triggered by the GitHub push",
            }
        )


# ----------------------------------------------------------------------
# 5. DNS
# ----------------------------------------------------------------------
class SubdomainStep:
    name = "Subdomain Setup"
    label = "Subdomain setup"

    def __init__(self, namecheap: NamecheapClient | None) -> None:
        self._namecheap = namecheap

    async def run(self, context: ProvisioningContext) -> StepResult:
        request = context.request
        capabilities = context.capabilities
        domain = context.domain
        target = (
            context.deployment_host
            or capabilities.deployment_target
            or f"{project_name(request.site_name)}.vercel.app"
        )

        if capabilities.namecheap is None or self._namecheap is None:
            logger.info("Namecheap integration not configured, skipping subdomain creation for %s", domain)
            return StepResult.ok(
                {
                    "subdomain": domain,
                    "cname": target,
                    "status": "configured",
                    "note": "Namecheap integration not configured - manual DNS setup required",
                }
            )

        logger.info("Creating DNS record %s -> %s", domain, target)
        result = await self._namecheap.create_cname(capabilities.parent_domain, request.domain_name, target)
        if not result.success:
            logger.warning("DNS creation failed for %s: %s", domain, result.message)
            return StepResult.fail(result.message)

        context.resources.append(CreatedResource("dns_record", domain, target))
        return StepResult.ok({"subdomain": domain, "cname": target, "status": "active", "message": result.message})


# ----------------------------------------------------------------------
# 6. notification
# ----------------------------------------------------------------------
class NotificationStep:
    name = "Email Notification"
    label = "Email notification"

    def __init__(self, email_service: EmailService | None) -> None:
        self._email = email_service

    async def run(self, context: ProvisioningContext) -> StepResult:
        request = context.request
        capabilities = context.capabilities
        domain = context.domain
        website_url = f"https://{domain}"

        if capabilities.email is None or self._email is None:
            logger.info("Email not configured, skipping notification to %s", request.user_email)
            return StepResult.ok(
                {
                    "emailSent": False,
                    "recipient": request.user_email,
                    "domain": domain,
                    "note": "Email service not configured - notification skipped",
                }
            )

        recipient = capabilities.email.notification_recipient or request.user_email
        if not recipient:
            return StepResult.ok(
                {"emailSent": False, "recipient": "", "domain": domain, "note": "No recipient address available"}
            )

        app_url = capabilities.app_url.rstrip("/")
        try:
            await self._email.send_website_creation_email(
                recipient,
                {
                    "userEmail": recipient,
                    "companyName": request.company_name,
                    "websiteName": request.site_name,
                    "domain": domain,
                    "theme": request.selected_theme,
                    "layoutStyle": request.layout_style,
                    "websiteUrl": website_url,
                    "dashboardUrl": f"{app_url}/app/dashboard",
                    "baseUrl": app_url,
                    "createdAt": datetime.now(timezone.utc).strftime("%Y-%m-%d %H:%M UTC"),
                },
            )
        except EmailDeliveryError as exc:
            return StepResult.fail(str(exc))

        return StepResult.ok(
            {
                "emailSent": True,
                "recipient": recipient,
                "originalRecipient": request.user_email,
                "domain": domain,
                "websiteUrl": website_url,
            }
        )


# ----------------------------------------------------------------------
# 7. ledger
# ----------------------------------------------------------------------
class LedgerStep:
    name = "Database Logging"
    label = "Database logging"

    def __init__(self, gateway: DatabaseGateway) -> None:
        self._gateway = gateway

    async def run(self, context: ProvisioningContext) -> StepResult:
        request = context.request
        capabilities = context.capabilities
        template_path = context.template_path or capabilities.templates_root / request.site_name
        record = TenantSiteRecord(
            user_id=request.user_id,
            user_email=request.user_email,
            website_name=request.site_name,
            company_name=request.company_name,
            template_path=str(template_path),
            repo_url=context.repo_url or "",
            domain=context.domain,
            db_name=context.db_name or derive_db_name(request.site_name, capabilities.tenant_db_prefix),
            theme=request.selected_theme,
            layout_style=request.layout_style,
            vercel_project_id=context.vercel_project_id,
        )

        try:
            session = await asyncio.to_thread(self._gateway.open, capabilities.control_db_name)
        except DatabaseError as exc:
            return StepResult.fail(str(exc))
        try:
            site_id = await asyncio.to_thread(session.insert_one, capabilities.sites_collection, record.to_document())
        except DatabaseError as exc:
            return StepResult.fail(str(exc))
        finally:
            await asyncio.to_thread(session.close)

        logger.info("Logged site %s as %s", request.site_name, site_id)
        return StepResult.ok({"siteId": site_id, "logged": True})


__all__ = [
    "DeploymentStep",
    "LedgerStep",
    "NotificationStep",
    "ProvisioningContext",
    "ProvisioningStep",
    "RepositoryStep",
    "SubdomainStep",
    "TemplateStep",
    "TenantDatabaseStep",
]
