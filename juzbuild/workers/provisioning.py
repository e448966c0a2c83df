from __future__ import annotations

import asyncio
import logging
from pathlib import Path
from typing import Any, Callable, Sequence

from juzbuild.core.config import Delays, ProvisioningCapabilities
from juzbuild.core.schema import ProvisioningRequest
from juzbuild.domain import ProvisioningOutcome
from juzbuild.generators.site_template import remove_site_template
from juzbuild.infrastructure.databases import DatabaseGateway
from juzbuild.infrastructure.github import GitHubClient
from juzbuild.infrastructure.mailer import EmailService, SmtpMailer
from juzbuild.infrastructure.namecheap import NamecheapClient
from juzbuild.infrastructure.vercel import VercelClient

from .steps import (
    DeploymentStep,
    LedgerStep,
    NotificationStep,
    ProvisioningContext,
    ProvisioningStep,
    RepositoryStep,
    SubdomainStep,
    TemplateStep,
    TenantDatabaseStep,
)

logger = logging.getLogger(__name__)


class WebsiteProvisioner:
    """Runs the provisioning steps strictly in order and stops at the first failure."""

    def __init__(
        self,
        steps: Sequence[ProvisioningStep],
        capabilities: ProvisioningCapabilities,
        *,
        template_cleanup: Callable[[Path], Any] = remove_site_template,
        clients: Sequence[Any] = (),
    ) -> None:
        self._steps = list(steps)
        self._capabilities = capabilities
        self._template_cleanup = template_cleanup
        self._clients = list(clients)

    @property
    def steps(self) -> list[ProvisioningStep]:
        return list(self._steps)

    async def _cleanup(self, context: ProvisioningContext) -> None:
        if not self._capabilities.cleanup_templates or context.template_path is None:
            return
        try:
            await asyncio.to_thread(self._template_cleanup, context.template_path)
        except OSError as exc:
            logger.warning("Could not remove template directory %s: %s", context.template_path, exc)

    async def run(self, request: ProvisioningRequest) -> ProvisioningOutcome:
        context = ProvisioningContext(request=request, capabilities=self._capabilities)
        try:
            for step in self._steps:
                logger.info("Starting step %s for %s", step.name, request.site_name)
                result = await step.run(context)
                if not result.success:
                    logger.warning("Step %s failed for %s: %s", step.name, request.site_name, result.error)
                    return ProvisioningOutcome(
                        success=False,
                        error=f"{step.label} failed: {result.error}",
                        step=step.name,
                        resources=list(context.resources),
                    )
                context.results[step.name] = result.data or {}
            await self._cleanup(context)
        except Exception as exc:  # unexpected step errors end the run without attribution
            logger.exception("Website creation workflow failed for %s", request.site_name)
            return ProvisioningOutcome(
                success=False,
                error=str(exc) or "Unknown error",
                resources=list(context.resources),
            )

        logger.info("Provisioned %s at %s", request.site_name, context.domain)
        return ProvisioningOutcome(
            success=True,
            data={
                "websiteName": request.site_name,
                "domain": context.domain,
                "status": "active",
                "results": dict(context.results),
            },
        )

    async def aclose(self) -> None:
        for client in self._clients:
            await client.aclose()


def build_provisioner(
    capabilities: ProvisioningCapabilities,
    gateway: DatabaseGateway,
    *,
    control_gateway: DatabaseGateway | None = None,
    github: GitHubClient | None = None,
    vercel: VercelClient | None = None,
    namecheap: NamecheapClient | None = None,
    email_service: EmailService | None = None,
    delays: Delays | None = None,
) -> WebsiteProvisioner:
    """Wire the default workflow, creating clients for every enabled integration.

    Clients passed in are used as-is and left open; clients created here are
    closed by :meth:`WebsiteProvisioner.aclose`.
    """

    delays = delays or Delays()
    owned: list[Any] = []

    if github is None and capabilities.github is not None:
        github = GitHubClient(capabilities.github.token)
        owned.append(github)
    if vercel is None and capabilities.vercel is not None:
        vercel = VercelClient(capabilities.vercel.token, team_id=capabilities.vercel.team_id)
        owned.append(vercel)
    if namecheap is None and capabilities.namecheap is not None:
        credentials = capabilities.namecheap
        namecheap = NamecheapClient(
            credentials.api_user,
            credentials.api_key,
            credentials.username,
            client_ip=credentials.client_ip,
            sandbox=credentials.sandbox,
        )
        owned.append(namecheap)
    if email_service is None and capabilities.email is not None:
        credentials = capabilities.email
        email_service = EmailService(
            SmtpMailer(
                credentials.host,
                credentials.username,
                credentials.password,
                port=credentials.port,
                sender=credentials.sender,
            )
        )

    steps: list[ProvisioningStep] = [
        TenantDatabaseStep(gateway),
        TemplateStep(),
        RepositoryStep(github, delays),
        DeploymentStep(vercel, github, delays),
        SubdomainStep(namecheap),
        NotificationStep(email_service),
        LedgerStep(control_gateway or gateway),
    ]
    return WebsiteProvisioner(steps, capabilities, clients=owned)


__all__ = ["WebsiteProvisioner", "build_provisioner"]
