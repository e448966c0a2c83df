from __future__ import annotations

import asyncio
import logging
from typing import Any, Mapping, Sequence

import httpx

from juzbuild.core.config import ProvisioningCapabilities
from juzbuild.core.naming import derive_db_name, parse_repo_url, project_name
from juzbuild.domain import DeletionOutcome
from juzbuild.infrastructure.databases import DatabaseError, DatabaseGateway
from juzbuild.infrastructure.github import GitHubClient, GitHubError
from juzbuild.infrastructure.namecheap import NamecheapClient, NamecheapError
from juzbuild.infrastructure.vercel import VercelClient, VercelError

logger = logging.getLogger(__name__)


class WebsiteDeleter:
    """Best-effort teardown of everything a provisioning run created.

    Each resource is attempted independently; a resource that is already
    gone (404 from the provider, no DNS records left) counts as deleted.
    """

    def __init__(
        self,
        capabilities: ProvisioningCapabilities,
        gateway: DatabaseGateway,
        *,
        github: GitHubClient | None = None,
        vercel: VercelClient | None = None,
        namecheap: NamecheapClient | None = None,
        clients: Sequence[Any] = (),
    ) -> None:
        self._capabilities = capabilities
        self._gateway = gateway
        self._github = github
        self._vercel = vercel
        self._namecheap = namecheap
        self._clients = list(clients)

    async def aclose(self) -> None:
        for client in self._clients:
            await client.aclose()

    def _drop_database(self, db_name: str) -> None:
        session = self._gateway.open(db_name)
        try:
            session.drop_database()
        finally:
            session.close()

    def _repository(self, site: Mapping[str, Any]) -> tuple[str, str] | None:
        parsed = parse_repo_url(site.get("repoUrl") or "")
        if parsed:
            return parsed
        credentials = self._capabilities.github
        if credentials and site.get("websiteName"):
            return credentials.username, site["websiteName"]
        return None

    async def delete(self, site: Mapping[str, Any]) -> DeletionOutcome:
        website_name = site.get("websiteName") or ""
        outcome = DeletionOutcome(
            success=False,
            deleted={"vercelProject": False, "githubRepo": False, "subdomain": False, "database": False},
        )

        if self._vercel is not None:
            target = site.get("vercelProjectId") or project_name(website_name)
            try:
                if not await self._vercel.delete_project(target):
                    logger.info("Vercel project %s was already deleted", target)
                outcome.deleted["vercelProject"] = True
            except (VercelError, httpx.HTTPError) as exc:
                outcome.errors.append(f"Vercel project: {exc}")

        repository = self._repository(site)
        if self._github is not None and repository is not None:
            owner, repo = repository
            try:
                if not await self._github.delete_repository(owner, repo):
                    logger.info("GitHub repository %s/%s was already deleted", owner, repo)
                outcome.deleted["githubRepo"] = True
            except (GitHubError, httpx.HTTPError) as exc:
                outcome.errors.append(f"GitHub repository: {exc}")

        domain = site.get("domain")
        if self._namecheap is not None and domain:
            try:
                removed = await self._namecheap.delete_subdomain(domain)
                logger.info("Removed %d DNS record(s) for %s", removed, domain)
                outcome.deleted["subdomain"] = True
            except (NamecheapError, httpx.HTTPError, ValueError) as exc:
                outcome.errors.append(f"Subdomain: {exc}")

        db_name = site.get("dbName") or (
            derive_db_name(website_name, self._capabilities.tenant_db_prefix) if website_name else None
        )
        if db_name:
            try:
                await asyncio.to_thread(self._drop_database, db_name)
                outcome.deleted["database"] = True
            except DatabaseError as exc:
                outcome.errors.append(f"Database: {exc}")

        for message in outcome.errors:
            logger.warning("Deleting %s: %s", website_name, message)
        outcome.success = any(outcome.deleted.values())
        return outcome


def build_deleter(capabilities: ProvisioningCapabilities, gateway: DatabaseGateway) -> WebsiteDeleter:
    owned: list[Any] = []
    github = vercel = namecheap = None
    if capabilities.github is not None:
        github = GitHubClient(capabilities.github.token)
        owned.append(github)
    if capabilities.vercel is not None:
        vercel = VercelClient(capabilities.vercel.token, team_id=capabilities.vercel.team_id)
        owned.append(vercel)
    if capabilities.namecheap is not None:
        credentials = capabilities.namecheap
        namecheap = NamecheapClient(
            credentials.api_user,
            credentials.api_key,
            credentials.username,
            client_ip=credentials.client_ip,
            sandbox=credentials.sandbox,
        )
        owned.append(namecheap)
    return WebsiteDeleter(capabilities, gateway, github=github, vercel=vercel, namecheap=namecheap, clients=owned)


__all__ = ["WebsiteDeleter", "build_deleter"]
