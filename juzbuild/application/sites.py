"""Application service layer for tenant websites."""
from __future__ import annotations

import asyncio
import logging
import os
from datetime import datetime, timezone
from typing import Any, Callable

from juzbuild.core.config import ProvisioningCapabilities
from juzbuild.core.schema import ProvisioningRequest
from juzbuild.domain import ProvisioningOutcome
from juzbuild.infrastructure import (
    DatabaseGateway,
    InMemoryDatabaseGateway,
    MongoDatabaseGateway,
    NamecheapClient,
)
from juzbuild.infrastructure.namecheap import describe_availability
from juzbuild.workers.deletion import WebsiteDeleter, build_deleter
from juzbuild.workers.provisioning import WebsiteProvisioner, build_provisioner

logger = logging.getLogger(__name__)

ProvisionerFactory = Callable[[ProvisioningCapabilities, DatabaseGateway], WebsiteProvisioner]
DeleterFactory = Callable[[ProvisioningCapabilities, DatabaseGateway], WebsiteDeleter]


class IntegrationNotConfigured(RuntimeError):
    """Raised when a use case needs an integration whose credentials are absent."""


def _public(document: dict[str, Any]) -> dict[str, Any]:
    document = dict(document)
    document["id"] = str(document.pop("_id", ""))
    return document


class SiteService:
    """Coordinates website creation, lookup and teardown."""

    def __init__(
        self,
        capabilities: ProvisioningCapabilities,
        gateway: DatabaseGateway,
        *,
        provisioner_factory: ProvisionerFactory = build_provisioner,
        deleter_factory: DeleterFactory = build_deleter,
        namecheap: NamecheapClient | None = None,
    ) -> None:
        self._capabilities = capabilities
        self._gateway = gateway
        self._provisioner_factory = provisioner_factory
        self._deleter_factory = deleter_factory
        self._namecheap = namecheap

    @property
    def capabilities(self) -> ProvisioningCapabilities:
        return self._capabilities

    # ------------------------------------------------------------------
    # control-plane access
    # ------------------------------------------------------------------
    def _with_sites(self, operation: Callable[..., Any], *args: Any) -> Any:
        session = self._gateway.open(self._capabilities.control_db_name)
        try:
            return operation(session, self._capabilities.sites_collection, *args)
        finally:
            session.close()

    @staticmethod
    def _find_active(session: Any, collection: str, site_id: str, user_id: str) -> dict[str, Any] | None:
        document = session.find_one(collection, {"_id": site_id, "userId": user_id})
        if document is None or document.get("status") == "deleted":
            return None
        return document

    # ------------------------------------------------------------------
    # use cases
    # ------------------------------------------------------------------
    async def create_website(self, request: ProvisioningRequest) -> ProvisioningOutcome:
        provisioner = self._provisioner_factory(self._capabilities, self._gateway)
        try:
            return await provisioner.run(request)
        finally:
            await provisioner.aclose()

    async def list_sites(self, user_id: str) -> list[dict[str, Any]]:
        def _list(session: Any, collection: str) -> list[dict[str, Any]]:
            documents = session.find(collection, {"userId": user_id})
            return [_public(doc) for doc in documents if doc.get("status") != "deleted"]

        return await asyncio.to_thread(self._with_sites, _list)

    async def get_site(self, site_id: str, user_id: str) -> dict[str, Any] | None:
        document = await asyncio.to_thread(self._with_sites, self._find_active, site_id, user_id)
        return _public(document) if document else None

    async def delete_site(self, site_id: str, user_id: str) -> dict[str, Any] | None:
        site = await asyncio.to_thread(self._with_sites, self._find_active, site_id, user_id)
        if site is None:
            return None

        deleter = self._deleter_factory(self._capabilities, self._gateway)
        try:
            outcome = await deleter.delete(site)
        finally:
            await deleter.aclose()

        now = datetime.now(timezone.utc)

        def _mark(session: Any, collection: str) -> int:
            return session.update_one(
                collection,
                {"_id": site_id},
                {"status": "deleted", "deletedAt": now, "updatedAt": now},
            )

        await asyncio.to_thread(self._with_sites, _mark)
        logger.info("Website %s deleted for user %s", site.get("websiteName"), user_id)
        return {
            "success": True,
            "message": f'Website "{site.get("websiteName")}" has been deleted successfully',
            "result": outcome.to_dict(),
        }

    async def check_domain(self, domain: str) -> dict[str, Any]:
        credentials = self._capabilities.namecheap
        if credentials is None and self._namecheap is None:
            raise IntegrationNotConfigured("Namecheap integration not configured")

        client = self._namecheap
        owned = client is None
        if client is None:
            client = NamecheapClient(
                credentials.api_user,
                credentials.api_key,
                credentials.username,
                client_ip=credentials.client_ip,
                sandbox=credentials.sandbox,
            )
        try:
            result = await client.check_domain(domain)
        finally:
            if owned:
                await client.aclose()
        return describe_availability(result)


_service: SiteService | None = None


def _default_gateway() -> DatabaseGateway:
    uri = os.getenv("MONGODB_URI")
    if uri:
        return MongoDatabaseGateway(uri)
    logger.warning("MONGODB_URI is not set; using an in-memory database")
    return InMemoryDatabaseGateway()


def configure_site_service(service: SiteService) -> None:
    """Install the site service used by the HTTP routes."""

    global _service
    _service = service


def get_site_service() -> SiteService:
    """Return the process-wide site service, building it from the environment on first use."""

    global _service
    if _service is None:
        _service = SiteService(ProvisioningCapabilities.from_env(), _default_gateway())
    return _service


def reset_site_service() -> None:
    """Drop the configured service (used in tests)."""

    global _service
    _service = None


__all__ = [
    "IntegrationNotConfigured",
    "SiteService",
    "configure_site_service",
    "get_site_service",
    "reset_site_service",
]
