"""Application services."""

from .sites import (
    IntegrationNotConfigured,
    SiteService,
    configure_site_service,
    get_site_service,
    reset_site_service,
)

__all__ = [
    "IntegrationNotConfigured",
    "SiteService",
    "configure_site_service",
    "get_site_service",
    "reset_site_service",
]
