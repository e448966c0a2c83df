"""Integration switches resolved once from the environment."""
from __future__ import annotations

import asyncio
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Awaitable, Callable, Mapping

DEFAULT_PARENT_DOMAIN = "onjuzbuild.com"
DEFAULT_CONTROL_DB = "Juzbuild"
DEFAULT_APP_URL = "https://juzbuild.com"

_TRUTHY = {"1", "true", "yes", "on"}


@dataclass(frozen=True, slots=True)
class GitHubCredentials:
    token: str
    username: str


@dataclass(frozen=True, slots=True)
class VercelCredentials:
    token: str
    team_id: str | None = None


@dataclass(frozen=True, slots=True)
class NamecheapCredentials:
    api_user: str
    api_key: str
    username: str
    client_ip: str = "127.0.0.1"
    sandbox: bool = False


@dataclass(frozen=True, slots=True)
class EmailCredentials:
    host: str
    username: str
    password: str
    port: int = 587
    sender: str | None = None
    notification_recipient: str | None = None


@dataclass(frozen=True, slots=True)
class ProvisioningCapabilities:
    """Which integrations are live for a provisioning run, and with what credentials.

    A ``None`` credential block means the matching step runs in skipped mode
    and reports a synthesized result instead of calling the provider.
    """

    github: GitHubCredentials | None = None
    vercel: VercelCredentials | None = None
    namecheap: NamecheapCredentials | None = None
    email: EmailCredentials | None = None
    parent_domain: str = DEFAULT_PARENT_DOMAIN
    tenant_db_prefix: str = "juzbuild_"
    control_db_name: str = DEFAULT_CONTROL_DB
    sites_collection: str = "sites"
    templates_root: Path = field(default_factory=lambda: Path.cwd() / "templates")
    deployment_target: str | None = None
    app_url: str = DEFAULT_APP_URL
    cleanup_templates: bool = True

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> "ProvisioningCapabilities":
        env = os.environ if environ is None else environ

        def get(key: str) -> str:
            return (env.get(key) or "").strip()

        github = None
        if get("GITHUB_TOKEN") and get("GITHUB_USERNAME"):
            github = GitHubCredentials(token=get("GITHUB_TOKEN"), username=get("GITHUB_USERNAME"))

        vercel = None
        if get("VERCEL_TOKEN"):
            vercel = VercelCredentials(token=get("VERCEL_TOKEN"), team_id=get("VERCEL_TEAM_ID") or None)

        namecheap = None
        if get("NAMECHEAP_API_USER") and get("NAMECHEAP_API_KEY"):
            namecheap = NamecheapCredentials(
                api_user=get("NAMECHEAP_API_USER"),
                api_key=get("NAMECHEAP_API_KEY"),
                username=get("NAMECHEAP_USERNAME") or get("NAMECHEAP_API_USER"),
                client_ip=get("NAMECHEAP_CLIENT_IP") or "127.0.0.1",
                sandbox=get("NAMECHEAP_SANDBOX").lower() in _TRUTHY,
            )

        email = None
        if get("EMAIL_USER") and get("EMAIL_PASS"):
            email = EmailCredentials(
                host=get("EMAIL_HOST") or "localhost",
                port=int(get("EMAIL_PORT") or 587),
                username=get("EMAIL_USER"),
                password=get("EMAIL_PASS"),
                sender=get("EMAIL_FROM") or None,
                notification_recipient=get("NOTIFICATION_EMAIL") or None,
            )

        templates_root = get("JUZBUILD_TEMPLATES_ROOT")
        cleanup = get("JUZBUILD_CLEANUP_TEMPLATES")
        return cls(
            github=github,
            vercel=vercel,
            namecheap=namecheap,
            email=email,
            parent_domain=get("JUZBUILD_PARENT_DOMAIN") or DEFAULT_PARENT_DOMAIN,
            control_db_name=get("JUZBUILD_CONTROL_DB") or DEFAULT_CONTROL_DB,
            templates_root=Path(templates_root).expanduser() if templates_root else Path.cwd() / "templates",
            deployment_target=get("DEPLOYMENT_TARGET") or None,
            app_url=get("NEXT_PUBLIC_APP_URL") or DEFAULT_APP_URL,
            cleanup_templates=cleanup.lower() in _TRUTHY if cleanup else True,
        )


async def _no_sleep(_seconds: float) -> None:
    return None


@dataclass(frozen=True, slots=True)
class Delays:
    """Fixed waits used to stay under provider rate limits and propagation lag."""

    file_delay: float = 0.5
    batch_delay: float = 1.0
    batch_size: int = 3
    propagation_delay: float = 3.0
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep

    @classmethod
    def none(cls) -> "Delays":
        return cls(file_delay=0, batch_delay=0, propagation_delay=0, sleep=_no_sleep)
