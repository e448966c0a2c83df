from __future__ import annotations

import re

DEFAULT_DB_PREFIX = "juzbuild_"

_NON_ALNUM = re.compile(r"[^a-z0-9]")
_WHITESPACE = re.compile(r"\s+")


def derive_db_name(site_name: str, prefix: str = DEFAULT_DB_PREFIX) -> str:
    """Name of the per-site tenant database, e.g. ``"My Site!"`` -> ``juzbuild_mysite``."""

    return f"{prefix}{_NON_ALNUM.sub('', site_name.lower())}"


def page_slug(page: str) -> str:
    return _WHITESPACE.sub("-", page.strip().lower())


def project_name(site_name: str) -> str:
    """Hosting project name; the deletion flow derives it the same way."""

    return _NON_ALNUM.sub("-", site_name.lower())


def site_domain(subdomain: str, parent_domain: str) -> str:
    return f"{subdomain}.{parent_domain}"


def strip_scheme(url: str) -> str:
    return re.sub(r"^[a-zA-Z][a-zA-Z0-9+.-]*://", "", url).rstrip("/")


def parse_repo_url(url: str) -> tuple[str, str] | None:
    """Return ``(owner, repo)`` for a GitHub repository URL."""

    match = re.search(r"github\.com[/:]([^/]+)/([^/]+?)(?:\.git)?/?$", url or "")
    if not match:
        return None
    return match.group(1), match.group(2)
