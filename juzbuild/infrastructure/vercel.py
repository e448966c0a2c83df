"""Integration with the Vercel REST API."""
from __future__ import annotations

import logging
from typing import Any
from urllib.parse import quote

import httpx

logger = logging.getLogger(__name__)


class VercelError(RuntimeError):
    """Raised when Vercel refuses a request."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class VercelClient:
    def __init__(
        self,
        token: str,
        *,
        team_id: str | None = None,
        api_base: str = "https://api.vercel.com",
        timeout: float = 30.0,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        self._api_base = api_base.rstrip("/")
        self._headers = {"Authorization": f"Bearer {token}", "Content-Type": "application/json"}
        self._params = {"teamId": team_id} if team_id else {}
        self._client = http_client or httpx.AsyncClient(timeout=timeout)
        self._owns_client = http_client is None

    async def _request(self, method: str, path: str, **kwargs: Any) -> httpx.Response:
        response = await self._client.request(
            method,
            f"{self._api_base}{path}",
            headers=self._headers,
            params=self._params,
            **kwargs,
        )
        if response.is_error:
            try:
                detail = (response.json().get("error") or {}).get("message")
            except (ValueError, AttributeError):
                detail = None
            raise VercelError(
                f"Vercel API error {response.status_code}: {detail or response.text or response.reason_phrase}",
                status_code=response.status_code,
            )
        return response

    async def create_project(self, name: str, repo_full_name: str, *, framework: str = "nextjs") -> dict[str, Any]:
        response = await self._request(
            "POST",
            "/v10/projects",
            json={
                "name": name,
                "framework": framework,
                "gitRepository": {"type": "github", "repo": repo_full_name},
            },
        )
        return response.json()

    async def create_deployment(self, project_name: str, owner: str, repo: str, *, ref: str = "main") -> dict[str, Any]:
        response = await self._request(
            "POST",
            "/v13/deployments",
            json={
                "name": project_name,
                "project": project_name,
                "target": "production",
                "gitSource": {"type": "github", "org": owner, "repo": repo, "ref": ref},
            },
        )
        return response.json()

    async def create_project_and_deploy(self, name: str, owner: str, repo: str) -> dict[str, Any]:
        """Create the project and ask for a first production deployment.

        The project's production URL is returned even if the deployment
        request is refused; Vercel deploys on the next push to the linked
        repository.
        """

        project = await self.create_project(name, f"{owner}/{repo}")
        deployment: dict[str, Any] | None = None
        try:
            deployment = await self.create_deployment(project.get("name") or name, owner, repo)
        except VercelError as exc:
            logger.warning("Initial deployment request for %s was refused: %s", name, exc)
        deployment_url = f"https://{project.get('name') or name}.vercel.app"
        return {"project": project, "deployment": deployment, "deploymentUrl": deployment_url}

    async def delete_project(self, project_id_or_name: str) -> bool:
        try:
            await self._request("DELETE", f"/v9/projects/{quote(project_id_or_name)}")
        except VercelError as exc:
            if exc.status_code == 404:
                return False
            raise
        return True

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()


__all__ = ["VercelClient", "VercelError"]
