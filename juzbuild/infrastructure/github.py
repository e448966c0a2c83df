"""Integration with the GitHub REST API."""
from __future__ import annotations

import base64
from typing import Any
from urllib.parse import quote

import httpx


class GitHubError(RuntimeError):
    """Raised when GitHub refuses a request."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class GitHubClient:
    """Minimal client for repository creation and contents uploads."""

    def __init__(
        self,
        token: str,
        *,
        api_base: str = "https://api.github.com",
        timeout: float = 30.0,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        self._api_base = api_base.rstrip("/")
        self._headers = {
            "Authorization": f"Bearer {token}",
            "Accept": "application/vnd.github+json",
            "X-GitHub-Api-Version": "2022-11-28",
            "User-Agent": "Juzbuild/1.0",
        }
        self._client = http_client or httpx.AsyncClient(timeout=timeout)
        self._owns_client = http_client is None

    # ------------------------------------------------------------------
    # helpers
    # ------------------------------------------------------------------
    async def _request(self, method: str, path: str, **kwargs: Any) -> httpx.Response:
        response = await self._client.request(method, f"{self._api_base}{path}", headers=self._headers, **kwargs)
        if response.is_error:
            raise GitHubError(self._error_message(response), status_code=response.status_code)
        return response

    @staticmethod
    def _error_message(response: httpx.Response) -> str:
        try:
            detail = response.json().get("message")
        except ValueError:
            detail = None
        return f"GitHub API error {response.status_code}: {detail or response.text or response.reason_phrase}"

    # ------------------------------------------------------------------
    # public API
    # ------------------------------------------------------------------
    async def create_repository(self, name: str, *, description: str = "", private: bool = False) -> dict[str, Any]:
        response = await self._request(
            "POST",
            "/user/repos",
            json={"name": name, "description": description, "private": private, "auto_init": False},
        )
        return response.json()

    async def put_file(self, owner: str, repo: str, path: str, content: str, *, message: str) -> dict[str, Any]:
        encoded = base64.b64encode(content.encode("utf-8")).decode("ascii")
        response = await self._request(
            "PUT",
            f"/repos/{quote(owner)}/{quote(repo)}/contents/{quote(path)}",
            json={"message": message, "content": encoded},
        )
        return response.json()

    async def delete_repository(self, owner: str, repo: str) -> bool:
        """Delete ``owner/repo``; returns ``False`` when it was already gone."""

        try:
            await self._request("DELETE", f"/repos/{quote(owner)}/{quote(repo)}")
        except GitHubError as exc:
            if exc.status_code == 404:
                return False
            raise
        return True

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()


__all__ = ["GitHubClient", "GitHubError"]
