"""Minimal async client for the GitHub REST endpoints autotag relies on."""

from __future__ import annotations

import base64
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Sequence

import httpx

DEFAULT_API_URL = "https://api.github.com"
_ACCEPT = "application/vnd.github+json"
_API_VERSION = "2022-11-28"


class GitHubError(RuntimeError):
    """Raised when the GitHub API answers with a non-success status."""

    def __init__(self, message: str, status: int | None = None) -> None:
        super().__init__(message)
        self.status = status


@dataclass(frozen=True)
class RemoteFile:
    """A repository file as returned by the contents API."""

    path: str
    content: str
    sha: str


class GitHubClient:
    """Repository-scoped wrapper around topics, languages and contents calls."""

    def __init__(
        self,
        token: str,
        owner: str,
        repo: str,
        *,
        base_url: str = DEFAULT_API_URL,
        client: httpx.AsyncClient | None = None,
        timeout: float = 15.0,
    ) -> None:
        self.owner = owner
        self.repo = repo
        headers = {
            "Accept": _ACCEPT,
            "Authorization": f"Bearer {token}",
            "X-GitHub-Api-Version": _API_VERSION,
            "User-Agent": "autotag",
        }
        if client is None:
            self._client = httpx.AsyncClient(base_url=base_url, headers=headers, timeout=timeout)
            self._owns_client = True
        else:
            client.headers.update(headers)
            self._client = client
            self._owns_client = False

    @property
    def _repo_path(self) -> str:
        return f"/repos/{self.owner}/{self.repo}"

    async def get_topics(self) -> List[str]:
        data = await self._request("GET", f"{self._repo_path}/topics")
        names = data.get("names") if isinstance(data, dict) else None
        return [name for name in names or [] if isinstance(name, str)]

    async def replace_topics(self, names: Sequence[str]) -> List[str]:
        data = await self._request("PUT", f"{self._repo_path}/topics", json={"names": list(names)})
        names_out = data.get("names") if isinstance(data, dict) else None
        return [name for name in names_out or [] if isinstance(name, str)]

    async def list_languages(self) -> Dict[str, int]:
        data = await self._request("GET", f"{self._repo_path}/languages")
        if not isinstance(data, dict):
            return {}
        return {name: size for name, size in data.items() if isinstance(size, int)}

    async def get_file(self, path: str, *, ref: str | None = None) -> Optional[RemoteFile]:
        """Return the file at ``path`` or ``None`` when it does not exist."""
        params = {"ref": ref} if ref else None
        try:
            data = await self._request("GET", f"{self._repo_path}/contents/{path}", params=params)
        except GitHubError as exc:
            if exc.status == 404:
                return None
            raise
        if not isinstance(data, dict) or data.get("type") != "file":
            raise GitHubError(f"{path} is not a file in {self.owner}/{self.repo}")
        encoded = data.get("content") or ""
        try:
            content = base64.b64decode(encoded).decode("utf-8")
        except ValueError as exc:
            raise GitHubError(f"{path} has undecodable content: {exc}") from exc
        return RemoteFile(path=path, content=content, sha=str(data.get("sha", "")))

    async def put_file(
        self,
        path: str,
        content: str,
        *,
        message: str,
        sha: str | None = None,
        branch: str | None = None,
    ) -> str:
        """Create or update ``path``; ``sha`` is the revision being replaced."""
        payload: Dict[str, Any] = {
            "message": message,
            "content": base64.b64encode(content.encode("utf-8")).decode("ascii"),
        }
        if sha:
            payload["sha"] = sha
        if branch:
            payload["branch"] = branch
        data = await self._request("PUT", f"{self._repo_path}/contents/{path}", json=payload)
        file_info = data.get("content") if isinstance(data, dict) else None
        return str(file_info.get("sha", "")) if isinstance(file_info, dict) else ""

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    async def __aenter__(self) -> "GitHubClient":
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    async def _request(self, method: str, url: str, **kwargs: Any) -> Any:
        try:
            response = await self._client.request(method, url, **kwargs)
        except httpx.HTTPError as exc:
            raise GitHubError(f"{method} {url} failed: {exc}") from exc
        if not response.is_success:
            detail = ""
            try:
                body = response.json()
            except ValueError:
                body = None
            if isinstance(body, dict) and isinstance(body.get("message"), str):
                detail = f": {body['message']}"
            raise GitHubError(
                f"{method} {url} returned {response.status_code}{detail}",
                status=response.status_code,
            )
        if not response.content:
            return None
        try:
            return response.json()
        except ValueError as exc:
            raise GitHubError(f"{method} {url} returned invalid JSON") from exc


__all__ = ["DEFAULT_API_URL", "GitHubClient", "GitHubError", "RemoteFile"]
