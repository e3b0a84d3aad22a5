"""Commit files to a GitHub repository through the contents API."""

import base64
import logging
import time
from typing import Optional

import httpx

logger = logging.getLogger(__name__)


class MirrorError(Exception):
    """A file could not be committed to the mirror repository."""


class GitHubMirror:
    """Writes files to ``owner/repo`` on one branch and returns their raw URLs."""

    _API_BASE = "https://api.github.com"
    _RAW_BASE = "https://raw.githubusercontent.com"
    _TIMEOUT_SECONDS = 30.0

    def __init__(self, token: str, repo: str, branch: str = "main", path_prefix: str = "") -> None:
        self._token = token
        self._repo = repo.strip("/")
        self._branch = branch
        self._path_prefix = path_prefix.strip("/")

    def remote_path(self, key: str) -> str:
        key = key.lstrip("/")
        return f"{self._path_prefix}/{key}" if self._path_prefix else key

    def raw_url(self, key: str) -> str:
        return f"{self._RAW_BASE}/{self._repo}/{self._branch}/{self.remote_path(key)}"

    def _headers(self) -> dict:
        return {
            "Authorization": f"Bearer {self._token}",
            "Accept": "application/vnd.github+json",
        }

    async def _current_sha(self, client: httpx.AsyncClient, path: str) -> Optional[str]:
        response = await client.get(
            f"{self._API_BASE}/repos/{self._repo}/contents/{path}",
            params={"ref": self._branch},
            headers=self._headers(),
        )
        if response.status_code == 404:
            return None
        response.raise_for_status()
        return response.json().get("sha")

    async def commit_file(self, key: str, content: bytes, message: str) -> str:
        """
        Create or update *key* in the mirror repository.

        Returns:
            Raw URL of the committed file

        Raises:
            MirrorError: If the GitHub API rejects the request or is unreachable
        """
        start = time.time()
        path = self.remote_path(key)
        try:
            async with httpx.AsyncClient(timeout=self._TIMEOUT_SECONDS) as client:
                body = {
                    "message": message,
                    "content": base64.b64encode(content).decode("ascii"),
                    "branch": self._branch,
                }
                sha = await self._current_sha(client, path)
                if sha:
                    body["sha"] = sha

                response = await client.put(
                    f"{self._API_BASE}/repos/{self._repo}/contents/{path}",
                    json=body,
                    headers=self._headers(),
                )
                response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            raise MirrorError(
                f"GitHub returned HTTP {exc.response.status_code} for {path}"
            ) from exc
        except httpx.RequestError as exc:
            raise MirrorError(f"GitHub request failed for {path}: {exc}") from exc

        logger.info(
            f"Committed {path} ({len(content)} bytes) to {self._repo}@{self._branch} "
            f"in {time.time() - start:.3f}s"
        )
        return self.raw_url(key)
