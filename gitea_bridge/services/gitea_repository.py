"""
Repository operations backed by a refreshed Gitea token.

Every operation refreshes the token first, then issues exactly one API call.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional
from urllib.parse import quote

from gitea_bridge.clients.gitea_api import GiteaApiClient
from gitea_bridge.core.config import CommitMessageSettings
from gitea_bridge.models.token import AccountToken, DownloadedFile
from gitea_bridge.services.gitea_tokens import GiteaTokenService
from gitea_bridge.utils.codec import decode_base64, encode_base64

logger = logging.getLogger(__name__)


def escape_path(path: str) -> str:
    """Escape a file path into a single URL segment, slashes included."""
    return quote(path, safe="!~*'()")


class GiteaRepositoryService:
    """File tree, history and content operations for one repository at a time."""

    def __init__(
        self,
        api_client: GiteaApiClient,
        token_service: GiteaTokenService,
        commit_messages: CommitMessageSettings,
    ) -> None:
        self._api = api_client
        self._tokens = token_service
        self._messages = commit_messages

    @staticmethod
    def get_project_id(
        project_path: Optional[str] = None, project_id: Optional[str] = None
    ) -> str:
        """Use ``project_id`` when known, else the ``owner/name`` tail of the path."""
        if project_id:
            return str(project_id)
        segments = (project_path or "").split("/")
        if len(segments) < 2 or not all(segments[-2:]):
            raise ValueError(f"Cannot derive a repository from {project_path!r}.")
        return "/".join(segments[-2:])

    def commit_message(self, name: str, path: str) -> str:
        template: str = getattr(self._messages, name)
        return template.replace("{{path}}", path)

    # https://try.gitea.io/api/swagger#/repository/GetTree
    async def get_tree(self, *, token: AccountToken, project_id: str, branch: str) -> Any:
        refreshed = await self._tokens.refresh_token(token)
        return await self._api.request(
            refreshed,
            f"repos/{project_id}/git/trees/{branch}",
            params={"recursive": True, "per_page": 9999},
        )

    # https://try.gitea.io/api/swagger#/repository/repoGetAllCommits
    async def get_commits(
        self,
        *,
        token: AccountToken,
        project_id: str,
        branch: str,
        path: str,
    ) -> Any:
        refreshed = await self._tokens.refresh_token(token)
        return await self._api.request(
            refreshed,
            f"repos/{project_id}/commits",
            params={"sha": branch, "path": path},
        )

    async def upload_file(
        self,
        *,
        token: AccountToken,
        project_id: str,
        branch: str,
        path: str,
        content: str,
        sha: Optional[str] = None,
    ) -> Any:
        """Create the file when ``sha`` is unset, otherwise update it.

        Gitea rejects the update when ``sha`` no longer matches the file.
        """
        refreshed = await self._tokens.refresh_token(token)
        body: Dict[str, Any] = {
            "message": self.commit_message(
                "update_file_message" if sha else "create_file_message", path
            ),
            "content": encode_base64(content),
            "branch": branch,
        }
        if sha:
            body["sha"] = sha
        logger.debug("%s %s on %s@%s", "Updating" if sha else "Creating", path, project_id, branch)
        return await self._api.request(
            refreshed,
            f"repos/{project_id}/contents/{escape_path(path)}",
            method="PUT" if sha else "POST",
            json=body,
        )

    # https://try.gitea.io/api/swagger#/repository/repoDeleteFile
    async def remove_file(
        self,
        *,
        token: AccountToken,
        project_id: str,
        branch: str,
        path: str,
        sha: str,
    ) -> Any:
        refreshed = await self._tokens.refresh_token(token)
        return await self._api.request(
            refreshed,
            f"repos/{project_id}/contents/{escape_path(path)}",
            method="DELETE",
            json={
                "message": self.commit_message("delete_file_message", path),
                "sha": sha,
                "branch": branch,
            },
        )

    # https://try.gitea.io/api/swagger#/repository/repoGetContents
    async def download_file(
        self,
        *,
        token: AccountToken,
        project_id: str,
        branch: str,
        path: str,
    ) -> DownloadedFile:
        refreshed = await self._tokens.refresh_token(token)
        body = await self._api.request(
            refreshed,
            f"repos/{project_id}/contents/{escape_path(path)}",
            params={"ref": branch},
        )
        return DownloadedFile(sha=body["sha"], data=decode_base64(body["content"]))


__all__ = ["GiteaRepositoryService", "escape_path"]
