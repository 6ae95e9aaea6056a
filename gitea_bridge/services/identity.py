"""
Account identity resolution.

Reference: https://try.gitea.io/api/swagger#/user/userGet
"""

from __future__ import annotations

import logging
import re
from types import MappingProxyType
from typing import Dict, Iterable, Optional, Protocol

from gitea_bridge.clients.gitea_api import GiteaApiClient
from gitea_bridge.core.errors import (
    IdentityNotFoundError,
    TransientIdentityError,
    TransportError,
)
from gitea_bridge.models.token import UserInfo
from gitea_bridge.utils.http import RetryConfig, call_with_retry

logger = logging.getLogger(__name__)

SUB_PREFIX = "gt"

_SUB_PATTERN = re.compile(r"^(.+)/([^/]+)$")


class IdentityResolvable(Protocol):
    prefix: str

    async def resolve(self, sub: str) -> UserInfo:
        ...


def build_user_info(server_url: str, user: dict) -> UserInfo:
    """Build the canonical user info from a Gitea user payload."""
    username = user["username"]
    return UserInfo(
        id=f"{SUB_PREFIX}:{server_url}/{username}",
        name=username,
        image_url=user.get("avatar_url") or "",
    )


class GiteaIdentityResolver:
    """Resolve ``{server_url}/{username}`` subjects to public profiles."""

    prefix = SUB_PREFIX

    def __init__(self, api_client: GiteaApiClient) -> None:
        self._api = api_client

    async def resolve(self, sub: str) -> UserInfo:
        match = _SUB_PATTERN.match(sub)
        if not match:
            raise IdentityNotFoundError(f"Malformed Gitea subject: {sub!r}")
        server_url, username = match.groups()

        try:
            user = await self._api.get_user(server_url, username)
        except TransportError as exc:
            if exc.status == 404:
                raise IdentityNotFoundError(f"Gitea user {sub} does not exist.") from exc
            raise TransientIdentityError(f"Could not look up Gitea user {sub}.") from exc

        return build_user_info(server_url, user)


class UserInfoService:
    """Cache of user profiles backed by one resolver per subject prefix."""

    def __init__(
        self,
        resolvers: Iterable[IdentityResolvable],
        *,
        retry_config: Optional[RetryConfig] = None,
    ) -> None:
        self._resolvers = MappingProxyType({r.prefix: r for r in resolvers})
        self._retry_config = retry_config or RetryConfig()
        self._infos: Dict[str, UserInfo] = {}

    def add_user_info(self, info: UserInfo) -> None:
        self._infos[info.id] = info

    def get_cached(self, user_id: str) -> Optional[UserInfo]:
        return self._infos.get(user_id)

    async def get_user_info(self, user_id: str) -> UserInfo:
        """Return the profile for ``prefix:sub``, resolving it on a cache miss.

        Transient failures are retried within the configured budget; a missing
        account raises ``IdentityNotFoundError`` right away.
        """
        cached = self._infos.get(user_id)
        if cached is not None:
            return cached

        prefix, sep, sub = user_id.partition(":")
        resolver = self._resolvers.get(prefix) if sep else None
        if resolver is None:
            raise ValueError(f"No identity resolver registered for {user_id!r}.")

        try:
            info = await call_with_retry(
                resolver.resolve,
                sub,
                retry_on=(TransientIdentityError,),
                retry_config=self._retry_config,
            )
        except TransientIdentityError:
            logger.warning("Giving up on user info for %s for now.", user_id)
            raise

        self.add_user_info(info)
        return info


__all__ = [
    "GiteaIdentityResolver",
    "IdentityResolvable",
    "SUB_PREFIX",
    "UserInfoService",
    "build_user_info",
]
