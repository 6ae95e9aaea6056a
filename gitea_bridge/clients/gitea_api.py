"""
Gitea REST and OAuth2 endpoint wrappers.

Reference: https://docs.gitea.io/en-us/oauth2-provider/ and the instance's
``/api/swagger`` page.
"""

from __future__ import annotations

from typing import Any, Dict, Mapping, Optional, Protocol

from gitea_bridge.clients.transport import TransportClient
from gitea_bridge.core.errors import OAuthTokenExchangeError, TransportError


class BearerCredentials(Protocol):
    access_token: str
    server_url: str


class GiteaApiClient:
    """Issue templated ``/api/v1`` calls and OAuth2 token exchanges."""

    API_PATH = "api/v1"
    AUTHORIZE_PATH = "login/oauth/authorize"
    TOKEN_PATH = "login/oauth/access_token"

    def __init__(self, transport: TransportClient, *, redirect_uri: str) -> None:
        self._transport = transport
        self._redirect_uri = redirect_uri

    @property
    def redirect_uri(self) -> str:
        return self._redirect_uri

    def api_url(self, server_url: str, path: str) -> str:
        return f"{server_url}/{self.API_PATH}/{path}"

    def authorize_url(self, server_url: str) -> str:
        return f"{server_url}/{self.AUTHORIZE_PATH}"

    async def request(
        self,
        credentials: BearerCredentials,
        path: str,
        *,
        method: str = "GET",
        params: Optional[Mapping[str, Any]] = None,
        json: Any = None,
    ) -> Any:
        """Call ``{server_url}/api/v1/{path}`` with the bearer access token."""
        return await self._transport.request(
            method,
            self.api_url(credentials.server_url, path),
            params=params,
            json=json,
            headers={"Authorization": f"Bearer {credentials.access_token}"},
        )

    async def get_user(self, server_url: str, username: str) -> Dict[str, Any]:
        """Fetch a public profile without authentication."""
        user = await self._transport.request(
            "GET", self.api_url(server_url, f"users/{username}")
        )
        return _checked_user(user)

    async def get_authenticated_user(
        self, server_url: str, access_token: str
    ) -> Dict[str, Any]:
        user = await self._transport.request(
            "GET",
            self.api_url(server_url, "user"),
            headers={"Authorization": f"Bearer {access_token}"},
        )
        return _checked_user(user)

    async def exchange_authorization_code(
        self,
        server_url: str,
        application_id: str,
        application_secret: str,
        code: str,
    ) -> Dict[str, Any]:
        """Exchange an authorization code for an access/refresh token pair."""
        payload = {
            "client_id": application_id,
            "client_secret": application_secret,
            "code": code,
            "grant_type": "authorization_code",
            "redirect_uri": self._redirect_uri,
        }
        return await self._post_token(server_url, payload)

    async def exchange_refresh_token(
        self,
        server_url: str,
        application_id: str,
        application_secret: str,
        refresh_token: Optional[str],
    ) -> Dict[str, Any]:
        """Mint a new token pair from a refresh token, without user interaction."""
        if not refresh_token:
            raise OAuthTokenExchangeError("No refresh token available for silent refresh.")
        payload = {
            "client_id": application_id,
            "client_secret": application_secret,
            "refresh_token": refresh_token,
            "grant_type": "refresh_token",
            "redirect_uri": self._redirect_uri,
        }
        return await self._post_token(server_url, payload)

    async def _post_token(self, server_url: str, payload: Dict[str, Any]) -> Dict[str, Any]:
        token_payload = await self._transport.request(
            "POST", f"{server_url}/{self.TOKEN_PATH}", json=payload
        )
        if not isinstance(token_payload, dict):
            raise OAuthTokenExchangeError("Unexpected token payload returned from Gitea.")

        if not token_payload.get("access_token") or not token_payload.get("expires_in"):
            raise OAuthTokenExchangeError("Incomplete token payload returned from Gitea.")

        return token_payload


def _checked_user(user: Any) -> Dict[str, Any]:
    # Proxies and login walls can answer 200 with HTML.
    if not isinstance(user, dict) or not user.get("username"):
        raise TransportError("Unexpected user payload returned from Gitea.")
    return user


__all__ = ["BearerCredentials", "GiteaApiClient"]
