"""
Acquire, refresh and re-authorize Gitea OAuth2 tokens.

Reference: https://docs.gitea.io/en-us/oauth2-provider/
"""

from __future__ import annotations

import logging
import time
from typing import Optional

from gitea_bridge.clients.gitea_api import GiteaApiClient
from gitea_bridge.clients.oauth_flow import AuthorizationCodeFlow
from gitea_bridge.clients.token_store import TokenStore
from gitea_bridge.clients.transport import ConnectivityState
from gitea_bridge.core.config import GiteaSettings
from gitea_bridge.core.errors import (
    GiteaBridgeError,
    IdentityMismatchError,
    OAuthFlowCancelledError,
    OfflineRefreshError,
    ReauthorizationRequiredError,
    TokenNotFoundError,
)
from gitea_bridge.models.token import AccountToken
from gitea_bridge.services.identity import UserInfoService, build_user_info
from gitea_bridge.services.notifications import (
    PROVIDER_REDIRECTION,
    BadgeNotifier,
    LoggingBadgeNotifier,
    ModalPrompt,
)

logger = logging.getLogger(__name__)


def _now_ms() -> int:
    return int(time.time() * 1000)


class GiteaTokenService:
    """Owns the acquire/refresh/re-authorize lifecycle of Gitea tokens."""

    PROVIDER_NAME = "Gitea"
    ADD_ACCOUNT_BADGE = "addGiteaAccount"

    def __init__(
        self,
        *,
        api_client: GiteaApiClient,
        token_store: TokenStore,
        authorization_flow: AuthorizationCodeFlow,
        modal: ModalPrompt,
        connectivity: ConnectivityState,
        settings: GiteaSettings,
        user_info_service: Optional[UserInfoService] = None,
        badge_notifier: Optional[BadgeNotifier] = None,
    ) -> None:
        self._api = api_client
        self._store = token_store
        self._flow = authorization_flow
        self._modal = modal
        self._connectivity = connectivity
        self._margin_ms = settings.token_expiration_margin_seconds * 1000
        self._user_info = user_info_service
        self._badges = badge_notifier or LoggingBadgeNotifier()

    async def start_oauth2(
        self,
        server_url: str,
        application_id: str,
        application_secret: str,
        sub: Optional[str] = None,
        silent: bool = False,
        refresh_token: Optional[str] = None,
    ) -> AccountToken:
        """Obtain a token pair, resolve the account and store the token.

        Interactive mode sends the user through the authorize page; silent mode
        exchanges ``refresh_token`` instead. When ``sub`` is given the resolved
        account must match it.
        """
        if not silent:
            code = await self._flow.authorize(
                self._api.authorize_url(server_url),
                {
                    "client_id": application_id,
                    "response_type": "code",
                    "redirect_uri": self._api.redirect_uri,
                },
            )
            token_body = await self._api.exchange_authorization_code(
                server_url, application_id, application_secret, code
            )
        else:
            token_body = await self._api.exchange_refresh_token(
                server_url, application_id, application_secret, refresh_token
            )

        access_token = token_body["access_token"]
        user = await self._api.get_authenticated_user(server_url, access_token)
        user_info = build_user_info(server_url, user)
        unique_sub = f"{server_url}/{user['username']}"
        if self._user_info is not None:
            self._user_info.add_user_info(user_info)

        if sub and unique_sub != sub:
            raise IdentityMismatchError(
                f"Gitea account {unique_sub} does not match expected account {sub}."
            )

        token = AccountToken(
            access_token=access_token,
            refresh_token=token_body.get("refresh_token"),
            expires_on=_now_ms() + int(token_body["expires_in"]) * 1000,
            server_url=server_url,
            application_id=application_id,
            application_secret=application_secret,
            sub=unique_sub,
            name=user["username"],
        )
        self._store.add_token(token)
        logger.info(
            "Stored %s token for %s", "refreshed" if silent else "authorized", unique_sub
        )
        return token

    async def refresh_token(self, token: AccountToken) -> AccountToken:
        """Return a usable token for ``token.sub``, refreshing it when needed.

        The stored token is authoritative; ``token`` only identifies the account.
        """
        last_token = self._store.tokens_by_sub().get(token.sub)
        if last_token is None:
            raise TokenNotFoundError(f"No stored Gitea token for {token.sub}.")

        # Legacy tokens carry no expiration and cannot be refreshed silently.
        if not last_token.expires_on:
            logger.info("Token for %s has no expiration; re-authorizing.", token.sub)
            return await self._reauthorize(token)

        if last_token.expires_on > _now_ms() + self._margin_ms:
            return last_token

        try:
            return await self.start_oauth2(
                token.server_url,
                token.application_id,
                token.application_secret,
                token.sub,
                silent=True,
                refresh_token=last_token.refresh_token,
            )
        except GiteaBridgeError as exc:
            if self._connectivity.offline:
                raise OfflineRefreshError(
                    f"Could not refresh Gitea token for {token.sub} while offline."
                ) from exc
            logger.warning("Silent refresh failed for %s: %s", token.sub, exc)
            return await self._reauthorize(token)

    async def add_account(
        self,
        server_url: str,
        application_id: str,
        application_secret: str,
        sub: Optional[str] = None,
    ) -> AccountToken:
        """Link an account through the interactive flow."""
        known_subs = set(self._store.tokens_by_sub())
        token = await self.start_oauth2(server_url, application_id, application_secret, sub)
        if token.sub not in known_subs:
            self._badges.add_badge(self.ADD_ACCOUNT_BADGE)
        return token

    async def _reauthorize(self, token: AccountToken) -> AccountToken:
        await self._modal.open(type=PROVIDER_REDIRECTION, name=self.PROVIDER_NAME)
        try:
            return await self.start_oauth2(
                token.server_url,
                token.application_id,
                token.application_secret,
                token.sub,
            )
        except OAuthFlowCancelledError as exc:
            raise ReauthorizationRequiredError(
                f"Re-authorization of {token.sub} was abandoned."
            ) from exc


__all__ = ["GiteaTokenService"]
