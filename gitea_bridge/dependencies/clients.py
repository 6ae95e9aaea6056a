"""
Factory functions to provide shared clients and services as FastAPI dependencies.
"""

import secrets
from functools import lru_cache

from gitea_bridge.clients import (
    AuthorizationCodeFlow,
    ConnectivityState,
    GiteaApiClient,
    InMemoryTokenStore,
    OAuthStateEncoder,
    SQLiteTokenStore,
    TokenStore,
    TransportClient,
)
from gitea_bridge.clients.oauth_flow import open_in_browser
from gitea_bridge.core.config import get_settings
from gitea_bridge.services import (
    GiteaIdentityResolver,
    GiteaRepositoryService,
    GiteaTokenService,
    LoggingBadgeNotifier,
    LoggingModalPrompt,
    TokenCipherService,
    UserInfoService,
)
from gitea_bridge.utils.http import RetryConfig


@lru_cache()
def _settings():
    """Internal helper to cache settings for client factories."""
    return get_settings()


@lru_cache()
def get_connectivity_state() -> ConnectivityState:
    """Provide the process-wide online/offline flag."""
    return ConnectivityState()


@lru_cache()
def get_transport_client() -> TransportClient:
    settings = _settings()
    return TransportClient(
        timeout=settings.http.timeout_seconds,
        connectivity=get_connectivity_state(),
    )


@lru_cache()
def get_gitea_api_client() -> GiteaApiClient:
    settings = _settings()
    return GiteaApiClient(get_transport_client(), redirect_uri=settings.gitea.redirect_uri)


@lru_cache()
def get_oauth_state_encoder() -> OAuthStateEncoder:
    """Provide an OAuth state encoder; pending flows live in this process only."""
    settings = _settings()
    secret = settings.security.oauth_state_secret or secrets.token_urlsafe(32)
    return OAuthStateEncoder(secret_key=secret)


@lru_cache()
def get_authorization_flow() -> AuthorizationCodeFlow:
    settings = _settings()
    return AuthorizationCodeFlow(
        get_oauth_state_encoder(),
        launcher=open_in_browser if settings.gitea.open_browser else None,
        timeout_seconds=settings.gitea.authorization_timeout_seconds,
    )


@lru_cache()
def get_token_cipher_service() -> TokenCipherService:
    """Provide symmetric encryption helper for token storage."""
    settings = _settings()
    secret = settings.security.token_encryption_secret
    if not secret:
        raise RuntimeError("TOKEN_ENCRYPTION_SECRET is required when TOKEN_DB_PATH is set.")
    return TokenCipherService(secret=secret)


@lru_cache()
def get_token_store() -> TokenStore:
    """Provide the linked-account store, persisted when a database path is set."""
    settings = _settings()
    if settings.token_db_path:
        return SQLiteTokenStore(settings.token_db_path, get_token_cipher_service())
    return InMemoryTokenStore()


@lru_cache()
def get_user_info_service() -> UserInfoService:
    settings = _settings()
    return UserInfoService(
        [GiteaIdentityResolver(get_gitea_api_client())],
        retry_config=RetryConfig(
            attempts=settings.http.identity_retry_attempts,
            backoff_seconds=settings.http.identity_retry_backoff_seconds,
        ),
    )


@lru_cache()
def get_gitea_token_service() -> GiteaTokenService:
    """Provide the token lifecycle manager."""
    settings = _settings()
    return GiteaTokenService(
        api_client=get_gitea_api_client(),
        token_store=get_token_store(),
        authorization_flow=get_authorization_flow(),
        modal=LoggingModalPrompt(),
        connectivity=get_connectivity_state(),
        settings=settings.gitea,
        user_info_service=get_user_info_service(),
        badge_notifier=LoggingBadgeNotifier(),
    )


@lru_cache()
def get_repository_service() -> GiteaRepositoryService:
    settings = _settings()
    return GiteaRepositoryService(
        get_gitea_api_client(),
        get_gitea_token_service(),
        settings.commit_messages,
    )


__all__ = [
    "get_authorization_flow",
    "get_connectivity_state",
    "get_gitea_api_client",
    "get_gitea_token_service",
    "get_oauth_state_encoder",
    "get_repository_service",
    "get_token_cipher_service",
    "get_token_store",
    "get_transport_client",
    "get_user_info_service",
]
