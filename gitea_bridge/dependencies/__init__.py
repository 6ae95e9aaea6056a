"""Expose dependency helpers for FastAPI routers."""

from .clients import (
    get_authorization_flow,
    get_connectivity_state,
    get_gitea_api_client,
    get_gitea_token_service,
    get_oauth_state_encoder,
    get_repository_service,
    get_token_cipher_service,
    get_token_store,
    get_transport_client,
    get_user_info_service,
)
from .config import SettingsDependency, get_app_settings

__all__ = [
    "SettingsDependency",
    "get_app_settings",
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
