"""Expose constructed client wrappers."""

from .gitea_api import GiteaApiClient
from .oauth_flow import AuthorizationCodeFlow, OAuthStateEncoder
from .token_store import InMemoryTokenStore, SQLiteTokenStore, TokenStore
from .transport import ConnectivityState, TransportClient

__all__ = [
    "AuthorizationCodeFlow",
    "ConnectivityState",
    "GiteaApiClient",
    "InMemoryTokenStore",
    "OAuthStateEncoder",
    "SQLiteTokenStore",
    "TokenStore",
    "TransportClient",
]
