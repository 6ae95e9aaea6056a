"""Service layer exports."""

from .gitea_repository import GiteaRepositoryService
from .gitea_tokens import GiteaTokenService
from .identity import GiteaIdentityResolver, UserInfoService
from .notifications import LoggingBadgeNotifier, LoggingModalPrompt
from .token_cipher import TokenCipherService

__all__ = [
    "GiteaIdentityResolver",
    "GiteaRepositoryService",
    "GiteaTokenService",
    "LoggingBadgeNotifier",
    "LoggingModalPrompt",
    "TokenCipherService",
    "UserInfoService",
]
