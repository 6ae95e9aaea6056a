"""
Error taxonomy shared by the transport, token lifecycle and repository layers.
"""

from __future__ import annotations

from typing import Optional


class GiteaBridgeError(Exception):
    """Base class for every error raised by this package."""


class TransportError(GiteaBridgeError):
    """Raised when an HTTP call fails; carries the status code when one exists."""

    def __init__(
        self,
        message: str,
        *,
        status: Optional[int] = None,
        body: Optional[str] = None,
    ) -> None:
        super().__init__(message)
        self.status = status
        self.body = body


class OAuthTokenExchangeError(GiteaBridgeError):
    """Raised when the token endpoint does not return a usable token."""


class OAuthFlowCancelledError(GiteaBridgeError):
    """Raised when an interactive authorization is abandoned or times out."""


class ReauthorizationRequiredError(OAuthFlowCancelledError):
    """Raised when the user abandons a re-authorization prompted by a failed refresh."""


class InvalidOAuthStateError(GiteaBridgeError):
    """Raised when an OAuth callback carries a tampered or unknown state."""


class TokenNotFoundError(GiteaBridgeError):
    """Raised when no stored token exists for an account."""


class IdentityNotFoundError(GiteaBridgeError):
    """The account no longer exists on the provider."""


class TransientIdentityError(GiteaBridgeError):
    """The identity lookup failed for a reason worth retrying later."""


class IdentityMismatchError(GiteaBridgeError):
    """The authorized account differs from the one being re-authorized."""


class OfflineRefreshError(GiteaBridgeError):
    """Silent refresh failed while offline; no interactive fallback was attempted."""


__all__ = [
    "GiteaBridgeError",
    "IdentityMismatchError",
    "IdentityNotFoundError",
    "InvalidOAuthStateError",
    "OAuthFlowCancelledError",
    "OAuthTokenExchangeError",
    "OfflineRefreshError",
    "ReauthorizationRequiredError",
    "TokenNotFoundError",
    "TransientIdentityError",
    "TransportError",
]
