"""
Domain models for linked Gitea accounts.
"""

from typing import Optional

from pydantic import BaseModel, Field


class AccountToken(BaseModel):
    """Credentials for one Gitea account, keyed by ``sub``."""

    access_token: str
    refresh_token: Optional[str] = Field(
        None, description="Missing on tokens issued before expiration tracking."
    )
    expires_on: Optional[int] = Field(
        None, description="Expiration as epoch milliseconds. Missing on legacy tokens."
    )
    server_url: str = Field(..., description="Base URL of the Gitea instance.")
    application_id: str
    application_secret: str
    sub: str = Field(..., description="Canonical subject, server_url + '/' + username.")
    name: str = Field(..., description="Username as last reported by the provider.")


class UserInfo(BaseModel):
    """Minimal public profile of an account."""

    id: str
    name: str
    image_url: str = ""


class DownloadedFile(BaseModel):
    """File content with the hash required by the next update or delete."""

    sha: str
    data: str


__all__ = ["AccountToken", "DownloadedFile", "UserInfo"]
