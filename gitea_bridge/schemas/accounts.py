"""Schemas for account linking and repository requests."""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, Field


class AddAccountRequest(BaseModel):
    """Start linking a Gitea account through the interactive flow."""

    server_url: str = Field(..., description="Base URL of the Gitea instance.")
    application_id: str = Field(..., description="OAuth2 application client id.")
    application_secret: str = Field(..., description="OAuth2 application client secret.")
    sub: Optional[str] = Field(
        None, description="Expected account when re-authorizing a known one."
    )

    def normalized_server_url(self) -> str:
        return self.server_url.rstrip("/")


class AccountSummary(BaseModel):
    """Public view of a linked account; never includes credentials."""

    sub: str
    name: str
    server_url: str
    expires_on: Optional[int] = None


class FileUploadPayload(BaseModel):
    """Content to create or update; ``sha`` selects update semantics."""

    sub: str = Field(..., description="Account performing the change.")
    branch: str
    path: str
    content: str
    sha: Optional[str] = Field(
        None, description="Current content hash; required to update an existing file."
    )


__all__ = ["AccountSummary", "AddAccountRequest", "FileUploadPayload"]
