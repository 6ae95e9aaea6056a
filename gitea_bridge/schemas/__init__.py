"""Expose API schemas."""

from .accounts import AccountSummary, AddAccountRequest, FileUploadPayload

__all__ = ["AccountSummary", "AddAccountRequest", "FileUploadPayload"]
