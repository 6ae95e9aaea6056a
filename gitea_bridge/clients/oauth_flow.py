"""
Interactive OAuth2 authorization-code flow.

The user is sent to the provider's authorize page; the provider redirects the
browser back to our callback route, which resolves the pending flow with the
authorization code.
"""

from __future__ import annotations

import asyncio
import base64
import binascii
import hmac
import inspect
import json
import logging
import uuid
import webbrowser
from datetime import datetime, timezone
from hashlib import sha256
from typing import Any, Awaitable, Callable, Dict, Mapping, Optional, Union
from urllib.parse import urlencode

from gitea_bridge.core.errors import InvalidOAuthStateError, OAuthFlowCancelledError

logger = logging.getLogger(__name__)

UrlLauncher = Callable[[str], Union[None, Awaitable[None]]]


class OAuthStateEncoder:
    """Encode and decode OAuth state values to guard against tampering."""

    def __init__(self, secret_key: str) -> None:
        self._secret_key = secret_key.encode("utf-8")

    def encode(self, payload: Dict[str, Any]) -> str:
        serialized = json.dumps(payload, separators=(",", ":"), sort_keys=True)
        signature = hmac.new(self._secret_key, serialized.encode("utf-8"), sha256).digest()
        return base64.urlsafe_b64encode(signature + serialized.encode("utf-8")).decode("utf-8")

    def decode(self, token: str) -> Dict[str, Any]:
        try:
            decoded = base64.urlsafe_b64decode(token.encode("utf-8"))
        except (binascii.Error, ValueError) as exc:
            raise InvalidOAuthStateError("Malformed OAuth state.") from exc
        signature, serialized = decoded[:32], decoded[32:]
        expected_signature = hmac.new(self._secret_key, serialized, sha256).digest()
        if not hmac.compare_digest(signature, expected_signature):
            raise InvalidOAuthStateError("Invalid OAuth state signature.")
        return json.loads(serialized)


def log_authorization_url(url: str) -> None:
    """Default launcher: the operator opens the URL by hand."""
    logger.info("Open this URL to authorize the Gitea account: %s", url)


async def open_in_browser(url: str) -> None:
    log_authorization_url(url)
    await asyncio.to_thread(webbrowser.open, url)


class AuthorizationCodeFlow:
    """Track pending authorizations until their callback arrives."""

    def __init__(
        self,
        state_encoder: OAuthStateEncoder,
        *,
        launcher: Optional[UrlLauncher] = None,
        timeout_seconds: float = 300.0,
    ) -> None:
        self._encoder = state_encoder
        self._launcher = launcher or log_authorization_url
        self._timeout = timeout_seconds
        self._pending: Dict[str, asyncio.Future] = {}

    @property
    def pending_count(self) -> int:
        return len(self._pending)

    async def authorize(self, authorize_url: str, params: Mapping[str, Any]) -> str:
        """Send the user to ``authorize_url`` and wait for the authorization code."""
        nonce = uuid.uuid4().hex
        state = self._encoder.encode(
            {"nonce": nonce, "issued_at": datetime.now(timezone.utc).isoformat()}
        )
        url = f"{authorize_url}?{urlencode({**params, 'state': state})}"

        future: asyncio.Future = asyncio.get_running_loop().create_future()
        self._pending[nonce] = future
        try:
            launched = self._launcher(url)
            if inspect.isawaitable(launched):
                await launched
            return await asyncio.wait_for(future, timeout=self._timeout)
        except asyncio.TimeoutError as exc:
            raise OAuthFlowCancelledError(
                "Authorization was not completed in time."
            ) from exc
        finally:
            self._pending.pop(nonce, None)

    def complete(
        self,
        *,
        state: str,
        code: Optional[str] = None,
        error: Optional[str] = None,
    ) -> None:
        """Resolve the flow identified by ``state`` with a code or an error."""
        payload = self._encoder.decode(state)
        future = self._pending.get(payload.get("nonce", ""))
        if future is None or future.done():
            raise InvalidOAuthStateError("No pending authorization matches this state.")

        if error or not code:
            future.set_exception(
                OAuthFlowCancelledError(f"Authorization denied: {error or 'no code returned'}")
            )
        else:
            future.set_result(code)


__all__ = [
    "AuthorizationCodeFlow",
    "OAuthStateEncoder",
    "log_authorization_url",
    "open_in_browser",
]
