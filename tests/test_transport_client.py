from __future__ import annotations

import json

import httpx
import pytest

from gitea_bridge.clients.gitea_api import GiteaApiClient
from gitea_bridge.clients.transport import ConnectivityState, TransportClient
from gitea_bridge.core.errors import OAuthTokenExchangeError, TransportError


@pytest.mark.asyncio
async def test_error_status_raises_with_status_code() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(422, text="invalid")

    client = TransportClient(transport=httpx.MockTransport(handler))

    with pytest.raises(TransportError) as excinfo:
        await client.request("GET", "https://git.example.com/api/v1/user")

    assert excinfo.value.status == 422
    assert excinfo.value.body == "invalid"


@pytest.mark.asyncio
async def test_network_failure_marks_offline_until_next_response() -> None:
    fail = True

    def handler(request: httpx.Request) -> httpx.Response:
        if fail:
            raise httpx.ConnectError("no route", request=request)
        return httpx.Response(204)

    connectivity = ConnectivityState()
    client = TransportClient(transport=httpx.MockTransport(handler), connectivity=connectivity)

    with pytest.raises(TransportError) as excinfo:
        await client.request("GET", "https://git.example.com/api/v1/user")
    assert excinfo.value.status is None
    assert connectivity.offline is True

    fail = False
    assert await client.request("GET", "https://git.example.com/api/v1/user") is None
    assert connectivity.offline is False


@pytest.mark.asyncio
async def test_connect_timeout_marks_offline() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectTimeout("timed out", request=request)

    connectivity = ConnectivityState()
    client = TransportClient(transport=httpx.MockTransport(handler), connectivity=connectivity)

    with pytest.raises(TransportError):
        await client.request("GET", "https://git.example.com/api/v1/user")
    assert connectivity.offline is True


@pytest.mark.asyncio
async def test_refresh_exchange_posts_expected_body() -> None:
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(
            200, json={"access_token": "a2", "refresh_token": "r2", "expires_in": 3600}
        )

    api = GiteaApiClient(
        TransportClient(transport=httpx.MockTransport(handler)),
        redirect_uri="http://localhost/cb",
    )

    body = await api.exchange_refresh_token("https://git.example.com", "id", "secret", "r1")

    assert body["access_token"] == "a2"
    assert seen[0].method == "POST"
    assert seen[0].url == "https://git.example.com/login/oauth/access_token"
    assert json.loads(seen[0].content) == {
        "client_id": "id",
        "client_secret": "secret",
        "refresh_token": "r1",
        "grant_type": "refresh_token",
        "redirect_uri": "http://localhost/cb",
    }


@pytest.mark.asyncio
async def test_incomplete_token_payload_is_rejected() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={"access_token": "a2"})

    api = GiteaApiClient(
        TransportClient(transport=httpx.MockTransport(handler)),
        redirect_uri="http://localhost/cb",
    )

    with pytest.raises(OAuthTokenExchangeError):
        await api.exchange_authorization_code("https://git.example.com", "id", "secret", "code")


@pytest.mark.asyncio
async def test_missing_refresh_token_fails_without_request() -> None:
    def handler(request: httpx.Request) -> httpx.Response:  # pragma: no cover
        raise AssertionError("no request expected")

    api = GiteaApiClient(
        TransportClient(transport=httpx.MockTransport(handler)),
        redirect_uri="http://localhost/cb",
    )

    with pytest.raises(OAuthTokenExchangeError):
        await api.exchange_refresh_token("https://git.example.com", "id", "secret", None)
