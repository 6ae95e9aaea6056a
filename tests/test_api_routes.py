try:
    from . import _bootstrap  # noqa: F401
except Exception:  # pragma: no cover
    import _bootstrap  # type: ignore # noqa: F401

import asyncio
from urllib.parse import parse_qs, quote, urlparse

import httpx
import pytest

from gitea_bridge.clients.oauth_flow import AuthorizationCodeFlow, OAuthStateEncoder
from gitea_bridge.clients.token_store import InMemoryTokenStore
from gitea_bridge.core.errors import (
    IdentityMismatchError,
    OfflineRefreshError,
    TransportError,
)
from gitea_bridge.main import app
from gitea_bridge.models.token import AccountToken, DownloadedFile, UserInfo
from gitea_bridge.services.gitea_repository import GiteaRepositoryService

SUB = "https://git.example.com/alice"


def _token() -> AccountToken:
    return AccountToken(
        access_token="a1",
        refresh_token="r1",
        expires_on=1_900_000_000_000,
        server_url="https://git.example.com",
        application_id="app-id",
        application_secret="app-secret",
        sub=SUB,
        name="alice",
    )


class DummyRepositoryService:
    get_project_id = staticmethod(GiteaRepositoryService.get_project_id)

    def __init__(self) -> None:
        self.calls: list[tuple[str, dict]] = []
        self.error: Exception | None = None

    async def _record(self, name: str, kwargs: dict, result):
        self.calls.append((name, kwargs))
        if self.error is not None:
            raise self.error
        return result

    async def get_tree(self, **kwargs):
        return await self._record("get_tree", kwargs, {"tree": [{"path": "a.md"}]})

    async def get_commits(self, **kwargs):
        return await self._record("get_commits", kwargs, [{"sha": "c1"}])

    async def upload_file(self, **kwargs):
        return await self._record("upload_file", kwargs, {"content": {"sha": "h2"}})

    async def remove_file(self, **kwargs):
        return await self._record("remove_file", kwargs, None)

    async def download_file(self, **kwargs):
        return await self._record("download_file", kwargs, DownloadedFile(sha="h1", data="hello"))


class DummyTokenService:
    def __init__(self) -> None:
        self.error: Exception | None = None
        self.calls: list[tuple] = []

    async def add_account(self, server_url, application_id, application_secret, sub=None):
        self.calls.append((server_url, application_id, application_secret, sub))
        if self.error is not None:
            raise self.error
        return _token()


class DummyUserInfoService:
    async def get_user_info(self, user_id: str) -> UserInfo:
        return UserInfo(id=user_id, name="alice", image_url="")


@pytest.fixture()
def overrides():
    from gitea_bridge import dependencies

    store = InMemoryTokenStore()
    store.add_token(_token())
    repository = DummyRepositoryService()
    token_service = DummyTokenService()
    launched: list[str] = []
    flow = AuthorizationCodeFlow(OAuthStateEncoder("route-secret"), launcher=launched.append)

    app.dependency_overrides.update(
        {
            dependencies.get_token_store: lambda: store,
            dependencies.get_repository_service: lambda: repository,
            dependencies.get_gitea_token_service: lambda: token_service,
            dependencies.get_authorization_flow: lambda: flow,
            dependencies.get_user_info_service: lambda: DummyUserInfoService(),
        }
    )

    yield {
        "store": store,
        "repository": repository,
        "tokens": token_service,
        "flow": flow,
        "launched": launched,
    }

    app.dependency_overrides.clear()


def _client() -> httpx.AsyncClient:
    return httpx.AsyncClient(
        transport=httpx.ASGITransport(app=app), base_url="http://testserver"
    )


@pytest.mark.anyio
async def test_health(overrides):
    async with _client() as client:
        response = await client.get("/api/health")

    assert response.status_code == 200
    assert response.json()["status"] == "ok"


@pytest.mark.anyio
async def test_list_accounts_hides_credentials(overrides):
    async with _client() as client:
        response = await client.get("/api/accounts")

    assert response.status_code == 200
    assert response.json() == [
        {
            "sub": SUB,
            "name": "alice",
            "server_url": "https://git.example.com",
            "expires_on": 1_900_000_000_000,
        }
    ]


@pytest.mark.anyio
async def test_add_account_normalizes_server_url(overrides):
    async with _client() as client:
        response = await client.post(
            "/api/accounts",
            json={
                "server_url": "https://git.example.com/",
                "application_id": "app-id",
                "application_secret": "app-secret",
            },
        )

    assert response.status_code == 201
    assert response.json()["sub"] == SUB
    assert overrides["tokens"].calls == [
        ("https://git.example.com", "app-id", "app-secret", None)
    ]


@pytest.mark.anyio
async def test_add_account_mismatch_is_conflict(overrides):
    overrides["tokens"].error = IdentityMismatchError("wrong account")
    async with _client() as client:
        response = await client.post(
            "/api/accounts",
            json={
                "server_url": "https://git.example.com",
                "application_id": "app-id",
                "application_secret": "app-secret",
                "sub": "https://git.example.com/bob",
            },
        )

    assert response.status_code == 409


@pytest.mark.anyio
async def test_callback_completes_pending_authorization(overrides):
    flow = overrides["flow"]
    launched = overrides["launched"]

    task = asyncio.create_task(flow.authorize("https://git.example.com/login/oauth/authorize", {}))
    while not launched:
        await asyncio.sleep(0)
    state = parse_qs(urlparse(launched[0]).query)["state"][0]

    async with _client() as client:
        response = await client.get(
            "/api/auth/gitea/callback", params={"state": state, "code": "oauth-code"}
        )

    assert response.status_code == 200
    assert response.json() == {"status": "authorized"}
    assert await task == "oauth-code"


@pytest.mark.anyio
async def test_callback_with_unknown_state_is_rejected(overrides):
    async with _client() as client:
        response = await client.get(
            "/api/auth/gitea/callback", params={"state": "bogus", "code": "oauth-code"}
        )

    assert response.status_code == 400


@pytest.mark.anyio
async def test_get_tree_resolves_project_and_token(overrides):
    async with _client() as client:
        response = await client.get(
            "/api/repos/owner/repo/tree", params={"sub": SUB, "branch": "main"}
        )

    assert response.status_code == 200
    assert response.json() == {"tree": [{"path": "a.md"}]}
    name, kwargs = overrides["repository"].calls[0]
    assert name == "get_tree"
    assert kwargs["project_id"] == "owner/repo"
    assert kwargs["branch"] == "main"
    assert kwargs["token"].sub == SUB


@pytest.mark.anyio
async def test_download_returns_sha_and_data(overrides):
    async with _client() as client:
        response = await client.get(
            "/api/repos/owner/repo/contents", params={"sub": SUB, "path": "a.md"}
        )

    assert response.status_code == 200
    assert response.json() == {"sha": "h1", "data": "hello"}


@pytest.mark.anyio
async def test_upload_passes_sha_through(overrides):
    async with _client() as client:
        response = await client.put(
            "/api/repos/owner/repo/contents",
            json={"sub": SUB, "branch": "main", "path": "a.md", "content": "hi", "sha": "h1"},
        )

    assert response.status_code == 200
    name, kwargs = overrides["repository"].calls[0]
    assert name == "upload_file"
    assert kwargs["sha"] == "h1"
    assert kwargs["content"] == "hi"


@pytest.mark.anyio
async def test_unknown_account_is_not_found(overrides):
    async with _client() as client:
        response = await client.get(
            "/api/repos/owner/repo/tree", params={"sub": "https://git.example.com/nobody"}
        )

    assert response.status_code == 404
    assert overrides["repository"].calls == []


@pytest.mark.anyio
async def test_offline_refresh_maps_to_service_unavailable(overrides):
    overrides["repository"].error = OfflineRefreshError("offline")
    async with _client() as client:
        response = await client.delete(
            "/api/repos/owner/repo/contents",
            params={"sub": SUB, "path": "a.md", "sha": "h1"},
        )

    assert response.status_code == 503


@pytest.mark.anyio
async def test_stale_sha_conflict_is_passed_through(overrides):
    overrides["repository"].error = TransportError("conflict", status=409, body="sha mismatch")
    async with _client() as client:
        response = await client.put(
            "/api/repos/owner/repo/contents",
            json={"sub": SUB, "branch": "main", "path": "a.md", "content": "hi", "sha": "old"},
        )

    assert response.status_code == 409
    assert response.json()["detail"] == "sha mismatch"


@pytest.mark.anyio
async def test_user_info_route_accepts_slashes(overrides):
    async with _client() as client:
        response = await client.get("/api/users/" + quote(f"gt:{SUB}", safe=""))

    assert response.status_code == 200
    assert response.json()["id"] == f"gt:{SUB}"
