"""
FastAPI routes for linking Gitea accounts and working with repository files.
"""

from __future__ import annotations

import logging
from http import HTTPStatus
from typing import Annotated, Any, List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query

from gitea_bridge.core.errors import (
    GiteaBridgeError,
    IdentityMismatchError,
    IdentityNotFoundError,
    InvalidOAuthStateError,
    OAuthFlowCancelledError,
    OAuthTokenExchangeError,
    OfflineRefreshError,
    TokenNotFoundError,
    TransientIdentityError,
    TransportError,
)
from gitea_bridge.dependencies import (
    get_app_settings,
    get_authorization_flow,
    get_gitea_token_service,
    get_repository_service,
    get_token_store,
    get_user_info_service,
)
from gitea_bridge.models.token import AccountToken, DownloadedFile, UserInfo
from gitea_bridge.schemas import AccountSummary, AddAccountRequest, FileUploadPayload

router = APIRouter()
logger = logging.getLogger(__name__)

_PASSTHROUGH_STATUSES = {
    HTTPStatus.NOT_FOUND,
    HTTPStatus.CONFLICT,
    HTTPStatus.UNPROCESSABLE_ENTITY,
}


def _http_error(exc: GiteaBridgeError) -> HTTPException:
    """Translate a domain error into the response the caller should see."""
    if isinstance(exc, (TokenNotFoundError, IdentityNotFoundError)):
        return HTTPException(status_code=HTTPStatus.NOT_FOUND, detail=str(exc))
    if isinstance(exc, IdentityMismatchError):
        return HTTPException(status_code=HTTPStatus.CONFLICT, detail=str(exc))
    if isinstance(exc, OfflineRefreshError):
        return HTTPException(status_code=HTTPStatus.SERVICE_UNAVAILABLE, detail=str(exc))
    if isinstance(exc, TransientIdentityError):
        return HTTPException(
            status_code=HTTPStatus.SERVICE_UNAVAILABLE,
            detail=str(exc),
            headers={"Retry-After": "60"},
        )
    if isinstance(exc, OAuthFlowCancelledError):
        return HTTPException(status_code=HTTPStatus.UNAUTHORIZED, detail=str(exc))
    if isinstance(exc, OAuthTokenExchangeError):
        return HTTPException(status_code=HTTPStatus.BAD_GATEWAY, detail=str(exc))
    if isinstance(exc, TransportError) and exc.status in _PASSTHROUGH_STATUSES:
        return HTTPException(status_code=exc.status, detail=exc.body or str(exc))
    logger.error("Gitea call failed: %s", exc)
    return HTTPException(status_code=HTTPStatus.BAD_GATEWAY, detail=str(exc))


def _summary(token: AccountToken) -> AccountSummary:
    return AccountSummary(
        sub=token.sub,
        name=token.name,
        server_url=token.server_url,
        expires_on=token.expires_on,
    )


def _stored_token(token_store: Any, sub: str) -> AccountToken:
    token = token_store.tokens_by_sub().get(sub)
    if token is None:
        raise HTTPException(
            status_code=HTTPStatus.NOT_FOUND,
            detail=f"No linked Gitea account {sub}.",
        )
    return token


def _project_id(repository_service: Any, owner: str, name: str) -> str:
    return repository_service.get_project_id(project_path=f"{owner}/{name}")


@router.get("/health", status_code=HTTPStatus.OK)
async def healthcheck(settings: Annotated[Any, Depends(get_app_settings)]) -> dict:
    """Simple health endpoint for monitoring."""
    return {"status": "ok", "environment": settings.environment}


@router.get("/auth/gitea/callback", status_code=HTTPStatus.OK)
async def handle_gitea_oauth_callback(
    authorization_flow: Annotated[Any, Depends(get_authorization_flow)],
    state: str = Query(..., description="OAuth state token."),
    code: Optional[str] = Query(None, description="Authorization code returned by Gitea."),
    error: Optional[str] = Query(None, description="Error reported by Gitea."),
) -> dict:
    """Hand the authorization result to the flow waiting for it."""
    try:
        authorization_flow.complete(state=state, code=code, error=error)
    except InvalidOAuthStateError as exc:
        raise HTTPException(status_code=HTTPStatus.BAD_REQUEST, detail=str(exc)) from exc

    if error or not code:
        return {"status": "denied"}
    return {"status": "authorized"}


@router.post("/accounts", status_code=HTTPStatus.CREATED, response_model=AccountSummary)
async def add_account(
    payload: AddAccountRequest,
    token_service: Annotated[Any, Depends(get_gitea_token_service)],
) -> AccountSummary:
    """Link a Gitea account; completes once the user authorized it."""
    try:
        token = await token_service.add_account(
            payload.normalized_server_url(),
            payload.application_id,
            payload.application_secret,
            payload.sub,
        )
    except GiteaBridgeError as exc:
        raise _http_error(exc) from exc
    return _summary(token)


@router.get("/accounts", response_model=List[AccountSummary])
async def list_accounts(
    token_store: Annotated[Any, Depends(get_token_store)],
) -> List[AccountSummary]:
    return [_summary(token) for token in token_store.tokens_by_sub().values()]


@router.get("/users/{user_id:path}", response_model=UserInfo)
async def get_user_info(
    user_id: str,
    user_info_service: Annotated[Any, Depends(get_user_info_service)],
) -> UserInfo:
    try:
        return await user_info_service.get_user_info(user_id)
    except ValueError as exc:
        raise HTTPException(status_code=HTTPStatus.BAD_REQUEST, detail=str(exc)) from exc
    except GiteaBridgeError as exc:
        raise _http_error(exc) from exc


@router.get("/repos/{owner}/{name}/tree")
async def get_tree(
    owner: str,
    name: str,
    token_store: Annotated[Any, Depends(get_token_store)],
    repository_service: Annotated[Any, Depends(get_repository_service)],
    sub: str = Query(..., description="Linked account to act as."),
    branch: str = Query("master"),
) -> Any:
    token = _stored_token(token_store, sub)
    try:
        return await repository_service.get_tree(
            token=token,
            project_id=_project_id(repository_service, owner, name),
            branch=branch,
        )
    except GiteaBridgeError as exc:
        raise _http_error(exc) from exc


@router.get("/repos/{owner}/{name}/commits")
async def get_commits(
    owner: str,
    name: str,
    token_store: Annotated[Any, Depends(get_token_store)],
    repository_service: Annotated[Any, Depends(get_repository_service)],
    sub: str = Query(..., description="Linked account to act as."),
    branch: str = Query("master"),
    path: str = Query(..., description="File whose history is requested."),
) -> Any:
    token = _stored_token(token_store, sub)
    try:
        return await repository_service.get_commits(
            token=token,
            project_id=_project_id(repository_service, owner, name),
            branch=branch,
            path=path,
        )
    except GiteaBridgeError as exc:
        raise _http_error(exc) from exc


@router.get("/repos/{owner}/{name}/contents", response_model=DownloadedFile)
async def download_file(
    owner: str,
    name: str,
    token_store: Annotated[Any, Depends(get_token_store)],
    repository_service: Annotated[Any, Depends(get_repository_service)],
    sub: str = Query(..., description="Linked account to act as."),
    branch: str = Query("master"),
    path: str = Query(...),
) -> DownloadedFile:
    token = _stored_token(token_store, sub)
    try:
        return await repository_service.download_file(
            token=token,
            project_id=_project_id(repository_service, owner, name),
            branch=branch,
            path=path,
        )
    except GiteaBridgeError as exc:
        raise _http_error(exc) from exc


@router.put("/repos/{owner}/{name}/contents")
async def upload_file(
    owner: str,
    name: str,
    payload: FileUploadPayload,
    token_store: Annotated[Any, Depends(get_token_store)],
    repository_service: Annotated[Any, Depends(get_repository_service)],
) -> Any:
    """Create the file, or update it when the payload carries its current sha."""
    token = _stored_token(token_store, payload.sub)
    try:
        return await repository_service.upload_file(
            token=token,
            project_id=_project_id(repository_service, owner, name),
            branch=payload.branch,
            path=payload.path,
            content=payload.content,
            sha=payload.sha,
        )
    except GiteaBridgeError as exc:
        raise _http_error(exc) from exc


@router.delete("/repos/{owner}/{name}/contents")
async def remove_file(
    owner: str,
    name: str,
    token_store: Annotated[Any, Depends(get_token_store)],
    repository_service: Annotated[Any, Depends(get_repository_service)],
    sub: str = Query(..., description="Linked account to act as."),
    branch: str = Query("master"),
    path: str = Query(...),
    sha: str = Query(..., description="Current content hash of the file."),
) -> Any:
    token = _stored_token(token_store, sub)
    try:
        return await repository_service.remove_file(
            token=token,
            project_id=_project_id(repository_service, owner, name),
            branch=branch,
            path=path,
            sha=sha,
        )
    except GiteaBridgeError as exc:
        raise _http_error(exc) from exc


__all__ = ["router"]
