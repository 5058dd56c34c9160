"""
FastAPI routes for the channel companion.
"""

from __future__ import annotations

import logging
from datetime import datetime
from http import HTTPStatus
from typing import Annotated, Any, Optional

from fastapi import APIRouter, Depends, Query, Request, Response
from fastapi.responses import JSONResponse, RedirectResponse

from companion.core.errors import AuthorizationFailed
from companion.dependencies import (
    SESSION_COOKIE,
    CurrentUser,
    get_app_settings,
    get_authorization_service,
    get_event_log_service,
    get_provider_adapter,
    get_title_suggestion_service,
)
from companion.models.audit import AuditEventKind
from companion.schemas import (
    AuthorizationUrlResponse,
    Comment,
    CommentCreate,
    CommentPage,
    CommentThread,
    EventKindCount,
    EventPage,
    OAuthCallbackPayload,
    SessionResponse,
    TitleSuggestionRequest,
    UserProfile,
    VideoDetails,
    VideoMetadataUpdate,
    VideoSummary,
)
from companion.services import AuthorizationResult, ProviderOperation

router = APIRouter()
logger = logging.getLogger(__name__)


def _wants_html(request: Request) -> bool:
    return "text/html" in request.headers.get("accept", "").lower()


def _set_session_cookie(response: Response, token: str, settings: Any) -> None:
    response.set_cookie(
        SESSION_COOKIE,
        token,
        max_age=settings.security.jwt_expires_in_seconds,
        httponly=True,
        secure=settings.environment == "production",
        samesite="lax",
    )


def _session_response(result: AuthorizationResult) -> SessionResponse:
    return SessionResponse(
        token=result.session_token,
        user=UserProfile.from_user(result.user),
        redirect_to=result.redirect_to,
    )


@router.get("/health", status_code=HTTPStatus.OK)
async def healthcheck() -> dict:
    """Simple health endpoint for monitoring."""
    return {"status": "ok"}


@router.get("/auth/url", response_model=AuthorizationUrlResponse)
async def get_authorization_url(
    service: Annotated[Any, Depends(get_authorization_service)],
    redirect_to: Optional[str] = Query(
        default=None,
        description="Optional URL to redirect back to on successful authentication.",
    ),
) -> AuthorizationUrlResponse:
    return AuthorizationUrlResponse(
        authorization_url=service.begin_authorization(redirect_to=redirect_to)
    )


@router.get("/auth/login")
async def start_login(
    service: Annotated[Any, Depends(get_authorization_service)],
    redirect_to: Optional[str] = Query(default=None),
) -> RedirectResponse:
    """Send the browser straight to the Google consent screen."""
    return RedirectResponse(
        url=service.begin_authorization(redirect_to=redirect_to),
        status_code=HTTPStatus.TEMPORARY_REDIRECT,
    )


@router.post("/auth/callback", response_model=SessionResponse)
async def complete_login(
    payload: OAuthCallbackPayload,
    response: Response,
    service: Annotated[Any, Depends(get_authorization_service)],
    settings: Annotated[Any, Depends(get_app_settings)],
) -> SessionResponse:
    """Complete the OAuth exchange and return a session token."""
    result = await service.complete_authorization(payload.code, payload.state)
    _set_session_cookie(response, result.session_token, settings)
    return _session_response(result)


@router.get("/auth/callback")
async def complete_login_get(
    request: Request,
    service: Annotated[Any, Depends(get_authorization_service)],
    settings: Annotated[Any, Depends(get_app_settings)],
    code: Optional[str] = Query(default=None, description="Authorization code from Google."),
    state: Optional[str] = Query(default=None, description="OAuth state token."),
    error: Optional[str] = Query(default=None, description="Error reported by Google."),
    redirect: bool = Query(
        default=False,
        description="When true, redirect browser clients instead of returning JSON.",
    ),
) -> Response:
    if error:
        logger.info("Google consent returned error=%s", error)
        raise AuthorizationFailed("Google authorization was denied.")
    if not code:
        raise AuthorizationFailed("No authorization code provided.")

    result = await service.complete_authorization(code, state)
    redirect_target = result.redirect_to or settings.frontend_base_url

    if redirect_target and (redirect or _wants_html(request)):
        response: Response = RedirectResponse(
            url=str(redirect_target), status_code=HTTPStatus.TEMPORARY_REDIRECT
        )
    else:
        response = JSONResponse(content=_session_response(result).model_dump(mode="json"))
    _set_session_cookie(response, result.session_token, settings)
    return response


@router.get("/auth/me", response_model=UserProfile)
async def get_me(user: CurrentUser) -> UserProfile:
    return UserProfile.from_user(user)


@router.get("/auth/verify")
async def verify_session(user: CurrentUser) -> dict:
    return {"valid": True, "user": UserProfile.from_user(user).model_dump()}


@router.post("/auth/logout")
async def logout(
    user: CurrentUser,
    response: Response,
    service: Annotated[Any, Depends(get_authorization_service)],
) -> dict:
    """Revoke the Google grant and drop the stored credential.

    The session token itself stays valid until it expires; only the cookie
    copy is cleared here.
    """
    await service.deauthorize(user.id)
    response.delete_cookie(SESSION_COOKIE)
    return {"success": True}


@router.get("/videos", response_model=list[VideoSummary])
async def list_my_videos(
    user: CurrentUser,
    adapter: Annotated[Any, Depends(get_provider_adapter)],
    max_results: int = Query(default=10, ge=1, le=50),
) -> list[VideoSummary]:
    return await adapter.call_provider(
        user.id, ProviderOperation.LIST_MY_VIDEOS, {"max_results": max_results}
    )


@router.get("/videos/{video_id}", response_model=VideoDetails)
async def get_video(
    video_id: str,
    user: CurrentUser,
    adapter: Annotated[Any, Depends(get_provider_adapter)],
) -> VideoDetails:
    return await adapter.call_provider(
        user.id, ProviderOperation.GET_VIDEO, {"video_id": video_id}
    )


@router.patch("/videos/{video_id}", response_model=VideoDetails)
async def update_video(
    video_id: str,
    payload: VideoMetadataUpdate,
    user: CurrentUser,
    adapter: Annotated[Any, Depends(get_provider_adapter)],
) -> VideoDetails:
    return await adapter.call_provider(
        user.id,
        ProviderOperation.UPDATE_VIDEO_METADATA,
        {"video_id": video_id, "title": payload.title, "description": payload.description},
    )


@router.get("/videos/{video_id}/comments", response_model=CommentPage)
async def list_comments(
    video_id: str,
    user: CurrentUser,
    adapter: Annotated[Any, Depends(get_provider_adapter)],
    page_token: Optional[str] = Query(default=None),
    max_results: int = Query(default=20, ge=1, le=100),
) -> CommentPage:
    return await adapter.call_provider(
        user.id,
        ProviderOperation.LIST_COMMENTS,
        {"video_id": video_id, "page_token": page_token, "max_results": max_results},
    )


@router.post(
    "/videos/{video_id}/comments",
    response_model=CommentThread,
    status_code=HTTPStatus.CREATED,
)
async def add_comment(
    video_id: str,
    payload: CommentCreate,
    user: CurrentUser,
    adapter: Annotated[Any, Depends(get_provider_adapter)],
) -> CommentThread:
    return await adapter.call_provider(
        user.id, ProviderOperation.ADD_COMMENT, {"video_id": video_id, "text": payload.text}
    )


@router.post(
    "/comments/{comment_id}/replies",
    response_model=Comment,
    status_code=HTTPStatus.CREATED,
)
async def reply_to_comment(
    comment_id: str,
    payload: CommentCreate,
    user: CurrentUser,
    adapter: Annotated[Any, Depends(get_provider_adapter)],
) -> Comment:
    return await adapter.call_provider(
        user.id,
        ProviderOperation.REPLY_TO_COMMENT,
        {"parent_id": comment_id, "text": payload.text},
    )


@router.delete("/comments/{comment_id}")
async def delete_comment(
    comment_id: str,
    user: CurrentUser,
    adapter: Annotated[Any, Depends(get_provider_adapter)],
) -> dict:
    await adapter.call_provider(
        user.id, ProviderOperation.DELETE_COMMENT, {"comment_id": comment_id}
    )
    return {"success": True}


@router.post("/ai/title-suggestions")
async def suggest_titles(
    payload: TitleSuggestionRequest,
    user: CurrentUser,
    service: Annotated[Any, Depends(get_title_suggestion_service)],
) -> dict:
    suggestions = await service.suggest(
        user.id,
        current_title=payload.current_title,
        description=payload.description,
        video_id=payload.video_id,
    )
    return {"suggestions": [suggestion.model_dump() for suggestion in suggestions]}


@router.get("/events", response_model=EventPage)
async def list_events(
    user: CurrentUser,
    service: Annotated[Any, Depends(get_event_log_service)],
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=50, ge=1, le=100),
    kind: Optional[AuditEventKind] = Query(default=None),
    start_date: Optional[datetime] = Query(default=None),
    end_date: Optional[datetime] = Query(default=None),
) -> EventPage:
    """Return the signed-in user's own event log, newest first."""
    return await service.list_events(
        user.id, page=page, limit=limit, kind=kind, start=start_date, end=end_date
    )


@router.get("/events/stats", response_model=list[EventKindCount])
async def event_stats(
    user: CurrentUser,
    service: Annotated[Any, Depends(get_event_log_service)],
) -> list[EventKindCount]:
    return await service.stats(user.id)


__all__ = ["router"]
