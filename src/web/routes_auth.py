"""
Identity provider endpoints.

The upstream OAuth handshake happens outside this service; the callback
receives the verified profile (email, name, optional provider subject id),
registers the user and issues the session token.
"""

from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Request, status
from fastapi.responses import HTMLResponse, JSONResponse, RedirectResponse
from pydantic import ValidationError

from auth.access import CALLBACK_PARAM
from auth.roles import sign_in
from auth.tokens import Identity
from utils import config
from utils.logger import get_logger
from web.deps import current_identity
from web.pages import render_page
from web.schemas import SessionUser, SignInPayload, SignInResult

_logger = get_logger(__name__)

router = APIRouter(prefix="/api/auth", tags=["auth"])


def safe_callback(url: Optional[str]) -> str:
    """Only same-site relative paths are followed after sign-in."""
    if not url or not url.startswith("/") or url.startswith("//") or "\\" in url:
        return "/"
    return url


def _set_session_cookie(response, token: str) -> None:
    response.set_cookie(
        config.SESSION_COOKIE,
        token,
        max_age=config.TOKEN_TTL_MINUTES * 60,
        httponly=True,
        samesite="lax",
    )


@router.get("/signin", response_class=HTMLResponse)
async def signin_form(
    request: Request, identity: Identity = Depends(current_identity)
):
    callback = safe_callback(request.query_params.get(CALLBACK_PARAM))
    return render_page(request, "signin.html", "Sign in", identity, callback=callback)


@router.post("/callback")
async def callback(request: Request):
    is_json = request.headers.get("content-type", "").startswith("application/json")
    try:
        raw = await request.json() if is_json else dict(await request.form())
    except ValueError:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Malformed body")
    try:
        payload = SignInPayload.model_validate(raw)
    except ValidationError as e:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=e.errors(include_url=False, include_context=False),
        )

    identity, token = await sign_in(payload.email, payload.name, payload.sub)

    if is_json:
        response = JSONResponse(
            SignInResult(
                token=token, user=SessionUser.from_identity(identity)
            ).model_dump(by_alias=True)
        )
    else:
        response = RedirectResponse(
            safe_callback(payload.callback_url), status_code=status.HTTP_303_SEE_OTHER
        )
    _set_session_cookie(response, token)
    return response


@router.post("/signout")
async def signout(identity: Identity = Depends(current_identity)):
    if identity.is_authenticated:
        _logger.info(f"Signed out {identity.email}")
    response = JSONResponse({"message": "Signed out"})
    response.delete_cookie(config.SESSION_COOKIE)
    return response


@router.get("/session", response_model=Optional[SessionUser])
async def session(identity: Identity = Depends(current_identity)):
    if not identity.is_authenticated:
        return None
    return SessionUser.from_identity(identity)
