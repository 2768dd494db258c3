# request interceptor: runs before every route handler
from fastapi import Request
from fastapi.responses import RedirectResponse

from auth.access import UNAUTHORIZED_PATH, landing_redirect, resolve
from utils.logger import get_logger
from web.deps import request_identity

_logger = get_logger(__name__)


async def access_control(request: Request, call_next):
    """
    Gate page routes with the access rule table.

    The role-based landing redirect goes first; after that a deny decision
    becomes a redirect (sign-in with a callback URL, or the unauthorized
    page). API routes pass through and answer 401/403 themselves.
    """
    identity = request_identity(request)
    request.state.identity = identity
    path = request.url.path

    landing = landing_redirect(path, identity)
    if landing:
        return RedirectResponse(landing)

    callback = f"{path}?{request.url.query}" if request.url.query else path
    decision = resolve(path, identity.role, identity.is_authenticated, callback)
    if not decision.allowed:
        _logger.info(f"{request.method} {path} denied: {decision.reason}")
        return RedirectResponse(decision.redirect_target or UNAUTHORIZED_PATH)

    return await call_next(request)
