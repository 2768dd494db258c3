from fastapi import Depends, HTTPException, Request, status

from auth.tokens import Identity, bearer_token, read_identity
from utils import config


def request_identity(request: Request) -> Identity:
    """
    Identity behind a request: the session cookie, or the bearer token when
    the cookie is missing, expired or tampered with.
    """
    identity = read_identity(request.cookies.get(config.SESSION_COOKIE))
    if identity.is_authenticated:
        return identity
    return read_identity(bearer_token(request.headers.get("Authorization")))


async def current_identity(request: Request) -> Identity:
    identity = getattr(request.state, "identity", None)
    if identity is None:
        identity = request_identity(request)
        request.state.identity = identity
    return identity


async def require_identity(identity: Identity = Depends(current_identity)) -> Identity:
    if not identity.is_authenticated:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Unauthorized",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return identity


async def require_admin(identity: Identity = Depends(require_identity)) -> Identity:
    if identity.role != "admin":
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Admin only")
    return identity
