# signed session tokens: issued at sign-in, read on every request
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Literal, Optional

from jose import JWTError, jwt

from utils import config
from utils.logger import get_logger

_logger = get_logger(__name__)

RoleClaim = Literal["admin", "user", ""]
VALID_ROLES = ("admin", "user")


@dataclass(frozen=True)
class Identity:
    """Who is making a request. The anonymous identity has empty fields."""

    subject_id: str = ""
    email: str = ""
    name: str = ""
    role: RoleClaim = ""

    @property
    def is_authenticated(self) -> bool:
        return bool(self.subject_id) and self.role in VALID_ROLES

    @property
    def is_admin(self) -> bool:
        return self.is_authenticated and self.role == "admin"


ANONYMOUS = Identity()


def issue_token(
    identity: Identity,
    expires_delta: Optional[timedelta] = None,
    secret: Optional[str] = None,
) -> str:
    """Encode ``identity`` into a signed JWT. The role is frozen into the token."""
    if identity.role not in VALID_ROLES:
        raise ValueError(f"Cannot issue a token for role {identity.role!r}")
    if not identity.subject_id:
        raise ValueError("Cannot issue a token without a subject")
    expire = datetime.now(timezone.utc) + (
        expires_delta or timedelta(minutes=config.TOKEN_TTL_MINUTES)
    )
    claims = {
        "sub": identity.subject_id,
        "email": identity.email,
        "name": identity.name,
        "role": identity.role,
        "exp": expire,
    }
    return jwt.encode(claims, secret or config.SECRET_KEY, algorithm=config.ALGORITHM)


def read_identity(token: Optional[str], secret: Optional[str] = None) -> Identity:
    """
    Decode a session token into an Identity.

    Never raises: a missing, expired, tampered or otherwise malformed token,
    or one carrying an unknown role, yields the anonymous identity.
    """
    if not token:
        return ANONYMOUS
    try:
        payload = jwt.decode(
            token, secret or config.SECRET_KEY, algorithms=[config.ALGORITHM]
        )
    except JWTError as e:
        _logger.debug(f"Rejected session token: {e}")
        return ANONYMOUS

    subject = payload.get("sub")
    role = payload.get("role")
    if not isinstance(subject, str) or not subject or role not in VALID_ROLES:
        _logger.warning("Session token without a usable subject or role")
        return ANONYMOUS
    return Identity(
        subject_id=subject,
        email=str(payload.get("email") or ""),
        name=str(payload.get("name") or ""),
        role=role,
    )


def bearer_token(authorization: Optional[str]) -> Optional[str]:
    if authorization and authorization.startswith("Bearer "):
        return authorization.split(" ", 1)[1].strip() or None
    return None
