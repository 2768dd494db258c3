"""
Route access control.

A fixed, ordered rule table maps every path to one access category; the first
matching rule wins. ``resolve`` turns a category plus the caller's role into a
decision. It is pure: no I/O, no request objects.
"""

from dataclasses import dataclass
from typing import Literal, Optional
from urllib.parse import urlencode

from auth.tokens import Identity

Role = Literal["admin", "user", ""]
Category = Literal["public", "admin", "dashboard", "authenticated", "unknown"]
Reason = Literal[
    "public",
    "admin",
    "dashboard",
    "authenticated",
    "unauthorized",
    "insufficient_permissions",
]

PUBLIC_PATHS = ("/", "/api/auth/signin", "/api/auth/callback")
API_PREFIX = "/api/"
ADMIN_PREFIX = "/admin"
DASHBOARD_PREFIX = "/dashboard"
AUTHENTICATED_PATHS = ("/profile", "/checkout", "/orders", "/cart")

SIGNIN_PATH = "/api/auth/signin"
UNAUTHORIZED_PATH = "/unauthorized"
CALLBACK_PARAM = "callbackUrl"

LANDING_PATHS = ("/", "/welcome")
ADMIN_LANDING = "/admin"
USER_LANDING = "/catalog"


@dataclass(frozen=True)
class AccessDecision:
    allowed: bool
    reason: Reason
    redirect_target: Optional[str] = None


def access_category(path: str) -> Category:
    if path in PUBLIC_PATHS:
        return "public"
    if path.startswith(API_PREFIX):
        # APIs guard themselves per endpoint
        return "public"
    if path.startswith(ADMIN_PREFIX):
        return "admin"
    if path.startswith(DASHBOARD_PREFIX):
        return "dashboard"
    if any(path.startswith(p) for p in AUTHENTICATED_PATHS):
        return "authenticated"
    return "unknown"


def requires_authentication(path: str) -> bool:
    return access_category(path) in ("admin", "dashboard", "authenticated")


def signin_redirect(callback_url: str) -> str:
    return f"{SIGNIN_PATH}?{urlencode({CALLBACK_PARAM: callback_url}, safe='/')}"


def resolve(
    path: str,
    role: Role,
    is_authenticated: bool,
    callback_url: Optional[str] = None,
) -> AccessDecision:
    """
    Decide whether a caller may reach ``path``.

    Unauthenticated callers of a protected path are sent to sign-in with
    ``callback_url`` (default: ``path``) attached; authenticated callers
    without the admin role are sent to the unauthorized page. Paths no rule
    mentions are allowed.
    """
    category = access_category(path)

    if category in ("admin", "dashboard", "authenticated"):
        if not is_authenticated:
            return AccessDecision(
                False, "unauthorized", signin_redirect(callback_url or path)
            )
        if category == "admin" and role != "admin":
            return AccessDecision(False, "insufficient_permissions", UNAUTHORIZED_PATH)
        return AccessDecision(True, category)

    return AccessDecision(True, "public")


def has_access(path: str, role: Role) -> bool:
    """Boolean shorthand where an empty role means "not signed in"."""
    return resolve(path, role, role != "").allowed


def landing_redirect(path: str, identity: Identity) -> Optional[str]:
    """Where a signed-in user arriving at a landing path should go, if anywhere.

    Checked before the rule table.
    """
    if path not in LANDING_PATHS or not identity.is_authenticated:
        return None
    return ADMIN_LANDING if identity.role == "admin" else USER_LANDING
