from typing import Optional

import db.crud as crud
from auth.tokens import Identity, issue_token
from utils.logger import get_logger

_logger = get_logger(__name__)


async def sign_in(
    email: str, name: str = "", subject_id: Optional[str] = None
) -> tuple[Identity, str]:
    """
    Complete a provider sign-in: register the user if needed, look up the
    role granted to the email and issue a session token carrying it.

    The role is read here and nowhere else; changing an assignment only
    affects tokens issued afterwards.
    """
    user = await crud.upsert_user(email, name, subject_id)
    role = await crud.get_assigned_role(user.email)
    identity = Identity(
        subject_id=user.id, email=user.email, name=user.name, role=role
    )
    _logger.info(f"Issued session for {user.email} with role {role}")
    return identity, issue_token(identity)
