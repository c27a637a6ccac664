"""Auth middleware -- FastAPI dependencies for extracting the current user.

Login (session / one-time-code) is handled by the gateway in front of this
API, which forwards the authenticated identity as trusted headers:

1. ``X-User-Id: <user id>``
2. ``X-User-Role: <role>`` (defaults to ``resident``)
"""

from __future__ import annotations

from typing import Optional

from fastapi import Header, HTTPException, status

from civic.auth.models import Role, User


async def get_current_user(
    x_user_id: Optional[str] = Header(None, alias="X-User-Id"),
    x_user_role: Optional[str] = Header(None, alias="X-User-Role"),
) -> User:
    """FastAPI dependency that returns the caller's identity.

    Raises ``401 Unauthorized`` when no identity is forwarded and
    ``400 Bad Request`` for an unknown role.
    """
    if not x_user_id:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
        )
    try:
        role = Role((x_user_role or Role.resident.value).lower())
    except ValueError:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Unknown role '{x_user_role}'",
        )
    return User(id=x_user_id, role=role)
