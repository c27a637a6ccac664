"""Access rules for comments and moderation.

Role hierarchy: admin > moderator > council_member > staff > resident.
Moderating requires ``moderator``; changing moderation settings requires
``admin``; reading raw (unredacted) text requires ``staff``.
"""

from __future__ import annotations

from fastapi import HTTPException, status

from civic.auth.models import Role, User
from civic.comments.models import Comment, Visibility


def has_permission(user: User, required_role: Role) -> bool:
    """True when *user* holds *required_role* or a role above it."""
    return Role(user.role).level >= required_role.level


def require_role(user: User, role: Role) -> None:
    """Raise ``HTTPException(403)`` unless *user* holds at least *role*.

    Call it at the top of a route body, or wrap it in a dependency::

        def _moderator(user: User = Depends(get_current_user)) -> User:
            require_role(user, Role.moderator)
            return user
    """
    if has_permission(user, role):
        return
    raise HTTPException(
        status_code=status.HTTP_403_FORBIDDEN,
        detail=f"Role '{Role(user.role).value}' cannot do this; requires '{role.value}' or higher",
    )


def can_read_comment(user: User, comment: Comment) -> bool:
    """Residents read visible comments and their own; staff and above read all."""
    if Role(user.role).can_view_raw:
        return True
    return comment.user_id == user.id or comment.visibility == Visibility.VISIBLE
