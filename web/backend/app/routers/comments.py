"""Comments router -- submission and retrieval of public comments."""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException, status

from civic.auth.models import User
from civic.auth.permissions import can_read_comment
from civic.comments.models import Comment, Visibility
from civic.moderation.queue import ModerationQueue
from web.backend.app.dependencies import get_queue
from web.backend.app.middleware.auth import get_current_user
from web.backend.app.models.api import CommentResponse, CreateCommentRequest

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/comments", tags=["comments"])


def comment_response(comment: Comment, viewer: User) -> CommentResponse:
    """Serialize *comment* for *viewer*, hiding moderation detail from residents."""
    data = comment.to_dict() if viewer.role.can_view_raw else comment.public_view()
    return CommentResponse(**data)


@router.post(
    "",
    response_model=CommentResponse,
    summary="Submit a public comment",
    status_code=status.HTTP_201_CREATED,
)
def submit_comment(
    body: CreateCommentRequest,
    user: User = Depends(get_current_user),
    queue: ModerationQueue = Depends(get_queue),
):
    """Store a comment and run automated moderation on it.

    Comments on a live meeting start out visible; all others start as
    pending.  Moderation may hide or hold the comment either way.
    """
    initial = Visibility.VISIBLE if body.meeting_live else Visibility.PENDING_VISIBLE
    comment, result = queue.submit(
        user_id=user.id,
        meeting_id=body.meeting_id,
        body=body.body,
        stance=body.stance,
        initial_visibility=initial,
        agenda_item_ids=body.agenda_item_ids,
    )
    logger.info("Comment %s submitted by %s -> %s", comment.id, user.id, comment.visibility.value)
    return comment_response(comment, user)


@router.get(
    "/{comment_id}",
    response_model=CommentResponse,
    summary="Get a single comment",
)
def get_comment(
    comment_id: str,
    user: User = Depends(get_current_user),
    queue: ModerationQueue = Depends(get_queue),
):
    """Return a comment.

    Residents only see publicly visible comments (and their own); staff
    and above see everything, including the raw body.
    """
    comment = queue.comments.get(comment_id)
    if comment is None or not can_read_comment(user, comment):
        raise HTTPException(status_code=404, detail=f"Comment '{comment_id}' not found")
    return comment_response(comment, user)
