"""Moderation router -- review queue, moderator actions, settings and audit history.

All endpoints require the ``moderator`` role or higher; changing settings
requires ``admin``.
"""

from __future__ import annotations

from dataclasses import asdict
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query

from civic.auth.models import Role, User
from civic.auth.permissions import require_role
from civic.comments.store import (
    CommentNotFoundError,
    CommentWithdrawnError,
    ConcurrentModificationError,
)
from civic.moderation.engine import moderation_summary
from civic.moderation.models import Decision, ModerationLog, ModerationSettings, Priority
from civic.moderation.queue import ModerationQueue
from civic.moderation.settings_store import SettingsStore
from web.backend.app.dependencies import get_queue, get_settings_store
from web.backend.app.middleware.auth import get_current_user
from web.backend.app.models.api import (
    ModerationActionRequest,
    ModerationActionResponse,
    ModerationLogResponse,
    ModerationPreviewRequest,
    ModerationPreviewResponse,
    ModerationSettingsModel,
    ModerationStatsResponse,
    QueueItemResponse,
    QueueResponse,
    RiskFlagsResponse,
)
from web.backend.app.routers.comments import comment_response

router = APIRouter(prefix="/api/moderation", tags=["moderation"])


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _moderator(user: User = Depends(get_current_user)) -> User:
    require_role(user, Role.moderator)
    return user


def _log_response(entry: ModerationLog) -> ModerationLogResponse:
    return ModerationLogResponse(**entry.to_dict())


# ---------------------------------------------------------------------------
# Queue
# ---------------------------------------------------------------------------


@router.get(
    "/queue",
    response_model=QueueResponse,
    summary="List comments awaiting review",
)
def get_moderation_queue(
    limit: int = Query(20, ge=1, le=100),
    offset: int = Query(0, ge=0),
    priority: Optional[Priority] = Query(None),
    include_stats: bool = Query(False),
    user: User = Depends(_moderator),
    queue: ModerationQueue = Depends(get_queue),
):
    """Return pending and hidden comments, highest priority first."""
    items = queue.list_queue(limit=limit, offset=offset, priority=priority)
    response = QueueResponse(
        queue=[
            QueueItemResponse(
                comment=comment_response(item.comment, user),
                priority=item.priority.value,
                risk_score=item.risk_score,
                recent_logs=[_log_response(e) for e in item.recent_logs],
            )
            for item in items
        ]
    )
    if include_stats:
        response.stats = ModerationStatsResponse(**asdict(queue.stats()))
    return response


# ---------------------------------------------------------------------------
# Actions
# ---------------------------------------------------------------------------


@router.post(
    "/actions",
    response_model=ModerationActionResponse,
    summary="Approve or reject one or many comments",
)
def moderation_action(
    body: ModerationActionRequest,
    user: User = Depends(_moderator),
    queue: ModerationQueue = Depends(get_queue),
):
    """Apply a moderator decision.

    With ``comment_ids`` the decision is applied as a bulk action and the
    response reports per-batch counts instead of failing on the first error.
    """
    decision = Decision(body.action)

    if body.comment_ids:
        result = queue.bulk_moderate(
            body.comment_ids, user.id, decision, reason=body.reason or body.notes
        )
        return ModerationActionResponse(
            message=f"Bulk {decision.value} completed",
            successful=result.successful,
            failed=result.failed,
            total=result.total,
        )

    try:
        if decision == Decision.approve:
            queue.approve(body.comment_id, user.id, body.notes, expected_version=body.expected_version)
        else:
            if not body.reason:
                raise HTTPException(status_code=400, detail="A reason is required to reject a comment")
            queue.reject(body.comment_id, user.id, body.reason, expected_version=body.expected_version)
    except CommentNotFoundError as exc:
        raise HTTPException(status_code=404, detail=str(exc))
    except (CommentWithdrawnError, ConcurrentModificationError) as exc:
        raise HTTPException(status_code=409, detail=str(exc))

    past = "approved" if decision == Decision.approve else "rejected"
    return ModerationActionResponse(message=f"Comment {past} successfully", comment_id=body.comment_id)


# ---------------------------------------------------------------------------
# Settings
# ---------------------------------------------------------------------------


@router.get(
    "/settings",
    response_model=ModerationSettingsModel,
    summary="Get moderation settings",
)
def get_settings(
    user: User = Depends(_moderator),
    store: SettingsStore = Depends(get_settings_store),
):
    return ModerationSettingsModel(**asdict(store.get()))


@router.post(
    "/settings",
    response_model=ModerationSettingsModel,
    summary="Update moderation settings (admin only)",
)
def update_settings(
    body: ModerationSettingsModel,
    user: User = Depends(get_current_user),
    store: SettingsStore = Depends(get_settings_store),
    queue: ModerationQueue = Depends(get_queue),
):
    """Persist new settings and apply them to the running engine."""
    require_role(user, Role.admin)
    try:
        settings = store.save(ModerationSettings(**body.model_dump()))
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc))
    queue.engine.settings = settings
    return ModerationSettingsModel(**asdict(settings))


# ---------------------------------------------------------------------------
# History and preview
# ---------------------------------------------------------------------------


@router.get(
    "/comments/{comment_id}/history",
    response_model=list[ModerationLogResponse],
    summary="Audit trail for a comment",
)
def comment_history(
    comment_id: str,
    user: User = Depends(_moderator),
    queue: ModerationQueue = Depends(get_queue),
):
    try:
        entries = queue.history(comment_id)
    except CommentNotFoundError as exc:
        raise HTTPException(status_code=404, detail=str(exc))
    return [_log_response(e) for e in entries]


@router.post(
    "/preview",
    response_model=ModerationPreviewResponse,
    summary="Dry-run moderation on arbitrary text",
)
def preview_moderation(
    body: ModerationPreviewRequest,
    user: User = Depends(_moderator),
    queue: ModerationQueue = Depends(get_queue),
):
    """Run the moderation pipeline without storing anything."""
    result = queue.engine.moderate(body.text)
    return ModerationPreviewResponse(
        processed=result.processed,
        public_body=result.public_body,
        pii_detected=result.pii_detected,
        profanity_detected=result.profanity_detected,
        risk_flags=RiskFlagsResponse(**result.risk_flags.to_dict()),
        suggested_visibility=result.suggested_visibility,
        moderation_notes=result.moderation_notes,
        summary=moderation_summary(result),
    )
