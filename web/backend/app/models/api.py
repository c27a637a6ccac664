"""Pydantic models for API request/response serialization.

These models mirror the civic dataclasses and provide proper JSON
serialization for the FastAPI endpoints.
"""

from __future__ import annotations

from typing import Literal, Optional

from pydantic import BaseModel, Field, model_validator

from civic.comments.models import Stance, Visibility


# ---------------------------------------------------------------------------
# Comment models
# ---------------------------------------------------------------------------


class CreateCommentRequest(BaseModel):
    """Request body for submitting a comment."""

    meeting_id: str = Field(min_length=1)
    agenda_item_ids: list[str] = Field(min_length=1, max_length=10)
    body: str = Field(min_length=10, max_length=2000)
    stance: Stance
    meeting_live: bool = False


class RiskFlagsResponse(BaseModel):
    harassment: bool = False
    threat: bool = False
    hate: bool = False
    self_harm: bool = False
    sexual: bool = False
    violence: bool = False
    score: float = 0.0


class CommentResponse(BaseModel):
    """Comment as shown to its reader.

    Moderation detail (raw body, flags, notes) is only populated for
    privileged roles.
    """

    id: str
    user_id: str
    meeting_id: str
    public_body: str
    stance: Stance
    visibility: Visibility
    agenda_item_ids: list[str] = Field(default_factory=list)
    submitted_at: str = ""
    visible_at: str = ""
    withdrawn_at: str = ""
    version: int = 1
    raw_body: Optional[str] = None
    pii_detected: Optional[bool] = None
    profanity_detected: Optional[bool] = None
    risk_flags: Optional[RiskFlagsResponse] = None
    moderation_notes: Optional[str] = None


# ---------------------------------------------------------------------------
# Moderation models
# ---------------------------------------------------------------------------


class ModerationLogResponse(BaseModel):
    """A single moderation audit entry."""

    id: str
    comment_id: str
    moderator_id: str
    action: str
    reason: str = ""
    metadata: dict = Field(default_factory=dict)
    created_at: str = ""


class QueueItemResponse(BaseModel):
    comment: CommentResponse
    priority: Literal["high", "medium", "low"]
    risk_score: float = 0.0
    recent_logs: list[ModerationLogResponse] = Field(default_factory=list)


class ModerationStatsResponse(BaseModel):
    total: int = 0
    pending: int = 0
    hidden: int = 0
    visible: int = 0
    recent_actions: int = 0
    percent_moderated: str = "0"


class QueueResponse(BaseModel):
    queue: list[QueueItemResponse] = Field(default_factory=list)
    stats: Optional[ModerationStatsResponse] = None


class ModerationActionRequest(BaseModel):
    """Single (``comment_id``) or bulk (``comment_ids``) moderation action."""

    comment_id: Optional[str] = None
    comment_ids: Optional[list[str]] = None
    action: Literal["approve", "reject"]
    reason: Optional[str] = Field(default=None, max_length=500)
    notes: Optional[str] = Field(default=None, max_length=500)
    expected_version: Optional[int] = None

    @model_validator(mode="after")
    def _require_target(self) -> "ModerationActionRequest":
        if not self.comment_id and not self.comment_ids:
            raise ValueError("Either comment_id or comment_ids must be provided")
        return self


class ModerationActionResponse(BaseModel):
    message: str
    comment_id: Optional[str] = None
    successful: Optional[int] = None
    failed: Optional[int] = None
    total: Optional[int] = None


class ModerationSettingsModel(BaseModel):
    auto_moderate: bool = True
    risk_threshold: float = Field(default=0.7, ge=0.0, le=1.0)
    review_threshold: float = Field(default=0.4, ge=0.0, le=1.0)


class ModerationPreviewRequest(BaseModel):
    text: str = Field(min_length=1, max_length=2000)


class ModerationPreviewResponse(BaseModel):
    processed: bool
    public_body: str
    pii_detected: bool
    profanity_detected: bool
    risk_flags: RiskFlagsResponse
    suggested_visibility: Visibility
    moderation_notes: list[str] = Field(default_factory=list)
    summary: str = ""
