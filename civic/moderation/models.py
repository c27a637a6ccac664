"""Data models for the comment moderation pipeline."""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from enum import Enum
from typing import Any

from civic.comments.models import RISK_CATEGORIES, Comment, RiskFlags, Visibility

# Reserved moderator identity for automated actions. The colon can never
# appear in a generated user id, so it cannot collide with a real user.
SYSTEM_MODERATOR_ID = "system:auto-moderation"


@dataclass
class PIIResult:
    """Output of the PII detector."""

    redacted_text: str
    detected: bool = False
    types: list[str] = field(default_factory=list)


@dataclass
class ProfanityResult:
    """Output of the profanity filter."""

    detected: bool
    cleaned_text: str


@dataclass
class ClassificationResult:
    """Output of a risk classifier back-end."""

    flagged: bool = False
    categories: list[str] = field(default_factory=list)
    risk_flags: RiskFlags = field(default_factory=RiskFlags)


@dataclass
class ModerationResult:
    """Ephemeral verdict produced by the decision engine for one text."""

    processed: bool = False
    public_body: str = ""
    pii_detected: bool = False
    profanity_detected: bool = False
    risk_flags: RiskFlags = field(default_factory=RiskFlags)
    suggested_visibility: Visibility = Visibility.VISIBLE
    moderation_notes: list[str] = field(default_factory=list)
    pii_types: list[str] = field(default_factory=list)
    flagged_categories: list[str] = field(default_factory=list)

    @property
    def notes_text(self) -> str:
        return "\n".join(self.moderation_notes)

    def to_dict(self) -> dict[str, Any]:
        d = asdict(self)
        d["suggested_visibility"] = self.suggested_visibility.value
        return d


@dataclass
class ModerationSettings:
    """Runtime-tunable moderation thresholds."""

    auto_moderate: bool = True
    risk_threshold: float = 0.7
    review_threshold: float = 0.4

    def validate(self) -> None:
        for name in ("risk_threshold", "review_threshold"):
            value = getattr(self, name)
            if not 0.0 <= value <= 1.0:
                raise ValueError(f"{name} must be between 0 and 1, got {value}")
        if self.review_threshold > self.risk_threshold:
            raise ValueError("review_threshold must not exceed risk_threshold")


class ModerationAction(str, Enum):
    """Audit log actions."""

    FLAG = "FLAG"
    HIDE = "HIDE"
    RESTORE = "RESTORE"


class Decision(str, Enum):
    """Moderator decisions accepted by the queue manager."""

    approve = "approve"
    reject = "reject"


class Priority(str, Enum):
    """Triage priority for queued comments."""

    high = "high"
    medium = "medium"
    low = "low"

    @property
    def rank(self) -> int:
        """Sort key (lower sorts first)."""
        return {Priority.high: 0, Priority.medium: 1, Priority.low: 2}[self]


@dataclass
class ModerationLog:
    """Immutable audit record of a moderation decision."""

    id: str
    comment_id: str
    moderator_id: str
    action: ModerationAction
    reason: str = ""
    metadata: dict[str, Any] = field(default_factory=dict)
    created_at: str = ""

    def __post_init__(self) -> None:
        if isinstance(self.action, str):
            self.action = ModerationAction(self.action)

    @property
    def is_automated(self) -> bool:
        return self.moderator_id == SYSTEM_MODERATOR_ID

    def to_dict(self) -> dict[str, Any]:
        d = asdict(self)
        d["action"] = self.action.value
        return d


@dataclass
class QueueItem:
    """A comment awaiting review with its derived triage priority."""

    comment: Comment
    priority: Priority
    risk_score: float = 0.0
    recent_logs: list[ModerationLog] = field(default_factory=list)


@dataclass
class BulkResult:
    """Outcome counts of a bulk moderation action."""

    successful: int = 0
    failed: int = 0
    total: int = 0
    errors: dict[str, str] = field(default_factory=dict)


@dataclass
class ModerationStats:
    """Aggregate counts for the moderation dashboard."""

    total: int = 0
    pending: int = 0
    hidden: int = 0
    visible: int = 0
    recent_actions: int = 0
    percent_moderated: str = "0"
