"""Comment domain models."""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional

RISK_CATEGORIES = ("harassment", "threat", "hate", "self_harm", "sexual", "violence")


class Stance(str, Enum):
    """Position declared by the submitter on an agenda item."""

    FOR = "FOR"
    AGAINST = "AGAINST"
    CONCERNED = "CONCERNED"
    NEUTRAL = "NEUTRAL"


class Visibility(str, Enum):
    """Publication state of a comment."""

    PENDING_VISIBLE = "PENDING_VISIBLE"
    VISIBLE = "VISIBLE"
    HIDDEN = "HIDDEN"
    WITHDRAWN = "WITHDRAWN"


@dataclass
class RiskFlags:
    """Per-category risk booleans plus the aggregate (worst-case) score."""

    harassment: bool = False
    threat: bool = False
    hate: bool = False
    self_harm: bool = False
    sexual: bool = False
    violence: bool = False
    score: float = 0.0

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, d: Optional[dict[str, Any]]) -> "RiskFlags":
        if not d:
            return cls()
        # Snapshots written by other clients may use camelCase.
        if "selfHarm" in d and "self_harm" not in d:
            d = {**d, "self_harm": d["selfHarm"]}
        flags = cls(**{k: d[k] for k in cls.__dataclass_fields__ if k in d})
        flags.score = float(flags.score or 0.0)
        return flags

    @property
    def active_categories(self) -> list[str]:
        return [c for c in RISK_CATEGORIES if getattr(self, c)]


def utcnow() -> str:
    return datetime.now(timezone.utc).isoformat()


@dataclass
class Comment:
    """A resident's comment on one or more agenda items of a meeting.

    ``raw_body`` is the text exactly as submitted and is only ever shown to
    privileged roles; ``public_body`` is the redacted text displayed publicly.
    """

    id: str
    user_id: str
    meeting_id: str
    raw_body: str
    public_body: str = ""
    stance: Stance = Stance.NEUTRAL
    visibility: Visibility = Visibility.PENDING_VISIBLE
    pii_detected: bool = False
    profanity_detected: bool = False
    risk_flags: Optional[RiskFlags] = None
    moderation_notes: str = ""
    agenda_item_ids: list[str] = field(default_factory=list)
    submitted_at: str = ""
    updated_at: str = ""
    visible_at: str = ""
    withdrawn_at: str = ""
    version: int = 1

    def __post_init__(self) -> None:
        if isinstance(self.stance, str):
            self.stance = Stance(self.stance)
        if isinstance(self.visibility, str):
            self.visibility = Visibility(self.visibility)
        if isinstance(self.risk_flags, dict):
            self.risk_flags = RiskFlags.from_dict(self.risk_flags)
        if not self.public_body:
            self.public_body = self.raw_body
        if not self.submitted_at:
            self.submitted_at = utcnow()
        if not self.updated_at:
            self.updated_at = self.submitted_at

    @property
    def is_withdrawn(self) -> bool:
        return bool(self.withdrawn_at) or self.visibility == Visibility.WITHDRAWN

    @property
    def risk_score(self) -> float:
        return self.risk_flags.score if self.risk_flags else 0.0

    def to_dict(self) -> dict[str, Any]:
        d = asdict(self)
        d["stance"] = self.stance.value
        d["visibility"] = self.visibility.value
        return d

    def public_view(self) -> dict[str, Any]:
        """Serialized form for non-privileged readers (no raw body, no flags)."""
        d = self.to_dict()
        for key in ("raw_body", "risk_flags", "moderation_notes", "pii_detected", "profanity_detected"):
            d.pop(key, None)
        return d

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> "Comment":
        return cls(**{k: v for k, v in d.items() if k in cls.__dataclass_fields__})
