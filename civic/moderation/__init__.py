"""Comment moderation pipeline.

- PII detection and redaction
- Profanity filtering against a configurable blocklist
- Risk classification through a pluggable external service
- A decision engine that derives a suggested visibility
- A review queue with priority ordering and an append-only audit log
"""

from civic.moderation.classifier import (
    LLMRiskClassifier,
    NullRiskClassifier,
    OpenAIModerationClassifier,
    RiskClassifier,
    build_classifier,
)
from civic.moderation.engine import ModerationEngine, moderation_summary
from civic.moderation.models import (
    SYSTEM_MODERATOR_ID,
    Decision,
    ModerationAction,
    ModerationResult,
    ModerationSettings,
    Priority,
)
from civic.moderation.pii import PIIDetector
from civic.moderation.profanity import ProfanityFilter

__all__ = [
    "SYSTEM_MODERATOR_ID",
    "Decision",
    "LLMRiskClassifier",
    "ModerationAction",
    "ModerationEngine",
    "ModerationResult",
    "ModerationSettings",
    "NullRiskClassifier",
    "OpenAIModerationClassifier",
    "PIIDetector",
    "Priority",
    "ProfanityFilter",
    "RiskClassifier",
    "build_classifier",
    "moderation_summary",
]
