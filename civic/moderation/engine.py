"""Moderation decision engine.

Runs the fixed pipeline over a raw comment:

1. PII detection and redaction on the raw text
2. profanity filtering on the redacted text
3. risk classification of the cleaned text (when a classifier is configured)
4. visibility decision from the aggregate risk score

The engine is pure: it returns a :class:`ModerationResult` and leaves
persistence and audit logging to the caller.
"""

from __future__ import annotations

import logging
from typing import Iterable, Optional

from civic.comments.models import RiskFlags, Visibility
from civic.moderation.classifier import NullRiskClassifier, RiskClassifier
from civic.moderation.models import ModerationResult, ModerationSettings
from civic.moderation.pii import PIIDetector
from civic.moderation.profanity import ProfanityFilter

logger = logging.getLogger(__name__)


class ModerationEngine:
    """Combines detector outputs into a single moderation verdict."""

    def __init__(
        self,
        classifier: Optional[RiskClassifier] = None,
        pii_detector: Optional[PIIDetector] = None,
        profanity_filter: Optional[ProfanityFilter] = None,
        settings: Optional[ModerationSettings] = None,
    ) -> None:
        self.classifier = classifier or NullRiskClassifier()
        self.pii_detector = pii_detector or PIIDetector()
        self.profanity_filter = profanity_filter or ProfanityFilter()
        self.settings = settings or ModerationSettings()

    @property
    def classifier_enabled(self) -> bool:
        return self.settings.auto_moderate and self.classifier.configured

    def moderate(self, raw_text: str) -> ModerationResult:
        """Moderate *raw_text*.

        Never raises.  If a step fails unexpectedly, the partial result is
        returned with ``processed=False`` and an error note appended; the
        comment itself stays saved regardless.
        """
        result = ModerationResult(public_body=raw_text)

        try:
            pii = self.pii_detector.detect(raw_text)
            result.public_body = pii.redacted_text
            result.pii_detected = pii.detected
            result.pii_types = list(pii.types)
            if pii.detected:
                result.moderation_notes.append(f"PII detected and redacted: {', '.join(pii.types)}")

            profanity = self.profanity_filter.filter(result.public_body)
            result.profanity_detected = profanity.detected
            if profanity.detected:
                result.public_body = profanity.cleaned_text
                result.moderation_notes.append("Profanity detected and filtered")

            if self.classifier_enabled:
                classification = self.classifier.classify(result.public_body)
                result.risk_flags = classification.risk_flags
                result.flagged_categories = list(classification.categories)
                if classification.flagged:
                    result.moderation_notes.append(
                        f"AI flagged content: {', '.join(classification.categories)}"
                    )
                    self._apply_visibility_rule(result)

            result.processed = True
        except Exception:
            logger.exception("Error in comment moderation")
            result.moderation_notes.append("Error during moderation processing")

        return result

    def _apply_visibility_rule(self, result: ModerationResult) -> None:
        score = result.risk_flags.score
        if score > self.settings.risk_threshold:
            result.suggested_visibility = Visibility.HIDDEN
            result.moderation_notes.append("Auto-hidden due to high risk score")
        elif score > self.settings.review_threshold:
            result.suggested_visibility = Visibility.PENDING_VISIBLE
            result.moderation_notes.append("Flagged for manual review")

    def moderate_batch(self, texts: Iterable[str]) -> list[ModerationResult]:
        """Moderate several texts, preserving input order."""
        return [self.moderate(text) for text in texts]

    def should_auto_hide(self, risk_flags: RiskFlags) -> bool:
        """True for high aggregate risk or any threat/violence/self-harm flag."""
        return (
            risk_flags.score > self.settings.risk_threshold
            or risk_flags.threat
            or risk_flags.violence
            or risk_flags.self_harm
        )


_SUMMARY_LABELS = (
    ("harassment", "Harassment"),
    ("threat", "Threats"),
    ("hate", "Hate speech"),
    ("self_harm", "Self-harm"),
    ("sexual", "Sexual content"),
    ("violence", "Violence"),
)


def moderation_summary(result: ModerationResult) -> str:
    """One-line, human-readable summary of the issues in *result*."""
    issues: list[str] = []
    if result.pii_detected:
        issues.append("PII")
    if result.profanity_detected:
        issues.append("Profanity")
    for attr, label in _SUMMARY_LABELS:
        if getattr(result.risk_flags, attr):
            issues.append(label)
    return f"Issues detected: {', '.join(issues)}" if issues else "No issues detected"
