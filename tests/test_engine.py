"""Tests for the moderation decision engine."""

from civic.comments.models import RiskFlags, Visibility
from civic.moderation.engine import ModerationEngine, moderation_summary
from civic.moderation.models import ModerationSettings

from tests.helpers import StubClassifier


class ExplodingDetector:
    def detect(self, text):
        raise RuntimeError("detector crashed")


def test_pii_and_profanity_without_classifier():
    result = ModerationEngine().moderate("Call me at 555-123-4567, you idiot")

    assert result.processed
    assert result.public_body == "Call me at [REDACTED], you [REMOVED]"
    assert result.pii_detected
    assert result.profanity_detected
    assert result.suggested_visibility == Visibility.VISIBLE
    assert result.moderation_notes == [
        "PII detected and redacted: phone",
        "Profanity detected and filtered",
    ]


def test_profanity_inside_pii_is_not_flagged():
    result = ModerationEngine().moderate("Contact idiot@example.com")
    assert result.public_body == "Contact [REDACTED]"
    assert result.pii_detected
    assert not result.profanity_detected


def test_high_score_is_hidden():
    result = ModerationEngine(classifier=StubClassifier(0.75)).moderate("some text")
    assert result.suggested_visibility == Visibility.HIDDEN
    assert result.moderation_notes == [
        "AI flagged content: harassment",
        "Auto-hidden due to high risk score",
    ]


def test_medium_score_is_held_for_review():
    result = ModerationEngine(classifier=StubClassifier(0.5)).moderate("some text")
    assert result.suggested_visibility == Visibility.PENDING_VISIBLE
    assert result.moderation_notes[-1] == "Flagged for manual review"


def test_low_score_unflagged_stays_visible():
    result = ModerationEngine(classifier=StubClassifier(0.1, flagged=False)).moderate("some text")
    assert result.suggested_visibility == Visibility.VISIBLE
    assert result.moderation_notes == []
    assert result.risk_flags.score == 0.1


def test_flagged_below_review_threshold_stays_visible():
    result = ModerationEngine(classifier=StubClassifier(0.3)).moderate("some text")
    assert result.suggested_visibility == Visibility.VISIBLE
    assert result.moderation_notes == ["AI flagged content: harassment"]


def test_threshold_boundaries_are_exclusive():
    assert ModerationEngine(classifier=StubClassifier(0.7)).moderate("x").suggested_visibility == Visibility.PENDING_VISIBLE
    assert ModerationEngine(classifier=StubClassifier(0.4)).moderate("x").suggested_visibility == Visibility.VISIBLE


def test_unflagged_high_score_is_not_acted_on():
    result = ModerationEngine(classifier=StubClassifier(0.9, flagged=False)).moderate("x")
    assert result.suggested_visibility == Visibility.VISIBLE


def test_classifier_sees_cleaned_text():
    stub = StubClassifier(0.0, flagged=False)
    ModerationEngine(classifier=stub).moderate("Email bob@example.com, you moron")
    assert stub.seen == ["Email [REDACTED], you [REMOVED]"]


def test_custom_thresholds():
    settings = ModerationSettings(risk_threshold=0.9, review_threshold=0.2)
    engine = ModerationEngine(classifier=StubClassifier(0.75), settings=settings)
    assert engine.moderate("x").suggested_visibility == Visibility.PENDING_VISIBLE


def test_auto_moderate_off_skips_classifier():
    stub = StubClassifier(0.99)
    engine = ModerationEngine(classifier=stub, settings=ModerationSettings(auto_moderate=False))
    result = engine.moderate("x")

    assert not engine.classifier_enabled
    assert stub.seen == []
    assert result.suggested_visibility == Visibility.VISIBLE


def test_unexpected_error_returns_partial_result():
    engine = ModerationEngine(pii_detector=ExplodingDetector())
    result = engine.moderate("hello there")

    assert not result.processed
    assert result.public_body == "hello there"
    assert result.moderation_notes == ["Error during moderation processing"]


def test_moderate_batch_preserves_order():
    results = ModerationEngine().moderate_batch(["you idiot", "fine comment", "call 555-123-4567"])
    assert [r.profanity_detected for r in results] == [True, False, False]
    assert [r.pii_detected for r in results] == [False, False, True]


def test_should_auto_hide():
    engine = ModerationEngine()
    assert engine.should_auto_hide(RiskFlags(score=0.8))
    assert engine.should_auto_hide(RiskFlags(threat=True, score=0.1))
    assert engine.should_auto_hide(RiskFlags(self_harm=True))
    assert not engine.should_auto_hide(RiskFlags(harassment=True, score=0.5))


def test_moderation_summary():
    engine = ModerationEngine(classifier=StubClassifier(0.8, categories=("hate", "violence")))
    result = engine.moderate("Call 555-123-4567")
    assert moderation_summary(result) == "Issues detected: PII, Hate speech, Violence"
    assert moderation_summary(ModerationEngine().moderate("nice")) == "No issues detected"
