"""Tests for PII detection and redaction."""

from civic.moderation.pii import REDACTION_TOKEN, PIIDetector, _merge_spans


def test_phone_number_is_redacted():
    result = PIIDetector().detect("Call me at 555-123-4567 after the meeting")

    assert result.detected
    assert result.redacted_text == "Call me at [REDACTED] after the meeting"
    assert result.types == ["phone"]


def test_phone_formats():
    detector = PIIDetector()
    for text in ("(555) 123-4567", "555.123.4567", "+1 555 123 4567", "5551234567"):
        result = detector.detect(f"number: {text}")
        assert result.detected, text
        assert result.redacted_text == f"number: {REDACTION_TOKEN}", text


def test_short_digit_runs_are_not_phones():
    result = PIIDetector().detect("Item 12 passed 5 to 2 in 2024")
    assert not result.detected
    assert result.redacted_text == "Item 12 passed 5 to 2 in 2024"


def test_lowercase_street_words_are_not_addresses():
    for text in (
        "Agenda item 4 is the right way forward",
        "I counted 30 cars on the drive home",
        "Only 3 people live on our court now",
    ):
        result = PIIDetector().detect(text)
        assert not result.detected, text
        assert result.redacted_text == text


def test_two_word_street_name_is_redacted():
    result = PIIDetector().detect("Noise at 1200 North Main St. every night")
    assert result.redacted_text == "Noise at [REDACTED] every night"
    assert result.types == ["address"]


def test_email_is_redacted():
    result = PIIDetector().detect("Write to jane.doe@example.org please")
    assert result.redacted_text == "Write to [REDACTED] please"
    assert result.types == ["email"]


def test_ssn_is_redacted():
    result = PIIDetector().detect("My SSN is 123-45-6789.")
    assert result.redacted_text == "My SSN is [REDACTED]."
    assert "ssn" in result.types


def test_credit_card_is_redacted():
    result = PIIDetector().detect("Card 4111-1111-1111-1111 was charged")
    assert result.detected
    assert "credit_card" in result.types
    assert "4111" not in result.redacted_text


def test_street_address_is_redacted():
    result = PIIDetector().detect("I live at 42 Elm Street and the noise is constant")
    assert result.redacted_text == "I live at [REDACTED] and the noise is constant"
    assert result.types == ["address"]


def test_drivers_license_is_redacted():
    result = PIIDetector().detect("License D1234567 on file")
    assert result.redacted_text == "License [REDACTED] on file"
    assert result.types == ["drivers_license"]


def test_overlapping_matches_collapse_to_one_token():
    # The phone pattern also fires inside the email address.
    result = PIIDetector().detect("Reach me: jane5551234567@example.com")

    assert result.redacted_text == "Reach me: [REDACTED]"
    assert "phone" in result.types
    assert "email" in result.types


def test_multiple_matches_all_redacted():
    result = PIIDetector().detect("Call 555-123-4567 or mail bob@example.com")
    assert result.redacted_text == "Call [REDACTED] or mail [REDACTED]"
    assert result.types == ["phone", "email"]


def test_clean_text_unchanged():
    text = "I support the new bike lanes on the east side."
    result = PIIDetector().detect(text)
    assert not result.detected
    assert result.redacted_text == text
    assert result.types == []


def test_empty_text():
    result = PIIDetector().detect("")
    assert not result.detected
    assert result.redacted_text == ""


def test_redaction_is_idempotent():
    detector = PIIDetector()
    once = detector.detect("Call 555-123-4567 or mail bob@example.com").redacted_text
    twice = detector.detect(once)
    assert not twice.detected
    assert twice.redacted_text == once


def test_merge_spans():
    assert _merge_spans([(5, 10), (0, 3), (8, 12), (12, 14)]) == [(0, 3), (5, 14)]
    assert _merge_spans([]) == []
