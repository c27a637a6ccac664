"""Detection and redaction of personal data in comment text.

Every pattern is matched against the *original* text.  The resulting spans
are merged and the redacted string is produced in a single pass, so the
result never depends on the order in which patterns are applied and a
pattern never re-scans text that another pattern has already replaced.
"""

from __future__ import annotations

import re

from civic.moderation.models import PIIResult

REDACTION_TOKEN = "[REDACTED]"

# ---------------------------------------------------------------------------
# Patterns (order only affects the order of reported types)
# ---------------------------------------------------------------------------

_STREET_SUFFIXES = (
    "Street|St|Avenue|Ave|Road|Rd|Boulevard|Blvd|Lane|Ln|Drive|Dr|"
    "Court|Ct|Circle|Cir|Plaza|Pl|Way|Parkway|Pkwy|Terrace|Ter|Highway|Hwy"
)

PII_PATTERNS: list[tuple[str, re.Pattern[str]]] = [
    (
        "phone",
        re.compile(r"(?<![\d+])(?:\+?1[-.\s]?)?(?:\(\d{3}\)|\d{3})[-.\s]?\d{3}[-.\s]?\d{4}(?!\d)"),
    ),
    ("email", re.compile(r"[A-Za-z0-9._%+-]+@[A-Za-z0-9.-]+\.[A-Za-z]{2,}")),
    ("ssn", re.compile(r"\b\d{3}-\d{2}-\d{4}\b|\b\d{9}\b")),
    ("credit_card", re.compile(r"\b\d{4}[-\s]?\d{4}[-\s]?\d{4}[-\s]?\d{4}\b")),
    (
        "address",
        re.compile(
            rf"\b\d+\s+(?:[A-Z][A-Za-z]*\s+)?[A-Za-z]+\s+(?:{_STREET_SUFFIXES})\b\.?"
        ),
    ),
    ("drivers_license", re.compile(r"\b[A-Z]\d{7,8}\b")),
]


def _merge_spans(spans: list[tuple[int, int]]) -> list[tuple[int, int]]:
    """Merge overlapping or touching ``(start, end)`` spans."""
    merged: list[tuple[int, int]] = []
    for start, end in sorted(spans):
        if merged and start <= merged[-1][1]:
            merged[-1] = (merged[-1][0], max(merged[-1][1], end))
        else:
            merged.append((start, end))
    return merged


class PIIDetector:
    """Finds regulated personal data and replaces it with ``[REDACTED]``."""

    def __init__(self, patterns: list[tuple[str, re.Pattern[str]]] | None = None) -> None:
        self.patterns = patterns if patterns is not None else PII_PATTERNS

    def find_spans(self, text: str) -> tuple[list[tuple[int, int]], list[str]]:
        """Return merged match spans and the pattern categories that fired."""
        spans: list[tuple[int, int]] = []
        types: list[str] = []
        for label, pattern in self.patterns:
            hits = [m.span() for m in pattern.finditer(text) if m.end() > m.start()]
            if hits:
                types.append(label)
                spans.extend(hits)
        return _merge_spans(spans), types

    def detect(self, text: str) -> PIIResult:
        """Redact every PII match in *text*.

        Never raises for ordinary input; text without matches is returned
        unchanged with ``detected=False``.
        """
        if not text:
            return PIIResult(redacted_text=text or "")

        spans, types = self.find_spans(text)
        if not spans:
            return PIIResult(redacted_text=text)

        parts: list[str] = []
        cursor = 0
        for start, end in spans:
            parts.append(text[cursor:start])
            parts.append(REDACTION_TOKEN)
            cursor = end
        parts.append(text[cursor:])
        return PIIResult(redacted_text="".join(parts), detected=True, types=types)
