"""Civic: public-comment platform core.

Residents submit comments on meeting agenda items; every comment passes
through the moderation pipeline (PII redaction, profanity filtering, risk
classification) before it is surfaced publicly or queued for human review.
"""

__version__ = "0.1.0"
