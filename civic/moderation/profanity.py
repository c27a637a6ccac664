"""Blocklist-based profanity filter.

Matching is case-insensitive and bounded by word edges.  ``(?<!\\w)`` and
``(?!\\w)`` are used instead of ``\\b`` so that blocklist entries which start
or end with punctuation still match as whole tokens.
"""

from __future__ import annotations

import logging
import re
from pathlib import Path
from typing import Iterable, Optional

import yaml

from civic.moderation.models import ProfanityResult

logger = logging.getLogger(__name__)

REMOVAL_TOKEN = "[REMOVED]"

# Curated default list; deployments replace it via a YAML blocklist file.
DEFAULT_BLOCKLIST: frozenset[str] = frozenset(
    {
        "fuck", "fucking", "motherfucker", "shit", "bullshit", "asshole",
        "bitch", "bastard", "cunt", "dickhead", "prick", "twat",
        "idiot", "moron", "scumbag", "jackass", "dumbass",
    }
)

_MAX_TERM_LENGTH = 100


def load_blocklist(path: str | Path) -> list[str]:
    """Load blocklist terms from a YAML file.

    Accepts either a top-level sequence or a mapping with a ``blocklist`` key.
    """
    with open(path, encoding="utf-8") as f:
        data = yaml.safe_load(f) or []
    if isinstance(data, dict):
        data = data.get("blocklist", []) or []
    if not isinstance(data, list):
        raise ValueError(f"Blocklist file {path} must contain a list of terms")
    return [str(term) for term in data]


class ProfanityFilter:
    """Replaces blocklisted terms with ``[REMOVED]``."""

    def __init__(self, blocklist: Optional[Iterable[str]] = None) -> None:
        terms = DEFAULT_BLOCKLIST if blocklist is None else blocklist
        self._terms = sorted(
            {t.strip().lower() for t in terms if t and t.strip() and len(t.strip()) <= _MAX_TERM_LENGTH},
            key=len,
            reverse=True,
        )
        self._pattern = self._compile(self._terms)

    @staticmethod
    def _compile(terms: list[str]) -> Optional[re.Pattern[str]]:
        if not terms:
            return None
        # Longest first: multi-word phrases win over their parts.
        alternation = "|".join(re.escape(t) for t in terms)
        return re.compile(rf"(?<!\w)(?:{alternation})(?!\w)", re.IGNORECASE)

    @property
    def terms(self) -> list[str]:
        return list(self._terms)

    @classmethod
    def from_file(cls, path: str | Path) -> "ProfanityFilter":
        terms = load_blocklist(path)
        logger.info("Loaded %d blocklist terms from %s", len(terms), path)
        return cls(terms)

    def filter(self, text: str) -> ProfanityResult:
        """Mask every blocklisted term in *text*."""
        if not text or self._pattern is None:
            return ProfanityResult(detected=False, cleaned_text=text or "")
        cleaned, count = self._pattern.subn(REMOVAL_TOKEN, text)
        return ProfanityResult(detected=count > 0, cleaned_text=cleaned)
