"""Risk classifier adapters over external content-classification services.

Every adapter exposes ``classify(text) -> ClassificationResult``.  Failures of
the underlying service (timeouts, transport errors, malformed payloads) are
logged and degrade to a zero-risk, not-flagged result; they never propagate
to the caller, so a classifier outage can never block comment submission.
"""

from __future__ import annotations

import json
import logging
import re
from typing import Any, Mapping, Optional

import httpx

from civic.config import CivicConfig
from civic.llm.client import LLMClient
from civic.llm.prompts import RISK_CLASSIFICATION_PROMPT, RISK_CLASSIFIER_SYSTEM_PROMPT
from civic.moderation.models import RISK_CATEGORIES, ClassificationResult, RiskFlags

logger = logging.getLogger(__name__)

# Source categories (OpenAI moderation names and our own names) that set
# each risk flag.
CATEGORY_SOURCES: dict[str, tuple[str, ...]] = {
    "harassment": ("harassment", "harassment/threatening"),
    "threat": ("threat", "harassment/threatening", "violence/graphic"),
    "hate": ("hate", "hate/threatening"),
    "self_harm": ("self_harm", "self-harm", "self-harm/intent", "self-harm/instructions"),
    "sexual": ("sexual", "sexual/minors"),
    "violence": ("violence", "violence/graphic"),
}

LLM_FLAG_THRESHOLD = 0.5


def build_classification(
    category_flags: Mapping[str, bool],
    category_scores: Mapping[str, float],
    flagged: Optional[bool] = None,
) -> ClassificationResult:
    """Fold raw per-category output into a :class:`ClassificationResult`.

    The aggregate score is the maximum over every category score, so the
    worst single category dominates.
    """
    flags = RiskFlags()
    for name, sources in CATEGORY_SOURCES.items():
        setattr(flags, name, any(bool(category_flags.get(s)) for s in sources))
    scores = [float(v) for v in category_scores.values() if v is not None]
    flags.score = max(scores) if scores else 0.0
    categories = [name for name, hit in category_flags.items() if hit]
    if flagged is None:
        flagged = bool(categories)
    return ClassificationResult(flagged=bool(flagged), categories=categories, risk_flags=flags)


class RiskClassifier:
    """Base adapter. Subclasses implement :meth:`_classify`."""

    name = "base"

    @property
    def configured(self) -> bool:
        return True

    def classify(self, text: str) -> ClassificationResult:
        """Score *text*; any back-end failure yields a zero-risk result."""
        if not self.configured:
            return ClassificationResult()
        try:
            return self._classify(text)
        except Exception as exc:
            logger.warning(
                "Risk classifier '%s' failed, continuing with pattern-only moderation: %s",
                self.name,
                exc,
            )
            return ClassificationResult()

    def _classify(self, text: str) -> ClassificationResult:
        raise NotImplementedError


class NullRiskClassifier(RiskClassifier):
    """Used when no classification service is configured."""

    name = "none"

    @property
    def configured(self) -> bool:
        return False

    def _classify(self, text: str) -> ClassificationResult:
        return ClassificationResult()


class OpenAIModerationClassifier(RiskClassifier):
    """Adapter over the OpenAI moderation endpoint, called with ``httpx``."""

    name = "openai"

    def __init__(
        self,
        api_key: str,
        model: str = "omni-moderation-latest",
        base_url: str = "https://api.openai.com/v1",
        timeout: float = 10.0,
        transport: Optional[httpx.BaseTransport] = None,
    ) -> None:
        self.api_key = api_key
        self.model = model
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._transport = transport

    @property
    def configured(self) -> bool:
        return bool(self.api_key)

    def _classify(self, text: str) -> ClassificationResult:
        with httpx.Client(timeout=self.timeout, transport=self._transport) as client:
            response = client.post(
                f"{self.base_url}/moderations",
                headers={"Authorization": f"Bearer {self.api_key}"},
                json={"model": self.model, "input": text},
            )
            response.raise_for_status()
            payload = response.json()

        results = payload.get("results") or []
        if not results:
            raise ValueError("moderation response contained no results")
        result = results[0]
        return build_classification(
            category_flags=result.get("categories") or {},
            category_scores=result.get("category_scores") or {},
            flagged=result.get("flagged"),
        )


_JSON_OBJECT_RE = re.compile(r"\{.*\}", re.DOTALL)


class LLMRiskClassifier(RiskClassifier):
    """Adapter that asks Claude for per-category risk scores."""

    name = "anthropic"

    def __init__(self, llm: LLMClient, threshold: float = LLM_FLAG_THRESHOLD) -> None:
        self.llm = llm
        self.threshold = threshold

    @property
    def configured(self) -> bool:
        return self.llm.configured

    @staticmethod
    def _parse_scores(content: str) -> dict[str, float]:
        match = _JSON_OBJECT_RE.search(content or "")
        if not match:
            raise ValueError("classifier reply contained no JSON object")
        data: Any = json.loads(match.group(0))
        scores = data.get("category_scores", data) if isinstance(data, dict) else None
        if not isinstance(scores, dict):
            raise ValueError("classifier reply has no category scores")
        parsed: dict[str, float] = {}
        for category in RISK_CATEGORIES:
            value = float(scores.get(category, 0.0) or 0.0)
            parsed[category] = min(max(value, 0.0), 1.0)
        return parsed

    def _classify(self, text: str) -> ClassificationResult:
        response = self.llm.complete(
            RISK_CLASSIFICATION_PROMPT.format(text=text),
            system_prompt=RISK_CLASSIFIER_SYSTEM_PROMPT,
        )
        scores = self._parse_scores(response.content)
        flags = {c: s >= self.threshold for c, s in scores.items()}
        return build_classification(flags, scores)


def build_classifier(config: CivicConfig) -> RiskClassifier:
    """Select a classifier back-end from configuration.

    ``auto`` prefers OpenAI, then Anthropic, and falls back to the null
    classifier when neither credential is set.
    """
    choice = config.classifier
    if choice == "none":
        return NullRiskClassifier()
    if choice in ("auto", "openai") and config.openai_api_key:
        return OpenAIModerationClassifier(config.openai_api_key, timeout=config.classifier_timeout)
    if choice in ("auto", "anthropic") and config.anthropic_api_key:
        return LLMRiskClassifier(
            LLMClient(api_key=config.anthropic_api_key, timeout=config.classifier_timeout)
        )
    if choice != "auto":
        logger.warning("Classifier '%s' selected but no credential is set; running pattern-only", choice)
    return NullRiskClassifier()
