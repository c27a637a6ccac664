"""Shared test doubles."""

from civic.comments.models import RiskFlags
from civic.moderation.classifier import RiskClassifier
from civic.moderation.models import ClassificationResult


class StubClassifier(RiskClassifier):
    """Returns a fixed score and records what it was asked to classify."""

    name = "stub"

    def __init__(self, score: float = 0.0, flagged: bool = True, categories=("harassment",)):
        self.score = score
        self.flagged = flagged
        self.categories = list(categories) if flagged else []
        self.seen: list[str] = []

    def _classify(self, text):
        self.seen.append(text)
        flags = RiskFlags(score=self.score)
        for c in self.categories:
            setattr(flags, c, True)
        return ClassificationResult(flagged=self.flagged, categories=self.categories, risk_flags=flags)
