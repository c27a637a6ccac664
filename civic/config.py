"""Environment-driven configuration for the civic platform.

Every setting has a safe default so that the moderation core runs in
degraded, pattern-only mode when no classifier credential is present.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

CLASSIFIER_CHOICES = ("auto", "openai", "anthropic", "none")

DEFAULT_CLASSIFIER_TIMEOUT = 10.0


def _float_env(name: str, default: float) -> float:
    raw = os.environ.get(name, "")
    if not raw:
        return default
    try:
        return float(raw)
    except ValueError:
        return default


@dataclass
class CivicConfig:
    """Resolved runtime configuration."""

    data_dir: Path
    classifier: str = "auto"
    openai_api_key: str = ""
    anthropic_api_key: str = ""
    classifier_timeout: float = DEFAULT_CLASSIFIER_TIMEOUT
    blocklist_file: str = ""
    log_level: str = "INFO"

    def __post_init__(self) -> None:
        self.data_dir = Path(self.data_dir)
        if self.classifier not in CLASSIFIER_CHOICES:
            raise ValueError(
                f"Unknown classifier '{self.classifier}'. "
                f"Expected one of: {', '.join(CLASSIFIER_CHOICES)}"
            )

    @property
    def logs_dir(self) -> Path:
        return self.data_dir / "moderation_logs"


def load_config(data_dir: str | Path | None = None) -> CivicConfig:
    """Build a :class:`CivicConfig` from the process environment.

    An explicit *data_dir* takes precedence over ``CIVIC_DATA_DIR``.
    """
    base = data_dir or os.environ.get("CIVIC_DATA_DIR", "") or Path.home() / ".civic"
    return CivicConfig(
        data_dir=Path(base),
        classifier=os.environ.get("CIVIC_CLASSIFIER", "auto").strip().lower() or "auto",
        openai_api_key=os.environ.get("OPENAI_API_KEY", ""),
        anthropic_api_key=os.environ.get("ANTHROPIC_API_KEY", ""),
        classifier_timeout=_float_env("CIVIC_CLASSIFIER_TIMEOUT", DEFAULT_CLASSIFIER_TIMEOUT),
        blocklist_file=os.environ.get("CIVIC_BLOCKLIST_FILE", ""),
        log_level=os.environ.get("CIVIC_LOG_LEVEL", "INFO").upper(),
    )
