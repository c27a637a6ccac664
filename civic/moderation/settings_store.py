"""File-based JSON storage for moderation settings."""

from __future__ import annotations

import json
import logging
from dataclasses import asdict
from pathlib import Path
from typing import Any, Optional

from civic.moderation.models import ModerationSettings

logger = logging.getLogger(__name__)


class SettingsStore:
    """Persists :class:`ModerationSettings` in ``~/.civic/settings.json``."""

    def __init__(self, base_dir: Optional[str | Path] = None) -> None:
        self._base = Path(base_dir) if base_dir else Path.home() / ".civic"
        self._base.mkdir(parents=True, exist_ok=True)
        self._path = self._base / "settings.json"

    def get(self) -> ModerationSettings:
        """Return stored settings, or the defaults when none are saved."""
        if not self._path.exists():
            return ModerationSettings()
        try:
            data = json.loads(self._path.read_text(encoding="utf-8"))
        except (json.JSONDecodeError, OSError):
            logger.warning("Unreadable settings file %s; using defaults", self._path)
            return ModerationSettings()
        if not isinstance(data, dict):
            return ModerationSettings()
        return ModerationSettings(
            **{k: v for k, v in data.items() if k in ModerationSettings.__dataclass_fields__}
        )

    def save(self, settings: ModerationSettings) -> ModerationSettings:
        """Validate and persist *settings*. Raises ``ValueError`` if invalid."""
        settings.validate()
        self._path.write_text(json.dumps(asdict(settings), indent=2), encoding="utf-8")
        return settings

    def update(self, **changes: Any) -> ModerationSettings:
        """Apply partial changes on top of the stored settings."""
        current = asdict(self.get())
        unknown = set(changes) - set(current)
        if unknown:
            raise ValueError(f"Unknown settings: {', '.join(sorted(unknown))}")
        current.update({k: v for k, v in changes.items() if v is not None})
        return self.save(ModerationSettings(**current))
