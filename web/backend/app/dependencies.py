"""Shared store singletons for the routers.

Tests swap these out with ``app.dependency_overrides``.
"""

from __future__ import annotations

from civic.config import load_config
from civic.moderation.queue import ModerationQueue
from civic.moderation.settings_store import SettingsStore
from civic.services import build_queue

_queue: ModerationQueue | None = None
_settings_store: SettingsStore | None = None


def get_settings_store() -> SettingsStore:
    global _settings_store
    if _settings_store is None:
        _settings_store = SettingsStore(load_config().data_dir)
    return _settings_store


def get_queue() -> ModerationQueue:
    global _queue
    if _queue is None:
        _queue = build_queue(load_config())
    return _queue
