"""Wiring of stores, classifier and engine from configuration."""

from __future__ import annotations

from typing import Optional

from civic.comments.store import CommentStore
from civic.config import CivicConfig, load_config
from civic.moderation.audit_log import ModerationLogStore
from civic.moderation.classifier import build_classifier
from civic.moderation.engine import ModerationEngine
from civic.moderation.profanity import ProfanityFilter
from civic.moderation.queue import ModerationQueue
from civic.moderation.settings_store import SettingsStore


def build_engine(config: CivicConfig, settings_store: Optional[SettingsStore] = None) -> ModerationEngine:
    settings_store = settings_store or SettingsStore(config.data_dir)
    profanity = (
        ProfanityFilter.from_file(config.blocklist_file) if config.blocklist_file else ProfanityFilter()
    )
    return ModerationEngine(
        classifier=build_classifier(config),
        profanity_filter=profanity,
        settings=settings_store.get(),
    )


def build_queue(config: Optional[CivicConfig] = None) -> ModerationQueue:
    """Create a :class:`ModerationQueue` backed by the configured data dir."""
    config = config or load_config()
    return ModerationQueue(
        comments=CommentStore(config.data_dir),
        logs=ModerationLogStore(config.logs_dir),
        engine=build_engine(config),
    )
