"""Append-only moderation audit log.

Every moderation decision point (automatic flagging, approval, rejection)
writes one :class:`ModerationLog` line.  Entries are stored as
newline-delimited JSON in daily files under ``~/.civic/moderation_logs/`` and
are never rewritten or deleted.
"""

from __future__ import annotations

import csv
import io
import json
import logging
import sys
import threading
import uuid
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Iterable, Optional

from civic.moderation.models import ModerationAction, ModerationLog

logger = logging.getLogger(__name__)

_EXPORT_COLUMNS = ("id", "created_at", "comment_id", "moderator_id", "action", "reason")


class ModerationLogStore:
    """File-based JSONL store for moderation audit entries."""

    _write_lock = threading.Lock()

    def __init__(self, base_dir: Optional[str | Path] = None) -> None:
        self._base_dir = Path(base_dir) if base_dir else Path.home() / ".civic" / "moderation_logs"
        self._base_dir.mkdir(parents=True, exist_ok=True)

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _log_file_for_date(self, dt: datetime) -> Path:
        """Return the log file path for a given date."""
        return self._base_dir / f"{dt.strftime('%Y-%m-%d')}.jsonl"

    def _read_all_entries(self, comment_ids: Optional[set[str]] = None) -> list[ModerationLog]:
        """Read entries from all log files, oldest first.

        With *comment_ids*, lines for other comments are skipped before they
        are turned into entries.
        """
        entries: list[ModerationLog] = []
        for path in sorted(self._base_dir.glob("*.jsonl")):
            try:
                text = path.read_text(encoding="utf-8")
            except OSError:
                logger.warning("Skipping unreadable moderation log %s", path)
                continue
            for line in text.splitlines():
                if not line.strip():
                    continue
                try:
                    data = json.loads(line)
                    if comment_ids is not None and data.get("comment_id") not in comment_ids:
                        continue
                    entries.append(ModerationLog(**data))
                except (json.JSONDecodeError, TypeError, ValueError, AttributeError):
                    logger.warning("Skipping malformed moderation log line in %s", path)
        return entries

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def new_entry(
        self,
        comment_id: str,
        moderator_id: str,
        action: ModerationAction,
        reason: str = "",
        metadata: Optional[dict[str, Any]] = None,
    ) -> ModerationLog:
        """Build (but do not persist) a log entry stamped with the current time."""
        return ModerationLog(
            id=uuid.uuid4().hex,
            comment_id=comment_id,
            moderator_id=moderator_id,
            action=action,
            reason=reason,
            metadata=metadata or {},
            created_at=datetime.now(timezone.utc).isoformat(),
        )

    def append(self, entry: ModerationLog) -> ModerationLog:
        """Persist *entry* to today's log file and return it."""
        dt = datetime.fromisoformat(entry.created_at) if entry.created_at else datetime.now(timezone.utc)
        line = json.dumps(entry.to_dict(), default=str) + "\n"
        with self._write_lock:
            with self._log_file_for_date(dt).open("a", encoding="utf-8") as fh:
                fh.write(line)
        return entry

    def get_logs(
        self,
        *,
        comment_id: Optional[str] = None,
        comment_ids: Optional[Iterable[str]] = None,
        moderator_id: Optional[str] = None,
        action: Optional[ModerationAction | str] = None,
        since: Optional[str] = None,
        limit: int = 200,
    ) -> list[ModerationLog]:
        """Return filtered log entries, newest first."""
        wanted_ids = set(comment_ids) if comment_ids is not None else None
        if comment_id:
            wanted_ids = {comment_id} if wanted_ids is None else wanted_ids & {comment_id}
        entries = list(reversed(self._read_all_entries(wanted_ids)))

        if moderator_id:
            entries = [e for e in entries if e.moderator_id == moderator_id]
        if action:
            wanted = ModerationAction(action)
            entries = [e for e in entries if e.action == wanted]
        if since:
            entries = [e for e in entries if e.created_at >= since]

        entries.sort(key=lambda e: e.created_at, reverse=True)
        return entries[:limit]

    def get_logs_for_comment(self, comment_id: str, limit: int = 200) -> list[ModerationLog]:
        """Return the audit trail of a single comment, newest first."""
        return self.get_logs(comment_id=comment_id, limit=limit)

    def recent_by_comment(self, comment_ids: Iterable[str], per_comment: int) -> dict[str, list[ModerationLog]]:
        """Return up to *per_comment* newest entries for each of *comment_ids*."""
        grouped: dict[str, list[ModerationLog]] = {}
        for entry in self.get_logs(comment_ids=comment_ids, limit=sys.maxsize):
            bucket = grouped.setdefault(entry.comment_id, [])
            if len(bucket) < per_comment:
                bucket.append(entry)
        return grouped

    def count_since(self, since: str) -> int:
        """Number of entries created at or after the ISO timestamp *since*."""
        return sum(1 for e in self._read_all_entries() if e.created_at >= since)

    def export_logs(self, fmt: str = "json", **filters: Any) -> str:
        """Export log entries as ``json`` or ``csv``."""
        entries = self.get_logs(limit=filters.pop("limit", 10000), **filters)

        if fmt == "csv":
            buf = io.StringIO()
            writer = csv.writer(buf, lineterminator="\n")
            writer.writerow(_EXPORT_COLUMNS)
            for e in entries:
                d = e.to_dict()
                writer.writerow([d[col] for col in _EXPORT_COLUMNS])
            return buf.getvalue()
        if fmt != "json":
            raise ValueError(f"Unsupported export format: {fmt}")

        return json.dumps([e.to_dict() for e in entries], indent=2, default=str)
