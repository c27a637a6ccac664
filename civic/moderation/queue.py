"""Moderation queue manager.

Persists engine verdicts onto comments, surfaces comments that need human
review in priority order, and applies moderator decisions.  Every decision
updates the comment and appends its audit entry inside a single store
transaction, so one is never written without the other.
"""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from datetime import datetime, timedelta, timezone
from typing import Iterable, Optional

from civic.comments.models import Comment, Stance, Visibility, utcnow
from civic.comments.store import (
    CommentStore,
    CommentTransaction,
    CommentWithdrawnError,
    ConcurrentModificationError,
)
from civic.moderation.audit_log import ModerationLogStore
from civic.moderation.engine import ModerationEngine
from civic.moderation.models import (
    SYSTEM_MODERATOR_ID,
    BulkResult,
    Decision,
    ModerationAction,
    ModerationLog,
    ModerationResult,
    ModerationStats,
    Priority,
    QueueItem,
)

logger = logging.getLogger(__name__)

QUEUE_VISIBILITIES = (Visibility.PENDING_VISIBLE, Visibility.HIDDEN)

DEFAULT_APPROVE_REASON = "Comment approved after review"
DEFAULT_BULK_REJECT_REASON = "Bulk rejection"

RECENT_LOGS_PER_ITEM = 5


def compose_visibility(initial: Visibility, suggested: Visibility) -> Visibility:
    """Combine the caller's initial visibility with the engine's suggestion.

    A ``VISIBLE`` suggestion means "no objection" and keeps the initial
    state; any other suggestion overrides it.  Withdrawn stays withdrawn.
    """
    if initial == Visibility.WITHDRAWN or suggested == Visibility.VISIBLE:
        return initial
    return suggested


def compute_priority(
    comment: Comment,
    high_threshold: float = 0.7,
    medium_threshold: float = 0.4,
) -> Priority:
    """Derive triage priority from risk score, visibility and profanity."""
    score = comment.risk_score
    if score > high_threshold or comment.visibility == Visibility.HIDDEN:
        return Priority.high
    if score > medium_threshold or comment.profanity_detected:
        return Priority.medium
    return Priority.low


class ModerationQueue:
    """Moderation workflow over a comment store and an audit log store."""

    def __init__(
        self,
        comments: CommentStore,
        logs: ModerationLogStore,
        engine: Optional[ModerationEngine] = None,
        max_workers: int = 8,
    ) -> None:
        self.comments = comments
        self.logs = logs
        self.engine = engine or ModerationEngine()
        self.max_workers = max_workers

    # ------------------------------------------------------------------
    # Automated moderation
    # ------------------------------------------------------------------

    def submit(
        self,
        user_id: str,
        meeting_id: str,
        body: str,
        stance: Stance | str = Stance.NEUTRAL,
        initial_visibility: Visibility | str = Visibility.PENDING_VISIBLE,
        agenda_item_ids: Optional[list[str]] = None,
    ) -> tuple[Comment, ModerationResult]:
        """Save a new comment, then moderate it.

        The comment is durably stored before moderation runs, so a
        moderation failure never loses a submission.
        """
        comment = self.comments.create(
            user_id=user_id,
            meeting_id=meeting_id,
            body=body,
            stance=stance,
            visibility=initial_visibility,
            agenda_item_ids=agenda_item_ids,
        )
        result = self.process_comment(comment.id)
        return self.comments.require(comment.id), result

    def process_comment(self, comment_id: str) -> ModerationResult:
        """Run the engine on a stored comment and persist its verdict."""
        raw_body = self.comments.require(comment_id).raw_body
        result = self.engine.moderate(raw_body)

        with self.comments.transaction() as tx:
            comment = tx.get(comment_id)
            comment.public_body = result.public_body
            comment.pii_detected = result.pii_detected
            comment.profanity_detected = result.profanity_detected
            comment.risk_flags = result.risk_flags
            comment.moderation_notes = result.notes_text
            if not comment.is_withdrawn:
                comment.visibility = compose_visibility(comment.visibility, result.suggested_visibility)
            tx.put(comment)

            if result.suggested_visibility != Visibility.VISIBLE and not comment.is_withdrawn:
                entry = self.logs.new_entry(
                    comment_id=comment_id,
                    moderator_id=SYSTEM_MODERATOR_ID,
                    action=ModerationAction.FLAG,
                    reason=f"Automated moderation: {', '.join(result.moderation_notes)}",
                    metadata=result.to_dict(),
                )
                tx.on_commit(lambda: self.logs.append(entry))

        if not result.processed:
            logger.warning("Moderation of comment %s incomplete; stored best-effort result", comment_id)
        return result

    # ------------------------------------------------------------------
    # Queue listing
    # ------------------------------------------------------------------

    def priority_for(self, comment: Comment) -> Priority:
        settings = self.engine.settings
        return compute_priority(comment, settings.risk_threshold, settings.review_threshold)

    def list_queue(
        self,
        limit: int = 20,
        offset: int = 0,
        priority: Optional[Priority | str] = None,
    ) -> list[QueueItem]:
        """Return comments awaiting review, highest priority first.

        Withdrawn comments are never listed.  Within a priority, newer
        comments come first.  Filtering and ordering happen before
        ``offset``/``limit`` are applied.
        """
        wanted = Priority(priority) if priority else None
        pending = self.comments.list_comments(visibilities=QUEUE_VISIBILITIES, include_withdrawn=False)

        items = [
            QueueItem(comment=c, priority=self.priority_for(c), risk_score=c.risk_score)
            for c in pending
        ]
        if wanted is not None:
            items = [item for item in items if item.priority == wanted]
        items.sort(key=lambda item: item.priority.rank)
        page = items[offset : offset + limit] if limit else items[offset:]

        if page:
            by_comment = self.logs.recent_by_comment(
                {item.comment.id for item in page}, RECENT_LOGS_PER_ITEM
            )
            for item in page:
                item.recent_logs = by_comment.get(item.comment.id, [])
        return page

    # ------------------------------------------------------------------
    # Moderator actions
    # ------------------------------------------------------------------

    @staticmethod
    def _load_for_action(
        tx: CommentTransaction, comment_id: str, expected_version: Optional[int]
    ) -> Comment:
        comment = tx.get(comment_id)
        if comment.is_withdrawn:
            raise CommentWithdrawnError(comment_id)
        if expected_version is not None and comment.version != expected_version:
            raise ConcurrentModificationError(comment_id, expected_version, comment.version)
        return comment

    def approve(
        self,
        comment_id: str,
        moderator_id: str,
        notes: Optional[str] = None,
        expected_version: Optional[int] = None,
    ) -> Comment:
        """Make a comment publicly visible and record a RESTORE entry."""
        with self.comments.transaction() as tx:
            comment = self._load_for_action(tx, comment_id, expected_version)
            comment.visibility = Visibility.VISIBLE
            comment.visible_at = utcnow()
            if notes:
                comment.moderation_notes = notes
            tx.put(comment)
            entry = self.logs.new_entry(
                comment_id=comment_id,
                moderator_id=moderator_id,
                action=ModerationAction.RESTORE,
                reason=notes or DEFAULT_APPROVE_REASON,
            )
            tx.on_commit(lambda: self.logs.append(entry))

        logger.info("Comment %s approved by %s", comment_id, moderator_id)
        return comment

    def reject(
        self,
        comment_id: str,
        moderator_id: str,
        reason: str,
        expected_version: Optional[int] = None,
    ) -> Comment:
        """Hide a comment and record a HIDE entry."""
        with self.comments.transaction() as tx:
            comment = self._load_for_action(tx, comment_id, expected_version)
            comment.visibility = Visibility.HIDDEN
            comment.moderation_notes = reason
            tx.put(comment)
            entry = self.logs.new_entry(
                comment_id=comment_id,
                moderator_id=moderator_id,
                action=ModerationAction.HIDE,
                reason=reason,
            )
            tx.on_commit(lambda: self.logs.append(entry))

        logger.info("Comment %s rejected by %s", comment_id, moderator_id)
        return comment

    def bulk_moderate(
        self,
        comment_ids: Iterable[str],
        moderator_id: str,
        action: Decision | str,
        reason: Optional[str] = None,
    ) -> BulkResult:
        """Apply one decision to many comments concurrently.

        Each comment is handled independently; failures are counted and
        never abort the rest of the batch.
        """
        decision = Decision(action)
        ids = list(comment_ids)
        result = BulkResult(total=len(ids))
        if not ids:
            return result

        def run(comment_id: str) -> Comment:
            if decision == Decision.approve:
                return self.approve(comment_id, moderator_id, reason)
            return self.reject(comment_id, moderator_id, reason or DEFAULT_BULK_REJECT_REASON)

        with ThreadPoolExecutor(max_workers=max(1, min(self.max_workers, len(ids)))) as pool:
            futures = [(comment_id, pool.submit(run, comment_id)) for comment_id in ids]
            for comment_id, future in futures:
                try:
                    future.result()
                    result.successful += 1
                except Exception as exc:
                    result.failed += 1
                    result.errors[comment_id] = str(exc)

        logger.info(
            "Bulk %s by %s: %d succeeded, %d failed",
            decision.value, moderator_id, result.successful, result.failed,
        )
        return result

    # ------------------------------------------------------------------
    # Reporting
    # ------------------------------------------------------------------

    def history(self, comment_id: str) -> list[ModerationLog]:
        """Audit trail for a comment, newest first."""
        self.comments.require(comment_id)
        return self.logs.get_logs_for_comment(comment_id)

    def stats(self) -> ModerationStats:
        counts = self.comments.count_by_visibility()
        total = sum(counts.values())
        pending = counts[Visibility.PENDING_VISIBLE]
        hidden = counts[Visibility.HIDDEN]
        since = (datetime.now(timezone.utc) - timedelta(hours=24)).isoformat()
        return ModerationStats(
            total=total,
            pending=pending,
            hidden=hidden,
            visible=counts[Visibility.VISIBLE],
            recent_actions=self.logs.count_since(since),
            percent_moderated=f"{(hidden + pending) / total * 100:.1f}" if total else "0",
        )
