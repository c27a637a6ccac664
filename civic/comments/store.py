"""File-based JSON storage for comments.

All comments live in a single ``comments.json`` document under the data
directory.  Writes go through :meth:`CommentStore.transaction`, which holds a
process-wide lock, writes the new document to a temp file, runs any staged
side effects (audit appends) and only then renames the temp file into place.
A failing side effect therefore leaves the stored comments untouched.
"""

from __future__ import annotations

import json
import logging
import os
import threading
import uuid
from contextlib import contextmanager
from pathlib import Path
from typing import Callable, Iterable, Iterator, Optional

from civic.comments.models import Comment, Stance, Visibility, utcnow

logger = logging.getLogger(__name__)


class CommentNotFoundError(LookupError):
    """Raised when a comment id does not resolve to a stored comment."""

    def __init__(self, comment_id: str) -> None:
        super().__init__(f"Comment not found: {comment_id}")
        self.comment_id = comment_id


class CommentWithdrawnError(RuntimeError):
    """Raised when moderation is attempted on a withdrawn comment."""

    def __init__(self, comment_id: str) -> None:
        super().__init__(f"Comment has been withdrawn: {comment_id}")
        self.comment_id = comment_id


class ConcurrentModificationError(RuntimeError):
    """Raised when an optimistic version check fails."""

    def __init__(self, comment_id: str, expected: int, actual: int) -> None:
        super().__init__(
            f"Comment {comment_id} was modified concurrently "
            f"(expected version {expected}, found {actual})"
        )
        self.comment_id = comment_id
        self.expected = expected
        self.actual = actual


class CommentTransaction:
    """Mutable view over the comment document for one transaction."""

    def __init__(self, comments: list[dict]) -> None:
        self._comments = comments
        self._index = {c["id"]: i for i, c in enumerate(comments)}
        self._on_commit: list[Callable[[], None]] = []

    def get(self, comment_id: str) -> Comment:
        idx = self._index.get(comment_id)
        if idx is None:
            raise CommentNotFoundError(comment_id)
        return Comment.from_dict(self._comments[idx])

    def put(self, comment: Comment) -> Comment:
        """Insert or replace *comment*, bumping its version on replace."""
        idx = self._index.get(comment.id)
        comment.updated_at = utcnow()
        if idx is None:
            self._index[comment.id] = len(self._comments)
            self._comments.append(comment.to_dict())
        else:
            comment.version = int(self._comments[idx].get("version", 1)) + 1
            self._comments[idx] = comment.to_dict()
        return comment

    def on_commit(self, fn: Callable[[], None]) -> None:
        """Stage a side effect that must succeed for the transaction to commit."""
        self._on_commit.append(fn)


class CommentStore:
    """File-based storage for comments.

    Storage path: ``~/.civic/`` with:
    - ``comments.json`` -- list of comment dicts in insertion order
    """

    _locks: dict[str, threading.RLock] = {}
    _locks_guard = threading.Lock()

    def __init__(self, base_dir: Optional[str | Path] = None) -> None:
        if base_dir is None:
            self._base = Path.home() / ".civic"
        else:
            self._base = Path(base_dir)
        self._base.mkdir(parents=True, exist_ok=True)
        self._comments_path = self._base / "comments.json"
        self._lock = self._lock_for(self._comments_path)

    @classmethod
    def _lock_for(cls, path: Path) -> threading.RLock:
        # One lock per file so that separate store instances over the same
        # directory still serialize their writes.
        key = str(path.resolve())
        with cls._locks_guard:
            if key not in cls._locks:
                cls._locks[key] = threading.RLock()
            return cls._locks[key]

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _read_json(self) -> list[dict]:
        if not self._comments_path.exists():
            return []
        try:
            data = json.loads(self._comments_path.read_text(encoding="utf-8"))
            return data if isinstance(data, list) else []
        except (json.JSONDecodeError, OSError):
            logger.warning("Unreadable comment store at %s; treating as empty", self._comments_path)
            return []

    # ------------------------------------------------------------------
    # Transactions
    # ------------------------------------------------------------------

    @contextmanager
    def transaction(self) -> Iterator[CommentTransaction]:
        """Run a read-modify-write cycle atomically with respect to this file."""
        with self._lock:
            tx = CommentTransaction(self._read_json())
            yield tx
            tmp_path = self._base / f"comments.{uuid.uuid4().hex[:8]}.tmp"
            tmp_path.write_text(json.dumps(tx._comments, indent=2, default=str), encoding="utf-8")
            try:
                for fn in tx._on_commit:
                    fn()
            except BaseException:
                tmp_path.unlink(missing_ok=True)
                raise
            os.replace(tmp_path, self._comments_path)

    # ------------------------------------------------------------------
    # CRUD
    # ------------------------------------------------------------------

    def create(
        self,
        user_id: str,
        meeting_id: str,
        body: str,
        stance: Stance | str = Stance.NEUTRAL,
        visibility: Visibility | str = Visibility.PENDING_VISIBLE,
        agenda_item_ids: Optional[list[str]] = None,
    ) -> Comment:
        """Persist a new comment and return it.

        *visibility* is the caller's initial visibility rule (for example
        ``VISIBLE`` while the meeting is live).
        """
        now = utcnow()
        comment = Comment(
            id=uuid.uuid4().hex,
            user_id=user_id,
            meeting_id=meeting_id,
            raw_body=body,
            public_body=body,
            stance=stance,
            visibility=visibility,
            agenda_item_ids=list(agenda_item_ids or []),
            submitted_at=now,
            visible_at=now if Visibility(visibility) == Visibility.VISIBLE else "",
        )
        with self.transaction() as tx:
            tx.put(comment)
        return comment

    def get(self, comment_id: str) -> Optional[Comment]:
        """Look up a comment by id. Returns None if not found."""
        for c in self._read_json():
            if c.get("id") == comment_id:
                return Comment.from_dict(c)
        return None

    def require(self, comment_id: str) -> Comment:
        """Like :meth:`get` but raises :class:`CommentNotFoundError`."""
        comment = self.get(comment_id)
        if comment is None:
            raise CommentNotFoundError(comment_id)
        return comment

    def list_comments(
        self,
        visibilities: Optional[Iterable[Visibility]] = None,
        include_withdrawn: bool = True,
        meeting_id: Optional[str] = None,
    ) -> list[Comment]:
        """Return comments newest first, optionally filtered."""
        wanted = {Visibility(v) for v in visibilities} if visibilities else None
        comments = [Comment.from_dict(c) for c in reversed(self._read_json())]
        if wanted is not None:
            comments = [c for c in comments if c.visibility in wanted]
        if not include_withdrawn:
            comments = [c for c in comments if not c.withdrawn_at]
        if meeting_id:
            comments = [c for c in comments if c.meeting_id == meeting_id]
        # Stable: ties on submitted_at keep newest-inserted first.
        comments.sort(key=lambda c: c.submitted_at, reverse=True)
        return comments

    def count_by_visibility(self) -> dict[Visibility, int]:
        counts = {v: 0 for v in Visibility}
        for c in self._read_json():
            counts[Visibility(c.get("visibility", Visibility.PENDING_VISIBLE.value))] += 1
        return counts

    def withdraw(self, comment_id: str) -> Comment:
        """Owner-initiated withdrawal. Terminal for moderation purposes."""
        with self.transaction() as tx:
            comment = tx.get(comment_id)
            comment.visibility = Visibility.WITHDRAWN
            comment.withdrawn_at = comment.withdrawn_at or utcnow()
            return tx.put(comment)
