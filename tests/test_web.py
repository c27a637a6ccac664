"""Tests for the REST API."""

import inspect
import tempfile
from contextlib import contextmanager
from pathlib import Path

from fastapi.routing import APIRoute
from fastapi.testclient import TestClient

from civic.comments.models import Visibility
from civic.comments.store import CommentStore
from civic.moderation.audit_log import ModerationLogStore
from civic.moderation.engine import ModerationEngine
from civic.moderation.queue import ModerationQueue
from civic.moderation.settings_store import SettingsStore
from web.backend.app.dependencies import get_queue, get_settings_store
from web.backend.app.main import app

from tests.helpers import StubClassifier

RESIDENT = {"X-User-Id": "res-1", "X-User-Role": "resident"}
STAFF = {"X-User-Id": "staff-1", "X-User-Role": "staff"}
MODERATOR = {"X-User-Id": "mod-1", "X-User-Role": "moderator"}
ADMIN = {"X-User-Id": "admin-1", "X-User-Role": "admin"}


@contextmanager
def _client(classifier=None):
    with tempfile.TemporaryDirectory() as tmpdir:
        settings = SettingsStore(tmpdir)
        queue = ModerationQueue(
            comments=CommentStore(tmpdir),
            logs=ModerationLogStore(Path(tmpdir) / "logs"),
            engine=ModerationEngine(classifier=classifier, settings=settings.get()),
        )
        app.dependency_overrides[get_queue] = lambda: queue
        app.dependency_overrides[get_settings_store] = lambda: settings
        try:
            yield TestClient(app), queue
        finally:
            app.dependency_overrides.clear()


def _post_comment(client, body="Call me at 555-123-4567, you idiot", headers=RESIDENT, **extra):
    payload = {"meeting_id": "m1", "agenda_item_ids": ["a1"], "body": body, "stance": "AGAINST", **extra}
    return client.post("/api/comments", json=payload, headers=headers)


def test_health():
    with _client() as (client, _):
        assert client.get("/health").json() == {"status": "healthy", "classifier": "none", "pending": 0}
        _post_comment(client, body="Please fund the library expansion project.")
        assert client.get("/health").json()["pending"] == 1
        assert client.get("/").json()["name"] == "Civic API"


def test_store_and_classifier_handlers_run_in_threadpool():
    # Sync handlers keep a slow classifier call off the event loop.
    routes = [r for r in app.routes if isinstance(r, APIRoute) and r.path.startswith("/api/")]
    assert routes
    for route in routes:
        assert not inspect.iscoroutinefunction(route.endpoint), route.path


# ---------------------------------------------------------------------------
# Comments
# ---------------------------------------------------------------------------


def test_submit_requires_identity():
    with _client() as (client, _):
        assert _post_comment(client, headers={}).status_code == 401


def test_unknown_role_rejected():
    with _client() as (client, _):
        resp = _post_comment(client, headers={"X-User-Id": "x", "X-User-Role": "mayor"})
        assert resp.status_code == 400


def test_submit_redacts_and_hides_detail_from_resident():
    with _client() as (client, queue):
        resp = _post_comment(client)
        assert resp.status_code == 201
        data = resp.json()

        assert data["public_body"] == "Call me at [REDACTED], you [REMOVED]"
        assert data["visibility"] == "PENDING_VISIBLE"
        assert data["user_id"] == "res-1"
        assert data["raw_body"] is None
        assert data["risk_flags"] is None
        assert queue.comments.require(data["id"]).raw_body == "Call me at 555-123-4567, you idiot"


def test_submit_during_live_meeting_is_visible():
    with _client() as (client, _):
        data = _post_comment(client, body="I support this proposal fully", meeting_live=True).json()
        assert data["visibility"] == "VISIBLE"


def test_submit_validation():
    with _client() as (client, _):
        assert _post_comment(client, body="short").status_code == 422
        assert _post_comment(client, body="x" * 2001).status_code == 422
        assert _post_comment(client, agenda_item_ids=[]).status_code == 422


def test_get_comment_visibility_rules():
    with _client() as (client, _):
        cid = _post_comment(client).json()["id"]

        # Author sees their own pending comment, without the raw body.
        own = client.get(f"/api/comments/{cid}", headers=RESIDENT)
        assert own.status_code == 200
        assert own.json()["raw_body"] is None

        other = {"X-User-Id": "res-2", "X-User-Role": "resident"}
        assert client.get(f"/api/comments/{cid}", headers=other).status_code == 404

        staff = client.get(f"/api/comments/{cid}", headers=STAFF).json()
        assert staff["raw_body"] == "Call me at 555-123-4567, you idiot"
        assert staff["pii_detected"] is True

        assert client.get("/api/comments/missing", headers=STAFF).status_code == 404


# ---------------------------------------------------------------------------
# Queue
# ---------------------------------------------------------------------------


def test_queue_requires_moderator():
    with _client() as (client, _):
        assert client.get("/api/moderation/queue", headers=RESIDENT).status_code == 403
        assert client.get("/api/moderation/queue", headers=STAFF).status_code == 403
        assert client.get("/api/moderation/queue", headers=MODERATOR).status_code == 200
        assert client.get("/api/moderation/queue", headers=ADMIN).status_code == 200


def test_queue_lists_by_priority_with_stats():
    with _client(classifier=StubClassifier(0.9)) as (client, queue):
        hidden_id = _post_comment(client, body="This is a deeply abusive comment").json()["id"]
        queue.engine.classifier = StubClassifier(0.0, flagged=False)
        pending_id = _post_comment(client, body="A calm and ordinary comment").json()["id"]

        resp = client.get("/api/moderation/queue?include_stats=true", headers=MODERATOR)
        data = resp.json()

        assert [i["comment"]["id"] for i in data["queue"]] == [hidden_id, pending_id]
        assert data["queue"][0]["priority"] == "high"
        assert data["queue"][0]["risk_score"] == 0.9
        assert data["queue"][0]["comment"]["raw_body"] == "This is a deeply abusive comment"
        assert data["queue"][0]["recent_logs"][0]["action"] == "FLAG"
        assert data["queue"][1]["priority"] == "low"
        assert data["stats"]["total"] == 2
        assert data["stats"]["hidden"] == 1
        assert data["stats"]["percent_moderated"] == "100.0"

        filtered = client.get("/api/moderation/queue?priority=low", headers=MODERATOR).json()
        assert [i["comment"]["id"] for i in filtered["queue"]] == [pending_id]
        assert filtered["stats"] is None


# ---------------------------------------------------------------------------
# Actions
# ---------------------------------------------------------------------------


def test_approve_and_reject():
    with _client() as (client, queue):
        cid = _post_comment(client).json()["id"]

        resp = client.post(
            "/api/moderation/actions",
            json={"comment_id": cid, "action": "reject", "reason": "Personal attack"},
            headers=MODERATOR,
        )
        assert resp.status_code == 200
        assert resp.json()["message"] == "Comment rejected successfully"
        assert queue.comments.require(cid).visibility == Visibility.HIDDEN

        resp = client.post("/api/moderation/actions", json={"comment_id": cid, "action": "approve"}, headers=MODERATOR)
        assert resp.json()["message"] == "Comment approved successfully"
        assert queue.comments.require(cid).visibility == Visibility.VISIBLE

        history = client.get(f"/api/moderation/comments/{cid}/history", headers=MODERATOR).json()
        assert [h["action"] for h in history] == ["RESTORE", "HIDE"]
        assert history[1]["reason"] == "Personal attack"
        assert history[0]["moderator_id"] == "mod-1"


def test_action_errors():
    with _client() as (client, queue):
        cid = _post_comment(client).json()["id"]

        def act(payload):
            return client.post("/api/moderation/actions", json=payload, headers=MODERATOR)

        assert act({"comment_id": cid, "action": "reject"}).status_code == 400
        assert act({"comment_id": "missing", "action": "approve"}).status_code == 404
        assert act({"action": "approve"}).status_code == 422
        assert act({"comment_id": cid, "action": "delete"}).status_code == 422

        stale = act({"comment_id": cid, "action": "approve", "expected_version": 1})
        assert stale.status_code == 409

        queue.comments.withdraw(cid)
        assert act({"comment_id": cid, "action": "approve"}).status_code == 409

        resident = client.post("/api/moderation/actions", json={"comment_id": cid, "action": "approve"}, headers=RESIDENT)
        assert resident.status_code == 403


def test_bulk_action():
    with _client() as (client, queue):
        ids = [_post_comment(client, body=f"Comment number {i} about parks").json()["id"] for i in range(2)]

        resp = client.post(
            "/api/moderation/actions",
            json={"comment_ids": ids + ["missing"], "action": "approve"},
            headers=MODERATOR,
        )
        data = resp.json()

        assert data["successful"] == 2
        assert data["failed"] == 1
        assert data["total"] == 3
        assert all(queue.comments.require(i).visibility == Visibility.VISIBLE for i in ids)


# ---------------------------------------------------------------------------
# Settings, history, preview
# ---------------------------------------------------------------------------


def test_settings():
    with _client() as (client, queue):
        assert client.get("/api/moderation/settings", headers=MODERATOR).json() == {
            "auto_moderate": True,
            "risk_threshold": 0.7,
            "review_threshold": 0.4,
        }

        new = {"auto_moderate": False, "risk_threshold": 0.8, "review_threshold": 0.5}
        assert client.post("/api/moderation/settings", json=new, headers=MODERATOR).status_code == 403

        resp = client.post("/api/moderation/settings", json=new, headers=ADMIN)
        assert resp.status_code == 200
        assert resp.json() == new
        assert queue.engine.settings.risk_threshold == 0.8
        assert client.get("/api/moderation/settings", headers=MODERATOR).json() == new

        bad = {"auto_moderate": True, "risk_threshold": 0.3, "review_threshold": 0.5}
        assert client.post("/api/moderation/settings", json=bad, headers=ADMIN).status_code == 400
        out_of_range = {"auto_moderate": True, "risk_threshold": 1.3, "review_threshold": 0.5}
        assert client.post("/api/moderation/settings", json=out_of_range, headers=ADMIN).status_code == 422


def test_history_of_unknown_comment():
    with _client() as (client, _):
        assert client.get("/api/moderation/comments/missing/history", headers=MODERATOR).status_code == 404


def test_preview_stores_nothing():
    with _client(classifier=StubClassifier(0.75, categories=("threat",))) as (client, queue):
        resp = client.post("/api/moderation/preview", json={"text": "Email me at bob@example.com"}, headers=MODERATOR)
        data = resp.json()

        assert data["processed"] is True
        assert data["public_body"] == "Email me at [REDACTED]"
        assert data["suggested_visibility"] == "HIDDEN"
        assert data["risk_flags"]["threat"] is True
        assert data["summary"] == "Issues detected: PII, Threats"
        assert queue.comments.list_comments() == []
