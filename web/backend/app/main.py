"""FastAPI application for public comments on council meetings.

Residents submit comments under ``/api/comments``; moderators work the
review queue, settings and audit history under ``/api/moderation``.
Callers identify themselves with ``X-User-Id`` / ``X-User-Role`` headers.
"""

from __future__ import annotations

import logging
import os

from fastapi import Depends, FastAPI
from fastapi.middleware.cors import CORSMiddleware

from civic import __version__
from civic.comments.models import Visibility
from civic.moderation.queue import ModerationQueue
from web.backend.app.dependencies import get_queue
from web.backend.app.routers import comments, moderation

logging.basicConfig(
    level=os.environ.get("CIVIC_LOG_LEVEL", "INFO").upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)

app = FastAPI(
    title="Civic API",
    description="Public comment submission, automated moderation and moderator review.",
    version=__version__,
)

# Origins are comma separated; the default suits a local frontend.
_origins = os.environ.get("CIVIC_CORS_ORIGINS", "*").split(",")
app.add_middleware(
    CORSMiddleware,
    allow_origins=[o.strip() for o in _origins if o.strip()],
    allow_methods=["GET", "POST"],
    allow_headers=["*"],
)

app.include_router(comments.router)
app.include_router(moderation.router)


@app.get("/", tags=["meta"])
async def root():
    return {"name": "Civic API", "version": __version__, "docs": "/docs"}


@app.get("/health", tags=["meta"])
def health_check(queue: ModerationQueue = Depends(get_queue)):
    """Liveness plus the count of comments still pending."""
    return {
        "status": "healthy",
        "classifier": queue.engine.classifier.name,
        "pending": queue.comments.count_by_visibility()[Visibility.PENDING_VISIBLE],
    }
