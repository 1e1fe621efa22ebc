"""Health endpoints for API v1."""

from __future__ import annotations

from fastapi import APIRouter, Request

router = APIRouter(tags=["health"])


@router.get("/health")
def health(request: Request) -> dict:
    cfg = request.app.state.config
    return {
        "status": "ok",
        "service": cfg.APP_NAME,
        "version": cfg.APP_VERSION,
        "change_feed_subscribers": request.app.state.change_feed.subscriber_count,
    }
