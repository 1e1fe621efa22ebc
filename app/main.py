"""Application entrypoint for the pipeline API."""

from __future__ import annotations

import logging

import requests
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session, sessionmaker

from app.api.v1._authz import map_domain_error
from app.api.v1.router import get_api_router
from app.core.config import Config, get_config
from app.core.exceptions import PipelineError, UpstreamUnavailableError
from app.core.startup import bootstrap
from app.database.db import build_session_factory
from app.events.change_feed import ChangeFeed
from app.schemas.common import ErrorEnvelope
from app.services.notification_service import TaskNotifier

logger = logging.getLogger(__name__)


def _register_error_handlers(app: FastAPI) -> None:
    @app.exception_handler(PipelineError)
    def handle_pipeline_error(request: Request, exc: PipelineError) -> JSONResponse:
        status_code, detail = map_domain_error(exc)
        if status_code >= 500:
            logger.warning(
                "api.request.failed",
                extra={"event": "api.request.failed", "path": request.url.path, "error_code": exc.error_code},
            )
        return JSONResponse(
            status_code=status_code,
            content=ErrorEnvelope(
                error_code=exc.error_code,
                detail=detail,
                retryable=isinstance(exc, UpstreamUnavailableError),
            ).model_dump(),
        )


def create_app(
    config: Config | None = None,
    session_factory: sessionmaker[Session] | None = None,
    change_feed: ChangeFeed | None = None,
    notifier: TaskNotifier | None = None,
) -> FastAPI:
    """Create the FastAPI application.

    Without an explicit ``session_factory`` the app bootstraps its own engine
    from ``DATABASE_URL``.
    """
    cfg = config or get_config()
    if session_factory is None:
        session_factory = build_session_factory(bootstrap(cfg))

    app = FastAPI(title=cfg.APP_NAME, version=cfg.APP_VERSION)
    app.state.config = cfg
    app.state.session_factory = session_factory
    app.state.change_feed = change_feed or ChangeFeed(buffer_size=cfg.CHANGE_FEED_BUFFER)
    app.state.notifier = notifier or TaskNotifier(cfg, requests.Session())
    app.include_router(get_api_router(cfg.API_PREFIX))
    _register_error_handlers(app)

    @app.get("/")
    def root() -> dict:
        return {"service": cfg.APP_NAME, "version": cfg.APP_VERSION, "api_prefix": cfg.API_PREFIX}

    return app


if __name__ == "__main__":
    import uvicorn

    settings = get_config()
    uvicorn.run(create_app(settings), host=settings.API_HOST, port=settings.API_PORT)
