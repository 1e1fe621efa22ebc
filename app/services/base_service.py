"""Shared service base with robust session lifecycle behavior."""

from __future__ import annotations

import logging

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.core.exceptions import UpstreamUnavailableError
from app.events.change_feed import ChangeEvent, ChangeFeed

logger = logging.getLogger(__name__)


class BaseService:
    """Base class for services that operate on a caller-owned SQLAlchemy session."""

    def __init__(self, db: Session, change_feed: ChangeFeed | None = None) -> None:
        self.db = db
        self.change_feed = change_feed

    def commit(self) -> None:
        """Commit current transaction and rollback on failure."""
        try:
            self.db.commit()
        except SQLAlchemyError as exc:
            self.db.rollback()
            logger.exception("database.commit_failed", extra={"event": "database.commit_failed"})
            raise UpstreamUnavailableError("The data store rejected or did not complete the write.") from exc

    def rollback(self) -> None:
        self.db.rollback()

    def close(self) -> None:
        self.db.close()

    def publish(self, entity_type: str, action: str, entity_id: str, **data) -> None:
        if self.change_feed is None:
            return
        self.change_feed.publish(ChangeEvent(entity_type=entity_type, action=action, entity_id=entity_id, data=data))

    def __enter__(self) -> "BaseService":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        if exc_type:
            self.rollback()
        self.close()
