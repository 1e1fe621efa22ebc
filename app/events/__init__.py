"""Change notification primitives."""

from app.events.change_feed import ALL_ENTITIES, ChangeEvent, ChangeFeed, Subscription

__all__ = ["ALL_ENTITIES", "ChangeEvent", "ChangeFeed", "Subscription"]
