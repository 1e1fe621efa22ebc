"""Identifier generation helpers."""

from __future__ import annotations

import uuid


def new_entity_id() -> str:
    """Create an opaque UUID4-based identifier for clients, tasks and profiles."""
    return str(uuid.uuid4())
