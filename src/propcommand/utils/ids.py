"""Identifier and clock collaborators."""

import uuid
from datetime import datetime, UTC


def generate_id(prefix: str) -> str:
    """Return a new unique id such as ``gl-3f2a...``."""
    return f"{prefix}-{uuid.uuid4().hex}"


def utc_now() -> datetime:
    """Current timezone-aware UTC time."""
    return datetime.now(UTC)
