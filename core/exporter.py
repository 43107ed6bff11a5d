"""Export/Import logic — session window state as JSON."""

from __future__ import annotations

import json
from datetime import datetime, timezone

from pydantic import BaseModel, ValidationError

from core.models import Query
from core.window import Window


class WindowSnapshot(BaseModel):
    """Everything needed to resume a session: its slots and its window."""

    query: Query
    window: Window
    exported_at: str = ""


def export_window(query: Query, window: Window) -> str:
    """Serialize a session's query and window to JSON."""
    snapshot = WindowSnapshot(
        query=query,
        window=window,
        exported_at=datetime.now(timezone.utc).isoformat(),
    )
    return snapshot.model_dump_json()


def import_window(raw_json: str) -> WindowSnapshot:
    """Parse JSON back into a WindowSnapshot.

    Raises ``ValueError`` if the JSON is invalid or does not describe a window.
    """
    try:
        data = json.loads(raw_json)
    except json.JSONDecodeError as exc:
        raise ValueError(f"Invalid JSON: {exc}") from exc

    try:
        return WindowSnapshot.model_validate(data)
    except ValidationError as exc:
        raise ValueError(f"Invalid window snapshot: {exc}") from exc
