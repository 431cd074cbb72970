"""Cursor-based pagination utilities shared by list endpoints."""

import base64
import json
from datetime import datetime


def cursor_encode(last_id: int) -> str:
    """Encode a BIGINT primary key into an opaque Base64 cursor string."""
    payload = json.dumps({"id": last_id})
    return base64.b64encode(payload.encode()).decode()


def cursor_decode(cursor: str | None) -> int | None:
    """Decode a cursor string back to the last seen id. Returns None on error."""
    if cursor is None:
        return None
    try:
        payload = json.loads(base64.b64decode(cursor.encode()).decode())
        return int(payload["id"])
    except (ValueError, KeyError, TypeError):
        return None


def keyset_cursor_encode(created_at: datetime, last_id: str) -> str:
    """Encode a (created_at, id) position for tables keyed by a non-numeric id."""
    payload = json.dumps({"ts": created_at.isoformat(), "id": last_id})
    return base64.b64encode(payload.encode()).decode()


def keyset_cursor_decode(cursor: str | None) -> tuple[datetime, str] | None:
    """Decode a keyset cursor. Returns None on error."""
    if cursor is None:
        return None
    try:
        payload = json.loads(base64.b64decode(cursor.encode()).decode())
        return datetime.fromisoformat(payload["ts"]), str(payload["id"])
    except (ValueError, KeyError, TypeError):
        return None
