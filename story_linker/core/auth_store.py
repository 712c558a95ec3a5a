"""Captured ProductBoard sessions, newest valid one wins.

Rows hold raw cookies and local storage, so nothing here returns them except
``get_latest_auth_bundle``. The metadata helpers only expose counts.
"""

from __future__ import annotations

import json
from typing import Any, Dict, List, Optional
from uuid import uuid4

from ..models import AuthBundle, CookieRecord
from .job_store import connect, utc_iso


def init_auth_store() -> None:
    conn = connect()
    try:
        conn.execute(
            """
            CREATE TABLE IF NOT EXISTS pb_auth_sessions (
                id TEXT PRIMARY KEY,
                cookies TEXT NOT NULL,
                local_storage TEXT,
                cookie_count INTEGER NOT NULL,
                local_storage_count INTEGER NOT NULL,
                is_valid INTEGER NOT NULL DEFAULT 1,
                captured_at TEXT NOT NULL,
                updated_at TEXT NOT NULL
            )
            """
        )
        conn.commit()
    finally:
        conn.close()


def save_auth_session(cookies: List[CookieRecord], local_storage: Optional[Dict[str, str]] = None) -> str:
    session_id = uuid4().hex
    now = utc_iso()
    storage = local_storage or {}
    conn = connect()
    try:
        conn.execute(
            """
            INSERT INTO pb_auth_sessions
                (id, cookies, local_storage, cookie_count, local_storage_count, is_valid, captured_at, updated_at)
            VALUES (?, ?, ?, ?, ?, 1, ?, ?)
            """,
            (
                session_id,
                json.dumps([c.to_dict() for c in cookies]),
                json.dumps(storage),
                len(cookies),
                len(storage),
                now,
                now,
            ),
        )
        conn.commit()
    finally:
        conn.close()
    return session_id


def _latest_valid_row() -> Optional[Any]:
    conn = connect()
    try:
        return conn.execute(
            """
            SELECT * FROM pb_auth_sessions
            WHERE is_valid = 1
            ORDER BY updated_at DESC, rowid DESC
            LIMIT 1
            """
        ).fetchone()
    finally:
        conn.close()


def get_latest_auth_bundle() -> Optional[AuthBundle]:
    row = _latest_valid_row()
    if row is None:
        return None
    return AuthBundle.from_dict(
        {
            "cookies": json.loads(row["cookies"] or "[]"),
            "localStorage": json.loads(row["local_storage"] or "{}"),
        }
    )


def get_latest_session_info() -> Optional[Dict[str, Any]]:
    row = _latest_valid_row()
    if row is None:
        return None
    return {
        "sessionId": row["id"],
        "cookieCount": row["cookie_count"],
        "localStorageCount": row["local_storage_count"],
        "capturedAt": row["captured_at"],
        "updatedAt": row["updated_at"],
    }


def invalidate_session(session_id: str) -> bool:
    conn = connect()
    try:
        cursor = conn.execute(
            "UPDATE pb_auth_sessions SET is_valid = 0, updated_at = ? WHERE id = ?",
            (utc_iso(), session_id),
        )
        conn.commit()
        return cursor.rowcount > 0
    finally:
        conn.close()
