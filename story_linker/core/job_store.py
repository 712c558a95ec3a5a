"""SQLite persistence for background link jobs.

One row per queued link. The request fields, the run id (which names the
screenshot directory) and the reported outcome are plain columns so job
detail and screenshot lookups never have to parse JSON blobs.
"""

from __future__ import annotations

import os
import sqlite3
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Optional
from uuid import uuid4

from ..models import LinkRequest, WorkflowOutcome

DEFAULT_DB_PATH = "data/linker.db"

QUEUED = "queued"
RUNNING = "running"
SUCCEEDED = "succeeded"
FAILED = "failed"


def db_path() -> Path:
    return Path(os.getenv("LINKER_DB_PATH", DEFAULT_DB_PATH))


def connect() -> sqlite3.Connection:
    path = db_path()
    path.parent.mkdir(parents=True, exist_ok=True)
    conn = sqlite3.connect(str(path))
    conn.row_factory = sqlite3.Row
    return conn


def utc_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def init_job_store() -> None:
    conn = connect()
    try:
        conn.execute(
            """
            CREATE TABLE IF NOT EXISTS link_jobs (
                id TEXT PRIMARY KEY,
                status TEXT NOT NULL,
                pb_story_url TEXT NOT NULL,
                ado_project_name TEXT NOT NULL,
                ado_story_id TEXT NOT NULL,
                run_id TEXT,
                success INTEGER,
                failed_step TEXT,
                message TEXT,
                error TEXT,
                created_at TEXT NOT NULL,
                updated_at TEXT NOT NULL
            )
            """
        )
        conn.execute("CREATE INDEX IF NOT EXISTS idx_link_jobs_run_id ON link_jobs (run_id)")
        conn.commit()
    finally:
        conn.close()


def _execute(sql: str, params: tuple) -> int:
    conn = connect()
    try:
        cursor = conn.execute(sql, params)
        conn.commit()
        return cursor.rowcount
    finally:
        conn.close()


def create_link_job(request: LinkRequest) -> str:
    job_id = uuid4().hex
    now = utc_iso()
    _execute(
        """
        INSERT INTO link_jobs
            (id, status, pb_story_url, ado_project_name, ado_story_id, created_at, updated_at)
        VALUES (?, ?, ?, ?, ?, ?, ?)
        """,
        (job_id, QUEUED, request.pb_story_url, request.ado_project_name, request.ado_story_id, now, now),
    )
    return job_id


def mark_running(job_id: str, run_id: str) -> None:
    _execute(
        "UPDATE link_jobs SET status = ?, run_id = ?, updated_at = ? WHERE id = ?",
        (RUNNING, run_id, utc_iso(), job_id),
    )


def record_outcome(job_id: str, outcome: WorkflowOutcome) -> None:
    _execute(
        """
        UPDATE link_jobs
        SET status = ?, success = ?, failed_step = ?, message = ?,
            run_id = COALESCE(?, run_id), updated_at = ?
        WHERE id = ?
        """,
        (
            SUCCEEDED if outcome.success else FAILED,
            int(outcome.success),
            outcome.failed_step,
            outcome.message,
            outcome.run_id,
            utc_iso(),
            job_id,
        ),
    )


def mark_crashed(job_id: str, error: str) -> None:
    """Fail a job whose worker raised instead of reporting an outcome."""
    _execute(
        "UPDATE link_jobs SET status = ?, success = 0, error = ?, updated_at = ? WHERE id = ?",
        (FAILED, error, utc_iso(), job_id),
    )


def _row_to_job(row: sqlite3.Row) -> Dict[str, Any]:
    job: Dict[str, Any] = {
        "id": row["id"],
        "status": row["status"],
        "request": LinkRequest(
            pb_story_url=row["pb_story_url"],
            ado_project_name=row["ado_project_name"],
            ado_story_id=row["ado_story_id"],
        ),
        "run_id": row["run_id"],
        "failed_step": row["failed_step"],
        "message": row["message"],
        "error": row["error"],
        "created_at": row["created_at"],
        "updated_at": row["updated_at"],
        "outcome": None,
    }
    if row["success"] is not None and row["message"] is not None:
        job["outcome"] = WorkflowOutcome(
            success=bool(row["success"]),
            message=row["message"],
            failed_step=row["failed_step"],
            run_id=row["run_id"],
        )
    return job


def get_job(job_id: str) -> Optional[Dict[str, Any]]:
    conn = connect()
    try:
        row = conn.execute("SELECT * FROM link_jobs WHERE id = ?", (job_id,)).fetchone()
    finally:
        conn.close()
    return _row_to_job(row) if row else None


def get_job_by_run_id(run_id: str) -> Optional[Dict[str, Any]]:
    conn = connect()
    try:
        row = conn.execute("SELECT * FROM link_jobs WHERE run_id = ?", (run_id,)).fetchone()
    finally:
        conn.close()
    return _row_to_job(row) if row else None


__all__ = [
    "FAILED",
    "QUEUED",
    "RUNNING",
    "SUCCEEDED",
    "connect",
    "create_link_job",
    "get_job",
    "get_job_by_run_id",
    "init_job_store",
    "mark_crashed",
    "mark_running",
    "record_outcome",
    "utc_iso",
]
