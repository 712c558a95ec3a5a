from __future__ import annotations

import os

from fastapi import APIRouter

from ...core import auth_store

router = APIRouter(tags=["health"])


@router.get("/healthz")
async def healthcheck():
    """Liveness plus whether a link run could start right now (a valid PB session is stored)."""
    session = auth_store.get_latest_session_info()
    return {
        "status": "ok",
        "service": "pb-ado-story-linker",
        "version": os.getenv("APP_VERSION", "dev"),
        "authSessionStored": session is not None,
        "authSessionUpdatedAt": session.get("updatedAt") if session else None,
    }
