from __future__ import annotations

from typing import Any, Dict, List

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, Field

from ...core import auth_store
from ...models import AuthBundle
from ..auth import jwt_required

router = APIRouter(prefix="/api/pb-auth", tags=["pb-auth"], dependencies=[Depends(jwt_required)])


class AuthSessionCreateRequest(BaseModel):
    cookies: List[Dict[str, Any]] = Field(..., description="Browser cookies captured from a logged-in ProductBoard tab.")
    localStorage: Dict[str, str] = Field(default_factory=dict, description="ProductBoard local storage items.")


class AuthSessionInfo(BaseModel):
    sessionId: str
    cookieCount: int
    localStorageCount: int
    capturedAt: str | None = None
    updatedAt: str | None = None


@router.post("/sessions", response_model=AuthSessionInfo, status_code=201)
async def capture_session(req: AuthSessionCreateRequest) -> AuthSessionInfo:
    bundle = AuthBundle.from_dict(req.model_dump())
    if not bundle.cookies:
        raise HTTPException(status_code=400, detail="At least one cookie is required.")
    session_id = auth_store.save_auth_session(bundle.cookies, bundle.local_storage)
    return AuthSessionInfo(
        sessionId=session_id,
        cookieCount=len(bundle.cookies),
        localStorageCount=len(bundle.local_storage),
    )


@router.get("/sessions/latest", response_model=AuthSessionInfo)
async def latest_session() -> AuthSessionInfo:
    info = auth_store.get_latest_session_info()
    if info is None:
        raise HTTPException(status_code=404, detail="No valid auth session stored.")
    return AuthSessionInfo(**info)


@router.delete("/sessions/{session_id}")
async def invalidate_session(session_id: str) -> Dict[str, str]:
    if not auth_store.invalidate_session(session_id):
        raise HTTPException(status_code=404, detail="Session not found.")
    return {"sessionId": session_id, "status": "invalidated"}
