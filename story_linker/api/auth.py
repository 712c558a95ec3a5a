from __future__ import annotations

import os
from typing import Optional

import jwt
from fastapi import Depends, HTTPException, Request, status


class User:
    def __init__(self, subject: Optional[str]) -> None:
        self.sub = subject


def _enforced() -> bool:
    return os.getenv("ENFORCE_JWT", "").lower() in {"1", "true", "yes"}


def _extract_bearer_token(request: Request) -> Optional[str]:
    auth = request.headers.get("Authorization", "")
    if not auth.startswith("Bearer "):
        return None
    return auth.split(" ", 1)[1].strip() or None


async def jwt_optional(request: Request) -> Optional[User]:
    """Accept a JWT when provided; allow anonymous callers unless ENFORCE_JWT is set.

    Configuration via env:
      - ENFORCE_JWT: when truthy, require a valid token on protected routes
      - AUTH_JWT_SECRET: HS256 secret for token verification
      - AUTH_JWT_AUDIENCE / AUTH_JWT_ISSUER: optional claims to validate
    """
    token = _extract_bearer_token(request)
    if not token:
        return None if _enforced() else User(subject="anonymous")

    secret = os.getenv("AUTH_JWT_SECRET")
    if not secret:
        # Without a secret tokens cannot be verified, so only dev mode accepts them.
        return None if _enforced() else User(subject="dev-user")

    audience = os.getenv("AUTH_JWT_AUDIENCE")
    issuer = os.getenv("AUTH_JWT_ISSUER")
    try:
        decoded = jwt.decode(
            token,
            secret,
            algorithms=["HS256"],
            audience=audience or None,
            issuer=issuer or None,
            options={"verify_aud": bool(audience)},
        )
    except jwt.PyJWTError:
        return None
    return User(subject=str(decoded.get("sub") or "user"))


async def jwt_required(user: Optional[User] = Depends(jwt_optional)) -> User:
    if user is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Missing or invalid token")
    return user
