# file: NEARBY/core/security.py
import logging

from fastapi import Depends, HTTPException, Request
from fastapi.security import HTTPBearer
from jose import jwt, JWTError

from NEARBY.core import config

# ---------------------------
# Logging
# ---------------------------
logger = logging.getLogger("core.security")

security = HTTPBearer()


def get_secret_key() -> str:
    if not config.SECRET_KEY or len(config.SECRET_KEY) < 32:
        raise RuntimeError("SECRET_KEY env var is missing or shorter than 32 characters")
    return config.SECRET_KEY


# ---------------------------
# Dependency: Current User (JWT only)
# ---------------------------
async def get_current_user(request: Request, credentials=Depends(security)):
    """
    Decode the bearer token issued by the auth service.

    Tokens carry `sub` (the Firebase uid) and optionally `role`. Issuing and
    refreshing tokens is handled elsewhere.
    """
    token = credentials.credentials

    try:
        payload = jwt.decode(token, get_secret_key(), algorithms=[config.ALGORITHM])
    except JWTError as e:
        logger.warning("JWT error: %s", str(e))
        raise HTTPException(status_code=401, detail="Invalid or expired token")

    user_id = payload.get("sub") or payload.get("user_id")
    if not user_id:
        logger.warning("Invalid JWT payload: %s", payload)
        raise HTTPException(status_code=401, detail="Invalid token payload")

    user = {
        "user_id": user_id,
        "role": payload.get("role", "user"),
    }
    request.scope["user"] = user
    logger.debug("Authenticated user context: %s", user)
    return user


# ---------------------------
# Role-Based Dependencies
# ---------------------------
async def get_current_admin(current_user: dict = Depends(get_current_user)):
    if current_user.get("role") != "admin":
        raise HTTPException(status_code=403, detail="Admin access required")
    return current_user
