from datetime import datetime, timedelta, timezone
from typing import Iterable

import jwt

from research_backend.core import config

ACCESS_TOKEN_TYPE = "access"
REFRESH_TOKEN_TYPE = "refresh"


def _build_payload(user_id: int, roles: Iterable[str], token_type: str, lifetime: timedelta) -> dict:
    now = datetime.now(timezone.utc)
    return {
        "sub": str(user_id),
        "roles": list(roles),
        "type": token_type,
        "iat": now,
        "exp": now + lifetime,
    }


def create_access_token(user_id: int, roles: Iterable[str], expires_minutes: int | None = None) -> str:
    expire_minutes = expires_minutes or config.JWT_EXPIRES_MINUTES
    payload = _build_payload(user_id, roles, ACCESS_TOKEN_TYPE, timedelta(minutes=expire_minutes))
    return jwt.encode(payload, config.JWT_SECRET_KEY, algorithm=config.JWT_ALGORITHM)


def create_refresh_token(user_id: int, roles: Iterable[str]) -> str:
    payload = _build_payload(
        user_id, roles, REFRESH_TOKEN_TYPE, timedelta(days=config.JWT_REFRESH_EXPIRES_DAYS)
    )
    return jwt.encode(payload, config.JWT_REFRESH_SECRET_KEY, algorithm=config.JWT_ALGORITHM)


def decode_access_token(token: str) -> dict:
    payload = jwt.decode(token, config.JWT_SECRET_KEY, algorithms=[config.JWT_ALGORITHM])
    if payload.get("type") != ACCESS_TOKEN_TYPE:
        raise jwt.InvalidTokenError("Not an access token")
    return payload


def decode_refresh_token(token: str) -> dict:
    payload = jwt.decode(token, config.JWT_REFRESH_SECRET_KEY, algorithms=[config.JWT_ALGORITHM])
    if payload.get("type") != REFRESH_TOKEN_TYPE:
        raise jwt.InvalidTokenError("Not a refresh token")
    return payload
