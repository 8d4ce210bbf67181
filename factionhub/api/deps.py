"""
factionhub.api.deps — FastAPI dependency injection
===================================================

Identity is issued elsewhere (the hub's Discord sign-in); this API only
verifies the HS256 bearer token and checks the ``role`` claim.
"""

from __future__ import annotations

import os
from functools import lru_cache
from typing import Annotated

import jwt
from fastapi import Depends, Header, HTTPException, status
from jwt.exceptions import InvalidTokenError
from sqlalchemy import Engine

from factionhub.config import HubConfig, load_config
from factionhub.constants import MEMBER_ROLES, STAFF_ROLES
from factionhub.database.engine import create_db_engine

_WEAK_SECRETS = frozenset({
    "factionhub-dev-secret-change-me",
    "change-me",
    "secret",
    "dev",
    "",
})

_MIN_SECRET_LENGTH = 32

JWT_ALGORITHM = "HS256"


def _load_jwt_secret() -> str:
    """Load and validate JWT_SECRET from the environment.

    Raises RuntimeError at import time if the secret is missing, blank,
    too short (< 32 chars), or a known weak default.
    """
    secret = os.getenv("JWT_SECRET", "")
    if not secret:
        raise RuntimeError(
            "JWT_SECRET environment variable is not set. "
            "Generate one with: python -c \"import secrets; print(secrets.token_urlsafe(64))\""
        )
    if secret in _WEAK_SECRETS:
        raise RuntimeError(
            f"JWT_SECRET is set to a known weak default ('{secret}'). "
            "Please set a strong, unique secret."
        )
    if len(secret) < _MIN_SECRET_LENGTH:
        raise RuntimeError(
            f"JWT_SECRET is too short ({len(secret)} chars). "
            f"Minimum length is {_MIN_SECRET_LENGTH} characters."
        )
    return secret


JWT_SECRET: str = _load_jwt_secret()


@lru_cache(maxsize=1)
def get_engine() -> Engine:
    return create_db_engine()


@lru_cache(maxsize=1)
def get_config() -> HubConfig:
    return load_config(os.getenv("FACTIONHUB_CONFIG", "config.yaml"))


def get_current_user(
    authorization: Annotated[str | None, Header()] = None,
) -> dict:
    """Validate the bearer JWT and return its payload. Raises 401 if invalid."""
    if not authorization or not authorization.startswith("Bearer "):
        raise HTTPException(status.HTTP_401_UNAUTHORIZED, "Missing token")
    token = authorization.split(" ", 1)[1]
    try:
        payload = jwt.decode(token, JWT_SECRET, algorithms=[JWT_ALGORITHM])
    except InvalidTokenError:
        raise HTTPException(status.HTTP_401_UNAUTHORIZED, "Invalid token")
    if not payload.get("sub"):
        raise HTTPException(status.HTTP_401_UNAUTHORIZED, "Invalid token")
    return payload


def is_staff(user: dict) -> bool:
    return user.get("role") in STAFF_ROLES


def get_current_member(user: dict = Depends(get_current_user)) -> dict:
    """Faction members and staff. Guests may read but not log encounters."""
    if user.get("role") not in MEMBER_ROLES:
        raise HTTPException(status.HTTP_403_FORBIDDEN, "Members only")
    return user


def get_current_staff(user: dict = Depends(get_current_user)) -> dict:
    """Admins, leaders and moderators."""
    if not is_staff(user):
        raise HTTPException(status.HTTP_403_FORBIDDEN, "Forbidden")
    return user
