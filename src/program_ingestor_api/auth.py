"""
API key authentication for the program endpoints.

Keys come from the comma-separated ``API_KEYS`` env var. A caller sends
``X-API-Key: <key>`` to act as the shared admin user, or
``X-API-Key: <key>:<user_id>`` to act as that user; programs are owned by
whoever uploaded them.
"""
import logging
import os
from typing import Optional, Set

from fastapi import Header, HTTPException

logger = logging.getLogger(__name__)

ADMIN_USER_ID = "admin"


def _configured_keys() -> Set[str]:
    return {k.strip() for k in os.getenv("API_KEYS", "").split(",") if k.strip()}


def validate_api_key(api_key: str) -> str:
    """Return the user id an API key acts as, or raise 401."""
    valid_keys = _configured_keys()
    if not valid_keys:
        logger.warning("API_KEYS is empty; rejecting all requests")
        raise HTTPException(status_code=401, detail="API key authentication not configured")

    key, _, user_id = api_key.partition(":")
    if key not in valid_keys:
        raise HTTPException(status_code=401, detail="Invalid API key")

    return user_id.strip() or ADMIN_USER_ID


async def get_current_user(
    x_api_key: Optional[str] = Header(None, alias="X-API-Key"),
) -> str:
    """FastAPI dependency resolving the caller's user id."""
    if not x_api_key:
        raise HTTPException(
            status_code=401,
            detail="Missing authentication. Provide an X-API-Key header.",
        )
    return validate_api_key(x_api_key)
