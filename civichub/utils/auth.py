"""
OPTIONAL BEARER IDENTITY
========================

Chat works for anonymous visitors and for signed-in citizens. Tokens are issued
by the platform's auth service (HS256, shared JWT_SECRET); this module only
reads the user id out of them. A missing, expired, or invalid token simply
means the request is anonymous.
"""

import logging
from typing import Optional

import jwt

JWT_ALGORITHM = "HS256"

logger = logging.getLogger("CivicHub")


def verify_token(token: str, secret: str) -> Optional[dict]:
    """Decode a JWT. Returns the payload, or None if it cannot be trusted."""
    if not secret or not token:
        return None
    try:
        return jwt.decode(token, secret, algorithms=[JWT_ALGORITHM])
    except jwt.ExpiredSignatureError:
        logger.debug("Ignoring expired bearer token")
        return None
    except jwt.InvalidTokenError:
        logger.debug("Ignoring invalid bearer token")
        return None


def user_id_from_authorization(authorization: Optional[str], secret: str) -> Optional[str]:
    """
    Extract the user id from an "Authorization: Bearer <jwt>" header value.

    The platform puts the id in "userId"; older tokens use "id".
    """
    if not authorization or not authorization.startswith("Bearer "):
        return None
    payload = verify_token(authorization[len("Bearer "):].strip(), secret)
    if not payload:
        return None
    user_id = payload.get("userId") or payload.get("id")
    return str(user_id) if user_id else None
