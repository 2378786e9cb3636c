"""
Authentication against the transfer backend.
Handles login, bearer token refresh, and token expiry inspection.

The backend owns credentials and sessions; this module only exchanges
username/password for a bearer token and keeps that token fresh.
"""
import logging
from datetime import datetime
from typing import Dict, Optional, Tuple

import jwt

from core.errors import TransportError

# Security events go to their own logger (separate from user-facing messages)
security_logger = logging.getLogger('TransferPortal.security')


# ============================================
# LOGIN
# ============================================

def authenticate_user(client, username: str, password: str) -> Tuple[bool, Optional[Dict], str]:
    """
    Exchange credentials for a bearer token.
    Returns: (success, user_data, message)
    user_data = {"token", "user", "usergroups"} on success.
    """
    if not username or not password:
        return False, None, "Please enter your credentials"

    try:
        resp = client.login(username, password)
    except TransportError as e:
        security_logger.warning(f"Login failed for '{username}': {e}")
        return False, None, "Invalid username or password"

    if not isinstance(resp, dict) or not resp.get("token"):
        security_logger.warning(f"Login for '{username}' returned no token")
        return False, None, "Invalid login response"

    payload = resp.get("data") or {}
    user_data = {
        "token": resp["token"],
        "user": payload.get("user") or {"username": username},
        "usergroups": payload.get("usergroups") or [],
    }
    security_logger.info(f"User '{username}' signed in")
    return True, user_data, "Logged in"


# ============================================
# TOKEN REFRESH
# ============================================

def refresh_session_token(client) -> Optional[str]:
    """Ask the backend for a new token. Returns None when refresh is refused."""
    try:
        resp = client.refresh_token()
    except TransportError as e:
        security_logger.warning(f"Token refresh failed: {e}")
        return None

    if isinstance(resp, dict) and resp.get("token"):
        security_logger.info("Token refresh successful")
        return resp["token"]

    security_logger.warning("Token refresh failed: invalid response")
    return None


def decode_token_expiry(token: str) -> Optional[datetime]:
    """
    Read the 'exp' claim of a JWT without verifying its signature.
    Returns None for opaque or malformed tokens.
    """
    if not token:
        return None
    try:
        claims = jwt.decode(token, options={"verify_signature": False})
    except jwt.PyJWTError:
        return None
    exp = claims.get("exp")
    if not exp:
        return None
    try:
        return datetime.fromtimestamp(exp)
    except (TypeError, ValueError, OverflowError, OSError):
        security_logger.warning(f"Ignoring token with unusable exp claim: {exp!r}")
        return None
