"""
Bearer token claim extraction.

Reads claims from an ID token without verifying its signature; the token
has already been verified against the identity provider by the time these
helpers run. Malformed tokens yield empty values instead of raising.
"""
import logging
from typing import Any, Dict, List

import jwt

logger = logging.getLogger(__name__)


def decode_claims(token: str) -> Dict[str, Any]:
    """
    Decode the payload segment of a compact JWT.

    Returns:
        The claims mapping, or an empty dict if the token is malformed.
    """
    if not isinstance(token, str) or not token.strip():
        logger.debug("Token is empty")
        return {}

    try:
        claims = jwt.decode(token, options={"verify_signature": False})
    except (jwt.PyJWTError, ValueError) as e:
        logger.debug(f"Failed to decode token payload: {e}")
        return {}

    return claims if isinstance(claims, dict) else {}


def _string_claim(claims: Dict[str, Any], name: str) -> str:
    value = claims.get(name)
    return value if isinstance(value, str) else ""


def get_user_id_from_token(token: str) -> str:
    """The ``user_id`` claim, falling back to ``sub``; empty when absent."""
    claims = decode_claims(token)
    user_id = _string_claim(claims, "user_id") or _string_claim(claims, "sub")
    if not user_id:
        logger.debug("UID not found in token claims")
    return user_id


def get_user_email_from_token(token: str) -> str:
    """The ``email`` claim; empty when absent."""
    return _string_claim(decode_claims(token), "email")


def get_audience_from_token(token: str) -> List[str]:
    """The ``aud`` claim as a list; empty when absent."""
    audience = decode_claims(token).get("aud")
    if isinstance(audience, str):
        return [audience]
    if isinstance(audience, list):
        return [a for a in audience if isinstance(a, str)]
    return []
