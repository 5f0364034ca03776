# Security Infrastructure
from .token_claims import (
    decode_claims,
    get_user_id_from_token,
    get_user_email_from_token,
    get_audience_from_token,
)

__all__ = [
    'decode_claims',
    'get_user_id_from_token',
    'get_user_email_from_token',
    'get_audience_from_token',
]
