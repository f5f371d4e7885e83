from .jwt import (
    create_access_token, decode_access_token, get_user_id_from_token,
    get_current_user_id, get_current_claims,
)
from .timeutils import utcnow, as_naive_utc

__all__ = [
    "create_access_token",
    "decode_access_token",
    "get_user_id_from_token",
    "get_current_user_id",
    "get_current_claims",
    "utcnow",
    "as_naive_utc",
]
