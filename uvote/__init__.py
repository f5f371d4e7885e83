from .config import config
from .database import db_session
from .utils import jwt

__all__ = [
    "config",
    "db_session",
    "jwt"
]
