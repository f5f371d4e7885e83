from .config import (
    APPNAME, VERSION, JWT_SECRET, JWT_ALGORITHM, ACCESS_TOKEN_EXPIRE_MINUTES,
    DATABASE_URL, DB_CONNECT_TIMEOUT, DB_STATEMENT_TIMEOUT_MS, CREATE_TABLES,
    LOG_LEVEL, CORS_ORIGINS, BOOTSTRAP_ADMIN_IDS,
)

__all__ = [
    "APPNAME",
    "VERSION",
    "JWT_SECRET",
    "JWT_ALGORITHM",
    "ACCESS_TOKEN_EXPIRE_MINUTES",
    "DATABASE_URL",
    "DB_CONNECT_TIMEOUT",
    "DB_STATEMENT_TIMEOUT_MS",
    "CREATE_TABLES",
    "LOG_LEVEL",
    "CORS_ORIGINS",
    "BOOTSTRAP_ADMIN_IDS",
]
