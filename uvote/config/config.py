# uvote/config/config.py
import os
from dotenv import load_dotenv
load_dotenv()

APPNAME = os.getenv("APPNAME", "uVote API")
VERSION = os.getenv("VERSION", "v1")

# Tokens are issued by the identity provider; the secret is shared with it.
JWT_SECRET = os.getenv("JWT_SECRET", "change-me")
JWT_ALGORITHM = os.getenv("JWT_ALGORITHM", "HS256")
ACCESS_TOKEN_EXPIRE_MINUTES = int(os.getenv("ACCESS_TOKEN_EXPIRE_MINUTES", "60"))

DB_USERNAME = os.getenv("DB_USERNAME")
DB_PASSWORD = os.getenv("DB_PASSWORD")
DB_HOST = os.getenv("DB_HOST")
DB_NAME = os.getenv("DB_NAME")


def _database_url() -> str:
    url = os.getenv("DATABASE_URL")
    if url:
        return url
    if DB_USERNAME and DB_PASSWORD and DB_HOST and DB_NAME:
        return f"postgresql://{DB_USERNAME}:{DB_PASSWORD}@{DB_HOST}/{DB_NAME}"
    return "sqlite:///./uvote.db"


DATABASE_URL = _database_url()
DB_CONNECT_TIMEOUT = int(os.getenv("DB_CONNECT_TIMEOUT", "10"))
DB_STATEMENT_TIMEOUT_MS = int(os.getenv("DB_STATEMENT_TIMEOUT_MS", "15000"))
CREATE_TABLES = os.getenv("CREATE_TABLES", "true").lower() in ("1", "true", "yes")

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
CORS_ORIGINS = [o.strip() for o in os.getenv("CORS_ORIGINS", "*").split(",") if o.strip()]

# Profiles created with one of these ids start out as administrators.
BOOTSTRAP_ADMIN_IDS = {i.strip() for i in os.getenv("BOOTSTRAP_ADMIN_IDS", "").split(",") if i.strip()}
