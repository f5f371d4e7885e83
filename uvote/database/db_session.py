from fastapi import HTTPException, status
from loguru import logger
from sqlalchemy import create_engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, declarative_base, sessionmaker
from sqlalchemy.pool import NullPool
from uvote.config import DATABASE_URL, DB_CONNECT_TIMEOUT, DB_STATEMENT_TIMEOUT_MS

Base = declarative_base()


class Database:
    """ This Class contains all the methods related to the Database utilities."""

    def __init__(self, url: str = DATABASE_URL):
        self.url = url
        try:
            if url.startswith("postgresql"):
                # Every remote call must fail rather than hang.
                self.engine = create_engine(
                    url,
                    echo=False,
                    poolclass=NullPool,
                    connect_args={
                        "connect_timeout": DB_CONNECT_TIMEOUT,
                        "options": f"-c statement_timeout={DB_STATEMENT_TIMEOUT_MS}",
                    },
                )
            else:
                self.engine = create_engine(
                    url,
                    echo=False,
                    connect_args={"check_same_thread": False, "timeout": DB_CONNECT_TIMEOUT},
                )
        except Exception as e:
            logger.error(f"Error while creating the database engine: {e}")
            raise

        self.SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=self.engine)

    def create_tables(self):
        """Create every table registered on the shared metadata."""
        Base.metadata.create_all(bind=self.engine)
        logger.info("Database tables are in place.")

    def get_session(self):
        """ This function returns a new Session bound to the engine."""
        return self.SessionLocal()


database = Database()


def get_db():
    """FastAPI dependency yielding one Session per request."""
    db = database.get_session()
    try:
        yield db
    finally:
        db.close()


def commit_changes(db: Session, action: str) -> None:
    """Commit the session. A store failure rolls back and answers 503 so the client can retry."""
    try:
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        logger.exception(f"Database commit failed: could not {action}")
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
                            detail=f"Could not {action}. Please try again.")
