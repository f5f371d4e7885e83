from .db_session import Base, Database, commit_changes, database, get_db

__all__ = ["Base", "Database", "commit_changes", "database", "get_db"]
