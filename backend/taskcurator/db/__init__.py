"""Database package."""

from taskcurator.db.base import Base, BaseModel, JSONType
from taskcurator.db.session import async_session_factory, get_db_session

__all__ = ["Base", "BaseModel", "JSONType", "async_session_factory", "get_db_session"]
