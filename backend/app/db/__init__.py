"""Database package."""

from app.db.models import AnalysisResultRecord, Base, MaterialRecord
from app.db.session import DbSession, close_db, get_db_session, get_session_factory, init_db

__all__ = [
    "DbSession",
    "get_db_session",
    "get_session_factory",
    "init_db",
    "close_db",
    "Base",
    "MaterialRecord",
    "AnalysisResultRecord",
]
