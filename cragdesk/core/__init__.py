"""Core configuration, database wiring, crypto primitives and the error taxonomy."""

from cragdesk.core.config import Settings, get_settings
from cragdesk.core.database import build_engine, build_session_factory, get_db

__all__ = ["Settings", "build_engine", "build_session_factory", "get_db", "get_settings"]
