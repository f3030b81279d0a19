
# Import entry point for scripts / throwaway schemas

from .session import make_engine, make_session_factory, get_db, session_scope
from app.db.model import *  # make sure every model is registered on Base.metadata
from .base import Base


"""
    Quick schema for an empty dev database or an in-memory test engine:
        from app.db import create_all; create_all(engine)
    Production uses `alembic upgrade head`.
"""
def create_all(engine) -> None:
    Base.metadata.create_all(bind=engine)
