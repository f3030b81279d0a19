
# Engine/Session factories + FastAPI dependency

from __future__ import annotations
from contextlib import contextmanager
from typing import Generator, Iterator

from fastapi import Request
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker, Session


def make_engine(database_url: str, *, pool_size: int = 10, max_overflow: int = 20, echo: bool = False) -> Engine:
    kwargs = dict(
        pool_pre_ping=True,      # detect dropped connections ("server closed the connection")
        echo=echo,
        future=True,
    )
    if not database_url.startswith("sqlite"):
        kwargs.update(
            pool_size=pool_size,         # resident connections
            max_overflow=max_overflow,   # burst connections
            pool_recycle=1800,           # seconds; recycle before middleboxes cut idle links
        )
    return create_engine(database_url, **kwargs)


# autocommit=False, autoflush=False keeps transaction and flush timing explicit
def make_session_factory(engine: Engine) -> sessionmaker[Session]:
    return sessionmaker(
        bind=engine,
        autoflush=False,
        autocommit=False,
        expire_on_commit=False,  # objects stay usable after commit
        class_=Session,
        future=True,
    )


'''
FastAPI dependency: one session per request, taken from the AppContext
built in the lifespan.
usage:
from app.db.session import get_db
def endpoint(db: Session = Depends(get_db)): ...
'''
def get_db(request: Request) -> Generator[Session, None, None]:
    factory: sessionmaker[Session] = request.app.state.context.session_factory
    db: Session = factory()
    try:
        yield db    # repositories commit/rollback explicitly; nothing implicit here
    finally:
        db.close()  # hand the connection back to the pool


# ---- context manager for scripts (non-FastAPI) ----
@contextmanager
def session_scope(factory: sessionmaker[Session]) -> Iterator[Session]:

    db: Session = factory()
    try:
        yield db
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()
