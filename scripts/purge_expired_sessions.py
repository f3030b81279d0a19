#!/usr/bin/env python3
from __future__ import annotations

from app.core.config import get_settings
from app.core.logging import configure_logging
from app.db.session import make_engine, make_session_factory, session_scope
from app.repository import session_repo


# Delete expired rows from the sessions table. Run from cron:
#   PYTHONPATH=backend python scripts/purge_expired_sessions.py

def main():
    settings = get_settings()
    log = configure_logging(settings.LOG_LEVEL)
    engine = make_engine(settings.DATABASE_URL)
    try:
        with session_scope(make_session_factory(engine)) as db:
            removed = session_repo.purge_expired(db)
    finally:
        engine.dispose()
    log.info("sessions.purged count=%d", removed)


if __name__ == "__main__":
    main()
