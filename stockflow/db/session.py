"""Database engine setup.

For test runs (ENV=test) without a DATABASE_URL we use a shared in-memory
SQLite database so logic tests need no PostgreSQL driver. Row locks
(``SELECT ... FOR UPDATE``) only take effect on PostgreSQL; SQLite relies on
the snapshot version check instead.
"""

from contextlib import contextmanager
from typing import Generator

from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker

from stockflow.core.config import settings

raw_url = settings.DATABASE_URL

if settings.ENV.lower() == "test" and not raw_url:
    raw_url = "sqlite:///file:stockflow_test?mode=memory&cache=shared&uri=true"

if raw_url.startswith("postgresql"):
    engine = create_engine(
        raw_url,
        future=True,
        pool_size=5,
        max_overflow=10,
        pool_recycle=3600,  # Recycle connections after 1 hour
        pool_pre_ping=True,
    )
elif raw_url.startswith("sqlite"):
    engine = create_engine(raw_url, future=True, connect_args={"check_same_thread": False})
else:
    engine = create_engine(raw_url, future=True)

SessionLocal = sessionmaker(bind=engine, class_=Session, expire_on_commit=False, autoflush=False)


def get_db() -> Generator[Session, None, None]:
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


@contextmanager
def transaction(db: Session) -> Generator[Session, None, None]:
    """Explicit unit of work on an existing session.

    Commits when the block exits cleanly, rolls back on any exception and
    re-raises it. Everything written inside the block becomes visible
    together or not at all.
    """
    try:
        yield db
        db.commit()
    except Exception:
        db.rollback()
        raise
