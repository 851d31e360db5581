"""
SQLAlchemy engines and sessions for the catalog and promotion tables.

The quote path never writes: repositories open a read session and run raw
SQL through `fetch_all`. The primary engine exists for the ORM models and
for tooling that seeds tables.
"""

from contextlib import contextmanager
from typing import Any, Dict, Iterable, List, Optional

from sqlalchemy import bindparam, create_engine, text
from sqlalchemy.orm import Session, declarative_base, sessionmaker
from sqlalchemy.pool import QueuePool

# Logger
from app.logging.utils import get_app_logger
logger = get_app_logger("app.connections.database")

# Settings
from app.config.settings import QuoteConfigs
configs = QuoteConfigs()

Base = declarative_base()


def _driver_url(url: str) -> str:
    # plain postgresql:// goes through psycopg3
    if url and url.startswith("postgresql://"):
        return "postgresql+psycopg://" + url[len("postgresql://"):]
    return url


def _make_engine(url: str):
    connect_args = {}
    if url.startswith("postgresql"):
        connect_args = {"keepalives_idle": 600, "keepalives_interval": 30, "keepalives_count": 3}
    return create_engine(
        url,
        poolclass=QueuePool,
        pool_size=configs.DATABASE_POOL_SIZE,
        max_overflow=configs.DATABASE_MAX_OVERFLOW,
        pool_pre_ping=True,
        pool_recycle=3600,
        connect_args=connect_args,
    )


DATABASE_URL = _driver_url(configs.DATABASE_URL)
DATABASE_READ_URL = _driver_url(configs.DATABASE_READ_URL)

engine = _make_engine(DATABASE_URL)
# replica when configured, otherwise the primary pool is shared
read_engine = _make_engine(DATABASE_READ_URL) if DATABASE_READ_URL != DATABASE_URL else engine

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
ReadSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=read_engine)

logger.info(f"database_engines_ready | replica={read_engine is not engine} pool_size={configs.DATABASE_POOL_SIZE}")


def fetch_all(db: Session, query: str, params: Optional[Dict[str, Any]] = None,
              expanding: Optional[Iterable[str]] = None) -> List[Dict[str, Any]]:
    """
    Run a read query on an open session.

    Args:
        db: Session from `get_db_session`
        query: Raw SQL with named parameters
        params: Parameter values
        expanding: Names of list parameters used as ``IN :name``

    Returns:
        Rows as dictionaries keyed by column name
    """
    statement = text(query)
    if expanding:
        statement = statement.bindparams(*[bindparam(name, expanding=True) for name in expanding])
    result = db.execute(statement, params or {})
    return [dict(row) for row in result.mappings().all()]


@contextmanager
def get_db_session(read_only: bool = False):
    """Session scoped to a block; writes commit on exit and roll back on error."""
    db = (ReadSessionLocal if read_only else SessionLocal)()
    try:
        yield db
        if not read_only:
            db.commit()
    except Exception:
        if not read_only:
            db.rollback()
        raise
    finally:
        db.close()


def close_db_pool():
    engine.dispose()
    if read_engine is not engine:
        read_engine.dispose()
