"""
Database engine, session factory and declarative base
"""
import logging

from sqlalchemy import create_engine
from sqlalchemy.engine import make_url
from sqlalchemy.orm import declarative_base, sessionmaker
from sqlalchemy.pool import StaticPool

from app.config import settings

logger = logging.getLogger(__name__)

Base = declarative_base()


def create_store_engine(database_url: str, timeout: int = None):
    """
    Build an engine with an explicit timeout on every store call

    PostgreSQL: connect timeout, pool checkout timeout and statement_timeout.
    SQLite: busy timeout; in-memory databases share one connection.
    """
    timeout = timeout or settings.STORE_TIMEOUT_SECONDS
    url = make_url(database_url)

    if url.get_backend_name() == "sqlite":
        connect_args = {"check_same_thread": False, "timeout": timeout}
        if url.database in (None, "", ":memory:"):
            return create_engine(
                database_url,
                connect_args=connect_args,
                poolclass=StaticPool
            )
        return create_engine(database_url, connect_args=connect_args)

    return create_engine(
        database_url,
        pool_pre_ping=True,
        pool_timeout=timeout,
        connect_args={
            "connect_timeout": timeout,
            "options": f"-c statement_timeout={timeout * 1000}"
        }
    )


engine = create_store_engine(settings.DATABASE_URL)
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def get_db():
    """FastAPI dependency yielding one session per request"""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def init_db():
    """Create all tables"""
    # Register models on the metadata before create_all
    import app.models  # noqa: F401

    Base.metadata.create_all(bind=engine)
    logger.info(f"Tables ensured on {engine.url.get_backend_name()}")
