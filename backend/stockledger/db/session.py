"""Database engine. SQLite compatible with connection pooling."""
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import NullPool, StaticPool


def _is_memory_sqlite(url: str) -> bool:
    return url in ("sqlite://", "sqlite:///:memory:") or "mode=memory" in url


def make_engine(url: str) -> Engine:
    connect_args = {"check_same_thread": False} if url.startswith("sqlite") else {}

    if url.startswith("sqlite") and _is_memory_sqlite(url):
        # In-memory SQLite: one shared connection, otherwise every session sees an empty DB
        return create_engine(url, connect_args=connect_args, poolclass=StaticPool)
    if url.startswith("sqlite"):
        # SQLite file: Use NullPool for thread-safety
        return create_engine(url, connect_args=connect_args, poolclass=NullPool)
    # PostgreSQL/MySQL: Use QueuePool with sensible defaults
    return create_engine(
        url,
        connect_args=connect_args,
        pool_size=5,  # Number of persistent connections
        max_overflow=10,  # Max temporary connections
        pool_timeout=30,  # Seconds to wait for connection
        pool_recycle=3600,  # Recycle connections after 1 hour
        pool_pre_ping=True  # Verify connection health
    )


def make_session_factory(engine: Engine) -> sessionmaker:
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)
