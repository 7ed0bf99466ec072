from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, scoped_session
from sqlalchemy.pool import NullPool
from fee_tracker.config.settings import DATABASE_URL
from fee_tracker.storage.base import Base


def _pool_kwargs(url: str) -> dict:
    # sqlite engines reject the QueuePool sizing arguments
    if url.startswith("sqlite"):
        return {}
    return {"pool_size": 10, "max_overflow": 20}


# Celery workers fork, so they never share pooled connections
worker_engine = create_engine(
    DATABASE_URL,
    pool_pre_ping=True,
    poolclass=NullPool
)
WorkerSessionLocal = scoped_session(
    sessionmaker(
        autocommit=False,
        autoflush=False,
        expire_on_commit=False,
        bind=worker_engine,
    )
)

engine = create_engine(
    DATABASE_URL,
    pool_pre_ping=True,
    **_pool_kwargs(DATABASE_URL)
)
SessionLocal = scoped_session(
    sessionmaker(
        autocommit=False,
        autoflush=False,
        expire_on_commit=False,
        bind=engine,
    )
)


def init_db(bind=engine) -> None:
    """Create the pools / transactions tables if they are missing."""
    # model modules register their tables on Base.metadata when imported
    import fee_tracker.storage.models.pools  # noqa: F401
    import fee_tracker.storage.models.transactions  # noqa: F401

    Base.metadata.create_all(bind=bind)
