from sqlmodel import SQLModel, create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.pool import StaticPool

from .core.config import Settings
from .db import models  # noqa: F401  registers tables on SQLModel.metadata


def build_engine(settings: Settings) -> Engine:
    # Choose engine options based on database scheme
    db_url = settings.DATABASE_URL
    engine_kwargs = {}

    if db_url.startswith("sqlite"):
        # SQLite specific connect args
        engine_kwargs.update({
            "connect_args": {"check_same_thread": False}
        })
        if ":memory:" in db_url or db_url.rstrip("/") in ("sqlite:", "sqlite+pysqlite:"):
            # One shared connection, otherwise every checkout sees an empty database
            engine_kwargs["poolclass"] = StaticPool
    else:
        # Pool bounds concurrent transactions; exhaustion raises sqlalchemy.exc.TimeoutError
        engine_kwargs.update({
            "pool_pre_ping": True,
            "pool_recycle": settings.DB_POOL_RECYCLE,
            "pool_size": settings.DB_POOL_SIZE,
            "max_overflow": settings.DB_MAX_OVERFLOW,
            "pool_timeout": settings.DB_POOL_TIMEOUT,
        })

    return create_engine(db_url, echo=settings.DEBUG, **engine_kwargs)


def create_db_and_tables(engine: Engine) -> None:
    SQLModel.metadata.create_all(engine)
