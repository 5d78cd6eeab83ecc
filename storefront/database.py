# storefront/database.py
from typing import Any

from fastapi import Depends
from sqlalchemy.engine import Engine
from sqlalchemy.pool import StaticPool
from sqlmodel import SQLModel, create_engine, Session

from storefront.core.config import get_settings

settings = get_settings()

# ---------------------------------------------------------
# Postgres connection (via pooler)
#
# - sslmode=require   : enforce SSL when running in the cloud
# - pool_size=1       : keep only 1 connection to the pooler
# - max_overflow=0    : do not open extra connections beyond the pool
# - pool_pre_ping=True: validate connections before using them
#
# SQLite (local runs, tests) shares one connection across the
# threadpool workers that run cart store operations.
# ---------------------------------------------------------


def _engine_options(db_url: str) -> tuple[str, dict[str, Any]]:
    if db_url.startswith("sqlite"):
        return db_url, {
            "connect_args": {"check_same_thread": False},
            "poolclass": StaticPool,
        }

    # Append sslmode=require if it is not already present
    if "sslmode=" not in db_url:
        if "?" in db_url:
            db_url = db_url + "&sslmode=require"
        else:
            db_url = db_url + "?sslmode=require"

    return db_url, {
        "pool_pre_ping": True,
        "pool_size": 1,
        "max_overflow": 0,
    }


def build_engine(db_url: str) -> Engine:
    url, options = _engine_options(db_url)
    return create_engine(url, echo=False, **options)


engine = build_engine(settings.DATABASE_URL)


def create_db_and_tables(target: Engine | None = None) -> None:
    """
    Create all tables defined in SQLModel metadata if they do not exist.

    This is called once on application startup.
    """
    # Import models so SQLModel metadata is populated before create_all()
    from storefront.models import cart as _cart_models  # noqa: F401
    from storefront.models import user as _user_models  # noqa: F401

    SQLModel.metadata.create_all(target or engine)


def get_engine() -> Engine:
    """
    FastAPI dependency returning the process-wide engine.

    Tests override this single dependency to point every session and
    the remote cart store at an isolated database.
    """
    return engine


def get_session(db_engine: Engine = Depends(get_engine)):
    """
    FastAPI dependency that yields a SQLModel Session.

    Usage:

        from fastapi import Depends

        @router.get("/example")
        def example_endpoint(session: Session = Depends(get_session)):
            ...
    """
    with Session(db_engine) as session:
        yield session
