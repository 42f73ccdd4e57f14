from sqlalchemy import create_engine
from sqlalchemy.orm import declarative_base, sessionmaker

from .settings import settings

# SQLite connections are shared with the worker threads FastAPI runs sync routes in
connect_args = {"check_same_thread": False} if settings.DROPPERS_DATABASE_URL.startswith("sqlite") else {}

engine = create_engine(settings.DROPPERS_DATABASE_URL, connect_args=connect_args)
SessionLocal = sessionmaker(bind=engine, autocommit=False, autoflush=False)
Base = declarative_base()


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def init_db() -> None:
    """Create tables (dev convenience, no migrations)."""
    from . import models  # noqa: F401  ensure models are registered on Base
    Base.metadata.create_all(bind=engine)
