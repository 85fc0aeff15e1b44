"""
Catalog store connection and session management.
"""

from pathlib import Path

from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from config.settings import settings
from matching.models import Base


def make_engine(url: str = settings.DATABASE_URL):
    """Create an engine; SQLite file URLs get their parent directory created."""
    if url.startswith("sqlite:///") and not url.endswith(":memory:"):
        Path(url[len("sqlite:///"):]).parent.mkdir(parents=True, exist_ok=True)
    return create_engine(url, echo=settings.DEBUG, future=True)


engine = make_engine()

SessionLocal = sessionmaker(bind=engine, autoflush=False, autocommit=False)


def init_db(bind=None):
    """Initialize catalog tables."""
    Base.metadata.create_all(bind=bind or engine)
