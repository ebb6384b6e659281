"""Base model configuration."""
from datetime import UTC, datetime
from typing import Optional

from sqlalchemy import Column, DateTime, create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import declarative_base, sessionmaker

from spellsan.config import settings

# Create SQLAlchemy engine
engine = create_engine(settings.storage.url, echo=settings.storage.echo)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

# Create declarative base class
Base = declarative_base()


class TimestampMixin:
    """Mixin to add timestamp columns to models."""
    created_at = Column(DateTime(timezone=True), default=lambda: datetime.now(UTC))
    updated_at = Column(
        DateTime(timezone=True),
        default=lambda: datetime.now(UTC),
        onupdate=lambda: datetime.now(UTC),
    )


def create_session_factory(url: str, echo: bool = False) -> sessionmaker:
    """Create a session factory bound to its own engine with the schema in place."""
    own_engine = create_engine(url, echo=echo)
    init_db(own_engine)
    return sessionmaker(autocommit=False, autoflush=False, bind=own_engine)


def init_db(bind: Optional[Engine] = None) -> None:
    """Initialize database."""
    Base.metadata.create_all(bind=bind or engine)  # Create tables if they don't exist
