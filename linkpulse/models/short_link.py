from sqlalchemy import Column, Integer, String, DateTime, Boolean
from sqlalchemy.sql import func
from linkpulse.database.connection import Base


class ShortLink(Base):
    """
    Short link record - the source of truth for alias -> long URL.

    `alias` is globally unique (enforced by the unique constraint, which is
    what makes concurrent creators safe) and never changes once assigned.
    `clicks` only ever grows, via single-statement increments.
    """
    __tablename__ = "short_links"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    owner_id = Column(String, nullable=False, index=True)
    long_url = Column(String, nullable=False)
    # unique=True also creates the index
    alias = Column(String(20), unique=True, nullable=False, index=True)
    topic = Column(String, nullable=True, index=True)
    clicks = Column(Integer, nullable=False, default=0)
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())
