from sqlalchemy import Column, Integer, String, DateTime, Float, Index
from linkpulse.database.connection import Base


class ClickEvent(Base):
    """
    One row per redirect. Written once by the click recorder, never updated.

    Used for breakdowns (date, OS, device) and visitor uniqueness; total
    click counts come from ShortLink.clicks instead.
    """
    __tablename__ = "click_events"
    __table_args__ = (
        Index("ix_click_events_alias_timestamp", "alias", "timestamp"),
        Index("ix_click_events_alias_visitor", "alias", "visitor_id"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    alias = Column(String(20), nullable=False)
    timestamp = Column(DateTime(timezone=True), nullable=False)
    user_agent = Column(String, nullable=True)
    ip_address = Column(String, nullable=True)
    country = Column(String, nullable=True)
    city = Column(String, nullable=True)
    latitude = Column(Float, nullable=True)
    longitude = Column(Float, nullable=True)
    os_name = Column(String, nullable=False, default="Unknown")
    device_type = Column(String, nullable=False, default="desktop")
    visitor_id = Column(String, nullable=False)
