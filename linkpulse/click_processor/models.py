"""
Data models for click capture.
"""

from pydantic import BaseModel, Field
from datetime import datetime, timezone
from typing import Optional


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class GeoLocation(BaseModel):
    """Best-effort location derived from the client IP"""

    country: Optional[str] = None
    city: Optional[str] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None


class ClickRecord(BaseModel):
    """
    A single redirect, enriched and ready to be written to click storage.

    Immutable once built: the recorder derives every field up front and the
    storage layer only persists it.
    """

    alias: str = Field(..., description="The alias that was resolved")
    timestamp: datetime = Field(default_factory=utc_now, description="When the click happened (UTC)")

    # Request metadata
    user_agent: Optional[str] = Field(None, description="Raw user agent string")
    ip_address: Optional[str] = Field(None, description="Client IP address")

    # Derived metadata
    geo: Optional[GeoLocation] = Field(None, description="Absent when lookup fails")
    os_name: str = Field("Unknown", description="Operating system family")
    device_type: str = Field("desktop", description="mobile, tablet, bot or desktop")
    visitor_id: str = Field(..., description="Cookie-stable browser identifier")

    model_config = {
        "frozen": True,
        "json_schema_extra": {
            "example": {
                "alias": "abc1234",
                "timestamp": "2025-10-29T10:30:00Z",
                "user_agent": "Mozilla/5.0 (iPhone; CPU iPhone OS 17_0 like Mac OS X)",
                "ip_address": "203.0.113.7",
                "geo": {"country": "US", "city": "Austin", "latitude": 30.26, "longitude": -97.74},
                "os_name": "iOS",
                "device_type": "mobile",
                "visitor_id": "4f1c2b7e9a0d4c55b1e2f3a4b5c6d7e8",
            }
        },
    }
