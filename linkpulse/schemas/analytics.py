"""
Analytics rollup schemas.

Rollups are cached as JSON, so every model here round-trips through
model_dump_json / model_validate_json.
"""

from typing import List

from pydantic import Field

from linkpulse.schemas.link import CamelModel


class DateClicks(CamelModel):
    date: str = Field(..., description="UTC day, YYYY-MM-DD")
    clicks: int


class OsBucket(CamelModel):
    os_name: str
    unique_clicks: int = Field(..., description="Click events in this bucket")
    unique_users: int = Field(..., description="Distinct visitors in this bucket")


class DeviceBucket(CamelModel):
    device_name: str
    unique_clicks: int
    unique_users: int


class LinkSummary(CamelModel):
    short_url: str
    total_clicks: int
    unique_users: int


class Rollup(CamelModel):
    """
    Aggregate analytics for one scope.

    total_clicks comes from the link counters; unique_users and
    clicks_by_date cover the trailing window; os/device breakdowns are
    all-time. Counters and events are only eventually consistent.
    """

    total_clicks: int = 0
    unique_users: int = 0
    clicks_by_date: List[DateClicks] = []
    os_type: List[OsBucket] = []
    device_type: List[DeviceBucket] = []


class TopicRollup(Rollup):
    urls: List[LinkSummary] = []


class OwnerRollup(TopicRollup):
    total_urls: int = 0
