"""
Click storage strategies using Strategy Pattern.

Defines how click events are written and how the grouped queries behind
analytics rollups are answered. The SQL implementation pushes every
aggregation (date truncation, GROUP BY, COUNT DISTINCT) down to the database.
"""

from abc import ABC, abstractmethod
from datetime import date, datetime
from typing import Dict, List, Sequence

from sqlalchemy import func
from sqlalchemy.orm import Session

from linkpulse.click_processor.models import ClickRecord
from linkpulse.models.click_event import ClickEvent
from linkpulse.storage.base import SQLStore

# Dimensions a breakdown can be grouped by
BREAKDOWN_COLUMNS = {
    "os_name": ClickEvent.os_name,
    "device_type": ClickEvent.device_type,
}


class ClickStorageStrategy(ABC):
    """
    Abstract base class for click storage.

    Every query takes a list of aliases so the same call serves alias,
    topic and owner scopes.
    """

    @abstractmethod
    async def store_click(self, record: ClickRecord) -> None:
        """Persist a single click event"""
        pass

    @abstractmethod
    async def store_clicks(self, records: Sequence[ClickRecord]) -> None:
        """Persist several click events in one write"""
        pass

    @abstractmethod
    async def count_unique_visitors(self, aliases: Sequence[str], since: datetime) -> int:
        """Distinct visitor ids across `aliases` since `since`"""
        pass

    @abstractmethod
    async def unique_visitors_by_alias(self, aliases: Sequence[str], since: datetime) -> Dict[str, int]:
        """Distinct visitor ids per alias since `since` (aliases without clicks omitted)"""
        pass

    @abstractmethod
    async def clicks_by_date(self, aliases: Sequence[str], since: datetime) -> List[Dict]:
        """Per-day click counts since `since`, ascending, days without clicks omitted"""
        pass

    @abstractmethod
    async def breakdown(self, aliases: Sequence[str], dimension: str) -> List[Dict]:
        """All-time clicks and distinct visitors grouped by `dimension`"""
        pass


def _day_label(value) -> str:
    # SQLite returns DATE() as text, other backends as a date
    if isinstance(value, (date, datetime)):
        return value.strftime("%Y-%m-%d")
    return str(value)


class SQLClickStorage(SQLStore, ClickStorageStrategy):
    """SQLAlchemy implementation backed by the click_events table"""

    @staticmethod
    def _to_row(record: ClickRecord) -> ClickEvent:
        geo = record.geo
        return ClickEvent(
            alias=record.alias,
            timestamp=record.timestamp,
            user_agent=record.user_agent,
            ip_address=record.ip_address,
            country=geo.country if geo else None,
            city=geo.city if geo else None,
            latitude=geo.latitude if geo else None,
            longitude=geo.longitude if geo else None,
            os_name=record.os_name,
            device_type=record.device_type,
            visitor_id=record.visitor_id,
        )

    async def store_click(self, record: ClickRecord) -> None:
        await self.store_clicks([record])

    async def store_clicks(self, records: Sequence[ClickRecord]) -> None:
        if not records:
            return
        rows = [self._to_row(record) for record in records]
        await self._run(lambda db: db.add_all(rows))

    async def count_unique_visitors(self, aliases: Sequence[str], since: datetime) -> int:
        if not aliases:
            return 0

        def work(db: Session) -> int:
            count = db.query(func.count(func.distinct(ClickEvent.visitor_id))).filter(
                ClickEvent.alias.in_(aliases),
                ClickEvent.timestamp >= since
            ).scalar()
            return count or 0

        return await self._run(work)

    async def unique_visitors_by_alias(self, aliases: Sequence[str], since: datetime) -> Dict[str, int]:
        if not aliases:
            return {}

        def work(db: Session) -> Dict[str, int]:
            rows = db.query(
                ClickEvent.alias,
                func.count(func.distinct(ClickEvent.visitor_id))
            ).filter(
                ClickEvent.alias.in_(aliases),
                ClickEvent.timestamp >= since
            ).group_by(ClickEvent.alias).all()
            return {alias: count for alias, count in rows}

        return await self._run(work)

    async def clicks_by_date(self, aliases: Sequence[str], since: datetime) -> List[Dict]:
        if not aliases:
            return []

        def work(db: Session) -> List[Dict]:
            day = func.date(ClickEvent.timestamp)
            rows = db.query(day, func.count(ClickEvent.id)).filter(
                ClickEvent.alias.in_(aliases),
                ClickEvent.timestamp >= since
            ).group_by(day).order_by(day).all()
            return [{"date": _day_label(value), "clicks": count} for value, count in rows]

        return await self._run(work)

    async def breakdown(self, aliases: Sequence[str], dimension: str) -> List[Dict]:
        column = BREAKDOWN_COLUMNS.get(dimension)
        if column is None:
            raise ValueError(f"Unknown breakdown dimension: {dimension}")
        if not aliases:
            return []

        def work(db: Session) -> List[Dict]:
            clicks = func.count(ClickEvent.id)
            rows = db.query(
                column,
                clicks,
                func.count(func.distinct(ClickEvent.visitor_id))
            ).filter(
                ClickEvent.alias.in_(aliases)
            ).group_by(column).order_by(clicks.desc(), column).all()
            return [
                {"label": label, "clicks": count, "unique_users": users}
                for label, count, users in rows
            ]

        return await self._run(work)
