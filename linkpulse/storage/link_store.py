"""
Durable store for short links.

This is the source of truth. Uniqueness of aliases is guaranteed by the
table's unique constraint, so a check-then-insert race between two creators
ends with exactly one row and an AliasConflict for the loser.
"""

from typing import List, Optional

from sqlalchemy import update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session
from sqlalchemy.sql import func

from linkpulse.errors import AliasConflict
from linkpulse.models.short_link import ShortLink
from linkpulse.storage.base import SQLStore


class LinkStore(SQLStore):
    """SQLAlchemy-backed ShortLink repository"""

    async def insert(self, link: ShortLink) -> ShortLink:
        """
        Insert a new link.

        Raises:
            AliasConflict: if the alias is already taken
        """
        def work(db: Session) -> ShortLink:
            db.add(link)
            db.flush()
            db.refresh(link)
            return link

        try:
            return await self._run(work)
        except IntegrityError as e:
            raise AliasConflict(f"Alias '{link.alias}' is already taken") from e

    async def get(self, alias: str) -> Optional[ShortLink]:
        """Get a link by alias whether active or not"""
        return await self._run(
            lambda db: db.query(ShortLink).filter(ShortLink.alias == alias).first()
        )

    async def get_active(self, alias: str) -> Optional[ShortLink]:
        return await self._run(
            lambda db: db.query(ShortLink).filter(
                ShortLink.alias == alias,
                ShortLink.is_active == True  # noqa: E712
            ).first()
        )

    async def alias_exists(self, alias: str) -> bool:
        return await self._run(
            lambda db: db.query(ShortLink.id).filter(ShortLink.alias == alias).first() is not None
        )

    async def find_by_topic(self, topic: str) -> List[ShortLink]:
        return await self._run(
            lambda db: db.query(ShortLink)
            .filter(ShortLink.topic == topic)
            .order_by(ShortLink.id)
            .all()
        )

    async def find_by_owner(self, owner_id: str) -> List[ShortLink]:
        return await self._run(
            lambda db: db.query(ShortLink)
            .filter(ShortLink.owner_id == owner_id)
            .order_by(ShortLink.id)
            .all()
        )

    async def increment_clicks(self, alias: str) -> bool:
        """Atomically add one click. Returns False if the alias is unknown."""
        def work(db: Session) -> bool:
            result = db.execute(
                update(ShortLink)
                .where(ShortLink.alias == alias)
                .values(clicks=ShortLink.clicks + 1, updated_at=func.now())
            )
            return result.rowcount > 0

        return await self._run(work)

    async def set_active(self, alias: str, active: bool) -> bool:
        """Flip the active flag. Returns False if the alias is unknown."""
        def work(db: Session) -> bool:
            result = db.execute(
                update(ShortLink)
                .where(ShortLink.alias == alias)
                .values(is_active=active, updated_at=func.now())
            )
            return result.rowcount > 0

        return await self._run(work)
