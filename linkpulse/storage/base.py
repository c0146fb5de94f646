"""
Shared plumbing for SQLAlchemy-backed stores.

Store calls are blocking, so each one runs in a worker thread with its own
session and is bounded by a timeout. Timeouts and connectivity errors become
TransientStoreError; everything else propagates unchanged.
"""

import asyncio
import logging
from typing import Callable, TypeVar

from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import Session, sessionmaker

from linkpulse.errors import TransientStoreError

logger = logging.getLogger(__name__)

T = TypeVar("T")


class SQLStore:
    """Base class giving subclasses a timed, thread-offloaded session runner"""

    def __init__(self, session_factory: sessionmaker, timeout: float = 5.0):
        self.session_factory = session_factory
        self.timeout = timeout

    def _in_session(self, work: Callable[[Session], T]) -> T:
        db = self.session_factory()
        try:
            result = work(db)
            db.commit()
            return result
        except Exception:
            db.rollback()
            raise
        finally:
            db.close()

    async def _run(self, work: Callable[[Session], T]) -> T:
        try:
            return await asyncio.wait_for(
                asyncio.to_thread(self._in_session, work),
                timeout=self.timeout,
            )
        except asyncio.TimeoutError as e:
            logger.error("Store call timed out after %.1fs", self.timeout)
            raise TransientStoreError(f"Store call timed out after {self.timeout}s") from e
        except OperationalError as e:
            logger.error("Store unavailable: %s", e)
            raise TransientStoreError("Store unavailable") from e
