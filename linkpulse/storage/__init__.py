"""
Storage module.

LinkStore holds the transactional short links; click storage holds the
append-only click log behind analytics, behind a Strategy interface.
"""

from .link_store import LinkStore
from .click_storage import ClickStorageStrategy, SQLClickStorage

__all__ = [
    "LinkStore",
    "ClickStorageStrategy",
    "SQLClickStorage",
]
