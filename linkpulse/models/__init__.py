"""
Database models.

ShortLink is transactional data; ClickEvent is the append-only analytics log.
"""

from .short_link import ShortLink
from .click_event import ClickEvent

__all__ = ["ShortLink", "ClickEvent"]
