"""
Item status values and the record of a status change.
"""
from dataclasses import dataclass
from enum import Enum
from typing import Any


class ItemStatus(Enum):
    """Enum for subscription item status values."""
    PENDING = "pending"
    ACTIVE = "active"
    EXPIRED = "expired"
    CANCELLED = "cancelled"


@dataclass(frozen=True)
class StatusTransition:
    """One status change applied to an item by the queue sweep."""
    item: Any
    previous: ItemStatus
    current: ItemStatus

    @property
    def item_id(self):
        return self.item.id
