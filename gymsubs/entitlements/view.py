"""
Combined queue and benefit view of one subscription at a given instant.
"""
from dataclasses import dataclass, field
from typing import Any, List, Optional

from .benefits import BenefitSnapshot, current_benefits, days_remaining
from .queue import active_item, advance_queue, cancelled_items, expired_items, pending_items


@dataclass(frozen=True)
class QueueView:
    active: Optional[Any]
    pending: List
    expired: List
    cancelled: List
    benefits: BenefitSnapshot
    days_remaining: int
    transitions: List = field(default_factory=list)


def project(items, now) -> QueueView:
    """Sweep the items up to ``now``, then classify them and project benefits."""
    items = list(items)
    transitions = advance_queue(items, now)
    return QueueView(
        active=active_item(items),
        pending=pending_items(items),
        expired=expired_items(items),
        cancelled=cancelled_items(items),
        benefits=current_benefits(items),
        days_remaining=days_remaining(items, now),
        transitions=transitions,
    )
