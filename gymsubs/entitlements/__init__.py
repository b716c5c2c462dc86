"""
Subscription entitlement core: which purchased item is active, what it grants
and how the queue moves forward over time.
"""
from .benefits import (
    NO_ENTITLEMENT,
    BenefitSnapshot,
    coerce_cost,
    current_benefits,
    days_remaining,
    expires_within,
)
from .errors import EntitlementError, InvariantViolation
from .items import ItemSnapshot
from .queue import (
    active_item,
    advance_queue,
    cancelled_items,
    expired_items,
    initial_status,
    next_window,
    pending_items,
)
from .status import ItemStatus, StatusTransition
from .view import QueueView, project

__all__ = [
    'NO_ENTITLEMENT',
    'BenefitSnapshot',
    'EntitlementError',
    'InvariantViolation',
    'ItemSnapshot',
    'ItemStatus',
    'QueueView',
    'StatusTransition',
    'active_item',
    'advance_queue',
    'cancelled_items',
    'coerce_cost',
    'current_benefits',
    'days_remaining',
    'expired_items',
    'expires_within',
    'initial_status',
    'next_window',
    'pending_items',
    'project',
]
