"""
Entitlement queue: classification, ordering and the activation sweep.

A subscription holds any number of items. At most one of them is active;
the others wait in a FIFO pending queue or sit in the expired/cancelled
history. Every function here is a pure computation over the given items and
an explicit ``now``. Only ``advance_queue`` changes anything, and only the
``status`` attribute of the items it was handed.
"""
import logging
from typing import Iterable, List, Optional, Tuple

from gymsubs.utils.dates import add_months

from .errors import InvariantViolation
from .status import ItemStatus, StatusTransition

logger = logging.getLogger(__name__)


def status_of(item) -> ItemStatus:
    """
    Read an item's status as an ItemStatus.

    Raises:
        InvariantViolation: If the stored value is not a known status
    """
    try:
        return ItemStatus(item.status)
    except ValueError:
        raise InvariantViolation(
            f"Item {item.id} has unknown status {item.status!r}",
            item_ids=[item.id],
        ) from None


def _id_key(item_id):
    # ints sort numerically, anything else by its text, missing ids last
    if item_id is None:
        return (2, '')
    if isinstance(item_id, int) and not isinstance(item_id, bool):
        return (0, item_id)
    return (1, str(item_id))


def _fifo_key(item):
    return (item.start_date, item.purchase_date or item.start_date, _id_key(item.id))


def _history_key(item):
    return (item.end_date, item.purchase_date or item.start_date, _id_key(item.id))


def _with_status(items, status):
    return [item for item in items if status_of(item) is status]


def active_item(items: Iterable) -> Optional[object]:
    """
    Return the single active item, or None when nothing is active.

    Args:
        items: All items of one subscription, in any order

    Returns:
        The active item or None

    Raises:
        InvariantViolation: If more than one item is active
    """
    active = _with_status(items, ItemStatus.ACTIVE)
    if len(active) > 1:
        ids = [item.id for item in active]
        logger.error("Subscription has %d active items: %s", len(active), ids)
        raise InvariantViolation(
            f"Expected at most one active item, found {len(active)}",
            item_ids=ids,
        )
    return active[0] if active else None


def pending_items(items: Iterable) -> List:
    """
    Return pending items in activation order.

    Earliest start_date first; ties go to the earliest purchase_date, then
    to the lowest id.
    """
    return sorted(_with_status(items, ItemStatus.PENDING), key=_fifo_key)


def expired_items(items: Iterable) -> List:
    """Return expired items, most recently ended first."""
    return sorted(_with_status(items, ItemStatus.EXPIRED), key=_history_key, reverse=True)


def cancelled_items(items: Iterable) -> List:
    """Return cancelled items, most recently ending first."""
    return sorted(_with_status(items, ItemStatus.CANCELLED), key=_history_key, reverse=True)


def _transition(item, current: ItemStatus) -> StatusTransition:
    previous = status_of(item)
    item.status = current.value
    return StatusTransition(item=item, previous=previous, current=current)


def advance_queue(items: Iterable, now) -> List[StatusTransition]:
    """
    Bring item statuses up to date with ``now``.

    While no item is active the head of the pending queue is promoted, and
    while the active item's end_date has been reached it is expired. This
    repeats until neither rule applies, so several lapsed periods are
    processed in one call. Start and end dates are never changed. Cancelled
    items are left alone.

    Calling it again with the same ``now`` changes nothing.

    Args:
        items: All items of one subscription; statuses are updated in place
        now (datetime): Instant to evaluate against

    Returns:
        list: The transitions applied, in order

    Raises:
        InvariantViolation: If more than one item is active on entry
    """
    items = list(items)
    current = active_item(items)
    queue = pending_items(items)
    transitions = []

    while True:
        if current is None:
            if not queue:
                break
            current = queue.pop(0)
            transitions.append(_transition(current, ItemStatus.ACTIVE))
        elif now >= current.end_date:
            transitions.append(_transition(current, ItemStatus.EXPIRED))
            current = None
        else:
            break

    for change in transitions:
        logger.info("Item %s: %s -> %s", change.item_id, change.previous.value, change.current.value)
    return transitions


def initial_status(items: Iterable) -> ItemStatus:
    """
    Status for an item about to be added to the subscription.

    Active when nothing is active or waiting, pending otherwise.
    """
    items = list(items)
    if active_item(items) is None and not pending_items(items):
        return ItemStatus.ACTIVE
    return ItemStatus.PENDING


def next_window(items: Iterable, now, duration_months: int) -> Tuple:
    """
    Validity window for a newly purchased item.

    The window starts where the queue ends (the latest end_date among the
    active and pending items) or at ``now`` when the queue is empty or
    already over, and lasts ``duration_months`` calendar months.

    Returns:
        tuple: (start_date, end_date)
    """
    if duration_months <= 0:
        raise ValueError("duration_months must be positive")
    items = list(items)
    queued = pending_items(items)
    current = active_item(items)
    if current is not None:
        queued.append(current)
    start = max([item.end_date for item in queued] + [now])
    return start, add_months(start, duration_months)
