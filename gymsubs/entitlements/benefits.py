"""
Benefit projection for the active subscription item.
"""
import math
from dataclasses import asdict, dataclass
from datetime import datetime, timedelta
from decimal import Decimal, InvalidOperation
from typing import Iterable, Optional

from .errors import InvariantViolation
from .queue import active_item

ONE_DAY = timedelta(days=1)


@dataclass(frozen=True)
class BenefitSnapshot:
    """
    Benefits granted by the active item.

    Attributes:
        cost (float): Price paid for the item
        classes (int): Class visits allowed
        gym (int): Gym visits allowed
        duration_months (int): Length of the period
        valid_until (datetime): End of the validity window
        name (str): Membership name
    """
    cost: float
    classes: int
    gym: int
    duration_months: int
    valid_until: Optional[datetime]
    name: Optional[str]

    @property
    def is_empty(self):
        return self == NO_ENTITLEMENT

    def as_dict(self):
        return asdict(self)


NO_ENTITLEMENT = BenefitSnapshot(
    cost=0.0,
    classes=0,
    gym=0,
    duration_months=0,
    valid_until=None,
    name=None,
)


def coerce_cost(value, item_id=None) -> float:
    """
    Read a cost as a float.

    Decimal columns usually travel through JSON as strings such as "99.99",
    so strings are accepted as long as they hold a finite decimal number.

    Raises:
        InvariantViolation: If the value is not numeric
    """
    if isinstance(value, bool) or value is None:
        raise InvariantViolation(f"Item {item_id} has non-numeric cost {value!r}", item_ids=[item_id])
    if isinstance(value, str):
        try:
            value = Decimal(value.strip())
        except InvalidOperation:
            raise InvariantViolation(
                f"Item {item_id} has non-numeric cost {value!r}", item_ids=[item_id]
            ) from None
    try:
        result = float(value)
    except (TypeError, ValueError):
        raise InvariantViolation(
            f"Item {item_id} has non-numeric cost {value!r}", item_ids=[item_id]
        ) from None
    if not math.isfinite(result):
        raise InvariantViolation(f"Item {item_id} has non-finite cost {value!r}", item_ids=[item_id])
    return result


def current_benefits(items: Iterable) -> BenefitSnapshot:
    """
    Project the active item into a BenefitSnapshot.

    Returns NO_ENTITLEMENT when no item is active.
    """
    item = active_item(items)
    if item is None:
        return NO_ENTITLEMENT
    return BenefitSnapshot(
        cost=coerce_cost(item.cost, item.id),
        classes=item.max_classes_assistance,
        gym=item.max_gym_assistance,
        duration_months=item.duration_months,
        valid_until=item.end_date,
        name=item.name,
    )


def days_remaining(items: Iterable, now) -> int:
    """
    Whole days left on the active item, rounded up and never negative.

    A day and a half left counts as 2: access lasts for part of the last day.
    """
    item = active_item(items)
    if item is None:
        return 0
    days = math.ceil((item.end_date - now) / ONE_DAY)
    return max(days, 0)


def expires_within(items: Iterable, now, days: int) -> bool:
    """True when the active item runs out within the next ``days`` days."""
    remaining = days_remaining(items, now)
    return 0 < remaining <= days
